# tests/test_main.py
import koronet.__main__ as entry


def test_invalid_port_exits_2_without_starting_server(monkeypatch, capsys):
    started = []
    monkeypatch.setattr(entry, "load_dotenv", lambda: None)
    monkeypatch.setattr(entry.uvicorn, "run", lambda *a, **kw: started.append(a))
    monkeypatch.setenv("PORT", "not-a-port")

    assert entry.main() == 2
    assert started == []
    assert "Invalid configuration" in capsys.readouterr().err
