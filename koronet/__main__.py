# koronet/__main__.py
"""Run the service: python -m koronet"""
import sys

import uvicorn
from dotenv import load_dotenv

from koronet.app import create_app
from koronet.config import Settings, ConfigError


def main() -> int:
    load_dotenv()
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        print(e, file=sys.stderr)
        return 2
    # uvicorn turns SIGTERM/SIGINT into a lifespan shutdown, then returns
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
