"""Serve the app: ``python -m taskboard``."""
import uvicorn

from .config import Settings
from .main import create_app


def run() -> None:
    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
