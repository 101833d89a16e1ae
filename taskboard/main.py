from typing import Optional

from fastapi import FastAPI
from loguru import logger

from . import __version__
from . import models  # noqa: F401 – register models
from .auth import SessionManager, gatekeeper
from .config import Settings
from .db import Base, make_engine, make_session_factory
from .errors import install_error_handlers
from .logging_setup import configure_logging
from .routers import auth as auth_routes
from .routers import pages as page_routes
from .routers import tasks as task_routes


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around one Settings object.

    The signing key, database and cookie policy all come from `settings`;
    nothing is read from the environment after this point.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    if settings.production and settings.uses_default_secret:
        logger.warning("Running in production with the fallback session key; set TASKBOARD_SECRET_KEY")

    engine = make_engine(settings.database_url)
    # Create tables on startup
    Base.metadata.create_all(bind=engine)

    app = FastAPI(title="Taskboard", version=__version__)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)
    app.state.sessions = SessionManager.from_settings(settings)

    install_error_handlers(app)
    app.middleware("http")(gatekeeper)

    app.include_router(auth_routes.router)
    app.include_router(task_routes.router)
    app.include_router(page_routes.router)

    logger.info(f"Taskboard ready (database: {engine.url.render_as_string(hide_password=True)})")
    return app
