#!/usr/bin/env python3
"""Create all database tables."""
from taskboard.config import Settings
from taskboard.db import Base, make_engine
from taskboard.models import User, Task  # noqa: F401 – register models

if __name__ == "__main__":
    engine = make_engine(Settings.from_env().database_url)
    Base.metadata.create_all(bind=engine)
    print(f"Database created at {engine.url}")
