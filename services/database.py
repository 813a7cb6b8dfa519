"""Database access layer.

Uses database_adapter for engine/session construction based on settings.
Endpoints depend on get_db() for the adapter and get_session() for a
request-scoped SQLAlchemy session.
"""
from typing import Iterator
from fastapi import Depends
from sqlalchemy.orm import Session
from config import settings
from database_adapter import DatabaseAdapter

# Initialize database adapter from DATABASE_URL
db_adapter = DatabaseAdapter(settings)
db_adapter.init()


def get_db():
    """
    Dependency for FastAPI endpoints to get database adapter.
    Tests override this to point at a freshly cleaned database.

    Usage:
        @app.get("/example")
        def example(db = Depends(get_db)):
            with db.session() as session:
                ...
    """
    return db_adapter


def get_session(db = Depends(get_db)) -> Iterator[Session]:
    """One session per request, closed after the response is sent."""
    with db.session() as session:
        yield session
