"""
Database adapter around a SQLAlchemy engine

Holds the declarative models for the champion reference tables and reviews,
plus a small adapter that builds the engine and session factory from settings.
Tests point DATABASE_URL at a local SQLite file; production uses Postgres.
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator
from sqlalchemy import create_engine, Column, ForeignKey, String, Integer, DateTime, Text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from datetime import datetime, UTC

Base = declarative_base()


def utcnow_naive():
    """
    Return current UTC time as a naive datetime (tzinfo=None).
    Avoids deprecated datetime.utcnow() while keeping existing schema semantics.
    """
    return datetime.now(UTC).replace(tzinfo=None)


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)


class Role(Base):
    """Champion role (Top, Jungle, Mid...), not an account role."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)


class Champion(Base):
    __tablename__ = "champions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, unique=True, nullable=False)
    title = Column(String)  # e.g. "the Nine-Tailed Fox"
    region_id = Column(Integer, ForeignKey("regions.id"))
    role_id = Column(Integer, ForeignKey("roles.id"))


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String, unique=True, nullable=False)
    email = Column(String)
    role = Column(String, default="user")  # 'admin', 'user'
    created_at = Column(DateTime, default=utcnow_naive)


class Review(Base):
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, autoincrement=True)
    rating = Column(Integer, nullable=False)  # 0-5
    title = Column(String, nullable=False)
    text = Column(Text, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    champion_id = Column(Integer, ForeignKey("champions.id"), nullable=False)
    created = Column(DateTime, default=utcnow_naive, nullable=False)


def model_to_dict(obj) -> Dict[str, Any]:
    """Convert SQLAlchemy model to dict"""
    result = {}
    for column in obj.__table__.columns:
        value = getattr(obj, column.name)
        # Convert datetime to ISO string
        if isinstance(value, datetime):
            value = value.isoformat()
        result[column.name] = value
    return result


class DatabaseAdapter:
    """
    Owns the SQLAlchemy engine and session factory

    Usage:
        db = DatabaseAdapter(settings)
        db.init()

        with db.session() as session:
            session.query(Review).all()
    """

    def __init__(self, settings=None):
        from config import get_settings
        self.settings = settings or get_settings()
        self._initialized = False

        if not self.settings.DATABASE_URL:
            raise ValueError("Must provide DATABASE_URL")

        # Remove aiosqlite:// prefix for synchronous engine
        db_url = self.settings.DATABASE_URL.replace("sqlite+aiosqlite://", "sqlite://")
        connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
        self.engine = create_engine(db_url, echo=False, connect_args=connect_args)
        self.Session = sessionmaker(bind=self.engine)

    def init(self):
        """Initialize database (create tables)"""
        if not self._initialized:
            Base.metadata.create_all(self.engine)
            self._initialized = True

    def cleanup(self):
        """Clean up database (for testing)"""
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is closed on exit. Callers commit explicitly."""
        session = self.Session()
        try:
            yield session
        finally:
            session.close()
