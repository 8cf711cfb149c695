"""
Database engine and session management for the SQL user store.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.core.exceptions import StoreError
from app.db.base import Base


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine; SQLite gets thread-shareable connections."""
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs = {"connect_args": {"check_same_thread": False}}
        if not url.database or url.database == ":memory:":
            kwargs["poolclass"] = StaticPool
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        echo=echo,
        connect_args={"connect_timeout": 10},
        pool_size=5,  # Number of connections to maintain
        max_overflow=10,  # Additional connections beyond pool_size
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections every hour
    )


def create_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autoflush=False, bind=engine)


def create_tables(engine: Engine) -> None:
    """Create all database tables."""
    # Register table models with the metadata
    import app.db.sql_store  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError as e:
        raise StoreError(f"cannot create tables: {e}") from e
