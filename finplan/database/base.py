"""
Database base configuration.

This module provides the SQLAlchemy base class and engine construction for
the planner's record store.
"""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import StaticPool

# Create the declarative base
Base = declarative_base()


def build_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine for a database URL."""
    if db_url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, or every session sees an empty database
        return create_engine(
            db_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if db_url.startswith("sqlite"):
        return create_engine(
            db_url, echo=echo, connect_args={"check_same_thread": False}
        )
    return create_engine(
        db_url,
        echo=echo,
        pool_pre_ping=True,  # Verify connections before use
        pool_recycle=3600,  # Recycle connections after 1 hour
    )


def create_tables(engine: Engine) -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(bind=engine)


def drop_tables(engine: Engine) -> None:
    """Drop all tables in the database."""
    Base.metadata.drop_all(bind=engine)
