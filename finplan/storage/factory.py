"""
Repository factory for creating record stores based on configuration.

This module provides a factory function to create the appropriate repository
based on the application configuration.
"""

from typing import Optional

from sqlalchemy.orm import sessionmaker

from finplan.config import Settings
from finplan.database.base import build_engine, create_tables

from .base import PlannerRepository
from .memory import InMemoryRepository
from .sql import SqlAlchemyRepository


def create_repository(
    settings: Settings, session_factory: Optional[sessionmaker] = None
) -> PlannerRepository:
    """
    Create a repository instance based on configuration.

    Args:
        settings: Application settings containing storage configuration
        session_factory: Session factory to use for SQL storage instead of
            one built from DB_URL

    Returns:
        PlannerRepository: Configured repository instance

    Raises:
        ValueError: If storage configuration is invalid
    """
    if settings.storage_type == "memory":
        return InMemoryRepository()

    elif settings.storage_type == "sql":
        if session_factory is None:
            engine = build_engine(settings.db_url, echo=settings.log_level == "DEBUG")
            create_tables(engine)
            session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        return SqlAlchemyRepository(session_factory)

    else:
        raise ValueError(f"Unsupported storage type: {settings.storage_type}")
