"""
Storage module for planner records.

This module provides a unified interface for reading and writing a user's
holdings, loans, cash flows, goals, policies and retirement scenarios across
storage backends (in-memory, SQL databases).
"""

from .base import (
    PlannerRepository,
    StorageError,
    UnsupportedRecordError,
)
from .factory import create_repository
from .memory import InMemoryRepository
from .sql import SqlAlchemyRepository

__all__ = [
    "PlannerRepository",
    "StorageError",
    "UnsupportedRecordError",
    "InMemoryRepository",
    "SqlAlchemyRepository",
    "create_repository",
]
