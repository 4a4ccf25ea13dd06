"""Database models and configuration for the planner."""

from .base import Base, build_engine, create_tables, drop_tables
from .models import InvestmentRow, PlannerRecordRow, ScenarioRow

__all__ = [
    "Base",
    "build_engine",
    "create_tables",
    "drop_tables",
    "InvestmentRow",
    "PlannerRecordRow",
    "ScenarioRow",
]
