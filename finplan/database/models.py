"""
SQLAlchemy database models for the planner.

Records are stored as JSON payloads produced by their pydantic models. The
columns next to the payload are the ones queries filter on.
"""

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Index, String

from .base import Base


class InvestmentRow(Base):
    """A user's holding."""

    __tablename__ = "investments"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    payload = Column(JSON, nullable=False)  # Investment.model_dump(mode="json")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_investments_user_type", "user_id", "type"),)

    def __repr__(self):
        return f"<InvestmentRow(id='{self.id}', user_id='{self.user_id}', type='{self.type}')>"


class ScenarioRow(Base):
    """A retirement scenario."""

    __tablename__ = "retirement_scenarios"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    is_default = Column(Boolean, default=False, nullable=False)
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_scenarios_user_default", "user_id", "is_default"),)

    def __repr__(self):
        return f"<ScenarioRow(id='{self.id}', user_id='{self.user_id}', name='{self.name}')>"


class PlannerRecordRow(Base):
    """Loans, incomes, expenses, goals and insurance policies."""

    __tablename__ = "planner_records"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    record_type = Column(String(32), nullable=False)  # LOAN, INCOME, EXPENSE, GOAL, INSURANCE
    payload = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (Index("idx_planner_records_user_type", "user_id", "record_type"),)

    def __repr__(self):
        return (
            f"<PlannerRecordRow(id='{self.id}', user_id='{self.user_id}', "
            f"record_type='{self.record_type}')>"
        )
