"""
Performance store models.

The PerformanceModel is persisted as a whole JSON snapshot per user. The
version column is SQLAlchemy's optimistic lock: a flush against a row that
another transaction already bumped raises StaleDataError.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class UserPerformanceRecord(Base):
    """Latest PerformanceModel snapshot for a learner."""

    __tablename__ = "user_performance"

    user_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        return f"<UserPerformanceRecord(user_id={self.user_id!r}, version={self.version})>"


class LearningPathRecord(Base):
    """A generated learning path and its tracking state."""

    __tablename__ = "learning_paths"

    path_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    target_role: Mapped[str] = mapped_column(String(255), nullable=False)
    target_company: Mapped[str] = mapped_column(String(255), nullable=False)
    payload: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<LearningPathRecord(path_id={self.path_id!r}, user_id={self.user_id!r})>"
