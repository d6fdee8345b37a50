"""
Performance Store.

Persists PerformanceModel snapshots and learning paths. Every per-user update
is a read-modify-write inside one transaction: the row is read with
SELECT ... FOR UPDATE where the dialect supports it, the new snapshot is
computed in Python and written back whole. The row version column turns a
lost race into StaleDataError, and the update is retried from a fresh read.
"""
from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from config import get_settings
from src.adaptive.models import PerformanceModel, QuizResult
from src.adaptive.path_planner import LearningPath
from src.adaptive.performance import apply_quiz_result, new_performance_model
from src.db.database import SessionLocal, session_scope
from src.db.models import LearningPathRecord, UserPerformanceRecord


class PerformanceStoreError(Exception):
    """Raised when a performance update cannot be committed."""
    pass


class PerformanceStore:
    """Transactional storage for learner performance and learning paths."""

    def __init__(self, session_factory: sessionmaker | None = None, retry_attempts: int | None = None):
        self.session_factory = session_factory or SessionLocal
        attempts = retry_attempts if retry_attempts is not None else get_settings().store_retry_attempts
        self.retry_attempts = max(1, attempts)

    # ------------------------------------------------------------------
    # Performance snapshots
    # ------------------------------------------------------------------

    def load(self, user_id: str) -> PerformanceModel:
        """Latest snapshot, or a fresh-user model when none is stored."""
        with session_scope(self.session_factory) as session:
            record = session.get(UserPerformanceRecord, user_id)
            if record is None:
                return new_performance_model(user_id)
            return PerformanceModel.from_dict(record.payload)

    def save(self, model: PerformanceModel) -> None:
        """Write a snapshot, replacing whatever is stored."""
        with session_scope(self.session_factory) as session:
            record = session.get(UserPerformanceRecord, model.user_id)
            if record is None:
                session.add(UserPerformanceRecord(user_id=model.user_id, payload=model.to_dict()))
            else:
                record.payload = model.to_dict()
        logger.debug(f"Saved performance snapshot for {model.user_id}")

    def update(
        self,
        user_id: str,
        fn: Callable[[PerformanceModel], PerformanceModel],
    ) -> PerformanceModel:
        """
        Apply fn to the stored snapshot and write the result atomically.

        fn receives the current model (a fresh one for unknown users) and must
        return the new model without side effects; it may run more than once.

        Raises:
            PerformanceStoreError: If every attempt lost a concurrent write
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                with session_scope(self.session_factory) as session:
                    record = session.execute(
                        select(UserPerformanceRecord)
                        .where(UserPerformanceRecord.user_id == user_id)
                        .with_for_update()
                    ).scalar_one_or_none()

                    current = (
                        PerformanceModel.from_dict(record.payload)
                        if record is not None
                        else new_performance_model(user_id)
                    )
                    updated = fn(current)

                    if record is None:
                        session.add(UserPerformanceRecord(user_id=user_id, payload=updated.to_dict()))
                    else:
                        record.payload = updated.to_dict()
                return updated

            except (StaleDataError, IntegrityError) as e:
                last_error = e
                logger.warning(
                    f"Concurrent performance update for {user_id} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}; retrying from a fresh snapshot"
                )

        logger.error(f"Performance update for {user_id} failed after {self.retry_attempts} attempts")
        raise PerformanceStoreError(
            f"Could not update performance for {user_id} after {self.retry_attempts} attempts"
        ) from last_error

    def record_quiz_result(
        self,
        user_id: str,
        result: QuizResult,
        now: datetime | None = None,
    ) -> PerformanceModel:
        """Fold a completed quiz into the learner's stored performance."""
        model = self.update(user_id, lambda current: apply_quiz_result(current, result, now))
        logger.info(
            f"Recorded quiz for {user_id}: {result.correct_answers}/{result.total_questions} "
            f"on {result.difficulty.value} {result.domain}"
        )
        return model

    def delete(self, user_id: str) -> bool:
        with session_scope(self.session_factory) as session:
            record = session.get(UserPerformanceRecord, user_id)
            if record is None:
                return False
            session.delete(record)
        logger.info(f"Deleted performance history for {user_id}")
        return True

    # ------------------------------------------------------------------
    # Learning paths
    # ------------------------------------------------------------------

    def save_learning_path(self, path: LearningPath) -> None:
        with session_scope(self.session_factory) as session:
            record = session.get(LearningPathRecord, path.path_id)
            if record is None:
                session.add(
                    LearningPathRecord(
                        path_id=path.path_id,
                        user_id=path.user_id,
                        target_role=path.target_role,
                        target_company=path.target_company,
                        payload=path.to_dict(),
                    )
                )
            else:
                record.payload = path.to_dict()

    def get_learning_path(self, path_id: str) -> LearningPath | None:
        with session_scope(self.session_factory) as session:
            record = session.get(LearningPathRecord, path_id)
            return LearningPath.from_dict(record.payload) if record is not None else None

    def list_learning_paths(self, user_id: str) -> list[LearningPath]:
        """A learner's paths, newest first."""
        with session_scope(self.session_factory) as session:
            records = session.execute(
                select(LearningPathRecord).where(LearningPathRecord.user_id == user_id)
            ).scalars().all()
            paths = [LearningPath.from_dict(r.payload) for r in records]
        return sorted(paths, key=lambda p: p.created_at, reverse=True)
