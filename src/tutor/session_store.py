"""
Tutoring session storage.

Sessions are kept as one JSON document per session in a directory, plus an
index of the most recent sessions (newest first) used for listing and search.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from loguru import logger

from config import get_settings
from src.tutor.models import ConversationSession

INDEX_FILE = "sessions.json"
ACTIVE_FILE = "active_session"
REQUIRED_FIELDS = ("id", "user_id", "problem", "conversation_history")


class SessionImportError(Exception):
    """Raised when exported session data cannot be imported."""
    pass


@dataclass
class StoredSession:
    """Index entry for a saved session."""

    id: str
    user_id: str
    problem_title: str
    last_activity: datetime
    message_count: int
    understanding: float
    implementation: float
    optimization: float

    @classmethod
    def from_session(cls, session: ConversationSession) -> StoredSession:
        return cls(
            id=session.id,
            user_id=session.user_id,
            problem_title=session.problem.title,
            last_activity=session.last_activity,
            message_count=len(session.conversation_history),
            understanding=session.user_progress.understanding,
            implementation=session.user_progress.implementation,
            optimization=session.user_progress.optimization,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "problem_title": self.problem_title,
            "last_activity": self.last_activity.isoformat(),
            "message_count": self.message_count,
            "progress": {
                "understanding": self.understanding,
                "implementation": self.implementation,
                "optimization": self.optimization,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> StoredSession:
        progress = data.get("progress", {})
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            problem_title=data.get("problem_title", ""),
            last_activity=datetime.fromisoformat(data["last_activity"]),
            message_count=data.get("message_count", 0),
            understanding=progress.get("understanding", 0.0),
            implementation=progress.get("implementation", 0.0),
            optimization=progress.get("optimization", 0.0),
        )


@dataclass
class SessionStats:
    total_messages: int
    user_messages: int
    assistant_messages: int
    hints_used: int
    code_reviews: int
    duration_minutes: int
    concepts_learned: int


class SessionStore:
    """File-backed store for tutoring sessions."""

    def __init__(
        self,
        directory: Path | str | None = None,
        max_sessions: int | None = None,
        retention_days: int | None = None,
    ):
        settings = get_settings()
        self.directory = Path(directory) if directory is not None else settings.get_session_dir()
        self.max_sessions = max_sessions if max_sessions is not None else settings.max_stored_sessions
        self.retention_days = retention_days if retention_days is not None else settings.session_retention_days
        self.directory.mkdir(parents=True, exist_ok=True)

    def _session_path(self, session_id: str) -> Path:
        return self.directory / f"session_{session_id}.json"

    def _write_index(self, entries: list[StoredSession]) -> None:
        payload = [e.to_dict() for e in entries]
        (self.directory / INDEX_FILE).write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def save(self, session: ConversationSession) -> None:
        """Write the session; new sessions go to the front of the index, existing entries update in place."""
        self._session_path(session.id).write_text(
            json.dumps(session.to_dict(), indent=2), encoding="utf-8"
        )

        entries = self.list_sessions()
        entry = StoredSession.from_session(session)
        existing = next((i for i, e in enumerate(entries) if e.id == session.id), None)
        if existing is not None:
            entries[existing] = entry
        else:
            entries.insert(0, entry)

        kept, dropped = entries[: self.max_sessions], entries[self.max_sessions:]
        for stale in dropped:
            self._session_path(stale.id).unlink(missing_ok=True)
        self._write_index(kept)

        (self.directory / ACTIVE_FILE).write_text(session.id, encoding="utf-8")
        logger.debug(f"Saved tutoring session {session.id}")

    def load(self, session_id: str) -> ConversationSession | None:
        path = self._session_path(session_id)
        if not path.exists():
            return None
        return ConversationSession.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def list_sessions(self) -> list[StoredSession]:
        """Index entries, most recently saved first."""
        path = self.directory / INDEX_FILE
        if not path.exists():
            return []
        return [StoredSession.from_dict(e) for e in json.loads(path.read_text(encoding="utf-8"))]

    def active_session_id(self) -> str | None:
        path = self.directory / ACTIVE_FILE
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8").strip() or None

    def delete(self, session_id: str) -> None:
        self._session_path(session_id).unlink(missing_ok=True)
        self._write_index([e for e in self.list_sessions() if e.id != session_id])
        if self.active_session_id() == session_id:
            (self.directory / ACTIVE_FILE).unlink(missing_ok=True)
        logger.info(f"Deleted tutoring session {session_id}")

    def clear_all(self) -> None:
        for entry in self.list_sessions():
            self._session_path(entry.id).unlink(missing_ok=True)
        (self.directory / INDEX_FILE).unlink(missing_ok=True)
        (self.directory / ACTIVE_FILE).unlink(missing_ok=True)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    def export_session(self, session_id: str) -> str | None:
        session = self.load(session_id)
        if session is None:
            return None
        return json.dumps(session.to_dict(), indent=2)

    def import_session(self, data: str) -> ConversationSession:
        """
        Restore a session from export_session() output and save it.

        Raises:
            SessionImportError: If the data is not a valid session export
        """
        try:
            payload = json.loads(data)
        except json.JSONDecodeError as e:
            raise SessionImportError(f"Session data is not valid JSON: {e}") from e

        if not isinstance(payload, dict):
            raise SessionImportError("Session data must be a JSON object")
        missing = [name for name in REQUIRED_FIELDS if payload.get(name) in (None, "")]
        if missing:
            raise SessionImportError(f"Invalid session data structure: missing {', '.join(missing)}")

        try:
            session = ConversationSession.from_dict(payload)
        except (KeyError, TypeError, ValueError) as e:
            raise SessionImportError(f"Invalid session data: {e}") from e

        self.save(session)
        logger.info(f"Imported tutoring session {session.id}")
        return session

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def stats(self, session_id: str) -> SessionStats | None:
        session = self.load(session_id)
        if session is None:
            return None

        history = session.conversation_history
        user_messages = sum(1 for m in history if m.is_user)
        return SessionStats(
            total_messages=len(history),
            user_messages=user_messages,
            assistant_messages=len(history) - user_messages,
            hints_used=session.user_progress.hints_used,
            code_reviews=sum(1 for m in history if m.code_review),
            duration_minutes=round((session.last_activity - session.created_at).total_seconds() / 60),
            concepts_learned=len(session.user_progress.concepts_learned),
        )

    def search(self, query: str) -> list[StoredSession]:
        """Sessions whose problem title or any message contains query."""
        needle = query.lower()
        matches = []
        for entry in self.list_sessions():
            if needle in entry.problem_title.lower():
                matches.append(entry)
                continue
            session = self.load(entry.id)
            if session and any(needle in m.content.lower() for m in session.conversation_history):
                matches.append(entry)
        return matches

    def sessions_for_user(self, user_id: str) -> list[StoredSession]:
        return [e for e in self.list_sessions() if e.user_id == user_id]

    def cleanup_old_sessions(self, now: datetime | None = None) -> int:
        """Remove sessions idle longer than the retention window; returns count removed."""
        cutoff = (now or datetime.now()) - timedelta(days=self.retention_days)
        kept = []
        removed = 0
        for entry in self.list_sessions():
            if entry.last_activity > cutoff:
                kept.append(entry)
            else:
                self._session_path(entry.id).unlink(missing_ok=True)
                removed += 1
        self._write_index(kept)
        if removed:
            logger.info(f"Cleaned up {removed} tutoring sessions older than {self.retention_days} days")
        return removed
