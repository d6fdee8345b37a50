"""
Unit tests for tutoring session storage, export and import.
"""

import json
from datetime import datetime, timedelta

import pytest

from src.tutor.models import (
    ConversationSession,
    MessageRole,
    MessageType,
    Problem,
    ProgressMetrics,
    TutorMessage,
)
from src.tutor.session_store import SessionImportError, SessionStore

NOW = datetime(2026, 1, 15, 12, 0, 0)


def _session(session_id, user_id="user-1", title="Two Sum", messages=(), last_activity=NOW):
    history = [
        TutorMessage(
            id=f"{session_id}_msg_{index}",
            role=MessageRole.USER if index % 2 else MessageRole.ASSISTANT,
            content=content,
            type=MessageType.RESPONSE,
            timestamp=last_activity - timedelta(minutes=len(messages) - index),
            step_number=1,
            code_review={"score": 80} if "```" in content else None,
        )
        for index, content in enumerate(messages)
    ]
    return ConversationSession(
        id=session_id,
        user_id=user_id,
        problem=Problem(id=f"problem-{session_id}", title=title, description="", difficulty="medium"),
        conversation_history=history,
        user_progress=ProgressMetrics(understanding=40, hints_used=2, concepts_learned=["hashing"]),
        created_at=last_activity - timedelta(minutes=45),
        last_activity=last_activity,
    )


@pytest.fixture
def store(tmp_path):
    return SessionStore(tmp_path / "sessions", max_sessions=3, retention_days=30)


class TestSessionStore:
    """Tests for saving, loading and listing sessions."""

    def test_save_and_load(self, store):
        session = _session("s1", messages=["What is the input?", "An array"])
        store.save(session)

        assert store.load("s1") == session
        assert store.active_session_id() == "s1"

    def test_load_missing_returns_none(self, store):
        assert store.load("missing") is None

    def test_index_is_newest_first_and_capped(self, store):
        for session_id in ["s1", "s2", "s3", "s4"]:
            store.save(_session(session_id))

        assert [e.id for e in store.list_sessions()] == ["s4", "s3", "s2"]
        assert store.load("s1") is None

    def test_resaving_updates_entry_in_place(self, store):
        store.save(_session("s1"))
        store.save(_session("s2"))
        store.save(_session("s1", title="Three Sum"))

        entries = store.list_sessions()
        assert [e.id for e in entries] == ["s2", "s1"]
        assert entries[1].problem_title == "Three Sum"

    def test_index_entry_carries_progress(self, store):
        store.save(_session("s1", messages=["a", "b", "c"]))
        entry = store.list_sessions()[0]

        assert entry.message_count == 3
        assert entry.understanding == 40

    def test_delete_clears_active_session(self, store):
        store.save(_session("s1"))
        store.delete("s1")

        assert store.list_sessions() == []
        assert store.active_session_id() is None

    def test_clear_all(self, store):
        store.save(_session("s1"))
        store.save(_session("s2"))
        store.clear_all()

        assert store.list_sessions() == []
        assert store.load("s2") is None


class TestExportImport:
    def test_round_trip_through_export(self, store, tmp_path):
        session = _session("s1", messages=["Hint please", "```x = 1```"])
        store.save(session)
        exported = store.export_session("s1")

        other = SessionStore(tmp_path / "other", max_sessions=3, retention_days=30)
        imported = other.import_session(exported)

        assert imported == session
        assert other.load("s1") == session

    def test_export_missing_returns_none(self, store):
        assert store.export_session("missing") is None

    def test_session_without_messages_can_be_imported(self, store):
        imported = store.import_session(json.dumps(_session("s1").to_dict()))
        assert imported.conversation_history == []

    def test_invalid_json(self, store):
        with pytest.raises(SessionImportError, match="not valid JSON"):
            store.import_session("{not json")

    def test_non_object(self, store):
        with pytest.raises(SessionImportError):
            store.import_session("[1, 2, 3]")

    @pytest.mark.parametrize("field_name", ["id", "user_id", "problem", "conversation_history"])
    def test_missing_required_field(self, store, field_name):
        payload = _session("s1").to_dict()
        del payload[field_name]

        with pytest.raises(SessionImportError, match=field_name):
            store.import_session(json.dumps(payload))
        assert store.list_sessions() == []

    def test_malformed_nested_data(self, store):
        payload = _session("s1").to_dict()
        payload["created_at"] = "yesterday"

        with pytest.raises(SessionImportError):
            store.import_session(json.dumps(payload))


class TestQueries:
    def test_stats(self, store):
        store.save(_session("s1", messages=["Question?", "Answer", "```code```", "Thanks"]))
        stats = store.stats("s1")

        assert stats.total_messages == 4
        assert stats.user_messages == 2
        assert stats.assistant_messages == 2
        assert stats.code_reviews == 1
        assert stats.hints_used == 2
        assert stats.duration_minutes == 45
        assert stats.concepts_learned == 1

    def test_stats_for_missing_session(self, store):
        assert store.stats("missing") is None

    def test_search_matches_title_and_messages(self, store):
        store.save(_session("s1", title="Two Sum"))
        store.save(_session("s2", title="Merge Intervals", messages=["Sort them first?", "Yes"]))

        assert [e.id for e in store.search("two sum")] == ["s1"]
        assert [e.id for e in store.search("SORT")] == ["s2"]
        assert store.search("graph") == []

    def test_sessions_for_user(self, store):
        store.save(_session("s1", user_id="alice"))
        store.save(_session("s2", user_id="bob"))
        assert [e.id for e in store.sessions_for_user("bob")] == ["s2"]

    def test_cleanup_old_sessions(self, store):
        store.save(_session("old", last_activity=NOW - timedelta(days=45)))
        store.save(_session("fresh", last_activity=NOW - timedelta(days=2)))

        removed = store.cleanup_old_sessions(NOW)

        assert removed == 1
        assert [e.id for e in store.list_sessions()] == ["fresh"]
        assert store.load("old") is None
