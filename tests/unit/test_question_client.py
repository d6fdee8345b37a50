"""
Unit tests for the question generation client.
"""

import pytest
import pytest_asyncio
from httpx import Request, Response, TimeoutException

from src.adaptive.models import DifficultyTier
from src.integrations.question_client import QuestionGenerationClient, QuestionGenerationError


@pytest.fixture
def sample_questions():
    """Service payload with two questions."""
    return {
        "questions": [
            {
                "id": "q-1",
                "question": "What is the time complexity of binary search?",
                "answer": "O(log n)",
                "difficulty": "Medium",
                "options": ["O(1)", "O(log n)", "O(n)"],
                "domain": "Algorithms",
            },
            {
                "id": "q-2",
                "question": "Which structure gives O(1) average lookups?",
                "answer": "Hash map",
            },
        ]
    }


@pytest_asyncio.fixture
async def client():
    """Question generation client instance."""
    client = QuestionGenerationClient(
        api_url="http://localhost:8000/",
        api_key="secret",
        timeout_ms=5000,
        retry_attempts=3,
    )
    yield client
    await client.close()


@pytest.fixture
def sleeps(monkeypatch):
    """Capture backoff delays instead of sleeping."""
    delays = []

    async def fake_sleep(seconds):
        delays.append(seconds)

    monkeypatch.setattr("src.integrations.question_client.asyncio.sleep", fake_sleep)
    return delays


class TestQuestionGenerationClient:
    """Tests for QuestionGenerationClient.generate."""

    def test_authorization_header(self, client):
        """Test the API key is sent as a bearer token."""
        assert client.client.headers["Authorization"] == "Bearer secret"
        assert client.api_url == "http://localhost:8000"

    @pytest.mark.asyncio
    async def test_generate_success(self, client, sample_questions, monkeypatch):
        """Test questions are parsed with the requested tier as default."""
        captured = {}

        async def mock_post(url, **kwargs):
            captured["url"] = url
            captured["json"] = kwargs["json"]
            return Response(200, json=sample_questions, request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        questions = await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.HARD, 2)

        assert captured["url"] == "http://localhost:8000/questions/generate"
        assert captured["json"]["difficulty"] == "Hard"
        assert captured["json"]["count"] == 2
        assert [q.id for q in questions] == ["q-1", "q-2"]
        assert questions[0].difficulty is DifficultyTier.MEDIUM
        assert questions[1].difficulty is DifficultyTier.HARD

    @pytest.mark.asyncio
    async def test_generate_truncates_to_count(self, client, sample_questions, monkeypatch):
        """Test extra questions from the service are dropped."""
        async def mock_post(url, **kwargs):
            return Response(200, json=sample_questions["questions"], request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        questions = await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.EASY, 1)

        assert len(questions) == 1

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, client, monkeypatch, sleeps):
        """Test 4xx responses fail immediately."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            return Response(400, json={"error": "bad domain"}, request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(QuestionGenerationError, match="400"):
            await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.EASY, 5)
        assert call_count == 1
        assert sleeps == []

    @pytest.mark.asyncio
    async def test_server_error_retry(self, client, sample_questions, monkeypatch, sleeps):
        """Test retry logic on 5xx server errors."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                return Response(503, json={"error": "unavailable"}, request=Request("POST", url))
            return Response(200, json=sample_questions, request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        questions = await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.EASY, 2)

        assert call_count == 2
        assert len(questions) == 2
        assert sleeps == [1]

    @pytest.mark.asyncio
    async def test_timeouts_exhaust_retries(self, client, monkeypatch, sleeps):
        """Test exponential backoff and the final error after repeated timeouts."""
        call_count = 0

        async def mock_post(url, **kwargs):
            nonlocal call_count
            call_count += 1
            raise TimeoutException("Timeout")

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(QuestionGenerationError, match="after 3 attempts"):
            await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.EASY, 5)
        assert call_count == 3
        assert sleeps == [1, 2]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [b"not json", b'{"questions": [1, 2]}'],
    )
    async def test_malformed_payload(self, client, monkeypatch, body):
        """Test unparseable responses raise without retrying."""
        async def mock_post(url, **kwargs):
            return Response(200, content=body, request=Request("POST", url))

        monkeypatch.setattr(client.client, "post", mock_post)

        with pytest.raises(QuestionGenerationError, match="Malformed"):
            await client.generate("Algorithms", "Google", "Backend Developer", DifficultyTier.EASY, 5)


@pytest.mark.asyncio
async def test_client_without_key_sends_no_authorization():
    async with QuestionGenerationClient(api_url="http://localhost:8000") as client:
        assert "Authorization" not in client.client.headers
