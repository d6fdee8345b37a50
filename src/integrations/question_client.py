"""
Question generation client.

QuestionGenerationClient implements QuestionGenerator over HTTP against the
question generation service.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from config import get_settings
from src.adaptive.models import DifficultyTier
from src.adaptive.questions import Question


class QuestionGenerationError(Exception):
    """Raised when the question service cannot produce questions."""
    pass


class QuestionGenerationClient:
    """HTTP client for the question generation service."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        timeout_ms: int = 30000,
        retry_attempts: int = 3,
    ):
        """
        Initialize the client.

        Args:
            api_url: Base URL for the question service
            api_key: Bearer token (omitted from headers when empty)
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Number of attempts on timeouts and 5xx errors
        """
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_ms / 1000.0
        self.retry_attempts = max(1, retry_attempts)
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            headers=headers,
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls) -> QuestionGenerationClient:
        return cls(**get_settings().get_question_service_config())

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> QuestionGenerationClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def generate(
        self,
        domain: str,
        company: str,
        role: str,
        difficulty: DifficultyTier,
        count: int,
    ) -> list[Question]:
        """
        Request questions at one difficulty tier.

        Raises:
            QuestionGenerationError: On 4xx responses, malformed payloads, or
                once all retries are exhausted
        """
        payload = {
            "domain": domain,
            "company": company,
            "role": role,
            "difficulty": difficulty.value,
            "count": count,
        }
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.post(f"{self.api_url}/questions/generate", json=payload)
                response.raise_for_status()
                data = response.json()
                items = data.get("questions", []) if isinstance(data, dict) else data
                questions = [Question.from_dict(item, difficulty) for item in items]
                logger.debug(f"Received {len(questions)} {difficulty.value} questions for {domain}")
                return questions[:count]

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code < 500:
                    logger.error(f"Question service rejected request: {e.response.status_code}")
                    raise QuestionGenerationError(
                        f"Question service returned {e.response.status_code}"
                    ) from e
                logger.warning(
                    f"Question service error {e.response.status_code} on attempt "
                    f"{attempt + 1}/{self.retry_attempts}"
                )

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                logger.warning(
                    f"Question service request failed on attempt {attempt + 1}/{self.retry_attempts}: {e}"
                )

            except (ValueError, AttributeError, TypeError) as e:
                raise QuestionGenerationError(f"Malformed question payload: {e}") from e

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(2 ** attempt)  # 1s, 2s, 4s

        logger.error(f"Question generation failed after {self.retry_attempts} attempts: {last_error}")
        raise QuestionGenerationError(
            f"Question generation failed after {self.retry_attempts} attempts"
        ) from last_error
