import os

# Settings are loaded at import time; provide the required secret first.
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")

import asyncio
import re
from typing import Callable, Optional

import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from media_context.annotation.throttle import RequestThrottle
from media_context.db.models import Base
from media_context.db.document_store import DocumentStore
from media_context.llm.client import GenerationError


DEFAULT_RESPONSE = (
    "Here is the analysis.\n"
    "1) A short summary of the chunk.\n"
    "2) One key insight.\n"
    "3) alpha, beta, gamma\n"
    "4) A notable feature."
)


class FakeClock:
    """Manual clock whose sleep advances time instantly."""

    def __init__(self):
        self.now = 0.0
        self.sleeps = []

    def time(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


class FakeGeminiClient:
    """
    Stand-in for GeminiClient.

    Parts are one-based, as they appear in the chunk prompt.
    """

    PART = re.compile(r"\(part (\d+)\)")

    def __init__(
        self,
        response: str = DEFAULT_RESPONSE,
        fail_parts=(),
        fail_once_parts=(),
        clock: Optional[FakeClock] = None,
        on_call: Optional[Callable[[int], None]] = None,
        media_error: Optional[Exception] = None,
    ):
        self.response = response
        self.fail_parts = set(fail_parts)
        self._fail_once = set(fail_once_parts)
        self.clock = clock
        self.on_call = on_call
        self.media_error = media_error

        self.prompts = []
        self.call_times = []
        self.media_calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def generate(self, prompt: str, json_mode: bool = False) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            self.prompts.append(prompt)
            if self.clock is not None:
                self.call_times.append(self.clock.now)

            part = self._part(prompt)
            if self.on_call is not None:
                self.on_call(part)

            # Yield so overlapping calls would be observable
            await asyncio.sleep(0)

            if part in self.fail_parts:
                raise GenerationError(f"Generation request failed: part {part}")
            if part in self._fail_once:
                self._fail_once.discard(part)
                raise GenerationError("Generation request failed: HTTPStatusError")
            return self.response
        finally:
            self.in_flight -= 1

    async def generate_with_media(
        self,
        prompt: str,
        data: bytes,
        mime_type: str,
        json_mode: bool = False,
    ) -> str:
        self.media_calls.append((prompt, data, mime_type))
        if self.media_error is not None:
            raise self.media_error
        return self.response

    def _part(self, prompt: str) -> int:
        match = self.PART.search(prompt)
        return int(match.group(1)) if match else 0


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def no_throttle():
    return RequestThrottle(rate=0)


@pytest.fixture
async def db_session():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with factory() as session:
        yield session

    await engine.dispose()


@pytest.fixture
async def store(db_session):
    return DocumentStore(db_session)


@pytest.fixture
def make_client():
    """Factory for FakeGeminiClient instances."""
    return FakeGeminiClient
