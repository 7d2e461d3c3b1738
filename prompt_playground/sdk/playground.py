"""
Playground facade.

Ties prompt analysis, generation sessions and the durable stores together,
and keeps at most one generation in flight. Submitting while a generation
is running cancels the running one first.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional

import httpx

from prompt_playground.config.loader import PlaygroundConfig
from prompt_playground.core.analyzer import AnalysisReport, analyze
from prompt_playground.core.language import detect_input_language
from prompt_playground.core.token_counter import estimate_tokens
from prompt_playground.storage.models import HistoryEntry
from prompt_playground.storage.repository import (
    HistoryStore,
    SQLiteHistoryStore,
    SQLiteUsageStore,
    UsageStore,
)
from prompt_playground.stream.accumulator import ChunkCallback

from .client import GenerationClient, PromptSubmission
from .session import GenerationResult, GenerationSession, validate_submission

logger = logging.getLogger(__name__)


class Playground:
    """Single-user generation playground."""

    def __init__(
        self,
        client: GenerationClient,
        history_store: HistoryStore,
        usage_store: UsageStore
    ):
        self.client = client
        self.history_store = history_store
        self.usage_store = usage_store
        self.active_session: Optional[GenerationSession] = None
        self._active_task: Optional[asyncio.Task] = None

    @classmethod
    def from_config(
        cls,
        config: PlaygroundConfig,
        api_key: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "Playground":
        """Build a playground backed by SQLite stores.

        Args:
            config: Loaded playground configuration
            api_key: Overrides the configured API key when given
            transport: Custom httpx transport, mainly for tests
        """
        client = GenerationClient(
            base_url=config.endpoint.base_url,
            api_key=api_key or config.api_key,
            timeout=config.endpoint.timeout,
            transport=transport
        )
        return cls(
            client=client,
            history_store=SQLiteHistoryStore(config.storage.db_path),
            usage_store=SQLiteUsageStore(config.storage.db_path)
        )

    def analyze(self, text: str) -> AnalysisReport:
        """Score a prompt as it is being typed."""
        return analyze(text)

    def estimate_prompt_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    def detect_language(self, text: str) -> Optional[str]:
        """Detect the prompt language, or None while the prompt is too short."""
        return detect_input_language(text)

    async def submit(
        self,
        submission: PromptSubmission,
        on_chunk: Optional[ChunkCallback] = None
    ) -> GenerationResult:
        """Generate a response, cancelling any generation still in flight.

        Args:
            submission: The prompt to generate from
            on_chunk: Callback for each streamed chunk

        Returns:
            GenerationResult of the completed generation

        Raises:
            EmptyPromptError: If the prompt is blank; a running generation
                is left untouched
            GenerationError: If the generation fails
            asyncio.CancelledError: If a later submission cancels this one
        """
        validate_submission(submission)
        await self.cancel()

        session = GenerationSession(
            client=self.client,
            history_store=self.history_store,
            usage_store=self.usage_store,
            on_chunk=on_chunk
        )
        task = asyncio.ensure_future(session.run(submission))
        self.active_session = session
        self._active_task = task
        try:
            return await task
        finally:
            if self._active_task is task:
                self.active_session = None
                self._active_task = None

    async def cancel(self) -> bool:
        """Cancel the running generation and wait for it to wind down.

        Returns:
            True if a generation was cancelled
        """
        task = self._active_task
        if task is None or task.done():
            return False

        logger.info("Cancelling in-flight session %s", self.active_session.id[:8])
        task.cancel()
        await asyncio.wait({task})
        self.active_session = None
        self._active_task = None
        return True

    def save(
        self,
        prompt: str,
        response: str,
        model: str,
        temperature: float,
        tags: Iterable[str] = ()
    ) -> HistoryEntry:
        """Explicitly save a prompt and response to history.

        Raises:
            ValueError: If prompt or response is blank
        """
        if not prompt.strip() or not response.strip():
            raise ValueError("prompt and response are required to save")

        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            prompt=prompt,
            response=response,
            model=model,
            temperature=temperature,
            created_at=datetime.now(timezone.utc),
            tags=tuple(dict.fromkeys(tags))
        )
        self.history_store.append(entry)
        return entry

    async def aclose(self) -> None:
        """Cancel any running generation and close the HTTP client."""
        await self.cancel()
        await self.client.aclose()

    async def __aenter__(self) -> "Playground":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
