"""
Generation session state machine.

Drives one prompt submission from request to completion or failure:

    IDLE -> SENDING -> STREAMING -> FINALIZING -> COMPLETE
    IDLE -> SENDING -> FINALIZING -> COMPLETE (non-streaming)
    SENDING or STREAMING -> FAILED or CANCELLED

Failures are raised once to the caller as GenerationError subclasses and
never retried; retrying is a new submission.
"""

import asyncio
import logging
import sqlite3
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Tuple

import httpx

from prompt_playground.core.pricing import estimate_cost
from prompt_playground.core.token_counter import UsageSummary, estimate_tokens
from prompt_playground.storage.models import HistoryEntry, UsageRecord
from prompt_playground.storage.repository import HistoryStore, UsageStore
from prompt_playground.stream.accumulator import ChunkCallback, StreamAccumulator
from prompt_playground.stream.envelope import parse_usage

from .client import GenerationClient, PromptSubmission

logger = logging.getLogger(__name__)

NO_API_KEY = "NO_API_KEY"
INVALID_API_KEY = "INVALID_API_KEY"
GENERATION_ERROR = "GENERATION_ERROR"
UNKNOWN_ERROR = "UNKNOWN_ERROR"
INVALID_RESPONSE = "INVALID_RESPONSE"
NETWORK_ERROR = "NETWORK_ERROR"
STREAM_INTERRUPTED = "STREAM_INTERRUPTED"
INCOMPLETE_STREAM = "INCOMPLETE_STREAM"
STORAGE_ERROR = "STORAGE_ERROR"


class EmptyPromptError(ValueError):
    """Raised when a blank prompt is submitted."""

    def __init__(self, message: str = "Please enter a prompt to continue."):
        super().__init__(message)


class GenerationError(Exception):
    """A generation attempt failed.

    Carries a machine-readable error code, a human message, and whatever
    partial text had been received before the failure.
    """

    def __init__(self, error_code: str, message: str, partial_text: str = ""):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.partial_text = partial_text


class ConfigurationError(GenerationError):
    """No API key is configured for the endpoint."""


class AuthenticationError(GenerationError):
    """The configured API key was rejected upstream."""


class ProviderError(GenerationError):
    """The provider failed, or the endpoint returned something unusable."""


class StreamTransportError(GenerationError):
    """The connection failed before or during the response."""


class PersistenceError(GenerationError):
    """The finished answer could not be written to the stores."""


_ERRORS_BY_CODE = {
    NO_API_KEY: ConfigurationError,
    INVALID_API_KEY: AuthenticationError,
    GENERATION_ERROR: ProviderError,
}


class SessionState(Enum):
    """Lifecycle states of a generation session."""
    IDLE = "idle"
    SENDING = "sending"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    COMPLETE = "complete"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class GenerationResult:
    """The outcome of a completed generation."""
    text: str
    usage: UsageSummary
    model: str
    history_entry: HistoryEntry


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_submission(submission: PromptSubmission) -> None:
    """Reject blank prompts before any network activity.

    Raises:
        EmptyPromptError: If the prompt is empty or whitespace
    """
    if not submission.text or not submission.text.strip():
        raise EmptyPromptError()


class GenerationSession:
    """Runs a single prompt submission through the generation endpoint.

    A session is single-use: create a new one for every submission.
    """

    def __init__(
        self,
        client: GenerationClient,
        history_store: HistoryStore,
        usage_store: UsageStore,
        on_chunk: Optional[ChunkCallback] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        """Initialize an idle session.

        Args:
            client: Client for the generation endpoint
            history_store: Store receiving the completed prompt/response
            usage_store: Ledger receiving the usage record
            on_chunk: Callback for each streamed chunk, given
                (chunk, text so far)
            clock: Source of the completion timestamp
        """
        self.id = str(uuid.uuid4())
        self.state = SessionState.IDLE
        self.usage: Optional[UsageSummary] = None
        self.error: Optional[GenerationError] = None
        self.result: Optional[GenerationResult] = None
        self._client = client
        self._history_store = history_store
        self._usage_store = usage_store
        self._on_chunk = on_chunk
        self._clock = clock
        self._accumulator: Optional[StreamAccumulator] = None
        self._text = ""
        self._task: Optional[asyncio.Task] = None

    @property
    def text(self) -> str:
        """Answer text received so far (partial until COMPLETE)."""
        if self._accumulator is not None:
            return self._accumulator.text
        return self._text

    async def run(self, submission: PromptSubmission) -> GenerationResult:
        """Send the submission and wait for the finished answer.

        Args:
            submission: The prompt to generate from

        Returns:
            GenerationResult with the full text and usage

        Raises:
            EmptyPromptError: If the prompt is blank (state stays IDLE)
            GenerationError: If the request fails or the result cannot be
                saved (state becomes FAILED)
            asyncio.CancelledError: If cancelled (state becomes CANCELLED)
            RuntimeError: If the session has already been run
        """
        if self.state is not SessionState.IDLE:
            raise RuntimeError(f"Session {self.id} has already been run")
        validate_submission(submission)

        self._task = asyncio.current_task()
        self._transition(SessionState.SENDING)

        try:
            if submission.streaming:
                text, usage = await self._receive_stream(submission)
            else:
                text, usage = await self._receive_complete(submission)
        except asyncio.CancelledError:
            self._transition(SessionState.CANCELLED)
            raise
        except GenerationError as e:
            self.error = e
            self._transition(SessionState.FAILED)
            logger.warning("Generation failed [%s]: %s", e.error_code, e.message)
            raise
        except Exception:
            self._transition(SessionState.FAILED)
            logger.exception("Generation aborted while receiving the response")
            raise

        self._transition(SessionState.FINALIZING)
        try:
            self.result = self._finalize(submission, text, usage)
        except GenerationError as e:
            self.error = e
            self._transition(SessionState.FAILED)
            logger.warning("Generation failed [%s]: %s", e.error_code, e.message)
            raise
        except Exception:
            self._transition(SessionState.FAILED)
            raise
        self._transition(SessionState.COMPLETE)
        return self.result

    def cancel(self) -> bool:
        """Cancel an in-flight run.

        Returns:
            True if a running request was cancelled
        """
        if self._task is None or self._task.done():
            return False
        if self.state not in (SessionState.SENDING, SessionState.STREAMING):
            return False
        return self._task.cancel()

    async def _receive_stream(self, submission: PromptSubmission) -> Tuple[str, UsageSummary]:
        accumulator = StreamAccumulator(on_chunk=self._on_chunk)
        self._accumulator = accumulator

        try:
            async with self._client.stream(submission) as response:
                if response.is_error:
                    await response.aread()
                    raise error_from_response(response)

                try:
                    async for raw in response.aiter_bytes():
                        if self.state is SessionState.SENDING:
                            self._transition(SessionState.STREAMING)
                        logger.debug("Received %d bytes", len(raw))
                        accumulator.feed(raw)
                        if accumulator.is_finished():
                            break
                except httpx.HTTPError as e:
                    raise StreamTransportError(
                        STREAM_INTERRUPTED,
                        f"Error processing response stream: {e}",
                        partial_text=accumulator.text
                    ) from e
        except httpx.HTTPError as e:
            raise StreamTransportError(NETWORK_ERROR, f"Could not reach generation endpoint: {e}") from e

        accumulator.flush()
        text, usage = accumulator.result()
        if usage is None:
            raise StreamTransportError(
                INCOMPLETE_STREAM,
                "Response stream ended before completion",
                partial_text=text
            )
        return text, usage

    async def _receive_complete(self, submission: PromptSubmission) -> Tuple[str, UsageSummary]:
        try:
            response = await self._client.generate(submission)
        except httpx.HTTPError as e:
            raise StreamTransportError(NETWORK_ERROR, f"Could not reach generation endpoint: {e}") from e

        if response.is_error:
            raise error_from_response(response)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict) or not isinstance(data.get("text"), str):
            raise ProviderError(INVALID_RESPONSE, "Generation endpoint returned an invalid response")

        self._text = data["text"]
        usage = parse_usage(data.get("usage"))
        if usage is None:
            logger.debug("No usage block in response, estimating tokens locally")
            usage = UsageSummary(
                prompt_tokens=estimate_tokens(submission.text),
                completion_tokens=estimate_tokens(self._text)
            )
        return self._text, usage

    def _finalize(self, submission: PromptSubmission, text: str, usage: UsageSummary) -> GenerationResult:
        if usage.cost is None:
            usage = replace(
                usage,
                cost=estimate_cost(submission.model, usage.prompt_tokens, usage.completion_tokens)
            )
        self.usage = usage

        completed_at = self._clock()
        entry = HistoryEntry(
            id=str(uuid.uuid4()),
            prompt=submission.text,
            response=text,
            model=submission.model,
            temperature=submission.temperature,
            created_at=completed_at
        )
        record = UsageRecord(
            date=completed_at.date().isoformat(),
            model=submission.model,
            prompt_tokens=usage.prompt_tokens,
            completion_tokens=usage.completion_tokens,
            total_tokens=usage.total_tokens,
            estimated_cost=usage.cost
        )
        self._persist(entry, record, text)

        return GenerationResult(text=text, usage=usage, model=submission.model, history_entry=entry)

    def _persist(self, entry: HistoryEntry, record: UsageRecord, text: str) -> None:
        """Write the history entry and usage record together.

        The history entry is removed again if the usage write fails, so a
        failed finalization leaves neither store changed.
        """
        try:
            self._history_store.append(entry)
        except (sqlite3.Error, OverflowError, ValueError) as e:
            raise PersistenceError(STORAGE_ERROR, f"Could not save history: {e}", partial_text=text) from e
        try:
            self._usage_store.append(record)
        except (sqlite3.Error, OverflowError, ValueError) as e:
            self._history_store.remove(entry.id)
            raise PersistenceError(STORAGE_ERROR, f"Could not record usage: {e}", partial_text=text) from e

    def _transition(self, state: SessionState) -> None:
        logger.info("Session %s: %s -> %s", self.id[:8], self.state.value, state.value)
        self.state = state


def error_from_response(response: httpx.Response) -> GenerationError:
    """Build the structured error for a non-2xx endpoint response.

    The response body must already be read.
    """
    try:
        data = response.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {}

    message = data.get("error")
    if not isinstance(message, str) or not message:
        message = f"HTTP {response.status_code}"

    error_code = data.get("errorCode")
    error_class = _ERRORS_BY_CODE.get(error_code) if isinstance(error_code, str) else None
    if error_class is None:
        return ProviderError(UNKNOWN_ERROR, message)
    return error_class(error_code, message)
