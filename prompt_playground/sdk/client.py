"""
HTTP client for the generation endpoint.

Builds the request body and opens streaming or complete responses.
Interpreting the responses is left to the generation session.
"""

from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from prompt_playground.config.loader import DEFAULT_BASE_URL, DEFAULT_MODEL, DEFAULT_TIMEOUT

GENERATE_PATH = "/generate"


@dataclass(frozen=True)
class PromptSubmission:
    """One prompt as submitted for generation.

    Immutable for the lifetime of the generation it starts.
    """
    text: str
    model: str = DEFAULT_MODEL
    temperature: float = 0.7
    streaming: bool = True

    def __post_init__(self):
        """Validate model and temperature."""
        if not self.model or not self.model.strip():
            raise ValueError("model is required and cannot be empty")
        if not 0.0 <= self.temperature <= 1.0:
            raise ValueError("temperature must be between 0 and 1")


class GenerationClient:
    """Async client for POST /generate.

    Owns one httpx.AsyncClient; close it with aclose() or use the client
    as an async context manager.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """Initialize the client.

        Args:
            base_url: Base URL the /generate path is appended to
            api_key: Provider API key forwarded to the endpoint (optional)
            timeout: Request timeout in seconds
            transport: Custom httpx transport, mainly for tests
        """
        self.base_url = base_url
        self.api_key = api_key
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport
        )

    def build_payload(self, submission: PromptSubmission) -> Dict[str, Any]:
        """Build the JSON request body for a submission."""
        payload: Dict[str, Any] = {
            "prompt": submission.text,
            "model": submission.model,
            "temperature": submission.temperature,
            "stream": submission.streaming,
        }
        if self.api_key:
            payload["apiKey"] = self.api_key
        return payload

    @asynccontextmanager
    async def stream(self, submission: PromptSubmission) -> AsyncIterator[httpx.Response]:
        """Open a streaming generation request.

        The response is closed when the context exits, whatever the reason.

        Raises:
            httpx.HTTPError: If the request cannot be sent
        """
        async with self._http.stream(
            "POST", GENERATE_PATH, json=self.build_payload(submission)
        ) as response:
            yield response

    async def generate(self, submission: PromptSubmission) -> httpx.Response:
        """Send a generation request and read the complete response.

        Raises:
            httpx.HTTPError: If the request fails at the transport level
        """
        return await self._http.post(GENERATE_PATH, json=self.build_payload(submission))

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()

    async def __aenter__(self) -> "GenerationClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
