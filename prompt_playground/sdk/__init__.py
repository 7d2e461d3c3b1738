"""
SDK for Prompt Playground.

Provides programmatic access to generation sessions.
"""

from .client import GenerationClient, PromptSubmission
from .playground import Playground
from .session import (
    AuthenticationError,
    ConfigurationError,
    EmptyPromptError,
    GenerationError,
    GenerationResult,
    GenerationSession,
    PersistenceError,
    ProviderError,
    SessionState,
    StreamTransportError,
)

__all__ = [
    "AuthenticationError",
    "ConfigurationError",
    "EmptyPromptError",
    "GenerationClient",
    "GenerationError",
    "GenerationResult",
    "GenerationSession",
    "PersistenceError",
    "Playground",
    "PromptSubmission",
    "ProviderError",
    "SessionState",
    "StreamTransportError",
]
