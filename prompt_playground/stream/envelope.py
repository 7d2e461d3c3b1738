"""
Envelope parsing for the newline-delimited generation stream.

Each wire line is decoded into one of three envelope shapes. Parsing is
total: malformed input yields an Unparsable envelope instead of raising.

Decoding happens in two stages. The strict stage decodes the whole line.
The recovery stage decodes the first brace-delimited span, which salvages
lines that arrive glued to trailing garbage.
"""

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from prompt_playground.core.token_counter import UsageSummary

logger = logging.getLogger(__name__)

_OBJECT_SPAN = re.compile(r"\{.*\}")

# Token counts must fit a signed 64-bit SQLite INTEGER column.
MAX_TOKEN_COUNT = 2 ** 63 - 1


@dataclass(frozen=True)
class ChunkEnvelope:
    """A fragment of generated text."""
    chunk: str


@dataclass(frozen=True)
class DoneEnvelope:
    """Terminal envelope carrying the request's usage summary.

    chunk holds any text sent alongside the terminal marker.
    """
    usage: UsageSummary
    chunk: str = ""


@dataclass(frozen=True)
class Unparsable:
    """A line that could not be decoded into a known envelope."""
    line: str
    reason: str


StreamEnvelope = Union[ChunkEnvelope, DoneEnvelope, Unparsable]


def parse_line(line: str) -> StreamEnvelope:
    """Parse one line of stream text into an envelope.

    Args:
        line: A single line without its trailing newline

    Returns:
        ChunkEnvelope, DoneEnvelope, or Unparsable
    """
    decoded = try_strict_parse(line)
    if decoded is None:
        decoded = try_recover_parse(line)
    if decoded is None:
        return Unparsable(line=line, reason="not valid JSON")
    return classify(decoded, line)


def try_strict_parse(line: str) -> Optional[Any]:
    """Decode the full line as JSON, or return None."""
    try:
        return json.loads(line)
    except (ValueError, RecursionError):
        return None


def try_recover_parse(line: str) -> Optional[Any]:
    """Decode the first brace-delimited span of the line, or return None."""
    match = _OBJECT_SPAN.search(line)
    if not match:
        return None
    return try_strict_parse(match.group(0))


def classify(decoded: Any, line: str) -> StreamEnvelope:
    """Map a decoded JSON value onto an envelope shape.

    Unknown shapes are reported as Unparsable so newer servers can add
    fields or message types without breaking older clients.
    """
    if not isinstance(decoded, dict):
        return Unparsable(line=line, reason=f"expected object, got {type(decoded).__name__}")

    chunk = decoded.get("chunk")
    if chunk is not None and not isinstance(chunk, str):
        return Unparsable(line=line, reason="chunk is not a string")

    if decoded.get("done"):
        usage = parse_usage(decoded.get("usage"))
        if usage is None:
            return Unparsable(line=line, reason="done without a valid usage object")
        return DoneEnvelope(usage=usage, chunk=chunk or "")

    if chunk is not None:
        return ChunkEnvelope(chunk=chunk)

    return Unparsable(line=line, reason="unrecognized envelope")


def parse_usage(raw: Any) -> Optional[UsageSummary]:
    """Decode a wire usage object, or return None if it is malformed.

    Expects camelCase promptTokens/completionTokens and an optional cost.
    totalTokens is ignored; the summary derives it.
    """
    if not isinstance(raw, dict):
        return None

    prompt_tokens = raw.get("promptTokens")
    completion_tokens = raw.get("completionTokens")
    if not _is_count(prompt_tokens) or not _is_count(completion_tokens):
        return None
    if prompt_tokens + completion_tokens > MAX_TOKEN_COUNT:
        return None

    cost = raw.get("cost")
    if cost is not None:
        if isinstance(cost, bool) or not isinstance(cost, (int, float)):
            return None
        try:
            cost = float(cost)
        except OverflowError:
            return None
        if not math.isfinite(cost) or cost < 0:
            return None

    total_tokens = raw.get("totalTokens")
    if total_tokens is not None and total_tokens != prompt_tokens + completion_tokens:
        logger.warning(
            "Ignoring reported totalTokens=%s, expected %d",
            total_tokens,
            prompt_tokens + completion_tokens,
        )

    return UsageSummary(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        cost=cost,
    )


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and 0 <= value <= MAX_TOKEN_COUNT
