"""
Stream handling for Prompt Playground.

Parses the newline-delimited generation stream and accumulates it into
a single answer.
"""

from .accumulator import StreamAccumulator
from .envelope import ChunkEnvelope, DoneEnvelope, StreamEnvelope, Unparsable, parse_line

__all__ = [
    "ChunkEnvelope",
    "DoneEnvelope",
    "StreamAccumulator",
    "StreamEnvelope",
    "Unparsable",
    "parse_line",
]
