"""
Incremental accumulation of a streamed generation.

Raw byte deliveries are decoded, split into lines, parsed into envelopes,
and folded into one growing answer. Chunk order on the wire is the order
of the answer; nothing is reordered, deduplicated or batched.
"""

import codecs
import logging
from typing import Callable, Optional, Tuple

from prompt_playground.core.token_counter import UsageSummary
from prompt_playground.stream.envelope import (
    ChunkEnvelope,
    DoneEnvelope,
    Unparsable,
    parse_line,
)

logger = logging.getLogger(__name__)

ChunkCallback = Callable[[str, str], None]


class StreamAccumulator:
    """Folds newline-delimited stream envelopes into a running answer.

    The text attribute is append-only and safe to sample between feeds.
    """

    def __init__(self, on_chunk: Optional[ChunkCallback] = None):
        """Initialize an empty accumulator.

        Args:
            on_chunk: Optional callback invoked with (chunk, text so far)
                each time a chunk is applied
        """
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._on_chunk = on_chunk
        self.buffer = ""
        self.text = ""
        self.usage: Optional[UsageSummary] = None
        self.finished = False
        self.dropped_lines = 0

    def feed(self, raw: bytes) -> None:
        """Consume one delivery of raw bytes.

        Complete lines are parsed immediately; a trailing partial line is
        kept until the next delivery.
        """
        if self.finished:
            logger.warning("Ignoring %d bytes received after stream completion", len(raw))
            return

        self.buffer += self._decoder.decode(raw)
        *lines, self.buffer = self.buffer.split("\n")
        self._process_lines(lines)

    def flush(self) -> None:
        """Finish decoding at end of stream and parse any unterminated line."""
        if self.finished:
            return

        self.buffer += self._decoder.decode(b"", final=True)
        remainder, self.buffer = self.buffer, ""
        self._process_lines(remainder.split("\n"))

    def is_finished(self) -> bool:
        """Whether the terminal envelope has been received."""
        return self.finished

    def result(self) -> Tuple[str, Optional[UsageSummary]]:
        """Return the accumulated text and usage (None until finished)."""
        return self.text, self.usage

    def _process_lines(self, lines) -> None:
        for index, line in enumerate(lines):
            if self.finished:
                ignored = [rest for rest in lines[index:] if rest.strip()]
                if ignored:
                    logger.warning("Ignoring %d lines after stream completion", len(ignored))
                return
            if not line.strip():
                continue

            envelope = parse_line(line)
            if isinstance(envelope, ChunkEnvelope):
                self._append(envelope.chunk)
            elif isinstance(envelope, DoneEnvelope):
                self._append(envelope.chunk)
                self.usage = envelope.usage
                self.finished = True
                logger.debug("Stream finished with %d total tokens", envelope.usage.total_tokens)
            elif isinstance(envelope, Unparsable):
                self.dropped_lines += 1
                logger.debug("Dropping stream line (%s): %r", envelope.reason, line[:200])

    def _append(self, chunk: str) -> None:
        if not chunk:
            return
        self.text += chunk
        if self._on_chunk is not None:
            self._on_chunk(chunk, self.text)
