"""
Unit tests for stream accumulation.

Tests line buffering across deliveries, UTF-8 boundary handling, dropped
lines, and behaviour after the terminal envelope.
"""

import logging

from prompt_playground.core.token_counter import UsageSummary
from prompt_playground.stream.accumulator import StreamAccumulator

DONE = b'{"done":true,"usage":{"promptTokens":3,"completionTokens":2,"totalTokens":5,"cost":0.0001}}\n'
STREAM = b'{"chunk":"Hello"}\n{"chunk":" world"}\n' + DONE


def feed_all(accumulator, deliveries):
    for raw in deliveries:
        accumulator.feed(raw)
    accumulator.flush()
    return accumulator


class TestAccumulation:
    """Test folding envelopes into text and usage."""

    def test_clean_stream(self):
        """Chunks concatenate in order and done supplies usage."""
        accumulator = feed_all(StreamAccumulator(), [STREAM])
        text, usage = accumulator.result()
        assert text == "Hello world"
        assert usage == UsageSummary(prompt_tokens=3, completion_tokens=2, cost=0.0001)
        assert accumulator.is_finished()

    def test_line_split_across_deliveries(self):
        """A line broken over two deliveries is parsed once complete."""
        accumulator = StreamAccumulator()
        accumulator.feed(b'{"chu')
        assert accumulator.text == ""
        assert accumulator.buffer == '{"chu'
        accumulator.feed(b'nk":"Hi"}\n')
        assert accumulator.text == "Hi"
        assert accumulator.buffer == ""

    def test_byte_by_byte_delivery(self):
        """Delivery granularity does not change the result."""
        whole = feed_all(StreamAccumulator(), [STREAM])
        split = feed_all(StreamAccumulator(), [STREAM[i:i + 1] for i in range(len(STREAM))])
        assert split.result() == whole.result()

    def test_multibyte_character_split(self):
        """A UTF-8 sequence split across deliveries decodes intact."""
        raw = '{"chunk":"café 你好"}\n'.encode("utf-8")
        cut = raw.index("é".encode("utf-8")) + 1
        accumulator = feed_all(StreamAccumulator(), [raw[:cut], raw[cut:]])
        assert accumulator.text == "café 你好"
        assert "�" not in accumulator.text

    def test_garbage_line_dropped(self):
        """Unparsable lines are skipped without aborting the stream."""
        raw = b'{"chunk":"A"}\nnot json at all\n{"chunk":"B"}\n' + DONE
        accumulator = feed_all(StreamAccumulator(), [raw])
        assert accumulator.text == "AB"
        assert accumulator.dropped_lines == 1
        assert accumulator.is_finished()

    def test_blank_lines_ignored(self):
        """Empty lines are neither text nor dropped lines."""
        raw = b'\n\n{"chunk":"A"}\n\n' + DONE
        accumulator = feed_all(StreamAccumulator(), [raw])
        assert accumulator.text == "A"
        assert accumulator.dropped_lines == 0

    def test_crlf_line_endings(self):
        """Carriage returns before the newline are tolerated."""
        raw = b'{"chunk":"A"}\r\n{"chunk":"B"}\r\n' + DONE
        accumulator = feed_all(StreamAccumulator(), [raw])
        assert accumulator.text == "AB"

    def test_done_with_chunk(self):
        """Text carried by the done envelope is appended."""
        raw = b'{"chunk":"A"}\n{"chunk":"B","done":true,"usage":{"promptTokens":1,"completionTokens":2}}\n'
        accumulator = feed_all(StreamAccumulator(), [raw])
        assert accumulator.text == "AB"
        assert accumulator.usage.total_tokens == 3

    def test_unfinished_stream(self):
        """Without done the text is kept but usage stays unknown."""
        accumulator = feed_all(StreamAccumulator(), [b'{"chunk":"partial"}\n'])
        assert accumulator.result() == ("partial", None)
        assert not accumulator.is_finished()


class TestFlush:
    """Test end-of-stream handling of the trailing partial line."""

    def test_flush_parses_unterminated_done(self):
        """A final line without a newline is parsed on flush."""
        accumulator = StreamAccumulator()
        accumulator.feed(b'{"chunk":"A"}\n' + DONE.rstrip(b"\n"))
        assert not accumulator.is_finished()
        accumulator.flush()
        assert accumulator.is_finished()
        assert accumulator.buffer == ""

    def test_flush_truncated_character(self):
        """A dangling partial UTF-8 sequence is replaced, not raised."""
        accumulator = StreamAccumulator()
        accumulator.feed(b'{"chunk":"A"}\n\xe4\xbd')
        accumulator.flush()
        assert accumulator.text == "A"
        assert accumulator.dropped_lines == 1


class TestAfterCompletion:
    """Test that nothing is applied after the terminal envelope."""

    def test_lines_after_done_in_same_delivery(self, caplog):
        """Lines following done in one delivery are ignored with a warning."""
        raw = DONE + b'{"chunk":"late"}\n'
        with caplog.at_level(logging.WARNING, logger="prompt_playground.stream.accumulator"):
            accumulator = feed_all(StreamAccumulator(), [raw])
        assert accumulator.text == ""
        assert "after stream completion" in caplog.text

    def test_deliveries_after_done(self, caplog):
        """Later deliveries are ignored with a warning."""
        accumulator = StreamAccumulator()
        accumulator.feed(STREAM)
        with caplog.at_level(logging.WARNING, logger="prompt_playground.stream.accumulator"):
            accumulator.feed(b'{"chunk":"late"}\n')
        assert accumulator.text == "Hello world"
        assert "Ignoring 17 bytes" in caplog.text

    def test_usage_not_overwritten(self):
        """A second done envelope does not replace the first usage."""
        second = b'{"done":true,"usage":{"promptTokens":9,"completionTokens":9}}\n'
        accumulator = feed_all(StreamAccumulator(), [DONE + second])
        assert accumulator.usage.prompt_tokens == 3


class TestChunkCallback:
    """Test the per-chunk notification hook."""

    def test_callback_order(self):
        """The callback sees each chunk and the running text in order."""
        seen = []
        accumulator = StreamAccumulator(on_chunk=lambda chunk, text: seen.append((chunk, text)))
        feed_all(accumulator, [STREAM])
        assert seen == [("Hello", "Hello"), (" world", "Hello world")]

    def test_callback_skips_empty_chunks(self):
        """Empty chunks do not trigger a notification."""
        seen = []
        accumulator = StreamAccumulator(on_chunk=lambda chunk, text: seen.append(chunk))
        feed_all(accumulator, [b'{"chunk":""}\n{"chunk":"x"}\n'])
        assert seen == ["x"]
