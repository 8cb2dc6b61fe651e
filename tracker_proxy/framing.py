"""
Stream framing for `*...#` tracker frames
"""
import codecs
from typing import Iterator

FRAME_END = "#"
DEFAULT_MAX_BUFFER_SIZE = 8192


class FrameBufferOverflow(Exception):
    """Raised when a peer keeps sending data without an end marker"""

    def __init__(self, buffered: int, limit: int):
        super().__init__(f"Frame buffer holds {buffered} characters without '{FRAME_END}' (limit {limit})")
        self.buffered = buffered
        self.limit = limit


class FrameExtractor:
    """Accumulates bytes from one connection and cuts them into frames.

    Each call to ``feed`` appends the chunk right away and returns an
    iterator over the frames completed so far. Anything after the last
    end marker stays buffered for the next call. Start markers are not
    checked here; the parser rejects frames without one.
    """

    def __init__(self, max_buffer_size: int = DEFAULT_MAX_BUFFER_SIZE):
        self.max_buffer_size = max_buffer_size
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> int:
        return len(self._buffer)

    def feed(self, chunk: bytes) -> Iterator[str]:
        self._buffer += self._decoder.decode(chunk)
        return self._drain()

    def _drain(self) -> Iterator[str]:
        while True:
            end = self._buffer.find(FRAME_END)
            if end < 0:
                break
            frame = self._buffer[:end + 1]
            self._buffer = self._buffer[end + 1:]
            yield frame.strip()

        if self.max_buffer_size and len(self._buffer) > self.max_buffer_size:
            buffered = len(self._buffer)
            self.reset()
            raise FrameBufferOverflow(buffered, self.max_buffer_size)

    def reset(self):
        """Drop buffered text and any partial UTF-8 sequence"""
        self._buffer = ""
        self._decoder.reset()
