"""Merging a process's stdout and stderr into one ordered chunk sequence.

Both channels are read concurrently with at most one read in flight per
channel, so a quiet channel never holds up a busy one and nothing is read
ahead of the consumer by more than a single chunk. Each channel is line
buffered: chunks always end on a line boundary, except for a final line
without a newline at EOF or a line longer than the buffer limit.
"""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator

from barn.domain.models import ErrorKind, Failure, StreamChunk, StreamSource

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 4096
MAX_PARTIAL_LINE = 64 * 1024

STREAM_INTERRUPTED = "Output stream interrupted"


class LineBuffer:
    """Holds the unterminated tail of one channel between reads."""

    def __init__(self, source: StreamSource, max_partial: int = MAX_PARTIAL_LINE) -> None:
        self._source = source
        self._max_partial = max_partial
        self._partial = b""

    def feed(self, data: bytes) -> StreamChunk | None:
        """Add freshly read bytes, returning any complete lines."""
        data = self._partial + data
        complete, newline, self._partial = data.rpartition(b"\n")
        if len(self._partial) >= self._max_partial:
            complete, newline, self._partial = data, b"", b""
        if not complete and not newline:
            return None
        return StreamChunk(source=self._source, data=complete + newline)

    def flush(self) -> StreamChunk | None:
        """Return whatever is left once the channel reaches EOF."""
        if not self._partial:
            return None
        chunk = StreamChunk(source=self._source, data=self._partial)
        self._partial = b""
        return chunk


async def merge_streams(
    stdout: asyncio.StreamReader,
    stderr: asyncio.StreamReader,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
) -> AsyncIterator[StreamChunk | Failure]:
    """Yield chunks from both channels as soon as either has data.

    Per-channel order is preserved; between channels, whichever read
    completes first is emitted first. Ends when both channels reach EOF.
    A read error ends the sequence with a single Failure.
    """
    readers = {StreamSource.STDOUT: stdout, StreamSource.STDERR: stderr}
    buffers = {source: LineBuffer(source) for source in readers}
    pending: dict[asyncio.Future[bytes], StreamSource] = {
        asyncio.ensure_future(reader.read(chunk_size)): source
        for source, reader in readers.items()
    }

    try:
        while pending:
            done, _ = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
            for task in [t for t in pending if t in done]:
                source = pending.pop(task)
                try:
                    data = task.result()
                except OSError as e:
                    logger.error("Reading %s failed: %s", source.value, e)
                    yield Failure(kind=ErrorKind.INTERNAL, message=STREAM_INTERRUPTED)
                    return

                if data:
                    chunk = buffers[source].feed(data)
                    pending[asyncio.ensure_future(readers[source].read(chunk_size))] = source
                else:
                    chunk = buffers[source].flush()
                if chunk is not None:
                    yield chunk
    finally:
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
