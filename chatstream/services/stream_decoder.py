"""Vendor-agnostic decoder for ``data:``-framed event streams."""

import codecs
from collections.abc import AsyncIterable, AsyncIterator

FRAME_PREFIX = "data: "
DONE_MARKER = "[DONE]"


class SSEDecoder:
    """Incrementally split a text/event-stream body into event payloads.

    Chunks may break anywhere, including inside the frame prefix, inside the
    JSON payload or inside a multi-byte UTF-8 sequence. Incomplete lines stay
    buffered until the next ``feed`` call.
    """

    def __init__(self) -> None:
        self._buffer = ""
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self.done = False

    def feed(self, chunk: str | bytes) -> list[str]:
        """Consume one physical read and return the complete payloads in it."""
        if self.done:
            return []
        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        self._buffer += chunk
        *lines, self._buffer = self._buffer.split("\n")
        return self._payloads(lines)

    def flush(self) -> list[str]:
        """Treat whatever is still buffered as the final line."""
        if self.done:
            return []
        tail = self._buffer + self._utf8.decode(b"", final=True)
        self._buffer = ""
        return self._payloads([tail])

    def _payloads(self, lines: list[str]) -> list[str]:
        payloads: list[str] = []
        for line in lines:
            line = line.rstrip("\r")
            if not line.startswith(FRAME_PREFIX):
                continue
            payload = line[len(FRAME_PREFIX):].strip()
            if payload == DONE_MARKER:
                self.done = True
                break
            payloads.append(payload)
        return payloads


async def iter_event_payloads(
    chunks: AsyncIterable[str | bytes],
) -> AsyncIterator[str]:
    """Lazily yield event payloads until ``[DONE]`` or the source ends."""
    decoder = SSEDecoder()
    async for chunk in chunks:
        for payload in decoder.feed(chunk):
            yield payload
        if decoder.done:
            return
    for payload in decoder.flush():
        yield payload
