"""Module for asynchronous message body streams."""

from collections.abc import AsyncIterator


class Stream(AsyncIterator[bytes | bytearray]):
    """
    Base class for HTTP message bodies, delivered as asynchronously iterable chunks of bytes.

    Attributes:
    • content_type: media type of the body
    • content_length: length of the body in bytes, or None if unknown

    A stream is consumed once. It is closed by its `close` method, when exiting its
    `async with` context, or after its content is read through `read`; a closed stream
    yields no more chunks.
    """

    def __init__(self, content_type: str, content_length: int | None = None):
        self.content_type = content_type
        self.content_length = content_length

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes | bytearray:
        raise NotImplementedError

    async def close(self) -> None:
        """Close the stream; closing an already closed stream has no effect."""
        raise NotImplementedError

    async def read(self) -> bytes:
        """Read all remaining content from the stream, then close it."""
        async with self:
            return b"".join([chunk async for chunk in self])


class BytesStream(Stream):
    """
    Message body held in memory. Non-empty content is yielded as a single chunk; empty
    content yields no chunks.

    Parameters:
    • content: body content
    • content_type: media type of the body
    """

    def __init__(
        self,
        content: bytes | bytearray,
        content_type: str = "application/octet-stream",
    ):
        super().__init__(content_type, len(content))
        self._pending = content or None

    async def __anext__(self) -> bytes | bytearray:
        chunk, self._pending = self._pending, None
        if chunk is None:
            raise StopAsyncIteration
        return chunk

    async def close(self) -> None:
        self._pending = None


async def stream_bytes(stream: Stream | None) -> bytes | None:
    """Read and close a message body stream; returns None if there is no stream."""
    return await stream.read() if stream is not None else None
