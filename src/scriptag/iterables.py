"""Helpers for treating sync and async iterables alike."""

from __future__ import annotations

import inspect
from contextlib import aclosing
from typing import Any, AsyncIterable, AsyncIterator, Iterable


def is_iterable(value: Any) -> bool:
    """True for sync or async iterables."""
    return isinstance(value, (Iterable, AsyncIterable))


async def aiterate(iterable: Iterable[Any] | AsyncIterable[Any]) -> AsyncIterator[Any]:
    """Iterate a sync or async iterable from async code."""
    if hasattr(iterable, "aclose"):
        # async generators are closed with the wrapper
        async with aclosing(iterable) as items:
            async for item in items:
                yield item
    elif isinstance(iterable, AsyncIterable):
        async for item in iterable:
            yield item
    elif isinstance(iterable, Iterable):
        for item in iterable:
            yield item
    else:
        raise TypeError(f"Not an iterable: {type(iterable).__name__}")


async def empty() -> AsyncIterator[Any]:
    """An async iterator with no items."""
    return
    yield  # pragma: no cover


async def chain(*iterables: Iterable[Any] | AsyncIterable[Any]) -> AsyncIterator[Any]:
    """Lazily concatenate sync and async iterables."""
    for iterable in iterables:
        async with aclosing(aiterate(iterable)) as items:
            async for item in items:
                yield item


async def drain(source: AsyncIterator[Any], destination: Any, close: bool = False) -> None:
    """Write every chunk of ``source`` into ``destination``.

    The destination needs a ``write()`` method; when it also has ``drain()``
    (e.g. ``asyncio.StreamWriter``) it is awaited after each write. The source
    is always closed, so a failed transfer never leaves it half-consumed and
    attached.

    Args:
        source: Async iterator of chunks.
        destination: Writer receiving the chunks.
        close: Close the destination once the transfer ends.
    """
    try:
        async with aclosing(source) as chunks:
            async for chunk in chunks:
                destination.write(chunk)
                flush = getattr(destination, "drain", None)
                if flush is not None:
                    result = flush()
                    if inspect.isawaitable(result):
                        await result
    finally:
        if close:
            destination.close()
            wait_closed = getattr(destination, "wait_closed", None)
            if wait_closed is not None:
                await wait_closed()
