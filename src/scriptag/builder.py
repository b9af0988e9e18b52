"""Builder - composes template fragments and values into a script.

A builder's output is, in order:
1. head: empty unless a subclass provides one
2. declarations: registered parameters run through ``Language.declare``
3. body: literal fragments interleaved with converted values
4. foot: empty unless a subclass provides one
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from contextlib import aclosing
from typing import Any, AsyncIterator, Iterator

from scriptag.iterables import chain, drain, empty
from scriptag.language import UNDEFINED, Container, Language, LanguageDefinition
from scriptag.params import Params
from scriptag.runner import ExecResult, Runner, RunnerConfig

DEFAULT_STREAM_SIZE = 4 * 1024


def _split(text: str, max_size: int, encoding: str) -> Iterator[str]:
    start = size = 0
    for index, char in enumerate(text):
        width = len(char.encode(encoding))
        if size + width > max_size and index > start:
            yield text[start:index]
            start, size = index, 0
        size += width
    if start < len(text):
        yield text[start:]


class Builder:
    """A script built from literal fragments and interpolated values."""

    def __init__(
        self,
        strings: Sequence[str],
        values: Sequence[Any] | None = None,
        *,
        name: str,
        language: Language | LanguageDefinition | Mapping[str, Any] | None = None,
        runner: Runner | RunnerConfig | Mapping[str, Any] | None = None,
        params: Sequence[Sequence[Any]] = (),
        args: str | None = None,
    ):
        self.name = name
        self._strings = list(strings)
        self._values = list(values or [])
        if len(self._strings) != len(self._values) + 1:
            raise ValueError(
                f"{name}: expected {len(self._values) + 1} fragments for "
                f"{len(self._values)} values, got {len(self._strings)}"
            )
        self._language = language if isinstance(language, Language) else Language(name, language)
        self._runner = runner if isinstance(runner, Runner) else Runner(name, runner)
        self._params = Params()
        self._args = args
        for entry in params:
            self.param(*entry)
        if args and args not in self._params:
            self.param(args)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @property
    def language(self) -> Language:
        return self._language

    @property
    def runner(self) -> Runner:
        return self._runner

    def param(self, name: str, dest_name: str | None = None, default: Any = UNDEFINED) -> None:
        """Register a parameter declared as ``dest_name`` (defaults to ``name``)."""
        self._params.add(name, dest_name, default)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    async def content(self, params: Mapping[str, Any] | None = None) -> str:
        """Return the complete script text."""
        parts = []
        async with aclosing(self._content(params)) as chunks:
            async for chunk in chunks:
                parts.append(chunk)
        return "".join(parts)

    async def chunks(
        self,
        params: Mapping[str, Any] | None = None,
        max_size: int = 0,
        encoding: str = "utf-8",
    ) -> AsyncIterator[str]:
        """Yield the script text in pieces of at most ``max_size`` encoded bytes.

        Pieces are only cut between characters, so a character wider than
        ``max_size`` bytes is yielded alone. ``max_size=0`` passes every
        piece through as produced.
        """
        async with aclosing(self._content(params)) as pieces:
            async for chunk in pieces:
                if max_size <= 0 or len(chunk.encode(encoding)) <= max_size:
                    yield chunk
                    continue
                for piece in _split(chunk, max_size, encoding):
                    yield piece

    async def stream(
        self,
        params: Mapping[str, Any] | None = None,
        max_size: int = DEFAULT_STREAM_SIZE,
        encoding: str = "utf-8",
    ) -> AsyncIterator[bytes]:
        """Yield the encoded script; nothing is produced ahead of the consumer."""
        async with aclosing(self.chunks(params, max_size, encoding)) as chunks:
            async for chunk in chunks:
                if chunk:
                    yield chunk.encode(encoding)

    async def pipe(
        self,
        destination: Any,
        *,
        params: Mapping[str, Any] | None = None,
        chunk_size: int = 0,
        encoding: str = "utf-8",
        close: bool = False,
    ) -> None:
        """Write the encoded script into ``destination``.

        Args:
            destination: Object with ``write(bytes)`` and optionally ``drain()``.
            params: Parameter values for the declarations.
            chunk_size: Maximum piece size in bytes (0 for unlimited).
            encoding: Text encoding of the written bytes.
            close: Close the destination when done.
        """
        await drain(self.stream(params, chunk_size, encoding), destination, close=close)

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def exec(self, params: Mapping[str, Any] | None = None, **options: Any) -> ExecResult:
        """Run the script with the builder's runner.

        ``options`` are passed to :meth:`Runner.exec`.
        """
        return await self._runner.exec(
            self.stream(params, encoding=self._runner.encoding), **options
        )

    async def run(self, args: Sequence[Any] = (), **options: Any) -> ExecResult:
        """Run the script, declaring ``args`` under the builder's args name."""
        params: dict[str, Any] = {}
        if self._args:
            params[self._args] = list(args)
        return await self.exec(params, **options)

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _content(self, params: Mapping[str, Any] | None = None) -> AsyncIterator[str]:
        return chain(self._head(), self._declare(params), self._body(), self._foot())

    def _head(self) -> AsyncIterator[str]:
        return empty()

    def _declare(self, params: Mapping[str, Any] | None = None) -> AsyncIterator[str]:
        entries = self._params.entries(params)
        if not entries:
            return empty()
        return self._language.declare(entries)

    async def _body(self) -> AsyncIterator[str]:
        lang = self._language
        yield self._strings[0]
        for value, string in zip(self._values, self._strings[1:]):
            async with aclosing(lang.pull(value, Container.BODY)) as pieces:
                async for piece in pieces:
                    yield piece
            yield string

    def _foot(self) -> AsyncIterator[str]:
        return empty()
