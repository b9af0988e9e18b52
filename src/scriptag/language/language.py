"""Language - converts Python values into target-language text."""

from __future__ import annotations

import inspect
import math
from collections.abc import Callable, Mapping, Sequence
from contextlib import aclosing, nullcontext
from datetime import date
from enum import Enum
from typing import Any, AsyncIterator, Iterable

from scriptag.config import merge_model
from scriptag.exceptions import ConfigurationError, DisallowedError, UnsupportedError
from scriptag.iterables import aiterate, is_iterable
from scriptag.language.reprs import DEFAULT_DEFINITION
from scriptag.language.spec import (
    REPR,
    UNDEFINED,
    Classified,
    Container,
    Escaped,
    Kind,
    LanguageDefinition,
    Restriction,
    Shrink,
)
from scriptag.language.stack import Stack


# Largest integer a double holds exactly
MAX_SAFE_INTEGER = 2**53 - 1
MIN_SAFE_INTEGER = -MAX_SAFE_INTEGER


def resolve_shrink(value: Shrink | bool | str | None) -> Shrink:
    """Resolve a shrink policy token; ``True`` is ALL, ``False`` is NONE."""
    if value is None:
        return Shrink.SMALL
    if value is True:
        return Shrink.ALL
    if value is False:
        return Shrink.NONE
    try:
        return Shrink(value)
    except ValueError:
        valid = ", ".join(s.value for s in Shrink)
        raise ConfigurationError(f"{value} must be one of {valid}") from None


class Language:
    """A target language built from the defaults plus a definition.

    Example:
        >>> lang = Language("demo", {"consts": {"null": "nil"}})
        >>> asyncio.run(lang.text([1, None, "a"]))
        '[1, nil, "a"]'
    """

    def __init__(
        self,
        name: str,
        definition: LanguageDefinition | Mapping[str, Any] | None = None,
    ):
        if definition is None:
            definition = LanguageDefinition()
        elif not isinstance(definition, LanguageDefinition):
            definition = LanguageDefinition.model_validate(definition)

        self.name = name
        self.definition = definition
        self.shrink_big_int = resolve_shrink(definition.shrink_big_int)

        merged = merge_model(DEFAULT_DEFINITION, definition)
        self.reprs = merged.reprs
        self.consts = merged.consts
        self.format = merged.format

    def __repr__(self) -> str:
        return f"Language({self.name!r})"

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(self, value: Any) -> Escaped | Classified:
        """Classify a value once; escape-marked values skip classification."""
        if getattr(type(value), REPR, None) is not None:
            return Escaped(getattr(value, REPR))
        return Classified(self._kind(value), value)

    def type(self, value: Any) -> Kind:
        """Return the semantic kind of ``value``."""
        result = self.classify(value)
        if isinstance(result, Escaped):
            return Kind.REPR
        return result.kind

    def _kind(self, value: Any) -> Kind:
        # order matters: bool before int, Enum before str/int mixins
        if value is None:
            return Kind.NULL
        if value is UNDEFINED:
            return Kind.UNDEFINED
        if isinstance(value, Enum):
            return Kind.SYMBOL
        if isinstance(value, bool):
            return Kind.BOOLEAN
        if isinstance(value, int):
            return Kind.BIGINT
        if isinstance(value, float):
            if math.isnan(value):
                return Kind.NAN
            if value == math.inf:
                return Kind.POSITIVE_INFINITY
            if value == -math.inf:
                return Kind.NEGATIVE_INFINITY
            return Kind.NUMBER
        if isinstance(value, str):
            return Kind.STRING
        if isinstance(value, date):
            try:
                value.isoformat()
            except ValueError:
                return Kind.INVALID_DATE
            return Kind.DATE
        if isinstance(value, Mapping):
            return Kind.OBJECT
        if isinstance(value, (bytes, bytearray)):
            return Kind.CUSTOM
        if is_iterable(value):
            return Kind.ITERABLE
        if callable(value):
            return Kind.FUNCTION
        return Kind.CUSTOM

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def unsupported(self, condition: Any, what: str) -> None:
        if not condition:
            raise UnsupportedError(what, self.name)

    def _restriction(self, kind: Kind) -> Restriction | None:
        entry = getattr(self.format, kind.value, None)
        if isinstance(entry, Restriction):
            return entry
        return self.format.restrictions.get(kind)

    def allowed_within(self, kind: Kind, parent: Container) -> bool:
        """Check the kind's deny-list, then its allow-list, against ``parent``."""
        details = self._restriction(kind)
        if details is None:
            return True
        if details.invalid is not None and parent in details.invalid:
            return False
        if details.valid is not None and parent not in details.valid:
            return False
        return True

    def assert_allowed(self, kind: Kind, stack: Stack) -> None:
        top = stack.top
        if top is not None and not self.allowed_within(kind, top.type):
            raise DisallowedError(kind.value, top.type.value, self.name)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------

    def maybe_shrink(
        self, value: int, bigint_repr: Callable[..., Any] | None, stack: Stack
    ) -> Any:
        """Use the number representation when the shrink policy allows it."""
        shrink = self.shrink_big_int
        if shrink is Shrink.ALL or (
            shrink is Shrink.SMALL and MIN_SAFE_INTEGER <= value <= MAX_SAFE_INTEGER
        ):
            number = self.reprs.number
            self.unsupported(number, "[number] (from [bigint])")
            try:
                converted = float(value)
            except OverflowError:
                # beyond the float range: written as an infinity
                return self.repr(math.inf if value > 0 else -math.inf, stack)
            return number(converted, self, stack)
        self.unsupported(bigint_repr, "[bigint]")
        return bigint_repr(value, self, stack)

    def repr(self, value: Any, stack: Stack) -> Any:
        """Return the raw representation of ``value``.

        The result is a string, an (async) iterable of strings, an awaitable
        or a callable; :meth:`pull` normalizes it.
        """
        classified = self.classify(value)
        if isinstance(classified, Escaped):
            return classified.payload

        kind = classified.kind
        constant = getattr(self.consts, kind.value, None)
        if constant is not None:
            return constant

        repr_fn = getattr(self.reprs, kind.value, None)
        if kind is Kind.BIGINT:
            return self.maybe_shrink(value, repr_fn, stack)

        self.assert_allowed(kind, stack)
        self.unsupported(repr_fn, f"[{kind.value}]")
        if kind is Kind.ITERABLE:
            length = len(value) if isinstance(value, Sequence) else None
            return repr_fn(value, self, stack, length=length)
        return repr_fn(value, self, stack)

    async def declare(
        self,
        entries: Iterable[tuple[str, Any]],
        stack: Stack | Container | None = None,
    ) -> AsyncIterator[str]:
        """Emit a declaration block for ``(name, value)`` entries in order."""
        fmt = self.format.declare
        if fmt is None:
            return
        self.unsupported(fmt.name, "[name] of declarations")
        if isinstance(stack, Stack):
            scope = stack.frame(Container.DECLARE)
        else:
            stack = Stack(Container(stack or Container.DECLARE))
            scope = nullcontext()

        if fmt.start:
            yield fmt.start
        with scope:
            for index, (key, value) in enumerate(entries):
                if index:
                    yield fmt.sep
                yield f"{fmt.name(key, self)}{fmt.assign}"
                async with aclosing(self.pull(value, stack)) as pieces:
                    async for piece in pieces:
                        yield piece
        if fmt.end:
            yield fmt.end

    async def pull(
        self, value: Any, stack: Stack | Container | None = None
    ) -> AsyncIterator[str]:
        """Convert ``value`` into a stream of text fragments."""
        if not isinstance(stack, Stack):
            stack = Stack(Container(stack or Container.ROOT))
        if inspect.isawaitable(value):
            value = await value

        result = self.repr(value, stack)
        # trampoline producers until a terminal value
        while True:
            if inspect.isawaitable(result):
                result = await result
            elif callable(result) and not is_iterable(result):
                result = result()
            else:
                break

        if not result:
            return
        if isinstance(result, str):
            yield result
        elif is_iterable(result):
            async with aclosing(aiterate(result)) as pieces:
                async for piece in pieces:
                    yield piece
        else:
            # unrepresented return value
            yield ""

    async def text(self, value: Any, stack: Stack | Container | None = None) -> str:
        """Convert ``value`` and join the fragments."""
        parts = []
        async with aclosing(self.pull(value, stack)) as pieces:
            async for piece in pieces:
                parts.append(piece)
        return "".join(parts)
