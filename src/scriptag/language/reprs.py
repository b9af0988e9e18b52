"""Default representations of Python values.

Every function takes ``(value, lang, stack)`` and returns a string, an
(async) iterable of strings, an awaitable or a zero-argument callable.
"""

from __future__ import annotations

import re
from contextlib import aclosing
from datetime import date
from typing import TYPE_CHECKING, Any, AsyncIterator, Mapping

from scriptag.exceptions import InvalidNameError, UnsupportedError
from scriptag.iterables import aiterate
from scriptag.language.spec import (
    Container,
    DeclareFormat,
    IterableFormat,
    LanguageConsts,
    LanguageDefinition,
    LanguageFormat,
    LanguageReprs,
    ObjectFormat,
    Shrink,
)

if TYPE_CHECKING:
    from scriptag.language.language import Language
    from scriptag.language.stack import Stack


VALID_NAME = re.compile(r"[A-Za-z_]\w*")
_ESCAPE = re.compile(r'[\\"]')


def repr_string(value: str, lang: Language | None = None, stack: Stack | None = None) -> str:
    """Double quoted with backslash escaped ``\\`` and ``"``."""
    return '"' + _ESCAPE.sub(r"\\\g<0>", value) + '"'


def repr_boolean(value: bool, lang: Language, stack: Stack | None = None) -> str | None:
    return lang.consts.true if value else lang.consts.false


def repr_number(value: float | int, lang: Language | None = None, stack: Stack | None = None) -> str:
    # integral floats print like ints: 3.0 -> 3
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return repr(value)


def repr_bigint(value: int, lang: Language | None = None, stack: Stack | None = None) -> str:
    return str(value)


def repr_date(value: date, lang: Language, stack: Stack) -> Any:
    string = lang.reprs.string
    if string is None:
        raise UnsupportedError("[string] (from [date])", lang.name)
    return string(value.isoformat(), lang, stack)


async def repr_iterable(
    value: Any, lang: Language, stack: Stack, length: int | None = None
) -> AsyncIterator[str]:
    """Start token, elements joined by the separator, end token."""
    fmt = lang.format.iterable
    if fmt is None:
        return
    if fmt.start:
        yield fmt.start
    with stack.frame(Container.ITERABLE):
        first = True
        async with aclosing(aiterate(value)) as items:
            async for item in items:
                if not first:
                    yield fmt.sep
                first = False
                async with aclosing(lang.pull(item, stack)) as pieces:
                    async for piece in pieces:
                        yield piece
    if fmt.end:
        yield fmt.end


async def repr_object(value: Mapping[Any, Any], lang: Language, stack: Stack) -> AsyncIterator[str]:
    """Start token, ``key assign value`` entries joined by the separator, end token."""
    fmt = lang.format.object
    if fmt is None:
        return
    if fmt.key is None:
        raise UnsupportedError("[key] of objects", lang.name)
    if fmt.start:
        yield fmt.start
    with stack.frame(Container.OBJECT):
        for index, (key, item) in enumerate(value.items()):
            if index:
                yield fmt.sep
            yield f"{fmt.key(key if isinstance(key, str) else str(key), lang)}{fmt.assign}"
            async with aclosing(lang.pull(item, stack)) as pieces:
                async for piece in pieces:
                    yield piece
    if fmt.end:
        yield fmt.end


def format_name(value: str, lang: Language) -> str:
    """Validate a declared variable name."""
    if not VALID_NAME.fullmatch(value):
        raise InvalidNameError(value, lang.name)
    return value


DEFAULT_DEFINITION = LanguageDefinition(
    shrink_big_int=Shrink.SMALL,
    reprs=LanguageReprs(
        string=repr_string,
        boolean=repr_boolean,
        number=repr_number,
        bigint=repr_bigint,
        date=repr_date,
        iterable=repr_iterable,
        object=repr_object,
    ),
    consts=LanguageConsts(
        true="true",
        false="false",
        null=None,
        invalid_date=None,
        nan=None,
        positive_infinity=None,
        negative_infinity=None,
        undefined=None,
    ),
    format=LanguageFormat(
        indent="  ",
        eol="\n",
        declare=DeclareFormat(name=format_name, assign=" = ", start="[", end="]", sep=", "),
        iterable=IterableFormat(sep=", ", start="[", end="]"),
        object=ObjectFormat(key=repr_string, sep=", ", start="{", end="}", assign=": "),
    ),
)
