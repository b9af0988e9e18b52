"""Tests for the representation engine."""

import asyncio
import math
from datetime import date
from enum import Enum

import pytest

from scriptag.exceptions import (
    ConfigurationError,
    DisallowedError,
    InvalidNameError,
    UnsupportedError,
)
from scriptag.language import UNDEFINED, Container, Kind, Language, Raw, Shrink, Stack


class Color(Enum):
    RED = "red"


def text(lang, value, stack=None):
    return asyncio.run(lang.text(value, stack))


def declare(lang, entries, stack=None):
    async def collect():
        return "".join([piece async for piece in lang.declare(entries, stack)])

    return asyncio.run(collect())


def recording():
    """Language whose number and bigint reprs show which path was taken."""
    return {
        "reprs": {
            "number": lambda value, lang, stack: f"n:{value!r}",
            "bigint": lambda value, lang, stack: f"b:{value}",
        }
    }


# =============================================================================
# Classification
# =============================================================================


@pytest.mark.parametrize(
    "value, kind",
    [
        ("s", Kind.STRING),
        (True, Kind.BOOLEAN),
        (1, Kind.BIGINT),
        (1.5, Kind.NUMBER),
        (math.nan, Kind.NAN),
        (math.inf, Kind.POSITIVE_INFINITY),
        (-math.inf, Kind.NEGATIVE_INFINITY),
        (None, Kind.NULL),
        (UNDEFINED, Kind.UNDEFINED),
        ([1], Kind.ITERABLE),
        ((x for x in ()), Kind.ITERABLE),
        ({"a": 1}, Kind.OBJECT),
        (date(2024, 1, 2), Kind.DATE),
        (b"x", Kind.CUSTOM),
        (object(), Kind.CUSTOM),
        (print, Kind.FUNCTION),
        (Color.RED, Kind.SYMBOL),
        (Raw("x"), Kind.REPR),
    ],
)
def test_type(value, kind):
    """Every value gets exactly one kind."""
    assert Language("test").type(value) is kind


def test_undefined_is_falsy_singleton():
    assert not UNDEFINED
    assert type(UNDEFINED)() is UNDEFINED


# =============================================================================
# Scalars
# =============================================================================


def test_default_scalars():
    """Default representations are JSON-like."""
    lang = Language("test")
    assert text(lang, 'say "hi"\\') == '"say \\"hi\\"\\\\"'
    assert text(lang, True) == "true"
    assert text(lang, False) == "false"
    assert text(lang, 2.5) == "2.5"
    assert text(lang, 3.0) == "3"
    assert text(lang, 10) == "10"
    assert text(lang, date(2024, 1, 2)) == '"2024-01-02"'


def test_constants_win_over_functions():
    lang = Language("test", {"consts": {"null": "nil", "true": "yes"}})
    assert text(lang, None) == "nil"
    assert text(lang, True) == "yes"
    assert text(lang, False) == "false"


def test_unsupported_kinds():
    """Kinds without constant or function raise UnsupportedError."""
    lang = Language("test")
    for value in (None, UNDEFINED, math.nan, print, b"x", Color.RED):
        with pytest.raises(UnsupportedError, match="not supported by test"):
            text(lang, value)


def test_disabled_repr_is_unsupported():
    """An explicit None removes a default function."""
    lang = Language("test", {"reprs": {"string": None}})
    with pytest.raises(UnsupportedError, match=r"\[string\]"):
        text(lang, "a")
    with pytest.raises(UnsupportedError, match=r"\[date\]"):
        text(lang, date(2024, 1, 2))


# =============================================================================
# Integers
# =============================================================================


def test_shrink_small():
    """Only ints a double holds exactly use the number representation."""
    lang = Language("test", {**recording(), "shrink_big_int": "small"})
    assert text(lang, 5) == "n:5.0"
    assert text(lang, 2**53 - 1) == f"n:{float(2**53 - 1)!r}"
    assert text(lang, -(2**53 - 1)) == f"n:{float(-(2**53 - 1))!r}"
    assert text(lang, 2**53) == f"b:{2**53}"
    assert text(lang, -(2**53)) == f"b:{-(2**53)}"


def test_shrink_all_and_none():
    assert text(Language("test", {**recording(), "shrink_big_int": "all"}), 2**60) == (
        f"n:{float(2**60)!r}"
    )
    assert text(Language("test", {**recording(), "shrink_big_int": "none"}), 5) == "b:5"


def test_shrink_bool_tokens():
    assert Language("test", {"shrink_big_int": True}).shrink_big_int is Shrink.ALL
    assert Language("test", {"shrink_big_int": False}).shrink_big_int is Shrink.NONE
    assert Language("test", {"shrinkBigInt": "none"}).shrink_big_int is Shrink.NONE
    assert Language("test").shrink_big_int is Shrink.SMALL


def test_shrink_invalid_token():
    with pytest.raises(ConfigurationError, match="must be one of"):
        Language("test", {"shrink_big_int": "some"})


def test_shrink_all_beyond_float_range():
    """Ints too large for a float are written as infinities."""
    lang = Language(
        "test",
        {
            "shrink_big_int": "all",
            "consts": {"positive_infinity": "Inf", "negative_infinity": "-Inf"},
        },
    )
    assert text(lang, 10**400) == "Inf"
    assert text(lang, -(10**400)) == "-Inf"
    with pytest.raises(UnsupportedError, match=r"\[positive_infinity\]"):
        text(Language("test", {"shrink_big_int": "all"}), 10**400)


def test_shrink_without_number_repr():
    lang = Language("test", {"reprs": {"number": None}})
    with pytest.raises(UnsupportedError, match=r"\[number\] \(from \[bigint\]\)"):
        text(lang, 1)
    assert text(lang, 2**60) == str(2**60)


# =============================================================================
# Containers
# =============================================================================


def test_iterables():
    lang = Language("test")
    assert text(lang, [1, "a", [True]]) == '[1, "a", [true]]'
    assert text(lang, (x * 2 for x in (1, 2))) == "[2, 4]"
    assert text(lang, []) == "[]"


def test_async_iterable():
    async def values():
        yield 1
        yield "b"

    assert text(Language("test"), values()) == '[1, "b"]'


def test_objects():
    lang = Language("test")
    assert text(lang, {"a": 1, "b": ["x"]}) == '{"a": 1, "b": ["x"]}'
    assert text(lang, {1: True}) == '{"1": true}'
    assert text(lang, {}) == "{}"


def test_custom_formats_merge_with_defaults():
    lang = Language("test", {"format": {"iterable": {"sep": "; "}}})
    assert text(lang, [1, 2]) == "[1; 2]"


def test_denied_at_first_position():
    """A single-entry deny-list still denies."""
    lang = Language("test", {"format": {"iterable": {"invalid": ["iterable"]}}})
    assert text(lang, [1]) == "[1]"
    with pytest.raises(DisallowedError, match=r"\[iterable\] not allowed in \[iterable\]"):
        text(lang, [[1]])


def test_deny_list_wins_over_allow_list():
    lang = Language(
        "test", {"format": {"iterable": {"valid": ["root", "iterable"], "invalid": ["iterable"]}}}
    )
    with pytest.raises(DisallowedError):
        text(lang, [[1]])


def test_allow_list():
    lang = Language("test", {"format": {"iterable": {"valid": ["root"]}}})
    assert text(lang, [1]) == "[1]"
    with pytest.raises(DisallowedError, match=r"\[declare\]"):
        declare(lang, [("x", [1])])


def test_restrictions_by_kind():
    lang = Language("test", {"format": {"restrictions": {"string": {"invalid": ["declare"]}}}})
    assert text(lang, "a") == '"a"'
    with pytest.raises(DisallowedError, match=r"\[string\] not allowed in \[declare\]"):
        declare(lang, [("x", "a")])


def test_stack_unwinds_after_error():
    lang = Language("test", {"format": {"iterable": {"invalid": ["iterable"]}}})
    stack = Stack(Container.ROOT)
    with pytest.raises(DisallowedError):
        text(lang, [1, [2]], stack)
    assert len(stack) == 1
    assert stack.top.type is Container.ROOT


def test_disabled_object_format_renders_nothing():
    lang = Language("test", {"format": {"object": None}})
    assert text(lang, {"a": 1}) == ""


# =============================================================================
# Escapes and producers
# =============================================================================


def test_raw_bypasses_conversion():
    lang = Language("test", {"format": {"iterable": {"invalid": ["iterable"]}}})
    assert text(lang, Raw("x + 1")) == "x + 1"
    assert text(lang, [Raw("[1]")]) == "[[1]]"


def test_custom_escape_marker():
    class Expr:
        @property
        def __script_repr__(self):
            return ["a", "+", "b"]

    assert text(Language("test"), Expr()) == "a+b"


def test_raw_producers_are_trampolined():
    async def later():
        return "z"

    lang = Language("test")
    assert text(lang, Raw(lambda: ["a", "b"])) == "ab"
    assert text(lang, Raw(later)) == "z"
    assert text(lang, Raw(lambda: lambda: "deep")) == "deep"
    assert text(lang, Raw("")) == ""


def test_awaitable_values():
    async def value():
        return 5

    assert text(Language("test"), value()) == "5"


def test_non_text_repr_result_is_empty():
    lang = Language("test", {"reprs": {"string": lambda value, lang, stack: 42}})
    assert text(lang, "a") == ""


# =============================================================================
# Declarations
# =============================================================================


def test_declare():
    lang = Language("test")
    assert declare(lang, [("x", 1), ("y", "z")]) == '[x = 1, y = "z"]'
    assert declare(lang, []) == "[]"


def test_declare_invalid_name():
    lang = Language("test")
    for name in ("1x", "a-b", "", "a b"):
        with pytest.raises(InvalidNameError, match="is an invalid name for test"):
            declare(lang, [(name, 1)])


def test_declare_without_name_function():
    lang = Language("test", {"format": {"declare": {"name": None}}})
    with pytest.raises(UnsupportedError, match=r"\[name\] of declarations"):
        declare(lang, [("x", 1)])


def test_declare_disabled():
    assert declare(Language("test", {"format": {"declare": None}}), [("x", 1)]) == ""


def test_declare_within_existing_stack():
    lang = Language("test")
    stack = Stack(Container.ROOT)
    assert declare(lang, [("x", [1])], stack) == "[x = [1]]"
    assert len(stack) == 1
