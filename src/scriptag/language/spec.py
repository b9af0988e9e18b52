"""Language IR spec - value kinds, containers and definition models."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Attribute looked up on a value's type to detect the escape marker
REPR = "__script_repr__"


class Kind(str, Enum):
    """Semantic kind of a native value."""

    STRING = "string"
    BOOLEAN = "boolean"
    BIGINT = "bigint"
    NUMBER = "number"
    NAN = "nan"
    NEGATIVE_INFINITY = "negative_infinity"
    POSITIVE_INFINITY = "positive_infinity"
    NULL = "null"
    REPR = "repr"
    UNDEFINED = "undefined"
    ITERABLE = "iterable"
    INVALID_DATE = "invalid_date"
    DATE = "date"
    OBJECT = "object"
    CUSTOM = "custom"
    FUNCTION = "function"
    SYMBOL = "symbol"


class Container(str, Enum):
    """Structural context a value is converted within."""

    ITERABLE = "iterable"
    OBJECT = "object"
    ROOT = "root"
    HEAD = "head"
    DECLARE = "declare"
    BODY = "body"
    FOOT = "foot"


class Shrink(str, Enum):
    """Whether ints may be written with the plain number representation."""

    NONE = "none"
    ALL = "all"
    SMALL = "small"


class _Undefined:
    """Marker for an absent value (distinct from ``None``)."""

    _instance: _Undefined | None = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class Frame:
    """One level of the container stack."""

    type: Container
    indent: str = ""


@dataclass(frozen=True)
class Raw:
    """A value written to the output verbatim.

    The payload may be a string, an iterable of strings, an awaitable, or a
    zero-argument callable returning any of those.
    """

    payload: Any

    @property
    def __script_repr__(self) -> Any:
        return self.payload


@dataclass(frozen=True)
class Escaped:
    """Classification result for values carrying the escape marker."""

    payload: Any


@dataclass(frozen=True)
class Classified:
    """Classification result for every other value."""

    kind: Kind
    value: Any


# =============================================================================
# Definition models
# =============================================================================


class Restriction(BaseModel):
    """Containers a kind may (``valid``) or may not (``invalid``) appear in."""

    model_config = ConfigDict(frozen=True)

    valid: list[Container] | None = None
    invalid: list[Container] | None = None


class IterableFormat(Restriction):
    """List/array literal layout."""

    start: str = "["
    end: str = "]"
    sep: str = ", "


class ObjectFormat(Restriction):
    """Record/hash literal layout."""

    start: str = "{"
    end: str = "}"
    sep: str = ", "
    assign: str = ": "
    key: Callable[..., Any] | None = None


class DeclareFormat(BaseModel):
    """Variable declaration block layout."""

    model_config = ConfigDict(frozen=True)

    start: str = "["
    end: str = "]"
    sep: str = ", "
    assign: str = " = "
    name: Callable[..., Any] | None = None


class LanguageFormat(BaseModel):
    """Formatting for structural language features."""

    model_config = ConfigDict(frozen=True)

    indent: str = "  "
    eol: str = "\n"
    declare: DeclareFormat | None = DeclareFormat()
    iterable: IterableFormat | None = IterableFormat()
    object: ObjectFormat | None = ObjectFormat()
    # placement rules for kinds without their own format entry
    restrictions: dict[Kind, Restriction] = Field(default_factory=dict)


class LanguageConsts(BaseModel):
    """Literal constants, tried before any conversion function.

    ``None`` means the kind has no constant form.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    true: str | None = None
    false: str | None = None
    null: str | None = None
    invalid_date: str | None = None
    nan: str | None = None
    positive_infinity: str | None = None
    negative_infinity: str | None = None
    undefined: str | None = None

    @model_validator(mode="before")
    @classmethod
    def normalize_yaml_keys(cls, data: Any) -> Any:
        """YAML reads bare ``true:``/``false:``/``null:`` keys as non-strings."""
        if isinstance(data, dict):
            names = {True: "true", False: "false", None: "null"}
            return {
                names[key] if key is None or isinstance(key, bool) else key: value
                for key, value in data.items()
            }
        return data


class LanguageReprs(BaseModel):
    """Conversion functions ``(value, lang, stack) -> ReprReturn`` per kind."""

    model_config = ConfigDict(frozen=True, extra="allow")

    string: Callable[..., Any] | None = None
    boolean: Callable[..., Any] | None = None
    number: Callable[..., Any] | None = None
    bigint: Callable[..., Any] | None = None
    date: Callable[..., Any] | None = None
    iterable: Callable[..., Any] | None = None
    object: Callable[..., Any] | None = None


class LanguageDefinition(BaseModel):
    """How Python values map to a target language.

    Only the fields a definition sets override the built-in defaults; nested
    records are overridden field by field.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    shrink_big_int: Shrink | bool | str | None = Field(default=None, alias="shrinkBigInt")
    consts: LanguageConsts = LanguageConsts()
    reprs: LanguageReprs = LanguageReprs()
    format: LanguageFormat = LanguageFormat()
