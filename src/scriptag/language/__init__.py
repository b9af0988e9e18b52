"""Representation engine - Python values to target-language literals."""

from scriptag.language.language import Language, resolve_shrink
from scriptag.language.reprs import DEFAULT_DEFINITION, format_name, repr_string
from scriptag.language.spec import (
    UNDEFINED,
    Classified,
    Container,
    DeclareFormat,
    Escaped,
    Frame,
    IterableFormat,
    Kind,
    LanguageConsts,
    LanguageDefinition,
    LanguageFormat,
    LanguageReprs,
    ObjectFormat,
    Raw,
    Restriction,
    Shrink,
)
from scriptag.language.stack import Stack

__all__ = [
    "DEFAULT_DEFINITION",
    "UNDEFINED",
    "Classified",
    "Container",
    "DeclareFormat",
    "Escaped",
    "Frame",
    "IterableFormat",
    "Kind",
    "Language",
    "LanguageConsts",
    "LanguageDefinition",
    "LanguageFormat",
    "LanguageReprs",
    "ObjectFormat",
    "Raw",
    "Restriction",
    "Shrink",
    "Stack",
    "format_name",
    "repr_string",
    "resolve_shrink",
]
