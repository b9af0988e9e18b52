"""Template tags - turn a template and values into a Builder.

A template is one of:
- a ``str.format`` style string: ``sh("echo {} {name}", 1, name="x")``
- a sequence of literal fragments plus positional values:
  ``sh(["echo ", ""], 1)``
- a PEP 750 template object (anything with ``strings`` and ``interpolations``)

The first fragment may start with an interpreter directive selecting the
script type and seeding builder options::

    #!/usr/bin/env python {"runner": {"use_stdin": false}}
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
import string
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, AsyncIterator

from pydantic import BaseModel

from scriptag.config import merge_model
from scriptag.language import Language, LanguageDefinition, Raw
from scriptag.runner import Runner, RunnerConfig

if TYPE_CHECKING:
    from scriptag.builder import Builder
    from scriptag.registry import Registry, TypeEntry

log = logging.getLogger(__name__)

SHEBANG = re.compile(
    r"^#!(?:(?:(?:/(?:usr/(?:local/)?)?)?bin/(?:env[ \t]+)?)?(\w+))?"
    r"[ \t]*(\{.*\})?[ \t]*\r?\n"
)

INCLUDE_CHUNK_SIZE = 64 * 1024

# Builder options a header directive may set
HEADER_OPTIONS = ("language", "runner", "params", "args")


def raw(payload: Any) -> Raw:
    """Bypass conversion and write ``payload`` to the script as is."""
    return Raw(payload)


def include(path: Any, encoding: str = "utf-8", chunk_size: int = INCLUDE_CHUNK_SIZE) -> Raw:
    """Include a file's text; the file is only opened when the script is read.

    Reads run in a worker thread so large files do not block the event loop.
    """

    async def read() -> AsyncIterator[str]:
        fh = await asyncio.to_thread(open, path, encoding=encoding)
        try:
            while chunk := await asyncio.to_thread(fh.read, chunk_size):
                yield chunk
        finally:
            fh.close()

    return Raw(read)


def parse_options(text: str | None) -> dict[str, Any] | None:
    if not text:
        return None
    try:
        options = json.loads(text)
    except json.JSONDecodeError as e:
        log.warning(f"Ignoring malformed script options {text!r}: {e}")
        return None
    return options if isinstance(options, dict) else None


def parse_header(head: str) -> tuple[str, str | None, dict[str, Any] | None]:
    """Split an interpreter directive off the first template fragment.

    Returns:
        (remaining fragment, type name or None, options or None)
    """
    if not head:
        return "", None, None
    if head.startswith("\r\n"):
        head = head[2:]
    elif head.startswith("\n"):
        head = head[1:]
    match = SHEBANG.match(head)
    if not match:
        return head, None, None
    return head[match.end() :], match.group(1), parse_options(match.group(2))


def split_template(
    template: Any, args: Sequence[Any], kwargs: Mapping[str, Any]
) -> tuple[list[str], list[Any]]:
    """Return the literal fragments and interpolated values of a template."""
    if hasattr(template, "strings") and hasattr(template, "interpolations"):
        return list(template.strings), [i.value for i in template.interpolations]

    if not isinstance(template, str):
        strings = list(template)
        if not strings:
            raise ValueError("Template needs at least one fragment")
        if not all(isinstance(s, str) for s in strings):
            raise TypeError("Template fragments must be strings")
        return strings, list(args)

    formatter = string.Formatter()
    strings, values = [""], []
    auto = 0
    for literal, field, spec, conversion in formatter.parse(template):
        strings[-1] += literal
        if field is None:
            continue
        if spec or conversion:
            raise ValueError(f"Format specs and conversions are not supported: {{{field}}}")
        if field == "":
            field = str(auto)
            auto += 1
        value, _ = formatter.get_field(field, args, kwargs)
        values.append(value)
        strings.append("")
    return strings, values


def merge_option(base: Any, patch: Any, model: type[BaseModel]) -> Any:
    """Override a language or runner option field by field.

    ``base`` may be a Language, a Runner, a definition model or a mapping;
    the result is a definition model (or ``patch`` itself when either side
    cannot be merged).
    """
    if not isinstance(patch, (Mapping, BaseModel)):
        return patch
    if isinstance(base, Language):
        base = base.definition
    elif isinstance(base, Runner):
        base = base.config
    elif isinstance(base, Mapping):
        base = model.model_validate(base)
    if isinstance(base, model):
        return merge_model(base, patch)
    return patch


class Tag:
    """Callable building scripts of one registered type.

    Without an entry the tag is generic: the header directive picks the
    type from its registry, falling back to the registry default.
    """

    raw = staticmethod(raw)
    include = staticmethod(include)

    def __init__(self, registry: Registry, entry: TypeEntry | None = None):
        self.registry = registry
        self.entry = entry

    @property
    def name(self) -> str | None:
        return self.entry.name if self.entry else None

    def __repr__(self) -> str:
        return f"Tag({self.name or '<script>'})"

    def __call__(self, template: Any, /, *args: Any, **kwargs: Any) -> Builder:
        if isinstance(template, str):
            # the directive's options are JSON, not format fields
            template, type_name, header_options = parse_header(template)
            strings, values = split_template(template, args, kwargs)
        else:
            strings, values = split_template(template, args, kwargs)
            strings[0], type_name, header_options = parse_header(strings[0])

        entry = self.entry
        if entry is None:
            entry = self.registry.get(type_name or self.registry.DEFAULT)

        options: dict[str, Any] = {"name": entry.name, **entry.defaults}
        for key, value in (header_options or {}).items():
            if key not in HEADER_OPTIONS:
                log.warning(f"Ignoring unknown script option {key!r} for {entry.name}")
                continue
            if key == "language":
                value = merge_option(options.get(key), value, LanguageDefinition)
            elif key == "runner":
                value = merge_option(options.get(key), value, RunnerConfig)
            options[key] = value
        return entry.factory(strings, values, **options)
