"""Type registry - maps script type names to builder factories."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from scriptag.builder import Builder
from scriptag.exceptions import RegistryError
from scriptag.tag import Tag

log = logging.getLogger(__name__)

# (strings, values, **options) -> Builder
BuilderFactory = Callable[..., Builder]

REQUIRED_OPTIONS = ("name", "language", "runner")


@dataclass
class TypeEntry:
    """A registered script type."""

    name: str
    factory: BuilderFactory
    defaults: dict[str, Any] = field(default_factory=dict)


def _no_default(strings: list[str], values: list[Any], **options: Any) -> Builder:
    raise RegistryError("No _default_ tag factory registered")


def resolve_factory(factory: BuilderFactory | type[Builder]) -> BuilderFactory:
    """Wrap Builder classes so missing options fail with RegistryError."""
    if not (isinstance(factory, type) and issubclass(factory, Builder)):
        return factory
    builder_class = factory

    def build(strings: list[str], values: list[Any], **options: Any) -> Builder:
        missing = [key for key in REQUIRED_OPTIONS if options.get(key) is None]
        if missing:
            raise RegistryError(
                f"Options not supplied for builder {builder_class.__name__}: {', '.join(missing)}"
            )
        return builder_class(strings, values, **options)

    return build


class Registry:
    """Named script types and the tags that build them.

    Example:
        >>> registry = Registry()
        >>> sh = registry.define("sh", Builder, {"language": {}, "runner": {}})
        >>> builder = sh("echo {}", "hi")
    """

    DEFAULT = "_default_"

    def __init__(self) -> None:
        self._types: dict[str, TypeEntry] = {
            self.DEFAULT: TypeEntry(self.DEFAULT, _no_default),
        }
        self.script = Tag(self)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def define(
        self,
        names: str | list[str],
        factory: BuilderFactory | type[Builder],
        defaults: Mapping[str, Any] | None = None,
    ) -> Tag:
        """Register a type under one or more names and return its tag.

        Args:
            names: Name or names to register (e.g. ``["python", "py"]``).
            factory: Builder class or ``(strings, values, **options)`` callable.
            defaults: Builder options; ``name`` defaults to the first name.

        Returns:
            Tag building scripts of this type.
        """
        if isinstance(names, str):
            names = [names]
        defaults = dict(defaults or {})
        name = defaults.get("name") or (names[0] if names else "<unknown>")
        defaults["name"] = name

        entry = TypeEntry(name=name, factory=resolve_factory(factory), defaults=defaults)
        for alias in names:
            if alias in self._types and alias != self.DEFAULT:
                log.debug(f"Redefining script type {alias}")
            self._types[alias] = entry
        return Tag(self, entry)

    def get(self, name: str) -> TypeEntry:
        try:
            return self._types[name]
        except KeyError:
            raise RegistryError(f"Unknown script type: {name}") from None

    def tag(self, name: str) -> Tag:
        return Tag(self, self.get(name))

    def build(self, name: str, strings: list[str], values: list[Any], **options: Any) -> Builder:
        """Build a script of a registered type without a header directive."""
        entry = self.get(name)
        return entry.factory(strings, values, **{**entry.defaults, **options})
