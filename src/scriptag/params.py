"""Parameter table - projects caller values into declarations"""

from __future__ import annotations

from typing import Any, Mapping

from scriptag.language.spec import UNDEFINED


class Params:
    """Ordered mapping of parameter names to declared names.

    Each entry may carry a default used when the caller does not supply
    the parameter. Registration order is the declaration order.
    """

    def __init__(self) -> None:
        self._names: list[tuple[str, str]] = []
        self._defaults: dict[str, Any] = {}

    def add(self, name: str, dest_name: str | None = None, default: Any = UNDEFINED) -> None:
        self._names.append((name, dest_name or name))
        if default is not UNDEFINED:
            self._defaults[name] = default

    def __len__(self) -> int:
        return len(self._names)

    def __contains__(self, name: object) -> bool:
        return any(local == name for local, _ in self._names)

    def entries(self, params: Mapping[str, Any] | None = None) -> list[tuple[str, Any]]:
        """Return ``(dest_name, value)`` pairs for every resolvable parameter.

        Parameters with neither a supplied value nor a default are skipped.
        ``None`` is a value, not an absence.
        """
        params = params or {}
        items: list[tuple[str, Any]] = []
        for name, dest in self._names:
            value = params.get(name, UNDEFINED)
            if value is UNDEFINED:
                value = self._defaults.get(name, UNDEFINED)
            if value is not UNDEFINED:
                items.append((dest, value))
        return items
