"""Configuration helpers shared by languages, runners and the registry."""

from __future__ import annotations

import inspect
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


async def resolve_entry(entry: Any) -> Any:
    """Resolve a config entry to a concrete value.

    An entry is a literal, an awaitable, or a zero-argument callable whose
    result may itself be awaitable. Falsy entries resolve to ``None``.
    """
    if not entry:
        return None
    if callable(entry):
        entry = entry()
    if inspect.isawaitable(entry):
        entry = await entry
    return entry


def merge_model(base: M, patch: M | Mapping[str, Any] | None) -> M:
    """Override ``base`` with the fields explicitly set on ``patch``.

    Nested models are merged recursively; any other value, including an
    explicit ``None``, replaces the base value. Neither input is modified.

    Args:
        base: Model supplying values the patch leaves unset.
        patch: Model or mapping validated as ``type(base)``.

    Returns:
        A new model of the same type as ``base``.
    """
    if patch is None:
        return base
    if not isinstance(patch, BaseModel):
        patch = type(base).model_validate(patch)

    data = {name: getattr(base, name) for name in base.model_fields_set}
    for name in patch.model_fields_set:
        value = getattr(patch, name)
        current = data.get(name, getattr(base, name, None))
        if isinstance(current, BaseModel) and isinstance(value, BaseModel):
            value = merge_model(current, value)
        data[name] = value
    return type(base)(**data)
