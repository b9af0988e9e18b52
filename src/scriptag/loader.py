"""Load script type definitions from YAML.

Example ``scriptag.yaml``::

    types:
      ruby:
        aliases: [rb]
        language:
          consts: {"true": "true", "false": "false", "null": "nil"}
          format:
            declare: {start: "", end: "\\n", sep: "\\n", assign: " = "}
        runner:
          command: {bin: ruby, stdin: ["-"]}
          extension: .rb
        args: argv
      zsh:
        extends: sh
        runner:
          command: {bin: zsh}
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from scriptag.builder import Builder
from scriptag.exceptions import ConfigurationError
from scriptag.language import LanguageDefinition
from scriptag.registry import Registry
from scriptag.runner import RunnerConfig
from scriptag.tag import merge_option

log = logging.getLogger(__name__)


class TypeConfig(BaseModel):
    """One script type in a definitions file."""

    aliases: list[str] = Field(default_factory=list, description="Extra names")
    extends: str | None = Field(default=None, description="Registered type to start from")
    language: LanguageDefinition = Field(default_factory=LanguageDefinition)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)
    params: list[list[Any]] = Field(
        default_factory=list, description="[name, dest_name?, default?] entries"
    )
    args: str | None = Field(default=None, description="Parameter receiving run() args")


class DefinitionsFile(BaseModel):
    """Top-level definitions file."""

    types: dict[str, TypeConfig] = Field(default_factory=dict)


def load_definitions_string(text: str) -> DefinitionsFile:
    try:
        data = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid definitions YAML: {e}") from e
    try:
        return DefinitionsFile.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid definitions: {e}") from e


def register_definitions(definitions: DefinitionsFile, registry: Registry) -> Registry:
    """Define every type of ``definitions`` on ``registry`` in file order."""
    for name, config in definitions.types.items():
        defaults: dict[str, Any] = {}
        if config.extends:
            defaults = dict(registry.get(config.extends).defaults)
            defaults.pop("name", None)

        for key, model in (("language", LanguageDefinition), ("runner", RunnerConfig)):
            if key in config.model_fields_set:
                value = getattr(config, key)
                defaults[key] = merge_option(defaults.get(key), value, model) if key in defaults else value
            else:
                defaults.setdefault(key, model())
        for key in ("params", "args"):
            if key in config.model_fields_set:
                defaults[key] = getattr(config, key)

        registry.define([name, *config.aliases], Builder, defaults)
        log.debug(f"Registered script type {name} (extends {config.extends or 'nothing'})")
    return registry


def load_definitions(path: str | Path, registry: Registry) -> Registry:
    """Register the types defined in a YAML file.

    Args:
        path: Path to the definitions file.
        registry: Registry to define the types on.

    Returns:
        The same registry.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Definitions file not found: {path}")
    return register_definitions(load_definitions_string(path.read_text()), registry)
