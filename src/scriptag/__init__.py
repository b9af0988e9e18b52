"""scriptag - build scripts for other languages from Python values.

Example:
    >>> from scriptag import python
    >>> builder = python("print({})", {"a": [1, 2.5, None]})
    >>> asyncio.run(builder.content())
    'print({"a": [1, 2.5, None]})'
"""

from scriptag._version import __version__
from scriptag.builder import Builder
from scriptag.definitions import bash, create_registry, node, python, registry, script, sh
from scriptag.exceptions import (
    ConfigurationError,
    DisallowedError,
    InvalidNameError,
    RegistryError,
    ScriptagError,
    SpawnError,
    UnsupportedError,
)
from scriptag.language import (
    UNDEFINED,
    Container,
    Kind,
    Language,
    LanguageDefinition,
    Raw,
    Shrink,
    Stack,
)
from scriptag.loader import load_definitions
from scriptag.registry import Registry
from scriptag.runner import ExecResult, Runner, RunnerConfig
from scriptag.tag import Tag, include, raw

__all__ = [
    "__version__",
    # Core
    "Builder",
    "Language",
    "LanguageDefinition",
    "Runner",
    "RunnerConfig",
    "ExecResult",
    "Stack",
    # Values
    "UNDEFINED",
    "Raw",
    "raw",
    "include",
    "Kind",
    "Container",
    "Shrink",
    # Registry and tags
    "Registry",
    "Tag",
    "create_registry",
    "registry",
    "script",
    "sh",
    "bash",
    "python",
    "node",
    "load_definitions",
    # Exceptions
    "ScriptagError",
    "ConfigurationError",
    "InvalidNameError",
    "UnsupportedError",
    "DisallowedError",
    "RegistryError",
    "SpawnError",
]
