"""Scriptag Exceptions

Custom exceptions for value representation, builders and runners.
"""

from __future__ import annotations

from typing import Any


class ScriptagError(Exception):
    """Base exception for all scriptag errors."""

    pass


class ConfigurationError(ScriptagError):
    """Raised when a language or runner definition is malformed."""

    pass


class InvalidNameError(ScriptagError):
    """Raised when a declared name is not a valid identifier."""

    def __init__(self, name: str, language: str, what: str = "name"):
        self.name = name
        self.language = language
        self.what = what
        super().__init__(f"{name} is an invalid {what} for {language}")


class UnsupportedError(ScriptagError):
    """Raised when a language has no representation for a value."""

    def __init__(self, what: str, language: str):
        self.what = what
        self.language = language
        super().__init__(f"{what} not supported by {language}")


class DisallowedError(ScriptagError):
    """Raised when a value kind may not appear inside its container."""

    def __init__(self, kind: str, container: str, language: str):
        self.kind = kind
        self.container = container
        self.language = language
        super().__init__(f"[{kind}] not allowed in [{container}] for {language}")


class RegistryError(ScriptagError):
    """Raised when a type is not registered or cannot build a script."""

    pass


class SpawnError(ScriptagError):
    """Raised when a runner could not start its process."""

    def __init__(self, argv: list[Any], cause: BaseException):
        self.argv = argv
        self.cause = cause
        super().__init__(f"Failed to start {argv[0] if argv else '<empty>'}: {cause}")
