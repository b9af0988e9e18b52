"""Built-in script types.

- sh: POSIX shell, script on stdin (``sh -s --``) or as a file
- bash: bash, with arrays for iterables
- python: python3, Python literals, arbitrary precision ints
- node: node, JavaScript literals, ``123n`` for unsafe ints

Sets of builtins are registered on a fresh :class:`Registry` by
:func:`create_registry`; the module-level ``registry`` is the one the
package-level tags use.
"""

from __future__ import annotations

import json
import shlex
from datetime import date
from typing import Any

from scriptag.builder import Builder
from scriptag.language import (
    Container,
    DeclareFormat,
    IterableFormat,
    LanguageConsts,
    LanguageDefinition,
    LanguageFormat,
    LanguageReprs,
    ObjectFormat,
    Shrink,
)
from scriptag.registry import Registry
from scriptag.runner import CommandConfig, RunnerConfig


def _quote_shell(value: str, lang: Any = None, stack: Any = None) -> str:
    return shlex.quote(value)


def _quote_json(value: str, lang: Any = None, stack: Any = None) -> str:
    return json.dumps(value, ensure_ascii=False)


def _python_number(value: float, lang: Any = None, stack: Any = None) -> str:
    return repr(value)


def _node_bigint(value: int, lang: Any = None, stack: Any = None) -> str:
    return f"{value}n"


def _node_date(value: date, lang: Any = None, stack: Any = None) -> str:
    return f"new Date({json.dumps(value.isoformat())})"


SH = LanguageDefinition(
    reprs=LanguageReprs(string=_quote_shell, object=None),
    consts=LanguageConsts(null="''", undefined="''"),
    format=LanguageFormat(
        declare=DeclareFormat(start="", end="\n", sep="\n", assign="="),
        # words separated by spaces; no nesting, no arrays in assignments
        iterable=IterableFormat(
            start="", end="", sep=" ", invalid=[Container.ITERABLE, Container.DECLARE]
        ),
    ),
)

BASH = LanguageDefinition(
    reprs=LanguageReprs(string=_quote_shell, object=None),
    consts=LanguageConsts(null="''", undefined="''"),
    format=LanguageFormat(
        declare=DeclareFormat(start="", end="\n", sep="\n", assign="="),
        iterable=IterableFormat(start="(", end=")", sep=" ", invalid=[Container.ITERABLE]),
    ),
)

PYTHON = LanguageDefinition(
    shrink_big_int=Shrink.NONE,
    reprs=LanguageReprs(string=_quote_json, number=_python_number),
    consts=LanguageConsts(
        true="True",
        false="False",
        null="None",
        undefined="None",
        nan="float('nan')",
        positive_infinity="float('inf')",
        negative_infinity="float('-inf')",
    ),
    format=LanguageFormat(
        indent="    ",
        declare=DeclareFormat(start="", end="\n", sep="\n", assign=" = "),
        object=ObjectFormat(key=_quote_json),
    ),
)

NODE = LanguageDefinition(
    shrink_big_int=Shrink.SMALL,
    reprs=LanguageReprs(string=_quote_json, bigint=_node_bigint, date=_node_date),
    consts=LanguageConsts(
        null="null",
        undefined="undefined",
        nan="NaN",
        positive_infinity="Infinity",
        negative_infinity="-Infinity",
    ),
    format=LanguageFormat(
        declare=DeclareFormat(start="var ", end=";\n", sep=",\n    ", assign=" = "),
        object=ObjectFormat(key=_quote_json),
    ),
)

BUILTINS: dict[str, tuple[list[str], dict[str, Any]]] = {
    "sh": (
        ["sh", Registry.DEFAULT],
        {
            "language": SH,
            "runner": RunnerConfig(command=CommandConfig(bin="sh", stdin=["-s", "--"])),
        },
    ),
    "bash": (
        ["bash"],
        {
            "language": BASH,
            "runner": RunnerConfig(
                command=CommandConfig(bin="bash", stdin=["-s", "--"]), extension=".sh"
            ),
            "args": "args",
        },
    ),
    "python": (
        ["python", "python3", "py"],
        {
            "language": PYTHON,
            "runner": RunnerConfig(
                command=CommandConfig(bin="python3", stdin=["-"]), extension=".py"
            ),
            "args": "argv",
        },
    ),
    "node": (
        ["node", "js"],
        {
            "language": NODE,
            "runner": RunnerConfig(command=CommandConfig(bin="node", stdin=["-"]), extension=".js"),
            "args": "argv",
        },
    ),
}


def create_registry() -> Registry:
    """Return a registry holding the built-in types; ``sh`` is the default."""
    registry = Registry()
    for names, defaults in BUILTINS.values():
        registry.define(names, Builder, defaults)
    return registry


registry = create_registry()

script = registry.script
sh = registry.tag("sh")
bash = registry.tag("bash")
python = registry.tag("python")
node = registry.tag("node")
