"""Runner - feeds generated scripts to an external process.

Two delivery strategies are supported:
- stdin: the script is piped into the process's standard input
- file: the script is written to a temporary file whose path is passed
  as an argument; the file is removed once the process exits
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from collections.abc import Mapping
from contextlib import aclosing, suppress
from dataclasses import dataclass
from typing import Any, AsyncIterable, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field

from scriptag.config import resolve_entry
from scriptag.exceptions import SpawnError
from scriptag.iterables import aiterate

log = logging.getLogger(__name__)

IOMode = Literal["pipe", "ignore", "inherit"]

_STDIO = {
    "pipe": asyncio.subprocess.PIPE,
    "ignore": asyncio.subprocess.DEVNULL,
    "inherit": None,
}


class CommandConfig(BaseModel):
    """How to assemble a command line.

    Each entry is a literal, an awaitable, or a zero-argument callable
    returning either.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    bin: Any = "sh"
    common: Any = None  # args for both strategies
    stdin: Any = None  # args when the script arrives on stdin
    file: Any = None  # args placed before the script path


class RunnerConfig(BaseModel):
    """Runner configuration."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    command: CommandConfig = CommandConfig()
    extension: str | None = None
    encoding: str = "utf-8"
    use_stdin: bool = Field(default=True, alias="useStdIn")


@dataclass
class ExecResult:
    """Handles to a spawned process.

    ``exit`` resolves once with the exit code, or fails with
    :class:`SpawnError` if the process never started. ``stdout``/``stderr``
    are only set for ``"pipe"`` output modes.
    """

    exit: asyncio.Future[int | None]
    stdout: asyncio.StreamReader | None = None
    stderr: asyncio.StreamReader | None = None


def _extend(args: list[Any], extra: Any) -> list[Any]:
    if not extra:
        return args
    if isinstance(extra, (str, bytes)):
        return [*args, extra]
    return [*args, *extra]


def _failed(error: BaseException) -> asyncio.Future[int | None]:
    future: asyncio.Future[int | None] = asyncio.get_running_loop().create_future()
    future.set_exception(error)
    return future


class Runner:
    """Executes scripts for one script type."""

    def __init__(self, name: str, config: RunnerConfig | Mapping[str, Any] | None = None):
        if config is None:
            config = RunnerConfig()
        elif not isinstance(config, RunnerConfig):
            config = RunnerConfig.model_validate(config)

        self.name = name
        self.config = config
        self.use_stdin = config.use_stdin
        self.encoding = config.encoding
        self.extension = config.extension
        self.command = config.command

    def __repr__(self) -> str:
        return f"Runner({self.name!r}, bin={self.command.bin!r})"

    async def arguments(
        self,
        exec_stdin: bool = False,
        exec_file: Any = None,
        args: Any = None,
        **overrides: Any,
    ) -> list[str]:
        """Build ``[bin, *common, *(stdin | file + [path]), *args]``.

        Args:
            exec_stdin: Append the stdin-mode arguments.
            exec_file: Script path; appends the file-mode arguments and the path.
            args: Trailing caller arguments.
            **overrides: Per-call ``bin``, ``common``, ``stdin`` or ``file``.
        """
        command = self.command.model_copy(
            update={k: v for k, v in overrides.items() if v is not None}
        )
        argv = [await resolve_entry(command.bin)]
        argv = _extend(argv, await resolve_entry(command.common))
        if exec_stdin:
            argv = _extend(argv, await resolve_entry(command.stdin))
        elif exec_file:
            argv = _extend(argv, await resolve_entry(command.file))
            argv = _extend(argv, [os.fspath(await resolve_entry(exec_file))])
        argv = _extend(argv, await resolve_entry(args))
        log.debug(f"{self.name}: resolved command {argv}")
        return [os.fspath(a) if isinstance(a, os.PathLike) else str(a) for a in argv]

    def _encode(self, chunk: str | bytes) -> bytes:
        return chunk.encode(self.encoding) if isinstance(chunk, str) else chunk

    async def _spawn(self, argv: list[str], stdin: Any, stdout: IOMode, stderr: IOMode, **spawn: Any):
        try:
            return await asyncio.create_subprocess_exec(
                *argv, stdin=stdin, stdout=_STDIO[stdout], stderr=_STDIO[stderr], **spawn
            )
        except OSError as e:
            log.debug(f"{self.name}: failed to start {argv[0]}: {e}")
            raise SpawnError(argv, e) from e

    async def _exec_using_stdin(
        self,
        source: Iterable[Any] | AsyncIterable[Any],
        stdout: IOMode,
        stderr: IOMode,
        command: dict[str, Any],
        spawn: dict[str, Any],
    ) -> ExecResult:
        argv = await self.arguments(exec_stdin=True, **command)
        try:
            process = await self._spawn(argv, asyncio.subprocess.PIPE, stdout, stderr, **spawn)
        except SpawnError as e:
            return ExecResult(exit=_failed(e))

        log.debug(f"{self.name}: started pid {process.pid} (stdin)")
        exit = asyncio.ensure_future(process.wait())
        stdin = process.stdin
        assert stdin is not None
        try:
            async with aclosing(aiterate(source)) as chunks:
                async for chunk in chunks:
                    stdin.write(self._encode(chunk))
                    await stdin.drain()
        finally:
            stdin.close()
            # the process may exit without reading everything
            with suppress(ConnectionError):
                await stdin.wait_closed()
        return ExecResult(exit=exit, stdout=process.stdout, stderr=process.stderr)

    async def _exec_using_file(
        self,
        source: Iterable[Any] | AsyncIterable[Any],
        stdout: IOMode,
        stderr: IOMode,
        command: dict[str, Any],
        spawn: dict[str, Any],
    ) -> ExecResult:
        fd, path = tempfile.mkstemp(suffix=self.extension or "")
        log.debug(f"{self.name}: writing script to {path}")
        handed_off = False
        try:
            with os.fdopen(fd, "wb") as dest:
                async with aclosing(aiterate(source)) as chunks:
                    async for chunk in chunks:
                        await asyncio.to_thread(dest.write, self._encode(chunk))

            argv = await self.arguments(exec_file=path, **command)
            try:
                process = await self._spawn(argv, asyncio.subprocess.DEVNULL, stdout, stderr, **spawn)
            except SpawnError as e:
                exit = _failed(e)
                result = ExecResult(exit=exit)
            else:
                log.debug(f"{self.name}: started pid {process.pid} ({path})")
                exit = asyncio.ensure_future(process.wait())
                result = ExecResult(exit=exit, stdout=process.stdout, stderr=process.stderr)
            exit.add_done_callback(lambda _: self._remove(path))
            handed_off = True
            return result
        finally:
            if not handed_off:
                self._remove(path)

    def _remove(self, path: str) -> None:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"{self.name}: could not remove {path}: {e}")
        else:
            log.debug(f"{self.name}: removed {path}")

    async def exec(
        self,
        source: Iterable[Any] | AsyncIterable[Any],
        *,
        stdout: IOMode = "pipe",
        stderr: IOMode = "pipe",
        use_stdin: bool | None = None,
        bin: Any = None,
        common: Any = None,
        stdin: Any = None,
        file: Any = None,
        args: Any = None,
        **spawn: Any,
    ) -> ExecResult:
        """Run the script produced by ``source``.

        Args:
            source: Sync or async iterable of ``str``/``bytes`` chunks.
            stdout: ``"pipe"``, ``"ignore"`` or ``"inherit"``.
            stderr: ``"pipe"``, ``"ignore"`` or ``"inherit"``.
            use_stdin: Override the configured strategy for this call.
            bin: Override the executable.
            common: Override the common arguments.
            stdin: Override the stdin-mode arguments.
            file: Override the file-mode arguments.
            args: Trailing arguments.
            **spawn: Passed to ``asyncio.create_subprocess_exec`` (cwd, env...).

        Returns:
            ExecResult with the exit future and output handles.
        """
        command = {"bin": bin, "common": common, "stdin": stdin, "file": file, "args": args}
        if use_stdin is None:
            use_stdin = self.use_stdin
        if use_stdin:
            return await self._exec_using_stdin(source, stdout, stderr, command, spawn)
        return await self._exec_using_file(source, stdout, stderr, command, spawn)
