"""Child process launcher, output aggregator and process controller.

cli-form-mcp runtime module v0.1.0

This module provides:
- Launching the worker target with the built arguments and three pipes
- Optional stdin source (literal text or a file streamed byte for byte)
- Non-blocking polling of interleaved stdout/stderr lines
- Immediate kill of the whole process group

Key design points:
- POSIX: start_new_session=True so kill reaches the child's own children
- Windows: CREATE_NEW_PROCESS_GROUP for signal isolation
- One reader thread per output stream; communication is queue-only
- Lines of one stream keep their order, stdout/stderr interleave by arrival
- Kill discards whatever was queued but not yet polled
"""

from __future__ import annotations

import logging
import os
import queue
import shutil
import signal
import subprocess
import sys
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Union

from ..errors import ExecuteError, ExecuteErrorKind
from .stream_reader import END_OF_STREAM, DecodePolicy, StreamReader
from .worker import WorkerTarget

__all__ = [
    "ChildProcess",
    "OutputAggregator",
    "StdinFile",
    "StdinSource",
    "StdinText",
    "resolve_working_dir",
]

logger = logging.getLogger(__name__)

# Platform detection
IS_WINDOWS = sys.platform == "win32"


@dataclass(frozen=True)
class StdinText:
    """Literal text written to the child's stdin (UTF-8)."""

    text: str


@dataclass(frozen=True)
class StdinFile:
    """File whose raw bytes are streamed to the child's stdin."""

    path: str


StdinSource = Union[StdinText, StdinFile]

EnvOverrides = Union[Mapping[str, str], Iterable[tuple[str, str]]]


class OutputAggregator:
    """Merge the lines of a stdout and a stderr reader into one buffer.

    A reader is retired once its END_OF_STREAM marker is drained. The
    process counts as running until both readers are retired.
    """

    def __init__(self, stdout: StreamReader, stderr: StreamReader) -> None:
        self._readers: list[StreamReader | None] = [stdout, stderr]
        self._output: list[str] = []

    @property
    def is_running(self) -> bool:
        return any(reader is not None for reader in self._readers)

    @property
    def output(self) -> str:
        return "".join(self._output)

    def poll(self) -> str:
        """Drain everything queued right now, never waiting for more.

        Returns:
            The whole accumulated output
        """
        for index, reader in enumerate(self._readers):
            if reader is not None:
                self._drain(index, reader)
        return self.output

    def _drain(self, index: int, reader: StreamReader) -> None:
        while True:
            try:
                item = reader.get_nowait()
            except queue.Empty:
                return
            if item is END_OF_STREAM:
                logger.debug(f"{reader.name} reached end of stream")
                self._readers[index] = None
                return
            self._output.append(item)

    def retire_all(self) -> None:
        """Stop polling both readers; undrained lines are dropped."""
        self._readers = [None, None]


def resolve_working_dir(working_dir: str | os.PathLike[str] | None) -> Path | None:
    """Resolve a working directory to an absolute existing directory.

    None or "" means inherit the caller's directory.

    Raises:
        ExecuteError: The directory does not exist or is not a directory
    """
    if working_dir is None or str(working_dir) == "":
        return None
    try:
        resolved = Path(working_dir).expanduser().resolve(strict=True)
    except (OSError, RuntimeError) as e:
        raise ExecuteError(
            ExecuteErrorKind.WORKING_DIR,
            f"Cannot resolve working directory {working_dir!r}: {e}",
        ) from e
    if not resolved.is_dir():
        raise ExecuteError(
            ExecuteErrorKind.WORKING_DIR,
            f"Working directory is not a directory: {resolved}",
        )
    return resolved


def _build_env(env: EnvOverrides | None) -> dict[str, str] | None:
    if env is None:
        return None
    overrides = dict(env.items() if isinstance(env, Mapping) else env)
    merged = dict(os.environ)
    merged.update(overrides)
    return merged


def _stdin_payload(stdin: StdinSource | None) -> bytes | StdinFile | None:
    """Encode stdin text up front so a bad string fails before anything runs.

    Raises:
        ExecuteError: The text cannot be encoded as UTF-8
    """
    if not isinstance(stdin, StdinText):
        return stdin
    try:
        return stdin.text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise ExecuteError(
            ExecuteErrorKind.STDIN,
            f"Stdin text is not valid UTF-8: {e}",
        ) from e


def _build_popen_kwargs() -> dict[str, Any]:
    """Build platform-specific Popen kwargs."""
    kwargs: dict[str, Any] = {}
    if IS_WINDOWS:
        kwargs["creationflags"] = subprocess.CREATE_NEW_PROCESS_GROUP
    else:
        # POSIX: start_new_session (equivalent to setsid)
        kwargs["start_new_session"] = True
    return kwargs


class ChildProcess:
    """A launched worker process with polled output.

    Example:
        child = ChildProcess.run(
            ["--name", "bob"],
            stdin=StdinText("hello\\n"),
            worker=WorkerTarget.executable("my-tool"),
        )

        while child.is_running:
            render(child.read())
            ...

    Attributes:
        args: Full command line the process was started with
    """

    def __init__(
        self,
        process: subprocess.Popen[bytes],
        aggregator: OutputAggregator,
        args: list[str],
    ) -> None:
        self._process = process
        self._aggregator = aggregator
        self.args = args

    @classmethod
    def run(
        cls,
        args: list[str],
        env: EnvOverrides | None = None,
        stdin: StdinSource | None = None,
        working_dir: str | os.PathLike[str] | None = None,
        worker: WorkerTarget | None = None,
        decode_policy: DecodePolicy = DecodePolicy.REPLACE,
    ) -> "ChildProcess":
        """Launch the worker target with the given arguments.

        Writing the stdin source blocks this call until the source has been
        fully handed to the child. Output readers are already running at
        that point, so a child that answers while reading cannot stall.

        Args:
            args: Built argument tokens
            env: Environment variable overrides (merged over os.environ)
            stdin: Optional stdin source
            working_dir: Working directory, None/"" inherits the caller's
            worker: Program to run, defaults to the current program
            decode_policy: How to handle undecodable output lines

        Raises:
            ExecuteError: Launch failed; no process is left running
        """
        worker = worker or WorkerTarget.current()
        cwd = resolve_working_dir(working_dir)
        argv = worker.command(args)
        payload = _stdin_payload(stdin)

        try:
            process = subprocess.Popen(
                argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=cwd,
                env=_build_env(env),
                **_build_popen_kwargs(),
            )
        except OSError as e:
            raise ExecuteError(
                ExecuteErrorKind.SPAWN,
                f"Failed to start {argv[0]!r}: {e}",
            ) from e

        logger.debug(f"Started subprocess pid={process.pid} argv={argv[0]} cwd={cwd}")

        if process.stdout is None or process.stderr is None:
            cls._abort(process)
            raise ExecuteError(ExecuteErrorKind.NO_STDIO, "Child process has no stdout or stderr")

        aggregator = OutputAggregator(
            StreamReader(process.stdout, "stdout", decode_policy).start(),
            StreamReader(process.stderr, "stderr", decode_policy).start(),
        )
        child = cls(process, aggregator, argv)

        try:
            child._feed_stdin(payload)
        except OSError as e:
            child.kill()
            raise ExecuteError(ExecuteErrorKind.STDIN, f"Failed to write stdin: {e}") from e

        return child

    def _feed_stdin(self, payload: bytes | StdinFile | None) -> None:
        pipe = self._process.stdin
        if pipe is None:
            return
        try:
            if isinstance(payload, bytes):
                pipe.write(payload)
            elif isinstance(payload, StdinFile):
                with open(payload.path, "rb") as f:
                    shutil.copyfileobj(f, pipe)
            pipe.flush()
        except BrokenPipeError:
            # The child closed its stdin without reading everything
            logger.debug(f"Child pid={self._process.pid} stopped reading stdin")
        finally:
            # Close even without a source so the child sees EOF
            try:
                pipe.close()
            except OSError as e:
                logger.debug(f"Error closing stdin pid={self._process.pid}: {e}")

    @staticmethod
    def _abort(process: subprocess.Popen[bytes]) -> None:
        try:
            process.kill()
        except OSError as e:
            logger.debug(f"Error killing subprocess pid={process.pid}: {e}")
        process.wait()

    # ------------------------------------------------------------------
    # Controller API
    # ------------------------------------------------------------------

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        """Exit code once the process has exited, without waiting."""
        return self._process.poll()

    @property
    def is_running(self) -> bool:
        """True until both streams are drained to their end or kill() was called."""
        return self._aggregator.is_running

    def read(self) -> str:
        """Drain new output without blocking and return the whole buffer."""
        return self._aggregator.poll()

    poll = read

    @property
    def output(self) -> str:
        """Buffer as of the last read(), without draining."""
        return self._aggregator.output

    def kill(self) -> None:
        """Kill the process group and stop reading output immediately.

        On POSIX the whole group is signalled even when the leader has
        already exited, so descendants still holding the pipes die too.
        """
        self._aggregator.retire_all()
        pid = self._process.pid
        try:
            if IS_WINDOWS:
                if self._process.poll() is None:
                    self._process.kill()
            else:
                self._posix_kill()
            logger.debug(f"Killed subprocess pid={pid}")
        except ProcessLookupError:
            logger.debug(f"Subprocess already exited pid={pid}")
        except OSError as e:
            logger.warning(f"Error killing subprocess pid={pid}: {e}")
        # Reap without blocking; the reader threads exit on their own
        self._process.poll()

    def _posix_kill(self) -> None:
        """Send SIGKILL to the process group on POSIX systems."""
        # start_new_session makes the leader's pid the group id; it stays
        # valid while any member is alive
        pgid = self._process.pid
        try:
            os.killpg(pgid, signal.SIGKILL)
            logger.debug(f"Sent SIGKILL to process group pgid={pgid}")
        except ProcessLookupError:
            logger.debug(f"Process group already gone pgid={pgid}")
        except OSError as e:
            logger.debug(f"killpg failed, falling back to kill: {e}")
            if self._process.poll() is None:
                self._process.kill()

    def __enter__(self) -> "ChildProcess":
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self.is_running:
            self.kill()

    def __repr__(self) -> str:
        return (
            f"ChildProcess(pid={self.pid}, running={self.is_running}, "
            f"returncode={self.returncode})"
        )
