"""Form session.

Ties one ArgumentModel to the launch settings of its tool and keeps at
most one running child process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from .arguments import ArgumentModel, load_definitions
from .config import DEFAULT_POLL_INTERVAL, Config
from .errors import ConfigError
from .runtime import ChildProcess, DecodePolicy, StdinSource, WorkerTarget

__all__ = ["Session", "RunStatus"]

logger = logging.getLogger(__name__)


@dataclass
class RunStatus:
    """Snapshot returned by Session.poll()."""

    output: str
    running: bool
    returncode: int | None
    pid: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "output": self.output,
            "running": self.running,
            "returncode": self.returncode,
            "pid": self.pid,
        }


@dataclass
class Session:
    """One form and the process it last started.

    Attributes:
        model: Editable argument state
        worker: Program that runs the tool
        env: Environment variable overrides
        stdin: Optional stdin source for the next run
        working_dir: Working directory for the next run ("" inherits)
        decode_policy: How undecodable output lines are handled
        poll_interval: Seconds between polls while waiting for output
    """

    model: ArgumentModel
    worker: WorkerTarget = field(default_factory=WorkerTarget.current)
    env: dict[str, str] = field(default_factory=dict)
    stdin: StdinSource | None = None
    working_dir: str = ""
    decode_policy: DecodePolicy = DecodePolicy.REPLACE
    poll_interval: float = DEFAULT_POLL_INTERVAL
    child: ChildProcess | None = field(default=None, init=False)

    @classmethod
    def from_config(cls, config: Config) -> "Session":
        """Session for the MCP server.

        The server cannot act as the tool itself, so a worker command is
        required here even though the library defaults to self re-invocation.

        Raises:
            ConfigError: No worker command is configured or the schema file
                cannot be loaded
        """
        if not config.worker:
            raise ConfigError("CFM_WORKER is not set: configure the command that runs the tool")
        definitions = []
        if config.schema_path:
            try:
                definitions = load_definitions(config.schema_path)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Invalid schema file {config.schema_path}: {e}") from e
        return cls(
            model=ArgumentModel.from_definitions(definitions),
            worker=WorkerTarget.from_command(config.worker),
            working_dir=config.working_dir or "",
            decode_policy=config.decode_policy,
            poll_interval=config.poll_interval,
        )

    @property
    def is_running(self) -> bool:
        return self.child is not None and self.child.is_running

    def run(self) -> ChildProcess:
        """Build the command and launch it, replacing any previous run.

        Raises:
            CommandBuildError: The form is invalid; nothing is launched
            ExecuteError: The process could not be started
        """
        args = self.model.build_command()
        if self.child is not None and self.child.is_running:
            logger.info(f"Killing previous run pid={self.child.pid}")
            self.child.kill()

        self.child = ChildProcess.run(
            args,
            env=self.env or None,
            stdin=self.stdin,
            working_dir=self.working_dir,
            worker=self.worker,
            decode_policy=self.decode_policy,
        )
        logger.info(f"Started {self.worker} pid={self.child.pid} with {len(args)} arguments")
        return self.child

    def poll(self) -> RunStatus:
        if self.child is None:
            return RunStatus(output="", running=False, returncode=None)
        return RunStatus(
            output=self.child.read(),
            running=self.child.is_running,
            returncode=self.child.returncode,
            pid=self.child.pid,
        )

    def kill(self) -> bool:
        """Kill the current run; returns False when nothing was running."""
        if not self.is_running:
            return False
        assert self.child is not None
        self.child.kill()
        logger.info(f"Killed pid={self.child.pid}")
        return True
