"""Worker target: the program that actually runs the tool.

A form host usually re-runs itself with the built arguments (one program
acting both as form host and as the tool), but the target can be any
executable.
"""

from __future__ import annotations

import logging
import os
import shlex
import sys
from dataclasses import dataclass

__all__ = ["WorkerTarget"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkerTarget:
    """Command prefix the launcher puts in front of the built tokens.

    Attributes:
        argv: Executable followed by any fixed leading arguments
    """

    argv: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.argv:
            raise ValueError("WorkerTarget needs at least an executable")
        object.__setattr__(self, "argv", tuple(self.argv))

    @classmethod
    def current(cls) -> "WorkerTarget":
        """Re-run the calling program.

        Uses ``python -m <package>`` when started as a module and
        ``python <script>`` otherwise.
        """
        main = sys.modules.get("__main__")
        spec = getattr(main, "__spec__", None)
        if spec is not None and spec.name:
            module = spec.name
            if module.endswith(".__main__"):
                module = module[: -len(".__main__")]
            return cls((sys.executable, "-m", module))
        if sys.argv and sys.argv[0] and sys.argv[0] != "-c":
            return cls((sys.executable, os.path.abspath(sys.argv[0])))
        return cls((sys.executable,))

    @classmethod
    def executable(cls, path: str, *prefix: str) -> "WorkerTarget":
        return cls((path, *prefix))

    @classmethod
    def from_command(cls, command: list[str] | str | None) -> "WorkerTarget":
        """Target from a configured command; empty means the current program."""
        if isinstance(command, str):
            command = shlex.split(command)
        if not command:
            return cls.current()
        return cls(tuple(command))

    def command(self, args: list[str]) -> list[str]:
        return [*self.argv, *args]

    def __str__(self) -> str:
        return shlex.join(self.argv)
