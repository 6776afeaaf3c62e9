"""Abstract base for running external commands."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from mdnsbridge.exceptions import ExternalToolMissing


@dataclass
class CommandResult:
    """Outcome of one external command."""

    args: list[str] = field(default_factory=list)
    returncode: int = 0
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def detail(self) -> str:
        """Best human-readable explanation of a failure."""
        return (self.stderr or self.stdout).strip() or f"exit status {self.returncode}"


class BaseCommandRunner(ABC):
    """Abstract base class for the process that talks to host tools."""

    @abstractmethod
    def run(self, cmd: list[str], timeout: int | None = None) -> CommandResult:
        """Run ``cmd`` and return its result. Never raises on non-zero exit."""

    @abstractmethod
    def which(self, tool: str) -> str | None:
        """Return the resolved path of ``tool`` or None if not installed."""

    def require(self, *tools: str) -> None:
        """Raise :class:`ExternalToolMissing` for the first absent tool."""
        for tool in tools:
            if self.which(tool) is None:
                raise ExternalToolMissing(tool)
