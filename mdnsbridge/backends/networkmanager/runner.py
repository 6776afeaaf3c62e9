"""Subprocess-backed command runner."""

from __future__ import annotations

import shutil
import subprocess

from loguru import logger

from mdnsbridge.base.transport import BaseCommandRunner, CommandResult
from mdnsbridge.exceptions import ExternalToolMissing

DEFAULT_TIMEOUT = 90


class SubprocessRunner(BaseCommandRunner):
    """Run host commands synchronously, capturing output as text."""

    def __init__(self, timeout: int = DEFAULT_TIMEOUT):
        self.timeout = timeout

    def run(self, cmd: list[str], timeout: int | None = None) -> CommandResult:
        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout or self.timeout)
        except FileNotFoundError as e:
            raise ExternalToolMissing(cmd[0]) from e
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Command {cmd[0]} timed out after {e.timeout}s")
            return CommandResult(args=list(cmd), returncode=124, stderr=f"timed out after {e.timeout}s")

        if result.returncode != 0:
            logger.debug(f"  exited {result.returncode}: {result.stderr.strip()}")
        return CommandResult(
            args=list(cmd),
            returncode=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)
