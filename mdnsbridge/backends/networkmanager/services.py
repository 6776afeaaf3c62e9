"""systemd, avahi-daemon and nftables collaborators."""

from __future__ import annotations

from pathlib import Path

from mdnsbridge.base.managers import (
    BaseFirewallEngine,
    BaseReflectorDaemon,
    BaseServiceManager,
    CheckResult,
)
from mdnsbridge.base.transport import BaseCommandRunner
from mdnsbridge.exceptions import DaemonError

SYSTEMCTL = "systemctl"
NFT = "nft"


class SystemdServiceManager(BaseServiceManager):
    """Service supervision via ``systemctl``."""

    def __init__(self, runner: BaseCommandRunner):
        self._runner = runner

    def _systemctl(self, *args: str, unit: str) -> None:
        result = self._runner.run([SYSTEMCTL, *args])
        if not result.ok:
            raise DaemonError(unit, result.detail)

    def enable(self, unit: str, now: bool = False) -> None:
        self._systemctl("enable", *(["--now"] if now else []), unit, unit=unit)

    def disable(self, unit: str, now: bool = False) -> None:
        self._systemctl("disable", *(["--now"] if now else []), unit, unit=unit)

    def restart(self, unit: str) -> None:
        self._systemctl("restart", unit, unit=unit)

    def daemon_reload(self) -> None:
        self._systemctl("daemon-reload", unit="systemd")


class AvahiReflectorDaemon(BaseReflectorDaemon):
    """avahi-daemon: reads /etc/avahi/avahi-daemon.conf on restart."""

    def __init__(self, services: BaseServiceManager):
        self._services = services

    def activate(self) -> None:
        self._services.enable(self.unit)
        self._services.restart(self.unit)


class NftablesFirewall(BaseFirewallEngine):
    """nftables: ``nft -c -f`` for checks, the nftables unit for loading."""

    def __init__(self, runner: BaseCommandRunner, services: BaseServiceManager):
        self._runner = runner
        self._services = services

    def check(self, path: Path) -> CheckResult:
        result = self._runner.run([NFT, "-c", "-f", str(path)])
        return CheckResult(ok=result.ok, output=(result.stderr or result.stdout).strip())

    def activate(self) -> None:
        self._services.enable(self.unit)
        self._services.restart(self.unit)
