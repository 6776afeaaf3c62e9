"""NetworkManager profile store driven through nmcli."""

from __future__ import annotations

import re

from loguru import logger

from mdnsbridge.base.managers import BaseProfileStore, ProfileKind
from mdnsbridge.base.transport import BaseCommandRunner
from mdnsbridge.exceptions import ProfileActivationError, ProfileError

NMCLI = "nmcli"

# Fields reported by properties(); the addressing a reconcile may touch
ADDRESSING_FIELDS = (
    "ipv4.method",
    "ipv4.addresses",
    "ipv4.gateway",
    "ipv4.dns",
    "ipv4.ignore-auto-dns",
    "ipv4.never-default",
    "ipv6.method",
    "connection.autoconnect",
)

# nmcli terse output escapes ':' and '\' inside values
_TERSE_SEP = re.compile(r"(?<!\\):")


def _unescape(value: str) -> str:
    return value.replace("\\:", ":").replace("\\\\", "\\")


class NmcliProfileStore(BaseProfileStore):
    """Profile operations via ``nmcli con ...``."""

    ACTIVATE_TIMEOUT = 120

    def __init__(self, runner: BaseCommandRunner):
        self._runner = runner

    def _nmcli(self, *args: str, error: str) -> str:
        result = self._runner.run([NMCLI, *args])
        if not result.ok:
            raise ProfileError(f"{error}: {result.detail}")
        return result.stdout

    def create(
        self,
        kind: ProfileKind,
        device: str,
        name: str,
        parent: str | None = None,
        vlan_id: int | None = None,
    ) -> None:
        cmd = ["con", "add", "type", kind.value, "ifname", device]
        if kind is ProfileKind.VLAN:
            if parent is None or vlan_id is None:
                raise ProfileError(f"VLAN profile {name} needs a parent device and VLAN id")
            cmd += ["dev", parent, "id", str(vlan_id)]
        cmd += ["con-name", name]
        self._nmcli(*cmd, error=f"Failed to create profile {name}")

    def modify(self, name: str, properties: dict[str, str]) -> None:
        if not properties:
            return
        args = ["con", "mod", name]
        for key, value in properties.items():
            args += [key, value]
        self._nmcli(*args, error=f"Failed to modify profile {name}")

    def activate(self, name: str) -> None:
        result = self._runner.run([NMCLI, "con", "up", name], timeout=self.ACTIVATE_TIMEOUT)
        if not result.ok:
            raise ProfileActivationError(name, result.detail)

    def active_profile_for_device(self, device: str) -> str | None:
        output = self._nmcli(
            "-t", "-f", "NAME,DEVICE", "con", "show", "--active", error="Failed to list active profiles"
        )
        for line in output.splitlines():
            parts = _TERSE_SEP.split(line)
            if len(parts) != 2:
                continue
            name, dev = (_unescape(p) for p in parts)
            if dev == device:
                return name
        return None

    def exists(self, name: str) -> bool:
        output = self._nmcli("-g", "NAME", "con", "show", error="Failed to list profiles")
        return any(_unescape(line) == name for line in output.splitlines())

    def delete(self, name: str) -> None:
        logger.debug(f"Deleting profile {name}")
        self._nmcli("con", "delete", name, error=f"Failed to delete profile {name}")

    def properties(self, name: str) -> dict[str, str]:
        output = self._nmcli(
            "-t", "-f", ",".join(ADDRESSING_FIELDS), "con", "show", name, error=f"Failed to read profile {name}"
        )
        props: dict[str, str] = {}
        for line in output.splitlines():
            parts = _TERSE_SEP.split(line, maxsplit=1)
            if len(parts) == 2:
                props[parts[0]] = _unescape(parts[1])
        return props
