"""In-memory host backend.

Mirrors the observable behaviour of the NetworkManager backend without
touching the host, and records every call so tests can assert on them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from mdnsbridge.base.client import BaseHost
from mdnsbridge.base.managers import (
    BaseFirewallEngine,
    BaseProfileStore,
    BaseReflectorDaemon,
    BaseServiceManager,
    CheckResult,
    ProfileKind,
)
from mdnsbridge.exceptions import DaemonError, ExternalToolMissing, ProfileActivationError, ProfileError
from mdnsbridge.factory import register_backend


@dataclass
class MemoryProfile:
    name: str
    kind: ProfileKind
    device: str
    parent: str | None = None
    vlan_id: int | None = None
    properties: dict[str, str] = field(default_factory=dict)
    active: bool = False


class MemoryProfileStore(BaseProfileStore):
    def __init__(self) -> None:
        self.profiles: dict[str, MemoryProfile] = {}
        self.fail_activation: set[str] = set()
        self.calls: list[tuple[str, str]] = []

    def add_profile(
        self,
        name: str,
        device: str,
        kind: ProfileKind = ProfileKind.ETHERNET,
        properties: dict[str, str] | None = None,
        active: bool = False,
    ) -> MemoryProfile:
        """Seed a profile that exists before the tool runs."""
        profile = MemoryProfile(name=name, kind=kind, device=device, properties=dict(properties or {}))
        self.profiles[name] = profile
        if active:
            self._set_active(profile)
        return profile

    def _set_active(self, profile: MemoryProfile) -> None:
        for other in self.profiles.values():
            if other.device == profile.device:
                other.active = False
        profile.active = True

    def create(
        self,
        kind: ProfileKind,
        device: str,
        name: str,
        parent: str | None = None,
        vlan_id: int | None = None,
    ) -> None:
        self.calls.append(("create", name))
        if name in self.profiles:
            raise ProfileError(f"Failed to create profile {name}: already exists")
        if kind is ProfileKind.VLAN and (parent is None or vlan_id is None):
            raise ProfileError(f"VLAN profile {name} needs a parent device and VLAN id")
        self.profiles[name] = MemoryProfile(name=name, kind=kind, device=device, parent=parent, vlan_id=vlan_id)

    def modify(self, name: str, properties: dict[str, str]) -> None:
        self.calls.append(("modify", name))
        if name not in self.profiles:
            raise ProfileError(f"Failed to modify profile {name}: no such profile")
        self.profiles[name].properties.update(properties)

    def activate(self, name: str) -> None:
        self.calls.append(("activate", name))
        if name not in self.profiles:
            raise ProfileActivationError(name, "unknown connection")
        if name in self.fail_activation:
            raise ProfileActivationError(name, "device not available")
        self._set_active(self.profiles[name])

    def active_profile_for_device(self, device: str) -> str | None:
        for profile in self.profiles.values():
            if profile.active and profile.device == device:
                return profile.name
        return None

    def exists(self, name: str) -> bool:
        return name in self.profiles

    def delete(self, name: str) -> None:
        self.calls.append(("delete", name))
        if self.profiles.pop(name, None) is None:
            raise ProfileError(f"Failed to delete profile {name}: no such profile")

    def properties(self, name: str) -> dict[str, str]:
        if name not in self.profiles:
            raise ProfileError(f"Failed to read profile {name}: no such profile")
        return dict(self.profiles[name].properties)


class MemoryServiceManager(BaseServiceManager):
    def __init__(self) -> None:
        self.enabled: set[str] = set()
        self.running: set[str] = set()
        self.restarts: list[str] = []
        self.reloads = 0
        self.fail_restart: set[str] = set()

    def enable(self, unit: str, now: bool = False) -> None:
        self.enabled.add(unit)
        if now:
            self.running.add(unit)

    def disable(self, unit: str, now: bool = False) -> None:
        self.enabled.discard(unit)
        if now:
            self.running.discard(unit)

    def restart(self, unit: str) -> None:
        if unit in self.fail_restart:
            raise DaemonError(unit, f"Job for {unit}.service failed")
        self.restarts.append(unit)
        self.running.add(unit)

    def daemon_reload(self) -> None:
        self.reloads += 1


class MemoryReflectorDaemon(BaseReflectorDaemon):
    def __init__(self, services: MemoryServiceManager):
        self._services = services
        self.activations = 0

    def activate(self) -> None:
        self._services.enable(self.unit)
        self._services.restart(self.unit)
        self.activations += 1


def _balanced(text: str) -> bool:
    """Very small stand-in for ``nft -c``: a table and balanced braces."""
    depth = 0
    for ch in text:
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0 and "table " in text


class MemoryFirewallEngine(BaseFirewallEngine):
    def __init__(self, services: MemoryServiceManager, validator: Callable[[str], bool] = _balanced):
        self._services = services
        self.validator = validator
        self.checked: list[Path] = []
        self.activations = 0

    def check(self, path: Path) -> CheckResult:
        self.checked.append(path)
        try:
            text = path.read_text()
        except OSError as e:
            return CheckResult(ok=False, output=f"Could not open {path}: {e}")
        if self.validator(text):
            return CheckResult(ok=True)
        return CheckResult(ok=False, output=f"{path}: syntax error")

    def activate(self) -> None:
        self._services.enable(self.unit)
        self._services.restart(self.unit)
        self.activations += 1


@register_backend("memory")
class MemoryHost(BaseHost):
    """Host backend holding all state in memory."""

    def __init__(self, missing_tools: tuple[str, ...] = ()):
        self.missing_tools = missing_tools
        self._profiles = MemoryProfileStore()
        self._services = MemoryServiceManager()
        self._reflector = MemoryReflectorDaemon(self._services)
        self._firewall = MemoryFirewallEngine(self._services)

    @property
    def profiles(self) -> MemoryProfileStore:
        return self._profiles

    @property
    def services(self) -> MemoryServiceManager:
        return self._services

    @property
    def reflector(self) -> MemoryReflectorDaemon:
        return self._reflector

    @property
    def firewall(self) -> MemoryFirewallEngine:
        return self._firewall

    def require_tools(self) -> None:
        if self.missing_tools:
            raise ExternalToolMissing(self.missing_tools[0])
