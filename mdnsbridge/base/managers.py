"""Abstract interfaces for the host collaborators the bridge drives."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ProfileKind(Enum):
    """NetworkManager connection type."""

    ETHERNET = "ethernet"
    VLAN = "vlan"


@dataclass
class CheckResult:
    """Result of a firewall dry-run check."""

    ok: bool
    output: str = ""


class BaseProfileStore(ABC):
    """Abstract base class for the network profile store."""

    @abstractmethod
    def create(
        self,
        kind: ProfileKind,
        device: str,
        name: str,
        parent: str | None = None,
        vlan_id: int | None = None,
    ) -> None:
        """Create a profile bound to ``device`` (and ``parent``/``vlan_id`` for VLANs)."""

    @abstractmethod
    def modify(self, name: str, properties: dict[str, str]) -> None:
        """Set profile properties."""

    @abstractmethod
    def activate(self, name: str) -> None:
        """Bring a profile up. Raises ProfileActivationError on failure."""

    @abstractmethod
    def active_profile_for_device(self, device: str) -> str | None:
        """Name of the profile currently active on ``device``, if any."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check if a profile with this exact name exists."""

    @abstractmethod
    def delete(self, name: str) -> None:
        """Delete a profile."""

    @abstractmethod
    def properties(self, name: str) -> dict[str, str]:
        """Current addressing-related properties of a profile."""


class BaseServiceManager(ABC):
    """Abstract base class for service supervision."""

    @abstractmethod
    def enable(self, unit: str, now: bool = False) -> None:
        """Enable ``unit`` at boot (and start it when ``now``)."""

    @abstractmethod
    def disable(self, unit: str, now: bool = False) -> None:
        """Disable ``unit`` (and stop it when ``now``)."""

    @abstractmethod
    def restart(self, unit: str) -> None:
        """Restart ``unit``."""

    @abstractmethod
    def daemon_reload(self) -> None:
        """Reload unit files."""


class BaseReflectorDaemon(ABC):
    """Abstract base class for the multicast reflector daemon."""

    unit: str = "avahi-daemon"

    @abstractmethod
    def activate(self) -> None:
        """Enable and restart the daemon so it picks up the written config."""


class BaseFirewallEngine(ABC):
    """Abstract base class for the packet-filter engine."""

    unit: str = "nftables"

    @abstractmethod
    def check(self, path: Path) -> CheckResult:
        """Dry-run the ruleset in ``path`` without touching the live ruleset."""

    @abstractmethod
    def activate(self) -> None:
        """Enable and restart the engine so it loads the written ruleset."""
