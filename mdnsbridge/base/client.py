"""Abstract host backend bundling every collaborator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType
from typing import Self

from mdnsbridge.base.managers import (
    BaseFirewallEngine,
    BaseProfileStore,
    BaseReflectorDaemon,
    BaseServiceManager,
)

PROFILE_MANAGER_UNIT = "NetworkManager"


class BaseHost(ABC):
    """Abstract base class for host backends.

    Provides a unified interface to the profile store, service manager,
    reflector daemon and firewall engine. Each backend implements the
    concrete collaborator properties.
    """

    @property
    @abstractmethod
    def profiles(self) -> BaseProfileStore:
        """Access the network profile store."""

    @property
    @abstractmethod
    def services(self) -> BaseServiceManager:
        """Access service supervision."""

    @property
    @abstractmethod
    def reflector(self) -> BaseReflectorDaemon:
        """Access the mDNS reflector daemon."""

    @property
    @abstractmethod
    def firewall(self) -> BaseFirewallEngine:
        """Access the packet-filter engine."""

    @abstractmethod
    def require_tools(self) -> None:
        """Raise ExternalToolMissing if a required host tool is absent."""

    def ensure_profile_manager(self) -> None:
        """Make sure the profile manager service is enabled and running."""
        self.services.enable(PROFILE_MANAGER_UNIT, now=True)

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self, exc_type: type[BaseException] | None, exc_val: BaseException | None, exc_tb: TracebackType | None
    ) -> None:
        self.close()
