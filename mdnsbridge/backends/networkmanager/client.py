"""NetworkManager + systemd host backend."""

from __future__ import annotations

from mdnsbridge.backends.networkmanager.profiles import NMCLI, NmcliProfileStore
from mdnsbridge.backends.networkmanager.runner import SubprocessRunner
from mdnsbridge.backends.networkmanager.services import (
    NFT,
    SYSTEMCTL,
    AvahiReflectorDaemon,
    NftablesFirewall,
    SystemdServiceManager,
)
from mdnsbridge.base.client import BaseHost
from mdnsbridge.base.managers import (
    BaseFirewallEngine,
    BaseProfileStore,
    BaseReflectorDaemon,
    BaseServiceManager,
)
from mdnsbridge.base.transport import BaseCommandRunner
from mdnsbridge.factory import register_backend

REQUIRED_TOOLS = (NMCLI, "avahi-daemon", NFT, SYSTEMCTL)


@register_backend("networkmanager")
class NetworkManagerHost(BaseHost):
    """The real host: nmcli for profiles, systemctl for services, nft for checks.

    Usage::

        with NetworkManagerHost() as host:
            host.require_tools()
            host.profiles.activate("mdns-vlan10")
    """

    def __init__(self, runner: BaseCommandRunner | None = None):
        self._runner = runner or SubprocessRunner()

        # Lazy-initialized collaborators
        self._profiles: NmcliProfileStore | None = None
        self._services: SystemdServiceManager | None = None
        self._reflector: AvahiReflectorDaemon | None = None
        self._firewall: NftablesFirewall | None = None

    @property
    def runner(self) -> BaseCommandRunner:
        return self._runner

    @property
    def profiles(self) -> BaseProfileStore:
        """Access NetworkManager profiles (nmcli)."""
        if self._profiles is None:
            self._profiles = NmcliProfileStore(self._runner)
        return self._profiles

    @property
    def services(self) -> BaseServiceManager:
        """Access systemd units (systemctl)."""
        if self._services is None:
            self._services = SystemdServiceManager(self._runner)
        return self._services

    @property
    def reflector(self) -> BaseReflectorDaemon:
        """Access avahi-daemon."""
        if self._reflector is None:
            self._reflector = AvahiReflectorDaemon(self.services)
        return self._reflector

    @property
    def firewall(self) -> BaseFirewallEngine:
        """Access nftables."""
        if self._firewall is None:
            self._firewall = NftablesFirewall(self._runner, self.services)
        return self._firewall

    def require_tools(self) -> None:
        self._runner.require(*REQUIRED_TOOLS)
