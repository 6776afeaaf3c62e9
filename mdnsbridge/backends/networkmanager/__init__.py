"""NetworkManager backend: nmcli, systemctl, avahi-daemon and nft."""

from mdnsbridge.backends.networkmanager.client import NetworkManagerHost

__all__ = ["NetworkManagerHost"]
