"""Shared helper functions for interface naming and value parsing."""

from __future__ import annotations

import ipaddress
import re

# Linux IFNAMSIZ is 16 including the trailing NUL
MAX_IFNAME_LEN = 15

MGMT_UNTAGGED_PROFILE = "mdns-mgmt-{trunk}-untagged"
MGMT_TAGGED_PROFILE = "mdns-mgmt-{trunk}.{vid}"
VLAN_PROFILE_PREFIX = "mdns-vlan"


def _validate_interface_name(name: str) -> bool:
    """Validate interface name to prevent injection."""
    return bool(re.match(r"^[a-zA-Z0-9._-]+$", name)) and len(name) <= MAX_IFNAME_LEN


def _validate_ip(ip: str) -> bool:
    """Validate IP address string."""
    try:
        ipaddress.ip_address(ip)
        return True
    except ValueError:
        return False


def _validate_ipv4_cidr(cidr: str) -> bool:
    """Validate an IPv4 interface address in CIDR notation (host bits allowed)."""
    if "/" not in cidr:
        return False
    try:
        ipaddress.IPv4Interface(cidr)
        return True
    except ValueError:
        return False


def vlan_device(trunk: str, vid: int) -> str:
    """Kernel device name of the 802.1Q sub-interface for ``vid`` on ``trunk``."""
    return f"{trunk}.{vid}"


def vlan_profile(vid: int) -> str:
    return f"{VLAN_PROFILE_PREFIX}{vid}"


def mgmt_untagged_profile(trunk: str) -> str:
    return MGMT_UNTAGGED_PROFILE.format(trunk=trunk)


def mgmt_tagged_profile(trunk: str, vid: int) -> str:
    return MGMT_TAGGED_PROFILE.format(trunk=trunk, vid=vid)


def parse_bool(value: str) -> bool:
    """Parse yes/no style flags as written in the env file."""
    lowered = value.strip().lower()
    if lowered in ("yes", "true", "1", "on"):
        return True
    if lowered in ("no", "false", "0", "off", ""):
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def format_bool(value: bool) -> str:
    return "yes" if value else "no"


def split_list(value: str, sep: str | None = None) -> list[str]:
    """Split a whitespace- (default) or ``sep``-separated list, dropping blanks."""
    parts = value.split(sep) if sep else value.split()
    return [p.strip() for p in parts if p.strip()]
