"""Desired topology model: the single immutable input to every component."""

from __future__ import annotations

from enum import Enum

from loguru import logger
from pydantic import BaseModel, ConfigDict, field_validator, model_validator

from mdnsbridge._util import (
    _validate_interface_name,
    _validate_ip,
    _validate_ipv4_cidr,
    mgmt_tagged_profile,
    mgmt_untagged_profile,
    vlan_device,
    vlan_profile,
)
from mdnsbridge.exceptions import ConfigurationError

MIN_VID = 1
MAX_VID = 4094


class MgmtMode(str, Enum):
    UNTAGGED = "untagged"
    TAGGED = "tagged"


class IpMethod(str, Enum):
    DHCP = "dhcp"
    STATIC = "static"


def _check_vid(vid: int, what: str) -> int:
    if not MIN_VID <= vid <= MAX_VID:
        raise ConfigurationError(f"Invalid {what} {vid} (must be {MIN_VID}-{MAX_VID})")
    return vid


class DesiredTopologySpec(BaseModel):
    """Declared topology: one management interface plus N VLANs on a trunk.

    Invalid combinations raise :class:`ConfigurationError` at construction,
    so every component downstream can rely on a consistent spec.
    """

    model_config = ConfigDict(frozen=True)

    trunk: str = "eth0"
    mgmt_mode: MgmtMode = MgmtMode.UNTAGGED
    mgmt_vid: int | None = None
    vlan_ids: tuple[int, ...] = (10, 30, 50)

    ip_method: IpMethod = IpMethod.DHCP
    address: str = ""
    gateway: str = ""
    dns: tuple[str, ...] = ()
    mgmt_never_default: bool = True

    reflect_filters: tuple[str, ...] = ()
    reflect_ipv: bool = True

    @field_validator("trunk")
    @classmethod
    def _trunk_name(cls, value: str) -> str:
        if not _validate_interface_name(value):
            raise ConfigurationError(f"Invalid trunk interface name: {value!r}")
        return value

    @field_validator("vlan_ids")
    @classmethod
    def _distinct_vlans(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        seen: list[int] = []
        for vid in value:
            _check_vid(vid, "VLAN id")
            if vid in seen:
                logger.warning(f"VLAN {vid} declared more than once, ignoring duplicate")
                continue
            seen.append(vid)
        return tuple(seen)

    @field_validator("dns")
    @classmethod
    def _dns_servers(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for server in value:
            if not _validate_ip(server):
                raise ConfigurationError(f"Invalid DNS server address: {server!r}")
        return value

    @field_validator("reflect_filters")
    @classmethod
    def _filters(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(f.strip() for f in value if f.strip())

    @model_validator(mode="after")
    def _consistency(self) -> DesiredTopologySpec:
        if self.mgmt_mode is MgmtMode.TAGGED:
            if self.mgmt_vid is None:
                raise ConfigurationError("Tagged management mode requires a management VID")
            _check_vid(self.mgmt_vid, "management VID")
            if self.mgmt_vid in self.vlan_ids:
                raise ConfigurationError(
                    f"Management VID {self.mgmt_vid} is also declared as a bridged VLAN "
                    f"({vlan_device(self.trunk, self.mgmt_vid)} would be claimed twice)"
                )

        for device in [self.mgmt_device, *(self.vlan_device(v) for v in self.vlan_ids)]:
            if not _validate_interface_name(device):
                raise ConfigurationError(f"Derived interface name {device!r} is invalid or too long")

        if self.ip_method is IpMethod.STATIC:
            if not _validate_ipv4_cidr(self.address):
                raise ConfigurationError(f"Static addressing needs an IPv4 CIDR address, got {self.address!r}")
            if not _validate_ip(self.gateway):
                raise ConfigurationError(f"Static addressing needs a gateway, got {self.gateway!r}")
        return self

    # ── derived names ─────────────────────────────────────────────────

    @property
    def mgmt_device(self) -> str:
        if self.mgmt_mode is MgmtMode.TAGGED:
            assert self.mgmt_vid is not None
            return vlan_device(self.trunk, self.mgmt_vid)
        return self.trunk

    @property
    def mgmt_profile(self) -> str:
        """Canonical name of the management profile the tool would create."""
        if self.mgmt_mode is MgmtMode.TAGGED:
            assert self.mgmt_vid is not None
            return mgmt_tagged_profile(self.trunk, self.mgmt_vid)
        return mgmt_untagged_profile(self.trunk)

    def vlan_device(self, vid: int) -> str:
        return vlan_device(self.trunk, vid)

    @staticmethod
    def vlan_profile(vid: int) -> str:
        return vlan_profile(vid)

    def mgmt_profile_candidates(self) -> list[str]:
        """Both management naming conventions (untagged and tagged) for this trunk."""
        names = [mgmt_untagged_profile(self.trunk)]
        if self.mgmt_vid is not None:
            names.append(mgmt_tagged_profile(self.trunk, self.mgmt_vid))
        return names
