"""Realized interface models produced by the reconciler."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


class InterfaceRole(str, Enum):
    MANAGEMENT = "management"
    VLAN = "vlan"


class RealizedInterface(BaseModel):
    """An interface brought up from a NetworkManager profile."""

    model_config = ConfigDict(frozen=True)

    name: str
    role: InterfaceRole
    profile: str
    vlan_id: int | None = None
    created: bool = False


class TopologyState(BaseModel):
    """Canonical partition of realized interfaces into management and VLAN roles."""

    model_config = ConfigDict(frozen=True)

    management: RealizedInterface
    vlans: tuple[RealizedInterface, ...] = Field(default_factory=tuple)

    @model_validator(mode="after")
    def _roles(self) -> TopologyState:
        if self.management.role is not InterfaceRole.MANAGEMENT:
            raise ValueError("management interface must have the management role")
        for iface in self.vlans:
            if iface.role is not InterfaceRole.VLAN or not iface.created:
                raise ValueError(f"VLAN interface {iface.name} must be a tool-owned VLAN")
        return self

    @property
    def vlan_names(self) -> list[str]:
        return [v.name for v in self.vlans]

    @property
    def interface_names(self) -> list[str]:
        """Management interface first, then VLAN interfaces in declared order."""
        return [self.management.name, *self.vlan_names]

    @property
    def owned_profiles(self) -> list[str]:
        """Profiles this tool created (or has recorded as its own)."""
        owned = [self.management.profile] if self.management.created else []
        return owned + [v.profile for v in self.vlans]
