"""Converge NetworkManager profiles to the desired topology."""

from __future__ import annotations

import re
from pathlib import Path

from loguru import logger

from mdnsbridge.base.managers import BaseProfileStore, ProfileKind
from mdnsbridge.exceptions import ProfileActivationError
from mdnsbridge.models.outcome import ApplyReport
from mdnsbridge.models.spec import DesiredTopologySpec, IpMethod, MgmtMode
from mdnsbridge.models.topology import InterfaceRole, RealizedInterface, TopologyState

# Reasserted on every run: VLAN interfaces are always tool-owned
VLAN_ADDRESSING = {
    "ipv4.method": "auto",
    "ipv4.never-default": "yes",
    "ipv6.method": "ignore",
    "connection.autoconnect": "yes",
}


def management_addressing(spec: DesiredTopologySpec) -> dict[str, str]:
    """Properties for a management profile the tool creates itself."""
    if spec.ip_method is IpMethod.DHCP:
        return {
            "ipv4.method": "auto",
            "ipv4.never-default": "yes" if spec.mgmt_never_default else "no",
            "ipv6.method": "ignore",
            "connection.autoconnect": "yes",
        }
    props = {
        "ipv4.method": "manual",
        "ipv4.addresses": spec.address,
        "ipv4.gateway": spec.gateway,
        "ipv4.never-default": "no",
        "ipv6.method": "ignore",
        "connection.autoconnect": "yes",
    }
    if spec.dns:
        props["ipv4.dns"] = ",".join(spec.dns)
        props["ipv4.ignore-auto-dns"] = "yes"
    return props


def ifupdown_claims(interfaces_file: Path, device: str) -> bool:
    """True if an ifupdown config declares ``device`` (it would fight NetworkManager)."""
    try:
        text = interfaces_file.read_text()
    except OSError:
        return False
    return re.search(rf"^\s*iface\s+{re.escape(device)}(\s|$)", text, re.MULTILINE) is not None


class InterfaceReconciler:
    """Creates, adopts and activates the profiles behind the topology.

    Management is resolved before VLANs. Activation failures are recorded as
    recoverable outcomes and never stop the remaining interfaces.
    """

    def __init__(self, profiles: BaseProfileStore):
        self._profiles = profiles

    def reconcile(
        self,
        spec: DesiredTopologySpec,
        report: ApplyReport | None = None,
        known_owned: frozenset[str] = frozenset(),
    ) -> TopologyState:
        report = report if report is not None else ApplyReport()
        management = self._ensure_management(spec, report, known_owned)
        vlans = tuple(self._ensure_vlan(spec, vid, report) for vid in spec.vlan_ids)
        state = TopologyState(management=management, vlans=vlans)
        report.state = state
        return state

    def _ensure_management(
        self, spec: DesiredTopologySpec, report: ApplyReport, known_owned: frozenset[str]
    ) -> RealizedInterface:
        device = spec.mgmt_device
        existing = self._profiles.active_profile_for_device(device)

        if existing:
            # Never touch an operator's working link, even if its addressing differs
            logger.info(f"Reusing active mgmt connection '{existing}' on {device} (leaving IP settings untouched)")
            report.ok("management", f"adopted {existing}")
            return RealizedInterface(
                name=device,
                role=InterfaceRole.MANAGEMENT,
                profile=existing,
                vlan_id=spec.mgmt_vid if spec.mgmt_mode is MgmtMode.TAGGED else None,
                # the canonical name is ours even before any ledger records it
                created=existing in known_owned or existing == spec.mgmt_profile,
            )

        name = spec.mgmt_profile
        if self._profiles.exists(name):
            logger.info(f"Using existing mgmt connection {name}")
        elif spec.mgmt_mode is MgmtMode.TAGGED:
            logger.info(f"Creating tagged mgmt connection {name} (VID={spec.mgmt_vid} on {spec.trunk})")
            self._profiles.create(ProfileKind.VLAN, device, name, parent=spec.trunk, vlan_id=spec.mgmt_vid)
            self._profiles.modify(name, management_addressing(spec))
        else:
            logger.info(f"Creating untagged mgmt connection {name} on {device}")
            self._profiles.create(ProfileKind.ETHERNET, device, name)
            self._profiles.modify(name, management_addressing(spec))

        self._activate(name, "management", report)
        return RealizedInterface(
            name=device,
            role=InterfaceRole.MANAGEMENT,
            profile=name,
            vlan_id=spec.mgmt_vid if spec.mgmt_mode is MgmtMode.TAGGED else None,
            created=True,
        )

    def _ensure_vlan(self, spec: DesiredTopologySpec, vid: int, report: ApplyReport) -> RealizedInterface:
        device = spec.vlan_device(vid)
        name = spec.vlan_profile(vid)

        if self._profiles.exists(name):
            logger.info(f"Using existing VLAN connection {name}")
        else:
            logger.info(f"Creating VLAN connection {name} (VID={vid} on {spec.trunk})")
            self._profiles.create(ProfileKind.VLAN, device, name, parent=spec.trunk, vlan_id=vid)
        self._profiles.modify(name, VLAN_ADDRESSING)

        self._activate(name, f"vlan{vid}", report)
        return RealizedInterface(name=device, role=InterfaceRole.VLAN, profile=name, vlan_id=vid, created=True)

    def _activate(self, name: str, step: str, report: ApplyReport) -> None:
        try:
            self._profiles.activate(name)
        except ProfileActivationError as e:
            logger.warning(f"{e} (continuing, the link may come up later)")
            report.recoverable(step, str(e))
        else:
            report.ok(step, f"{name} up")
