"""Avahi reflector config and nftables ruleset generators.

Both renderers are pure functions of the realized :class:`TopologyState`;
the same state always renders to byte-identical text.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from loguru import logger

from mdnsbridge._util import format_bool
from mdnsbridge.exceptions import HostFileError
from mdnsbridge.models.artifact import ArtifactKind, ArtifactWrite, GeneratedArtifact
from mdnsbridge.models.topology import TopologyState

HEADER = "# Generated by mdns-bridge. Changes are overwritten on the next apply."

# Reflector storm cap: at most RATELIMIT_BURST packets per interval
RATELIMIT_INTERVAL_USEC = 1_000_000
RATELIMIT_BURST = 1000

MDNS_PORT = 5353
DHCP_SERVER_PORT = 67
DHCP_CLIENT_PORT = 68

MGMT_SET = "mgmt_iface"
VLAN_SET = "vlan_ifaces"


def render_reflector_config(
    state: TopologyState,
    reflect_filters: tuple[str, ...] = (),
    reflect_ipv: bool = True,
) -> str:
    """Render avahi-daemon.conf listening and publishing on every realized interface."""
    lines = [
        HEADER,
        "[server]",
        "use-ipv4=yes",
        "use-ipv6=yes",
        # relay only, never answer from cache
        "cache-entries-max=0",
        f"ratelimit-interval-usec={RATELIMIT_INTERVAL_USEC}",
        f"ratelimit-burst={RATELIMIT_BURST}",
        f"allow-interfaces={','.join(state.interface_names)}",
        "",
        "[reflector]",
        "enable-reflector=yes",
        f"reflect-ipv={format_bool(reflect_ipv)}",
    ]
    if reflect_filters:
        lines.append(f"reflect-filters={','.join(reflect_filters)}")
    lines += [
        "",
        "[wide-area]",
        "enable-wide-area=yes",
        "",
        "[publish]",
        "publish-hinfo=no",
        "publish-workstation=no",
    ]
    return "\n".join(lines) + "\n"


def _nft_set(name: str, members: list[str]) -> list[str]:
    lines = [f"  set {name} {{", "    type ifname"]
    # nft rejects an empty element list, so an empty set has no elements line
    if members:
        elements = ", ".join(f'"{m}"' for m in members)
        lines.append(f"    elements = {{ {elements} }}")
    lines.append("  }")
    return lines


def render_firewall_ruleset(state: TopologyState) -> str:
    """Render the nftables ruleset.

    Input is default-drop with management fully trusted and VLANs limited to
    DHCP client replies and mDNS. Forward is default-drop with no accept
    rules at all: VLANs only ever meet through the reflector.
    """
    lines = [
        HEADER,
        "flush ruleset",
        "table inet filter {",
        *_nft_set(MGMT_SET, [state.management.name]),
        "",
        *_nft_set(VLAN_SET, state.vlan_names),
        "",
        "  chain input {",
        "    type filter hook input priority 0; policy drop;",
        "",
        "    # Loopback & established",
        '    iif "lo" accept',
        "    ct state established,related accept",
        "",
        "    # Control protocols (multicast helpers)",
        "    ip protocol icmp accept",
        "    ip protocol igmp accept",
        "    ip6 nexthdr icmpv6 accept",
        "",
        "    # Management: allow everything",
        f"    iifname @{MGMT_SET} accept",
        "",
        "    # DHCP replies (server -> client) on bridged VLANs",
        f"    iifname @{VLAN_SET} udp sport {DHCP_SERVER_PORT} udp dport {DHCP_CLIENT_PORT} accept",
        "",
        f"    # mDNS (UDP/{MDNS_PORT}) on management and bridged VLANs",
        f"    iifname @{MGMT_SET} udp dport {MDNS_PORT} accept",
        f"    iifname @{VLAN_SET} udp dport {MDNS_PORT} accept",
        "  }",
        "",
        "  chain forward { type filter hook forward priority 0; policy drop; }",
        "  chain output  { type filter hook output  priority 0; policy accept; }",
        "}",
    ]
    return "\n".join(lines) + "\n"


class ReflectorConfigGenerator:
    """Builds the Avahi reflector artifact."""

    def __init__(self, target: Path, backup: Path | None = None):
        self.target = target
        self.backup = backup

    def generate(
        self, state: TopologyState, reflect_filters: tuple[str, ...] = (), reflect_ipv: bool = True
    ) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind=ArtifactKind.REFLECTOR_CONFIG,
            target=self.target,
            content=render_reflector_config(state, reflect_filters, reflect_ipv),
            backup=self.backup,
        )


class FirewallRulesetGenerator:
    """Builds the nftables artifact."""

    def __init__(self, target: Path, backup: Path | None = None):
        self.target = target
        self.backup = backup

    def generate(self, state: TopologyState) -> GeneratedArtifact:
        return GeneratedArtifact(
            kind=ArtifactKind.FIREWALL_RULESET,
            target=self.target,
            content=render_firewall_ruleset(state),
            backup=self.backup,
        )


class ArtifactWriter:
    """Writes artifacts, snapshotting the pre-existing file exactly once."""

    def __init__(self, mode: int = 0o644):
        self.mode = mode

    def write(self, artifact: GeneratedArtifact) -> ArtifactWrite:
        target = artifact.target
        try:
            return self._write(artifact)
        except (OSError, UnicodeDecodeError) as e:
            raise HostFileError(str(target), str(e)) from e

    def _write(self, artifact: GeneratedArtifact) -> ArtifactWrite:
        target = artifact.target
        outcome = ArtifactWrite(artifact=artifact)

        if target.exists():
            if target.read_text() == artifact.content:
                logger.debug(f"No change needed: {target}")
                return outcome
            outcome.backed_up = self._backup_once(target, artifact.backup)

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(artifact.content)
        target.chmod(self.mode)
        outcome.changed = True
        logger.info(f"Wrote {target}")
        return outcome

    @staticmethod
    def _backup_once(target: Path, backup: Path | None) -> bool:
        if backup is None or backup.exists():
            return False
        shutil.copy2(target, backup)
        logger.info(f"Backed up {target} to {backup}")
        return True
