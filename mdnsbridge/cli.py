"""Per-verb option parsing and execution for apply / install / uninstall."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from loguru import logger
from tabulate import tabulate

from mdnsbridge import __version__, configure_logging
from mdnsbridge.base.client import BaseHost
from mdnsbridge.config import BridgePaths
from mdnsbridge.exceptions import BridgeError
from mdnsbridge.factory import DEFAULT_BACKEND, create_host, list_backends
from mdnsbridge.formatters import TerminalFormatter, format_uninstall
from mdnsbridge.lock import operation_lock
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.models.spec import DesiredTopologySpec
from mdnsbridge.persistence import PersistenceManager, load_configuration
from mdnsbridge.pipeline import check_privileges
from mdnsbridge.uninstall import Uninstaller

# argparse dest -> env-file key
OVERRIDE_OPTIONS: dict[str, str] = {
    "trunk": "PHY_IF",
    "mgmt_mode": "MGMT_MODE",
    "mgmt_vid": "MGMT_VID",
    "vlans": "VLAN_LIST_STR",
    "ip_method": "MGMT_IP_METHOD",
    "address": "MGMT_ADDR",
    "gateway": "MGMT_GW",
    "dns": "MGMT_DNS_STR",
    "reflect_filters": "AVAHI_REFLECT_FILTERS",
    "reflect_ipv": "AVAHI_REFLECT_IPV",
}


def build_parser(command: str) -> argparse.ArgumentParser:
    """Build the argument parser shared by all three verbs."""
    parser = argparse.ArgumentParser(
        prog=f"mdns-bridge {command}",
        description="Bridge mDNS across VLANs with NetworkManager, Avahi and nftables",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Persisted config file (default: /etc/mdns-bridge.env)",
    )
    parser.add_argument(
        "--root",
        type=Path,
        help="Prefix for every managed file, for staging into an image or test tree",
    )
    parser.add_argument(
        "--backend",
        choices=list_backends(),
        default=DEFAULT_BACKEND,
        help=f"Host backend (default: {DEFAULT_BACKEND})",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    topo = parser.add_argument_group("topology overrides (take precedence over the config file)")
    topo.add_argument("--trunk", help="Trunk interface carrying management + VLANs")
    topo.add_argument("--mgmt-mode", choices=["untagged", "tagged"], help="Management untagged or tagged")
    topo.add_argument("--mgmt-vid", help="Management VLAN id (tagged mode)")
    topo.add_argument("--vlans", help="Bridged VLAN ids, whitespace- or comma-separated (e.g. '10 30 50')")
    topo.add_argument("--ip-method", choices=["dhcp", "static"], help="Management IPv4 method")
    topo.add_argument("--address", help="Static management address in CIDR notation")
    topo.add_argument("--gateway", help="Static management gateway")
    topo.add_argument("--dns", help="Static management DNS servers, whitespace-separated")
    topo.add_argument("--reflect-filters", help="Comma-separated service types to reflect (default: all)")
    topo.add_argument("--reflect-ipv", choices=["yes", "no"], help="Reflect between IPv4 and IPv6")
    return parser


def overrides_from_args(parsed: argparse.Namespace) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for dest, key in OVERRIDE_OPTIONS.items():
        value = getattr(parsed, dest, None)
        if value is None:
            continue
        if dest == "vlans":
            value = value.replace(",", " ")
        overrides[key] = value
    return overrides


def paths_from_args(parsed: argparse.Namespace) -> BridgePaths:
    paths = BridgePaths.under(parsed.root) if parsed.root else BridgePaths()
    if parsed.config:
        paths = paths.model_copy(update={"config_file": parsed.config})
    return paths


def print_startup_banner(command: str, backend: str) -> None:
    startup_rows = [
        ["version", __version__],
        ["command", command],
        ["backend", backend],
    ]
    table_str = tabulate(startup_rows, tablefmt="mixed_grid")
    lines = table_str.split("\n")
    table_width = len(lines[0])
    title = "mdns-bridge starting up"
    title_border = "┍" + "━" * (table_width - 2) + "┑"
    title_row = "│ " + title.center(table_width - 4) + " │"
    separator = lines[0].replace("┍", "┝").replace("┑", "┥").replace("┯", "┿")

    logger.opt(raw=True).debug(
        "\n{}\n", title_border + "\n" + title_row + "\n" + separator + "\n" + "\n".join(lines[1:])
    )


def cmd_apply(host: BaseHost, paths: BridgePaths, spec: DesiredTopologySpec, persisted: PersistedConfig | None) -> None:
    """Converge interfaces and regenerate both configs now."""
    report = PersistenceManager(host, paths).apply(spec, persisted)
    logger.info("Done.")
    print(TerminalFormatter(report, spec).format())


def cmd_install(
    host: BaseHost, paths: BridgePaths, spec: DesiredTopologySpec, persisted: PersistedConfig | None
) -> None:
    """Apply, persist the topology and enable the boot-time unit."""
    report = PersistenceManager(host, paths).install(spec, persisted)
    print(TerminalFormatter(report, spec).format())


def cmd_uninstall(
    host: BaseHost, paths: BridgePaths, spec: DesiredTopologySpec, persisted: PersistedConfig | None
) -> None:
    """Remove the unit, config and owned profiles; restore backed-up configs."""
    report = Uninstaller(host, paths).uninstall(spec, persisted)
    print(format_uninstall(report))


HANDLERS = {
    "apply": cmd_apply,
    "install": cmd_install,
    "uninstall": cmd_uninstall,
}


def main(command: str, args: list[str] | None = None) -> int:
    """Run one verb. Returns the process exit status."""
    parser = build_parser(command)
    parsed = parser.parse_args(args)
    configure_logging("DEBUG" if parsed.verbose else None)
    print_startup_banner(command, parsed.backend)

    handler = HANDLERS[command]
    try:
        check_privileges()
        paths = paths_from_args(parsed)
        spec, persisted = load_configuration(paths, overrides_from_args(parsed))
        with operation_lock(paths.lock_file), create_host(parsed.backend) as host:
            handler(host, paths, spec, persisted)
    except BridgeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return 130
    return 0
