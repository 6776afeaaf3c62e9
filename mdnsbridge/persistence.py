"""Durable configuration, boot-time trigger and the install operation."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Mapping

from loguru import logger

from mdnsbridge._util import format_bool
from mdnsbridge.base.client import BaseHost
from mdnsbridge.config import OWNED_KEY, BridgePaths, build_persisted, build_spec
from mdnsbridge.exceptions import HostFileError
from mdnsbridge.models.outcome import ApplyReport
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.models.spec import DesiredTopologySpec
from mdnsbridge.pipeline import ApplyPipeline


def parse_env_text(text: str) -> dict[str, str]:
    """Parse ``KEY=value`` lines; blank lines, comments and junk are skipped."""
    values: dict[str, str] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        key = key.strip()
        if key.startswith("export "):
            key = key[len("export ") :].strip()
        value = value.strip()
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]
        values[key] = value
    return values


def render_env_text(persisted: PersistedConfig) -> str:
    spec = persisted.spec

    def kv(key: str, value: str) -> str:
        return f'{key}="{value}"'

    lines = [
        "# mdns-bridge (NetworkManager) config",
        kv("PHY_IF", spec.trunk),
        kv("MGMT_MODE", spec.mgmt_mode.value),
        kv("MGMT_VID", "" if spec.mgmt_vid is None else str(spec.mgmt_vid)),
        kv("VLAN_LIST_STR", " ".join(str(v) for v in spec.vlan_ids)),
        "",
        kv("MGMT_IP_METHOD", spec.ip_method.value),
        kv("MGMT_ADDR", spec.address),
        kv("MGMT_GW", spec.gateway),
        kv("MGMT_DNS_STR", " ".join(spec.dns)),
        kv("MGMT_NEVER_DEFAULT", format_bool(spec.mgmt_never_default)),
        "",
        kv("AVAHI_REFLECT_FILTERS", ",".join(spec.reflect_filters)),
        kv("AVAHI_REFLECT_IPV", format_bool(spec.reflect_ipv)),
        "",
        "# profiles created by mdns-bridge, removed again by uninstall",
        kv(OWNED_KEY, " ".join(persisted.owned_profiles)),
    ]
    return "\n".join(lines) + "\n"


def render_unit(paths: BridgePaths) -> str:
    """Systemd oneshot that runs apply once NetworkManager reports the network online."""
    return (
        "[Unit]\n"
        "Description=mDNS bridge setup (NetworkManager + Avahi + nftables)\n"
        "Wants=network-online.target NetworkManager-wait-online.service\n"
        "After=network-online.target NetworkManager-wait-online.service\n"
        "\n"
        "[Service]\n"
        "Type=oneshot\n"
        f"ExecStart={paths.install_bin} apply --config {paths.config_file}\n"
        "RemainAfterExit=yes\n"
        "\n"
        "[Install]\n"
        "WantedBy=multi-user.target\n"
    )


def render_launcher(python: str = sys.executable) -> str:
    return (
        f"#!{python}\n"
        "# mdns-bridge entrypoint, installed by 'mdns-bridge install'\n"
        "from mdnsbridge.__main__ import main\n"
        "\n"
        'if __name__ == "__main__":\n'
        "    main()\n"
    )


class ConfigFile:
    """The env file holding the persisted spec. Owned by the persistence layer."""

    def __init__(self, path: Path):
        self.path = path

    def exists(self) -> bool:
        return self.path.is_file()

    def read(self) -> dict[str, str] | None:
        if not self.exists():
            return None
        try:
            return parse_env_text(self.path.read_text())
        except (OSError, UnicodeDecodeError) as e:
            raise HostFileError(str(self.path), str(e)) from e

    def save(self, persisted: PersistedConfig) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(render_env_text(persisted))
            self.path.chmod(0o644)
        except OSError as e:
            raise HostFileError(str(self.path), str(e)) from e

    def record_owned(self, profiles: list[str]) -> bool:
        """Merge ``profiles`` into the ownership ledger, leaving other keys as written."""
        values = self.read()
        if values is None:
            return False
        owned = values.get(OWNED_KEY, "").split()
        added = [p for p in profiles if p not in owned]
        if not added:
            return False

        line = f'{OWNED_KEY}="{" ".join(owned + added)}"'
        try:
            lines = self.path.read_text().splitlines()
        except (OSError, UnicodeDecodeError) as e:
            raise HostFileError(str(self.path), str(e)) from e
        for i, existing in enumerate(lines):
            if existing.strip().startswith(f"{OWNED_KEY}="):
                lines[i] = line
                break
        else:
            lines.append(line)
        try:
            self.path.write_text("\n".join(lines) + "\n")
        except OSError as e:
            raise HostFileError(str(self.path), str(e)) from e
        logger.debug(f"Recorded owned profiles {added} in {self.path}")
        return True

    def remove(self) -> bool:
        if not self.path.exists():
            return False
        self.path.unlink()
        return True


def load_configuration(
    paths: BridgePaths,
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> tuple[DesiredTopologySpec, PersistedConfig | None]:
    """Effective spec for this invocation plus the persisted record, if installed."""
    values = ConfigFile(paths.config_file).read()
    spec = build_spec(values, overrides, environ)
    persisted = build_persisted(values, spec) if values is not None else None
    return spec, persisted


class PersistenceManager:
    """apply (idempotent, re-runnable) and install (apply + persist + boot trigger)."""

    def __init__(self, host: BaseHost, paths: BridgePaths):
        self.host = host
        self.paths = paths
        self.config_file = ConfigFile(paths.config_file)

    def apply(self, spec: DesiredTopologySpec, persisted: PersistedConfig | None = None) -> ApplyReport:
        known_owned = frozenset(persisted.owned_profiles) if persisted else frozenset()
        report = ApplyPipeline(self.host, self.paths).run(spec, known_owned)
        if report.state is not None and self.config_file.exists():
            self.config_file.record_owned(report.state.owned_profiles)
        return report

    def install(self, spec: DesiredTopologySpec, persisted: PersistedConfig | None = None) -> ApplyReport:
        report = self.apply(spec, persisted)

        self._install_launcher()

        prior = persisted.owned_profiles if persisted else ()
        owned = report.state.owned_profiles if report.state else []
        self.config_file.save(PersistedConfig(spec=spec, owned_profiles=prior).with_owned(owned))
        logger.info(
            f"Wrote config to {self.paths.config_file} "
            f"(edit and 'systemctl restart {self.paths.unit_name}' to apply)."
        )

        unit = self.paths.systemd_unit
        try:
            unit.parent.mkdir(parents=True, exist_ok=True)
            unit.write_text(render_unit(self.paths))
        except OSError as e:
            raise HostFileError(str(unit), str(e)) from e
        self.host.services.daemon_reload()
        self.host.services.enable(self.paths.unit_name)
        logger.info(f"Installed and enabled {self.paths.unit_name} (runs after NetworkManager is online)")
        return report

    def _install_launcher(self) -> None:
        target = self.paths.install_bin
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(render_launcher())
            target.chmod(0o755)
        except OSError as e:
            raise HostFileError(str(target), str(e)) from e
        logger.debug(f"Installed entrypoint {target}")
