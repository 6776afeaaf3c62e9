"""Reverse of install: boot trigger, persisted config, owned profiles, artifacts."""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from mdnsbridge.base.client import BaseHost
from mdnsbridge.config import BridgePaths
from mdnsbridge.exceptions import DaemonError, HostFileError, ProfileError
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.models.spec import DesiredTopologySpec
from mdnsbridge.persistence import ConfigFile


@dataclass
class UninstallReport:
    deleted_profiles: list[str] = field(default_factory=list)
    restored: list[Path] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


def profiles_to_delete(spec: DesiredTopologySpec, persisted: PersistedConfig | None) -> list[str]:
    """Profiles uninstall may remove; adopted profiles are never among them.

    VLAN profiles are always tool-owned. Management profiles are only
    removed when the ownership ledger lists them; configs written before the
    ledger existed fall back to the naming convention.
    """
    names = [spec.vlan_profile(vid) for vid in spec.vlan_ids]
    if persisted is not None and persisted.has_ownership_record:
        names += persisted.owned_profiles
    else:
        names += spec.mgmt_profile_candidates()
    return list(dict.fromkeys(names))


class Uninstaller:
    """Undo install in reverse order, restoring the one-shot backups."""

    def __init__(self, host: BaseHost, paths: BridgePaths):
        self.host = host
        self.paths = paths

    def uninstall(self, spec: DesiredTopologySpec, persisted: PersistedConfig | None = None) -> UninstallReport:
        report = UninstallReport()
        self.host.require_tools()

        self._remove_boot_trigger(report)

        self.paths.install_bin.unlink(missing_ok=True)
        ConfigFile(self.paths.config_file).remove()

        # Remove profiles created by us (do NOT touch the operator's other profiles)
        for name in profiles_to_delete(spec, persisted):
            if not self.host.profiles.exists(name):
                continue
            try:
                self.host.profiles.delete(name)
            except ProfileError as e:
                report.warn(str(e))
            else:
                logger.info(f"Deleted profile {name}")
                report.deleted_profiles.append(name)

        self._restore_reflector(report)
        self._restore_firewall(report)

        logger.info("Uninstalled mdns-bridge (NetworkManager variant).")
        return report

    def _remove_boot_trigger(self, report: UninstallReport) -> None:
        services = self.host.services
        try:
            services.disable(self.paths.unit_name, now=True)
        except DaemonError as e:
            logger.debug(f"Disabling {self.paths.unit_name}: {e}")
        self.paths.systemd_unit.unlink(missing_ok=True)
        try:
            services.daemon_reload()
        except DaemonError as e:
            report.warn(str(e))

    def _restore_reflector(self, report: UninstallReport) -> None:
        backup, target = self.paths.avahi_backup, self.paths.avahi_conf
        if not backup.exists():
            return
        try:
            shutil.copy2(backup, target)
        except OSError as e:
            raise HostFileError(str(target), str(e)) from e
        report.restored.append(target)
        logger.info(f"Restored {target}")
        try:
            self.host.reflector.activate()
        except DaemonError as e:
            report.warn(f"Restored {target} but the reflector did not restart: {e}")

    def _restore_firewall(self, report: UninstallReport) -> None:
        backup, target = self.paths.nftables_backup, self.paths.nftables_conf
        if not backup.exists():
            return
        result = self.host.firewall.check(backup)
        if not result.ok:
            report.warn(f"Backup {backup} is invalid; left current config in place.")
            return
        try:
            shutil.copy2(backup, target)
        except OSError as e:
            raise HostFileError(str(target), str(e)) from e
        report.restored.append(target)
        logger.info(f"Restored {target}")
        try:
            self.host.firewall.activate()
        except DaemonError as e:
            report.warn(f"Restored {target} but the firewall did not restart: {e}")
