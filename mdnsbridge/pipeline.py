"""The apply pipeline: reconcile, generate, validate, activate."""

from __future__ import annotations

import os
from typing import Callable

from loguru import logger

from mdnsbridge.base.client import BaseHost
from mdnsbridge.config import BridgePaths
from mdnsbridge.exceptions import DaemonError, PrivilegeError
from mdnsbridge.generators import ArtifactWriter, FirewallRulesetGenerator, ReflectorConfigGenerator
from mdnsbridge.models.outcome import ApplyReport
from mdnsbridge.models.spec import DesiredTopologySpec
from mdnsbridge.reconciler import InterfaceReconciler, ifupdown_claims
from mdnsbridge.validation import ValidationGate


def check_privileges(geteuid: Callable[[], int] | None = None) -> None:
    """Raise :class:`PrivilegeError` unless running as root."""
    if (geteuid or os.geteuid)() != 0:
        raise PrivilegeError("Run as root.")


class ApplyPipeline:
    """One idempotent apply run against a host.

    Data flows strictly forward: spec, realized topology, artifacts,
    validation, daemon activation. Any ``BridgeError`` raised here is fatal
    and stops the remaining steps; everything else is collected in the
    returned :class:`ApplyReport`.
    """

    def __init__(self, host: BaseHost, paths: BridgePaths):
        self.host = host
        self.paths = paths
        self.reconciler = InterfaceReconciler(host.profiles)
        self.reflector_generator = ReflectorConfigGenerator(paths.avahi_conf, paths.avahi_backup)
        self.firewall_generator = FirewallRulesetGenerator(paths.nftables_conf, paths.nftables_backup)
        self.writer = ArtifactWriter()
        self.gate = ValidationGate(host.firewall)

    def run(self, spec: DesiredTopologySpec, known_owned: frozenset[str] = frozenset()) -> ApplyReport:
        report = ApplyReport()
        self.host.require_tools()
        self._prepare(spec, report)

        state = self.reconciler.reconcile(spec, report, known_owned)

        logger.info("Configuring Avahi reflector (listen + publish on management and bridged VLANs)...")
        reflector = self.reflector_generator.generate(state, spec.reflect_filters, spec.reflect_ipv)
        report.writes.append(self.writer.write(reflector))
        try:
            self.host.reflector.activate()
        except DaemonError as e:
            logger.warning(f"Reflector restart failed: {e}")
            report.recoverable("reflector", str(e))
        else:
            report.ok("reflector", "restarted")

        logger.info("Applying nftables policy...")
        firewall = self.firewall_generator.generate(state)
        report.writes.append(self.writer.write(firewall))
        self.gate.activate(firewall)
        report.ok("firewall", "validated and reloaded")
        return report

    def _prepare(self, spec: DesiredTopologySpec, report: ApplyReport) -> None:
        self.host.ensure_profile_manager()
        if ifupdown_claims(self.paths.ifupdown_conf, spec.trunk):
            message = (
                f"ifupdown config seems present for {spec.trunk}. "
                "Prefer letting NetworkManager manage it (avoid mixing)."
            )
            logger.warning(message)
            report.recoverable("ifupdown", message)
