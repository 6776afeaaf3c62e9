"""Terminal summaries for apply/install/uninstall."""

from __future__ import annotations

from tabulate import tabulate

from mdnsbridge._util import format_bool
from mdnsbridge.models.outcome import ApplyReport
from mdnsbridge.models.spec import DesiredTopologySpec
from mdnsbridge.uninstall import UninstallReport

QUICK_TESTS = (
    "nmcli con show --active",
    "systemctl status avahi-daemon --no-pager",
    "sudo nft -c -f /etc/nftables.conf && sudo nft list ruleset | sed -n '1,160p'",
    "From a VLAN client: avahi-browse -a",
)


class TerminalFormatter:
    """Format an ApplyReport as plain-text terminal output."""

    def __init__(self, report: ApplyReport, spec: DesiredTopologySpec) -> None:
        self.report = report
        self.spec = spec

    def format(self) -> str:
        """Return the complete terminal output as a string."""
        state = self.report.state
        lines: list[str] = []

        if state is not None:
            rows = [[state.management.name, "management", state.management.profile, format_bool(state.management.created)]]
            for v in state.vlans:
                rows.append([v.name, f"vlan {v.vlan_id}", v.profile, format_bool(v.created)])
            lines.append(tabulate(rows, headers=["Interface", "Role", "Profile", "Owned"], tablefmt="simple"))
            lines.append("")

        lines.append(f"Avahi:     listen+publish on management+VLANs, reflect-ipv={format_bool(self.spec.reflect_ipv)}")
        if self.spec.reflect_filters:
            lines.append(f"           reflect-filters: {len(self.spec.reflect_filters)} service types")
        lines.append("nftables:  input DROP; mgmt=ACCEPT; VLANs allow DHCP(client) + mDNS; forward DROP")

        for write in self.report.writes:
            note = "updated" if write.changed else "unchanged"
            if write.backed_up:
                note += f", original saved to {write.artifact.backup}"
            lines.append(f"  {write.artifact.target}: {note}")

        if self.report.warnings:
            lines.append("")
            lines.append("Warnings:")
            for outcome in self.report.warnings:
                lines.append(f"  - [{outcome.step}] {outcome.message}")

        lines.append("")
        lines.append("Quick tests:")
        lines.extend(f"  - {t}" for t in QUICK_TESTS)
        return "\n".join(lines)


def format_uninstall(report: UninstallReport) -> str:
    lines = [f"Deleted profiles: {', '.join(report.deleted_profiles) or '-'}"]
    lines.append(f"Restored files:   {', '.join(str(p) for p in report.restored) or '-'}")
    for warning in report.warnings:
        lines.append(f"  - {warning}")
    return "\n".join(lines)
