"""Tests for the NetworkManager backend using a mocked command runner."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mdnsbridge.backends.networkmanager import NetworkManagerHost
from mdnsbridge.backends.networkmanager.profiles import NmcliProfileStore
from mdnsbridge.backends.networkmanager.runner import SubprocessRunner
from mdnsbridge.backends.networkmanager.services import NftablesFirewall, SystemdServiceManager
from mdnsbridge.base.managers import ProfileKind
from mdnsbridge.base.transport import BaseCommandRunner, CommandResult
from mdnsbridge.exceptions import DaemonError, ExternalToolMissing, ProfileActivationError, ProfileError


class _InstalledTools(BaseCommandRunner):
    """Runner whose ``which`` only knows the given tools."""

    def __init__(self, installed):
        self.installed = set(installed)
        self.ran = []

    def run(self, cmd, timeout=None):
        self.ran.append(cmd)
        return CommandResult(args=cmd)

    def which(self, tool):
        return f"/usr/bin/{tool}" if tool in self.installed else None


def _commands(runner):
    return [c.args[0] for c in runner.run.call_args_list]


class TestNmcliProfileStore:
    def test_create_ethernet(self, mock_runner):
        NmcliProfileStore(mock_runner).create(ProfileKind.ETHERNET, "eth0", "mdns-mgmt-eth0-untagged")
        assert _commands(mock_runner) == [
            ["nmcli", "con", "add", "type", "ethernet", "ifname", "eth0", "con-name", "mdns-mgmt-eth0-untagged"]
        ]

    def test_create_vlan(self, mock_runner):
        NmcliProfileStore(mock_runner).create(ProfileKind.VLAN, "eth0.10", "mdns-vlan10", parent="eth0", vlan_id=10)
        assert _commands(mock_runner) == [
            [
                "nmcli", "con", "add", "type", "vlan", "ifname", "eth0.10",
                "dev", "eth0", "id", "10", "con-name", "mdns-vlan10",
            ]
        ]

    def test_create_vlan_without_parent(self, mock_runner):
        with pytest.raises(ProfileError):
            NmcliProfileStore(mock_runner).create(ProfileKind.VLAN, "eth0.10", "mdns-vlan10")
        mock_runner.run.assert_not_called()

    def test_create_failure(self, mock_runner):
        mock_runner.run.return_value = CommandResult(returncode=1, stderr="Error: bad ifname")
        with pytest.raises(ProfileError, match="bad ifname"):
            NmcliProfileStore(mock_runner).create(ProfileKind.ETHERNET, "eth0", "x")

    def test_modify(self, mock_runner):
        NmcliProfileStore(mock_runner).modify("mdns-vlan10", {"ipv4.method": "auto", "ipv6.method": "ignore"})
        assert _commands(mock_runner) == [
            ["nmcli", "con", "mod", "mdns-vlan10", "ipv4.method", "auto", "ipv6.method", "ignore"]
        ]

    def test_modify_nothing(self, mock_runner):
        NmcliProfileStore(mock_runner).modify("mdns-vlan10", {})
        mock_runner.run.assert_not_called()

    def test_activate_uses_long_timeout(self, mock_runner):
        NmcliProfileStore(mock_runner).activate("mdns-vlan10")
        mock_runner.run.assert_called_once_with(["nmcli", "con", "up", "mdns-vlan10"], timeout=120)

    def test_activate_failure(self, mock_runner):
        mock_runner.run.return_value = CommandResult(returncode=4, stderr="Error: no carrier")
        with pytest.raises(ProfileActivationError) as exc_info:
            NmcliProfileStore(mock_runner).activate("mdns-vlan10")
        assert exc_info.value.profile == "mdns-vlan10"
        assert "no carrier" in str(exc_info.value)

    def test_active_profile_for_device(self, mock_runner):
        mock_runner.run.return_value = CommandResult(
            stdout="Wired connection 1:eth0\nmdns-vlan10:eth0.10\nlo:lo\nweird\\:name:wlan0\n"
        )
        store = NmcliProfileStore(mock_runner)
        assert store.active_profile_for_device("eth0") == "Wired connection 1"
        assert store.active_profile_for_device("wlan0") == "weird:name"
        assert store.active_profile_for_device("eth1") is None

    def test_exists_matches_exact_name(self, mock_runner):
        mock_runner.run.return_value = CommandResult(stdout="mdns-vlan10\nmdns-vlan100\n")
        store = NmcliProfileStore(mock_runner)
        assert store.exists("mdns-vlan10") is True
        assert store.exists("mdns-vlan1") is False

    def test_delete(self, mock_runner):
        NmcliProfileStore(mock_runner).delete("mdns-vlan10")
        assert _commands(mock_runner) == [["nmcli", "con", "delete", "mdns-vlan10"]]

    def test_properties(self, mock_runner):
        mock_runner.run.return_value = CommandResult(
            stdout="ipv4.method:manual\nipv4.addresses:192.168.1.5/24\nipv4.never-default:no\n"
        )
        props = NmcliProfileStore(mock_runner).properties("Wired connection 1")
        assert props == {
            "ipv4.method": "manual",
            "ipv4.addresses": "192.168.1.5/24",
            "ipv4.never-default": "no",
        }


class TestServices:
    def test_enable_now(self, mock_runner):
        SystemdServiceManager(mock_runner).enable("NetworkManager", now=True)
        assert _commands(mock_runner) == [["systemctl", "enable", "--now", "NetworkManager"]]

    def test_disable(self, mock_runner):
        SystemdServiceManager(mock_runner).disable("mdns-bridge.service")
        assert _commands(mock_runner) == [["systemctl", "disable", "mdns-bridge.service"]]

    def test_restart_failure(self, mock_runner):
        mock_runner.run.return_value = CommandResult(returncode=1, stderr="Job failed")
        with pytest.raises(DaemonError) as exc_info:
            SystemdServiceManager(mock_runner).restart("avahi-daemon")
        assert exc_info.value.unit == "avahi-daemon"

    def test_daemon_reload(self, mock_runner):
        SystemdServiceManager(mock_runner).daemon_reload()
        assert _commands(mock_runner) == [["systemctl", "daemon-reload"]]

    def test_nft_check(self, mock_runner):
        mock_runner.run.return_value = CommandResult(returncode=1, stderr="Error: syntax error\n")
        firewall = NftablesFirewall(mock_runner, SystemdServiceManager(mock_runner))

        result = firewall.check(Path("/etc/nftables.conf"))

        assert result.ok is False
        assert result.output == "Error: syntax error"
        assert _commands(mock_runner) == [["nft", "-c", "-f", "/etc/nftables.conf"]]


class TestNetworkManagerHost:
    def test_reflector_activation_enables_and_restarts(self, mock_runner):
        NetworkManagerHost(runner=mock_runner).reflector.activate()
        assert _commands(mock_runner) == [
            ["systemctl", "enable", "avahi-daemon"],
            ["systemctl", "restart", "avahi-daemon"],
        ]

    def test_collaborators_are_cached(self, mock_runner):
        host = NetworkManagerHost(runner=mock_runner)
        assert host.profiles is host.profiles
        assert host.firewall is host.firewall

    def test_require_tools_reports_first_missing(self):
        runner = _InstalledTools({"nmcli", "avahi-daemon", "systemctl"})
        with pytest.raises(ExternalToolMissing) as exc_info:
            NetworkManagerHost(runner=runner).require_tools()
        assert exc_info.value.tool == "nft"
        assert runner.ran == []

    def test_require_tools_all_present(self):
        runner = _InstalledTools({"nmcli", "avahi-daemon", "nft", "systemctl"})
        NetworkManagerHost(runner=runner).require_tools()

    def test_ensure_profile_manager(self, mock_runner):
        NetworkManagerHost(runner=mock_runner).ensure_profile_manager()
        assert _commands(mock_runner) == [["systemctl", "enable", "--now", "NetworkManager"]]


class TestSubprocessRunner:
    def test_missing_binary(self):
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            with pytest.raises(ExternalToolMissing) as exc_info:
                SubprocessRunner().run(["nmcli", "con", "show"])
        assert exc_info.value.tool == "nmcli"

    def test_timeout_is_a_failed_result(self):
        with patch("subprocess.run", side_effect=subprocess.TimeoutExpired(["nmcli"], 120)):
            result = SubprocessRunner().run(["nmcli", "con", "up", "x"], timeout=120)
        assert result.returncode == 124
        assert result.ok is False

    def test_captures_output(self):
        completed = MagicMock(returncode=0, stdout="ok\n", stderr="")
        with patch("subprocess.run", return_value=completed) as run:
            result = SubprocessRunner(timeout=5).run(["nft", "-c", "-f", "x"])
        run.assert_called_once_with(["nft", "-c", "-f", "x"], capture_output=True, text=True, timeout=5)
        assert result.stdout == "ok\n"
        assert result.ok
