"""Tests for layered spec construction and file paths."""

from pathlib import Path

import pytest

from mdnsbridge.config import (
    BridgePaths,
    build_persisted,
    build_spec,
    environment_overrides,
    values_to_fields,
)
from mdnsbridge.exceptions import ConfigurationError
from mdnsbridge.models.spec import IpMethod, MgmtMode


class TestBridgePaths:
    def test_defaults(self):
        paths = BridgePaths()
        assert paths.config_file == Path("/etc/mdns-bridge.env")
        assert paths.avahi_conf == Path("/etc/avahi/avahi-daemon.conf")
        assert paths.avahi_backup == Path("/etc/avahi/avahi-daemon.conf.bak")
        assert paths.nftables_backup == Path("/etc/nftables.conf.bak")
        assert paths.unit_name == "mdns-bridge.service"
        assert paths.lock_file == Path("/var/lib/mdns-bridge/mdns-bridge.lock")

    def test_under_reroots_every_path(self, tmp_path):
        paths = BridgePaths.under(tmp_path)
        assert paths.config_file == tmp_path / "etc/mdns-bridge.env"
        assert paths.systemd_unit == tmp_path / "etc/systemd/system/mdns-bridge.service"
        assert paths.nftables_conf == tmp_path / "etc/nftables.conf"
        assert paths.install_bin == tmp_path / "usr/local/sbin/mdns-bridge-nm"


class TestValuesToFields:
    def test_conversions(self):
        fields = values_to_fields(
            {
                "PHY_IF": "enp3s0",
                "MGMT_VID": "",
                "VLAN_LIST_STR": "10  30 50",
                "MGMT_DNS_STR": "1.1.1.1, 9.9.9.9",
                "AVAHI_REFLECT_FILTERS": "_airplay._tcp.local, _ipp._tcp.local",
                "AVAHI_REFLECT_IPV": "no",
                "UNRELATED": "x",
            }
        )
        assert fields == {
            "trunk": "enp3s0",
            "mgmt_vid": None,
            "vlan_ids": (10, 30, 50),
            "dns": ("1.1.1.1", "9.9.9.9"),
            "reflect_filters": ("_airplay._tcp.local", "_ipp._tcp.local"),
            "reflect_ipv": False,
        }

    def test_non_numeric_vlan(self):
        with pytest.raises(ConfigurationError, match="VLAN_LIST_STR"):
            values_to_fields({"VLAN_LIST_STR": "10 abc"})

    def test_bad_boolean(self):
        with pytest.raises(ConfigurationError, match="AVAHI_REFLECT_IPV"):
            values_to_fields({"AVAHI_REFLECT_IPV": "maybe"})


class TestBuildSpec:
    def test_defaults_only(self):
        spec = build_spec(environ={})
        assert spec.trunk == "eth0"
        assert spec.vlan_ids == (10, 30, 50)

    def test_precedence(self):
        persisted = {"PHY_IF": "eth1", "VLAN_LIST_STR": "10", "MGMT_MODE": "untagged"}
        environ = {"MDNS_BRIDGE_PHY_IF": "eth2", "MDNS_BRIDGE_VLAN_LIST_STR": "20"}
        overrides = {"VLAN_LIST_STR": "40 41"}

        spec = build_spec(persisted, overrides, environ)

        assert spec.trunk == "eth2"
        assert spec.vlan_ids == (40, 41)
        assert spec.mgmt_mode is MgmtMode.UNTAGGED

    def test_unprefixed_environment_is_ignored(self):
        spec = build_spec(environ={"PHY_IF": "eth9"})
        assert spec.trunk == "eth0"

    def test_static_from_values(self):
        spec = build_spec(
            {
                "MGMT_IP_METHOD": "static",
                "MGMT_ADDR": "10.0.0.5/24",
                "MGMT_GW": "10.0.0.1",
                "MGMT_DNS_STR": "10.0.0.1",
            },
            environ={},
        )
        assert spec.ip_method is IpMethod.STATIC
        assert spec.dns == ("10.0.0.1",)

    def test_pydantic_errors_become_configuration_errors(self):
        with pytest.raises(ConfigurationError, match="Invalid topology"):
            build_spec({"MGMT_MODE": "sideways"}, environ={})

    def test_environment_overrides(self):
        found = environment_overrides({"MDNS_BRIDGE_MGMT_VID": "99", "MDNS_BRIDGE_BOGUS": "1"})
        assert found == {"MGMT_VID": "99"}


class TestBuildPersisted:
    def test_without_ledger(self, spec):
        persisted = build_persisted({"PHY_IF": "eth0"}, spec)
        assert persisted.has_ownership_record is False
        assert persisted.owned_profiles == ()

    def test_with_ledger(self, spec):
        persisted = build_persisted({"OWNED_PROFILES_STR": "mdns-mgmt-eth0-untagged mdns-vlan10"}, spec)
        assert persisted.has_ownership_record is True
        assert persisted.owned_profiles == ("mdns-mgmt-eth0-untagged", "mdns-vlan10")

    def test_empty_ledger_is_still_a_record(self, spec):
        persisted = build_persisted({"OWNED_PROFILES_STR": ""}, spec)
        assert persisted.has_ownership_record is True
        assert persisted.owned_profiles == ()
