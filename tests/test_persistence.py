"""Tests for the env-file format, unit rendering and the config file."""

from mdnsbridge.config import BridgePaths
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.persistence import (
    ConfigFile,
    load_configuration,
    parse_env_text,
    render_env_text,
    render_launcher,
    render_unit,
)


class TestParseEnvText:
    def test_quotes_comments_and_export(self):
        text = (
            "# comment\n"
            "\n"
            'PHY_IF="enp3s0"\n'
            "export MGMT_MODE='tagged'\n"
            "MGMT_VID=99\n"
            "garbage line\n"
            'VLAN_LIST_STR=""\n'
        )
        assert parse_env_text(text) == {
            "PHY_IF": "enp3s0",
            "MGMT_MODE": "tagged",
            "MGMT_VID": "99",
            "VLAN_LIST_STR": "",
        }


class TestRenderEnvText:
    def test_every_key_is_written(self, make_spec):
        spec = make_spec(reflect_filters=("_airplay._tcp.local",), reflect_ipv=False)
        text = render_env_text(PersistedConfig(spec=spec, owned_profiles=("mdns-vlan10",)))
        values = parse_env_text(text)

        assert values["PHY_IF"] == "eth0"
        assert values["MGMT_MODE"] == "untagged"
        assert values["MGMT_VID"] == ""
        assert values["VLAN_LIST_STR"] == "10 30 50"
        assert values["MGMT_IP_METHOD"] == "dhcp"
        assert values["MGMT_NEVER_DEFAULT"] == "yes"
        assert values["AVAHI_REFLECT_FILTERS"] == "_airplay._tcp.local"
        assert values["AVAHI_REFLECT_IPV"] == "no"
        assert values["OWNED_PROFILES_STR"] == "mdns-vlan10"

    def test_reloads_to_same_spec(self, paths, make_spec):
        spec = make_spec(mgmt_mode="tagged", mgmt_vid=99, vlan_ids=(20, 40), mgmt_never_default=False)
        ConfigFile(paths.config_file).save(PersistedConfig(spec=spec, owned_profiles=("mdns-vlan20",)))

        loaded, persisted = load_configuration(paths, environ={})

        assert loaded == spec
        assert persisted.owned_profiles == ("mdns-vlan20",)


class TestRenderUnit:
    def test_oneshot_after_network_online(self):
        unit = render_unit(BridgePaths())
        assert "Type=oneshot" in unit
        assert "RemainAfterExit=yes" in unit
        assert "After=network-online.target NetworkManager-wait-online.service" in unit
        assert "ExecStart=/usr/local/sbin/mdns-bridge-nm apply --config /etc/mdns-bridge.env" in unit
        assert "WantedBy=multi-user.target" in unit

    def test_launcher_uses_given_interpreter(self):
        launcher = render_launcher("/opt/venv/bin/python")
        assert launcher.startswith("#!/opt/venv/bin/python\n")
        assert "from mdnsbridge.__main__ import main" in launcher


class TestConfigFile:
    def test_read_missing(self, paths):
        assert ConfigFile(paths.config_file).read() is None

    def test_record_owned_rewrites_only_ledger_line(self, paths):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text('# hand edited\nPHY_IF="eth1"\nOWNED_PROFILES_STR="mdns-vlan10"\n')
        config = ConfigFile(paths.config_file)

        assert config.record_owned(["mdns-vlan10", "mdns-vlan30"]) is True

        text = paths.config_file.read_text()
        assert text.startswith('# hand edited\nPHY_IF="eth1"\n')
        assert 'OWNED_PROFILES_STR="mdns-vlan10 mdns-vlan30"' in text

    def test_record_owned_appends_missing_ledger(self, paths):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text('PHY_IF="eth0"\n')

        ConfigFile(paths.config_file).record_owned(["mdns-vlan10"])

        assert parse_env_text(paths.config_file.read_text())["OWNED_PROFILES_STR"] == "mdns-vlan10"

    def test_record_owned_noop(self, paths):
        paths.config_file.parent.mkdir(parents=True)
        paths.config_file.write_text('OWNED_PROFILES_STR="mdns-vlan10"\n')
        assert ConfigFile(paths.config_file).record_owned(["mdns-vlan10"]) is False

    def test_record_owned_without_file(self, paths):
        assert ConfigFile(paths.config_file).record_owned(["mdns-vlan10"]) is False
        assert not paths.config_file.exists()

    def test_remove(self, paths):
        config = ConfigFile(paths.config_file)
        assert config.remove() is False
        config.save(PersistedConfig(spec=load_configuration(paths, environ={})[0]))
        assert config.remove() is True
        assert not paths.config_file.exists()
