"""Tests for the validation gate and the apply pipeline on the memory backend."""

import pytest

from mdnsbridge.backends.memory import MemoryHost
from mdnsbridge.exceptions import ExternalToolMissing, PrivilegeError, ValidationFailure
from mdnsbridge.models.artifact import ArtifactKind, GeneratedArtifact
from mdnsbridge.pipeline import ApplyPipeline, check_privileges
from mdnsbridge.validation import ValidationGate


class TestCheckPrivileges:
    def test_root(self):
        check_privileges(lambda: 0)

    def test_non_root(self):
        with pytest.raises(PrivilegeError, match="root"):
            check_privileges(lambda: 1000)


class TestValidationGate:
    def _artifact(self, tmp_path, content):
        target = tmp_path / "nftables.conf"
        target.write_text(content)
        return GeneratedArtifact(kind=ArtifactKind.FIREWALL_RULESET, target=target, content=content)

    def test_valid_ruleset_activates(self, memory_host, tmp_path):
        artifact = self._artifact(tmp_path, "table inet filter { }\n")

        ValidationGate(memory_host.firewall).activate(artifact)

        assert memory_host.firewall.checked == [artifact.target]
        assert memory_host.firewall.activations == 1

    def test_invalid_ruleset_is_not_activated(self, memory_host, tmp_path):
        artifact = self._artifact(tmp_path, "table inet filter {\n")

        with pytest.raises(ValidationFailure) as exc_info:
            ValidationGate(memory_host.firewall).activate(artifact)

        assert memory_host.firewall.activations == 0
        assert "nftables" not in memory_host.services.restarts
        assert exc_info.value.path == str(artifact.target)
        assert "syntax error" in exc_info.value.output

    def test_rejects_non_firewall_artifacts(self, memory_host, tmp_path):
        artifact = GeneratedArtifact(kind=ArtifactKind.REFLECTOR_CONFIG, target=tmp_path / "avahi.conf", content="")
        with pytest.raises(ValueError):
            ValidationGate(memory_host.firewall).check(artifact)


class TestApplyPipeline:
    def test_full_run(self, memory_host, paths, spec):
        report = ApplyPipeline(memory_host, paths).run(spec)

        assert report.state.interface_names == ["eth0", "eth0.10", "eth0.30", "eth0.50"]
        assert "allow-interfaces=eth0,eth0.10,eth0.30,eth0.50" in paths.avahi_conf.read_text()
        assert 'elements = { "eth0.10", "eth0.30", "eth0.50" }' in paths.nftables_conf.read_text()
        assert memory_host.reflector.activations == 1
        assert memory_host.firewall.activations == 1
        assert "NetworkManager" in memory_host.services.running
        assert report.warnings == []

    def test_apply_twice_is_idempotent(self, memory_host, paths, spec):
        pipeline = ApplyPipeline(memory_host, paths)
        first = pipeline.run(spec)
        avahi, nft = paths.avahi_conf.read_text(), paths.nftables_conf.read_text()

        second = pipeline.run(spec)

        assert first.state.management.created is True
        assert second.state == first.state
        assert paths.avahi_conf.read_text() == avahi
        assert paths.nftables_conf.read_text() == nft
        assert [w.changed for w in second.writes] == [False, False]
        assert sorted(memory_host.profiles.profiles) == [
            "mdns-mgmt-eth0-untagged",
            "mdns-vlan10",
            "mdns-vlan30",
            "mdns-vlan50",
        ]

    def test_validation_failure_stops_before_activation(self, paths, spec):
        host = MemoryHost()
        host.firewall.validator = lambda text: False

        with pytest.raises(ValidationFailure):
            ApplyPipeline(host, paths).run(spec)

        assert host.firewall.activations == 0
        # the rejected ruleset stays on disk for inspection
        assert paths.nftables_conf.exists()

    def test_reflector_failure_is_recoverable(self, memory_host, paths, spec):
        memory_host.services.fail_restart.add("avahi-daemon")

        report = ApplyPipeline(memory_host, paths).run(spec)

        assert [o.step for o in report.warnings] == ["reflector"]
        assert memory_host.firewall.activations == 1

    def test_missing_tool_is_fatal(self, paths, spec):
        host = MemoryHost(missing_tools=("nft",))

        with pytest.raises(ExternalToolMissing) as exc_info:
            ApplyPipeline(host, paths).run(spec)

        assert exc_info.value.tool == "nft"
        assert host.profiles.calls == []

    def test_ifupdown_conflict_is_a_warning(self, memory_host, paths, spec):
        paths.ifupdown_conf.parent.mkdir(parents=True)
        paths.ifupdown_conf.write_text("iface eth0 inet dhcp\n")

        report = ApplyPipeline(memory_host, paths).run(spec)

        assert [o.step for o in report.warnings] == ["ifupdown"]
        assert memory_host.firewall.activations == 1

    def test_existing_configs_backed_up_once(self, memory_host, paths, spec):
        paths.avahi_conf.parent.mkdir(parents=True)
        paths.avahi_conf.write_text("[server]\nuse-ipv4=yes\n")

        report = ApplyPipeline(memory_host, paths).run(spec)

        assert paths.avahi_backup.read_text() == "[server]\nuse-ipv4=yes\n"
        assert [w.backed_up for w in report.writes] == [True, False]
