"""Shared fixtures for the mdnsbridge test suite."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from mdnsbridge.backends.memory import MemoryHost
from mdnsbridge.base.transport import CommandResult
from mdnsbridge.config import BridgePaths
from mdnsbridge.models.spec import DesiredTopologySpec

# ── host fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def paths(tmp_path):
    """Every managed file re-rooted under a temporary directory."""
    return BridgePaths.under(tmp_path)


@pytest.fixture()
def memory_host():
    """In-memory host with no pre-existing profiles."""
    return MemoryHost()


@pytest.fixture()
def mock_runner():
    """MagicMock command runner: every command succeeds with empty output."""
    runner = MagicMock()
    runner.run.return_value = CommandResult(returncode=0)
    runner.which.side_effect = lambda tool: f"/usr/bin/{tool}"
    return runner


# ── spec fixtures ─────────────────────────────────────────────────────


@pytest.fixture()
def make_spec():
    """Factory fixture returning a DesiredTopologySpec with customizable fields."""

    def _make(**kwargs):
        defaults = {
            "trunk": "eth0",
            "vlan_ids": (10, 30, 50),
        }
        defaults.update(kwargs)
        return DesiredTopologySpec(**defaults)

    return _make


@pytest.fixture()
def spec(make_spec):
    return make_spec()
