"""Paths and layered construction of the desired topology.

The desired topology is built once at process start from, in increasing
precedence: compiled-in defaults, the persisted env file, ``MDNS_BRIDGE_*``
environment variables and explicit CLI overrides. The resulting immutable
:class:`DesiredTopologySpec` is then passed explicitly to every component.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from mdnsbridge._util import parse_bool, split_list
from mdnsbridge.exceptions import ConfigurationError
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.models.spec import DesiredTopologySpec

ENV_PREFIX = "MDNS_BRIDGE_"
SERVICE_NAME = "mdns-bridge.service"

# env-file key -> DesiredTopologySpec field
SPEC_KEYS: dict[str, str] = {
    "PHY_IF": "trunk",
    "MGMT_MODE": "mgmt_mode",
    "MGMT_VID": "mgmt_vid",
    "VLAN_LIST_STR": "vlan_ids",
    "MGMT_IP_METHOD": "ip_method",
    "MGMT_ADDR": "address",
    "MGMT_GW": "gateway",
    "MGMT_DNS_STR": "dns",
    "MGMT_NEVER_DEFAULT": "mgmt_never_default",
    "AVAHI_REFLECT_FILTERS": "reflect_filters",
    "AVAHI_REFLECT_IPV": "reflect_ipv",
}
OWNED_KEY = "OWNED_PROFILES_STR"


class BridgePaths(BaseModel):
    """Every file the tool reads or writes on the host."""

    model_config = ConfigDict(frozen=True)

    config_file: Path = Path("/etc/mdns-bridge.env")
    install_bin: Path = Path("/usr/local/sbin/mdns-bridge-nm")
    systemd_unit: Path = Path("/etc/systemd/system") / SERVICE_NAME
    state_dir: Path = Path("/var/lib/mdns-bridge")
    avahi_conf: Path = Path("/etc/avahi/avahi-daemon.conf")
    nftables_conf: Path = Path("/etc/nftables.conf")
    ifupdown_conf: Path = Path("/etc/network/interfaces")

    @property
    def avahi_backup(self) -> Path:
        return self.avahi_conf.with_name(self.avahi_conf.name + ".bak")

    @property
    def nftables_backup(self) -> Path:
        return self.nftables_conf.with_name(self.nftables_conf.name + ".bak")

    @property
    def lock_file(self) -> Path:
        return self.state_dir / "mdns-bridge.lock"

    @property
    def unit_name(self) -> str:
        return self.systemd_unit.name

    @classmethod
    def under(cls, root: Path) -> BridgePaths:
        """All default paths re-rooted below ``root`` (e.g. a test directory)."""
        defaults = cls()
        return cls(
            **{name: root / getattr(defaults, name).relative_to("/") for name in cls.model_fields}
        )


def _convert(field: str, raw: str) -> Any:
    if field == "vlan_ids":
        return tuple(int(v) for v in split_list(raw))
    if field == "mgmt_vid":
        return int(raw) if raw.strip() else None
    if field == "dns":
        return tuple(split_list(raw.replace(",", " ")))
    if field == "reflect_filters":
        return tuple(split_list(raw, ","))
    if field in ("mgmt_never_default", "reflect_ipv"):
        return parse_bool(raw)
    return raw.strip()


def values_to_fields(values: Mapping[str, str]) -> dict[str, Any]:
    """Convert recognized env-file keys to spec fields; unknown keys are ignored."""
    fields: dict[str, Any] = {}
    for key, raw in values.items():
        field = SPEC_KEYS.get(key)
        if field is None:
            continue
        try:
            fields[field] = _convert(field, raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid value for {key}: {raw!r} ({e})") from e
    return fields


def environment_overrides(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """``MDNS_BRIDGE_<KEY>`` variables, returned under their env-file key."""
    environ = os.environ if environ is None else environ
    found: dict[str, str] = {}
    for key in SPEC_KEYS:
        value = environ.get(ENV_PREFIX + key)
        if value is not None:
            found[key] = value
    return found


def make_spec(**fields: Any) -> DesiredTopologySpec:
    """Construct a spec, reporting pydantic type errors as ConfigurationError."""
    try:
        return DesiredTopologySpec(**fields)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid topology configuration: {e}") from e


def build_spec(
    persisted_values: Mapping[str, str] | None = None,
    overrides: Mapping[str, str] | None = None,
    environ: Mapping[str, str] | None = None,
) -> DesiredTopologySpec:
    """Layer defaults, persisted values, environment and explicit overrides."""
    layered: dict[str, str] = {}
    for layer in (persisted_values or {}, environment_overrides(environ), overrides or {}):
        layered.update(layer)
    spec = make_spec(**values_to_fields(layered))
    logger.debug(f"Effective topology: {spec.model_dump(mode='json')}")
    return spec


def build_persisted(values: Mapping[str, str], spec: DesiredTopologySpec) -> PersistedConfig:
    """Ownership ledger from a parsed env file, attached to the effective spec."""
    if OWNED_KEY not in values:
        return PersistedConfig(spec=spec, has_ownership_record=False)
    return PersistedConfig(spec=spec, owned_profiles=tuple(split_list(values[OWNED_KEY])))
