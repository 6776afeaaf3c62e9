"""Durable form of the desired topology."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from mdnsbridge.models.spec import DesiredTopologySpec


class PersistedConfig(BaseModel):
    """The desired topology as stored in the env file, plus the ownership ledger.

    ``has_ownership_record`` is False for files without an
    ``OWNED_PROFILES_STR`` key; uninstall then falls back to the naming
    convention for management profiles.
    """

    model_config = ConfigDict(frozen=True)

    spec: DesiredTopologySpec
    owned_profiles: tuple[str, ...] = ()
    has_ownership_record: bool = True

    def with_owned(self, profiles: list[str]) -> PersistedConfig:
        merged = list(self.owned_profiles)
        for name in profiles:
            if name not in merged:
                merged.append(name)
        return self.model_copy(update={"owned_profiles": tuple(merged), "has_ownership_record": True})
