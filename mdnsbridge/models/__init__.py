"""Data models for mDNS bridge provisioning."""

from mdnsbridge.models.artifact import ArtifactKind, ArtifactWrite, GeneratedArtifact
from mdnsbridge.models.outcome import ApplyReport, StepOutcome, StepStatus
from mdnsbridge.models.persisted import PersistedConfig
from mdnsbridge.models.spec import DesiredTopologySpec, IpMethod, MgmtMode
from mdnsbridge.models.topology import InterfaceRole, RealizedInterface, TopologyState

__all__ = [
    "DesiredTopologySpec",
    "MgmtMode",
    "IpMethod",
    "RealizedInterface",
    "InterfaceRole",
    "TopologyState",
    "GeneratedArtifact",
    "ArtifactKind",
    "ArtifactWrite",
    "PersistedConfig",
    "ApplyReport",
    "StepOutcome",
    "StepStatus",
]
