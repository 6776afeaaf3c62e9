"""Generated configuration artifact models."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict


class ArtifactKind(str, Enum):
    REFLECTOR_CONFIG = "reflector_config"
    FIREWALL_RULESET = "firewall_ruleset"


class GeneratedArtifact(BaseModel):
    """Rendered config text plus where it goes and where its one-shot backup lives."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    target: Path
    content: str
    backup: Path | None = None


@dataclass
class ArtifactWrite:
    """What writing an artifact actually did on disk."""

    artifact: GeneratedArtifact
    changed: bool = False
    backed_up: bool = False
