"""Result kinds for the best-effort / hard-stop apply pipeline.

Recoverable problems are collected as :class:`StepOutcome` entries and the
pipeline keeps going. Fatal problems are raised as ``BridgeError`` subclasses
and short-circuit the remaining steps.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from mdnsbridge.models.artifact import ArtifactWrite
from mdnsbridge.models.topology import TopologyState


class StepStatus(Enum):
    OK = "ok"
    RECOVERABLE = "recoverable"


@dataclass
class StepOutcome:
    step: str
    status: StepStatus = StepStatus.OK
    message: str = ""


@dataclass
class ApplyReport:
    """Everything one apply run did, for callers and the summary banner."""

    state: TopologyState | None = None
    writes: list[ArtifactWrite] = field(default_factory=list)
    outcomes: list[StepOutcome] = field(default_factory=list)

    def ok(self, step: str, message: str = "") -> None:
        self.outcomes.append(StepOutcome(step, StepStatus.OK, message))

    def recoverable(self, step: str, message: str) -> None:
        self.outcomes.append(StepOutcome(step, StepStatus.RECOVERABLE, message))

    @property
    def warnings(self) -> list[StepOutcome]:
        return [o for o in self.outcomes if o.status is StepStatus.RECOVERABLE]
