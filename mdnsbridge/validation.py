"""Firewall activation gate."""

from __future__ import annotations

from loguru import logger

from mdnsbridge.base.managers import BaseFirewallEngine
from mdnsbridge.exceptions import ValidationFailure
from mdnsbridge.models.artifact import ArtifactKind, GeneratedArtifact


class ValidationGate:
    """Dry-run the written firewall ruleset before anything loads it.

    This is the only hard stop in an otherwise best-effort apply: an invalid
    ruleset is left on disk for inspection and the live firewall is not
    reloaded.
    """

    def __init__(self, firewall: BaseFirewallEngine):
        self._firewall = firewall

    def check(self, artifact: GeneratedArtifact) -> None:
        if artifact.kind is not ArtifactKind.FIREWALL_RULESET:
            raise ValueError(f"Only firewall rulesets are validated, got {artifact.kind.value}")
        result = self._firewall.check(artifact.target)
        if not result.ok:
            logger.error(f"nft check of {artifact.target} failed: {result.output}")
            raise ValidationFailure(str(artifact.target), result.output)
        logger.debug(f"{artifact.target} passed validation")

    def activate(self, artifact: GeneratedArtifact) -> None:
        """Check, then enable and restart the firewall."""
        self.check(artifact)
        self._firewall.activate()
        logger.info(f"Firewall reloaded from {artifact.target}")
