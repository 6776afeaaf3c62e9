"""Abstract base classes for host collaborators."""

from mdnsbridge.base.client import BaseHost
from mdnsbridge.base.managers import (
    BaseFirewallEngine,
    BaseProfileStore,
    BaseReflectorDaemon,
    BaseServiceManager,
    CheckResult,
    ProfileKind,
)
from mdnsbridge.base.transport import BaseCommandRunner, CommandResult

__all__ = [
    "BaseCommandRunner",
    "CommandResult",
    "BaseHost",
    "BaseProfileStore",
    "BaseServiceManager",
    "BaseReflectorDaemon",
    "BaseFirewallEngine",
    "CheckResult",
    "ProfileKind",
]
