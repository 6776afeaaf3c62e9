"""mDNS bridge provisioning for NetworkManager hosts.

Realizes a management interface plus VLAN sub-interfaces on one trunk via
NetworkManager, then derives an Avahi reflector config and an nftables
ruleset from the realized interfaces.
"""

__version__ = "0.1.0"

import os
import sys
from typing import Any, Callable, Dict

from loguru import logger as glogger

glogger.disable(__name__)


def _loguru_skiplog_filter(record: dict) -> bool:  # type: ignore[type-arg]
    """Filter function to hide records with ``extra['skiplog']`` set."""
    return not record.get("extra", {}).get("skiplog", False)


def configure_logging(
    level: str | None = None,
    loguru_filter: Callable[[Dict[str, Any]], bool] = _loguru_skiplog_filter,
) -> None:
    """Configure a default ``loguru`` sink on stderr and enable package logging."""
    os.environ["LOGURU_LEVEL"] = level or os.getenv("LOGURU_LEVEL", "INFO")
    glogger.remove()
    logger_fmt: str = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )
    glogger.add(sys.stderr, level=os.getenv("LOGURU_LEVEL"), format=logger_fmt, filter=loguru_filter)  # type: ignore[arg-type]
    glogger.configure(extra={"skiplog": False})
    glogger.enable(__name__)


from mdnsbridge.exceptions import (  # noqa: E402
    BridgeError,
    ConfigurationError,
    DaemonError,
    ExternalToolMissing,
    HostFileError,
    LockError,
    PrivilegeError,
    ProfileActivationError,
    ProfileError,
    ValidationFailure,
)
from mdnsbridge.factory import create_host, list_backends  # noqa: E402

__all__ = [
    "glogger",
    "configure_logging",
    "create_host",
    "list_backends",
    "BridgeError",
    "ConfigurationError",
    "ExternalToolMissing",
    "ProfileActivationError",
    "ProfileError",
    "ValidationFailure",
    "DaemonError",
    "PrivilegeError",
    "LockError",
    "HostFileError",
]
