"""Host backend registry.

A backend bundles everything apply, install and uninstall touch on a machine:
the NetworkManager profile store, systemd units, the Avahi reflector and the
nftables firewall. ``networkmanager`` drives the real tools through
subprocesses; ``memory`` keeps all of it in process for dry runs and tests.
"""

from __future__ import annotations

from typing import Any, Callable

from mdnsbridge.base.client import BaseHost
from mdnsbridge.exceptions import ConfigurationError

_BACKEND_REGISTRY: dict[str, type[BaseHost]] = {}

DEFAULT_BACKEND = "networkmanager"


def register_backend(name: str) -> Callable[[type[BaseHost]], type[BaseHost]]:
    """Make a :class:`BaseHost` subclass selectable with ``--backend name``."""

    def decorator(cls: type[BaseHost]) -> type[BaseHost]:
        _BACKEND_REGISTRY[name.lower()] = cls
        return cls

    return decorator


def create_host(backend: str = DEFAULT_BACKEND, **kwargs: Any) -> BaseHost:
    """Instantiate the host the bridge is provisioned on.

    Args:
        backend: Registered backend name, case-insensitive.
        **kwargs: Passed to the backend constructor (a command runner for
            ``networkmanager``, tools to report missing for ``memory``).

    Raises:
        ConfigurationError: No backend is registered under ``backend``.
    """
    _load_backends()
    cls = _BACKEND_REGISTRY.get(backend.lower())
    if cls is None:
        available = ", ".join(list_backends())
        raise ConfigurationError(f"Unknown backend '{backend}'. Available: {available}")
    return cls(**kwargs)


def list_backends() -> list[str]:
    """Backend names accepted by ``--backend``, sorted."""
    _load_backends()
    return sorted(_BACKEND_REGISTRY)


def _load_backends() -> None:
    # backends register themselves on import
    import mdnsbridge.backends  # noqa: F401
