"""Exception hierarchy for mDNS bridge provisioning."""


class BridgeError(Exception):
    """Base exception for all mdns-bridge errors."""


class ConfigurationError(BridgeError):
    """Malformed or contradictory topology configuration."""


class ExternalToolMissing(BridgeError):
    """A required external command is not installed."""

    def __init__(self, tool: str):
        self.tool = tool
        super().__init__(f"Missing command: {tool}")


class ProfileError(BridgeError):
    """Creating, modifying or deleting a NetworkManager profile failed."""


class ProfileActivationError(ProfileError):
    """Bringing a profile up failed. Recoverable: links may come up later."""

    def __init__(self, profile: str, detail: str = ""):
        self.profile = profile
        self.detail = detail
        message = f"Failed to activate profile {profile}"
        super().__init__(f"{message}: {detail}" if detail else message)


class ValidationFailure(BridgeError):
    """The generated firewall ruleset failed the engine's dry-run check."""

    def __init__(self, path: str, output: str = ""):
        self.path = path
        self.output = output
        super().__init__(f"{path} failed validation. Not restarting the firewall.")


class DaemonError(BridgeError):
    """Enabling or restarting a system service failed."""

    def __init__(self, unit: str, detail: str = ""):
        self.unit = unit
        self.detail = detail
        message = f"Service operation on {unit} failed"
        super().__init__(f"{message}: {detail}" if detail else message)


class PrivilegeError(BridgeError):
    """The operation requires root."""


class LockError(BridgeError):
    """Another mdns-bridge operation holds the host lock."""


class HostFileError(BridgeError):
    """Reading or writing a managed file on the host failed."""

    def __init__(self, path: str, detail: str = ""):
        self.path = path
        self.detail = detail
        message = f"Cannot update {path}"
        super().__init__(f"{message}: {detail}" if detail else message)
