class ProbeError(Exception):
    """Base class for errors that stop a kvprobe run before any probe executes."""


class ConfigError(ProbeError):
    """Raised when the command line lacks a vault URL or key name."""


class AuthenticationError(ProbeError):
    """Raised when no layer of the credential chain produced a token."""


__all__ = ["ProbeError", "ConfigError", "AuthenticationError"]
