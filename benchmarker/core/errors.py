"""Error taxonomy for Benchmarker operations."""
from pathlib import Path
from typing import Optional


class BenchmarkerError(Exception):
    """Base class for every error raised by Benchmarker."""
    pass


class ConfigNotFound(BenchmarkerError):
    """Raised when one of the layered config.yaml files is missing."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Config file not found: {self.path}")


class ConfigParseError(BenchmarkerError):
    """Raised when a config file is not a valid YAML mapping."""

    def __init__(self, path: Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid config file {self.path}: {reason}")


class UnknownProvider(BenchmarkerError):
    """Raised when the provider table has no entry for the requested provider."""

    def __init__(self, provider: str, known: Optional[list] = None):
        self.provider = provider
        self.known = sorted(known or [])
        message = f"Unknown provider '{provider}'"
        if self.known:
            message += f" (known: {', '.join(self.known)})"
        super().__init__(message)


class TemplateNotFound(BenchmarkerError):
    """Raised when a required container template file does not exist."""

    def __init__(self, path: Path):
        self.path = Path(path)
        super().__init__(f"Template not found: {self.path}")


class TemplateSyntaxError(BenchmarkerError):
    """Raised when a template has unbalanced section tags."""
    pass


class IOFailure(BenchmarkerError):
    """Raised when a file system or transfer operation fails."""
    pass


class ConnectionUnavailable(IOFailure):
    """Raised when a remote host refuses the connection or cannot be reached."""
    pass


class ProvisioningFailed(BenchmarkerError):
    """Raised when the remote boot status reports an error."""
    pass


class ProvisioningTimeout(BenchmarkerError):
    """Raised when an explicit wait timeout elapses before the host is ready."""
    pass
