"""Error types raised by the setup assistant."""
from typing import Optional


class NodeSetupError(Exception):
    """Base class for every error raised by the setup assistant."""


class InputError(NodeSetupError):
    """The operator gave input that could not be used."""


class InputAbortedError(InputError):
    """The operator interrupted the interview (Ctrl-C or end of input)."""


class ValidationError(NodeSetupError):
    """A value failed validation."""


class ExternalServiceError(NodeSetupError):
    """A remote service or external program failed."""


class DownloadError(ExternalServiceError):
    """A file or document could not be fetched."""


class HTTPError(DownloadError):
    """The remote server answered with an error status."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ArtifactDownloadError(DownloadError):
    """A release artifact could not be downloaded or unpacked."""


class ArtifactNotFoundError(ExternalServiceError):
    """No release asset exists for the requested version and platform."""


class NetworkHistoryError(ExternalServiceError):
    """The network history data source could not be queried."""


class DatabaseConnectionError(ExternalServiceError):
    """The database did not accept a connection."""


class CommandError(ExternalServiceError):
    """An external binary could not be executed or returned an error."""


class ConfigError(NodeSetupError):
    """A configuration document could not be edited."""


class ConfigLoadError(ConfigError):
    """A configuration document is missing or malformed."""


class ConfigWriteError(ConfigError):
    """A configuration document could not be written back."""


class FilesystemError(NodeSetupError):
    """A directory, copy or symlink operation failed."""


class StepError(NodeSetupError):
    """A provisioning step failed; wraps the underlying error."""

    def __init__(self, step: str, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"step '{step}' failed: {cause}")
