"""Custom exceptions for the repository inventory fetcher."""


class InventoryError(Exception):
    """Base exception for inventory errors."""
    pass


class ConfigurationError(InventoryError):
    """Exception for configuration errors."""
    pass


class FetchFailure(InventoryError):
    """A single page could not be fetched."""
    pass


class CommandError(FetchFailure):
    """Exception for a failed external command."""

    def __init__(self, message: str, returncode: int = None, stderr: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class FetchTimeoutError(FetchFailure):
    """Exception for a page fetch that exceeded its deadline."""
    pass


class PayloadError(FetchFailure):
    """Exception for a malformed page payload."""
    pass


class NetworkError(FetchFailure):
    """Exception for network-related errors."""
    pass


class RateLimitError(NetworkError):
    """Exception for rate limiting errors."""
    pass


class ClientError(FetchFailure):
    """The collaborator rejected the request (HTTP 4xx); not worth retrying."""

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.status_code = status_code


class WriteError(InventoryError):
    """Exception for a snapshot or error file that could not be written."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(message)
        self.path = path
