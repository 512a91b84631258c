"""
dumpkeeper Exception Hierarchy.

Defines all custom exceptions used across the backup pipeline.
Only DumpError is fatal to a run; the remaining stage errors are
absorbed by the orchestrator or the notifier.
"""

from typing import Any


class DumpKeeperError(Exception):
    """
    Base exception for all dumpkeeper errors.

    All custom exceptions inherit from this class, allowing
    generic catch blocks and consistent error handling.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None):
        """
        Initialize a DumpKeeperError.

        Args:
            message: Human-readable error message
            details: Optional structured data for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation with details."""
        base = self.message
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{base} ({details_str})"
        return base

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DumpKeeperError):
    """
    Errors in configuration loading or validation.

    Raised when an environment variable holds a value that cannot be
    converted or falls outside its allowed range.
    """

    def __init__(
        self,
        message: str,
        *,
        env_var: str | None = None,
        value: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ConfigurationError.

        Args:
            message: Human-readable error message
            env_var: Environment variable name if applicable
            value: Offending raw value if applicable
            details: Optional structured data for debugging
        """
        details = details or {}
        if env_var:
            details["env_var"] = env_var
        if value is not None:
            details["value"] = value

        super().__init__(message, details=details)
        self.env_var = env_var
        self.value = value


class ProcessError(DumpKeeperError):
    """
    Errors from external command execution.

    Raised when:
    - The executable cannot be found or started
    - The combined output exceeds the configured buffer cap
    - The command exits with a non-zero status or is killed by a signal
    """

    def __init__(
        self,
        message: str,
        *,
        command: str | None = None,
        returncode: int | None = None,
        output: str | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a ProcessError.

        Args:
            message: Human-readable error message
            command: Executable name (arguments are omitted)
            returncode: Exit status; negative when killed by a signal
            output: Captured output, truncated for display
            reason: Short machine-readable failure reason
            details: Optional structured data for debugging
        """
        details = details or {}
        if command:
            details["command"] = command
        if returncode is not None:
            details["returncode"] = returncode
            if returncode < 0:
                details["signal"] = -returncode
        if reason:
            details["reason"] = reason

        super().__init__(message, details=details)
        self.command = command
        self.returncode = returncode
        self.output = output or ""
        self.reason = reason


class DumpError(DumpKeeperError):
    """
    Raised when the export step does not produce a valid artifact.

    Covers non-zero exits of the export tool, unreachable or refused
    database connections, disk exhaustion and a held run lock.
    This is the only error that marks a run as failed.
    """

    def __init__(
        self,
        message: str,
        *,
        database: str | None = None,
        diagnostics: str | None = None,
        reason: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize a DumpError.

        Args:
            message: Human-readable error message
            database: Target database as name@host:port
            diagnostics: Output of the export tool, if any
            reason: Short machine-readable failure reason
            details: Optional structured data for debugging
        """
        details = details or {}
        if database:
            details["database"] = database
        if reason:
            details["reason"] = reason

        super().__init__(message, details=details)
        self.database = database
        self.diagnostics = diagnostics or ""
        self.reason = reason


class CompressionError(DumpKeeperError):
    """Raised when the compressor is unavailable or fails."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if path:
            details["path"] = path
        super().__init__(message, details=details)
        self.path = path


class RetentionError(DumpKeeperError):
    """Raised when the backup directory cannot be listed during a sweep."""

    def __init__(
        self,
        message: str,
        *,
        directory: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if directory:
            details["directory"] = directory
        super().__init__(message, details=details)
        self.directory = directory


class NotificationError(DumpKeeperError):
    """Raised by a notification channel when delivery fails."""

    def __init__(
        self,
        message: str,
        *,
        channel: str | None = None,
        retryable: bool = False,
        details: dict[str, Any] | None = None,
    ):
        details = details or {}
        if channel:
            details["channel"] = channel
        super().__init__(message, details=details)
        self.channel = channel
        self.retryable = retryable


def format_exception(error: Exception) -> str:
    """
    Format an exception for user-friendly display.

    Args:
        error: The exception to format

    Returns:
        Formatted error message string
    """
    if isinstance(error, DumpKeeperError):
        return str(error)
    return f"{error.__class__.__name__}: {error}"
