"""
OASTWatch Exception Hierarchy

Defines the error kinds surfaced to callers of the collaborator client.
"""

from typing import Any, Dict, Optional


class OASTWatchException(Exception):
    """Base exception for all OASTWatch errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class RegistrationFailed(OASTWatchException):
    """Registration handshake errors (unreachable server, timeout, rejected response)."""

    pass


class ConfigurationError(RegistrationFailed):
    """Invalid client configuration, reported as a failed registration."""

    pass


class PollFailed(OASTWatchException):
    """Poll round-trip errors (timeout, transport error, unknown or expired session)."""

    pass


class ClientClosed(PollFailed):
    """Raised when a terminated client or session is used."""

    pass


class DecodeError(OASTWatchException):
    """Raised by a strict decode when a log entry cannot be parsed."""

    pass


class NetworkError(OASTWatchException):
    """Transport-level errors talking to the correlation server."""

    pass
