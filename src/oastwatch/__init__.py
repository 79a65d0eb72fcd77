"""
OASTWatch - out-of-band interaction client for security testing.

Registers a unique collaborator address with a correlation server and polls
it for the DNS, HTTP, LDAP, SMB, FTP and SMTP interactions that reach it.
"""

__version__ = "0.1.0"

from .collaborator import Client, ClientBuilder, RegisteredSession, build
from .core.config import ClientConfig
from .core.exceptions import (
    ClientClosed,
    ConfigurationError,
    DecodeError,
    OASTWatchException,
    PollFailed,
    RegistrationFailed,
)

__all__ = [
    "__version__",
    "Client",
    "ClientBuilder",
    "RegisteredSession",
    "build",
    "ClientConfig",
    "ClientClosed",
    "ConfigurationError",
    "DecodeError",
    "OASTWatchException",
    "PollFailed",
    "RegistrationFailed",
]
