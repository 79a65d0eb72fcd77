"""
OASTWatch Collaborator Client

Out-of-band interaction detection against an interactsh-compatible
correlation server.
"""

from .client import Client, build
from .codec import classify, decode
from .models import (
    DnsEntry,
    FtpEntry,
    HttpEntry,
    LdapEntry,
    ParsedLogEntry,
    Protocol,
    RawLogEntry,
    SessionState,
    SmbEntry,
    SmtpEntry,
)
from .normalizer import NormalizedRecord, flatten, normalize, to_record
from .registration import ClientBuilder, UnregisteredClient
from .session import RegisteredSession
from .transport import CorrelationServerTransport

__all__ = [
    "Client",
    "build",
    "classify",
    "decode",
    "DnsEntry",
    "FtpEntry",
    "HttpEntry",
    "LdapEntry",
    "ParsedLogEntry",
    "Protocol",
    "RawLogEntry",
    "SessionState",
    "SmbEntry",
    "SmtpEntry",
    "NormalizedRecord",
    "flatten",
    "normalize",
    "to_record",
    "ClientBuilder",
    "UnregisteredClient",
    "RegisteredSession",
    "CorrelationServerTransport",
]
