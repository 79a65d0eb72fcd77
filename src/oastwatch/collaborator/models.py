"""
Collaborator Data Models

Defines the per-protocol interaction records delivered by the correlation
server and the request/response bodies of its HTTP API.
"""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter


def _hyphenate(name: str) -> str:
    return name.replace("_", "-")


def _to_text(value: Any) -> Any:
    # Numeric values (epoch timestamps) are kept in their decimal form
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(value)
    return value


LogField = Annotated[str, BeforeValidator(_to_text)]


class Protocol(str, Enum):
    """Supported interaction protocols."""

    HTTP = "http"
    DNS = "dns"
    LDAP = "ldap"
    SMB = "smb"
    FTP = "ftp"
    SMTP = "smtp"


class SessionState(str, Enum):
    """Lifecycle of a collaborator client."""

    UNREGISTERED = "unregistered"
    AWAITING_ACK = "awaiting_ack"
    REGISTERED = "registered"
    POLLING = "polling"
    TERMINATED = "terminated"
    FAILED = "failed"


class _InteractionEntry(BaseModel):
    """Base for parsed interaction records; subclasses fix the field set."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=_hyphenate,
        populate_by_name=True,
    )

    @classmethod
    def field_names(cls) -> Tuple[str, ...]:
        """Names of the fields carried by this protocol's record."""
        return tuple(name for name in cls.model_fields if name != "protocol")

    @property
    def kind(self) -> Protocol:
        return Protocol(self.protocol)

    def fields(self) -> Dict[str, str]:
        """Field name to value mapping, without the protocol tag."""
        return self.model_dump(exclude={"protocol"})


class HttpEntry(_InteractionEntry):
    """HTTP request received by the collaborator endpoint."""

    protocol: Literal["http"] = "http"
    unique_id: LogField
    full_id: LogField
    raw_request: LogField = ""
    raw_response: LogField = ""
    remote_address: LogField
    timestamp: LogField


class DnsEntry(_InteractionEntry):
    """DNS query for a name under the collaborator domain."""

    protocol: Literal["dns"] = "dns"
    unique_id: LogField
    full_id: LogField
    q_type: LogField
    raw_request: LogField = ""
    raw_response: LogField = ""
    remote_address: LogField
    timestamp: LogField


class LdapEntry(_InteractionEntry):
    """LDAP request received by the collaborator endpoint."""

    protocol: Literal["ldap"] = "ldap"
    unique_id: LogField
    full_id: LogField
    raw_request: LogField = ""
    raw_response: LogField = ""
    remote_address: LogField
    timestamp: LogField


class SmbEntry(_InteractionEntry):
    """SMB interaction. The server does not correlate these to an id."""

    protocol: Literal["smb"] = "smb"
    raw_request: LogField = ""
    timestamp: LogField


class FtpEntry(_InteractionEntry):
    """FTP interaction."""

    protocol: Literal["ftp"] = "ftp"
    raw_request: LogField = ""
    remote_address: LogField
    timestamp: LogField


class SmtpEntry(_InteractionEntry):
    """Mail delivered to an address under the collaborator domain."""

    protocol: Literal["smtp"] = "smtp"
    unique_id: LogField
    full_id: LogField
    raw_request: LogField = ""
    smtp_from: LogField = ""
    remote_address: LogField
    timestamp: LogField


ParsedLogEntry = Annotated[
    Union[HttpEntry, DnsEntry, LdapEntry, SmbEntry, FtpEntry, SmtpEntry],
    Field(discriminator="protocol"),
]

PARSED_ENTRY_ADAPTER: TypeAdapter = TypeAdapter(ParsedLogEntry)

ENTRY_TYPES = {
    Protocol.HTTP: HttpEntry,
    Protocol.DNS: DnsEntry,
    Protocol.LDAP: LdapEntry,
    Protocol.SMB: SmbEntry,
    Protocol.FTP: FtpEntry,
    Protocol.SMTP: SmtpEntry,
}


class RawLogEntry(BaseModel):
    """Server-delivered entry that is not a recognised interaction."""

    text: str = Field(description="Entry text as delivered")
    reason: str = Field(default="", description="Why the entry was not parsed")

    model_config = ConfigDict(frozen=True)


LogEntry = Union[HttpEntry, DnsEntry, LdapEntry, SmbEntry, FtpEntry, SmtpEntry, RawLogEntry]


class RegisterRequest(BaseModel):
    """Body of the registration handshake."""

    public_key: str
    secret_key: str
    correlation_id: str

    model_config = ConfigDict(alias_generator=_hyphenate, populate_by_name=True)


class DeregisterRequest(BaseModel):
    """Body of a deregistration request."""

    correlation_id: str
    secret_key: str

    model_config = ConfigDict(alias_generator=_hyphenate, populate_by_name=True)


class PollResponse(BaseModel):
    """Body returned by the poll endpoint."""

    data: Optional[List[str]] = Field(
        default=None, description="Encrypted interaction entries"
    )
    extra: Optional[List[str]] = Field(
        default=None, description="Plaintext entries from server-side sources"
    )
    aes_key: Optional[str] = Field(
        default=None, description="RSA-encrypted AES key for the data entries"
    )
    tlddata: Optional[List[str]] = Field(default=None)

    model_config = ConfigDict(extra="ignore")
