"""
Collaborator Registration

Builds an unregistered client from configuration and performs the one-shot
registration handshake that yields a RegisteredSession.
"""

import asyncio
import secrets
import string
import uuid
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from ..core.config import ClientConfig
from ..core.exceptions import ConfigurationError, DecodeError, NetworkError, RegistrationFailed
from ..core.logging import get_logger
from .crypto import SessionKeys
from .models import RegisterRequest, SessionState
from .session import RegisteredSession
from .transport import CorrelationServerTransport

logger = get_logger(__name__)

CORRELATION_ID_LENGTH = 20
NONCE_LENGTH = 13
_ID_ALPHABET = string.ascii_lowercase + string.digits


def _random_token(length: int) -> str:
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(length))


class UnregisteredClient:
    """
    Configured client that has not yet registered.

    Registration is attempted at most once; a failed attempt is terminal and
    the caller starts over with a new client to retry.
    """

    def __init__(self, config: ClientConfig, transport: Optional[Any] = None) -> None:
        self.config = config.with_server()
        # Always on: the server delivers interactions as structured JSON
        self.parse_logs = True
        self._transport = transport or CorrelationServerTransport(self.config)
        self._state = SessionState.UNREGISTERED

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def server(self) -> str:
        return self.config.server or ""

    async def register(self) -> RegisteredSession:
        """
        Perform the registration handshake.

        Returns:
            RegisteredSession holding the assigned interaction address

        Raises:
            RegistrationFailed: If the server is unreachable, rejects the
                handshake, or does not answer within the configured timeout
        """
        if self._state is not SessionState.UNREGISTERED:
            raise RegistrationFailed(
                "Registration already attempted", {"state": self._state.value}
            )

        self._state = SessionState.AWAITING_ACK
        timeout = self.config.timeout
        loop = asyncio.get_running_loop()

        try:
            keys = await loop.run_in_executor(None, SessionKeys)
            correlation_id = _random_token(CORRELATION_ID_LENGTH)
            secret_key = str(uuid.uuid4())
            request = RegisterRequest(
                public_key=keys.public_key_b64,
                secret_key=secret_key,
                correlation_id=correlation_id,
            )
            await asyncio.wait_for(self._transport.register(request), timeout=timeout)

        except asyncio.TimeoutError as e:
            self._state = SessionState.FAILED
            raise RegistrationFailed(
                f"Registration with {self.server} timed out after {timeout}s",
                {"server": self.server, "timeout": timeout},
            ) from e
        except (NetworkError, DecodeError) as e:
            self._state = SessionState.FAILED
            raise RegistrationFailed(
                f"Registration with {self.server} failed: {e.message}",
                {"server": self.server, **e.details},
            ) from e
        except BaseException:
            self._state = SessionState.FAILED
            raise

        address = f"{correlation_id}{_random_token(NONCE_LENGTH)}.{self.config.domain}"
        self._state = SessionState.REGISTERED
        logger.info(f"Registered with {self.server}: {address}")

        return RegisteredSession(
            transport=self._transport,
            keys=keys,
            correlation_id=correlation_id,
            secret_key=secret_key,
            address=address,
            timeout=timeout,
        )


class ClientBuilder:
    """
    Fluent construction of an UnregisteredClient.

    Example:
        session = await ClientBuilder().with_server("oast.example").with_timeout(10).build().register()
    """

    def __init__(self) -> None:
        self._options: dict = {}
        self._transport: Optional[Any] = None

    @classmethod
    def from_config(
        cls, config: Union[ClientConfig, Mapping[str, Any], None] = None
    ) -> "ClientBuilder":
        """Start a builder from a ClientConfig or an options mapping."""
        builder = cls()
        if config is not None:
            source = config.model_dump() if isinstance(config, ClientConfig) else dict(config)
            builder._options.update(source)
        return builder

    def with_server(self, server: str) -> "ClientBuilder":
        self._options["server"] = server
        return self

    def with_timeout(self, timeout: int) -> "ClientBuilder":
        self._options["timeout"] = timeout
        return self

    def with_auth_token(self, token: str) -> "ClientBuilder":
        self._options["token"] = token
        return self

    def with_proxy(self, proxy: str) -> "ClientBuilder":
        self._options["proxy"] = proxy
        return self

    def verify_ssl(self, verify: bool) -> "ClientBuilder":
        self._options["verify_ssl"] = verify
        return self

    def with_transport(self, transport: Any) -> "ClientBuilder":
        """Use a custom transport object instead of the aiohttp one."""
        self._transport = transport
        return self

    def build(self) -> UnregisteredClient:
        """
        Validate the options and create the unregistered client.

        Raises:
            ConfigurationError: If the options are invalid
        """
        try:
            config = ClientConfig.from_options(self._options)
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid client configuration",
                {"errors": [error["msg"] for error in e.errors()]},
            ) from e
        return UnregisteredClient(config, transport=self._transport)
