"""
Registered Collaborator Session

Holds one registered identity and polls the correlation server for the
interactions addressed to it.
"""

import asyncio
import logging
from typing import Any, List

from ..core.exceptions import ClientClosed, DecodeError, NetworkError, PollFailed
from ..core.logging import get_logger, log_structured
from .codec import decode
from .crypto import SessionKeys, decrypt_entry
from .models import DeregisterRequest, ParsedLogEntry, PollResponse, SessionState

logger = get_logger(__name__)


class RegisteredSession:
    """
    Established identity with a correlation server.

    The interaction address is fixed at registration. The server keeps the
    poll cursor, so polls on one session are serialized.
    """

    def __init__(
        self,
        transport: Any,
        keys: SessionKeys,
        correlation_id: str,
        secret_key: str,
        address: str,
        timeout: int,
    ) -> None:
        """
        Initialize a registered session.

        Args:
            transport: Transport bound to the server the session registered with
            keys: Key pair whose public half was registered
            correlation_id: Correlation id accepted by the server
            secret_key: Secret authenticating polls for this correlation id
            address: Interaction address to embed in test payloads
            timeout: Upper bound in seconds for each network round trip
        """
        self._transport = transport
        self._keys = keys
        self._correlation_id = correlation_id
        self._secret_key = secret_key
        self._address = address
        self._timeout = timeout
        self._state = SessionState.REGISTERED
        self._lock = asyncio.Lock()

    @property
    def address(self) -> str:
        return self._address

    def get_address(self) -> str:
        """Return the interaction address. Performs no I/O."""
        return self._address

    @property
    def correlation_id(self) -> str:
        return self._correlation_id

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state in (SessionState.REGISTERED, SessionState.POLLING)

    async def fetch(self, strict: bool = False) -> List[str]:
        """
        Perform one poll round trip and return the decrypted raw entries.

        Args:
            strict: Fail the poll on an entry that cannot be decrypted instead
                of skipping it

        Returns:
            Raw entry texts in server order (empty when nothing happened)

        Raises:
            PollFailed: On timeout, transport error, rejected session or
                undecryptable response
        """
        async with self._lock:
            if not self.is_active:
                raise ClientClosed(
                    "Session is no longer registered", {"state": self._state.value}
                )
            self._state = SessionState.POLLING
            try:
                response = await asyncio.wait_for(
                    self._transport.poll(self._correlation_id, self._secret_key),
                    timeout=self._timeout,
                )
                raw_entries = self._open(response, strict)
            except asyncio.TimeoutError as e:
                raise PollFailed(
                    f"Poll timed out after {self._timeout}s",
                    {"timeout": self._timeout},
                ) from e
            except NetworkError as e:
                raise PollFailed(f"Poll failed: {e.message}", e.details) from e
            except DecodeError as e:
                raise PollFailed(f"Malformed poll response: {e.message}", e.details) from e
            finally:
                if self._state is SessionState.POLLING:
                    self._state = SessionState.REGISTERED

        log_structured(logger, logging.DEBUG, "Poll completed", entries=len(raw_entries))
        return raw_entries

    async def poll(self, strict: bool = False) -> List[ParsedLogEntry]:
        """
        Fetch and decode the interactions recorded since the previous poll.

        Args:
            strict: Fail instead of skipping undecryptable or unparseable entries

        Returns:
            Parsed interaction records in server order
        """
        return decode(await self.fetch(strict=strict), strict=strict)

    async def deregister(self) -> None:
        """
        Release the correlation id on the server and terminate the session.

        Failures are logged; the session is terminated regardless.
        """
        async with self._lock:
            if self._state is SessionState.TERMINATED:
                return
            self._state = SessionState.TERMINATED
            request = DeregisterRequest(
                correlation_id=self._correlation_id, secret_key=self._secret_key
            )
            try:
                await asyncio.wait_for(
                    self._transport.deregister(request), timeout=self._timeout
                )
                logger.info(f"Deregistered {self._address}")
            except asyncio.TimeoutError:
                logger.warning(f"Deregistration of {self._address} timed out")
            except NetworkError as e:
                logger.warning(f"Deregistration of {self._address} failed: {e}")

    def _open(self, response: PollResponse, strict: bool = False) -> List[str]:
        raw_entries: List[str] = []

        if response.data:
            if not response.aes_key:
                raise DecodeError("Poll response carries data without an AES key")
            aes_key = self._keys.decrypt_aes_key(response.aes_key)
            for position, item in enumerate(response.data):
                try:
                    raw_entries.append(decrypt_entry(aes_key, item))
                except DecodeError as e:
                    if strict:
                        raise DecodeError(e.message, {"position": position}) from e
                    logger.warning(f"Skipping entry {position} of poll batch: {e.message}")

        # Plaintext entries follow the decrypted ones
        for plain in (response.extra, response.tlddata):
            if plain:
                raw_entries.extend(plain)

        return raw_entries

    def __repr__(self) -> str:
        return f"RegisteredSession(address={self._address!r}, state={self._state.value})"
