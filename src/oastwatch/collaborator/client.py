"""
Blocking Collaborator Client

Caller-facing wrapper that runs the asynchronous registration and polling
on a private event loop, so scripts and scanners can use it without asyncio.
"""

import asyncio
import threading
import weakref
from typing import Any, Coroutine, Dict, List, Mapping, Optional, TypeVar, Union

from ..core.config import ClientConfig
from ..core.exceptions import ClientClosed
from ..core.logging import get_logger
from .models import ParsedLogEntry, SessionState
from .normalizer import NormalizedRecord, flatten, normalize
from .registration import ClientBuilder
from .session import RegisteredSession

logger = get_logger(__name__)

T = TypeVar("T")


def _release(session: RegisteredSession, loop: asyncio.AbstractEventLoop) -> None:
    if loop.is_closed():
        return
    try:
        loop.run_until_complete(session.deregister())
    finally:
        loop.close()


class Client:
    """
    Registered collaborator client with blocking operations.

    Every call blocks until its network round trip completes or the
    configured timeout elapses. Calls from several threads are serialized.
    Must not be used from inside a running event loop; asyncio code should
    use RegisteredSession directly.
    """

    def __init__(self, session: RegisteredSession, loop: asyncio.AbstractEventLoop) -> None:
        self._session = session
        self._loop = loop
        self._lock = threading.Lock()
        # Deregisters a client that is dropped without close()
        self._finalizer = weakref.finalize(self, _release, session, loop)

    @classmethod
    def connect(
        cls,
        config: Union[ClientConfig, Mapping[str, Any], None] = None,
        transport: Optional[Any] = None,
    ) -> "Client":
        """
        Build, register and wrap a new collaborator session.

        Args:
            config: Client options (server, timeout, token, verify_ssl, proxy)
            transport: Optional transport replacing the aiohttp one

        Returns:
            Registered Client

        Raises:
            RegistrationFailed: If the configuration is invalid or the
                handshake does not complete
        """
        builder = ClientBuilder.from_config(config)
        if transport is not None:
            builder.with_transport(transport)
        unregistered = builder.build()

        loop = asyncio.new_event_loop()
        try:
            session = loop.run_until_complete(unregistered.register())
        except BaseException:
            loop.close()
            raise
        return cls(session, loop)

    @property
    def session(self) -> RegisteredSession:
        return self._session

    @property
    def state(self) -> SessionState:
        return self._session.state

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def address(self) -> str:
        """Interaction address to embed in payloads. Performs no I/O."""
        return self._session.get_address()

    host = address

    def poll_entries(self, strict: bool = False) -> List[ParsedLogEntry]:
        """Poll once and return the typed protocol records."""
        return self._run(self._session.poll(strict=strict))

    def poll(self) -> List[NormalizedRecord]:
        """
        Poll once for new interactions.

        Returns:
            One string mapping per interaction, in server order

        Raises:
            PollFailed: If the round trip fails or times out
        """
        return normalize(self.poll_entries())

    def poll_merged(self) -> Dict[str, str]:
        """
        Poll once and merge every interaction into a single mapping.

        Same-named fields of later interactions overwrite earlier ones.
        """
        return flatten(self.poll_entries())

    def close(self) -> None:
        """Deregister the session and release the event loop."""
        with self._lock:
            self._finalizer()

    def _run(self, coroutine: Coroutine[Any, Any, T]) -> T:
        with self._lock:
            if self._loop.is_closed():
                coroutine.close()
                raise ClientClosed("Client has been closed")
            return self._loop.run_until_complete(coroutine)

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Client(address={self.address()!r}, state={self.state.value})"


def build(
    config: Union[ClientConfig, Mapping[str, Any], None] = None,
    transport: Optional[Any] = None,
) -> Client:
    """
    Create a registered collaborator client.

    Args:
        config: ClientConfig, mapping of options (unknown keys are ignored) or None
        transport: Optional transport replacing the aiohttp one

    Returns:
        Registered Client
    """
    return Client.connect(config, transport=transport)
