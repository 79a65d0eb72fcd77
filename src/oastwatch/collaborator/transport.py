"""
Correlation Server Transport

aiohttp client for the correlation server's register / poll / deregister API.
"""

import asyncio
from typing import Any, Dict, Optional

import aiohttp
from pydantic import ValidationError

from ..core.config import ClientConfig
from ..core.exceptions import NetworkError
from .models import DeregisterRequest, PollResponse, RegisterRequest

USER_AGENT = "oastwatch/0.1.0"


class CorrelationServerTransport:
    """
    HTTP access to one correlation server.

    Each call opens its own aiohttp session bounded by the configured timeout,
    so the transport holds no connection state between polls.
    """

    def __init__(self, config: ClientConfig) -> None:
        self.base_url = config.base_url
        self.timeout = config.timeout
        self.proxy = config.proxy
        self.verify_ssl = config.verify_ssl
        self._headers = {"User-Agent": USER_AGENT}
        if config.token:
            self._headers["Authorization"] = config.token

    async def register(self, request: RegisterRequest) -> None:
        """Submit the registration handshake."""
        await self._request("POST", "/register", json=request.model_dump(by_alias=True))

    async def poll(self, correlation_id: str, secret_key: str) -> PollResponse:
        """Fetch the interactions accumulated since the previous poll."""
        body = await self._request(
            "GET", "/poll", params={"id": correlation_id, "secret": secret_key}
        )
        try:
            return PollResponse.model_validate(body or {})
        except ValidationError as e:
            raise NetworkError("Malformed poll response", {"errors": e.error_count()}) from e

    async def deregister(self, request: DeregisterRequest) -> None:
        """Release the correlation id on the server."""
        await self._request(
            "POST", "/deregister", json=request.model_dump(by_alias=True)
        )

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, str]] = None,
    ) -> Any:
        timeout = aiohttp.ClientTimeout(total=self.timeout)
        url = f"{self.base_url}{path}"

        try:
            async with aiohttp.ClientSession(
                timeout=timeout, headers=self._headers
            ) as session:
                async with session.request(
                    method,
                    url,
                    json=json,
                    params=params,
                    proxy=self.proxy,
                    ssl=self.verify_ssl,
                ) as response:
                    text = await response.text()
                    if response.status != 200:
                        raise NetworkError(
                            f"{method} {path} returned HTTP {response.status}",
                            {"status": response.status, "body": text[:200]},
                        )
                    if not text.strip():
                        return None
                    try:
                        return await response.json(content_type=None)
                    except ValueError as e:
                        raise NetworkError(f"{method} {path} returned invalid JSON") from e

        except aiohttp.ClientError as e:
            raise NetworkError(f"{method} {path} failed: {e}") from e
        except asyncio.TimeoutError as e:
            raise NetworkError(
                f"{method} {path} timed out after {self.timeout}s",
                {"timeout": self.timeout},
            ) from e
