"""
Pytest configuration and shared fixtures for OASTWatch tests.
"""

import asyncio
import base64
import json
import os
from typing import Any, Dict, List, Optional, Union

import pytest
from cryptography.hazmat.decrepit.ciphers.modes import CFB
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from oastwatch.collaborator.models import DeregisterRequest, PollResponse, RegisterRequest
from oastwatch.core.exceptions import NetworkError


def encrypt_for(public_key_b64: str, entries: List[str]) -> Dict[str, Any]:
    """Encrypt entries the way the correlation server does for one poll."""
    public_key = serialization.load_pem_public_key(base64.b64decode(public_key_b64))
    aes_key = os.urandom(32)
    encrypted_key = public_key.encrypt(
        aes_key,
        padding.OAEP(
            mgf=padding.MGF1(algorithm=hashes.SHA256()),
            algorithm=hashes.SHA256(),
            label=None,
        ),
    )

    data = []
    for text in entries:
        iv = os.urandom(16)
        encryptor = Cipher(algorithms.AES(aes_key), CFB(iv)).encryptor()
        blob = iv + encryptor.update(text.encode("utf-8")) + encryptor.finalize()
        data.append(base64.b64encode(blob).decode("ascii"))

    return {
        "data": data,
        "extra": None,
        "aes_key": base64.b64encode(encrypted_key).decode("ascii"),
        "tlddata": None,
    }


class FakeCorrelationServer:
    """
    In-memory correlation server implementing the transport interface.

    Entries queued with ``queue`` are delivered, encrypted, on the next poll
    of any registered session.
    """

    def __init__(self) -> None:
        self.registrations: Dict[str, RegisterRequest] = {}
        self.deregistrations: List[DeregisterRequest] = []
        self.pending: List[str] = []
        self.extra: List[str] = []
        self.register_status = 200
        self.poll_status = 200
        self.register_delay = 0.0
        self.poll_delay = 0.0
        self.polls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    def queue(self, *entries: Union[str, Dict[str, Any]]) -> None:
        for entry in entries:
            self.pending.append(entry if isinstance(entry, str) else json.dumps(entry))

    async def register(self, request: RegisterRequest) -> None:
        if self.register_delay:
            await asyncio.sleep(self.register_delay)
        if self.register_status != 200:
            raise NetworkError(
                f"POST /register returned HTTP {self.register_status}",
                {"status": self.register_status},
            )
        self.registrations[request.correlation_id] = request

    async def poll(self, correlation_id: str, secret_key: str) -> PollResponse:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.poll_delay:
                await asyncio.sleep(self.poll_delay)
            return PollResponse.model_validate(self.respond(correlation_id, secret_key))
        finally:
            self.in_flight -= 1

    def respond(self, correlation_id: str, secret_key: str) -> Dict[str, Any]:
        registration = self.registrations.get(correlation_id)
        if self.poll_status != 200:
            raise NetworkError(
                f"GET /poll returned HTTP {self.poll_status}", {"status": self.poll_status}
            )
        if registration is None or registration.secret_key != secret_key:
            raise NetworkError("GET /poll returned HTTP 400", {"status": 400})

        self.polls += 1
        batch, self.pending = self.pending, []
        extra, self.extra = self.extra, []
        if not batch:
            return {"data": None, "extra": extra or None, "aes_key": None}

        body = encrypt_for(registration.public_key, batch)
        body["extra"] = extra or None
        return body

    async def deregister(self, request: DeregisterRequest) -> None:
        self.deregistrations.append(request)
        self.registrations.pop(request.correlation_id, None)


def interaction(protocol: str, **fields: Any) -> Dict[str, Any]:
    """Build an interaction document with the server's hyphenated keys."""
    document: Dict[str, Any] = {"protocol": protocol}
    for name, value in fields.items():
        document[name.replace("_", "-")] = value
    return document


@pytest.fixture
def fake_server() -> FakeCorrelationServer:
    """Provide an in-memory correlation server."""
    return FakeCorrelationServer()


@pytest.fixture
def dns_interaction() -> Dict[str, Any]:
    """Provide a DNS interaction document."""
    return interaction(
        "dns",
        unique_id="abc",
        full_id="abc.oast.example",
        q_type="A",
        raw_request="raw-dns-request",
        raw_response="raw-dns-response",
        remote_address="1.2.3.4",
        timestamp="1700000000",
    )


@pytest.fixture
def http_interaction() -> Dict[str, Any]:
    """Provide an HTTP interaction document."""
    return interaction(
        "http",
        unique_id="abc",
        full_id="abc.oast.example",
        raw_request="GET / HTTP/1.1\r\nHost: abc.oast.example\r\n\r\n",
        raw_response="HTTP/1.1 200 OK\r\n\r\n",
        remote_address="5.6.7.8",
        timestamp="2024-01-01T00:00:00Z",
    )


@pytest.fixture
def make_interaction():
    """Provide the interaction document factory."""
    return interaction


@pytest.fixture
def encrypt():
    """Provide the server-side entry encryption helper."""
    return encrypt_for


@pytest.fixture
def fake_options() -> Dict[str, Optional[Any]]:
    """Provide options for a client against the fake server."""
    return {"server": "oast.example", "timeout": 10}
