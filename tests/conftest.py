# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Shared pytest fixtures used across multiple test modules."""

import asyncio
import base64
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import patch

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from urlsigner.clock import FixedClock
from urlsigner.dotenv_loader import reset_dotenv_state
from urlsigner.logging import SecretFilter


#: Raw signature returned by StubBlobSigner unless overridden.
CANNED_SIGNATURE = bytes([0x00, 0x01, 0xAB, 0xFF, 0x10, 0x7F])

SIGNER_ID = "test@example.com"


class StubBlobSigner:
    """Blob signer returning a canned base64 signature.

    Records every blob it was asked to sign.
    """

    def __init__(
        self,
        signature: str | None = None,
        *,
        signer_id: str = SIGNER_ID,
        error: Exception | None = None,
    ) -> None:
        self._signature = (
            signature
            if signature is not None
            else base64.b64encode(CANNED_SIGNATURE).decode("ascii")
        )
        self._id = signer_id
        self._error = error
        self.blobs: list[bytes] = []

    @property
    def id(self) -> str:
        return self._id

    def create_signature(self, data: bytes) -> str:
        self.blobs.append(data)
        if self._error is not None:
            raise self._error
        return self._signature

    async def create_signature_async(self, data: bytes) -> str:
        await asyncio.sleep(0)
        return self.create_signature(data)


class BlockingStubBlobSigner(StubBlobSigner):
    """Async signer that never completes until cancelled."""

    def __init__(self) -> None:
        super().__init__()
        self.started = asyncio.Event()
        self.cancelled = False

    async def create_signature_async(self, data: bytes) -> str:
        self.blobs.append(data)
        self.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        raise AssertionError("unreachable")


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path) -> Iterator[None]:
    """Keep tests away from the real XDG config and shared state."""
    config_root = tmp_path / "xdg-config"
    reset_dotenv_state()
    SecretFilter.clear_secrets()
    with patch(
        "urlsigner.config.user_config_path",
        return_value=config_root,
    ):
        yield
    reset_dotenv_state()
    SecretFilter.clear_secrets()


@pytest.fixture
def now() -> datetime:
    return datetime(2020, 1, 1, 0, 0, 0, tzinfo=UTC)


@pytest.fixture
def clock(now: datetime) -> FixedClock:
    return FixedClock(now)


@pytest.fixture
def stub_signer() -> StubBlobSigner:
    return StubBlobSigner()


@pytest.fixture(scope="session")
def rsa_key() -> RSAPrivateKey:
    """RSA key shared by the whole session (generation is slow)."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_pem(rsa_key: RSAPrivateKey) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account_info(rsa_key_pem: str) -> dict[str, str]:
    return {
        "type": "service_account",
        "project_id": "test-project",
        "private_key_id": "0123456789abcdef",
        "private_key": rsa_key_pem,
        "client_email": SIGNER_ID,
    }
