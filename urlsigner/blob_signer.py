# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Blob signers: the private-key half of URL signing.

A ``BlobSigner`` turns the string-to-sign into a base64-encoded
signature.  URL construction never touches key material directly; it
only sees the signer's identity and the signatures it returns.

``ServiceAccountBlobSigner`` signs locally with a service account's RSA
private key (RSASSA-PKCS1-v1_5 over SHA-256), as loaded from the JSON
key file downloaded from the cloud console.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
from pathlib import Path
from typing import Any, Protocol

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from urlsigner.logging import SecretFilter


logger = logging.getLogger(__name__)


class ServiceAccountKeyError(Exception):
    """Raised when service account key material cannot be used."""


class BlobSigner(Protocol):
    """Produces signatures for arbitrary blobs.

    Attributes:
        id: Stable identity of the signing principal (for service
            accounts, the client email).  Embedded in the credential
            scope of every URL signed with this signer.
    """

    @property
    def id(self) -> str: ...

    def create_signature(self, data: bytes) -> str:
        """Sign ``data`` and return the base64-encoded signature."""
        ...

    async def create_signature_async(self, data: bytes) -> str:
        """Sign ``data`` without blocking the event loop.

        Cancelling the awaiting task must abort the operation.
        """
        ...


class ServiceAccountBlobSigner:
    """Signs blobs with a service account's RSA private key."""

    def __init__(
        self,
        client_email: str,
        private_key: RSAPrivateKey | str | bytes,
        *,
        private_key_id: str | None = None,
    ) -> None:
        """Initialize the signer.

        Args:
            client_email: Service account email, used as the signer id.
            private_key: RSA private key object or PEM-encoded key.
            private_key_id: Optional key id, for diagnostics only.

        Raises:
            ServiceAccountKeyError: If the key cannot be loaded or is
                not an RSA key.
        """
        if not client_email:
            raise ServiceAccountKeyError("client_email is required")
        self._client_email = client_email
        self._private_key = _load_private_key(private_key)
        self.private_key_id = private_key_id
        logger.debug(
            "Initialized service account signer: email=%s, key_id=%s",
            client_email,
            private_key_id,
        )

    @classmethod
    def from_service_account_info(
        cls, info: dict[str, Any]
    ) -> ServiceAccountBlobSigner:
        """Build a signer from a parsed service account key mapping.

        Args:
            info: Mapping with ``client_email`` and ``private_key``
                (PEM), and optionally ``private_key_id``.

        Raises:
            ServiceAccountKeyError: If required fields are missing
                or have the wrong type.
        """
        if not isinstance(info, dict):
            raise ServiceAccountKeyError(
                "Service account info must be a mapping"
            )
        missing = [
            key for key in ("client_email", "private_key") if not info.get(key)
        ]
        if missing:
            raise ServiceAccountKeyError(
                f"Service account info is missing: {', '.join(missing)}"
            )
        if not isinstance(info["client_email"], str):
            raise ServiceAccountKeyError(
                "Service account client_email must be a string"
            )
        return cls(
            info["client_email"],
            info["private_key"],
            private_key_id=info.get("private_key_id"),
        )

    @classmethod
    def from_service_account_file(
        cls, path: str | Path
    ) -> ServiceAccountBlobSigner:
        """Build a signer from a service account JSON key file.

        Raises:
            ServiceAccountKeyError: If the file cannot be read or parsed.
        """
        path = Path(path).expanduser()
        try:
            info = json.loads(path.read_text())
        except OSError as e:
            raise ServiceAccountKeyError(
                f"Cannot read service account key file {path}: {e}"
            ) from e
        except json.JSONDecodeError as e:
            raise ServiceAccountKeyError(
                f"Service account key file {path} is not valid JSON: {e}"
            ) from e
        logger.info("Loaded service account key from %s", path)
        return cls.from_service_account_info(info)

    @property
    def id(self) -> str:
        return self._client_email

    def create_signature(self, data: bytes) -> str:
        signature = self._private_key.sign(
            data, padding.PKCS1v15(), hashes.SHA256()
        )
        return base64.b64encode(signature).decode("ascii")

    async def create_signature_async(self, data: bytes) -> str:
        # RSA signing is CPU bound; keep it off the event loop.
        return await asyncio.to_thread(self.create_signature, data)


def _load_private_key(
    private_key: RSAPrivateKey | str | bytes,
) -> RSAPrivateKey:
    """Load an RSA private key from PEM, passing key objects through."""
    if isinstance(private_key, RSAPrivateKey):
        return private_key

    if isinstance(private_key, str):
        SecretFilter.register_secret(private_key)
        pem = private_key.encode("utf-8")
    elif isinstance(private_key, bytes):
        SecretFilter.register_secret(private_key.decode("utf-8", "replace"))
        pem = private_key
    else:
        raise ServiceAccountKeyError(
            "Private key must be a PEM string, "
            f"got {type(private_key).__name__}"
        )

    try:
        key = serialization.load_pem_private_key(pem, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise ServiceAccountKeyError(f"Cannot load private key: {e}") from e

    if not isinstance(key, RSAPrivateKey):
        raise ServiceAccountKeyError(
            f"Private key must be RSA, got {type(key).__name__}"
        )
    return key
