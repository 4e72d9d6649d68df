# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Public entry point for creating V4 signed URLs.

Example::

    signer = UrlSigner.from_service_account_file("key.json")
    url = signer.sign(
        "my-bucket", "path/to/obj.txt", duration=timedelta(minutes=15)
    )

``UrlSigner`` instances are immutable and hold no per-request state, so a
single instance can be shared freely between threads and tasks.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from urlsigner import v4
from urlsigner.blob_signer import BlobSigner, ServiceAccountBlobSigner
from urlsigner.clock import Clock, FixedClock, SystemClock
from urlsigner.v4 import RESUMABLE, Headers


__all__ = ["RESUMABLE", "UrlSigner"]

_DURATION_OR_EXPIRATION = (
    "Exactly one of duration and expiration must be given"
)


class UrlSigner:
    """Creates V4 signed URLs using a blob signer and a clock."""

    def __init__(
        self, blob_signer: BlobSigner, clock: Clock | None = None
    ) -> None:
        self._blob_signer = blob_signer
        self._clock = clock if clock is not None else SystemClock()

    @classmethod
    def from_blob_signer(cls, blob_signer: BlobSigner) -> UrlSigner:
        """Create a signer that delegates signing to ``blob_signer``."""
        return cls(blob_signer)

    @classmethod
    def from_service_account_info(cls, info: dict[str, Any]) -> UrlSigner:
        """Create a signer from a parsed service account key mapping."""
        return cls(ServiceAccountBlobSigner.from_service_account_info(info))

    @classmethod
    def from_service_account_file(cls, path: str | Path) -> UrlSigner:
        """Create a signer from a service account JSON key file."""
        return cls(ServiceAccountBlobSigner.from_service_account_file(path))

    @property
    def blob_signer(self) -> BlobSigner:
        return self._blob_signer

    @property
    def clock(self) -> Clock:
        return self._clock

    def with_clock(self, clock: Clock) -> UrlSigner:
        """Return a copy of this signer that reads time from ``clock``."""
        return UrlSigner(self._blob_signer, clock)

    def sign(
        self,
        bucket: str,
        object_name: str | None = None,
        *,
        duration: timedelta | None = None,
        expiration: datetime | None = None,
        method: str | None = None,
        request_headers: Headers | None = None,
        content_headers: Headers | None = None,
    ) -> str:
        """Create a signed URL, blocking on the blob signer.

        Exactly one of ``duration`` and ``expiration`` must be given.

        Args:
            bucket: Bucket name.
            object_name: Object name, or None to sign the bucket itself.
            duration: Validity period, counted from the clock's now.
            expiration: Absolute expiry instant.
            method: HTTP method (default GET), or ``RESUMABLE`` to sign
                the start of a resumable upload.
            request_headers: Accepted for API compatibility; not signed.
            content_headers: Accepted for API compatibility; not signed.

        Returns:
            The signed URL.
        """
        expires_at, clock = self._capture(duration, expiration)
        return v4.sign(
            bucket,
            object_name,
            expires_at,
            method,
            request_headers,
            content_headers,
            self._blob_signer,
            clock,
        )

    async def sign_async(
        self,
        bucket: str,
        object_name: str | None = None,
        *,
        duration: timedelta | None = None,
        expiration: datetime | None = None,
        method: str | None = None,
        request_headers: Headers | None = None,
        content_headers: Headers | None = None,
    ) -> str:
        """Create a signed URL without blocking the event loop.

        Takes the same arguments as ``sign``.  Cancelling the awaiting
        task aborts signing and produces no URL.
        """
        expires_at, clock = self._capture(duration, expiration)
        return await v4.sign_async(
            bucket,
            object_name,
            expires_at,
            method,
            request_headers,
            content_headers,
            self._blob_signer,
            clock,
        )

    def _capture(
        self, duration: timedelta | None, expiration: datetime | None
    ) -> tuple[datetime, Clock]:
        """Read the clock once and resolve the expiry against that instant.

        Returns:
            The absolute expiration and a clock frozen at the instant
            read, so expiry and timestamp agree to the second.
        """
        if duration is None:
            if expiration is None:
                raise ValueError(_DURATION_OR_EXPIRATION)
            return expiration, FixedClock(self._clock.now())
        if expiration is not None:
            raise ValueError(_DURATION_OR_EXPIRATION)
        now = self._clock.now()
        return now + duration, FixedClock(now)
