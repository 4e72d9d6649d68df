# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""V4 signed URL generation (GOOG4-RSA-SHA256).

Builds the canonical request, credential scope and string-to-sign for a
storage resource, hands the string-to-sign to a ``BlobSigner``, and
assembles the final URL from the hex-encoded signature.

The server recomputes the same canonical request from the URL it
receives, so every byte here (parameter order, casing, escaping,
separators) must match what the verifier expects.  A mismatch is not
detectable locally; the server just answers 403.

Signing happens in three stages::

    build_signing_state()  ->  BlobSigner  ->  SigningState.result()
       (pure, sync)          (sync or async)       (pure, sync)

Only the middle stage can block or suspend.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime

from urlsigner.blob_signer import BlobSigner
from urlsigner.bucket import validate_bucket_name
from urlsigner.clock import Clock, to_utc


logger = logging.getLogger(__name__)

#: Public endpoint all signed URLs point at.
STORAGE_HOST = "https://storage.googleapis.com"

#: Host header value bound into every signature.
STORAGE_HOST_NAME = "storage.googleapis.com"

ALGORITHM = "GOOG4-RSA-SHA256"
CREDENTIAL_SCOPE_SUFFIX = "/auto/gcs/goog4_request"
UNSIGNED_PAYLOAD = "UNSIGNED-PAYLOAD"

#: Pseudo-method marking a resumable upload start.  Signed as POST with
#: an ``X-Goog-Resumable=Start`` query parameter.  Matched exactly, so
#: other spellings such as ``"resumable"`` are signed as literal methods.
RESUMABLE = "RESUMABLE"

_RESUMABLE_PARAMETER = "X-Goog-Resumable=Start"

_ALNUM = b"ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789"

# Form-style encoding leaves these alone and turns space into "+"
_FORM_SAFE = frozenset(_ALNUM + b"-_.!*()")

# RFC 3986 unreserved characters; everything else, "/" included, is escaped
_DATA_SAFE = frozenset(_ALNUM + b"-._~")

Headers = Mapping[str, Iterable[str]]


class MalformedSignatureError(Exception):
    """Raised when a blob signer returns something that is not base64.

    This is a contract violation by the signer, not a user error.
    """


# ---------------------------------------------------------------------------
# Encoding helpers
# ---------------------------------------------------------------------------


def format_hex(data: bytes) -> str:
    """Format bytes as lowercase hex, two characters per byte.

    Uses the alphabet ``0123456789abcdef`` with no separators.
    """
    return bytes(data).hex()


def _url_encode(value: str) -> str:
    """Form-encode a query value.

    Unreserved characters (``A-Z a-z 0-9 - _ . ! * ( )``) pass through,
    space becomes ``+`` and every other UTF-8 byte becomes ``%XX`` with
    uppercase hex digits.
    """
    result: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _FORM_SAFE:
            result.append(chr(byte))
        elif byte == 0x20:
            result.append("+")
        else:
            result.append(f"%{byte:02X}")
    return "".join(result)


def _escape_data(value: str) -> str:
    """Percent-encode everything except RFC 3986 unreserved characters.

    The whole value is treated as a single path segment, so ``/`` is
    escaped too.
    """
    result: list[str] = []
    for byte in value.encode("utf-8"):
        if byte in _DATA_SAFE:
            result.append(chr(byte))
        else:
            result.append(f"%{byte:02X}")
    return "".join(result)


def _format_timestamp(now: datetime) -> str:
    """Format as ``yyyyMMddTHHmmssZ``."""
    return (
        f"{_format_datestamp(now)}"
        f"T{now.hour:02d}{now.minute:02d}{now.second:02d}Z"
    )


def _format_datestamp(now: datetime) -> str:
    """Format as ``yyyyMMdd``."""
    return f"{now.year:04d}{now.month:02d}{now.day:02d}"


def decode_signature(base64_signature: str) -> bytes:
    """Decode a base64 signature returned by a blob signer.

    ASCII whitespace (e.g. line wrapping) is ignored; anything else that
    is not strict base64 is rejected.

    Raises:
        MalformedSignatureError: If the value is not valid base64.
    """
    if not isinstance(base64_signature, str):
        raise MalformedSignatureError(
            f"Blob signer returned {type(base64_signature).__name__}, "
            f"expected a base64 string"
        )
    compact = "".join(base64_signature.split())
    try:
        return base64.b64decode(compact, validate=True)
    except ValueError as e:
        raise MalformedSignatureError(
            f"Blob signer returned an invalid base64 signature: {e}"
        ) from e


# ---------------------------------------------------------------------------
# Canonical request construction
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SigningState:
    """Everything carried from the pre-signing to the post-signing stage.

    Attributes:
        resource_path: ``/{bucket}`` or ``/{bucket}/{escaped object}``.
        query_parameters: Query parameters in signing order, without the
            signature itself.
        blob_to_sign: UTF-8 string-to-sign handed to the blob signer.
        canonical_request: The canonical request the string-to-sign
            hashes (kept for diagnostics).
    """

    resource_path: str
    query_parameters: tuple[str, ...]
    blob_to_sign: bytes
    canonical_request: str = field(default="", repr=False)

    def result(self, hex_signature: str) -> str:
        """Assemble the signed URL.

        Args:
            hex_signature: Lowercase hex signature over ``blob_to_sign``.

        Returns:
            Absolute URL with the signature as the last query parameter.
        """
        parameters = (
            *self.query_parameters,
            f"x-goog-signature={_url_encode(hex_signature)}",
        )
        return f"{STORAGE_HOST}{self.resource_path}?{'&'.join(parameters)}"


def build_signing_state(
    bucket: str,
    object_name: str | None,
    expiration: datetime,
    method: str | None,
    request_headers: Headers | None,
    content_headers: Headers | None,
    blob_signer: BlobSigner,
    clock: Clock,
) -> SigningState:
    """Build the string-to-sign and the unsigned URL parts.

    Args:
        bucket: Bucket name; validated before anything else happens.
        object_name: Object name, or None to sign the bucket itself.
        expiration: Instant at which the URL stops working.
        method: HTTP method, ``RESUMABLE``, or None for GET.
        request_headers: Currently ignored; only ``host`` is signed.
        content_headers: Currently ignored; only ``host`` is signed.
        blob_signer: Supplies the signer id for the credential.
        clock: Supplies the signing instant.

    Returns:
        SigningState ready for signing.

    Raises:
        InvalidBucketNameError: If ``bucket`` is not a valid name.
    """
    validate_bucket_name(bucket)

    is_resumable_upload = False
    if method is None:
        method = "GET"
    elif method == RESUMABLE:
        is_resumable_upload = True
        method = "POST"

    now = to_utc(clock.now())
    timestamp = _format_timestamp(now)
    datestamp = _format_datestamp(now)
    # Not clamped: an expiration in the past yields zero or a negative value
    expiry_seconds = int((to_utc(expiration) - now).total_seconds())

    credential_scope = f"{datestamp}{CREDENTIAL_SCOPE_SUFFIX}"
    credential = _url_encode(f"{blob_signer.id}/{credential_scope}")

    # TODO: include request_headers and content_headers in the signed set
    headers = {"host": STORAGE_HOST_NAME}
    sorted_names = sorted(headers, key=str.lower)
    canonical_headers = "".join(
        f"{name}:{headers[name]}\n" for name in sorted_names
    ).lower()
    signed_headers = ";".join(name.lower() for name in sorted_names)

    query_parameters = [
        f"x-goog-algorithm={ALGORITHM}",
        f"x-goog-credential={credential}",
        f"x-goog-date={timestamp}",
        f"x-goog-expires={expiry_seconds}",
        f"x-goog-signedheaders={signed_headers}",
    ]
    if is_resumable_upload:
        query_parameters.insert(4, _RESUMABLE_PARAMETER)

    canonical_query_string = "&".join(query_parameters)
    resource_path = f"/{bucket}"
    if object_name is not None:
        resource_path += f"/{_escape_data(object_name)}"

    canonical_request = "\n".join(
        [
            method,
            resource_path,
            canonical_query_string,
            canonical_headers,
            signed_headers,
            UNSIGNED_PAYLOAD,
        ]
    )
    hash_hex = format_hex(
        hashlib.sha256(canonical_request.encode("utf-8")).digest()
    )
    logger.debug(
        "Canonical request for %s %s: sha256=%s, expires=%s",
        method,
        resource_path,
        hash_hex,
        expiry_seconds,
    )

    blob_to_sign = "\n".join(
        [ALGORITHM, timestamp, credential_scope, hash_hex]
    ).encode("utf-8")

    return SigningState(
        resource_path=resource_path,
        query_parameters=tuple(query_parameters),
        blob_to_sign=blob_to_sign,
        canonical_request=canonical_request,
    )


# ---------------------------------------------------------------------------
# Signing entry points
# ---------------------------------------------------------------------------


def sign(
    bucket: str,
    object_name: str | None,
    expiration: datetime,
    method: str | None,
    request_headers: Headers | None,
    content_headers: Headers | None,
    blob_signer: BlobSigner,
    clock: Clock,
) -> str:
    """Produce a V4 signed URL, blocking on the blob signer.

    Raises:
        InvalidBucketNameError: If ``bucket`` is not a valid name.
        MalformedSignatureError: If the signer returns invalid base64.
    """
    state = build_signing_state(
        bucket,
        object_name,
        expiration,
        method,
        request_headers,
        content_headers,
        blob_signer,
        clock,
    )
    base64_signature = blob_signer.create_signature(state.blob_to_sign)
    return state.result(format_hex(decode_signature(base64_signature)))


async def sign_async(
    bucket: str,
    object_name: str | None,
    expiration: datetime,
    method: str | None,
    request_headers: Headers | None,
    content_headers: Headers | None,
    blob_signer: BlobSigner,
    clock: Clock,
) -> str:
    """Produce a V4 signed URL, awaiting the blob signer.

    Cancelling the awaiting task cancels the signer call; nothing past
    that point runs, so no URL is produced.

    Raises:
        InvalidBucketNameError: If ``bucket`` is not a valid name.
        MalformedSignatureError: If the signer returns invalid base64.
    """
    state = build_signing_state(
        bucket,
        object_name,
        expiration,
        method,
        request_headers,
        content_headers,
        blob_signer,
        clock,
    )
    base64_signature = await blob_signer.create_signature_async(
        state.blob_to_sign
    )
    return state.result(format_hex(decode_signature(base64_signature)))
