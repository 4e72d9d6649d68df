# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""V4 signed URLs for cloud object storage.

Creates time-limited URLs (GOOG4-RSA-SHA256) that grant access to a
storage bucket or object without the holder needing credentials.
"""

from urlsigner.blob_signer import (
    BlobSigner,
    ServiceAccountBlobSigner,
    ServiceAccountKeyError,
)
from urlsigner.bucket import InvalidBucketNameError, validate_bucket_name
from urlsigner.clock import Clock, FixedClock, SystemClock
from urlsigner.url_signer import RESUMABLE, UrlSigner
from urlsigner.v4 import MalformedSignatureError


__all__ = [
    "RESUMABLE",
    "BlobSigner",
    "Clock",
    "FixedClock",
    "InvalidBucketNameError",
    "MalformedSignatureError",
    "ServiceAccountBlobSigner",
    "ServiceAccountKeyError",
    "SystemClock",
    "UrlSigner",
    "validate_bucket_name",
]
