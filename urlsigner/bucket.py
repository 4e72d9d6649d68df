# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Bucket name validation."""

import re


_BUCKET_NAME_RE = re.compile(r"[a-z0-9][a-z0-9_.\-]{1,220}[a-z0-9]")


class InvalidBucketNameError(ValueError):
    """Raised when a bucket name is not syntactically valid."""


def validate_bucket_name(name: object) -> str:
    """Check that ``name`` is a syntactically valid bucket name.

    Names are 3-222 characters of lowercase letters, digits, ``-``, ``_``
    and ``.``, starting and ending with a letter or digit.

    Args:
        name: Candidate bucket name.

    Returns:
        The validated name.

    Raises:
        InvalidBucketNameError: If the name is missing or malformed.
    """
    if name is None:
        raise InvalidBucketNameError("Bucket name is required")
    if not isinstance(name, str):
        raise InvalidBucketNameError(
            f"Bucket name must be a string, got {type(name).__name__}"
        )
    if not _BUCKET_NAME_RE.fullmatch(name):
        raise InvalidBucketNameError(f"Invalid bucket name: {name!r}")
    return name
