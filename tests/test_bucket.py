# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for bucket name validation."""

import pytest

from urlsigner.bucket import InvalidBucketNameError, validate_bucket_name


class TestValidateBucketName:
    """Tests for validate_bucket_name."""

    @pytest.mark.parametrize(
        "name",
        ["abc", "my-bucket", "my_bucket.example.com", "0bucket9", "a" * 222],
    )
    def test_valid(self, name: str) -> None:
        """Well-formed names are returned unchanged."""
        assert validate_bucket_name(name) == name

    @pytest.mark.parametrize(
        "name",
        [
            "",
            "ab",
            "a" * 223,
            "My-Bucket",
            "-bucket",
            "bucket-",
            "bucket.",
            "my bucket",
            "my/bucket",
            "bucket\n",
        ],
    )
    def test_invalid(self, name: str) -> None:
        """Malformed names are rejected."""
        with pytest.raises(InvalidBucketNameError, match="Invalid bucket"):
            validate_bucket_name(name)

    def test_none(self) -> None:
        """A missing name is rejected."""
        with pytest.raises(InvalidBucketNameError, match="required"):
            validate_bucket_name(None)

    def test_non_string(self) -> None:
        """Non-string names are rejected."""
        with pytest.raises(InvalidBucketNameError, match="must be a string"):
            validate_bucket_name(123)

    def test_is_value_error(self) -> None:
        """InvalidBucketNameError is a ValueError."""
        assert issubclass(InvalidBucketNameError, ValueError)
