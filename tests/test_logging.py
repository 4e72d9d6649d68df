# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for urlsigner.logging."""

import logging
from collections.abc import Iterator

import pytest

from urlsigner.logging import SecretFilter, configure_logging


def _record(msg: str, *args: object) -> logging.LogRecord:
    return logging.LogRecord(
        name="test",
        level=logging.INFO,
        pathname="",
        lineno=0,
        msg=msg,
        args=args,
        exc_info=None,
    )


class TestSecretFilter:
    """Tests for SecretFilter class."""

    def test_filter_returns_true(self) -> None:
        """Filter should always return True (never suppress records)."""
        assert SecretFilter().filter(_record("test message")) is True

    def test_no_secrets_no_redaction(self) -> None:
        """Without registered secrets, messages pass through unchanged."""
        record = _record("test message with key-123")
        SecretFilter().filter(record)
        assert record.msg == "test message with key-123"

    def test_redacts_registered_secret(self) -> None:
        """Registered secrets should be redacted from messages."""
        SecretFilter.register_secret("key-123")
        record = _record("Using key: key-123")
        SecretFilter().filter(record)
        assert record.msg == "Using key: [REDACTED]"

    def test_redacts_in_args(self) -> None:
        """Secrets in string args are redacted; other args untouched."""
        SecretFilter.register_secret("password123")
        record = _record("Login with %s (%d)", "password123", 7)
        SecretFilter().filter(record)
        assert record.args == ("[REDACTED]", 7)

    def test_overlapping_secrets(self) -> None:
        """A secret containing another is masked in full."""
        SecretFilter.register_secret("abc")
        SecretFilter.register_secret("abcdef")
        record = _record("value=abcdef")
        SecretFilter().filter(record)
        assert record.msg == "value=[REDACTED]"

    def test_ignores_empty_secret(self) -> None:
        """Empty strings should not be registered as secrets."""
        SecretFilter.register_secret("")
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None

    def test_clear_secrets(self) -> None:
        """clear_secrets should remove all registered secrets."""
        SecretFilter.register_secret("secret1")
        SecretFilter.clear_secrets()
        assert len(SecretFilter._secrets) == 0
        assert SecretFilter._pattern is None


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def _restore_root(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers = root.handlers[:]
        level = root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_single_handler_with_filter(self) -> None:
        """Root gets exactly one handler carrying the secret filter."""
        configure_logging(level=logging.DEBUG)
        configure_logging(level=logging.DEBUG)
        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.level == logging.DEBUG
        assert any(
            isinstance(f, SecretFilter) for f in root.handlers[0].filters
        )

    def test_without_filter(self) -> None:
        """The secret filter can be disabled."""
        configure_logging(add_secret_filter=False)
        assert logging.getLogger().handlers[0].filters == []

    def test_custom_format(self) -> None:
        """A custom format string is applied."""
        configure_logging(format_string="%(message)s")
        formatter = logging.getLogger().handlers[0].formatter
        assert formatter is not None
        assert formatter._fmt == "%(message)s"
