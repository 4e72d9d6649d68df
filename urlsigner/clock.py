# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Clock abstraction used to timestamp signed URLs."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol


def to_utc(value: datetime) -> datetime:
    """Normalize a datetime to UTC.

    Naive datetimes are taken to already be in UTC.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Clock(Protocol):
    """Source of the current instant."""

    def now(self) -> datetime:
        """Return the current instant as a UTC datetime."""
        ...


class SystemClock:
    """Clock backed by the system wall clock."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock that always reports the same instant.

    Useful for reproducible URLs, e.g. when comparing against a
    reference signature.
    """

    def __init__(self, instant: datetime) -> None:
        self._instant = to_utc(instant)

    def now(self) -> datetime:
        return self._instant
