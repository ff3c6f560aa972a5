"""
Failure description — what travels down the failure track.

ErrorCode says which kind of problem occurred; FailureDescription carries the
code together with a human-readable message and, when the failure came from
an exception, the exception itself for callers that need its details.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Kinds of failure.

    Input problems (malformed keys, names, feed documents) are kept apart from
    infrastructure problems (store access, remote services) so a caller can
    tell "the data is bad" from "we could not read the data".
    """

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Malformed input: bad DER, undecodable name, unreadable feed row."""

    NOT_FOUND = "NOT_FOUND"
    """A required table or file is missing."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """An exception nobody anticipated."""

    DATABASE_ERROR = "DATABASE_ERROR"
    """The key-value store could not be opened or read."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Settings do not allow the requested run."""

    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"
    """A remote feed could not be fetched."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Anything not covered above."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Code, message, optional cause and the moment the failure was recorded.

    >>> err = FailureDescription(ErrorCode.VALIDATION_ERROR, "key too short")
    >>> err.describe()
    'VALIDATION_ERROR: key too short'
    >>> err.prefixed("entry 4").message
    'entry 4: key too short'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def prefixed(self, context: str) -> FailureDescription:
        """Same failure, with `context: ` in front of the message."""
        return dataclasses.replace(self, message=f"{context}: {self.message}")

    def describe(self, cause: bool = False) -> str:
        """
        `CODE: message`, on one line.

        With `cause=True` the attached exception's text follows the message,
        unless the message already contains it.
        """
        text = f"{self.code.value}: {self.message}"
        if cause and self.exception is not None:
            detail = str(self.exception)
            if detail and detail not in self.message:
                text = f"{text} ({detail})"
        return text
