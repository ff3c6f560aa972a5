"""
Error kinds — typed causes attached to railway failures.

Business logic never raises these. Each kind is instantiated and attached
to the `exception` slot of a FailureDescription via `fail(...)`, so callers
can branch on the precise cause (isinstance) while still receiving a plain
Result. Adapters raise StoreAccessFailure / FeedFormatError internally and
let Result.from_computation carry them onto the failure track.
"""

from __future__ import annotations

from typing import ClassVar, TypeVar

from railway import ErrorCode
from railway.result import Result

T = TypeVar("T")


class RevocationDataError(Exception):
    """Base class for every audit error kind."""

    code: ClassVar[ErrorCode] = ErrorCode.VALIDATION_ERROR


class DerKeyError(RevocationDataError):
    """A store key could not be split into two DER elements."""

    def __init__(self, reason: str, key: bytes) -> None:
        self.key = bytes(key)
        super().__init__(f"{reason} (key={self.key.hex()})")


class KeyTooShort(DerKeyError):
    def __init__(self, key: bytes) -> None:
        super().__init__("key too short to be DER", key)


class UnsupportedIndefiniteLength(DerKeyError):
    def __init__(self, key: bytes) -> None:
        super().__init__("indefinite-length BER encoding is not supported", key)


class BadDerLength(DerKeyError):
    """Length was encoded in long form where the short form was required."""

    def __init__(self, key: bytes, length: int) -> None:
        self.length = length
        super().__init__(f"non-canonical DER length {length}", key)


class KeyTooLong(DerKeyError):
    def __init__(self, key: bytes) -> None:
        super().__init__("unsupported DER length-of-length", key)


class NameParseFailure(RevocationDataError):
    """An issuer name at `index` of its batch is not a valid DER Name."""

    def __init__(self, index: int, detail: str) -> None:
        self.index = index
        super().__init__(f"issuer name #{index} could not be parsed: {detail}")


class SerialDecodeFailure(RevocationDataError):
    """A hex-encoded serial at row `index` is not valid hex."""

    def __init__(self, index: int, serial: str) -> None:
        self.index = index
        self.serial = serial
        super().__init__(f"row #{index} serial {serial!r} is not valid hex")


class FeedFormatError(RevocationDataError):
    """A feed document does not have the expected shape."""

    def __init__(self, feed: str, detail: str) -> None:
        self.feed = feed
        super().__init__(f"{feed}: {detail}")


class StoreAccessFailure(RevocationDataError):
    code: ClassVar[ErrorCode] = ErrorCode.DATABASE_ERROR

    def __init__(self, location: str, detail: str) -> None:
        self.location = location
        super().__init__(f"cannot read revocation store at {location}: {detail}")


def fail(error: RevocationDataError) -> Result[T]:
    """Put `error` on the failure track, using its kind's ErrorCode."""
    return Result.failure(error.code, str(error), error)
