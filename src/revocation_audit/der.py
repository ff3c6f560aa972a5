"""
DER key splitter — separates the two DER elements packed into a store key.

Store keys carry two TLV encodings back to back (issuer Name + serial, or
subject Name + key hash) with no separator. Only the first element's length
header is decoded to find the split point; the remainder is taken as the
second element without further validation.

Supported length headers (X.690 §8.1.3):

  0x00–0x7F   short form, content length = the byte itself
  0x80        indefinite form (BER only)          → rejected
  0x81 NN     long form, 1 length byte, NN ≥ 0x80
  0x82 NN NN  long form, 2 length bytes, ≥ 256
  0x83+       longer forms                         → rejected

A long form that could have been written shorter is non-canonical DER and
is rejected as BadDerLength.
"""

from __future__ import annotations

from railway.result import Result

from revocation_audit.domain.errors import (
    BadDerLength,
    KeyTooLong,
    KeyTooShort,
    UnsupportedIndefiniteLength,
    fail,
)

_INDEFINITE = 0x80
_LONG_FORM_1 = 0x81
_LONG_FORM_2 = 0x82


def _split_at(key: bytes, offset: int) -> Result[tuple[bytes, bytes]]:
    if len(key) < offset:
        return fail(KeyTooShort(key))
    return Result.success((key[:offset], key[offset:]))


def split_der_key(key: bytes) -> Result[tuple[bytes, bytes]]:
    """
    Split `key` into (first TLV element, remainder).

    Returns Result.failure with one of KeyTooShort, UnsupportedIndefiniteLength,
    BadDerLength or KeyTooLong attached when the length header is unusable.
    """
    if len(key) < 2:
        return fail(KeyTooShort(key))

    length_byte = key[1]
    if length_byte < _INDEFINITE:
        return _split_at(key, length_byte + 2)

    if length_byte == _INDEFINITE:
        return fail(UnsupportedIndefiniteLength(key))

    if length_byte == _LONG_FORM_1:
        if len(key) < 3:
            return fail(KeyTooShort(key))
        length = key[2]
        if length < 0x80:
            return fail(BadDerLength(key, length))
        return _split_at(key, length + 3)

    if length_byte == _LONG_FORM_2:
        if len(key) < 4:
            return fail(KeyTooShort(key))
        length = (key[2] << 8) | key[3]
        if length < 256:
            return fail(BadDerLength(key, length))
        return _split_at(key, length + 4)

    return fail(KeyTooLong(key))
