"""
Canonical record builder — every source → frozenset[Intermediary].

Each source row is turned into its canonical record(s) in a single pass:
the issuer name on the row is parsed and paired with the serial(s) carried
by that same row. No list of parsed issuers is ever re-joined with a list
of serials by position.

Serial encodings:
  cert_storage      base64 of the key bytes after     (kept as is)
                    the issuer Name
  Kinto             base64                            (kept as is)
  revocations.txt   base64                            (kept as is)
  CCADB             hex                               → bytes → base64

Building a set deduplicates: rows differing only in source-specific
identifiers (Kinto ids, repeated CCADB rows) collapse into one record.
"""

from __future__ import annotations

import base64
from collections.abc import Iterable, Iterator

from railway import ErrorCode
from railway.result import Result

from revocation_audit.domain.errors import SerialDecodeFailure, fail
from revocation_audit.domain.models import (
    CCADBEntry,
    CCADBReport,
    CertStorage,
    Intermediary,
    Issuer,
    Kinto,
    Revocations,
    Source,
)
from revocation_audit.names import parse_issuer

type _Rows = Iterable[Result[list[Intermediary]]]


def _pair(issuer: Issuer, serials: Iterable[str]) -> list[Intermediary]:
    return [
        Intermediary(
            common_name=issuer.common_name,
            organization=issuer.organization,
            serial=serial,
        )
        for serial in serials
    ]


def _to_set(rows: _Rows) -> Result[frozenset[Intermediary]]:
    return Result.all_of(rows).map(
        lambda groups: frozenset(record for group in groups for record in group)
    )


def _cert_storage_rows(cert_storage: CertStorage) -> Iterator[Result[list[Intermediary]]]:
    # Sorted so that a NameParseFailure index is stable between runs.
    records = sorted(cert_storage.data, key=lambda r: (r.issuer_name, r.serial))
    for index, record in enumerate(records):
        yield parse_issuer(record.issuer_name, index).map(
            lambda issuer, serial=record.serial: _pair(issuer, [serial])
        )


def _kinto_rows(kinto: Kinto) -> Iterator[Result[list[Intermediary]]]:
    for index, record in enumerate(kinto.data):
        yield parse_issuer(record.issuer_name, index).map(
            lambda issuer, serial=record.serial_number: _pair(issuer, [serial])
        )


def _revocations_rows(revocations: Revocations) -> Iterator[Result[list[Intermediary]]]:
    """One issuer block fans out to one record per serial listed under it."""
    for index, record in enumerate(revocations.data):
        yield parse_issuer(record.issuer_name, index).map(
            lambda issuer, serials=record.serials: _pair(issuer, serials)
        )


def hex_serial_to_base64(serial: str, index: int = 0) -> Result[str]:
    """Re-encode a hex serial (CCADB) into the base64 form used everywhere else."""
    try:
        raw = bytes.fromhex(serial.strip())
    except ValueError:
        return fail(SerialDecodeFailure(index, serial))
    return Result.success(base64.b64encode(raw).decode("ascii"))


def _ccadb_rows(ccadb: CCADBReport) -> Iterator[Result[list[Intermediary]]]:
    for index, entry in enumerate(ccadb.report):
        yield hex_serial_to_base64(entry.certificate_serial_number, index).map(
            lambda serial, entry=entry: [_ccadb_intermediary(entry, serial)]
        )


def _ccadb_intermediary(entry: CCADBEntry, serial: str) -> Intermediary:
    return Intermediary(
        common_name=entry.certificate_issuer_common_name,
        organization=entry.certificate_issuer_organization,
        serial=serial,
    )


def to_intermediary_set(source: Source) -> Result[frozenset[Intermediary]]:
    """
    Project any supported source into its set of canonical records.

    Fails on the first row whose issuer name or serial cannot be decoded.
    """
    match source:
        case CertStorage():
            return _to_set(_cert_storage_rows(source))
        case Kinto():
            return _to_set(_kinto_rows(source))
        case Revocations():
            return _to_set(_revocations_rows(source))
        case CCADBReport():
            return _to_set(_ccadb_rows(source))
    return Result.failure(
        ErrorCode.VALIDATION_ERROR,
        f"Unsupported revocation source: {type(source).__name__}",
    )
