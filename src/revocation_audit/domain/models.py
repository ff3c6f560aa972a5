"""
Domain models — immutable value objects for revocation records and reports.

These are pure value objects with no behavior beyond rendering.
They cover three layers of the audit:

  raw store entries  → IssuerSerial / SubjectKeyHash
  per-source records → CertStorage, Kinto, Revocations, CCADBReport
  canonical records  → Intermediary, compared across sources
  reports            → ThreeWayReport, KintoReport, CCADBDiffReport

All models are frozen dataclasses (immutable, hashable where they need to
live in sets).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any

from railway import FailureDescription

# ─────────────────────── Store Entries ───────────────────────


@dataclass(frozen=True, slots=True)
class IssuerSerial:
    """
    A revoked (issuer, serial) pair decoded from an `is` store key.

    Both fields are base64 text of raw bytes found in the key:
    the issuer's DER Name and the key bytes after that Name, which are the
    certificate's raw serial number.
    """

    issuer_name: str
    serial: str


@dataclass(frozen=True, slots=True)
class SubjectKeyHash:
    """A revoked (subject, public key hash) pair decoded from an `spk` store key."""

    subject: str
    key_hash: str


type Entry = IssuerSerial | SubjectKeyHash

type StoreValue = int | bool | float | str | bytes | None


@dataclass(frozen=True, slots=True)
class RejectedEntry:
    """A store entry that failed to decode, kept for reporting in quarantine mode."""

    index: int
    key: bytes = field(repr=False)
    failure: FailureDescription


@dataclass(frozen=True, slots=True)
class CertStorage:
    """Deduplicated revoked issuer/serial pairs loaded from the local store."""

    data: frozenset[IssuerSerial] = frozenset()

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True, slots=True)
class StoreLoad:
    """Outcome of a quarantining store load: the valid subset plus rejects."""

    storage: CertStorage
    rejected: tuple[RejectedEntry, ...] = ()


# ─────────────────────── Remote Feed Records ───────────────────────


@dataclass(frozen=True, slots=True)
class KintoRecord:
    """One OneCRL record; `id` is Kinto's own identifier and never compared."""

    issuer_name: str
    serial_number: str
    id: str | None = None


@dataclass(frozen=True, slots=True)
class Kinto:
    data: tuple[KintoRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class RevocationsRecord:
    """One issuer block of revocations.txt: a base64 DER Name and its serials."""

    issuer_name: str
    serials: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class Revocations:
    data: tuple[RevocationsRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class CCADBEntry:
    """One row of the CCADB revoked-intermediates report (serial is hex)."""

    certificate_issuer_common_name: str
    certificate_issuer_organization: str
    certificate_serial_number: str


@dataclass(frozen=True, slots=True)
class CCADBReport:
    report: tuple[CCADBEntry, ...] = ()


type Source = CertStorage | Kinto | Revocations | CCADBReport

# ─────────────────────── Canonical Records ───────────────────────


@dataclass(frozen=True, slots=True)
class Issuer:
    """Human-readable attributes of a DER issuer Name; empty when absent."""

    common_name: str = ""
    organization: str = ""


@dataclass(frozen=True, slots=True)
class Intermediary:
    """
    The canonical reconciliation unit.

    Equality and hashing cover all three fields; `serial` is always base64,
    whatever encoding the originating source used.
    """

    common_name: str
    organization: str
    serial: str

    def to_dict(self) -> dict[str, str]:
        return {
            "common_name": self.common_name,
            "organization": self.organization,
            "serial": self.serial,
        }


# ─────────────────────── Reports ───────────────────────


class ComparisonMode(StrEnum):
    """Which sources a run compares; each mode has its own report type."""

    KINTO = "kinto"
    THREE_WAY = "three_way"
    CCADB = "ccadb"


class _Report:
    """Rendering shared by the report variants: every field is a difference list."""

    __slots__ = ()

    def to_dict(self) -> dict[str, list[dict[str, Any]]]:
        return {
            f.name: [record.to_dict() for record in getattr(self, f.name)]
            for f in fields(self)  # type: ignore[arg-type]
        }

    def total_differences(self) -> int:
        return sum(len(getattr(self, f.name)) for f in fields(self))  # type: ignore[arg-type]


@dataclass(frozen=True, slots=True)
class ThreeWayReport(_Report):
    """cert_storage vs Kinto vs revocations.txt — all six directions."""

    in_kinto_not_in_cert_storage: tuple[Intermediary, ...]
    in_cert_storage_not_in_kinto: tuple[Intermediary, ...]
    in_cert_storage_not_in_revocations: tuple[Intermediary, ...]
    in_revocations_not_in_cert_storage: tuple[Intermediary, ...]
    in_revocations_not_in_kinto: tuple[Intermediary, ...]
    in_kinto_not_in_revocations: tuple[Intermediary, ...]


@dataclass(frozen=True, slots=True)
class KintoReport(_Report):
    """cert_storage vs Kinto."""

    in_kinto_not_in_cert_storage: tuple[Intermediary, ...]
    in_cert_storage_not_in_kinto: tuple[Intermediary, ...]


@dataclass(frozen=True, slots=True)
class CCADBDiffReport(_Report):
    """cert_storage vs the CCADB revoked-intermediates report."""

    in_ccadb_not_in_cert_storage: tuple[Intermediary, ...]
    in_cert_storage_not_in_ccadb: tuple[Intermediary, ...]


type Report = ThreeWayReport | KintoReport | CCADBDiffReport
