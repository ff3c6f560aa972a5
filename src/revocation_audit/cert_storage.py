"""
cert_storage decoding — raw store entries → revoked issuer/serial set.

Key layout in the revocation table:

  b"is"  + DER(issuer Name)  + serial bytes           → IssuerSerial
  b"spk" + DER(subject Name) + key hash bytes         → SubjectKeyHash

Only entries whose value is exactly the integer 1 are revoked. Any other
value (0, absent, a non-integer) means the pair is not currently revoked
and is skipped silently; that is not an error.

Two loading policies are offered:
  - load_cert_storage: all-or-nothing, the first malformed key fails the load
  - collect_cert_storage: keeps the valid subset and reports the rejects
"""

from __future__ import annotations

import base64
from collections.abc import Iterable

import structlog
from railway.result import Result

from revocation_audit.der import split_der_key
from revocation_audit.domain.models import (
    CertStorage,
    Entry,
    IssuerSerial,
    RejectedEntry,
    StoreLoad,
    StoreValue,
    SubjectKeyHash,
)
from revocation_audit.domain.ports import RevocationStore

log = structlog.get_logger()

ISSUER_SERIAL_PREFIX = b"is"
SUBJECT_KEY_HASH_PREFIX = b"spk"

REVOKED = 1


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def is_revoked(value: StoreValue) -> bool:
    """True only for the integer 1 (booleans are not revocation states)."""
    return isinstance(value, int) and not isinstance(value, bool) and value == REVOKED


def decode_entry(key: bytes, value: StoreValue) -> Result[Entry] | None:
    """
    Decode one store entry.

    Returns None when the entry is not revoked or its prefix is unknown,
    otherwise the decoded entry or the splitter's failure.
    """
    if not is_revoked(value):
        return None
    if key.startswith(ISSUER_SERIAL_PREFIX):
        return split_der_key(key[len(ISSUER_SERIAL_PREFIX):]).map(
            lambda parts: IssuerSerial(issuer_name=_b64(parts[0]), serial=_b64(parts[1]))
        )
    if key.startswith(SUBJECT_KEY_HASH_PREFIX):
        return split_der_key(key[len(SUBJECT_KEY_HASH_PREFIX):]).map(
            lambda parts: SubjectKeyHash(subject=_b64(parts[0]), key_hash=_b64(parts[1]))
        )
    return None


def decode_revocation(key: bytes, value: StoreValue) -> Result[IssuerSerial] | None:
    """
    Like decode_entry, but a well-formed subject/key-hash entry is skipped.

    A malformed revoked `spk` key still fails: it is as much a sign of a
    corrupt snapshot as a malformed `is` key.
    """
    decoded = decode_entry(key, value)
    if decoded is None or (decoded.is_success() and not isinstance(decoded.value(), IssuerSerial)):
        return None
    return decoded  # type: ignore[return-value]


def _collect_strict(entries: Iterable[tuple[bytes, StoreValue]]) -> Result[CertStorage]:
    revoked: set[IssuerSerial] = set()
    for key, value in entries:
        decoded = decode_revocation(key, value)
        if decoded is None:
            continue
        if decoded.is_failure():
            return decoded.map_failure(lambda err: err.prefixed("failed to build set from cert_storage"))
        revoked.add(decoded.value())
    return Result.success(CertStorage(data=frozenset(revoked)))


def _collect_lenient(entries: Iterable[tuple[bytes, StoreValue]]) -> StoreLoad:
    candidates = [
        (index, key, decoded)
        for index, (key, value) in enumerate(entries)
        if (decoded := decode_revocation(key, value)) is not None
    ]
    revoked, failures = Result.partition(decoded for _, _, decoded in candidates)

    rejected: list[RejectedEntry] = []
    for position, failure in failures:
        index, key, _ = candidates[position]
        log.warning(
            "cert_storage.entry_rejected",
            index=index,
            key=key.hex(),
            reason=failure.message,
        )
        rejected.append(RejectedEntry(index=index, key=key, failure=failure))
    return StoreLoad(storage=CertStorage(data=frozenset(revoked)), rejected=tuple(rejected))


def load_cert_storage(store: RevocationStore) -> Result[CertStorage]:
    """
    Load every revoked issuer/serial pair from the store.

    All-or-nothing: a single malformed key fails the whole load, since a
    corrupt record casts doubt on the snapshot as a whole.
    """
    return (
        store.read_entries()
        .flat_map(_collect_strict)
        .peek(lambda storage: log.info("cert_storage.loaded", records=len(storage)))
    )


def collect_cert_storage(store: RevocationStore) -> Result[StoreLoad]:
    """
    Load the store, quarantining malformed entries instead of failing.

    A store that cannot be read still fails the call.
    """
    return (
        store.read_entries()
        .map(_collect_lenient)
        .peek(
            lambda load: log.info(
                "cert_storage.loaded",
                records=len(load.storage),
                rejected=len(load.rejected),
            )
        )
    )
