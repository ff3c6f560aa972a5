"""
Pipeline — the audit run from store snapshot to difference report.

Domain layer — pure orchestration. All I/O is injected via ports
(Protocol interfaces).

  load cert_storage (store)
    → fetch the feeds the comparison mode needs
      → canonicalize every source
        → reconcile → Report

Each stage returns Result[T]. Failures short-circuit automatically
through the ROP railway — no try/except needed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from railway import ErrorCode
from railway.result import Result

from revocation_audit.cert_storage import collect_cert_storage, load_cert_storage
from revocation_audit.domain.models import (
    CertStorage,
    ComparisonMode,
    RejectedEntry,
    Report,
    Source,
)
from revocation_audit.domain.ports import (
    CCADBFeed,
    KintoFeed,
    RevocationsFeed,
    RevocationStore,
)
from revocation_audit.reconcile import reconcile


@dataclass(frozen=True, slots=True)
class Feeds:
    """The remote feeds available to a run; a mode only uses the ones it needs."""

    kinto: KintoFeed | None = None
    revocations: RevocationsFeed | None = None
    ccadb: CCADBFeed | None = None


def _missing_feed(name: str, mode: ComparisonMode) -> Result[tuple[Source, ...]]:
    return Result.failure(
        ErrorCode.CONFIGURATION_ERROR,
        f"Comparison mode '{mode}' needs the {name} feed, but none is configured",
    )


type RejectedHook = Callable[[tuple[RejectedEntry, ...]], Any]


def _load_store(
    store: RevocationStore,
    quarantine_malformed: bool,
    on_rejected: RejectedHook | None,
) -> Result[CertStorage]:
    if quarantine_malformed:
        return (
            collect_cert_storage(store)
            .peek(lambda load: on_rejected(load.rejected) if on_rejected else None)
            .map(lambda load: load.storage)
        )
    return load_cert_storage(store)


def _gather_sources(
    cert_storage: CertStorage,
    mode: ComparisonMode,
    feeds: Feeds,
) -> Result[tuple[Source, ...]]:
    """Fetch the feeds for `mode` and line them up behind cert_storage."""
    match mode:
        case ComparisonMode.KINTO:
            if feeds.kinto is None:
                return _missing_feed("kinto", mode)
            return feeds.kinto.fetch().map(lambda kinto: (cert_storage, kinto))
        case ComparisonMode.THREE_WAY:
            if feeds.kinto is None:
                return _missing_feed("kinto", mode)
            if feeds.revocations is None:
                return _missing_feed("revocations", mode)
            return Result.combine(
                feeds.kinto.fetch(),
                feeds.revocations.fetch(),
                lambda kinto, revocations: (cert_storage, kinto, revocations),
            )
        case ComparisonMode.CCADB:
            if feeds.ccadb is None:
                return _missing_feed("ccadb", mode)
            return feeds.ccadb.fetch().map(lambda ccadb: (cert_storage, ccadb))
    return Result.failure(ErrorCode.CONFIGURATION_ERROR, f"Unknown comparison mode: {mode}")


def run_audit(
    store: RevocationStore,
    feeds: Feeds,
    mode: ComparisonMode = ComparisonMode.KINTO,
    quarantine_malformed: bool = False,
    on_rejected: RejectedHook | None = None,
) -> Result[Report]:
    """
    Execute one audit run.

    Flow:
      1. Load revoked issuer/serial pairs from the store
      2. Fetch the remote feeds required by `mode`
      3. Canonicalize and reconcile

    With `quarantine_malformed`, malformed store entries are skipped and
    handed to `on_rejected` (if given) once the store is loaded.

    Returns Result[Report] on success, or the failure of the first failing stage.
    """
    return (
        _load_store(store, quarantine_malformed, on_rejected)
        .flat_map(lambda cert_storage: _gather_sources(cert_storage, mode, feeds))
        .flat_map(reconcile)
    )
