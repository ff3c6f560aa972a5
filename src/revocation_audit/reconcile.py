"""
Reconciler — directional set differences between canonical record sets.

Three comparison modes, each with its own report type:

  (CertStorage, Kinto, Revocations)  → ThreeWayReport   (6 differences)
  (CertStorage, Kinto)               → KintoReport      (2 differences)
  (CertStorage, CCADBReport)         → CCADBDiffReport  (2 differences)

Difference lists carry no meaningful order.
"""

from __future__ import annotations

from collections.abc import Set

import structlog
from railway import ErrorCode
from railway.result import Result

from revocation_audit.canonical import to_intermediary_set
from revocation_audit.domain.models import (
    CCADBDiffReport,
    CCADBReport,
    CertStorage,
    Intermediary,
    Kinto,
    KintoReport,
    Report,
    Revocations,
    Source,
    ThreeWayReport,
)

log = structlog.get_logger()

type Records = Set[Intermediary]


def _minus(left: Records, right: Records) -> tuple[Intermediary, ...]:
    return tuple(left - right)


def reconcile_three_way(
    cert_storage: Records,
    kinto: Records,
    revocations: Records,
) -> ThreeWayReport:
    return ThreeWayReport(
        in_kinto_not_in_cert_storage=_minus(kinto, cert_storage),
        in_cert_storage_not_in_kinto=_minus(cert_storage, kinto),
        in_cert_storage_not_in_revocations=_minus(cert_storage, revocations),
        in_revocations_not_in_cert_storage=_minus(revocations, cert_storage),
        in_revocations_not_in_kinto=_minus(revocations, kinto),
        in_kinto_not_in_revocations=_minus(kinto, revocations),
    )


def reconcile_kinto(cert_storage: Records, kinto: Records) -> KintoReport:
    return KintoReport(
        in_kinto_not_in_cert_storage=_minus(kinto, cert_storage),
        in_cert_storage_not_in_kinto=_minus(cert_storage, kinto),
    )


def reconcile_ccadb(cert_storage: Records, ccadb: Records) -> CCADBDiffReport:
    return CCADBDiffReport(
        in_ccadb_not_in_cert_storage=_minus(ccadb, cert_storage),
        in_cert_storage_not_in_ccadb=_minus(cert_storage, ccadb),
    )


def _log_report(report: Report) -> None:
    log.info(
        "reconcile.complete",
        mode=type(report).__name__,
        differences=report.total_differences(),
    )


def reconcile(sources: tuple[Source, ...]) -> Result[Report]:
    """
    Canonicalize each source and compute the differences for its mode.

    The mode is chosen by the shape of `sources`; any other combination is
    a VALIDATION_ERROR.
    """
    match sources:
        case (CertStorage() as cert_storage, Kinto() as kinto, Revocations() as revocations):
            result: Result[Report] = Result.combine3(
                to_intermediary_set(cert_storage),
                to_intermediary_set(kinto),
                to_intermediary_set(revocations),
                reconcile_three_way,
            )
        case (CertStorage() as cert_storage, Kinto() as kinto):
            result = Result.combine(
                to_intermediary_set(cert_storage),
                to_intermediary_set(kinto),
                reconcile_kinto,
            )
        case (CertStorage() as cert_storage, CCADBReport() as ccadb):
            result = Result.combine(
                to_intermediary_set(cert_storage),
                to_intermediary_set(ccadb),
                reconcile_ccadb,
            )
        case _:
            shape = ", ".join(type(source).__name__ for source in sources)
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Unsupported comparison: ({shape})",
            )
    return result.peek(_log_report)
