"""
Unit tests for the audit pipeline — store snapshot to difference report.

Uses mock ports (fake adapters) to test the pipeline in isolation.

Test categories:
  - Success track per comparison mode
  - Missing feed for the requested mode → CONFIGURATION_ERROR
  - Failure at each stage: store / feed / canonicalization
  - Short-circuit: a failed store load means no feed is fetched
  - Quarantine mode: malformed entries are dropped instead of failing the run
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
from railway import ErrorCode, Result, ResultAssertions

from revocation_audit.domain.errors import KeyTooShort
from revocation_audit.domain.models import (
    CCADBDiffReport,
    CCADBEntry,
    CCADBReport,
    ComparisonMode,
    Intermediary,
    Kinto,
    KintoRecord,
    KintoReport,
    RejectedEntry,
    Revocations,
    RevocationsRecord,
    ThreeWayReport,
)
from revocation_audit.pipeline import Feeds, run_audit
from tests.conftest import b64, der_serial, issuer_serial_key

# ─────────────────────── Mock Port Factories ───────────────────────


def _make_store(result: Result) -> MagicMock:
    """Create a mock RevocationStore returning the given Result."""
    mock = MagicMock()
    mock.read_entries.return_value = result
    return mock


def _make_feed(result: Result) -> MagicMock:
    """Create a mock feed (Kinto, revocations.txt or CCADB) returning the given Result."""
    mock = MagicMock()
    mock.fetch.return_value = result
    return mock


@pytest.fixture()
def store_entries(test_ca_name: bytes) -> list[tuple[bytes, object]]:
    """Two revoked serials (1 and 2) under Test CA, plus one non-revoked."""
    return [
        (issuer_serial_key(test_ca_name, der_serial(1)), 1),
        (issuer_serial_key(test_ca_name, der_serial(2)), 1),
        (issuer_serial_key(test_ca_name, der_serial(3)), 0),
    ]


def _serial(value: int) -> str:
    return b64(der_serial(value))


# ─────────────────────── Success Track ───────────────────────


class TestRunAuditSuccess:
    def test_kinto_mode(self, test_ca_name: bytes, store_entries: list) -> None:
        """
        GIVEN a store revoking serials 1 and 2
        AND Kinto listing serials 2 and 3
        WHEN run_audit runs in kinto mode
        THEN serial 3 is only in Kinto and serial 1 only in cert_storage.
        """
        kinto = Kinto(
            data=(
                KintoRecord(b64(test_ca_name), _serial(2), id="k2"),
                KintoRecord(b64(test_ca_name), _serial(3), id="k3"),
            )
        )
        feeds = Feeds(kinto=_make_feed(Result.success(kinto)))

        report = ResultAssertions.assert_success(
            run_audit(_make_store(Result.success(store_entries)), feeds)
        )

        assert isinstance(report, KintoReport)
        assert report.in_kinto_not_in_cert_storage == (
            Intermediary("Test CA", "Test Org", _serial(3)),
        )
        assert report.in_cert_storage_not_in_kinto == (
            Intermediary("Test CA", "Test Org", _serial(1)),
        )

    def test_three_way_mode(self, test_ca_name: bytes, store_entries: list) -> None:
        kinto = Kinto(
            data=(
                KintoRecord(b64(test_ca_name), _serial(1)),
                KintoRecord(b64(test_ca_name), _serial(2)),
            )
        )
        revocations = Revocations(
            data=(RevocationsRecord(b64(test_ca_name), (_serial(1), _serial(2))),)
        )
        feeds = Feeds(
            kinto=_make_feed(Result.success(kinto)),
            revocations=_make_feed(Result.success(revocations)),
        )

        report = ResultAssertions.assert_success(
            run_audit(
                _make_store(Result.success(store_entries)),
                feeds,
                mode=ComparisonMode.THREE_WAY,
            )
        )

        assert isinstance(report, ThreeWayReport)
        assert report.total_differences() == 0

    def test_ccadb_mode(self, store_entries: list) -> None:
        ccadb = CCADBReport(
            report=(
                CCADBEntry("Test CA", "Test Org", der_serial(1).hex()),
                CCADBEntry("Test CA", "Test Org", der_serial(2).hex()),
            )
        )
        feeds = Feeds(ccadb=_make_feed(Result.success(ccadb)))

        report = ResultAssertions.assert_success(
            run_audit(
                _make_store(Result.success(store_entries)),
                feeds,
                mode=ComparisonMode.CCADB,
            )
        )

        assert isinstance(report, CCADBDiffReport)
        assert report.total_differences() == 0

    def test_only_the_feeds_of_the_mode_are_fetched(self, store_entries: list) -> None:
        kinto_feed = _make_feed(Result.success(Kinto()))
        ccadb_feed = _make_feed(Result.success(CCADBReport()))
        feeds = Feeds(kinto=kinto_feed, ccadb=ccadb_feed)

        run_audit(_make_store(Result.success(store_entries)), feeds, mode=ComparisonMode.CCADB)

        ccadb_feed.fetch.assert_called_once()
        kinto_feed.fetch.assert_not_called()


# ─────────────────────── Failure Track ───────────────────────


class TestRunAuditFailures:
    @pytest.mark.parametrize(
        ("mode", "feeds", "missing"),
        [
            (ComparisonMode.KINTO, Feeds(), "kinto"),
            (ComparisonMode.THREE_WAY, Feeds(kinto=MagicMock()), "revocations"),
            (ComparisonMode.CCADB, Feeds(kinto=MagicMock()), "ccadb"),
        ],
    )
    def test_missing_feed_is_configuration_error(
        self, mode: ComparisonMode, feeds: Feeds, missing: str
    ) -> None:
        result = run_audit(_make_store(Result.success([])), feeds, mode=mode)
        ResultAssertions.assert_failure(result, ErrorCode.CONFIGURATION_ERROR)
        ResultAssertions.assert_failure_message_contains(result, f"the {missing} feed")

    def test_store_failure_short_circuits(self) -> None:
        """
        GIVEN the store cannot be read
        WHEN run_audit runs
        THEN the store failure is returned and no feed is fetched.
        """
        kinto_feed = _make_feed(Result.success(Kinto()))
        store = _make_store(Result.failure(ErrorCode.DATABASE_ERROR, "store locked"))

        result = run_audit(store, Feeds(kinto=kinto_feed))

        ResultAssertions.assert_failure(result, ErrorCode.DATABASE_ERROR)
        kinto_feed.fetch.assert_not_called()

    def test_feed_failure_propagates(self, store_entries: list) -> None:
        feeds = Feeds(
            kinto=_make_feed(Result.failure(ErrorCode.EXTERNAL_SERVICE_ERROR, "Kinto unreachable"))
        )
        result = run_audit(_make_store(Result.success(store_entries)), feeds)
        ResultAssertions.assert_failure(result, ErrorCode.EXTERNAL_SERVICE_ERROR)

    def test_three_way_stops_at_first_failed_feed(self, store_entries: list) -> None:
        feeds = Feeds(
            kinto=_make_feed(Result.success(Kinto())),
            revocations=_make_feed(Result.failure(ErrorCode.VALIDATION_ERROR, "Malformed revocations.txt document")),
        )
        result = run_audit(
            _make_store(Result.success(store_entries)),
            feeds,
            mode=ComparisonMode.THREE_WAY,
        )
        ResultAssertions.assert_failure_message_contains(result, "revocations.txt")

    def test_malformed_entry_fails_the_run_by_default(self, store_entries: list) -> None:
        entries = [*store_entries, (b"is\x30\x7f\x00", 1)]
        feeds = Feeds(kinto=_make_feed(Result.success(Kinto())))

        result = run_audit(_make_store(Result.success(entries)), feeds)

        ResultAssertions.assert_failure_caused_by(result, KeyTooShort)


# ─────────────────────── Quarantine Mode ───────────────────────


class TestRunAuditQuarantine:
    def test_malformed_entry_is_dropped(self, test_ca_name: bytes, store_entries: list) -> None:
        """
        GIVEN a store with two valid revoked entries and one truncated key
        WHEN run_audit runs with quarantine_malformed=True
        THEN the run succeeds using the two valid entries.
        """
        entries = [*store_entries, (b"is\x30\x7f\x00", 1)]
        kinto = Kinto(
            data=(
                KintoRecord(b64(test_ca_name), _serial(1)),
                KintoRecord(b64(test_ca_name), _serial(2)),
            )
        )
        feeds = Feeds(kinto=_make_feed(Result.success(kinto)))

        report = ResultAssertions.assert_success(
            run_audit(_make_store(Result.success(entries)), feeds, quarantine_malformed=True)
        )

        assert report.total_differences() == 0

    def test_rejected_entries_reach_the_hook(self, test_ca_name: bytes, store_entries: list) -> None:
        """
        GIVEN a store whose last revoked entry has a truncated key
        WHEN run_audit runs in quarantine mode with an on_rejected hook
        THEN the hook receives that entry with its store position.
        """
        bad_key = b"is\x30\x7f\x00"
        entries = [*store_entries, (bad_key, 1)]
        feeds = Feeds(kinto=_make_feed(Result.success(Kinto(data=()))))
        received: list[RejectedEntry] = []

        ResultAssertions.assert_success(
            run_audit(
                _make_store(Result.success(entries)),
                feeds,
                quarantine_malformed=True,
                on_rejected=received.extend,
            )
        )

        assert [(entry.index, entry.key) for entry in received] == [(3, bad_key)]

    def test_hook_is_not_called_in_strict_mode(self, store_entries: list) -> None:
        feeds = Feeds(kinto=_make_feed(Result.success(Kinto(data=()))))
        hook = MagicMock()

        ResultAssertions.assert_success(
            run_audit(_make_store(Result.success(store_entries)), feeds, on_rejected=hook)
        )

        hook.assert_not_called()
