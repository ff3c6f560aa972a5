"""
Unit tests for the reconciler.

Test categories:
  - Directional differences per comparison mode
  - Set algebra: differences are disjoint from the other side, equal sets → empty report
  - Dispatch on source shape, including unsupported shapes
  - Failures while canonicalizing any source propagate
"""

from __future__ import annotations

from railway import ErrorCode, ResultAssertions

from revocation_audit.domain.errors import NameParseFailure, SerialDecodeFailure
from revocation_audit.domain.models import (
    CCADBDiffReport,
    CCADBEntry,
    CCADBReport,
    CertStorage,
    Intermediary,
    IssuerSerial,
    Kinto,
    KintoRecord,
    KintoReport,
    Revocations,
    RevocationsRecord,
    ThreeWayReport,
)
from revocation_audit.reconcile import (
    reconcile,
    reconcile_ccadb,
    reconcile_kinto,
    reconcile_three_way,
)
from tests.conftest import b64, der_name

A = Intermediary("CA A", "Org A", "AQ==")
B = Intermediary("CA B", "Org B", "Ag==")
C = Intermediary("CA C", "Org C", "Aw==")
D = Intermediary("CA D", "Org D", "BA==")


class TestReconcileKinto:
    def test_directional_differences(self) -> None:
        """
        GIVEN cert_storage {A, B, C} and Kinto {B, C, D}
        WHEN reconciled
        THEN D is only in Kinto and A is only in cert_storage.
        """
        report = reconcile_kinto(frozenset({A, B, C}), frozenset({B, C, D}))
        assert set(report.in_kinto_not_in_cert_storage) == {D}
        assert set(report.in_cert_storage_not_in_kinto) == {A}

    def test_equal_sets_give_empty_report(self) -> None:
        report = reconcile_kinto(frozenset({A, B}), frozenset({A, B}))
        assert report.total_differences() == 0
        assert report.to_dict() == {
            "in_kinto_not_in_cert_storage": [],
            "in_cert_storage_not_in_kinto": [],
        }

    def test_differences_are_disjoint_from_the_other_side(self) -> None:
        cert_storage, kinto = frozenset({A, B}), frozenset({C})
        report = reconcile_kinto(cert_storage, kinto)
        assert not set(report.in_kinto_not_in_cert_storage) & cert_storage
        assert not set(report.in_cert_storage_not_in_kinto) & kinto
        assert set(report.in_cert_storage_not_in_kinto) | (cert_storage & kinto) == cert_storage


class TestReconcileThreeWay:
    def test_all_six_directions(self) -> None:
        """
        GIVEN cert_storage {A, B}, Kinto {B, C}, revocations {A, C, D}
        WHEN reconciled three ways
        THEN each direction lists exactly the records missing on the other side.
        """
        report = reconcile_three_way(
            frozenset({A, B}),
            frozenset({B, C}),
            frozenset({A, C, D}),
        )
        assert set(report.in_kinto_not_in_cert_storage) == {C}
        assert set(report.in_cert_storage_not_in_kinto) == {A}
        assert set(report.in_cert_storage_not_in_revocations) == {B}
        assert set(report.in_revocations_not_in_cert_storage) == {C, D}
        assert set(report.in_revocations_not_in_kinto) == {A, D}
        assert set(report.in_kinto_not_in_revocations) == {B}
        assert report.total_differences() == 8

    def test_empty_sources(self) -> None:
        report = reconcile_three_way(frozenset(), frozenset(), frozenset())
        assert report.total_differences() == 0
        assert len(report.to_dict()) == 6


class TestReconcileCCADB:
    def test_directional_differences(self) -> None:
        report = reconcile_ccadb(frozenset({A}), frozenset({A, B}))
        assert report.in_ccadb_not_in_cert_storage == (B,)
        assert report.in_cert_storage_not_in_ccadb == ()


class TestReconcileDispatch:
    """
    GIVEN a tuple of sources
    WHEN reconcile is called
    THEN the comparison mode and report type follow the tuple's shape.
    """

    def test_cert_storage_and_kinto(self, test_ca_name: bytes) -> None:
        storage = CertStorage(data=frozenset({IssuerSerial(b64(test_ca_name), "AQ==")}))
        kinto = Kinto(data=(KintoRecord(b64(test_ca_name), "AQ==", id="x"),))
        report = ResultAssertions.assert_success(reconcile((storage, kinto)))
        assert isinstance(report, KintoReport)
        assert report.total_differences() == 0

    def test_three_way(self, test_ca_name: bytes, other_ca_name: bytes) -> None:
        storage = CertStorage(data=frozenset({IssuerSerial(b64(test_ca_name), "AQ==")}))
        kinto = Kinto(data=(KintoRecord(b64(test_ca_name), "AQ=="),))
        revocations = Revocations(data=(RevocationsRecord(b64(other_ca_name), ("Ag==",)),))
        report = ResultAssertions.assert_success(reconcile((storage, kinto, revocations)))
        assert isinstance(report, ThreeWayReport)
        other = Intermediary("Other CA", "Other Org", "Ag==")
        assert report.in_revocations_not_in_cert_storage == (other,)
        assert report.in_revocations_not_in_kinto == (other,)
        assert report.in_kinto_not_in_revocations == (Intermediary("Test CA", "Test Org", "AQ=="),)

    def test_cert_storage_and_ccadb(self, test_ca_name: bytes) -> None:
        """
        GIVEN cert_storage holding serial 0x0A1B under Test CA
        AND a CCADB row for the same issuer with hex serial "0a1b"
        WHEN reconciled
        THEN the two sources agree.
        """
        storage = CertStorage(data=frozenset({IssuerSerial(b64(test_ca_name), "Chs=")}))
        ccadb = CCADBReport(report=(CCADBEntry("Test CA", "Test Org", "0a1b"),))
        report = ResultAssertions.assert_success(reconcile((storage, ccadb)))
        assert isinstance(report, CCADBDiffReport)
        assert report.total_differences() == 0

    def test_organization_only_issuer_matches_ccadb_row(self) -> None:
        storage = CertStorage(
            data=frozenset({IssuerSerial(b64(der_name(organization="Org Only")), "AQ==")})
        )
        ccadb = CCADBReport(report=(CCADBEntry("", "Org Only", "01"),))
        report = ResultAssertions.assert_success(reconcile((storage, ccadb)))
        assert report.total_differences() == 0

    def test_unsupported_shape_fails(self) -> None:
        result = reconcile((Kinto(), CertStorage()))
        ResultAssertions.assert_failure(result, ErrorCode.VALIDATION_ERROR)
        ResultAssertions.assert_failure_message_contains(result, "Unsupported comparison: (Kinto, CertStorage)")

    def test_single_source_fails(self) -> None:
        ResultAssertions.assert_failure(reconcile((CertStorage(),)), ErrorCode.VALIDATION_ERROR)

    def test_name_failure_in_any_source_fails_the_run(self, test_ca_name: bytes) -> None:
        storage = CertStorage(data=frozenset({IssuerSerial(b64(test_ca_name), "AQ==")}))
        kinto = Kinto(data=(KintoRecord("@@not-base64@@", "AQ=="),))
        ResultAssertions.assert_failure_caused_by(reconcile((storage, kinto)), NameParseFailure)

    def test_serial_failure_in_ccadb_fails_the_run(self) -> None:
        ccadb = CCADBReport(report=(CCADBEntry("CA", "Org", "zz"),))
        ResultAssertions.assert_failure_caused_by(reconcile((CertStorage(), ccadb)), SerialDecodeFailure)
