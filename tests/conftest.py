"""
Shared test fixtures and helpers for the revocation-audit test suite.

Builds real DER material (issuer Names, serial INTEGERs) with the
cryptography and asn1crypto libraries, and packs it into store keys the
way cert_storage lays them out.
"""

from __future__ import annotations

import base64
from collections.abc import Iterator

import pytest
import structlog
from asn1crypto import core
from cryptography import x509
from cryptography.x509.oid import NameOID


def der_name(
    common_name: str | None = None,
    organization: str | None = None,
    country: str | None = None,
    units: tuple[str, ...] = (),
) -> bytes:
    """DER-encode an X.501 Name with the given attributes (in C, O, OU…, CN order)."""
    attributes: list[x509.NameAttribute] = []
    if country is not None:
        attributes.append(x509.NameAttribute(NameOID.COUNTRY_NAME, country))
    if organization is not None:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization))
    for unit in units:
        attributes.append(x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, unit))
    if common_name is not None:
        attributes.append(x509.NameAttribute(NameOID.COMMON_NAME, common_name))
    return x509.Name(attributes).public_bytes()


def der_serial(value: int) -> bytes:
    """DER-encode a certificate serial number (INTEGER)."""
    return core.Integer(value).dump()


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def issuer_serial_key(issuer: bytes, serial: bytes) -> bytes:
    return b"is" + issuer + serial


def subject_key_hash_key(subject: bytes, key_hash: bytes) -> bytes:
    return b"spk" + subject + key_hash


@pytest.fixture()
def test_ca_name() -> bytes:
    """DER Name: C=US, O=Test Org, CN=Test CA."""
    return der_name(common_name="Test CA", organization="Test Org", country="US")


@pytest.fixture()
def other_ca_name() -> bytes:
    """DER Name: O=Other Org, CN=Other CA."""
    return der_name(common_name="Other CA", organization="Other Org")


@pytest.fixture(autouse=True)
def _reset_structlog() -> Iterator[None]:
    """Undo configure_structlog() so no test logs into another test's captured stream."""
    yield
    structlog.reset_defaults()
