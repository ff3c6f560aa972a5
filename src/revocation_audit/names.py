"""
Issuer name parser — DER X.501 Name → (common name, organization).

Names arrive as base64 text (the representation produced when store keys
are decoded, and used verbatim by Kinto and revocations.txt).

  Name ::= CHOICE { rdnSequence RDNSequence }
  RDNSequence ::= SEQUENCE OF RelativeDistinguishedName
  RelativeDistinguishedName ::= SET OF AttributeTypeAndValue

asn1crypto does the DER decoding. Only two attribute types are read:
  2.5.4.3   commonName
  2.5.4.10  organizationName
Absent attributes become "", and the first occurrence wins when an
attribute repeats.
"""

from __future__ import annotations

import base64
from collections.abc import Sequence
from functools import lru_cache

from asn1crypto import x509 as asn1_x509
from railway.result import Result

from revocation_audit.domain.errors import NameParseFailure, fail
from revocation_audit.domain.models import Issuer

COMMON_NAME_OID = "2.5.4.3"
ORGANIZATION_OID = "2.5.4.10"


def _attribute_text(value: object) -> str:
    native = value.native  # type: ignore[attr-defined]
    return native if isinstance(native, str) else str(native)


@lru_cache(maxsize=4096)
def _parse_name(name: str) -> Issuer:
    """Decode one base64 DER Name. Raises ValueError/TypeError on malformed input."""
    der = base64.b64decode(name, validate=True)
    parsed = asn1_x509.Name.load(der, strict=True)
    found: dict[str, str] = {}
    for rdn in parsed.chosen:
        for type_and_value in rdn:
            oid = type_and_value["type"].dotted
            if oid in (COMMON_NAME_OID, ORGANIZATION_OID) and oid not in found:
                found[oid] = _attribute_text(type_and_value["value"])
    return Issuer(
        common_name=found.get(COMMON_NAME_OID, ""),
        organization=found.get(ORGANIZATION_OID, ""),
    )


def parse_issuer(name: str, index: int = 0) -> Result[Issuer]:
    """
    Parse one base64 DER issuer Name.

    `index` is the name's position in its batch; it is only used to make a
    NameParseFailure point at the offending record.
    """
    try:
        return Result.success(_parse_name(name))
    except (ValueError, TypeError) as e:
        error = NameParseFailure(index, str(e) or type(e).__name__)
        error.__cause__ = e
        return fail(error)


def parse_issuers(names: Sequence[str]) -> Result[list[Issuer]]:
    """
    Parse a batch of issuer names.

    The output is positionally aligned with `names`. The first malformed
    name fails the whole batch; no partial output is returned.
    """
    return Result.all_of(parse_issuer(name, index) for index, name in enumerate(names))
