"""
Feed adapters — fetch and parse the three remote revocation feeds via httpx.

Adapter layer — implements the KintoFeed, RevocationsFeed and CCADBFeed
ports. Each adapter downloads its document, then hands the text to a pure
parser:

  Kinto (OneCRL)     JSON  {"data": [{"issuerName", "serialNumber", "id"}, ...]}
  revocations.txt    text  issuer line, " serial" lines, "\\tkey hash" lines
  CCADB report       CSV   "Certificate Issuer Common Name",
                           "Certificate Issuer Organization",
                           "Certificate Serial Number", ...

Retry/backoff via tenacity on transient errors (network, timeout).
HTTP errors become EXTERNAL_SERVICE_ERROR failures, document shape errors
become VALIDATION_ERROR failures — no exceptions leak to the caller.
"""

from __future__ import annotations

import csv
import io
import json

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from revocation_audit.domain.errors import FeedFormatError
from revocation_audit.domain.models import (
    CCADBEntry,
    CCADBReport,
    Kinto,
    KintoRecord,
    Revocations,
    RevocationsRecord,
)

log = structlog.get_logger()

CCADB_COMMON_NAME = "Certificate Issuer Common Name"
CCADB_ORGANIZATION = "Certificate Issuer Organization"
CCADB_SERIAL = "Certificate Serial Number"

# ─────────────────────── Document Parsers ───────────────────────


def _parse_kinto(text: str) -> Kinto:
    document = json.loads(text)
    data = document.get("data") if isinstance(document, dict) else None
    if not isinstance(data, list):
        raise FeedFormatError("kinto", "expected an object with a 'data' list")

    records: list[KintoRecord] = []
    for item in data:
        if not isinstance(item, dict):
            raise FeedFormatError("kinto", f"record is not an object: {item!r}")
        issuer_name = item.get("issuerName")
        serial_number = item.get("serialNumber")
        # subject/pubKeyHash records have no issuer/serial pair to compare
        if not issuer_name or not serial_number:
            continue
        records.append(
            KintoRecord(issuer_name=issuer_name, serial_number=serial_number, id=item.get("id"))
        )
    return Kinto(data=tuple(records))


def _parse_revocations(text: str) -> Revocations:
    records: list[RevocationsRecord] = []
    issuer: str | None = None
    serials: list[str] = []
    subject_keyed = False

    def close_block() -> None:
        if issuer is not None and not subject_keyed:
            records.append(RevocationsRecord(issuer_name=issuer, serials=tuple(serials)))

    for number, line in enumerate(text.splitlines(), start=1):
        if not line.strip() or line.startswith("#"):
            continue
        if line[0] in " \t":
            if issuer is None:
                raise FeedFormatError("revocations.txt", f"line {number}: entry before any issuer")
            if line[0] == "\t":
                subject_keyed = True
            else:
                serials.append(line.strip())
            continue
        close_block()
        issuer, serials, subject_keyed = line.strip(), [], False
    close_block()
    return Revocations(data=tuple(records))


def _parse_ccadb(text: str) -> CCADBReport:
    reader = csv.DictReader(io.StringIO(text.lstrip("\ufeff")))
    missing = [
        column
        for column in (CCADB_COMMON_NAME, CCADB_ORGANIZATION, CCADB_SERIAL)
        if column not in (reader.fieldnames or [])
    ]
    if missing:
        raise FeedFormatError("ccadb", f"missing columns: {', '.join(missing)}")
    return CCADBReport(
        report=tuple(
            CCADBEntry(
                certificate_issuer_common_name=row[CCADB_COMMON_NAME] or "",
                certificate_issuer_organization=row[CCADB_ORGANIZATION] or "",
                certificate_serial_number=row[CCADB_SERIAL] or "",
            )
            for row in reader
        )
    )


def parse_kinto_document(text: str) -> Result[Kinto]:
    return Result.from_computation(
        lambda: _parse_kinto(text),
        ErrorCode.VALIDATION_ERROR,
        "Malformed Kinto document",
    )


def parse_revocations_document(text: str) -> Result[Revocations]:
    """
    Parse revocations.txt.

    Blocks keyed by subject (followed by tab-indented key hashes) are
    dropped: only issuer/serial blocks take part in the comparison.
    """
    return Result.from_computation(
        lambda: _parse_revocations(text),
        ErrorCode.VALIDATION_ERROR,
        "Malformed revocations.txt document",
    )


def parse_ccadb_document(text: str) -> Result[CCADBReport]:
    return Result.from_computation(
        lambda: _parse_ccadb(text),
        ErrorCode.VALIDATION_ERROR,
        "Malformed CCADB report",
    )


# ─────────────────────── HTTP Adapters ───────────────────────


class _HttpDocument:
    """GET a text document with retry on transient network errors."""

    feed_name = "document"

    def __init__(self, url: str, timeout: int = 60) -> None:
        self._url = url
        self._timeout = timeout

    def _download(self) -> Result[str]:
        return Result.from_computation(
            lambda: self._do_get(),
            ErrorCode.EXTERNAL_SERVICE_ERROR,
            f"Failed to fetch {self.feed_name} from {self._url}",
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=0.1, max=30),
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        reraise=True,
    )
    def _do_get(self) -> str:
        """HTTP GET with retry — exceptions caught by from_computation."""
        with httpx.Client(timeout=self._timeout, follow_redirects=True) as client:
            response = client.get(self._url)
            response.raise_for_status()
            log.info("feed.fetched", feed=self.feed_name, size_bytes=len(response.content))
            return response.text


class HttpKintoFeed(_HttpDocument):
    """Implements the KintoFeed port."""

    feed_name = "kinto"

    def fetch(self) -> Result[Kinto]:
        return self._download().flat_map(parse_kinto_document)


class HttpRevocationsFeed(_HttpDocument):
    """Implements the RevocationsFeed port."""

    feed_name = "revocations.txt"

    def fetch(self) -> Result[Revocations]:
        return self._download().flat_map(parse_revocations_document)


class HttpCCADBFeed(_HttpDocument):
    """Implements the CCADBFeed port."""

    feed_name = "ccadb"

    def fetch(self) -> Result[CCADBReport]:
        return self._download().flat_map(parse_ccadb_document)
