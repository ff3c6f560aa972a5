"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the audit needs (contracts) without specifying HOW it's
done. Following hexagonal architecture:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing) so adapters satisfy the contract
simply by implementing the methods — no inheritance.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from railway.result import Result

from revocation_audit.domain.models import CCADBReport, Kinto, Revocations, StoreValue


@runtime_checkable
class RevocationStore(Protocol):
    """
    Port: read-only access to the embedded key-value revocation store.

    Returns every (key, value) pair of the revocation table in ascending key
    order, read inside a single read transaction. Values are already decoded
    to Python scalars (None when the entry carries no value).
    """

    def read_entries(self) -> Result[list[tuple[bytes, StoreValue]]]: ...


@runtime_checkable
class KintoFeed(Protocol):
    """Port: fetch and parse the OneCRL collection from Kinto."""

    def fetch(self) -> Result[Kinto]: ...


@runtime_checkable
class RevocationsFeed(Protocol):
    """Port: fetch and parse a revocations.txt document."""

    def fetch(self) -> Result[Revocations]: ...


@runtime_checkable
class CCADBFeed(Protocol):
    """Port: fetch and parse the CCADB revoked-intermediates CSV report."""

    def fetch(self) -> Result[CCADBReport]: ...
