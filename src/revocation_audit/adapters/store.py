"""
LMDB store adapter — read-only access to an rkv-backed cert_storage table.

Adapter layer — implements the RevocationStore port using py-lmdb.

The revocation table is a named LMDB database (default "cert_storage")
written by rkv. rkv prefixes every value with a one-byte type tag followed
by the bincode encoding of the payload:

  tag  type     payload
  1    Bool     u8
  2    U64      u64 little-endian
  3    I64      i64 little-endian      ← revocation state
  4    F64      f64 little-endian
  5    Instant  i64 little-endian
  6    Uuid     16 bytes
  7    Str      u64 length + UTF-8
  8    Json     u64 length + UTF-8
  9    Blob     u64 length + bytes

Only I64 values yield a Python int; Instant and Uuid are returned as raw
bytes so they can never be mistaken for a revocation state.

The whole table is read inside one read-only transaction, in LMDB's
ascending key order. Nothing is ever written.
"""

from __future__ import annotations

import struct
from pathlib import Path

import lmdb
import structlog
from railway import ErrorCode
from railway.result import Result

from revocation_audit.domain.errors import StoreAccessFailure
from revocation_audit.domain.models import StoreValue

log = structlog.get_logger()


def _length_prefixed(data: bytes) -> bytes:
    (length,) = struct.unpack_from("<Q", data)
    payload = data[8 : 8 + length]
    if len(payload) != length:
        raise ValueError(f"truncated rkv value: expected {length} bytes, found {len(payload)}")
    return payload


def decode_rkv_value(raw: bytes | None) -> StoreValue:
    """Decode one tagged rkv value. Empty input decodes to None."""
    if not raw:
        return None
    tag, data = raw[0], bytes(raw[1:])
    match tag:
        case 1:
            return data[:1] != b"\x00"
        case 2:
            return struct.unpack("<Q", data[:8])[0]
        case 3:
            return struct.unpack("<q", data[:8])[0]
        case 4:
            return struct.unpack("<d", data[:8])[0]
        case 7 | 8:
            return _length_prefixed(data).decode("utf-8")
        case 9:
            return _length_prefixed(data)
        case _:
            return data


class LmdbRevocationStore:
    """
    Read revocation entries from an LMDB environment directory.

    Implements the RevocationStore port.
    All exceptions are caught at this adapter boundary via Result.from_computation().
    """

    def __init__(
        self,
        path: Path,
        table: str = "cert_storage",
        map_size: int = 16777216,
        max_dbs: int = 2,
    ) -> None:
        self._path = Path(path)
        self._table = table
        self._map_size = map_size
        self._max_dbs = max_dbs

    def read_entries(self) -> Result[list[tuple[bytes, StoreValue]]]:
        """
        Return every (key, decoded value) pair of the table in key order.

        Returns Result.failure(DATABASE_ERROR, ...) with a StoreAccessFailure
        attached when the environment or table cannot be read.
        """
        return Result.from_computation(
            self._read_all,
            ErrorCode.DATABASE_ERROR,
            f"Failed to read revocation store at {self._path}",
        )

    def _read_all(self) -> list[tuple[bytes, StoreValue]]:
        if not self._path.is_dir():
            raise StoreAccessFailure(str(self._path), "not a directory")
        try:
            env = lmdb.open(
                str(self._path),
                readonly=True,
                lock=False,
                max_dbs=self._max_dbs,
                map_size=self._map_size,
            )
        except lmdb.Error as e:
            raise StoreAccessFailure(str(self._path), str(e)) from e

        try:
            table = env.open_db(self._table.encode("utf-8"), create=False)
            with env.begin(db=table, buffers=False) as txn:
                entries = [(bytes(key), decode_rkv_value(value)) for key, value in txn.cursor()]
        except lmdb.Error as e:
            raise StoreAccessFailure(f"{self._path}:{self._table}", str(e)) from e
        finally:
            env.close()

        log.info("store.read", path=str(self._path), table=self._table, entries=len(entries))
        return entries
