"""Settlement registry: the dense, append-only arena of settlement records."""

from __future__ import annotations

from copy import copy
from typing import Iterator, Optional

from .access import AccessPolicy
from .errors import ErrorCode, SettlementError
from .types import Settlement


class SettlementRegistry:
    """Owns every `Settlement` and the global pause flag.

    Records are addressed by their index only. Nothing is ever removed or
    reordered, so an id handed out once stays valid for good.
    """

    def __init__(self, records: Optional[list[Settlement]] = None, paused: bool = False):
        self._records: list[Settlement] = list(records or [])
        self._paused = paused

    @property
    def paused(self) -> bool:
        return self._paused

    def append(self, record: Settlement) -> int:
        sid = len(self._records)
        record.id = sid
        self._records.append(record)
        return sid

    def get(self, sid: int) -> Settlement:
        """Detached copy of a record; mutating it does not touch the registry."""
        return copy(self._lookup(sid))

    def get_mut(self, sid: int) -> Settlement:
        return self._lookup(sid)

    def count(self) -> int:
        return len(self._records)

    def toggle_pause(self, caller: bytes, access: AccessPolicy) -> bool:
        if not access.is_admin(caller):
            raise SettlementError(ErrorCode.UNAUTHORIZED, "caller is not an administrator")
        self._paused = not self._paused
        return self._paused

    def __iter__(self) -> Iterator[Settlement]:
        return (copy(r) for r in self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SettlementRegistry):
            return NotImplemented
        return self._paused == other._paused and self._records == other._records

    def _lookup(self, sid: int) -> Settlement:
        if isinstance(sid, bool) or not isinstance(sid, int):
            raise SettlementError(ErrorCode.INVALID_PAYLOAD, "settlement id must be an integer")
        if sid < 0 or sid >= len(self._records):
            raise SettlementError(ErrorCode.NOT_FOUND, f"settlement {sid} not found")
        return self._records[sid]
