"""Snapshot encoding for the settlement registry.

Layout (big-endian):
    u8   paused
    u64  count
    count x record:
        u64  id
        [32] receiver
        [32] sender
        [32] releaser
        u256 amount
        [32] asset
        u64  expiry_block
        u8   expiry_action
        u8   funded
        u8   finalized
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import IDENTITY_SIZE, SETTLEMENT_RECORD_SIZE, U256_MAX, U64_MAX
from .errors import ErrorCode, SettlementError
from .registry import SettlementRegistry
from .types import ExpiryAction, Settlement


@dataclass
class Writer:
    buf: bytearray

    def write_u8(self, v: int) -> None:
        self.buf.extend(int(v).to_bytes(1, "big", signed=False))

    def write_u64(self, v: int) -> None:
        if v < 0 or v > U64_MAX:
            raise SettlementError(ErrorCode.OVERFLOW, "value does not fit in u64")
        self.buf.extend(int(v).to_bytes(8, "big", signed=False))

    def write_u256(self, v: int) -> None:
        if v < 0 or v > U256_MAX:
            raise SettlementError(ErrorCode.OVERFLOW, "value does not fit in u256")
        self.buf.extend(int(v).to_bytes(32, "big", signed=False))

    def write_bytes(self, b: bytes) -> None:
        self.buf.extend(b)

    def write_bool(self, v: bool) -> None:
        self.write_u8(1 if v else 0)


@dataclass
class Reader:
    data: bytes
    pos: int = 0

    def _take(self, size: int) -> bytes:
        end = self.pos + size
        if end > len(self.data):
            raise SettlementError(ErrorCode.INVALID_FORMAT, "unexpected end of snapshot")
        chunk = self.data[self.pos:end]
        self.pos = end
        return chunk

    def read_u8(self) -> int:
        return self._take(1)[0]

    def read_u64(self) -> int:
        return int.from_bytes(self._take(8), "big", signed=False)

    def read_u256(self) -> int:
        return int.from_bytes(self._take(32), "big", signed=False)

    def read_bytes(self, size: int) -> bytes:
        return bytes(self._take(size))

    def read_bool(self) -> bool:
        v = self.read_u8()
        if v > 1:
            raise SettlementError(ErrorCode.INVALID_FORMAT, f"invalid bool byte {v}")
        return v == 1

    def done(self) -> bool:
        return self.pos == len(self.data)


def _write_identity(w: Writer, name: str, value: bytes) -> None:
    if len(value) != IDENTITY_SIZE:
        raise SettlementError(ErrorCode.INVALID_FORMAT, f"{name} must be {IDENTITY_SIZE} bytes")
    w.write_bytes(value)


def _write_settlement(w: Writer, s: Settlement) -> None:
    w.write_u64(s.id)
    _write_identity(w, "receiver", s.receiver)
    _write_identity(w, "sender", s.sender)
    _write_identity(w, "releaser", s.releaser)
    w.write_u256(s.amount)
    _write_identity(w, "asset", s.asset)
    w.write_u64(s.expiry_block)
    w.write_u8(int(s.expiry_action))
    w.write_bool(s.funded)
    w.write_bool(s.finalized)


def _read_settlement(r: Reader) -> Settlement:
    sid = r.read_u64()
    receiver = r.read_bytes(IDENTITY_SIZE)
    sender = r.read_bytes(IDENTITY_SIZE)
    releaser = r.read_bytes(IDENTITY_SIZE)
    amount = r.read_u256()
    asset = r.read_bytes(IDENTITY_SIZE)
    expiry_block = r.read_u64()
    raw_action = r.read_u8()
    try:
        action = ExpiryAction(raw_action)
    except ValueError:
        raise SettlementError(ErrorCode.INVALID_FORMAT, f"invalid expiry_action {raw_action}") from None
    return Settlement(
        id=sid,
        receiver=receiver,
        sender=sender,
        releaser=releaser,
        amount=amount,
        asset=asset,
        expiry_block=expiry_block,
        expiry_action=action,
        funded=r.read_bool(),
        finalized=r.read_bool(),
    )


def encode_settlement(s: Settlement) -> bytes:
    w = Writer(bytearray())
    _write_settlement(w, s)
    return bytes(w.buf)


def decode_settlement(data: bytes) -> Settlement:
    if len(data) != SETTLEMENT_RECORD_SIZE:
        raise SettlementError(
            ErrorCode.INVALID_FORMAT, f"settlement record must be {SETTLEMENT_RECORD_SIZE} bytes"
        )
    return _read_settlement(Reader(data))


def encode_registry(registry: SettlementRegistry) -> bytes:
    w = Writer(bytearray())
    w.write_bool(registry.paused)
    w.write_u64(registry.count())
    for s in registry:
        _write_settlement(w, s)
    return bytes(w.buf)


def decode_registry(data: bytes) -> SettlementRegistry:
    r = Reader(data)
    paused = r.read_bool()
    count = r.read_u64()

    records = []
    for index in range(count):
        s = _read_settlement(r)
        if s.id != index:
            raise SettlementError(ErrorCode.INVALID_FORMAT, f"record {index} carries id {s.id}")
        if s.finalized and s.amount != 0:
            raise SettlementError(ErrorCode.INVALID_FORMAT, f"record {index} finalized with funds left")
        if s.finalized and not s.funded:
            raise SettlementError(ErrorCode.INVALID_FORMAT, f"record {index} finalized without funding")
        if (s.expiry_block == 0) != (s.expiry_action == ExpiryAction.NONE):
            raise SettlementError(
                ErrorCode.INVALID_FORMAT, f"record {index} expiry block and action disagree"
            )
        records.append(s)
    if not r.done():
        raise SettlementError(ErrorCode.INVALID_FORMAT, "trailing bytes after last record")
    return SettlementRegistry(records, paused=paused)
