"""Registry snapshot encoding and digest fixtures."""

from __future__ import annotations

import pytest

from settle_spec.access import AccessPolicy
from settle_spec.config import SETTLEMENT_RECORD_SIZE, U256_MAX
from settle_spec.encoding import (
    decode_registry,
    decode_settlement,
    encode_registry,
    encode_settlement,
)
from settle_spec.errors import ErrorCode, SettlementError
from settle_spec.registry import SettlementRegistry
from settle_spec.state import genesis_state
from settle_spec.state_digest import compute_registry_digest, compute_state_digest
from settle_spec.state_transition import advance_blocks
from settle_spec.test_accounts import FUNDER, RECEIVER, RELEASER, TOKEN
from settle_spec.types import ExpiryAction, Settlement


def _registry() -> SettlementRegistry:
    registry = SettlementRegistry()
    registry.append(
        Settlement(id=0, receiver=RECEIVER, sender=FUNDER, releaser=RELEASER, amount=100, asset=TOKEN)
    )
    registry.append(
        Settlement(
            id=0,
            receiver=RECEIVER,
            sender=FUNDER,
            releaser=RELEASER,
            amount=U256_MAX,
            asset=TOKEN,
            expiry_block=2**40,
            expiry_action=ExpiryAction.REFUND,
            funded=True,
        )
    )
    registry.append(
        Settlement(
            id=0,
            receiver=RECEIVER,
            sender=FUNDER,
            releaser=RELEASER,
            amount=0,
            asset=TOKEN,
            funded=True,
            finalized=True,
        )
    )
    return registry


def test_settlement_record_layout(vector_test_group) -> None:
    s = Settlement(
        id=1,
        receiver=RECEIVER,
        sender=FUNDER,
        releaser=RELEASER,
        amount=256,
        asset=TOKEN,
        expiry_block=7,
        expiry_action=ExpiryAction.RELEASE,
        funded=True,
    )
    data = encode_settlement(s)
    assert len(data) == SETTLEMENT_RECORD_SIZE == 179
    assert data[:8] == (1).to_bytes(8, "big")
    assert data[8:40] == RECEIVER
    assert data[104:136] == (256).to_bytes(32, "big")
    assert data[-3:] == bytes([1, 1, 0])
    assert decode_settlement(data) == s
    vector_test_group(
        "encoding/settlement_record.json",
        {"name": "settlement_record_layout", "input": {"id": 1, "amount": "256"}, "expected": data.hex()},
    )


def test_registry_snapshot_round_trip() -> None:
    registry = _registry()
    registry.toggle_pause(FUNDER, AccessPolicy(FUNDER))
    data = encode_registry(registry)
    assert len(data) == 9 + 3 * SETTLEMENT_RECORD_SIZE
    assert data[0] == 1
    assert decode_registry(data) == registry


def test_empty_registry_snapshot() -> None:
    data = encode_registry(SettlementRegistry())
    assert data == bytes(9)
    assert decode_registry(data) == SettlementRegistry()


def test_snapshot_truncated() -> None:
    data = encode_registry(_registry())
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(data[:-1])
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_trailing_bytes() -> None:
    data = encode_registry(_registry()) + b"\x00"
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(data)
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_bad_bool() -> None:
    data = bytearray(encode_registry(_registry()))
    data[0] = 2
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(bytes(data))
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_id_mismatch() -> None:
    data = bytearray(encode_registry(_registry()))
    # First record's id lives right after the header.
    data[9:17] = (5).to_bytes(8, "big")
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(bytes(data))
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_finalized_with_funds() -> None:
    registry = SettlementRegistry()
    registry.append(
        Settlement(
            id=0,
            receiver=RECEIVER,
            sender=FUNDER,
            releaser=RELEASER,
            amount=5,
            asset=TOKEN,
            funded=True,
            finalized=True,
        )
    )
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(encode_registry(registry))
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_unknown_expiry_action() -> None:
    data = bytearray(encode_settlement(_registry().get(0)))
    data[-3] = 9
    with pytest.raises(SettlementError) as excinfo:
        decode_settlement(bytes(data))
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_encode_rejects_short_identity() -> None:
    s = Settlement(id=0, receiver=b"\x01", sender=FUNDER, releaser=RELEASER, amount=1, asset=TOKEN)
    with pytest.raises(SettlementError) as excinfo:
        encode_settlement(s)
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_registry_digest_is_stable() -> None:
    a = compute_registry_digest(_registry())
    b = compute_registry_digest(_registry())
    assert a == b
    assert len(a) == 64

    changed = _registry()
    changed.get_mut(0).funded = True
    assert compute_registry_digest(changed) != a


def test_state_digest_covers_height() -> None:
    state = genesis_state()
    before = compute_state_digest(state)
    assert compute_state_digest(advance_blocks(state, 1)) != before
    assert compute_state_digest(state) == before


def _single(**overrides) -> SettlementRegistry:
    fields = dict(id=0, receiver=RECEIVER, sender=FUNDER, releaser=RELEASER, amount=0, asset=TOKEN)
    fields.update(overrides)
    registry = SettlementRegistry()
    registry.append(Settlement(**fields))
    return registry


def test_snapshot_finalized_without_funding() -> None:
    data = encode_registry(_single(finalized=True))
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(data)
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_expiry_without_action() -> None:
    data = encode_registry(_single(amount=100, expiry_block=50))
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(data)
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT


def test_snapshot_action_without_expiry() -> None:
    data = encode_registry(_single(amount=100, expiry_action=ExpiryAction.REFUND))
    with pytest.raises(SettlementError) as excinfo:
        decode_registry(data)
    assert excinfo.value.code == ErrorCode.INVALID_FORMAT
