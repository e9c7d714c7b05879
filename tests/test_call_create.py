"""Create-settlement call fixtures."""

from __future__ import annotations

from settle_spec.asset import TokenLedger
from settle_spec.config import TOKEN_UNIT, U256_MAX, LedgerConfig
from settle_spec.errors import ErrorCode
from settle_spec.state import LedgerState, genesis_state
from settle_spec.test_accounts import (
    CUSTODY,
    FEE_RECEIVER,
    FUNDER,
    MALLORY,
    RECEIVER,
    RELEASER,
    TOKEN,
)
from settle_spec.types import Call, CallType, CreateSettlement, ExpiryAction

_FIXTURE = "calls/settlement/create_settlement.json"


def _base_state(fee_percent: int = 1, height: int = 100) -> LedgerState:
    config = LedgerConfig(
        fee_percent=fee_percent, admin=FUNDER, fee_receiver=FEE_RECEIVER, custody=CUSTODY
    )
    token = TokenLedger()
    token.mint(FUNDER, 1_000 * TOKEN_UNIT)
    return genesis_state(config, assets={TOKEN: token}, block_height=height)


def _mk_create(
    amount: int = 100,
    expiry_block: int = 0,
    expiry_action: int = ExpiryAction.NONE,
    caller: bytes = MALLORY,
    asset: bytes = TOKEN,
) -> Call:
    return Call(
        caller=caller,
        call_type=CallType.CREATE_SETTLEMENT,
        payload={
            "receiver": RECEIVER,
            "sender": FUNDER,
            "releaser": RELEASER,
            "amount": amount,
            "asset": asset,
            "expiry_block": expiry_block,
            "expiry_action": int(expiry_action),
        },
    )


def test_create_settlement_success(call_test_group) -> None:
    state = _base_state()
    post, result = call_test_group(_FIXTURE, "create_settlement_success", state, _mk_create())

    assert result.ok
    assert result.output == 0
    record = post.registry.get(0)
    assert record.amount == 100
    assert record.funded is False
    assert record.finalized is False
    assert record.receiver == RECEIVER
    assert record.sender == FUNDER
    assert record.releaser == RELEASER
    assert post.events == [
        CreateSettlement(
            id=0,
            receiver=RECEIVER,
            sender=FUNDER,
            releaser=RELEASER,
            amount=100,
            asset=TOKEN,
            expiry_block=0,
            expiry_action=ExpiryAction.NONE,
        )
    ]
    # Input state is never mutated.
    assert state.registry.count() == 0
    assert state.events == []


def test_create_settlement_ids_are_dense(call_test_group) -> None:
    state = _base_state()
    for expected_id in range(3):
        prior = state.registry.count()
        state, result = call_test_group(
            _FIXTURE, f"create_settlement_dense_{expected_id}", state, _mk_create(amount=200 + expected_id)
        )
        assert result.ok
        assert result.output == prior == expected_id
    assert [s.id for s in state.registry] == [0, 1, 2]


def test_create_settlement_with_expiry(call_test_group) -> None:
    state = _base_state(height=100)
    post, result = call_test_group(
        _FIXTURE,
        "create_settlement_with_expiry",
        state,
        _mk_create(expiry_block=110, expiry_action=ExpiryAction.REFUND),
    )
    assert result.ok
    record = post.registry.get(0)
    assert record.expiry_block == 110
    assert record.expiry_action == ExpiryAction.REFUND


def test_create_settlement_expiry_at_current_height(call_test_group) -> None:
    state = _base_state(height=100)
    post, result = call_test_group(
        _FIXTURE,
        "create_settlement_expiry_at_current_height",
        state,
        _mk_create(expiry_block=100, expiry_action=ExpiryAction.RELEASE),
    )
    assert not result.ok
    assert result.error.code == ErrorCode.INVALID_EXPIRY
    assert post is state


def test_create_settlement_expiry_in_past(call_test_group) -> None:
    state = _base_state(height=100)
    _, result = call_test_group(
        _FIXTURE,
        "create_settlement_expiry_in_past",
        state,
        _mk_create(expiry_block=5, expiry_action=ExpiryAction.RELEASE),
    )
    assert result.error.code == ErrorCode.INVALID_EXPIRY


def test_create_settlement_expiry_without_action(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(
        _FIXTURE,
        "create_settlement_expiry_without_action",
        state,
        _mk_create(expiry_block=500, expiry_action=ExpiryAction.NONE),
    )
    assert result.error.code == ErrorCode.INVALID_EXPIRY_ACTION


def test_create_settlement_unknown_expiry_action(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(
        _FIXTURE,
        "create_settlement_unknown_expiry_action",
        state,
        _mk_create(expiry_block=500, expiry_action=7),
    )
    assert result.error.code == ErrorCode.INVALID_EXPIRY_ACTION


def test_create_settlement_action_without_expiry(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(
        _FIXTURE,
        "create_settlement_action_without_expiry",
        state,
        _mk_create(expiry_block=0, expiry_action=ExpiryAction.RELEASE),
    )
    assert result.error.code == ErrorCode.INVALID_EXPIRY_ACTION


def test_create_settlement_zero_amount(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(_FIXTURE, "create_settlement_zero_amount", state, _mk_create(amount=0))
    assert result.error.code == ErrorCode.ZERO_AMOUNT


def test_create_settlement_immaterial_fee(call_test_group) -> None:
    # 99 * 1 // 100 == 0
    state = _base_state(fee_percent=1)
    _, result = call_test_group(_FIXTURE, "create_settlement_immaterial_fee", state, _mk_create(amount=99))
    assert result.error.code == ErrorCode.IMMATERIAL_FEE


def test_create_settlement_zero_fee_policy_rejects_everything(call_test_group) -> None:
    state = _base_state(fee_percent=0)
    _, result = call_test_group(
        _FIXTURE, "create_settlement_zero_fee_policy", state, _mk_create(amount=10**30)
    )
    assert result.error.code == ErrorCode.IMMATERIAL_FEE


def test_create_settlement_amount_overflow(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(
        _FIXTURE, "create_settlement_amount_overflow", state, _mk_create(amount=U256_MAX + 1)
    )
    assert result.error.code == ErrorCode.OVERFLOW


def test_create_settlement_unknown_asset(call_test_group) -> None:
    state = _base_state()
    _, result = call_test_group(
        _FIXTURE, "create_settlement_unknown_asset", state, _mk_create(asset=bytes(32))
    )
    assert result.error.code == ErrorCode.ASSET_NOT_FOUND


def test_create_settlement_bad_identity(call_test_group) -> None:
    state = _base_state()
    call = _mk_create()
    call.payload["receiver"] = b"\x01" * 20
    _, result = call_test_group(_FIXTURE, "create_settlement_bad_identity", state, call)
    assert result.error.code == ErrorCode.INVALID_PAYLOAD


def test_create_settlement_bad_identity_list(call_test_group) -> None:
    state = _base_state()
    for name, value in (
        ("out_of_range", [300] * 32),
        ("non_integer", ["a"] * 32),
    ):
        call = _mk_create()
        call.payload["receiver"] = value
        post, result = call_test_group(_FIXTURE, f"create_settlement_bad_identity_{name}", state, call)
        assert result.error.code == ErrorCode.INVALID_PAYLOAD
        assert post is state


def test_create_settlement_identity_as_list(call_test_group) -> None:
    state = _base_state()
    call = _mk_create()
    call.payload["receiver"] = list(RECEIVER)
    post, result = call_test_group(_FIXTURE, "create_settlement_identity_as_list", state, call)
    assert result.ok
    assert post.registry.get(0).receiver == RECEIVER


def test_create_settlement_any_caller_may_register(call_test_group) -> None:
    state = _base_state()
    for caller in (MALLORY, RECEIVER, RELEASER):
        state, result = call_test_group(
            _FIXTURE, "create_settlement_any_caller", state, _mk_create(caller=caller)
        )
        assert result.ok
    assert state.registry.count() == 3
