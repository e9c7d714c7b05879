"""Settlement call specs: create, fund, release, refund, expire.

`verify` only reads state. `apply` runs against the working copy owned by
`state_transition.apply_call`, so anything it raises discards every effect,
including asset movements made before the failure.
"""

from __future__ import annotations

from typing import Optional

from ..asset import FungibleAsset
from ..config import IDENTITY_SIZE, U256_MAX, U64_MAX
from ..errors import ErrorCode, SettlementError
from ..state import LedgerState
from ..types import (
    Call,
    CallType,
    CreateSettlement,
    ExpiryAction,
    Funded,
    Refund,
    Release,
    Settlement,
)

_SETTLEMENT_TYPES = frozenset({
    CallType.CREATE_SETTLEMENT,
    CallType.FUND_SETTLEMENT,
    CallType.RELEASE_SETTLEMENT,
    CallType.REFUND_SETTLEMENT,
    CallType.EXPIRE_SETTLEMENT,
})


def _identity(p: dict, key: str) -> bytes:
    v = p.get(key)
    if isinstance(v, (list, tuple)):
        try:
            v = bytes(v)
        except (TypeError, ValueError):
            raise SettlementError(ErrorCode.INVALID_PAYLOAD, f"{key} is not a byte sequence") from None
    if not isinstance(v, (bytes, bytearray)) or len(v) != IDENTITY_SIZE:
        raise SettlementError(ErrorCode.INVALID_PAYLOAD, f"{key} must be {IDENTITY_SIZE} bytes")
    return bytes(v)


def _uint(p: dict, key: str, default: Optional[int] = None) -> int:
    v = p.get(key, default)
    if isinstance(v, bool) or not isinstance(v, int):
        raise SettlementError(ErrorCode.INVALID_PAYLOAD, f"{key} must be an integer")
    if v < 0:
        raise SettlementError(ErrorCode.INVALID_AMOUNT, f"{key} must be >= 0")
    return v


def _expiry_action(p: dict) -> ExpiryAction:
    raw = p.get("expiry_action", ExpiryAction.NONE)
    if isinstance(raw, bool) or not isinstance(raw, int):
        raise SettlementError(ErrorCode.INVALID_EXPIRY_ACTION, "expiry_action must be an integer tag")
    try:
        return ExpiryAction(raw)
    except ValueError:
        raise SettlementError(
            ErrorCode.INVALID_EXPIRY_ACTION, f"unknown expiry_action {raw}"
        ) from None


def resolve_asset(state: LedgerState, asset_id: bytes) -> FungibleAsset:
    asset = state.assets.get(asset_id)
    if asset is None:
        raise SettlementError(ErrorCode.ASSET_NOT_FOUND, "asset not registered with the ledger")
    return asset


def _record(state: LedgerState, p: dict) -> Settlement:
    return state.registry.get_mut(p.get("settlement_id"))


def verify(state: LedgerState, call: Call) -> None:
    p = call.payload
    if not isinstance(p, dict):
        raise SettlementError(ErrorCode.INVALID_PAYLOAD, "settlement payload must be dict")

    ct = call.call_type
    if ct == CallType.CREATE_SETTLEMENT:
        _verify_create(state, call, p)
    elif ct == CallType.FUND_SETTLEMENT:
        _verify_fund(state, call, p)
    elif ct in (CallType.RELEASE_SETTLEMENT, CallType.REFUND_SETTLEMENT):
        _verify_releaser_action(state, call, p)
    elif ct == CallType.EXPIRE_SETTLEMENT:
        _verify_expire(state, call, p)
    else:
        raise SettlementError(ErrorCode.INVALID_TYPE, f"unsupported settlement call type: {ct}")


def apply(state: LedgerState, call: Call) -> Optional[int]:
    """Apply a verified call to the working state; returns the call output."""
    p = call.payload
    ct = call.call_type
    if ct == CallType.CREATE_SETTLEMENT:
        return _apply_create(state, call, p)
    elif ct == CallType.FUND_SETTLEMENT:
        return _apply_fund(state, call, p)
    elif ct == CallType.RELEASE_SETTLEMENT:
        return _apply_release(state, call, p)
    elif ct == CallType.REFUND_SETTLEMENT:
        return _apply_refund(state, call, p)
    elif ct == CallType.EXPIRE_SETTLEMENT:
        return _apply_expire(state, call, p)
    raise SettlementError(ErrorCode.INVALID_TYPE, f"unsupported settlement call type: {ct}")


# --- CREATE_SETTLEMENT ---

def _verify_create(state: LedgerState, call: Call, p: dict) -> None:
    for key in ("receiver", "sender", "releaser", "asset"):
        _identity(p, key)

    expiry_block = p.get("expiry_block", 0)
    if isinstance(expiry_block, bool) or not isinstance(expiry_block, int):
        raise SettlementError(ErrorCode.INVALID_PAYLOAD, "expiry_block must be an integer")
    if expiry_block < 0 or expiry_block > U64_MAX:
        raise SettlementError(ErrorCode.INVALID_EXPIRY, "expiry_block out of range")
    if expiry_block != 0 and expiry_block <= state.global_state.block_height:
        raise SettlementError(ErrorCode.INVALID_EXPIRY, "expiry_block must be in the future")

    action = _expiry_action(p)
    if expiry_block != 0 and action == ExpiryAction.NONE:
        raise SettlementError(
            ErrorCode.INVALID_EXPIRY_ACTION, "expiring settlement needs release or refund action"
        )
    if expiry_block == 0 and action != ExpiryAction.NONE:
        raise SettlementError(
            ErrorCode.INVALID_EXPIRY_ACTION, "non-expiring settlement cannot carry an expiry action"
        )

    amount = _uint(p, "amount", 0)
    if amount == 0:
        raise SettlementError(ErrorCode.ZERO_AMOUNT, "settlement amount must be > 0")
    if amount > U256_MAX:
        raise SettlementError(ErrorCode.OVERFLOW, "settlement amount exceeds u256 max")
    if state.fee_policy.compute_fee(amount) == 0:
        raise SettlementError(ErrorCode.IMMATERIAL_FEE, "fee rounds to zero for this amount")

    resolve_asset(state, _identity(p, "asset"))


def _apply_create(state: LedgerState, call: Call, p: dict) -> int:
    record = Settlement(
        id=0,
        receiver=_identity(p, "receiver"),
        sender=_identity(p, "sender"),
        releaser=_identity(p, "releaser"),
        amount=p["amount"],
        asset=_identity(p, "asset"),
        expiry_block=p.get("expiry_block", 0),
        expiry_action=_expiry_action(p),
    )
    sid = state.registry.append(record)
    state.events.append(
        CreateSettlement(
            id=sid,
            receiver=record.receiver,
            sender=record.sender,
            releaser=record.releaser,
            amount=record.amount,
            asset=record.asset,
            expiry_block=record.expiry_block,
            expiry_action=record.expiry_action,
        )
    )
    return sid


# --- FUND_SETTLEMENT ---

def _verify_fund(state: LedgerState, call: Call, p: dict) -> None:
    record = _record(state, p)
    if record.funded:
        raise SettlementError(ErrorCode.ALREADY_FUNDED, f"settlement {record.id} already funded")


def _apply_fund(state: LedgerState, call: Call, p: dict) -> int:
    record = _record(state, p)
    asset = resolve_asset(state, record.asset)
    # Pull: the caller must have approved the custody account beforehand.
    asset.transfer_from(state.custody, call.caller, state.custody, record.amount)
    record.funded = True
    state.events.append(Funded(id=record.id, asset=record.asset, amount=record.amount))
    return record.id


# --- RELEASE_SETTLEMENT / REFUND_SETTLEMENT ---

def _check_finalizable(state: LedgerState, record: Settlement) -> None:
    if not record.funded:
        raise SettlementError(ErrorCode.NOT_FUNDED, f"settlement {record.id} not funded")
    if record.finalized:
        raise SettlementError(ErrorCode.ALREADY_FINALIZED, f"settlement {record.id} already finalized")
    if state.registry.paused:
        raise SettlementError(ErrorCode.PAUSED, "ledger is paused")


def _verify_releaser_action(state: LedgerState, call: Call, p: dict) -> None:
    record = _record(state, p)
    if call.caller != record.releaser:
        raise SettlementError(ErrorCode.UNAUTHORIZED, "caller is not the releaser")
    _check_finalizable(state, record)


def _finalize(state: LedgerState, record: Settlement, payee: bytes) -> None:
    # Terminal flag goes first so a re-entrant collaborator sees a closed record.
    record.finalized = True
    asset = resolve_asset(state, record.asset)
    principal, fee = state.fee_policy.split(record.amount)
    asset.transfer(state.custody, payee, principal)
    if fee:
        asset.transfer(state.custody, state.fee_receiver, fee)
    record.amount = 0


def _apply_release(state: LedgerState, call: Call, p: dict) -> int:
    record = _record(state, p)
    _finalize(state, record, record.receiver)
    state.events.append(Release(id=record.id))
    return record.id


def _apply_refund(state: LedgerState, call: Call, p: dict) -> int:
    record = _record(state, p)
    _finalize(state, record, record.sender)
    state.events.append(Refund(id=record.id))
    return record.id


# --- EXPIRE_SETTLEMENT ---

def _verify_expire(state: LedgerState, call: Call, p: dict) -> None:
    record = _record(state, p)
    if record.expiry_block == 0 or state.global_state.block_height < record.expiry_block:
        raise SettlementError(ErrorCode.NOT_EXPIRED, f"settlement {record.id} has not expired")
    _check_finalizable(state, record)


def _apply_expire(state: LedgerState, call: Call, p: dict) -> int:
    record = _record(state, p)
    if record.expiry_action == ExpiryAction.RELEASE:
        return _apply_release(state, call, p)
    if record.expiry_action == ExpiryAction.REFUND:
        return _apply_refund(state, call, p)
    raise SettlementError(ErrorCode.INTERNAL_ERROR, "expiring settlement without an expiry action")
