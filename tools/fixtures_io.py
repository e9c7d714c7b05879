"""Helpers to serialize/deserialize ledger fixtures."""

from __future__ import annotations

from typing import Any

from settle_spec.access import AccessPolicy
from settle_spec.asset import TokenLedger
from settle_spec.fee import FeePolicy
from settle_spec.registry import SettlementRegistry
from settle_spec.state import LedgerState
from settle_spec.state_digest import compute_state_digest
from settle_spec.types import (
    Call,
    CallType,
    CreateSettlement,
    Event,
    ExpiryAction,
    Funded,
    GlobalState,
    PauseToggled,
    Refund,
    Release,
    Settlement,
    event_name,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v)


def _bytes_to_hex(v: bytes) -> str:
    return v.hex()


def _settlement_to_json(s: Settlement) -> dict[str, Any]:
    return {
        "id": s.id,
        "receiver": _bytes_to_hex(s.receiver),
        "sender": _bytes_to_hex(s.sender),
        "releaser": _bytes_to_hex(s.releaser),
        # u256 amounts do not survive every JSON consumer as numbers.
        "amount": str(s.amount),
        "asset": _bytes_to_hex(s.asset),
        "expiry_block": s.expiry_block,
        "expiry_action": int(s.expiry_action),
        "funded": s.funded,
        "finalized": s.finalized,
    }


def _settlement_from_json(data: dict[str, Any]) -> Settlement:
    return Settlement(
        id=data["id"],
        receiver=_hex_to_bytes(data["receiver"]),
        sender=_hex_to_bytes(data["sender"]),
        releaser=_hex_to_bytes(data["releaser"]),
        amount=int(data["amount"]),
        asset=_hex_to_bytes(data["asset"]),
        expiry_block=data.get("expiry_block", 0),
        expiry_action=ExpiryAction(data.get("expiry_action", 0)),
        funded=data.get("funded", False),
        finalized=data.get("finalized", False),
    )


def _value_to_json(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return _bytes_to_hex(bytes(value))
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return int(value)
    return value


def event_to_json(event: Event) -> dict[str, Any]:
    fields = {k: _value_to_json(v) for k, v in vars(event).items()}
    if "amount" in fields:
        fields["amount"] = str(fields["amount"])
    return {"event": event_name(event), "args": fields}


_EVENT_TYPES = {
    cls.__name__: cls for cls in (CreateSettlement, Funded, Release, Refund, PauseToggled)
}

_BYTES_FIELDS: set[str] = {"receiver", "sender", "releaser", "asset"}


def event_from_json(data: dict[str, Any]) -> Event:
    args: dict[str, Any] = {}
    for key, value in data["args"].items():
        if key in _BYTES_FIELDS:
            args[key] = _hex_to_bytes(value)
        elif key == "amount":
            args[key] = int(value)
        elif key == "expiry_action":
            args[key] = ExpiryAction(value)
        else:
            args[key] = value
    return _EVENT_TYPES[data["event"]](**args)


def state_to_json(state: LedgerState) -> dict[str, Any]:
    assets_out: list[dict[str, Any]] = []
    for asset_id, asset in state.assets.items():
        if not isinstance(asset, TokenLedger):
            continue
        assets_out.append(
            {
                "asset": _bytes_to_hex(asset_id),
                "symbol": asset.symbol,
                "balances": [
                    {"owner": _bytes_to_hex(owner), "balance": str(bal)}
                    for owner, bal in sorted(asset.balances.items())
                ],
                "allowances": [
                    {
                        "owner": _bytes_to_hex(owner),
                        "spender": _bytes_to_hex(spender),
                        "amount": str(amt),
                    }
                    for (owner, spender), amt in sorted(asset.allowances.items())
                ],
                "blocked": sorted(_bytes_to_hex(b) for b in asset.blocked),
            }
        )

    return {
        "fee": state.fee_policy.fee,
        "admin": _bytes_to_hex(state.access.admin),
        "fee_receiver": _bytes_to_hex(state.fee_receiver),
        "custody": _bytes_to_hex(state.custody),
        "global_state": {
            "block_height": state.global_state.block_height,
        },
        "paused": state.registry.paused,
        "settlements": [_settlement_to_json(s) for s in state.registry],
        "assets": assets_out,
        "events": [event_to_json(e) for e in state.events],
        "state_digest": compute_state_digest(state),
    }


def state_from_json(data: dict[str, Any]) -> LedgerState:
    """Rebuild a state from JSON, event log included."""
    gs = data.get("global_state", {})
    registry = SettlementRegistry(
        [_settlement_from_json(s) for s in data.get("settlements", [])],
        paused=data.get("paused", False),
    )

    assets: dict[bytes, TokenLedger] = {}
    for a in data.get("assets", []):
        token = TokenLedger(symbol=a.get("symbol", "TEST"))
        for b in a.get("balances", []):
            token.balances[_hex_to_bytes(b["owner"])] = int(b["balance"])
        for al in a.get("allowances", []):
            token.allowances[(_hex_to_bytes(al["owner"]), _hex_to_bytes(al["spender"]))] = int(
                al["amount"]
            )
        token.blocked = {_hex_to_bytes(b) for b in a.get("blocked", [])}
        assets[_hex_to_bytes(a["asset"])] = token

    return LedgerState(
        fee_policy=FeePolicy(data["fee"]),
        access=AccessPolicy(_hex_to_bytes(data["admin"])),
        fee_receiver=_hex_to_bytes(data["fee_receiver"]),
        custody=_hex_to_bytes(data["custody"]),
        registry=registry,
        assets=assets,
        global_state=GlobalState(block_height=gs.get("block_height", 0)),
        events=[event_from_json(e) for e in data.get("events", [])],
    )


def call_to_json(call: Call) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for key, value in call.payload.items():
        if key == "amount" and isinstance(value, int) and not isinstance(value, bool):
            payload[key] = str(value)
        else:
            payload[key] = _value_to_json(value)
    return {
        "caller": _bytes_to_hex(call.caller),
        "call_type": call.call_type.value,
        "payload": payload,
    }


def call_from_json(data: dict[str, Any]) -> Call:
    payload: dict[str, Any] = {}
    for key, value in (data.get("payload") or {}).items():
        if key in _BYTES_FIELDS and isinstance(value, str):
            payload[key] = _hex_to_bytes(value)
        elif key == "amount" and isinstance(value, str):
            payload[key] = int(value)
        else:
            payload[key] = value
    return Call(
        caller=_hex_to_bytes(data["caller"]),
        call_type=CallType(data["call_type"]),
        payload=payload,
    )
