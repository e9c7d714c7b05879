"""Administrative call specs (emergency pause)."""

from __future__ import annotations

from ..errors import ErrorCode, SettlementError
from ..state import LedgerState
from ..types import Call, CallType, PauseToggled


def verify(state: LedgerState, call: Call) -> None:
    if call.call_type != CallType.TOGGLE_PAUSE:
        raise SettlementError(ErrorCode.INVALID_TYPE, f"unsupported admin call type: {call.call_type}")
    if not state.access.is_admin(call.caller):
        raise SettlementError(ErrorCode.UNAUTHORIZED, "caller is not an administrator")


def apply(state: LedgerState, call: Call) -> bool:
    paused = state.registry.toggle_pause(call.caller, state.access)
    state.events.append(PauseToggled(paused=paused))
    return paused
