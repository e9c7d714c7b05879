"""State transition entrypoints for the settlement ledger."""

from __future__ import annotations

import logging
from copy import deepcopy
from dataclasses import replace
from types import ModuleType
from typing import Optional

from .errors import ErrorCode, SettlementError
from .state import LedgerState
from .types import Call, CallType
from .calls import admin as call_admin
from .calls import settlement as call_settlement

logger = logging.getLogger(__name__)

_ADMIN_TYPES = frozenset({
    CallType.TOGGLE_PAUSE,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SettlementError] = None,
        output: object = None,
    ):
        self.ok = ok
        self.error = error
        self.output = output

    @classmethod
    def success(cls, output: object = None) -> "TransitionResult":
        return cls(True, None, output)

    @classmethod
    def failure(cls, error: SettlementError) -> "TransitionResult":
        return cls(False, error)

    def __repr__(self) -> str:
        if self.ok:
            return f"TransitionResult(ok=True, output={self.output!r})"
        return f"TransitionResult(ok=False, error={self.error})"


def _handler(call: Call) -> ModuleType:
    ct = call.call_type
    if ct in call_settlement._SETTLEMENT_TYPES:
        return call_settlement
    if ct in _ADMIN_TYPES:
        return call_admin

    raise SettlementError(ErrorCode.NOT_IMPLEMENTED, f"no handler for call type {ct!r}")


def _dispatch_verify(state: LedgerState, call: Call) -> None:
    _handler(call).verify(state, call)


def _dispatch_apply(state: LedgerState, call: Call) -> object:
    return _handler(call).apply(state, call)


def _label(call: Call) -> str:
    return getattr(call.call_type, "value", str(call.call_type))


def verify_call(state: LedgerState, call: Call) -> TransitionResult:
    """Read-only precondition check for a single call."""
    try:
        _dispatch_verify(state, call)
        return TransitionResult.success()
    except SettlementError as exc:
        return TransitionResult.failure(exc)


def apply_call(state: LedgerState, call: Call) -> tuple[LedgerState, TransitionResult]:
    """Apply a call after verification.

    Failed-call semantics:
    - Pre-validation failure: state unchanged, no asset touched
    - Execution failure (including asset transfer failure): the working copy
      is dropped, so the returned state is the input state

    Every call deep-copies the whole state, event log included, so the cost
    of a call grows with the history behind it.
    """
    try:
        _dispatch_verify(state, call)
    except SettlementError as exc:
        logger.debug(f"{_label(call)} rejected: {exc}")
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    try:
        output = _dispatch_apply(working, call)
    except SettlementError as exc:
        logger.debug(f"{_label(call)} rolled back: {exc}")
        return state, TransitionResult.failure(exc)

    logger.info(
        f"{_label(call)} accepted at height "
        f"{working.global_state.block_height} (output={output})"
    )
    return working, TransitionResult.success(output)


def advance_blocks(state: LedgerState, count: int = 1) -> LedgerState:
    if count < 0:
        raise ValueError("block count must be non-negative")
    return replace(
        state,
        global_state=replace(
            state.global_state, block_height=state.global_state.block_height + count
        ),
    )


def apply_block(state: LedgerState, calls: list[Call]) -> tuple[LedgerState, TransitionResult]:
    """Apply a block worth of calls in order (block-atomic semantics).

    If any call fails, the entire block is rejected and the state is
    unchanged. On success the block height advances by one.
    """
    working = state
    outputs = []
    for call in calls:
        working, result = apply_call(working, call)
        if not result.ok:
            return state, result
        outputs.append(result.output)

    return advance_blocks(working), TransitionResult.success(outputs)
