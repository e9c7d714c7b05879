"""Read-only query surface for external observers."""

from __future__ import annotations

from .state import LedgerState
from .types import Settlement


def get_settlement(state: LedgerState, settlement_id: int) -> Settlement:
    return state.registry.get(settlement_id)


def get_num_settlements(state: LedgerState) -> int:
    return state.registry.count()


def fee(state: LedgerState) -> int:
    return state.fee_policy.fee


def emergency_pause(state: LedgerState) -> bool:
    return state.registry.paused
