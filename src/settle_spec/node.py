"""Single-writer ledger node.

`SettlementNode` owns the current `LedgerState` and serialises every call
behind one lock, so concurrent callers observe the calls in a total order and
fund/finalize stay exactly-once. An asset collaborator that calls back into
the node while a call is being applied is refused with `REENTRANT_CALL`
instead of waiting on the lock it is already running under. Typed helpers
raise `SettlementError` instead of returning a `TransitionResult`.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from copy import deepcopy
from typing import Iterator, Optional

from . import queries
from .calls.settlement import resolve_asset
from .errors import ErrorCode, SettlementError
from .state import LedgerState
from .state_digest import compute_state_digest
from .state_transition import TransitionResult, advance_blocks, apply_call
from .types import Call, CallType, Event, ExpiryAction, Settlement

logger = logging.getLogger(__name__)


class SettlementNode:
    def __init__(self, state: LedgerState):
        self._state = state
        self._lock = threading.Lock()
        # Thread currently holding the lock, if any.
        self._holder: Optional[int] = None

    @contextmanager
    def _exclusive(self) -> Iterator[None]:
        me = threading.get_ident()
        if self._holder == me:
            raise SettlementError(
                ErrorCode.REENTRANT_CALL, "node re-entered from inside a running call"
            )
        with self._lock:
            self._holder = me
            try:
                yield
            finally:
                self._holder = None

    # -- calls ---------------------------------------------------------------

    def submit(self, call: Call) -> TransitionResult:
        try:
            with self._exclusive():
                self._state, result = apply_call(self._state, call)
        except SettlementError as exc:
            logger.warning(f"{call.call_type.value} refused: {exc}")
            return TransitionResult.failure(exc)
        return result

    def _submit_or_raise(self, call: Call) -> object:
        result = self.submit(call)
        if not result.ok:
            raise result.error
        return result.output

    def create(
        self,
        caller: bytes,
        receiver: bytes,
        sender: bytes,
        releaser: bytes,
        amount: int,
        asset: bytes,
        expiry_block: int = 0,
        expiry_action: ExpiryAction = ExpiryAction.NONE,
    ) -> int:
        return self._submit_or_raise(
            Call(
                caller=caller,
                call_type=CallType.CREATE_SETTLEMENT,
                payload={
                    "receiver": receiver,
                    "sender": sender,
                    "releaser": releaser,
                    "amount": amount,
                    "asset": asset,
                    "expiry_block": expiry_block,
                    "expiry_action": int(expiry_action),
                },
            )
        )

    def fund(self, settlement_id: int, caller: bytes) -> None:
        self._submit_or_raise(
            Call(caller, CallType.FUND_SETTLEMENT, {"settlement_id": settlement_id})
        )

    def release(self, settlement_id: int, caller: bytes) -> None:
        self._submit_or_raise(
            Call(caller, CallType.RELEASE_SETTLEMENT, {"settlement_id": settlement_id})
        )

    def refund(self, settlement_id: int, caller: bytes) -> None:
        self._submit_or_raise(
            Call(caller, CallType.REFUND_SETTLEMENT, {"settlement_id": settlement_id})
        )

    def expire(self, settlement_id: int, caller: bytes) -> None:
        self._submit_or_raise(
            Call(caller, CallType.EXPIRE_SETTLEMENT, {"settlement_id": settlement_id})
        )

    def toggle_pause(self, caller: bytes) -> bool:
        return self._submit_or_raise(Call(caller, CallType.TOGGLE_PAUSE))

    def mine(self, count: int = 1) -> int:
        """Advance the block height; returns the new height."""
        with self._exclusive():
            self._state = advance_blocks(self._state, count)
            height = self._state.global_state.block_height
        logger.debug(f"advanced to height {height}")
        return height

    # -- asset side (outside the ledger core) ---------------------------------

    def approve(self, owner: bytes, asset_id: bytes, amount: int) -> None:
        """Let the ledger's custody account pull ``amount`` from ``owner``."""
        with self._exclusive():
            resolve_asset(self._state, asset_id).approve(owner, self._state.custody, amount)

    def balance_of(self, asset_id: bytes, owner: bytes) -> int:
        with self._exclusive():
            return resolve_asset(self._state, asset_id).balance_of(owner)

    # -- queries -------------------------------------------------------------

    @property
    def height(self) -> int:
        with self._exclusive():
            return self._state.global_state.block_height

    def get_settlement(self, settlement_id: int) -> Settlement:
        with self._exclusive():
            return queries.get_settlement(self._state, settlement_id)

    def get_num_settlements(self) -> int:
        with self._exclusive():
            return queries.get_num_settlements(self._state)

    def fee(self) -> int:
        with self._exclusive():
            return queries.fee(self._state)

    def emergency_pause(self) -> bool:
        with self._exclusive():
            return queries.emergency_pause(self._state)

    def events(self, since: int = 0) -> list[Event]:
        with self._exclusive():
            return list(self._state.events[since:])

    def snapshot(self) -> LedgerState:
        with self._exclusive():
            return deepcopy(self._state)

    def digest(self) -> str:
        with self._exclusive():
            return compute_state_digest(self._state)
