"""Core types for the settlement ledger.

A single `ExpiryAction` enum covers both the hashed-tag and plain-tag
flavours of the deployed contracts; they behave identically.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Union


class ExpiryAction(IntEnum):
    NONE = 0
    RELEASE = 1
    REFUND = 2


class CallType(Enum):
    CREATE_SETTLEMENT = "create_settlement"
    FUND_SETTLEMENT = "fund_settlement"
    RELEASE_SETTLEMENT = "release_settlement"
    REFUND_SETTLEMENT = "refund_settlement"
    EXPIRE_SETTLEMENT = "expire_settlement"
    TOGGLE_PAUSE = "toggle_pause"


@dataclass
class Settlement:
    id: int
    receiver: bytes
    sender: bytes
    releaser: bytes
    amount: int
    asset: bytes
    expiry_block: int = 0
    expiry_action: ExpiryAction = ExpiryAction.NONE
    funded: bool = False
    finalized: bool = False


@dataclass
class Call:
    """One state-changing invocation of a ledger entry point."""
    caller: bytes
    call_type: CallType
    payload: dict = field(default_factory=dict)


@dataclass
class GlobalState:
    block_height: int = 0


# --- Notifications ---


@dataclass(frozen=True)
class CreateSettlement:
    id: int
    receiver: bytes
    sender: bytes
    releaser: bytes
    amount: int
    asset: bytes
    expiry_block: int
    expiry_action: ExpiryAction


@dataclass(frozen=True)
class Funded:
    id: int
    asset: bytes
    amount: int


@dataclass(frozen=True)
class Release:
    id: int


@dataclass(frozen=True)
class Refund:
    id: int


@dataclass(frozen=True)
class PauseToggled:
    paused: bool


Event = Union[CreateSettlement, Funded, Release, Refund, PauseToggled]


def event_name(event: Event) -> str:
    return type(event).__name__

