"""Ledger state aggregate."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .access import AccessPolicy
from .asset import FungibleAsset
from .config import LedgerConfig
from .fee import FeePolicy
from .registry import SettlementRegistry
from .types import Event, GlobalState


@dataclass
class LedgerState:
    fee_policy: FeePolicy
    access: AccessPolicy
    fee_receiver: bytes
    # The ledger's own account on every asset; funded amounts sit here.
    custody: bytes
    registry: SettlementRegistry = field(default_factory=SettlementRegistry)
    assets: dict[bytes, FungibleAsset] = field(default_factory=dict)
    global_state: GlobalState = field(default_factory=GlobalState)
    events: list[Event] = field(default_factory=list)


def genesis_state(
    config: Optional[LedgerConfig] = None,
    assets: Optional[dict[bytes, FungibleAsset]] = None,
    block_height: int = 0,
) -> LedgerState:
    """Deploy a fresh ledger: empty registry, unpaused, fee fixed for good."""
    config = config or LedgerConfig()
    return LedgerState(
        fee_policy=FeePolicy(config.fee_percent),
        access=AccessPolicy(config.admin),
        fee_receiver=config.fee_receiver,
        custody=config.custody,
        assets=dict(assets or {}),
        global_state=GlobalState(block_height=block_height),
    )
