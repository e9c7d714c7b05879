"""Settlement ledger configuration constants.

Keep the numeric widths aligned with the snapshot layout in `encoding.py`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

# Fee policy
MAX_FEE_PERCENT = 100
FEE_DENOMINATOR = 100
DEFAULT_FEE_PERCENT = 1

# Widths
IDENTITY_SIZE = 32
U64_MAX = (1 << 64) - 1
U256_MAX = (1 << 256) - 1

# Units (the reference token uses 18 decimals)
TOKEN_DECIMALS = 18
TOKEN_UNIT = 10**TOKEN_DECIMALS

# Snapshot record: id, receiver, sender, releaser, amount, asset,
# expiry_block, expiry_action, funded, finalized
SETTLEMENT_RECORD_SIZE = 8 + 3 * IDENTITY_SIZE + 32 + IDENTITY_SIZE + 8 + 3


def _hex_identity(value: Optional[str]) -> Optional[bytes]:
    if not value:
        return None
    v = value[2:] if value.startswith(("0x", "0X")) else value
    raw = bytes.fromhex(v)
    if len(raw) != IDENTITY_SIZE:
        raise ValueError(f"identity must be {IDENTITY_SIZE} bytes, got {len(raw)}")
    return raw


@dataclass
class LedgerConfig:
    """Deployment settings for a ledger instance."""
    fee_percent: int = DEFAULT_FEE_PERCENT
    admin: bytes = bytes([0xA0]) * IDENTITY_SIZE
    fee_receiver: bytes = bytes([0xFE]) * IDENTITY_SIZE
    custody: bytes = bytes([0xC0]) * IDENTITY_SIZE

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Load configuration from environment variables."""
        config = cls()

        fee = os.environ.get("SETTLE_FEE_PERCENT")
        if fee:
            config.fee_percent = int(fee)

        admin = _hex_identity(os.environ.get("SETTLE_ADMIN"))
        if admin is not None:
            config.admin = admin
        fee_receiver = _hex_identity(os.environ.get("SETTLE_FEE_RECEIVER"))
        if fee_receiver is not None:
            config.fee_receiver = fee_receiver
        custody = _hex_identity(os.environ.get("SETTLE_CUSTODY"))
        if custody is not None:
            config.custody = custody

        return config
