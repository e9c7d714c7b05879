"""Protocol fee policy."""

from __future__ import annotations

from dataclasses import dataclass

from .config import FEE_DENOMINATOR, MAX_FEE_PERCENT
from .errors import ErrorCode, SettlementError


@dataclass(frozen=True)
class FeePolicy:
    """Fixed percentage cut taken on every finalization.

    The percentage is validated once and cannot change afterwards. Fees use
    truncating division, so any remainder stays with the principal payee.
    """

    fee: int

    def __post_init__(self) -> None:
        if isinstance(self.fee, bool) or not isinstance(self.fee, int):
            raise SettlementError(ErrorCode.INVALID_FEE, "fee must be an integer percentage")
        if self.fee < 0 or self.fee > MAX_FEE_PERCENT:
            raise SettlementError(
                ErrorCode.INVALID_FEE, f"fee must be within [0, {MAX_FEE_PERCENT}]"
            )

    def compute_fee(self, amount: int) -> int:
        return amount * self.fee // FEE_DENOMINATOR

    def split(self, amount: int) -> tuple[int, int]:
        """Return ``(principal, fee)`` with ``principal + fee == amount``."""
        fee = self.compute_fee(amount)
        return amount - fee, fee
