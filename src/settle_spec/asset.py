"""Fungible asset collaborator.

The ledger only talks to assets through `FungibleAsset`. `TokenLedger` is the
in-memory reference token used for tests, fixtures and the demo. Every
operation either applies fully or raises `TransferError` with balances
untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from .config import U256_MAX
from .errors import ErrorCode, TransferError


@runtime_checkable
class FungibleAsset(Protocol):
    def balance_of(self, owner: bytes) -> int: ...

    def transfer(self, src: bytes, dst: bytes, amount: int) -> None: ...

    def transfer_from(self, spender: bytes, src: bytes, dst: bytes, amount: int) -> None: ...

    def approve(self, owner: bytes, spender: bytes, amount: int) -> None: ...


@dataclass
class TokenLedger:
    symbol: str = "TEST"
    balances: dict[bytes, int] = field(default_factory=dict)
    allowances: dict[tuple[bytes, bytes], int] = field(default_factory=dict)
    # Identities the token refuses to move funds to or from.
    blocked: set[bytes] = field(default_factory=set)

    def balance_of(self, owner: bytes) -> int:
        return self.balances.get(owner, 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, owner: bytes, amount: int) -> None:
        if amount < 0:
            raise TransferError(ErrorCode.INVALID_AMOUNT, "mint amount must be >= 0")
        if self.balance_of(owner) + amount > U256_MAX:
            raise TransferError(ErrorCode.OVERFLOW, "balance overflow")
        self.balances[owner] = self.balance_of(owner) + amount

    def approve(self, owner: bytes, spender: bytes, amount: int) -> None:
        if amount < 0 or amount > U256_MAX:
            raise TransferError(ErrorCode.INVALID_AMOUNT, "allowance out of range")
        self.allowances[(owner, spender)] = amount

    def transfer(self, src: bytes, dst: bytes, amount: int) -> None:
        self._check_move(src, dst, amount)
        self._move(src, dst, amount)

    def transfer_from(self, spender: bytes, src: bytes, dst: bytes, amount: int) -> None:
        allowed = self.allowance(src, spender)
        if allowed < amount:
            raise TransferError(ErrorCode.INSUFFICIENT_ALLOWANCE, "transfer amount exceeds allowance")
        self._check_move(src, dst, amount)
        self.allowances[(src, spender)] = allowed - amount
        self._move(src, dst, amount)

    def _check_move(self, src: bytes, dst: bytes, amount: int) -> None:
        if amount < 0:
            raise TransferError(ErrorCode.INVALID_AMOUNT, "transfer amount must be >= 0")
        if src in self.blocked or dst in self.blocked:
            raise TransferError(ErrorCode.TRANSFER_BLOCKED, "transfer involves a blocked account")
        if self.balance_of(src) < amount:
            raise TransferError(ErrorCode.INSUFFICIENT_BALANCE, "transfer amount exceeds balance")
        if src != dst and self.balance_of(dst) + amount > U256_MAX:
            raise TransferError(ErrorCode.OVERFLOW, "receiver balance overflow")

    def _move(self, src: bytes, dst: bytes, amount: int) -> None:
        self.balances[src] = self.balance_of(src) - amount
        self.balances[dst] = self.balance_of(dst) + amount
