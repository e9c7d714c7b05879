"""Settlement ledger error codes and exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class ErrorCategory(IntEnum):
    VALIDATION = 0x01
    AUTHORIZATION = 0x02
    RESOURCE = 0x03
    STATE = 0x04
    INTERNAL = 0xFF


class ErrorCode(IntEnum):
    # Validation
    INVALID_FORMAT = 0x0100
    INVALID_TYPE = 0x0101
    INVALID_AMOUNT = 0x0102
    INVALID_PAYLOAD = 0x0103
    INVALID_FEE = 0x0104
    INVALID_EXPIRY = 0x0105
    INVALID_EXPIRY_ACTION = 0x0106
    ZERO_AMOUNT = 0x0107
    IMMATERIAL_FEE = 0x0108

    # Authorization
    UNAUTHORIZED = 0x0200

    # Resource
    INSUFFICIENT_BALANCE = 0x0300
    INSUFFICIENT_ALLOWANCE = 0x0301
    TRANSFER_BLOCKED = 0x0302
    OVERFLOW = 0x0303

    # State
    NOT_FOUND = 0x0400
    ASSET_NOT_FOUND = 0x0401
    NOT_FUNDED = 0x0402
    ALREADY_FUNDED = 0x0403
    ALREADY_FINALIZED = 0x0404
    PAUSED = 0x0405
    NOT_EXPIRED = 0x0406
    REENTRANT_CALL = 0x0407

    # Internal
    INTERNAL_ERROR = 0xFF00
    NOT_IMPLEMENTED = 0xFF01

    @property
    def category(self) -> ErrorCategory:
        return ErrorCategory(self.value >> 8)


@dataclass(frozen=True)
class SettlementError(Exception):
    code: ErrorCode
    message: str

    def __str__(self) -> str:
        return f"{self.code.name}({self.code:#06x}): {self.message}"


class TransferError(SettlementError):
    """Raised by an asset collaborator when a transfer cannot be made.

    Balances are unchanged when this is raised.
    """


# Allow Python's Exception machinery to set __traceback__/__context__/__cause__
# while keeping dataclass fields frozen (Python 3.13 contextlib compat).
_EXCEPTION_ATTRS = frozenset(("__traceback__", "__context__", "__cause__", "__notes__"))
_frozen_setattr = SettlementError.__setattr__


def _settlement_error_setattr(self: SettlementError, name: str, value: object) -> None:
    if name in _EXCEPTION_ATTRS:
        object.__setattr__(self, name, value)
    else:
        _frozen_setattr(self, name, value)


SettlementError.__setattr__ = _settlement_error_setattr  # type: ignore[method-assign]
