"""Canonical registry digest (v1)."""
from __future__ import annotations

from blake3 import blake3

from .encoding import encode_registry
from .registry import SettlementRegistry
from .state import LedgerState


def compute_registry_digest(registry: SettlementRegistry) -> str:
    """Compute the registry digest: BLAKE3-256 over the snapshot encoding."""
    return blake3(encode_registry(registry)).hexdigest()


def compute_state_digest(state: LedgerState) -> str:
    """Digest of the registry plus the height it was observed at.

    Asset balances belong to the asset collaborators and are not covered.
    """
    buf = bytearray(state.global_state.block_height.to_bytes(8, "big", signed=False))
    buf += encode_registry(state.registry)
    return blake3(buf).hexdigest()
