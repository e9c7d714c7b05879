"""Administrator role check."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class AccessPolicy:
    admin: bytes

    def is_admin(self, identity: bytes) -> bool:
        return identity == self.admin
