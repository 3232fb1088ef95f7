"""Principal abstractions for callers of the booking engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from app.core.enums import RoleName


@dataclass(frozen=True)
class Principal:
    """The authenticated entity performing a booking action.

    Produced by whatever verifies the caller's bearer credential; the engine
    only needs the user id and role.
    """

    user_id: str
    role: RoleName

    @property
    def is_system(self) -> bool:
        return self.role == RoleName.SYSTEM

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.ADMIN


SYSTEM_PRINCIPAL = Principal(user_id="system", role=RoleName.SYSTEM)

# Opaque "verify bearer credential -> principal" capability.
CredentialVerifier = Callable[[str], Principal]
