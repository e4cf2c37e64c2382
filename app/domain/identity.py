"""
Caller Identity
===============
Explicit identity value handed to every guarded operation.

The identity is produced by an external provider (session, token exchange)
and is never stored in module-level state.
"""

from dataclasses import dataclass

from app.enums.device import Role


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: a user id plus a role claim."""

    user_id: str
    role: Role = Role.USER

    @classmethod
    def from_claims(cls, user_id: object, role: object) -> "Identity":
        """Build an identity from raw claims, defaulting unknown roles to ``user``."""
        try:
            parsed_role = Role(role) if role is not None else Role.USER
        except ValueError:
            parsed_role = Role.USER
        return cls(user_id=str(user_id), role=parsed_role)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN
