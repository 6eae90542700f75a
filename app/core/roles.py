"""
Role resolution for authenticated users.

Only the server-controlled app_metadata claim in the JWT is trusted.
user_metadata is editable by the user and never grants a role. The profiles
table is the source of truth when no claim is present.
"""

from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"


ADMIN_ROLES = (Role.ADMIN, Role.SUPER_ADMIN)


def _coerce(value: Any) -> Optional[Role]:
    if not value:
        return None
    try:
        return Role(str(value))
    except ValueError:
        return None


def role_from_claims(user_data: Dict[str, Any]) -> Optional[Role]:
    """Role carried by the server-controlled app_metadata claim."""
    app_metadata = user_data.get("app_metadata") or {}
    return _coerce(app_metadata.get("role"))


def resolve_role(user_data: Dict[str, Any], profile: Optional[Dict[str, Any]] = None) -> Role:
    """Claim first, profile row second, plain user otherwise."""
    claimed = role_from_claims(user_data)
    if claimed is not None:
        return claimed
    if profile:
        from_profile = _coerce(profile.get("role"))
        if from_profile is not None:
            return from_profile
    return Role.USER


def is_admin_role(role: Role) -> bool:
    return role in ADMIN_ROLES
