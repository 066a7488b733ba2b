# This project was developed with assistance from AI tools.
"""Pure auth utility functions with no FastAPI or HTTP dependencies.

Used by the middleware layer (HTTP request auth) and by the session
layer, which re-derives the profile role from the same claims. Keeping
them separate from ``middleware/auth.py`` avoids pulling FastAPI/Starlette
imports into engine code.
"""

from relief_db.enums import UserRole

from .config import settings


def resolve_role(realm_roles: list[str], admin_claim: bool | None = None) -> UserRole:
    """Derive the portal role from the token's authorization claims.

    An explicit ``admin`` claim wins; otherwise the configured admin realm
    role grants Admin. Everyone else is a User.
    """
    if admin_claim is not None:
        return UserRole.ADMIN if admin_claim else UserRole.USER
    if settings.ADMIN_ROLE in realm_roles:
        return UserRole.ADMIN
    return UserRole.USER
