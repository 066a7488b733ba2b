# This project was developed with assistance from AI tools.
"""
Bearer-token authentication for the portal.

Tokens are Keycloak-issued RS256 JWTs. The signing keys come from the
realm's JWKS document, cached for ``JWKS_CACHE_TTL`` seconds and refetched
once when a token names an unknown ``kid``. The portal role is re-derived
from the token on every request; the profile's stored role is never used.

Set AUTH_DISABLED=true to bypass validation (tests / local dev without Keycloak).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, status
from relief_db.enums import UserRole

from ..core.auth import resolve_role
from ..core.config import settings
from ..schemas.auth import TokenPayload, UserContext

logger = logging.getLogger(__name__)


def _realm_url() -> str:
    return f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"


class RealmKeySet:
    """The realm's public signing keys, cached with a TTL."""

    def __init__(self):
        self._keys: jwt.PyJWKSet | None = None
        self._loaded_at = 0.0

    def _load(self) -> jwt.PyJWKSet:
        response = httpx.get(f"{_realm_url()}/protocol/openid-connect/certs", timeout=5)
        response.raise_for_status()
        self._loaded_at = time.time()
        self._keys = jwt.PyJWKSet.from_dict(response.json())
        return self._keys

    def _current(self, refresh: bool) -> jwt.PyJWKSet:
        stale = time.time() - self._loaded_at > settings.JWKS_CACHE_TTL
        if self._keys is None or refresh or stale:
            return self._load()
        return self._keys

    def key_for(self, kid: str | None) -> jwt.PyJWK:
        for refresh in (False, True):
            match = next((k for k in self._current(refresh).keys if k.key_id == kid), None)
            if match is not None:
                return match
        raise jwt.InvalidTokenError(f"Unknown signing key kid={kid}")

    def clear(self) -> None:
        self._keys = None
        self._loaded_at = 0.0


realm_keys = RealmKeySet()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _bearer_token(request: Request) -> str | None:
    scheme, _, credentials = request.headers.get("Authorization", "").partition(" ")
    if scheme != "Bearer" or not credentials:
        return None
    return credentials


def _decode_token(token: str) -> TokenPayload:
    """Verify signature and issuer; audience is not checked."""
    try:
        kid = jwt.get_unverified_header(token).get("kid")
        signing_key = realm_keys.key_for(kid)
    except httpx.HTTPError as exc:
        logger.error("Could not load realm signing keys: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        ) from exc

    claims = jwt.decode(
        token,
        signing_key.key,
        algorithms=["RS256"],
        issuer=_realm_url(),
        options={"verify_aud": False},
    )
    return TokenPayload(**claims)


def _resolve_role(token_payload: TokenPayload) -> UserRole:
    """Derive Admin/User from the token; the stored profile role is never consulted."""
    return resolve_role(token_payload.realm_access.get("roles", []), token_payload.admin)


_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@relief-portal.local",
    name="Dev User",
)


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency returning the caller's ``UserContext``.

    With AUTH_DISABLED=true every request is the dev admin.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    return UserContext(
        user_id=payload.sub,
        role=_resolve_role(payload),
        email=payload.email,
        name=payload.name or payload.preferred_username,
        account_created_at=payload.account_created_at,
    )


CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory restricting a route to ``allowed_roles``.

    Usage:
        @router.post("/proxy", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role in allowed_roles:
            return user
        logger.warning(
            "Role check failed: user=%s role=%s needs one of %s",
            user.user_id,
            user.role.value,
            [r.value for r in allowed_roles],
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")

    return _check
