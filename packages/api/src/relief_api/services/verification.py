# This project was developed with assistance from AI tools.
"""Class verification state machine.

One ``VerificationSession`` covers one fund code. Every failed attempt,
whatever the method, increments a shared counter. Reaching the cap is a
terminal transition that writes the identity as failed; later attempts
return the locked result without touching the store.
"""

import logging
from typing import Protocol

import httpx
from relief_db.enums import ClassVerificationStatus, VerificationMethod
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..schemas.fund import FundRecord
from ..schemas.identity import FundIdentityRecord
from ..schemas.profile import ProfileRecord
from ..schemas.session import VerificationAttemptRequest, VerificationResult
from . import identity as identity_service
from . import profile as profile_service
from .feed import ChangeFeed
from .funds import roster_contains

logger = logging.getLogger(__name__)


class VerificationInputError(ValueError):
    """Raised when an attempt is missing the credentials its method needs."""

    pass


class SsoLinker(Protocol):
    async def link(self, profile: ProfileRecord, fund: FundRecord) -> bool: ...


class LocalSsoLinker:
    """Used when no external linking endpoint is configured; always links."""

    async def link(self, profile: ProfileRecord, fund: FundRecord) -> bool:
        logger.info("SSO link (local): uid=%s fund=%s", profile.uid, fund.code)
        return True


class HttpSsoLinker:
    """Calls the external SSO linking endpoint. Any HTTP error is a failed link."""

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    async def link(self, profile: ProfileRecord, fund: FundRecord) -> bool:
        payload = {"uid": profile.uid, "email": profile.email, "fund_code": fund.code}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self.url, json=payload)
                response.raise_for_status()
                body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("SSO link failed for uid=%s fund=%s: %s", profile.uid, fund.code, exc)
            return False
        return bool(body.get("ok"))


def build_sso_linker() -> SsoLinker:
    if settings.SSO_LINK_URL:
        return HttpSsoLinker(settings.SSO_LINK_URL)
    return LocalSsoLinker()


class VerificationSession:
    def __init__(self, fund: FundRecord, max_attempts: int | None = None):
        self.fund = fund
        self.max_attempts = settings.MAX_VERIFICATION_ATTEMPTS if max_attempts is None else max_attempts
        self.attempts = 0
        self.status = ClassVerificationStatus.PENDING

    @property
    def fund_code(self) -> str:
        return self.fund.code

    @property
    def locked(self) -> bool:
        return self.status == ClassVerificationStatus.FAILED

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    def _result(self, message: str) -> VerificationResult:
        return VerificationResult(
            fund_code=self.fund.code,
            status=self.status,
            message=message,
            attempts=self.attempts,
            remaining_attempts=self.remaining_attempts,
            locked=self.locked,
        )

    async def _check(
        self,
        session: AsyncSession,
        profile: ProfileRecord,
        request: VerificationAttemptRequest,
        sso_linker: SsoLinker,
    ) -> tuple[bool, str]:
        method = self.fund.cv_type
        if method == VerificationMethod.DOMAIN:
            allowed = [d.lower() for d in self.fund.allowed_domains or []]
            if not allowed:
                return False, "Domain verification is not configured for this fund."
            if profile.email_domain in allowed:
                return True, "Email domain verified."
            return False, f"The email domain '{profile.email_domain}' is not eligible for this fund."

        if method == VerificationMethod.ROSTER:
            if not request.employee_id or request.birth_month is None or request.birth_day is None:
                raise VerificationInputError("Employee ID, birth month and birth day are required")
            found = await roster_contains(
                session, self.fund.code, request.employee_id, request.birth_month, request.birth_day,
            )
            if found:
                return True, "Roster record matched."
            return False, "No matching roster record was found."

        if await sso_linker.link(profile, self.fund):
            return True, "Account linked."
        return False, "Account linking failed."

    async def attempt(
        self,
        session: AsyncSession,
        profile: ProfileRecord,
        request: VerificationAttemptRequest,
        sso_linker: SsoLinker,
        feed: ChangeFeed | None = None,
    ) -> VerificationResult:
        """Run one attempt and perform the resulting identity writes."""
        if self.locked:
            return self._result("Maximum verification attempts reached.")
        if self.status == ClassVerificationStatus.PASSED:
            return self._result("Already verified.")

        passed, message = await self._check(session, profile, request, sso_linker)

        if passed:
            identity = await identity_service.record_verification_success(session, profile.uid, self.fund)
            self.status = ClassVerificationStatus.PASSED
            await profile_service.set_active_identity(session, profile.uid, identity, feed)
            return self._result(message)

        self.attempts += 1
        if self.attempts < self.max_attempts:
            return self._result(message)

        self.status = ClassVerificationStatus.FAILED
        logger.info(
            "Verification max attempts reached: uid=%s fund=%s attempts=%d",
            profile.uid, self.fund.code, self.attempts,
        )
        identity, created = await identity_service.record_verification_failure(
            session, profile.uid, self.fund,
        )
        if created:
            await profile_service.set_active_identity(session, profile.uid, identity, feed)
        return self._result(message)


def eligible_identity_for(
    identities: tuple[FundIdentityRecord, ...] | list[FundIdentityRecord], fund_code: str
) -> FundIdentityRecord | None:
    for identity in identities:
        if identity.fund_code == fund_code and identity.is_eligible:
            return identity
    return None
