# This project was developed with assistance from AI tools.
"""Session hydration: derive session state from a profile snapshot.

Pure functions -- the session controller does the I/O (identity listing,
draft loading) and hands the results in. The profile's stored fund fields
are never trusted; they are overlaid from the active identity here.
"""

from datetime import UTC, datetime, timedelta

from relief_db.enums import ClassVerificationStatus, EligibilityStatus, UserRole

from ..schemas.draft import ApplicationDraft
from ..schemas.identity import ActiveIdentity, FundIdentityRecord
from ..schemas.navigation import Page
from ..schemas.profile import ProfileRecord
from ..schemas.session import SessionState, SessionStatus

_LANDING_REDIRECT_PAGES = frozenset(
    {Page.LOGIN, Page.REGISTER, Page.CLASS_VERIFICATION, Page.RELIEF_QUEUE}
)

_NEVER_USED = datetime.min.replace(tzinfo=UTC)


class ProfileIntegrityError(RuntimeError):
    """An authenticated account has no profile after the provisioning window."""

    pass


def within_provisioning_grace(
    account_created_at: datetime | None, grace_seconds: int, now: datetime | None = None
) -> bool:
    if account_created_at is None:
        return False
    now = now or datetime.now(UTC)
    return now - account_created_at <= timedelta(seconds=grace_seconds)


def select_active_identity(
    identities: list[FundIdentityRecord] | tuple[FundIdentityRecord, ...],
    active_identity_id: str | None,
) -> FundIdentityRecord | None:
    """The pointed-at identity, else the most recently used (ties by id), else None."""
    if not identities:
        return None
    if active_identity_id:
        for identity in identities:
            if identity.id == active_identity_id:
                return identity
    # Highest last_used_at wins; equal timestamps fall back to the smallest id.
    ordered = sorted(identities, key=lambda i: i.id)
    return max(ordered, key=lambda i: i.last_used_at or _NEVER_USED)


def project_profile(
    profile: ProfileRecord,
    active: FundIdentityRecord | None,
    role: UserRole,
) -> ProfileRecord:
    """Overlay the active identity's fund context and the token role."""
    if active is None:
        # Keep the registration fund as the verification target.
        return profile.model_copy(
            update={
                "active_identity_id": None,
                "class_verification_status": ClassVerificationStatus.PENDING,
                "eligibility_status": EligibilityStatus.NOT_ELIGIBLE,
                "role": role,
            }
        )
    return profile.model_copy(
        update={
            "active_identity_id": active.id,
            "fund_code": active.fund_code,
            "fund_name": active.fund_name,
            "class_verification_status": active.class_verification_status,
            "eligibility_status": active.eligibility_status,
            "role": role,
        }
    )


def landing_page(current: Page, profile: ProfileRecord, is_trapped: bool) -> Page:
    if is_trapped:
        return Page.RELIEF_QUEUE
    if not profile.is_verified_and_eligible:
        return Page.CLASS_VERIFICATION
    if current in _LANDING_REDIRECT_PAGES:
        return Page.HOME
    return current


def derive_state(
    profile: ProfileRecord,
    identities: list[FundIdentityRecord],
    role: UserRole,
    current_page: Page,
    draft: ApplicationDraft | None = None,
) -> SessionState:
    """Select the active identity, project it, and pick the landing page."""
    identities = sorted(identities, key=lambda i: i.id)
    active = select_active_identity(identities, profile.active_identity_id)
    projected = project_profile(profile, active, role)

    has_eligible = any(i.eligibility_status == EligibilityStatus.ELIGIBLE for i in identities)
    is_trapped = (
        projected.class_verification_status == ClassVerificationStatus.FAILED
        and not has_eligible
        and role != UserRole.ADMIN
    )

    return SessionState(
        status=SessionStatus.SIGNED_IN,
        page=landing_page(current_page, projected, is_trapped),
        profile=projected,
        identities=tuple(identities),
        active_identity=ActiveIdentity(id=active.id, fund_code=active.fund_code) if active else None,
        has_eligible_identity=has_eligible,
        is_trapped=is_trapped,
        draft=draft,
    )
