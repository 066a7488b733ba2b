# This project was developed with assistance from AI tools.
"""Access-control router.

Pure functions over the current session state. The (role, access state)
pair selects a rule from ``_RULES``; the rule decides whether a target page
is granted, rewritten to the relief queue, or suppressed.
"""

import enum

from relief_db.enums import ClassVerificationStatus, UserRole

from ..schemas.navigation import NavigationDecision, NavigationOutcome, Page
from ..schemas.profile import ProfileRecord


class AccessState(str, enum.Enum):
    VERIFIED_ELIGIBLE = "verified_eligible"
    PENDING = "pending"
    TRAPPED = "trapped"


class AccessRule(str, enum.Enum):
    GRANT_ALL = "grant_all"
    PARTIAL = "partial"
    LOCKOUT = "lockout"


AUTH_PAGES = frozenset({Page.LOGIN, Page.REGISTER, Page.FORGOT_PASSWORD})

LOCKOUT_PAGES = frozenset({Page.RELIEF_QUEUE, Page.CLASS_VERIFICATION})

PARTIAL_PAGES = frozenset(
    {Page.HOME, Page.CLASS_VERIFICATION, Page.RELIEF_QUEUE, Page.PROFILE, Page.ELIGIBILITY}
)

# A suppressed navigation leaves the user here; from anywhere else they land on home.
SUPPRESS_STAY_PAGES = frozenset({Page.HOME, Page.PROFILE, Page.CLASS_VERIFICATION})

_RULES: dict[tuple[UserRole, AccessState], AccessRule] = {
    (UserRole.ADMIN, AccessState.VERIFIED_ELIGIBLE): AccessRule.GRANT_ALL,
    (UserRole.ADMIN, AccessState.PENDING): AccessRule.GRANT_ALL,
    (UserRole.ADMIN, AccessState.TRAPPED): AccessRule.GRANT_ALL,
    (UserRole.USER, AccessState.VERIFIED_ELIGIBLE): AccessRule.GRANT_ALL,
    (UserRole.USER, AccessState.PENDING): AccessRule.PARTIAL,
    (UserRole.USER, AccessState.TRAPPED): AccessRule.LOCKOUT,
}


def access_state(profile: ProfileRecord, has_eligible_identity: bool) -> AccessState:
    """Classify the hydrated profile. Role is not considered here."""
    if profile.class_verification_status == ClassVerificationStatus.FAILED and not has_eligible_identity:
        return AccessState.TRAPPED
    if profile.is_verified_and_eligible:
        return AccessState.VERIFIED_ELIGIBLE
    return AccessState.PENDING


def navigate(
    role: UserRole,
    state: AccessState,
    current: Page,
    target: Page,
) -> NavigationDecision:
    if target in AUTH_PAGES:
        return NavigationDecision(outcome=NavigationOutcome.GRANTED, requested=target, page=target)

    rule = _RULES[(role, state)]

    if rule == AccessRule.LOCKOUT and target not in LOCKOUT_PAGES:
        return NavigationDecision(
            outcome=NavigationOutcome.REWRITTEN, requested=target, page=Page.RELIEF_QUEUE,
        )

    if rule == AccessRule.PARTIAL and target not in PARTIAL_PAGES:
        landing = current if current in SUPPRESS_STAY_PAGES else Page.HOME
        return NavigationDecision(
            outcome=NavigationOutcome.SUPPRESSED, requested=target, page=landing,
        )

    return NavigationDecision(outcome=NavigationOutcome.GRANTED, requested=target, page=target)
