# This project was developed with assistance from AI tools.
"""Hydrated session state and verification flow schemas."""

import enum

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import ClassVerificationStatus, VerificationMethod

from .draft import ApplicationDraft
from .identity import ActiveIdentity, FundIdentityRecord
from .navigation import Page
from .profile import ProfileRecord


class SessionStatus(str, enum.Enum):
    LOADING = "loading"
    SIGNED_IN = "signed_in"
    SIGNED_OUT = "signed_out"


class SessionState(BaseModel):
    """Snapshot of everything hydration derives. Replaced whole, never mutated."""

    model_config = ConfigDict(frozen=True)

    status: SessionStatus
    page: Page
    profile: ProfileRecord | None = None
    identities: tuple[FundIdentityRecord, ...] = ()
    active_identity: ActiveIdentity | None = None
    has_eligible_identity: bool = False
    is_trapped: bool = False
    draft: ApplicationDraft | None = None

    @property
    def fund_code(self) -> str | None:
        return self.profile.fund_code if self.profile else None


SIGNED_OUT = SessionState(status=SessionStatus.SIGNED_OUT, page=Page.LOGIN)


class VerificationAttemptRequest(BaseModel):
    """Roster credentials. Domain and SSO attempts send an empty body."""

    employee_id: str | None = None
    birth_month: int | None = Field(default=None, ge=1, le=12)
    birth_day: int | None = Field(default=None, ge=1, le=31)


class VerificationStatusResponse(BaseModel):
    fund_code: str
    fund_name: str
    cv_type: VerificationMethod
    attempts: int
    max_attempts: int
    locked: bool


class VerificationResult(BaseModel):
    """Outcome of one verification attempt. Failures are results, not errors."""

    model_config = ConfigDict(frozen=True)

    fund_code: str
    status: ClassVerificationStatus
    message: str = ""
    attempts: int = 0
    remaining_attempts: int = 0
    locked: bool = False
    page: Page | None = None

    @property
    def passed(self) -> bool:
        return self.status == ClassVerificationStatus.PASSED
