# This project was developed with assistance from AI tools.
"""Fund identity schemas."""

from pydantic import BaseModel, ConfigDict
from relief_db.enums import ClassVerificationStatus, EligibilityStatus, VerificationMethod

from . import UtcDatetime


def identity_id_for(uid: str, fund_code: str) -> str:
    """Deterministic identity id -- one identity per (user, fund)."""
    return f"{uid}-{fund_code}"


class FundIdentityRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    uid: str
    fund_code: str
    fund_name: str
    cv_type: VerificationMethod
    class_verification_status: ClassVerificationStatus
    eligibility_status: EligibilityStatus
    created_at: UtcDatetime
    last_used_at: UtcDatetime | None = None

    @property
    def is_eligible(self) -> bool:
        return self.eligibility_status == EligibilityStatus.ELIGIBLE


class ActiveIdentity(BaseModel):
    """Derived pointer to the identity supplying the profile's fund context."""

    model_config = ConfigDict(frozen=True)

    id: str
    fund_code: str


class IdentityListResponse(BaseModel):
    data: list[FundIdentityRecord]
    active_identity_id: str | None = None
