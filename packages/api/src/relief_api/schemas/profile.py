# This project was developed with assistance from AI tools.
"""User profile schemas."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import ClassVerificationStatus, EligibilityStatus, UserRole

from . import UtcDatetime


class Address(BaseModel):
    country: str = ""
    street1: str = ""
    street2: str | None = None
    city: str = ""
    state: str = ""
    zip: str = ""


class ProfileFields(BaseModel):
    """Applicant-editable attributes shared by registration, edits and forms."""

    first_name: str | None = None
    last_name: str | None = None
    middle_name: str | None = None
    suffix: str | None = None
    mobile_number: str | None = None
    primary_address: Address | None = None
    mailing_address: Address | None = None
    is_mailing_address_same: bool | None = None
    employment_start_date: date | None = None
    eligibility_type: str | None = None
    household_income: Decimal | None = Field(default=None, ge=0)
    household_size: int | None = Field(default=None, ge=1)
    homeowner: Literal["Yes", "No"] | None = None
    preferred_language: str | None = None
    ack_policies: bool | None = None
    comm_consent: bool | None = None
    info_correct: bool | None = None


class ProfileCreate(ProfileFields):
    """Registration payload. ``fund_code`` is the fund the user signs up against."""

    email: str
    first_name: str
    last_name: str
    fund_code: str


class ProfileUpdate(ProfileFields):
    """Partial profile edit. Only fields explicitly sent are written."""


class ApplicantProfile(ProfileFields):
    """Profile section of an application form; ``email`` identifies proxy applicants."""

    email: str | None = None


EDITABLE_PROFILE_FIELDS = frozenset(ProfileFields.model_fields)


class ProfileRecord(BaseModel):
    """Stored profile document.

    After hydration the fund fields and ``role`` are a projection of the
    active identity and the token claim; see ``services.hydration``.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    uid: str
    email: str
    first_name: str = ""
    last_name: str = ""
    middle_name: str | None = None
    suffix: str | None = None
    mobile_number: str = ""
    primary_address: Address | None = None
    mailing_address: Address | None = None
    is_mailing_address_same: bool | None = None
    employment_start_date: date | None = None
    eligibility_type: str = ""
    household_income: Decimal | None = None
    household_size: int | None = None
    homeowner: str | None = None
    preferred_language: str | None = None
    ack_policies: bool = False
    comm_consent: bool = False
    info_correct: bool = False
    relief_queue_ticket: str | None = None
    active_identity_id: str | None = None
    fund_code: str | None = None
    fund_name: str | None = None
    class_verification_status: ClassVerificationStatus = ClassVerificationStatus.PENDING
    eligibility_status: EligibilityStatus = EligibilityStatus.NOT_ELIGIBLE
    role: UserRole = UserRole.USER
    created_at: UtcDatetime | None = None

    @property
    def is_verified_and_eligible(self) -> bool:
        return (
            self.class_verification_status == ClassVerificationStatus.PASSED
            and self.eligibility_status == EligibilityStatus.ELIGIBLE
        )

    @property
    def email_domain(self) -> str:
        return self.email.rpartition("@")[2].lower()
