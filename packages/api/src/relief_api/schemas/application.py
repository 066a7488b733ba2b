# This project was developed with assistance from AI tools.
"""Relief application request/response schemas."""

from datetime import date
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import ApplicationStatus

from . import UtcDatetime
from .profile import ApplicantProfile

YesNo = Literal["Yes", "No", ""]

OTHER_EVENT = "My disaster is not listed"


class Expense(BaseModel):
    id: str
    type: Literal["Basic Disaster Supplies", "Food Spoilage", "Meals", ""] = ""
    amount: Decimal | None = Field(default=None, ge=0)
    file_name: str = ""
    file_url: str | None = None


class EventData(BaseModel):
    """Event section of an application. Defaults form the empty draft skeleton."""

    event: str = ""
    event_name: str | None = None
    other_event: str | None = None
    event_date: date | None = None
    evacuated: YesNo = ""
    evacuating_from_primary: YesNo | None = None
    evacuation_reason: str | None = None
    stayed_with_family_or_friend: YesNo | None = None
    evacuation_start_date: date | None = None
    evacuation_nights: int | None = None
    power_loss: YesNo = ""
    power_loss_days: int | None = None
    additional_details: str | None = None
    requested_amount: Decimal = Decimal("0")
    expenses: list[Expense] = Field(default_factory=list)

    @property
    def normalized_event(self) -> str:
        """The free-text event replaces the "not listed" selection."""
        if self.event == OTHER_EVENT:
            return (self.other_event or "").strip()
        return self.event.strip()


class AgreementData(BaseModel):
    """``None`` means the question has not been answered yet."""

    share_story: bool | None = None
    receive_additional_info: bool | None = None


class ApplicationForm(BaseModel):
    """Everything gathered by the apply flow.

    ``fund_code`` is ignored on the proxy path; the admin's active fund wins.
    """

    profile_data: ApplicantProfile = Field(default_factory=ApplicantProfile)
    event_data: EventData
    agreement_data: AgreementData = Field(default_factory=AgreementData)
    fund_code: str | None = None


class ApplicationRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    uid: str
    fund_code: str
    profile_snapshot: dict
    event_data: EventData
    requested_amount: Decimal
    submitted_date: UtcDatetime
    status: ApplicationStatus
    reasons: list[str] = Field(default_factory=list)
    decisioned_date: UtcDatetime
    twelve_month_grant_remaining: Decimal
    lifetime_grant_remaining: Decimal
    share_story: bool = False
    receive_additional_info: bool = False
    submitted_by: str
    is_proxy: bool = False


class ApplicationListResponse(BaseModel):
    data: list[ApplicationRecord]
    count: int


class LedgerResponse(BaseModel):
    fund_code: str | None = None
    twelve_month_remaining: Decimal
    lifetime_remaining: Decimal
    can_apply: bool
