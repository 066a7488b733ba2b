# This project was developed with assistance from AI tools.
"""Application draft schemas."""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .application import AgreementData, EventData
from .profile import ApplicantProfile


class ApplicationDraft(BaseModel):
    """Partially completed application for one (user, fund)."""

    model_config = ConfigDict(frozen=True)

    profile_data: ApplicantProfile = Field(default_factory=ApplicantProfile)
    event_data: EventData = Field(default_factory=EventData)
    agreement_data: AgreementData = Field(default_factory=AgreementData)


class DraftUpdate(BaseModel):
    """Partial draft update; each section is deep-merged into the cached draft."""

    profile_data: dict | None = None
    event_data: dict | None = None
    agreement_data: dict | None = None


class DraftResponse(BaseModel):
    fund_code: str | None = None
    draft: ApplicationDraft | None = None


class ExpenseArg(BaseModel):
    type: Literal["Basic Disaster Supplies", "Food Spoilage", "Meals"]
    amount: Decimal = Field(ge=0)


class AssistantAction(BaseModel):
    """A tool call emitted by the application assistant, applied to the draft.

    ``args`` keys are the draft field names of the targeted section. For
    ``addOrUpdateExpense`` they carry an ``expenses`` list of
    ``{type, amount}`` entries.
    """

    name: Literal[
        "updateUserProfile",
        "startOrUpdateApplicationDraft",
        "addOrUpdateExpense",
        "updateAgreements",
    ]
    args: dict = Field(default_factory=dict)


class ConversationMessage(BaseModel):
    role: Literal["user", "model", "error"]
    content: str


class ConversationUpdate(BaseModel):
    """Full replacement of the assistant conversation for the active fund."""

    messages: list[ConversationMessage] = Field(default_factory=list)


class ConversationResponse(BaseModel):
    fund_code: str | None = None
    messages: list[ConversationMessage] = Field(default_factory=list)
