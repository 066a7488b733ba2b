# This project was developed with assistance from AI tools.
"""Fund catalog schemas."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import VerificationMethod


class FundRecord(BaseModel):
    """Read-only fund reference data."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    code: str
    name: str
    cv_type: VerificationMethod
    single_request_max: Decimal
    twelve_month_max: Decimal
    lifetime_max: Decimal
    eligible_disasters: list[str] = Field(default_factory=list)
    eligible_hardships: list[str] = Field(default_factory=list)
    eligible_employment_types: list[str] = Field(default_factory=list)
    allowed_domains: list[str] | None = None
    supported_languages: list[str] = Field(default_factory=list)
    support_email: str | None = None
    support_phone: str | None = None

    @property
    def eligible_events(self) -> list[str]:
        """Disasters and hardships together form the eligible event taxonomy."""
        return [*self.eligible_disasters, *self.eligible_hardships]
