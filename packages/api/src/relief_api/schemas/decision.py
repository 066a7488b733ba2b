# This project was developed with assistance from AI tools.
"""Eligibility and final decision schemas."""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field
from relief_db.enums import DecisionOutcome

from . import UtcDatetime
from .application import EventData
from .fund import FundRecord


class PolicyHit(BaseModel):
    """Audit entry for one rule evaluation."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    passed: bool
    detail: str


class NormalizedEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    event: str
    event_date: date | None = None
    evacuated: str = ""
    power_loss_days: int = 0


class DecisionContext(BaseModel):
    """Inputs to a decision: the fund, the event, and the balances before it."""

    model_config = ConfigDict(frozen=True)

    fund: FundRecord
    event_data: EventData
    employment_start_date: date | None = None
    twelve_month_remaining: Decimal
    lifetime_remaining: Decimal
    decisioned_date: UtcDatetime


class EligibilityDecision(BaseModel):
    """Preliminary decision produced by the rules engine."""

    model_config = ConfigDict(frozen=True)

    decision: DecisionOutcome
    reasons: list[str] = Field(default_factory=list)
    policy_hits: list[PolicyHit] = Field(default_factory=list)
    recommended_award: Decimal = Decimal("0")
    remaining_12mo: Decimal
    remaining_lifetime: Decimal
    normalized: NormalizedEvent
    decisioned_date: UtcDatetime


class FinalDecision(BaseModel):
    """Authoritative decision persisted with the application."""

    model_config = ConfigDict(frozen=True)

    decision: DecisionOutcome
    reasons: list[str]
    decisioned_date: UtcDatetime
    award: Decimal = Decimal("0")
    remaining_12mo: Decimal
    remaining_lifetime: Decimal
    policy_hits: list[PolicyHit] = Field(default_factory=list)
