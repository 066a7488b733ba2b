# This project was developed with assistance from AI tools.
"""Decision service: rules-engine preliminary decision plus AI final review.

A rules-engine denial is final. Otherwise an OpenAI-compatible model acts
as the senior reviewer and returns ``{finalDecision, finalReason,
finalAward}``. The award is clamped to what the balances allow and the
balances are recomputed from it.
"""

import json
import logging
import re
from decimal import Decimal
from typing import Literal, Protocol

import openai
from pydantic import BaseModel, Field, ValidationError
from relief_db.enums import DecisionOutcome

from ..core.config import settings
from ..inference.client import get_completion
from ..schemas.decision import DecisionContext, EligibilityDecision, FinalDecision
from ..schemas.profile import ProfileRecord
from .eligibility import evaluate_eligibility

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"^```(?:json)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)

_FALLBACK_REASON = "Final review was unavailable; the automated rules decision was used."

_REVIEWER_PROMPT = """\
You are a senior grant approver. Perform the final review of a relief application.
A deterministic rules engine has already produced a preliminary decision. You have the final say.

Instructions:
1. Review all provided information holistically.
2. Decide 'Approved' or 'Denied'.
3. If you approve, the award is the MINIMUM of the requested amount, the 12-month remaining
   balance and the lifetime remaining balance. If you deny, the award is 0.
4. Write a single, concise, empathetic reason. It is shown directly to the applicant.
   For approvals state the event and the award amount. For denials state the primary reason.
5. Respond with JSON only: {"finalDecision": "Approved" | "Denied", "finalReason": str, "finalAward": number}
"""


class DecisionServiceError(RuntimeError):
    """Raised when the final decision could not be obtained."""

    pass


class _ReviewerVerdict(BaseModel):
    finalDecision: Literal["Approved", "Denied"]
    finalReason: str
    finalAward: Decimal = Field(default=Decimal("0"), ge=0)


class DecisionService(Protocol):
    def preliminary(self, context: DecisionContext) -> EligibilityDecision: ...

    async def finalize(
        self,
        context: DecisionContext,
        preliminary: EligibilityDecision,
        applicant_profile: ProfileRecord | None = None,
    ) -> FinalDecision: ...


def _strip_json_fences(text: str) -> str:
    stripped = text.strip()
    m = _FENCE_RE.match(stripped)
    return m.group(1).strip() if m else stripped


def final_from_preliminary(
    preliminary: EligibilityDecision, extra_reason: str | None = None
) -> FinalDecision:
    reasons = list(preliminary.reasons)
    if extra_reason:
        reasons.append(extra_reason)
    return FinalDecision(
        decision=preliminary.decision,
        reasons=reasons,
        decisioned_date=preliminary.decisioned_date,
        award=preliminary.recommended_award,
        remaining_12mo=preliminary.remaining_12mo,
        remaining_lifetime=preliminary.remaining_lifetime,
        policy_hits=preliminary.policy_hits,
    )


def _build_messages(context: DecisionContext, preliminary: EligibilityDecision) -> list[dict[str, str]]:
    body = (
        "APPLICANT'S SUBMITTED DATA:\n"
        f"{context.event_data.model_dump_json(indent=2)}\n\n"
        "CURRENT GRANT BALANCES:\n"
        f"- 12-Month Remaining: ${context.twelve_month_remaining}\n"
        f"- Lifetime Remaining: ${context.lifetime_remaining}\n\n"
        "PRELIMINARY AUTOMATED DECISION:\n"
        f"{preliminary.model_dump_json(indent=2)}"
    )
    return [
        {"role": "system", "content": _REVIEWER_PROMPT},
        {"role": "user", "content": body},
    ]


class AssistedDecisionService:
    """Default decision service backed by the configured inference tier."""

    def __init__(self, tier: str | None = None, fallback_to_rules: bool | None = None):
        self.tier = tier or settings.DECISION_MODEL_TIER
        self.fallback_to_rules = (
            settings.DECISION_FALLBACK_TO_RULES if fallback_to_rules is None else fallback_to_rules
        )

    def preliminary(self, context: DecisionContext) -> EligibilityDecision:
        return evaluate_eligibility(context)

    async def finalize(
        self,
        context: DecisionContext,
        preliminary: EligibilityDecision,
        applicant_profile: ProfileRecord | None = None,
    ) -> FinalDecision:
        if preliminary.decision == DecisionOutcome.DENIED:
            return final_from_preliminary(preliminary)

        try:
            raw = await get_completion(
                _build_messages(context, preliminary),
                tier=self.tier,
                response_format={"type": "json_object"},
            )
            verdict = _ReviewerVerdict.model_validate(json.loads(_strip_json_fences(raw)))
        except (json.JSONDecodeError, ValidationError) as exc:
            return self._on_failure(preliminary, applicant_profile, exc)
        except (openai.OpenAIError, KeyError, OSError) as exc:
            # Provider/transport errors and missing model tier config
            return self._on_failure(preliminary, applicant_profile, exc)

        twelve_month = context.twelve_month_remaining
        lifetime = context.lifetime_remaining
        award = Decimal("0")
        if verdict.finalDecision == "Approved":
            allowed = max(min(context.event_data.requested_amount, twelve_month, lifetime), Decimal("0"))
            award = min(verdict.finalAward, allowed)
            if award != verdict.finalAward:
                logger.warning("Reviewer award %s clamped to %s", verdict.finalAward, award)

        return FinalDecision(
            decision=DecisionOutcome(verdict.finalDecision),
            reasons=[verdict.finalReason],
            decisioned_date=preliminary.decisioned_date,
            award=award,
            remaining_12mo=twelve_month - award,
            remaining_lifetime=lifetime - award,
            policy_hits=preliminary.policy_hits,
        )

    def _on_failure(
        self,
        preliminary: EligibilityDecision,
        applicant_profile: ProfileRecord | None,
        exc: Exception,
    ) -> FinalDecision:
        uid = applicant_profile.uid if applicant_profile else None
        if self.fallback_to_rules:
            logger.error("Final review failed for uid=%s, using rules decision: %s", uid, exc)
            return final_from_preliminary(preliminary, _FALLBACK_REASON)
        logger.error("Final review failed for uid=%s: %s", uid, exc)
        raise DecisionServiceError("The final decision could not be obtained") from exc


_decision_service: DecisionService | None = None


def get_decision_service() -> DecisionService:
    global _decision_service  # noqa: PLW0603
    if _decision_service is None:
        _decision_service = AssistedDecisionService()
    return _decision_service
