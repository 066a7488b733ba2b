# This project was developed with assistance from AI tools.
"""Tests for the AI-reviewed final decision service."""

import json
from datetime import UTC, date, datetime
from decimal import Decimal
from unittest.mock import AsyncMock, patch

import httpx
import openai
import pytest
from factories import make_fund
from relief_db.enums import DecisionOutcome

from relief_api.schemas.application import EventData
from relief_api.schemas.decision import DecisionContext
from relief_api.services.decision import (
    AssistedDecisionService,
    DecisionServiceError,
    final_from_preliminary,
)

_COMPLETION = "relief_api.services.decision.get_completion"


def _context(requested="500", twelve_month="10000", lifetime="50000", event="Flood"):
    return DecisionContext(
        fund=make_fund(),
        event_data=EventData(
            event=event,
            event_date=date(2024, 5, 20),
            requested_amount=Decimal(requested),
        ),
        employment_start_date=date(2020, 1, 1),
        twelve_month_remaining=Decimal(twelve_month),
        lifetime_remaining=Decimal(lifetime),
        decisioned_date=datetime(2024, 6, 1, tzinfo=UTC),
    )


def _verdict(decision="Approved", reason="Approved for Flood: $500.00.", award=500):
    return json.dumps({"finalDecision": decision, "finalReason": reason, "finalAward": award})


@pytest.fixture
def service():
    return AssistedDecisionService(tier="capable_large", fallback_to_rules=False)


async def test_rules_denial_is_final_without_model_call(service):
    context = _context(event="Volcano")
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock) as completion:
        final = await service.finalize(context, preliminary)
    completion.assert_not_awaited()
    assert final.decision == DecisionOutcome.DENIED
    assert final.award == Decimal("0")
    assert final.reasons == preliminary.reasons


async def test_reviewer_approval_sets_award_and_balances(service):
    context = _context()
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock, return_value=_verdict()) as completion:
        final = await service.finalize(context, preliminary)

    completion.assert_awaited_once()
    assert completion.call_args.kwargs["tier"] == "capable_large"
    assert completion.call_args.kwargs["response_format"] == {"type": "json_object"}
    assert final.decision == DecisionOutcome.APPROVED
    assert final.reasons == ["Approved for Flood: $500.00."]
    assert final.award == Decimal("500")
    assert final.remaining_12mo == Decimal("9500")
    assert final.remaining_lifetime == Decimal("49500")
    assert final.policy_hits == preliminary.policy_hits


async def test_reviewer_can_deny_a_review_case(service):
    context = _context()
    preliminary = service.preliminary(context)
    raw = _verdict(decision="Denied", reason="Documentation is insufficient.", award=0)
    with patch(_COMPLETION, new_callable=AsyncMock, return_value=raw):
        final = await service.finalize(context, preliminary)
    assert final.decision == DecisionOutcome.DENIED
    assert final.award == Decimal("0")
    assert final.remaining_12mo == Decimal("10000")


async def test_award_clamped_to_requested_amount(service):
    context = _context(requested="800")
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock, return_value=_verdict(award=5000)):
        final = await service.finalize(context, preliminary)
    assert final.award == Decimal("800")
    assert final.remaining_12mo == Decimal("9200")


async def test_fenced_json_is_accepted(service):
    context = _context()
    preliminary = service.preliminary(context)
    raw = f"```json\n{_verdict()}\n```"
    with patch(_COMPLETION, new_callable=AsyncMock, return_value=raw):
        final = await service.finalize(context, preliminary)
    assert final.decision == DecisionOutcome.APPROVED


async def test_malformed_response_raises(service):
    context = _context()
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock, return_value="not json"):
        with pytest.raises(DecisionServiceError):
            await service.finalize(context, preliminary)


async def test_unexpected_verdict_value_raises(service):
    context = _context()
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock, return_value=_verdict(decision="Maybe")):
        with pytest.raises(DecisionServiceError):
            await service.finalize(context, preliminary)


async def test_provider_error_raises(service):
    context = _context()
    preliminary = service.preliminary(context)
    request = httpx.Request("POST", "http://llm.test/v1/chat/completions")
    with patch(
        _COMPLETION,
        new_callable=AsyncMock,
        side_effect=openai.APIConnectionError(request=request),
    ):
        with pytest.raises(DecisionServiceError):
            await service.finalize(context, preliminary)


async def test_fallback_uses_rules_decision():
    service = AssistedDecisionService(tier="capable_large", fallback_to_rules=True)
    context = _context()
    preliminary = service.preliminary(context)
    with patch(_COMPLETION, new_callable=AsyncMock, side_effect=KeyError("capable_large")):
        final = await service.finalize(context, preliminary)
    assert final.decision == preliminary.decision
    assert final.award == preliminary.recommended_award
    assert final.reasons[-1] == "Final review was unavailable; the automated rules decision was used."


def test_final_from_preliminary_copies_balances(service):
    preliminary = service.preliminary(_context())
    final = final_from_preliminary(preliminary)
    assert final.decision == preliminary.decision
    assert final.remaining_12mo == preliminary.remaining_12mo
    assert final.remaining_lifetime == preliminary.remaining_lifetime
    assert final.decisioned_date == preliminary.decisioned_date
