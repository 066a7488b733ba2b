# This project was developed with assistance from AI tools.
"""Deterministic eligibility rules engine.

Pure functions -- no DB calls. Produces the preliminary decision that the
decision service hands to the AI reviewer. Every rule records a policy hit
so the outcome can be audited.

Rules:
    R1   an event is specified ("not listed" uses the free-text event)
    R1A  the event is in the fund's eligible taxonomy
    R2   the event date is inside the event window and not in the future
    R3   employment started on or before the event
    R4   requested amount fits the 12-month and lifetime balances
    R5   requested amount is positive and within the single-request cap
    R6   evacuation / power-loss claims carry their supporting details
    R7   power-loss days are coerced to 0 when power loss is "No"
"""

from datetime import timedelta
from decimal import Decimal

from relief_db.enums import DecisionOutcome

from ..core.config import settings
from ..schemas.decision import DecisionContext, EligibilityDecision, NormalizedEvent, PolicyHit

_APPROVED_REASON = "Application meets all automatic approval criteria."


def _money(amount: Decimal) -> str:
    return f"${amount:,.2f}"


def evaluate_eligibility(
    context: DecisionContext, window_days: int | None = None
) -> EligibilityDecision:
    """Run the rule set against one application."""
    window_days = settings.EVENT_WINDOW_DAYS if window_days is None else window_days
    event_data = context.event_data
    today = context.decisioned_date.date()
    window_start = today - timedelta(days=window_days)

    hits: list[PolicyHit] = []
    reasons: list[str] = []
    denied = False
    review = False

    # R1 / R1A
    event = event_data.normalized_event
    if not event:
        denied = True
        reasons.append(
            "An event type must be selected. If 'My disaster is not listed' is chosen, "
            "the specific event must be provided."
        )
        hits.append(PolicyHit(rule_id="R1", passed=False, detail="Event resolved to an empty name."))
    elif event not in context.fund.eligible_events:
        denied = True
        reasons.append(f"The selected event '{event}' is not covered by this fund.")
        hits.append(
            PolicyHit(rule_id="R1A", passed=False, detail=f"Event '{event}' not found in eligible events list.")
        )
    else:
        hits.append(PolicyHit(rule_id="R1", passed=True, detail=f"Event specified as '{event}'."))
        hits.append(PolicyHit(rule_id="R1A", passed=True, detail=f"Event '{event}' is an eligible event."))

    # R2
    event_date = event_data.event_date
    if event_date is None or event_date < window_start or event_date > today:
        denied = True
        reasons.append(
            f"Event date is older than {window_days} days or invalid. "
            f"Event must be between {window_start.isoformat()} and today."
        )
        hits.append(
            PolicyHit(
                rule_id="R2",
                passed=False,
                detail=f"Event date '{event_date}' is outside the window starting {window_start.isoformat()}.",
            )
        )
    else:
        hits.append(PolicyHit(rule_id="R2", passed=True, detail=f"Event date '{event_date}' is recent."))

    # R3
    employment_start = context.employment_start_date
    if employment_start is None or (event_date is not None and employment_start > event_date):
        denied = True
        reasons.append("Employment start date is invalid or after the event date.")
        hits.append(
            PolicyHit(
                rule_id="R3",
                passed=False,
                detail=f"Employment start date '{employment_start}' is after event date '{event_date}'.",
            )
        )
    else:
        hits.append(PolicyHit(rule_id="R3", passed=True, detail="Employment start date is valid."))

    # R4 / R5
    requested = event_data.requested_amount
    twelve_month = context.twelve_month_remaining
    lifetime = context.lifetime_remaining
    single_max = context.fund.single_request_max
    if requested <= 0:
        denied = True
        reasons.append("Requested amount must be greater than zero.")
        hits.append(
            PolicyHit(rule_id="R4/R5", passed=False, detail=f"Requested amount of {_money(requested)} is not greater than zero.")
        )
    elif requested > single_max:
        denied = True
        reasons.append(f"Requested amount of {_money(requested)} exceeds the maximum of {_money(single_max)}.")
        hits.append(
            PolicyHit(rule_id="R5", passed=False, detail=f"Requested amount {_money(requested)} exceeds absolute cap of {_money(single_max)}.")
        )
    elif requested > twelve_month:
        denied = True
        reasons.append(
            f"Requested amount of {_money(requested)} exceeds the remaining 12-month limit of {_money(twelve_month)}."
        )
        hits.append(
            PolicyHit(rule_id="R4", passed=False, detail=f"Requested amount {_money(requested)} exceeds 12-month limit {_money(twelve_month)}.")
        )
    elif requested > lifetime:
        denied = True
        reasons.append(
            f"Requested amount of {_money(requested)} exceeds the remaining lifetime limit of {_money(lifetime)}."
        )
        hits.append(
            PolicyHit(rule_id="R4", passed=False, detail=f"Requested amount {_money(requested)} exceeds lifetime limit {_money(lifetime)}.")
        )
    else:
        hits.append(PolicyHit(rule_id="R4", passed=True, detail=f"Requested amount {_money(requested)} is within all limits."))
        hits.append(PolicyHit(rule_id="R5", passed=True, detail=f"Requested amount {_money(requested)} is within absolute cap."))

    # R6 -- only matters when nothing above denied the request
    if not denied:
        if event_data.evacuated == "Yes":
            missing = (
                not event_data.evacuating_from_primary
                or not event_data.stayed_with_family_or_friend
                or event_data.evacuation_start_date is None
                or not event_data.evacuation_nights
                or event_data.evacuation_nights <= 0
            )
            if missing:
                review = True
                reasons.append(
                    "Evacuation was indicated, but required details "
                    "(e.g., evacuation start date, number of nights) are missing or invalid."
                )
                hits.append(
                    PolicyHit(rule_id="R6", passed=False, detail="Evacuation indicated but required fields are missing or invalid.")
                )
            else:
                hits.append(PolicyHit(rule_id="R6", passed=True, detail="Evacuation fields are complete."))

        if event_data.power_loss == "Yes":
            if not event_data.power_loss_days or event_data.power_loss_days <= 0:
                review = True
                reasons.append("Power loss was indicated, but the number of days is missing or invalid.")
                hits.append(
                    PolicyHit(
                        rule_id="R6",
                        passed=False,
                        detail=f"Power loss indicated but power_loss_days ({event_data.power_loss_days or 'N/A'}) is invalid.",
                    )
                )
            else:
                hits.append(PolicyHit(rule_id="R6", passed=True, detail="Power loss fields are complete."))

    # R7
    power_loss_days = event_data.power_loss_days or 0
    if event_data.power_loss == "No" and power_loss_days > 0:
        hits.append(
            PolicyHit(
                rule_id="R7",
                passed=True,
                detail=f"Power loss was 'No' but power_loss_days was {power_loss_days}. Coerced to 0.",
            )
        )
        power_loss_days = 0

    if denied:
        decision = DecisionOutcome.DENIED
    elif review:
        decision = DecisionOutcome.REVIEW
    else:
        decision = DecisionOutcome.APPROVED
        reasons.append(_APPROVED_REASON)

    award = Decimal("0")
    if decision == DecisionOutcome.APPROVED:
        award = min(requested, twelve_month, lifetime)

    return EligibilityDecision(
        decision=decision,
        reasons=reasons,
        policy_hits=hits,
        recommended_award=award,
        remaining_12mo=twelve_month - award,
        remaining_lifetime=lifetime - award,
        normalized=NormalizedEvent(
            event=event,
            event_date=event_date,
            evacuated=event_data.evacuated,
            power_loss_days=power_loss_days,
        ),
        decisioned_date=context.decisioned_date,
    )
