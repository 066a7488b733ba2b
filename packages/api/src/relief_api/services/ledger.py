# This project was developed with assistance from AI tools.
"""Grant ledger: remaining 12-month and lifetime balances.

Balances are advisory. The authoritative decrement is computed by the
decision service and persisted on each application, so the most recent
application for a fund carries the current balances.
"""

from dataclasses import dataclass
from decimal import Decimal

from ..schemas.application import ApplicationRecord
from ..schemas.fund import FundRecord
from ..schemas.profile import ProfileRecord


@dataclass(frozen=True)
class GrantBalances:
    twelve_month_remaining: Decimal
    lifetime_remaining: Decimal


def compute_balances(fund: FundRecord, latest: ApplicationRecord | None) -> GrantBalances:
    """Balances after ``latest``, or the fund maxima when there is none."""
    if latest is None:
        return GrantBalances(fund.twelve_month_max, fund.lifetime_max)
    return GrantBalances(latest.twelve_month_grant_remaining, latest.lifetime_grant_remaining)


def latest_application(
    applications: list[ApplicationRecord], fund_code: str
) -> ApplicationRecord | None:
    """Newest application for ``fund_code`` by submitted date (id breaks ties)."""
    candidates = [a for a in applications if a.fund_code == fund_code]
    if not candidates:
        return None
    return max(candidates, key=lambda a: (a.submitted_date, a.id))


def has_remaining_balance(balances: GrantBalances) -> bool:
    return balances.twelve_month_remaining > 0 and balances.lifetime_remaining > 0


def can_apply(profile: ProfileRecord | None, balances: GrantBalances) -> bool:
    if profile is None or not profile.is_verified_and_eligible:
        return False
    return has_remaining_balance(balances)
