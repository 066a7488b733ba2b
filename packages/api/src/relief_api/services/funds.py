# This project was developed with assistance from AI tools.
"""Fund catalog lookups (read-only reference data)."""

import logging

from relief_db import Fund, RosterRecord
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.fund import FundRecord

logger = logging.getLogger(__name__)


class FundNotFoundError(ValueError):
    """Raised when a fund code does not exist in the catalog."""

    def __init__(self, fund_code: str):
        self.fund_code = fund_code
        super().__init__(f"Fund '{fund_code}' is not configured")


async def get_fund(session: AsyncSession, code: str) -> FundRecord | None:
    fund = await session.get(Fund, code)
    if fund is None:
        return None
    return FundRecord.model_validate(fund)


async def require_fund(session: AsyncSession, code: str | None) -> FundRecord:
    """Like ``get_fund`` but a missing fund is a configuration error."""
    fund = await get_fund(session, code) if code else None
    if fund is None:
        logger.error("Fund lookup failed for code=%s", code)
        raise FundNotFoundError(code or "")
    return fund


async def roster_contains(
    session: AsyncSession,
    fund_code: str,
    employee_id: str,
    birth_month: int,
    birth_day: int,
) -> bool:
    """Check a roster credential triple against the fund-scoped records.

    The employee id is compared as a string, month and day as integers.
    """
    stmt = select(RosterRecord.id).where(
        RosterRecord.fund_code == fund_code,
        RosterRecord.employee_id == str(employee_id).strip(),
        RosterRecord.birth_month == int(birth_month),
        RosterRecord.birth_day == int(birth_day),
    )
    result = await session.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None
