# This project was developed with assistance from AI tools.
"""Sample fund catalog seeding.

Idempotent: funds that already exist are left untouched, so the seed can
run on every startup when ``SEED_FUNDS`` is enabled.

Simulated for demonstration purposes -- not real program data.
"""

import logging
from decimal import Decimal

from relief_db import Fund, RosterRecord
from relief_db.enums import VerificationMethod
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_DISASTERS = ["Flood", "Hurricane", "Tornado", "Wildfire", "Earthquake", "Winter Storm"]
_HARDSHIPS = ["House Fire", "Medical Emergency", "Death of Family Member"]
_EMPLOYMENT_TYPES = ["Full-time", "Part-time", "Contractor"]

SAMPLE_FUNDS: list[dict] = [
    {
        "code": "ACME",
        "name": "ACME Employee Relief Fund",
        "cv_type": VerificationMethod.DOMAIN,
        "single_request_max": Decimal("10000"),
        "twelve_month_max": Decimal("10000"),
        "lifetime_max": Decimal("50000"),
        "eligible_disasters": _DISASTERS,
        "eligible_hardships": _HARDSHIPS,
        "eligible_employment_types": _EMPLOYMENT_TYPES,
        "allowed_domains": ["acme.example"],
        "supported_languages": ["en", "es"],
        "support_email": "relief@acme.example",
    },
    {
        "code": "BETA",
        "name": "Beta Cares Fund",
        "cv_type": VerificationMethod.SSO,
        "single_request_max": Decimal("5000"),
        "twelve_month_max": Decimal("5000"),
        "lifetime_max": Decimal("20000"),
        "eligible_disasters": _DISASTERS,
        "eligible_hardships": [],
        "eligible_employment_types": _EMPLOYMENT_TYPES,
        "supported_languages": ["en"],
        "support_email": "help@beta.example",
    },
    {
        "code": "GAMMA",
        "name": "Gamma Workers Assistance Fund",
        "cv_type": VerificationMethod.ROSTER,
        "single_request_max": Decimal("2500"),
        "twelve_month_max": Decimal("5000"),
        "lifetime_max": Decimal("10000"),
        "eligible_disasters": _DISASTERS,
        "eligible_hardships": _HARDSHIPS,
        "eligible_employment_types": ["Full-time"],
        "supported_languages": ["en", "fr"],
        "support_phone": "+1-555-0100",
        "roster": [
            {"employee_id": "12345", "birth_month": 5, "birth_day": 15},
            {"employee_id": "67890", "birth_month": 11, "birth_day": 2},
        ],
    },
]


async def seed_funds(session: AsyncSession, funds: list[dict] | None = None) -> list[str]:
    """Insert missing funds and their roster records. Returns the codes added."""
    added: list[str] = []
    for entry in funds if funds is not None else SAMPLE_FUNDS:
        data = dict(entry)
        roster = data.pop("roster", [])
        if await session.get(Fund, data["code"]) is not None:
            continue
        fund = Fund(**data)
        fund.roster_records = [RosterRecord(**record) for record in roster]
        session.add(fund)
        added.append(fund.code)

    if added:
        await session.commit()
        logger.info("Seeded funds: %s", ", ".join(added))
    return added
