# This project was developed with assistance from AI tools.
"""Identity store: per-fund membership records for a user.

Identity ids are ``f"{uid}-{fund_code}"`` so writes for the same fund
always land on the same row.
"""

import logging
from datetime import UTC, datetime

from relief_db import FundIdentity
from relief_db.enums import ClassVerificationStatus, EligibilityStatus
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.fund import FundRecord
from ..schemas.identity import FundIdentityRecord, identity_id_for

logger = logging.getLogger(__name__)


class IdentityNotFoundError(ValueError):
    """Raised when an identity id does not exist for the user."""

    pass


class ActiveIdentityRemovalError(ValueError):
    """Raised when removing the identity the profile currently points at."""

    pass


async def list_for_user(session: AsyncSession, uid: str) -> list[FundIdentityRecord]:
    stmt = select(FundIdentity).where(FundIdentity.uid == uid).order_by(FundIdentity.id)
    result = await session.execute(stmt)
    return [FundIdentityRecord.model_validate(row) for row in result.scalars().all()]


async def get_identity(session: AsyncSession, uid: str, identity_id: str) -> FundIdentityRecord | None:
    identity = await session.get(FundIdentity, identity_id)
    if identity is None or identity.uid != uid:
        return None
    return FundIdentityRecord.model_validate(identity)


async def _upsert(
    session: AsyncSession,
    uid: str,
    fund: FundRecord,
    status: ClassVerificationStatus,
    eligibility: EligibilityStatus,
    touch: bool,
) -> tuple[FundIdentityRecord, bool]:
    identity_id = identity_id_for(uid, fund.code)
    identity = await session.get(FundIdentity, identity_id)
    created = identity is None
    if created:
        identity = FundIdentity(id=identity_id, uid=uid, fund_code=fund.code)
        session.add(identity)

    identity.fund_name = fund.name
    identity.cv_type = fund.cv_type
    identity.class_verification_status = status
    identity.eligibility_status = eligibility
    if touch:
        identity.last_used_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(identity)
    return FundIdentityRecord.model_validate(identity), created


async def record_verification_success(
    session: AsyncSession, uid: str, fund: FundRecord
) -> FundIdentityRecord:
    """Create or update the identity as passed / Eligible and mark it used now."""
    record, created = await _upsert(
        session, uid, fund, ClassVerificationStatus.PASSED, EligibilityStatus.ELIGIBLE, touch=True,
    )
    logger.info(
        "Identity %s: id=%s", "created" if created else "re-verified", record.id,
    )
    return record


async def record_verification_failure(
    session: AsyncSession, uid: str, fund: FundRecord
) -> tuple[FundIdentityRecord, bool]:
    """Create or update the identity as failed / Not Eligible.

    Returns the record and whether it was newly created.
    """
    record, created = await _upsert(
        session, uid, fund, ClassVerificationStatus.FAILED, EligibilityStatus.NOT_ELIGIBLE, touch=False,
    )
    logger.info("Identity verification failed: id=%s created=%s", record.id, created)
    return record, created


async def touch_identity(session: AsyncSession, uid: str, identity_id: str) -> FundIdentityRecord:
    identity = await session.get(FundIdentity, identity_id)
    if identity is None or identity.uid != uid:
        raise IdentityNotFoundError(f"Identity {identity_id} not found")
    identity.last_used_at = datetime.now(UTC)
    await session.commit()
    await session.refresh(identity)
    return FundIdentityRecord.model_validate(identity)


async def delete_identity(
    session: AsyncSession, uid: str, identity_id: str, active_identity_id: str | None
) -> None:
    if identity_id == active_identity_id:
        raise ActiveIdentityRemovalError("The active identity cannot be removed")
    identity = await session.get(FundIdentity, identity_id)
    if identity is None or identity.uid != uid:
        raise IdentityNotFoundError(f"Identity {identity_id} not found")
    await session.delete(identity)
    await session.commit()
    logger.info("Identity removed: id=%s", identity_id)
