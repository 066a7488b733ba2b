# This project was developed with assistance from AI tools.
"""Profile store: one profile per authenticated user, with a live feed.

Every committed write publishes the fresh profile on the user's profile
topic so subscribed sessions re-hydrate.
"""

import logging
from collections.abc import Awaitable, Callable

from relief_db import UserProfile
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..schemas.identity import FundIdentityRecord
from ..schemas.profile import EDITABLE_PROFILE_FIELDS, ProfileCreate, ProfileRecord
from .feed import ChangeFeed, Subscription, Topics, get_change_feed
from .funds import require_fund

logger = logging.getLogger(__name__)


class ProfileNotFoundError(ValueError):
    """Raised when a write targets a user without a profile."""

    pass


class ProfileExistsError(ValueError):
    """Raised when registering a user (or email) that already has a profile."""

    pass


def _json_ready(changes: dict) -> dict:
    # Address sub-models are stored in JSON columns.
    return {
        key: value.model_dump() if hasattr(value, "model_dump") else value
        for key, value in changes.items()
    }


async def get_profile(session: AsyncSession, uid: str) -> ProfileRecord | None:
    profile = await session.get(UserProfile, uid)
    if profile is None:
        return None
    return ProfileRecord.model_validate(profile)


async def get_profile_by_email(session: AsyncSession, email: str) -> ProfileRecord | None:
    """Case-insensitive email lookup, used to find proxy applicants."""
    stmt = select(UserProfile).where(func.lower(UserProfile.email) == email.strip().lower())
    result = await session.execute(stmt)
    profile = result.scalars().first()
    if profile is None:
        return None
    return ProfileRecord.model_validate(profile)


async def _publish(feed: ChangeFeed | None, record: ProfileRecord) -> None:
    await (feed or get_change_feed()).publish(Topics.profile(record.uid), record)


async def create_profile(
    session: AsyncSession,
    uid: str,
    data: ProfileCreate,
    feed: ChangeFeed | None = None,
) -> ProfileRecord:
    """Register a profile against a fund. The user starts with no identities."""
    if await session.get(UserProfile, uid) is not None:
        raise ProfileExistsError(f"Profile already exists for user {uid}")
    if await get_profile_by_email(session, data.email) is not None:
        raise ProfileExistsError(f"Email {data.email} is already registered")

    fund = await require_fund(session, data.fund_code)
    fields = _json_ready(data.model_dump(exclude_none=True, exclude={"email", "fund_code"}))
    profile = UserProfile(
        uid=uid,
        email=data.email.strip().lower(),
        fund_code=fund.code,
        fund_name=fund.name,
        **fields,
    )
    session.add(profile)
    await session.commit()
    await session.refresh(profile)

    record = ProfileRecord.model_validate(profile)
    logger.info("Profile registered: uid=%s fund=%s", uid, fund.code)
    await _publish(feed, record)
    return record


async def update_profile(
    session: AsyncSession,
    uid: str,
    changes: dict,
    feed: ChangeFeed | None = None,
) -> ProfileRecord:
    """Apply applicant-editable field changes; other keys are ignored."""
    profile = await session.get(UserProfile, uid)
    if profile is None:
        raise ProfileNotFoundError(f"No profile for user {uid}")

    editable = {k: v for k, v in changes.items() if k in EDITABLE_PROFILE_FIELDS}
    for key, value in _json_ready(editable).items():
        setattr(profile, key, value)
    await session.commit()
    await session.refresh(profile)

    record = ProfileRecord.model_validate(profile)
    await _publish(feed, record)
    return record


async def set_active_identity(
    session: AsyncSession,
    uid: str,
    identity: FundIdentityRecord,
    feed: ChangeFeed | None = None,
) -> ProfileRecord:
    """Point the profile at ``identity`` and refresh its denormalized copies."""
    profile = await session.get(UserProfile, uid)
    if profile is None:
        raise ProfileNotFoundError(f"No profile for user {uid}")

    profile.active_identity_id = identity.id
    profile.fund_code = identity.fund_code
    profile.fund_name = identity.fund_name
    profile.class_verification_status = identity.class_verification_status
    profile.eligibility_status = identity.eligibility_status
    await session.commit()
    await session.refresh(profile)

    record = ProfileRecord.model_validate(profile)
    await _publish(feed, record)
    return record


async def subscribe_profile(
    session_factory: async_sessionmaker,
    uid: str,
    callback: Callable[[ProfileRecord | None], Awaitable[None]],
    feed: ChangeFeed | None = None,
) -> Subscription:
    """Observe a user's profile. The current value is delivered on subscribe."""
    subscription = (feed or get_change_feed()).subscribe(Topics.profile(uid), callback)
    async with session_factory() as session:
        current = await get_profile(session, uid)
    await callback(current)
    return subscription
