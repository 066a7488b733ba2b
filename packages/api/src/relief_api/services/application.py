# This project was developed with assistance from AI tools.
"""Application store: append-only relief applications.

Applications are never updated after creation. New rows are published on
the owner's topic and, for proxy submissions, on the submitter's topic.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from relief_db import Application
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.application import ApplicationForm, ApplicationRecord
from ..schemas.decision import FinalDecision
from .feed import ChangeFeed, Subscription, Topics, get_change_feed

logger = logging.getLogger(__name__)


async def list_for_owner(session: AsyncSession, uid: str) -> list[ApplicationRecord]:
    """All of a user's applications, newest first."""
    stmt = (
        select(Application)
        .where(Application.uid == uid)
        .order_by(Application.submitted_date.desc(), Application.id.desc())
    )
    result = await session.execute(stmt)
    return [ApplicationRecord.model_validate(row) for row in result.scalars().all()]


async def list_for_proxy_submitter(session: AsyncSession, submitter_uid: str) -> list[ApplicationRecord]:
    """Applications an admin submitted on behalf of others, newest first."""
    stmt = (
        select(Application)
        .where(Application.submitted_by == submitter_uid, Application.is_proxy.is_(True))
        .order_by(Application.submitted_date.desc(), Application.id.desc())
    )
    result = await session.execute(stmt)
    return [ApplicationRecord.model_validate(row) for row in result.scalars().all()]


async def latest_for_fund(session: AsyncSession, uid: str, fund_code: str) -> ApplicationRecord | None:
    """Most recent application by ``submitted_date`` for one user and fund."""
    stmt = (
        select(Application)
        .where(Application.uid == uid, Application.fund_code == fund_code)
        .order_by(Application.submitted_date.desc(), Application.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    row = result.scalar_one_or_none()
    return ApplicationRecord.model_validate(row) if row is not None else None


async def create_application(
    session: AsyncSession,
    *,
    uid: str,
    fund_code: str,
    form: ApplicationForm,
    profile_snapshot: dict,
    decision: FinalDecision,
    submitted_by: str,
    submitted_date: datetime,
    is_proxy: bool = False,
    feed: ChangeFeed | None = None,
) -> ApplicationRecord:
    """Persist a decided application. The id is assigned by the store."""
    application = Application(
        uid=uid,
        fund_code=fund_code,
        profile_snapshot=profile_snapshot,
        event_data=form.event_data.model_dump(mode="json"),
        requested_amount=form.event_data.requested_amount,
        submitted_date=submitted_date,
        status=decision.decision.to_application_status(),
        reasons=list(decision.reasons),
        decisioned_date=decision.decisioned_date,
        twelve_month_grant_remaining=decision.remaining_12mo,
        lifetime_grant_remaining=decision.remaining_lifetime,
        share_story=bool(form.agreement_data.share_story),
        receive_additional_info=bool(form.agreement_data.receive_additional_info),
        submitted_by=submitted_by,
        is_proxy=is_proxy,
    )
    session.add(application)
    await session.commit()
    await session.refresh(application)

    record = ApplicationRecord.model_validate(application)
    logger.info(
        "Application %s created: uid=%s fund=%s status=%s proxy=%s",
        record.id, uid, fund_code, record.status.value, is_proxy,
    )

    feed = feed or get_change_feed()
    await feed.publish(Topics.owner_applications(uid), record)
    if is_proxy:
        await feed.publish(Topics.proxy_applications(submitted_by), record)
    return record


def subscribe_owner_applications(
    uid: str,
    callback: Callable[[ApplicationRecord], Awaitable[None]],
    feed: ChangeFeed | None = None,
) -> Subscription:
    return (feed or get_change_feed()).subscribe(Topics.owner_applications(uid), callback)


def subscribe_proxy_applications(
    submitter_uid: str,
    callback: Callable[[ApplicationRecord], Awaitable[None]],
    feed: ChangeFeed | None = None,
) -> Subscription:
    return (feed or get_change_feed()).subscribe(Topics.proxy_applications(submitter_uid), callback)
