# This project was developed with assistance from AI tools.
"""Application submission orchestrator (self-service and proxy).

Both paths: balances from the applicant's latest application for the fund,
rules-engine preliminary decision, AI final decision, currency check, then
the append-only write. An exhausted balance stops the submission before
any decision is made. Nothing is written when the decision fails or the
session moved on while the decision was in flight.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..schemas.application import ApplicationForm, ApplicationRecord
from ..schemas.decision import DecisionContext, FinalDecision
from ..schemas.fund import FundRecord
from ..schemas.profile import EDITABLE_PROFILE_FIELDS, ProfileRecord
from . import application as application_service
from . import profile as profile_service
from .decision import DecisionService, DecisionServiceError
from .drafts import DraftCache
from .feed import ChangeFeed
from .funds import require_fund
from .ledger import compute_balances, has_remaining_balance

logger = logging.getLogger(__name__)


class SubmissionError(RuntimeError):
    """Base class for submissions that were aborted without a write."""

    pass


class DecisionUnavailableError(SubmissionError):
    pass


class StaleSessionError(SubmissionError):
    """The session or its active fund changed while the decision was in flight."""

    pass


class NotEligibleToApplyError(SubmissionError):
    pass


class GrantExhaustedError(SubmissionError):
    """The applicant has no 12-month or lifetime balance left in the fund."""

    pass


class NoActiveFundError(SubmissionError):
    pass


class ProxyApplicantNotFoundError(SubmissionError):
    pass


def changed_profile_fields(profile: ProfileRecord, form: ApplicationForm) -> dict:
    """Applicant-editable fields the form changed relative to ``profile``."""
    submitted = form.profile_data.model_dump(exclude_none=True, exclude={"email"})
    current = profile.model_dump()
    return {
        key: value
        for key, value in submitted.items()
        if key in EDITABLE_PROFILE_FIELDS and current.get(key) != value
    }


def profile_snapshot(profile: ProfileRecord, changes: dict) -> dict:
    """The applicant's profile as submitted, JSON-ready for the application row."""
    merged = ProfileRecord.model_validate({**profile.model_dump(), **changes})
    return merged.model_dump(mode="json")


class SubmissionOrchestrator:
    def __init__(
        self,
        session_factory: async_sessionmaker,
        decision_service: DecisionService,
        drafts: DraftCache,
        feed: ChangeFeed | None = None,
    ):
        self.session_factory = session_factory
        self.decision_service = decision_service
        self.drafts = drafts
        self.feed = feed

    async def _decide(
        self,
        db: AsyncSession,
        fund: FundRecord,
        applicant: ProfileRecord,
        form: ApplicationForm,
    ) -> FinalDecision:
        latest = await application_service.latest_for_fund(db, applicant.uid, fund.code)
        balances = compute_balances(fund, latest)
        if not has_remaining_balance(balances):
            logger.info("Submission blocked, no balance left: uid=%s fund=%s", applicant.uid, fund.code)
            raise GrantExhaustedError(f"No grant balance remains for {fund.code}")
        context = DecisionContext(
            fund=fund,
            event_data=form.event_data,
            employment_start_date=form.profile_data.employment_start_date or applicant.employment_start_date,
            twelve_month_remaining=balances.twelve_month_remaining,
            lifetime_remaining=balances.lifetime_remaining,
            decisioned_date=datetime.now(UTC),
        )
        preliminary = self.decision_service.preliminary(context)
        try:
            return await self.decision_service.finalize(context, preliminary, applicant)
        except DecisionServiceError as exc:
            raise DecisionUnavailableError("The application could not be decided; please try again") from exc

    async def _persist(
        self,
        db: AsyncSession,
        *,
        applicant: ProfileRecord,
        fund: FundRecord,
        form: ApplicationForm,
        decision: FinalDecision,
        submitted_by: str,
        is_proxy: bool,
        is_current: Callable[[], bool],
    ) -> ApplicationRecord:
        if not is_current():
            logger.warning("Discarding stale submission: uid=%s fund=%s", applicant.uid, fund.code)
            raise StaleSessionError("The session changed while the application was being decided")

        changes = changed_profile_fields(applicant, form)
        record = await application_service.create_application(
            db,
            uid=applicant.uid,
            fund_code=fund.code,
            form=form,
            profile_snapshot=profile_snapshot(applicant, changes),
            decision=decision,
            submitted_by=submitted_by,
            submitted_date=datetime.now(UTC),
            is_proxy=is_proxy,
            feed=self.feed,
        )

        await self.drafts.clear(applicant.uid, fund.code)
        if changes:
            await profile_service.update_profile(db, applicant.uid, changes, self.feed)
            logger.info("Applicant profile updated from submission: uid=%s fields=%s", applicant.uid, sorted(changes))
        return record

    async def submit(
        self,
        profile: ProfileRecord,
        form: ApplicationForm,
        is_current: Callable[[], bool],
    ) -> ApplicationRecord:
        """Self-service submission against the applicant's active fund."""
        if not profile.is_verified_and_eligible:
            raise NotEligibleToApplyError("Verification is required before applying")

        async with self.session_factory() as db:
            fund = await require_fund(db, profile.fund_code)
            decision = await self._decide(db, fund, profile, form)
            return await self._persist(
                db,
                applicant=profile,
                fund=fund,
                form=form,
                decision=decision,
                submitted_by=profile.uid,
                is_proxy=False,
                is_current=is_current,
            )

    async def submit_proxy(
        self,
        admin: ProfileRecord,
        form: ApplicationForm,
        is_current: Callable[[], bool],
    ) -> ApplicationRecord:
        """Admin submission for an existing applicant, under the admin's active fund."""
        if not admin.active_identity_id or not admin.fund_code:
            raise NoActiveFundError("An active fund is required to submit on behalf of an applicant")
        email = (form.profile_data.email or "").strip()
        if not email:
            raise ProxyApplicantNotFoundError("The applicant's email is required")

        async with self.session_factory() as db:
            applicant = await profile_service.get_profile_by_email(db, email)
            if applicant is None:
                raise ProxyApplicantNotFoundError(f"No account exists for {email}")

            fund = await require_fund(db, admin.fund_code)
            form = form.model_copy(update={"fund_code": fund.code})
            decision = await self._decide(db, fund, applicant, form)
            record = await self._persist(
                db,
                applicant=applicant,
                fund=fund,
                form=form,
                decision=decision,
                submitted_by=admin.uid,
                is_proxy=True,
                is_current=is_current,
            )
        logger.info(
            "Proxy submission: admin=%s applicant=%s fund=%s application=%s",
            admin.uid, applicant.uid, fund.code, record.id,
        )
        return record
