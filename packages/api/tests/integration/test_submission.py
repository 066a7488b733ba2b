# This project was developed with assistance from AI tools.
"""Self-service and proxy submission through the session controller."""

from datetime import UTC, date, datetime, timedelta
from decimal import Decimal

import pytest
from factories import FailingDecisionService, RulesOnlyDecisionService, make_profile, make_user
from relief_db.enums import ApplicationStatus, UserRole

from relief_api.schemas.application import ApplicationForm, EventData
from relief_api.schemas.draft import ConversationMessage, DraftUpdate
from relief_api.schemas.profile import ApplicantProfile, ProfileCreate
from relief_api.services import application as application_service
from relief_api.services import identity as identity_service
from relief_api.services import profile as profile_service
from relief_api.services.funds import get_fund
from relief_api.services.submission import (
    DecisionUnavailableError,
    GrantExhaustedError,
    NoActiveFundError,
    NotEligibleToApplyError,
    ProxyApplicantNotFoundError,
    StaleSessionError,
    changed_profile_fields,
)

pytestmark = pytest.mark.integration


def _form(amount="500", email=None, fund_code=None, **profile):
    profile.setdefault("employment_start_date", date(2020, 1, 1))
    return ApplicationForm(
        profile_data=ApplicantProfile(email=email, **profile),
        event_data=EventData(
            event="Flood",
            event_date=datetime.now(UTC).date() - timedelta(days=5),
            requested_amount=Decimal(amount),
        ),
        fund_code=fund_code,
    )


async def _register(session_factory, feed, uid, email, fund_code="ACME"):
    async with session_factory() as db:
        return await profile_service.create_profile(
            db, uid, ProfileCreate(email=email, first_name="Pat", last_name="Lee", fund_code=fund_code), feed,
        )


async def _verified(session_factory, feed, uid="u1", email="pat@acme.example", fund_code="ACME"):
    await _register(session_factory, feed, uid, email, fund_code)
    async with session_factory() as db:
        identity = await identity_service.record_verification_success(db, uid, await get_fund(db, fund_code))
        await profile_service.set_active_identity(db, uid, identity, feed)


# ---------------------------------------------------------------------------
# Self-service
# ---------------------------------------------------------------------------


async def test_submit_approved_application(registry, seeded, session_factory, feed, drafts, decision_service):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    await controller.update_draft(DraftUpdate(event_data={"event": "Flood"}))

    record = await controller.submit(_form(mobile_number="555-0123"))

    assert record.uid == "u1"
    assert record.fund_code == "ACME"
    assert record.status == ApplicationStatus.AWARDED
    assert record.twelve_month_grant_remaining == Decimal("9500")
    assert record.lifetime_grant_remaining == Decimal("49500")
    assert record.submitted_by == "u1"
    assert not record.is_proxy
    assert record.profile_snapshot["mobile_number"] == "555-0123"

    assert [a.id for a in controller.applications] == [record.id]
    assert controller.state.draft is None
    assert await drafts.load("u1", "ACME") is None
    assert controller.state.profile.mobile_number == "555-0123"
    assert controller.state.profile.employment_start_date == date(2020, 1, 1)
    assert len(decision_service.calls) == 1


async def test_submission_clears_assistant_conversation(registry, seeded, session_factory, feed, drafts):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    await controller.save_conversation([ConversationMessage(role="user", content="Flooded basement")])
    assert await drafts.load_conversation("u1", "ACME") != []

    await controller.submit(_form())

    assert await controller.load_conversation() == []


async def test_second_submission_uses_latest_balances(registry, seeded, session_factory, feed, decision_service):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    await controller.submit(_form(amount="4000"))
    second = await controller.submit(_form(amount="1000"))

    context = decision_service.calls[-1][0]
    assert context.twelve_month_remaining == Decimal("6000")
    assert second.twelve_month_grant_remaining == Decimal("5000")
    assert (await controller.ledger()).twelve_month_remaining == Decimal("5000")


async def test_denied_application_keeps_balances(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    record = await controller.submit(_form(amount="20000"))
    assert record.status == ApplicationStatus.DECLINED
    assert record.twelve_month_grant_remaining == Decimal("10000")


async def test_exhausted_balance_blocks_before_decision(registry, seeded, session_factory, feed, decision_service):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    await controller.submit(_form(amount="10000"))
    ledger = await controller.ledger()
    assert ledger.twelve_month_remaining == Decimal("0")
    assert not ledger.can_apply

    with pytest.raises(GrantExhaustedError):
        await controller.submit(_form(amount="100"))

    assert len(decision_service.calls) == 1
    assert len(controller.applications) == 1


async def test_unverified_user_cannot_submit(registry, seeded, session_factory, feed):
    await _register(session_factory, feed, "u1", "pat@acme.example")
    controller = await registry.open(make_user(uid="u1"))
    with pytest.raises(NotEligibleToApplyError):
        await controller.submit(_form())
    assert controller.applications == ()


async def test_decision_failure_writes_nothing(registry, seeded, session_factory, feed, drafts):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    await controller.update_draft(DraftUpdate(event_data={"event": "Flood"}))
    controller._orchestrator.decision_service = FailingDecisionService()

    with pytest.raises(DecisionUnavailableError):
        await controller.submit(_form())

    async with session_factory() as db:
        assert await application_service.list_for_owner(db, "u1") == []
    assert await drafts.load("u1", "ACME") is not None
    assert controller.state.draft is not None


class _SignOutMidDecision(RulesOnlyDecisionService):
    def __init__(self, registry, uid):
        super().__init__()
        self.registry = registry
        self.uid = uid

    async def finalize(self, context, preliminary, applicant_profile=None):
        await self.registry.close(self.uid)
        return await super().finalize(context, preliminary, applicant_profile)


class _SwitchFundMidDecision(RulesOnlyDecisionService):
    def __init__(self, controller, identity_id):
        super().__init__()
        self.controller = controller
        self.identity_id = identity_id

    async def finalize(self, context, preliminary, applicant_profile=None):
        await self.controller.activate_identity(self.identity_id)
        return await super().finalize(context, preliminary, applicant_profile)


async def test_sign_out_during_decision_discards_result(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    controller._orchestrator.decision_service = _SignOutMidDecision(registry, "u1")

    with pytest.raises(StaleSessionError):
        await controller.submit(_form())

    async with session_factory() as db:
        assert await application_service.list_for_owner(db, "u1") == []


async def test_fund_switch_during_decision_discards_result(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed)
    async with session_factory() as db:
        await identity_service.record_verification_success(db, "u1", await get_fund(db, "BETA"))
    controller = await registry.open(make_user(uid="u1"))
    assert controller.state.fund_code == "ACME"
    controller._orchestrator.decision_service = _SwitchFundMidDecision(controller, "u1-BETA")

    with pytest.raises(StaleSessionError):
        await controller.submit(_form())

    assert controller.state.fund_code == "BETA"
    async with session_factory() as db:
        assert await application_service.list_for_owner(db, "u1") == []


# ---------------------------------------------------------------------------
# Proxy
# ---------------------------------------------------------------------------


async def test_proxy_submission_under_admin_fund(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed, uid="admin-1", email="boss@acme.example")
    await _register(session_factory, feed, "u1", "pat@beta.example", fund_code="BETA")
    admin = await registry.open(make_user(uid="admin-1", role=UserRole.ADMIN))
    applicant = await registry.open(make_user(uid="u1"))

    record = await admin.submit_proxy(_form(email="PAT@beta.example", fund_code="BETA"))

    assert record.uid == "u1"
    assert record.fund_code == "ACME"
    assert record.submitted_by == "admin-1"
    assert record.is_proxy
    assert record.twelve_month_grant_remaining == Decimal("9500")
    assert [a.id for a in admin.proxy_applications] == [record.id]
    assert admin.applications == ()
    assert [a.id for a in applicant.applications] == [record.id]


async def test_proxy_blocked_when_applicant_balance_exhausted(registry, seeded, session_factory, feed, decision_service):
    await _verified(session_factory, feed, uid="admin-1", email="boss@acme.example")
    await _verified(session_factory, feed)
    applicant = await registry.open(make_user(uid="u1"))
    await applicant.submit(_form(amount="10000"))
    admin = await registry.open(make_user(uid="admin-1", role=UserRole.ADMIN))

    with pytest.raises(GrantExhaustedError):
        await admin.submit_proxy(_form(email="pat@acme.example"))

    assert len(decision_service.calls) == 1
    assert admin.proxy_applications == ()


async def test_proxy_unknown_applicant(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed, uid="admin-1", email="boss@acme.example")
    admin = await registry.open(make_user(uid="admin-1", role=UserRole.ADMIN))
    with pytest.raises(ProxyApplicantNotFoundError):
        await admin.submit_proxy(_form(email="nobody@acme.example"))
    with pytest.raises(ProxyApplicantNotFoundError):
        await admin.submit_proxy(_form())


async def test_proxy_requires_admin_active_fund(registry, seeded, session_factory, feed):
    await _register(session_factory, feed, "admin-1", "boss@acme.example")
    await _register(session_factory, feed, "u1", "pat@acme.example")
    admin = await registry.open(make_user(uid="admin-1", role=UserRole.ADMIN))
    with pytest.raises(NoActiveFundError):
        await admin.submit_proxy(_form(email="pat@acme.example"))


async def test_proxy_requires_admin_role(registry, seeded, session_factory, feed):
    await _verified(session_factory, feed)
    controller = await registry.open(make_user(uid="u1"))
    with pytest.raises(PermissionError):
        await controller.submit_proxy(_form(email="pat@acme.example"))


# ---------------------------------------------------------------------------
# Profile write-back
# ---------------------------------------------------------------------------


def test_changed_profile_fields_only_reports_differences():
    profile = make_profile(mobile_number="555-0000")
    form = _form(mobile_number="555-0000", first_name="Pat", household_size=4)
    changes = changed_profile_fields(profile, form)
    assert changes == {"employment_start_date": date(2020, 1, 1), "household_size": 4}
