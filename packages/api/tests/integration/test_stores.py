# This project was developed with assistance from AI tools.
"""Profile, identity, application and fund stores against SQLite."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

import pytest
from relief_db.enums import (
    ApplicationStatus,
    ClassVerificationStatus,
    DecisionOutcome,
    EligibilityStatus,
)

from relief_api.schemas.application import ApplicationForm, EventData
from relief_api.schemas.decision import FinalDecision
from relief_api.schemas.profile import Address, ProfileCreate
from relief_api.services import application as application_service
from relief_api.services import identity as identity_service
from relief_api.services import profile as profile_service
from relief_api.services.feed import Topics
from relief_api.services.funds import FundNotFoundError, get_fund, require_fund, roster_contains
from relief_api.services.seed import seed_funds

pytestmark = pytest.mark.integration


def _registration(email="pat@acme.example", fund_code="ACME", **extra):
    return ProfileCreate(email=email, first_name="Pat", last_name="Lee", fund_code=fund_code, **extra)


def _decision(outcome=DecisionOutcome.APPROVED, award="100", twelve="9900", lifetime="49900"):
    return FinalDecision(
        decision=outcome,
        reasons=["ok"],
        decisioned_date=datetime.now(UTC),
        award=Decimal(award),
        remaining_12mo=Decimal(twelve),
        remaining_lifetime=Decimal(lifetime),
    )


def _form(amount="100"):
    return ApplicationForm(event_data=EventData(event="Flood", requested_amount=Decimal(amount)))


# ---------------------------------------------------------------------------
# Funds
# ---------------------------------------------------------------------------


async def test_seed_is_idempotent(db_session, seeded):
    assert await seed_funds(db_session) == []
    fund = await get_fund(db_session, "GAMMA")
    assert fund.cv_type.value == "Roster"
    assert fund.eligible_events[-1] == "Death of Family Member"


async def test_require_fund_raises_for_unknown_code(db_session, seeded):
    with pytest.raises(FundNotFoundError) as exc_info:
        await require_fund(db_session, "NOPE")
    assert exc_info.value.fund_code == "NOPE"
    with pytest.raises(FundNotFoundError):
        await require_fund(db_session, None)


async def test_roster_lookup_matches_all_three_fields(db_session, seeded):
    assert await roster_contains(db_session, "GAMMA", "12345", 5, 15)
    assert await roster_contains(db_session, "GAMMA", " 12345 ", 5, 15)
    assert not await roster_contains(db_session, "GAMMA", "12345", 5, 16)
    assert not await roster_contains(db_session, "ACME", "12345", 5, 15)


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


async def test_create_profile_records_registration_fund(db_session, seeded, feed):
    published = []

    async def observer(value):
        published.append(value)

    feed.subscribe(Topics.profile("u1"), observer)
    address = Address(street1="1 Main", city="Springfield", state="IL", zip="62701", country="US")
    record = await profile_service.create_profile(
        db_session, "u1", _registration(email="Pat@ACME.example", primary_address=address), feed,
    )

    assert record.email == "pat@acme.example"
    assert record.fund_code == "ACME"
    assert record.fund_name == "ACME Employee Relief Fund"
    assert record.active_identity_id is None
    assert record.primary_address.city == "Springfield"
    assert published == [record]


async def test_duplicate_registration_rejected(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    with pytest.raises(profile_service.ProfileExistsError):
        await profile_service.create_profile(db_session, "u1", _registration(email="x@acme.example"), feed)
    with pytest.raises(profile_service.ProfileExistsError):
        await profile_service.create_profile(db_session, "u2", _registration(email="PAT@acme.example"), feed)


async def test_registration_against_unknown_fund(db_session, seeded, feed):
    with pytest.raises(FundNotFoundError):
        await profile_service.create_profile(db_session, "u1", _registration(fund_code="ZZZ"), feed)


async def test_update_profile_ignores_non_editable_fields(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    record = await profile_service.update_profile(
        db_session,
        "u1",
        {"mobile_number": "555-0100", "fund_code": "BETA", "class_verification_status": "passed"},
        feed,
    )
    assert record.mobile_number == "555-0100"
    assert record.fund_code == "ACME"
    assert record.class_verification_status == ClassVerificationStatus.PENDING


async def test_update_missing_profile_raises(db_session, seeded, feed):
    with pytest.raises(profile_service.ProfileNotFoundError):
        await profile_service.update_profile(db_session, "ghost", {"mobile_number": "1"}, feed)


async def test_profile_lookup_by_email_is_case_insensitive(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    found = await profile_service.get_profile_by_email(db_session, "  PAT@Acme.Example ")
    assert found.uid == "u1"
    assert await profile_service.get_profile_by_email(db_session, "nobody@acme.example") is None


async def test_subscribe_profile_delivers_current_value(session_factory, seeded, feed):
    async with session_factory() as db:
        await profile_service.create_profile(db, "u1", _registration(), feed)
    seen = []

    async def observer(value):
        seen.append(value)

    subscription = await profile_service.subscribe_profile(session_factory, "u1", observer, feed)
    assert seen[0].uid == "u1"

    async with session_factory() as db:
        await profile_service.update_profile(db, "u1", {"first_name": "Sam"}, feed)
    assert seen[-1].first_name == "Sam"

    subscription.unsubscribe()
    async with session_factory() as db:
        await profile_service.update_profile(db, "u1", {"first_name": "Max"}, feed)
    assert seen[-1].first_name == "Sam"


async def test_subscribe_profile_without_profile_delivers_none(session_factory, feed):
    seen = []

    async def observer(value):
        seen.append(value)

    await profile_service.subscribe_profile(session_factory, "nobody", observer, feed)
    assert seen == [None]


# ---------------------------------------------------------------------------
# Identities
# ---------------------------------------------------------------------------


async def test_verification_success_creates_then_updates_identity(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    fund = await get_fund(db_session, "ACME")

    failed, created = await identity_service.record_verification_failure(db_session, "u1", fund)
    assert created
    assert failed.id == "u1-ACME"
    assert failed.class_verification_status == ClassVerificationStatus.FAILED
    assert failed.last_used_at is None

    passed = await identity_service.record_verification_success(db_session, "u1", fund)
    assert passed.id == failed.id
    assert passed.eligibility_status == EligibilityStatus.ELIGIBLE
    assert passed.last_used_at is not None
    assert len(await identity_service.list_for_user(db_session, "u1")) == 1


async def test_failure_on_existing_identity_is_not_created(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    fund = await get_fund(db_session, "ACME")
    await identity_service.record_verification_success(db_session, "u1", fund)
    record, created = await identity_service.record_verification_failure(db_session, "u1", fund)
    assert not created
    assert record.eligibility_status == EligibilityStatus.NOT_ELIGIBLE


async def test_touch_and_delete_identity(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    acme = await identity_service.record_verification_success(db_session, "u1", await get_fund(db_session, "ACME"))
    beta = await identity_service.record_verification_success(db_session, "u1", await get_fund(db_session, "BETA"))

    touched = await identity_service.touch_identity(db_session, "u1", acme.id)
    assert touched.last_used_at >= acme.last_used_at

    with pytest.raises(identity_service.ActiveIdentityRemovalError):
        await identity_service.delete_identity(db_session, "u1", acme.id, acme.id)
    await identity_service.delete_identity(db_session, "u1", beta.id, acme.id)
    assert [i.id for i in await identity_service.list_for_user(db_session, "u1")] == ["u1-ACME"]

    with pytest.raises(identity_service.IdentityNotFoundError):
        await identity_service.delete_identity(db_session, "u1", beta.id, acme.id)
    with pytest.raises(identity_service.IdentityNotFoundError):
        await identity_service.touch_identity(db_session, "someone-else", acme.id)


async def test_set_active_identity_copies_fund_context(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    beta = await identity_service.record_verification_success(db_session, "u1", await get_fund(db_session, "BETA"))
    record = await profile_service.set_active_identity(db_session, "u1", beta, feed)
    assert record.active_identity_id == "u1-BETA"
    assert record.fund_code == "BETA"
    assert record.fund_name == "Beta Cares Fund"
    assert record.is_verified_and_eligible


# ---------------------------------------------------------------------------
# Applications
# ---------------------------------------------------------------------------


async def test_application_lists_are_newest_first(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    now = datetime.now(UTC)
    for offset, twelve in ((2, "9900"), (0, "9700"), (1, "9800")):
        await application_service.create_application(
            db_session,
            uid="u1",
            fund_code="ACME",
            form=_form(),
            profile_snapshot={"uid": "u1"},
            decision=_decision(twelve=twelve),
            submitted_by="u1",
            submitted_date=now - timedelta(days=offset),
            feed=feed,
        )

    records = await application_service.list_for_owner(db_session, "u1")
    assert [r.twelve_month_grant_remaining for r in records] == [
        Decimal("9700"), Decimal("9800"), Decimal("9900"),
    ]
    latest = await application_service.latest_for_fund(db_session, "u1", "ACME")
    assert latest.twelve_month_grant_remaining == Decimal("9700")
    assert await application_service.latest_for_fund(db_session, "u1", "BETA") is None


async def test_application_status_follows_decision(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    expected = {
        DecisionOutcome.APPROVED: ApplicationStatus.AWARDED,
        DecisionOutcome.DENIED: ApplicationStatus.DECLINED,
        DecisionOutcome.REVIEW: ApplicationStatus.SUBMITTED,
    }
    for outcome, status in expected.items():
        record = await application_service.create_application(
            db_session,
            uid="u1",
            fund_code="ACME",
            form=_form(),
            profile_snapshot={},
            decision=_decision(outcome=outcome),
            submitted_by="u1",
            submitted_date=datetime.now(UTC),
            feed=feed,
        )
        assert record.status == status


async def test_proxy_application_published_to_both_topics(db_session, seeded, feed):
    await profile_service.create_profile(db_session, "u1", _registration(), feed)
    owner_seen, submitter_seen = [], []

    async def on_owner(value):
        owner_seen.append(value)

    async def on_submitter(value):
        submitter_seen.append(value)

    application_service.subscribe_owner_applications("u1", on_owner, feed)
    application_service.subscribe_proxy_applications("admin-1", on_submitter, feed)

    record = await application_service.create_application(
        db_session,
        uid="u1",
        fund_code="ACME",
        form=_form(),
        profile_snapshot={},
        decision=_decision(),
        submitted_by="admin-1",
        submitted_date=datetime.now(UTC),
        is_proxy=True,
        feed=feed,
    )

    assert owner_seen == [record]
    assert submitter_seen == [record]
    proxied = await application_service.list_for_proxy_submitter(db_session, "admin-1")
    assert [r.id for r in proxied] == [record.id]
    assert proxied[0].is_proxy

