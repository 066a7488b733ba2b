# This project was developed with assistance from AI tools.
"""Shared test factory functions for building schema records."""

from datetime import UTC, datetime, timedelta
from decimal import Decimal

from relief_db.enums import (
    ApplicationStatus,
    ClassVerificationStatus,
    EligibilityStatus,
    UserRole,
    VerificationMethod,
)

from relief_api.schemas.application import ApplicationRecord, EventData
from relief_api.schemas.auth import UserContext
from relief_api.schemas.fund import FundRecord
from relief_api.schemas.identity import FundIdentityRecord, identity_id_for
from relief_api.schemas.profile import ProfileRecord
from relief_api.services.decision import DecisionServiceError, final_from_preliminary
from relief_api.services.eligibility import evaluate_eligibility


def make_fund(
    code="ACME",
    cv_type=VerificationMethod.DOMAIN,
    single_request_max="10000",
    twelve_month_max="10000",
    lifetime_max="50000",
    eligible_disasters=("Flood", "Wildfire"),
    eligible_hardships=("House Fire",),
    allowed_domains=("acme.example",),
):
    return FundRecord(
        code=code,
        name=f"{code} Relief Fund",
        cv_type=cv_type,
        single_request_max=Decimal(single_request_max),
        twelve_month_max=Decimal(twelve_month_max),
        lifetime_max=Decimal(lifetime_max),
        eligible_disasters=list(eligible_disasters),
        eligible_hardships=list(eligible_hardships),
        allowed_domains=list(allowed_domains) if allowed_domains is not None else None,
    )


def make_identity(
    uid="user-1",
    fund_code="ACME",
    status=ClassVerificationStatus.PASSED,
    eligibility=None,
    last_used_at=None,
    cv_type=VerificationMethod.DOMAIN,
):
    if eligibility is None:
        eligibility = (
            EligibilityStatus.ELIGIBLE
            if status == ClassVerificationStatus.PASSED
            else EligibilityStatus.NOT_ELIGIBLE
        )
    return FundIdentityRecord(
        id=identity_id_for(uid, fund_code),
        uid=uid,
        fund_code=fund_code,
        fund_name=f"{fund_code} Relief Fund",
        cv_type=cv_type,
        class_verification_status=status,
        eligibility_status=eligibility,
        created_at=datetime(2024, 1, 1, tzinfo=UTC),
        last_used_at=last_used_at,
    )


def make_profile(
    uid="user-1",
    email="pat@acme.example",
    fund_code="ACME",
    status=ClassVerificationStatus.PENDING,
    eligibility=EligibilityStatus.NOT_ELIGIBLE,
    role=UserRole.USER,
    active_identity_id=None,
    **overrides,
):
    return ProfileRecord(
        uid=uid,
        email=email,
        first_name="Pat",
        last_name="Lee",
        fund_code=fund_code,
        fund_name=f"{fund_code} Relief Fund" if fund_code else None,
        class_verification_status=status,
        eligibility_status=eligibility,
        role=role,
        active_identity_id=active_identity_id,
        **overrides,
    )


def make_application(
    id=1,
    uid="user-1",
    fund_code="ACME",
    twelve_month_remaining="10000",
    lifetime_remaining="50000",
    submitted_date=None,
    status=ApplicationStatus.AWARDED,
):
    submitted = submitted_date or datetime.now(UTC) - timedelta(days=1)
    return ApplicationRecord(
        id=id,
        uid=uid,
        fund_code=fund_code,
        profile_snapshot={},
        event_data=EventData(event="Flood", requested_amount=Decimal("100")),
        requested_amount=Decimal("100"),
        submitted_date=submitted,
        status=status,
        reasons=[],
        decisioned_date=submitted,
        twelve_month_grant_remaining=Decimal(twelve_month_remaining),
        lifetime_grant_remaining=Decimal(lifetime_remaining),
        submitted_by=uid,
    )


def make_user(uid="user-1", role=UserRole.USER, email="pat@other.example", created_at=None):
    return UserContext(
        user_id=uid,
        role=role,
        email=email,
        name="Test User",
        account_created_at=created_at,
    )


class RulesOnlyDecisionService:
    """Final decision = preliminary decision; records what it was asked."""

    def __init__(self):
        self.calls = []

    def preliminary(self, context):
        return evaluate_eligibility(context)

    async def finalize(self, context, preliminary, applicant_profile=None):
        self.calls.append((context, preliminary, applicant_profile))
        return final_from_preliminary(preliminary)


class FailingDecisionService(RulesOnlyDecisionService):
    async def finalize(self, context, preliminary, applicant_profile=None):
        raise DecisionServiceError("reviewer unavailable")


class FailingSsoLinker:
    async def link(self, profile, fund):
        return False
