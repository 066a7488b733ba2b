# This project was developed with assistance from AI tools.
"""
Relief portal -- domain models

Funds and their roster records (read-only reference data), user profiles,
per-fund identities, and append-only relief applications.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from .database import Base
from .enums import (
    ApplicationStatus,
    ClassVerificationStatus,
    EligibilityStatus,
    UserRole,
    VerificationMethod,
)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Fund(Base):
    """Sponsoring relief fund: verification method, grant caps, event taxonomy."""

    __tablename__ = "funds"

    code = Column(String(32), primary_key=True)
    name = Column(String(255), nullable=False)
    cv_type = Column(
        Enum(VerificationMethod, name="verification_method", native_enum=False),
        nullable=False,
    )
    single_request_max = Column(Numeric(12, 2), nullable=False)
    twelve_month_max = Column(Numeric(12, 2), nullable=False)
    lifetime_max = Column(Numeric(12, 2), nullable=False)
    eligible_disasters = Column(JSON, nullable=False, default=list)
    eligible_hardships = Column(JSON, nullable=False, default=list)
    eligible_employment_types = Column(JSON, nullable=False, default=list)
    allowed_domains = Column(JSON, nullable=True)
    supported_languages = Column(JSON, nullable=False, default=list)
    support_email = Column(String(255), nullable=True)
    support_phone = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    roster_records = relationship(
        "RosterRecord", back_populates="fund", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<Fund(code='{self.code}', cv_type='{self.cv_type}')>"


class RosterRecord(Base):
    """Fund-scoped eligibility record checked by roster verification."""

    __tablename__ = "roster_records"
    __table_args__ = (
        UniqueConstraint("fund_code", "employee_id", name="uq_roster_fund_employee"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    fund_code = Column(
        String(32), ForeignKey("funds.code", ondelete="CASCADE"), nullable=False, index=True,
    )
    employee_id = Column(String(64), nullable=False)
    birth_month = Column(Integer, nullable=False)
    birth_day = Column(Integer, nullable=False)

    fund = relationship("Fund", back_populates="roster_records")

    def __repr__(self):
        return f"<RosterRecord(fund='{self.fund_code}', employee_id='{self.employee_id}')>"


class UserProfile(Base):
    """One profile per authenticated user.

    ``fund_code``, ``fund_name``, ``class_verification_status`` and
    ``eligibility_status`` are copies of the active identity and are stale
    between hydrations. ``role`` is a synchronized copy of the token claim.
    """

    __tablename__ = "user_profiles"

    uid = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    middle_name = Column(String(100), nullable=True)
    suffix = Column(String(20), nullable=True)
    mobile_number = Column(String(50), nullable=False, default="")
    primary_address = Column(JSON, nullable=True)
    mailing_address = Column(JSON, nullable=True)
    is_mailing_address_same = Column(Boolean, nullable=True)
    employment_start_date = Column(Date, nullable=True)
    eligibility_type = Column(String(100), nullable=False, default="")
    household_income = Column(Numeric(12, 2), nullable=True)
    household_size = Column(Integer, nullable=True)
    homeowner = Column(String(3), nullable=True)
    preferred_language = Column(String(16), nullable=True)
    ack_policies = Column(Boolean, nullable=False, default=False)
    comm_consent = Column(Boolean, nullable=False, default=False)
    info_correct = Column(Boolean, nullable=False, default=False)
    relief_queue_ticket = Column(String(64), nullable=True)
    active_identity_id = Column(String(200), nullable=True)
    fund_code = Column(String(32), nullable=True)
    fund_name = Column(String(255), nullable=True)
    class_verification_status = Column(
        Enum(ClassVerificationStatus, name="class_verification_status", native_enum=False),
        nullable=False,
        default=ClassVerificationStatus.PENDING,
    )
    eligibility_status = Column(
        Enum(EligibilityStatus, name="eligibility_status", native_enum=False),
        nullable=False,
        default=EligibilityStatus.NOT_ELIGIBLE,
    )
    role = Column(
        Enum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.USER,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    identities = relationship(
        "FundIdentity", back_populates="profile", cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<UserProfile(uid='{self.uid}', email='{self.email}')>"


class FundIdentity(Base):
    """A user's membership record for one fund.

    The primary key is ``f"{uid}-{fund_code}"`` so creation is idempotent.
    """

    __tablename__ = "fund_identities"
    __table_args__ = (
        UniqueConstraint("uid", "fund_code", name="uq_identity_user_fund"),
    )

    id = Column(String(200), primary_key=True)
    uid = Column(
        String(128), ForeignKey("user_profiles.uid", ondelete="CASCADE"), nullable=False, index=True,
    )
    fund_code = Column(String(32), ForeignKey("funds.code"), nullable=False)
    fund_name = Column(String(255), nullable=False)
    cv_type = Column(
        Enum(VerificationMethod, name="verification_method", native_enum=False),
        nullable=False,
    )
    class_verification_status = Column(
        Enum(ClassVerificationStatus, name="class_verification_status", native_enum=False),
        nullable=False,
        default=ClassVerificationStatus.PENDING,
    )
    eligibility_status = Column(
        Enum(EligibilityStatus, name="eligibility_status", native_enum=False),
        nullable=False,
        default=EligibilityStatus.NOT_ELIGIBLE,
    )
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    profile = relationship("UserProfile", back_populates="identities")

    def __repr__(self):
        return (
            f"<FundIdentity(id='{self.id}', "
            f"status='{self.class_verification_status}', eligibility='{self.eligibility_status}')>"
        )


class Application(Base):
    """Append-only relief application with the balances that resulted from it."""

    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uid = Column(String(128), nullable=False, index=True)
    fund_code = Column(String(32), nullable=False, index=True)
    profile_snapshot = Column(JSON, nullable=False)
    event_data = Column(JSON, nullable=False)
    requested_amount = Column(Numeric(12, 2), nullable=False)
    submitted_date = Column(DateTime(timezone=True), nullable=False, index=True)
    status = Column(
        Enum(ApplicationStatus, name="application_status", native_enum=False),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
    )
    reasons = Column(JSON, nullable=False, default=list)
    decisioned_date = Column(DateTime(timezone=True), nullable=False)
    twelve_month_grant_remaining = Column(Numeric(12, 2), nullable=False)
    lifetime_grant_remaining = Column(Numeric(12, 2), nullable=False)
    share_story = Column(Boolean, nullable=False, default=False)
    receive_additional_info = Column(Boolean, nullable=False, default=False)
    submitted_by = Column(String(128), nullable=False, index=True)
    is_proxy = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Application(id={self.id}, uid='{self.uid}', status='{self.status}')>"
