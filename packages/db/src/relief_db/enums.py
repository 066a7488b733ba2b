# This project was developed with assistance from AI tools.
"""
Domain enums for the relief fund identity and grant lifecycle.

Shared domain types used by both SQLAlchemy models (relief_db package)
and Pydantic schemas (relief_api package).
"""

import enum


class UserRole(str, enum.Enum):
    USER = "User"
    ADMIN = "Admin"


class VerificationMethod(str, enum.Enum):
    DOMAIN = "Domain"
    ROSTER = "Roster"
    SSO = "SSO"


class ClassVerificationStatus(str, enum.Enum):
    PENDING = "pending"
    PASSED = "passed"
    FAILED = "failed"


class EligibilityStatus(str, enum.Enum):
    ELIGIBLE = "Eligible"
    NOT_ELIGIBLE = "Not Eligible"


class ApplicationStatus(str, enum.Enum):
    SUBMITTED = "Submitted"
    AWARDED = "Awarded"
    DECLINED = "Declined"


class DecisionOutcome(str, enum.Enum):
    APPROVED = "Approved"
    DENIED = "Denied"
    REVIEW = "Review"

    def to_application_status(self) -> ApplicationStatus:
        """Map a decision to the status persisted on the application."""
        if self is DecisionOutcome.APPROVED:
            return ApplicationStatus.AWARDED
        if self is DecisionOutcome.DENIED:
            return ApplicationStatus.DECLINED
        return ApplicationStatus.SUBMITTED
