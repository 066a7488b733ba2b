# This project was developed with assistance from AI tools.
__version__ = "0.1.0"

from .database import Base, DatabaseService, SessionLocal, get_db, get_db_service
from .enums import (
    ApplicationStatus,
    ClassVerificationStatus,
    DecisionOutcome,
    EligibilityStatus,
    UserRole,
    VerificationMethod,
)
from .models import (
    Application,
    Fund,
    FundIdentity,
    RosterRecord,
    UserProfile,
)

__all__ = [
    "Base",
    "DatabaseService",
    "SessionLocal",
    "get_db",
    "get_db_service",
    "__version__",
    # Enums
    "ApplicationStatus",
    "ClassVerificationStatus",
    "DecisionOutcome",
    "EligibilityStatus",
    "UserRole",
    "VerificationMethod",
    # Models
    "Application",
    "Fund",
    "FundIdentity",
    "RosterRecord",
    "UserProfile",
]
