# This project was developed with assistance from AI tools.
"""Page routing schemas."""

import enum

from pydantic import BaseModel, ConfigDict


class Page(str, enum.Enum):
    LOGIN = "login"
    REGISTER = "register"
    FORGOT_PASSWORD = "forgotPassword"
    HOME = "home"
    APPLY = "apply"
    PROFILE = "profile"
    SUPPORT = "support"
    SUBMISSION_SUCCESS = "submissionSuccess"
    TOKEN_USAGE = "tokenUsage"
    FAQ = "faq"
    PAYMENT_OPTIONS = "paymentOptions"
    DONATE = "donate"
    CLASS_VERIFICATION = "classVerification"
    ELIGIBILITY = "eligibility"
    FUND_PORTAL = "fundPortal"
    TICKETING = "ticketing"
    PROGRAM_DETAILS = "programDetails"
    PROXY = "proxy"
    LIVE_DASHBOARD = "liveDashboard"
    MY_APPLICATIONS = "myApplications"
    MY_PROXY_APPLICATIONS = "myProxyApplications"
    RELIEF_QUEUE = "reliefQueue"
    AI_APPLY = "aiApply"
    APPLY_EXPENSES = "applyExpenses"


class NavigationOutcome(str, enum.Enum):
    GRANTED = "granted"
    REWRITTEN = "rewritten"
    SUPPRESSED = "suppressed"


class NavigationDecision(BaseModel):
    """Result of a navigation request: the page the user ends up on."""

    model_config = ConfigDict(frozen=True)

    outcome: NavigationOutcome
    requested: Page
    page: Page


class NavigateRequest(BaseModel):
    target: Page
