# This project was developed with assistance from AI tools.
"""Relief application submission, history and grant ledger."""

from fastapi import APIRouter, Depends, HTTPException, status
from relief_db.enums import UserRole

from ..middleware.auth import require_roles
from ..schemas.application import (
    ApplicationForm,
    ApplicationListResponse,
    ApplicationRecord,
    LedgerResponse,
)
from ..services.funds import FundNotFoundError
from ..services.session import SessionNotReadyError
from ..services.submission import (
    DecisionUnavailableError,
    GrantExhaustedError,
    NoActiveFundError,
    NotEligibleToApplyError,
    ProxyApplicantNotFoundError,
    StaleSessionError,
    SubmissionError,
)
from ._session import Session, not_ready

router = APIRouter()

_SUBMISSION_STATUS: dict[type[SubmissionError], int] = {
    DecisionUnavailableError: status.HTTP_502_BAD_GATEWAY,
    StaleSessionError: status.HTTP_409_CONFLICT,
    NotEligibleToApplyError: status.HTTP_403_FORBIDDEN,
    GrantExhaustedError: status.HTTP_409_CONFLICT,
    NoActiveFundError: status.HTTP_409_CONFLICT,
    ProxyApplicantNotFoundError: status.HTTP_404_NOT_FOUND,
}


def _submission_http_error(exc: SubmissionError) -> HTTPException:
    code = _SUBMISSION_STATUS.get(type(exc), status.HTTP_409_CONFLICT)
    return HTTPException(status_code=code, detail=str(exc))


@router.get("", response_model=ApplicationListResponse)
async def list_applications(controller: Session) -> ApplicationListResponse:
    """The caller's own applications, newest first."""
    items = list(controller.applications)
    return ApplicationListResponse(data=items, count=len(items))


@router.get(
    "/proxy",
    response_model=ApplicationListResponse,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def list_proxy_applications(controller: Session) -> ApplicationListResponse:
    """Applications the caller submitted on behalf of others."""
    items = list(controller.proxy_applications)
    return ApplicationListResponse(data=items, count=len(items))


@router.get("/ledger", response_model=LedgerResponse)
async def read_ledger(controller: Session) -> LedgerResponse:
    try:
        return await controller.ledger()
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.post("", response_model=ApplicationRecord, status_code=status.HTTP_201_CREATED)
async def submit_application(body: ApplicationForm, controller: Session) -> ApplicationRecord:
    try:
        return await controller.submit(body)
    except SubmissionError as exc:
        raise _submission_http_error(exc) from exc
    except FundNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.post(
    "/proxy",
    response_model=ApplicationRecord,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_roles(UserRole.ADMIN))],
)
async def submit_proxy_application(body: ApplicationForm, controller: Session) -> ApplicationRecord:
    """Submit for an existing applicant (looked up by email) under the admin's active fund."""
    try:
        return await controller.submit_proxy(body)
    except SubmissionError as exc:
        raise _submission_http_error(exc) from exc
    except FundNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except PermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc
