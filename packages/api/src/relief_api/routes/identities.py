# This project was developed with assistance from AI tools.
"""Identity listing, switching, removal and verification."""

from fastapi import APIRouter, HTTPException, status

from ..schemas.identity import IdentityListResponse
from ..schemas.session import (
    SessionState,
    VerificationAttemptRequest,
    VerificationResult,
    VerificationStatusResponse,
)
from ..services.funds import FundNotFoundError
from ..services.identity import ActiveIdentityRemovalError, IdentityNotFoundError
from ..services.session import (
    IdentityActivationError,
    IdentityAlreadyVerifiedError,
    SessionNotReadyError,
    VerificationNotStartedError,
)
from ..services.verification import VerificationInputError
from ._session import Session, not_ready

router = APIRouter()


@router.get("", response_model=IdentityListResponse)
async def list_identities(controller: Session) -> IdentityListResponse:
    state = controller.state
    return IdentityListResponse(
        data=list(state.identities),
        active_identity_id=state.active_identity.id if state.active_identity else None,
    )


@router.post("/{identity_id}/activate", response_model=SessionState)
async def activate_identity(identity_id: str, controller: Session) -> SessionState:
    """Switch the active identity. Only Eligible identities can be activated."""
    try:
        return await controller.activate_identity(identity_id)
    except IdentityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except IdentityActivationError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.delete("/{identity_id}", response_model=SessionState)
async def remove_identity(identity_id: str, controller: Session) -> SessionState:
    try:
        return await controller.remove_identity(identity_id)
    except IdentityNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ActiveIdentityRemovalError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.post("/verify/{fund_code}", response_model=VerificationStatusResponse)
async def start_verification(fund_code: str, controller: Session) -> VerificationStatusResponse:
    """Start (or resume) verifying membership in a fund."""
    try:
        return await controller.start_verification(fund_code)
    except FundNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except IdentityAlreadyVerifiedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.post("/verify/{fund_code}/attempt", response_model=VerificationResult)
async def attempt_verification(
    fund_code: str,
    body: VerificationAttemptRequest,
    controller: Session,
) -> VerificationResult:
    """Run one verification attempt. Failures are reported in the body, not as errors."""
    try:
        return await controller.attempt_verification(fund_code, body)
    except VerificationNotStartedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except VerificationInputError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc
