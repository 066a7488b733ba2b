# This project was developed with assistance from AI tools.
"""Profile registration and editing."""

from fastapi import APIRouter, Depends, HTTPException, status
from relief_db import get_db
from sqlalchemy.ext.asyncio import AsyncSession

from ..middleware.auth import CurrentUser
from ..schemas.profile import ProfileCreate, ProfileRecord, ProfileUpdate
from ..services import profile as profile_service
from ..services.funds import FundNotFoundError
from ..services.profile import ProfileExistsError
from ..services.session import SessionNotReadyError
from ._session import Session, not_ready

router = APIRouter()


@router.post("", response_model=ProfileRecord, status_code=status.HTTP_201_CREATED)
async def register_profile(
    body: ProfileCreate,
    user: CurrentUser,
    session: AsyncSession = Depends(get_db),
) -> ProfileRecord:
    """Create the caller's profile against a fund. No identities exist yet."""
    try:
        return await profile_service.create_profile(session, user.user_id, body)
    except FundNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ProfileExistsError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get("", response_model=ProfileRecord)
async def read_profile(controller: Session) -> ProfileRecord:
    """The hydrated profile: fund fields come from the active identity."""
    if controller.state.profile is None:
        raise not_ready(SessionNotReadyError("The profile is not available yet"))
    return controller.state.profile


@router.patch("", response_model=ProfileRecord)
async def edit_profile(body: ProfileUpdate, controller: Session) -> ProfileRecord:
    try:
        state = await controller.update_profile(body.model_dump(exclude_unset=True))
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc
    return state.profile
