# This project was developed with assistance from AI tools.
"""Hydrated session state, navigation and sign-out."""

from fastapi import APIRouter, HTTPException, status

from ..middleware.auth import CurrentUser
from ..schemas.navigation import NavigateRequest, NavigationDecision
from ..schemas.session import SessionState
from ..services.session import SessionNotReadyError
from ._session import Registry, Session

router = APIRouter()


@router.get("", response_model=SessionState)
async def read_session(controller: Session) -> SessionState:
    return controller.state


@router.post("/navigate", response_model=NavigationDecision)
async def navigate(body: NavigateRequest, controller: Session) -> NavigationDecision:
    """Evaluate a page request against the current identity state."""
    try:
        return controller.navigate(body.target)
    except SessionNotReadyError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.post("/sign-out", status_code=status.HTTP_204_NO_CONTENT)
async def sign_out(user: CurrentUser, registry: Registry) -> None:
    await registry.close(user.user_id)
