# This project was developed with assistance from AI tools.
"""Shared route dependency: the caller's open session controller.

Opening the session hydrates it; an account with no profile after the
provisioning window is a data-integrity error that forces sign-out (401).
"""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status

from ..middleware.auth import CurrentUser
from ..services.hydration import ProfileIntegrityError
from ..services.session import (
    SessionController,
    SessionNotReadyError,
    SessionRegistry,
    get_session_registry,
)

logger = logging.getLogger(__name__)

Registry = Annotated[SessionRegistry, Depends(get_session_registry)]


async def get_session_controller(user: CurrentUser, registry: Registry) -> SessionController:
    try:
        controller = await registry.open(user)
    except ProfileIntegrityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc
    if controller.integrity_error is not None:
        await registry.close(user.user_id)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(controller.integrity_error),
            headers={"WWW-Authenticate": "Bearer"},
        )
    return controller


Session = Annotated[SessionController, Depends(get_session_controller)]


def not_ready(exc: SessionNotReadyError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
