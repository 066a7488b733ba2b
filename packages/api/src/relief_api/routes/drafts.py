# This project was developed with assistance from AI tools.
"""Fund-scoped application draft and assistant conversation endpoints."""

from fastapi import APIRouter, HTTPException, status
from pydantic import ValidationError

from ..schemas.draft import (
    ApplicationDraft,
    AssistantAction,
    ConversationResponse,
    ConversationUpdate,
    DraftResponse,
    DraftUpdate,
)
from ..services.session import SessionNotReadyError
from ._session import Session, not_ready

router = APIRouter()


def _invalid(exc: ValidationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc.errors()))


@router.get("", response_model=DraftResponse)
async def read_draft(controller: Session) -> DraftResponse:
    return DraftResponse(fund_code=controller.state.fund_code, draft=controller.state.draft)


@router.patch("", response_model=ApplicationDraft)
async def update_draft(body: DraftUpdate, controller: Session) -> ApplicationDraft:
    """Deep-merge a partial update into the draft for the active fund."""
    try:
        return await controller.update_draft(body)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def reset_draft(controller: Session) -> None:
    try:
        await controller.reset_draft()
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.post("/assistant-actions", response_model=ApplicationDraft)
async def apply_assistant_action(body: AssistantAction, controller: Session) -> ApplicationDraft:
    """Apply one application-assistant tool call to the draft."""
    try:
        return await controller.apply_assistant_action(body)
    except ValidationError as exc:
        raise _invalid(exc) from exc
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc


@router.get("/conversation", response_model=ConversationResponse)
async def read_conversation(controller: Session) -> ConversationResponse:
    """The assistant conversation for the active fund; empty when none is cached."""
    try:
        messages = await controller.load_conversation()
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc
    return ConversationResponse(fund_code=controller.state.fund_code, messages=messages)


@router.put("/conversation", response_model=ConversationResponse)
async def replace_conversation(body: ConversationUpdate, controller: Session) -> ConversationResponse:
    try:
        messages = await controller.save_conversation(body.messages)
    except SessionNotReadyError as exc:
        raise not_ready(exc) from exc
    return ConversationResponse(fund_code=controller.state.fund_code, messages=messages)
