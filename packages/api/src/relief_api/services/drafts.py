# This project was developed with assistance from AI tools.
"""Draft cache: fund-scoped application drafts in scratch storage.

Drafts are keyed by ``(uid, fund_code)`` and deep-merged on every update.
The assistant's conversation history lives next to the draft and is
cleared with it. Storage failures are logged and never block the flow.
"""

import json
import logging
import re
from decimal import Decimal

from pydantic import ValidationError
from redis.exceptions import RedisError

from ..schemas.draft import ApplicationDraft, AssistantAction, DraftUpdate, ExpenseArg
from ..schemas.profile import EDITABLE_PROFILE_FIELDS, ProfileRecord
from .scratch import ScratchStorage

logger = logging.getLogger(__name__)

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_STORAGE_ERRORS = (RedisError, OSError)


def draft_key(uid: str, fund_code: str) -> str:
    return f"applicationDraft-{uid}-{fund_code}"


def conversation_key(uid: str, fund_code: str) -> str:
    return f"aiApplyChatHistory-{uid}-{fund_code}"


def _snake(key: str) -> str:
    return _CAMEL_RE.sub("_", key).lower()


def _snake_keys(data: dict) -> dict:
    return {
        _snake(k): _snake_keys(v) if isinstance(v, dict) else v
        for k, v in data.items()
    }


def deep_merge(base: dict, patch: dict) -> dict:
    """Merge ``patch`` into a copy of ``base``; nested dicts merge, lists replace."""
    merged = dict(base)
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def seed_profile_data(profile: ProfileRecord) -> dict:
    """Profile section defaults, taken from the applicant's current profile."""
    return profile.model_dump(mode="json", include=set(EDITABLE_PROFILE_FIELDS) | {"email"})


def merge_draft(
    current: ApplicationDraft | None,
    update: DraftUpdate,
    profile: ProfileRecord,
) -> ApplicationDraft:
    """Apply a partial update. Missing sections fall back to their skeletons."""
    base = (current or ApplicationDraft()).model_dump(mode="json")
    drafted = current.profile_data.model_dump(mode="json", exclude_none=True) if current else {}
    profile_data = deep_merge(seed_profile_data(profile), drafted)

    merged = {
        "profile_data": deep_merge(profile_data, update.profile_data or {}),
        "event_data": deep_merge(base["event_data"], update.event_data or {}),
        "agreement_data": deep_merge(base["agreement_data"], update.agreement_data or {}),
    }
    return ApplicationDraft.model_validate(merged)


def _expense_updates(current: ApplicationDraft | None, items: list) -> list[dict]:
    expenses = [e.model_dump(mode="json") for e in current.event_data.expenses] if current else []
    for item in items:
        try:
            arg = ExpenseArg.model_validate(item)
        except ValidationError:
            logger.debug("Skipping malformed expense from assistant: %s", item)
            continue
        for expense in expenses:
            if expense["type"] == arg.type:
                expense["amount"] = str(arg.amount)
                break
        else:
            expenses.append(
                {
                    "id": f"exp-{arg.type.replace(' ', '-')}",
                    "type": arg.type,
                    "amount": str(arg.amount),
                    "file_name": "",
                }
            )
    return expenses


def apply_assistant_action(
    current: ApplicationDraft | None,
    action: AssistantAction,
    profile: ProfileRecord,
) -> ApplicationDraft:
    """Translate an assistant tool call into a draft update and merge it."""
    args = _snake_keys(action.args)

    if action.name == "updateUserProfile":
        update = DraftUpdate(profile_data=args)
    elif action.name == "startOrUpdateApplicationDraft":
        args.pop("expenses", None)
        update = DraftUpdate(event_data=args)
    elif action.name == "addOrUpdateExpense":
        update = DraftUpdate(event_data={"expenses": _expense_updates(current, args.get("expenses") or [])})
    else:
        flags = {k: v for k, v in args.items() if k in ("share_story", "receive_additional_info")}
        update = DraftUpdate(agreement_data=flags)

    return merge_draft(current, update, profile)


def _default(value):
    if isinstance(value, Decimal):
        return str(value)
    raise TypeError(f"Cannot serialize {type(value).__name__}")


class DraftCache:
    """Fund-scoped draft persistence over a ``ScratchStorage`` backend."""

    def __init__(self, storage: ScratchStorage):
        self.storage = storage

    async def load(self, uid: str, fund_code: str | None) -> ApplicationDraft | None:
        if not fund_code:
            return None
        try:
            raw = await self.storage.get(draft_key(uid, fund_code))
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not read draft for uid=%s fund=%s: %s", uid, fund_code, exc)
            return None
        if raw is None:
            return None
        try:
            return ApplicationDraft.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable draft for uid=%s fund=%s", uid, fund_code)
            return None

    async def save(self, uid: str, fund_code: str, draft: ApplicationDraft) -> None:
        try:
            await self.storage.set(draft_key(uid, fund_code), draft.model_dump_json())
        except _STORAGE_ERRORS as exc:
            logger.error("Could not save draft for uid=%s fund=%s: %s", uid, fund_code, exc)

    async def clear(self, uid: str, fund_code: str | None) -> None:
        """Remove the draft and the assistant conversation for one fund."""
        if not fund_code:
            return
        try:
            await self.storage.remove(draft_key(uid, fund_code))
            await self.storage.remove(conversation_key(uid, fund_code))
        except _STORAGE_ERRORS as exc:
            logger.error("Could not clear draft for uid=%s fund=%s: %s", uid, fund_code, exc)
            return
        logger.info("Draft cleared: uid=%s fund=%s", uid, fund_code)

    async def save_conversation(self, uid: str, fund_code: str, messages: list[dict]) -> None:
        try:
            await self.storage.set(conversation_key(uid, fund_code), json.dumps(messages, default=_default))
        except _STORAGE_ERRORS as exc:
            logger.error("Could not save conversation for uid=%s fund=%s: %s", uid, fund_code, exc)

    async def load_conversation(self, uid: str, fund_code: str) -> list[dict]:
        try:
            raw = await self.storage.get(conversation_key(uid, fund_code))
        except _STORAGE_ERRORS as exc:
            logger.warning("Could not read conversation for uid=%s fund=%s: %s", uid, fund_code, exc)
            return []
        if not raw:
            return []
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Discarding unreadable conversation for uid=%s fund=%s", uid, fund_code)
            return []
