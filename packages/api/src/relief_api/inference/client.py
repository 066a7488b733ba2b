# This project was developed with assistance from AI tools.
"""Chat completions for the decision reviewer.

One ``AsyncOpenAI`` client per tier, built from that tier's endpoint and
key. The cache is dropped whenever the tier file is reloaded.
"""

import logging
from typing import Any

from openai import AsyncOpenAI

from .config import get_model_config

logger = logging.getLogger(__name__)

_clients: dict[str, AsyncOpenAI] = {}


def clear_client_cache() -> None:
    _clients.clear()


def _client_for(tier: str, tier_config: dict[str, Any]) -> AsyncOpenAI:
    client = _clients.get(tier)
    if client is None:
        client = AsyncOpenAI(
            base_url=tier_config["endpoint"],
            api_key=tier_config.get("api_key") or "not-needed",
        )
        _clients[tier] = client
    return client


async def get_completion(
    messages: list[dict[str, str]],
    tier: str = "capable_large",
    **kwargs: Any,
) -> str:
    """Single non-streaming completion; returns the reply text ('' when empty).

    The tier's ``temperature`` and ``max_tokens`` apply unless the caller
    passes its own.
    """
    tier_config = get_model_config(tier)
    params: dict[str, Any] = {"temperature": tier_config.get("temperature", 0)}
    if tier_config.get("max_tokens"):
        params["max_tokens"] = tier_config["max_tokens"]
    params.update(kwargs)

    model = tier_config["model_name"]
    logger.debug("Completion request: tier=%s model=%s messages=%d", tier, model, len(messages))
    response = await _client_for(tier, tier_config).chat.completions.create(
        model=model, messages=messages, **params,
    )
    return response.choices[0].message.content or ""
