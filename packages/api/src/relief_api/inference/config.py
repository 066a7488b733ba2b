# This project was developed with assistance from AI tools.
"""Model tier configuration for the decision reviewer.

``config/models.yaml`` maps tier names to an OpenAI-compatible endpoint
and model. String values may use ``${VAR}`` or ``${VAR:-default}``. The
file is re-read whenever its mtime moves forward, so a model or endpoint
swap needs no restart.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

# The YAML placeholders read os.environ, which pydantic-settings leaves untouched.
load_dotenv()

logger = logging.getLogger(__name__)

_CONFIG_PATH = Path(__file__).resolve().parents[5] / "config" / "models.yaml"
_cached_config: dict[str, Any] | None = None
_cached_mtime: float = 0.0

_PLACEHOLDER = re.compile(r"\$\{(?P<name>\w+)(?::-(?P<default>.*?))?\}")

TIER_FIELDS = frozenset({"provider", "model_name", "endpoint"})


def _resolve_env_vars(obj: Any) -> Any:
    """Expand placeholders in every string nested inside ``obj``."""
    if isinstance(obj, str):
        return _PLACEHOLDER.sub(lambda m: os.environ.get(m["name"], m["default"] or ""), obj)
    if isinstance(obj, list):
        return [_resolve_env_vars(v) for v in obj]
    if isinstance(obj, dict):
        return {key: _resolve_env_vars(v) for key, v in obj.items()}
    return obj


def _check_tiers(raw: Any) -> dict[str, Any]:
    tiers = raw.get("models") if isinstance(raw, dict) else None
    if not isinstance(tiers, dict) or not tiers:
        raise ValueError("models.yaml needs a non-empty 'models' section")
    for tier, definition in tiers.items():
        if not isinstance(definition, dict):
            raise ValueError(f"Tier '{tier}' must be a mapping, got {type(definition).__name__}")
        absent = TIER_FIELDS.difference(definition)
        if absent:
            raise ValueError(f"Tier '{tier}' is missing required fields: {sorted(absent)}")
    return raw


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Read, expand and check the tier file. No caching."""
    path = path or _CONFIG_PATH
    if not path.is_file():
        raise FileNotFoundError(f"Model config not found: {path}")
    with path.open() as fh:
        return _check_tiers(_resolve_env_vars(yaml.safe_load(fh)))


def get_config(path: Path | None = None) -> dict[str, Any]:
    """Cached tier file; re-read when its mtime is newer than the cached copy."""
    global _cached_config, _cached_mtime  # noqa: PLW0603
    path = path or _CONFIG_PATH

    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        if _cached_config is None:
            raise
        logger.warning("Model config %s is gone; keeping the last loaded tiers", path)
        return _cached_config

    if _cached_config is not None and mtime <= _cached_mtime:
        return _cached_config

    logger.info("Loading model tiers from %s", path)
    _cached_config, _cached_mtime = load_config(path), mtime

    from .client import clear_client_cache

    clear_client_cache()
    return _cached_config


def get_model_config(tier: str, path: Path | None = None) -> dict[str, Any]:
    tiers = get_config(path)["models"]
    try:
        return tiers[tier]
    except KeyError:
        raise KeyError(f"Unknown model tier '{tier}'. Available: {sorted(tiers)}") from None
