"""YAML configuration loader with environment variable overrides.

Tuning knobs for ingestion and chat are resolved in layers, later layers
winning:

  1. ``Settings`` field defaults (``coteacher.config.settings``)
  2. ``config/config.yaml`` -- static defaults checked into the repo
  3. ``.env`` / environment variables -- only fields that were actually set

``_deep_merge`` merges nested sections recursively::

    base      = {"chat": {"top_k": 6}}
    overrides = {"chat": {"temperature": 0.1}}
    result    = {"chat": {"top_k": 6, "temperature": 0.1}}
"""

from pathlib import Path
from typing import Any

import yaml

from coteacher.config.settings import Settings

# YAML section -> {yaml key: Settings field}
_SECTIONS: dict[str, dict[str, str]] = {
    "ingestion": {
        "chunk_size": "chunk_size",
        "chunk_overlap": "chunk_overlap",
        "item_token_limit": "embed_item_token_limit",
        "request_token_budget": "embed_request_token_budget",
        "request_max_items": "embed_request_max_items",
    },
    "chat": {
        "top_k": "chat_top_k",
        "match_threshold": "chat_match_threshold",
        "temperature": "chat_temperature",
    },
    "notes": {
        "temperature": "notes_temperature",
    },
    "storage": {
        "materials_bucket": "materials_bucket",
        "recordings_bucket": "recordings_bucket",
        "signed_url_ttl_seconds": "signed_url_ttl_seconds",
    },
}


def load_config(
    path: str = "config/config.yaml",
    settings: Settings | None = None,
) -> dict[str, Any]:
    """Load YAML config and merge with environment-based Settings.

    Args:
        path: Path to the YAML configuration file.  A missing file is not
            an error; Settings defaults are used instead.
        settings: Settings instance to read overrides from.  A fresh one
            is built when omitted.

    Returns:
        Fully resolved configuration dictionary.
    """
    settings = settings or Settings()

    defaults: dict[str, Any] = {
        section: {key: getattr(settings, field) for key, field in fields.items()}
        for section, fields in _SECTIONS.items()
    }

    config_path = Path(path)
    if config_path.exists():
        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}
    else:
        yaml_config = {}

    explicit = settings.model_fields_set
    env_overrides: dict[str, Any] = {
        section: {key: getattr(settings, field) for key, field in fields.items() if field in explicit}
        for section, fields in _SECTIONS.items()
    }
    env_overrides["app"] = {"env": settings.app_env, "log_level": settings.log_level}

    _deep_merge(defaults, yaml_config)
    _deep_merge(defaults, env_overrides)
    return defaults


def _deep_merge(base: dict, overrides: dict) -> None:
    """Recursively merge overrides into base dict, mutating base in place."""
    for key, value in overrides.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value
