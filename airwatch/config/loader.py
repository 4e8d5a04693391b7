"""YAML config loader and dotted-key lookup."""

import os
from pathlib import Path
from typing import Any

import yaml

from airwatch.config.defaults import DEFAULT_CITIES
from airwatch.config.schema import AppConfig

TOKEN_ENV_VAR = "WAQI_TOKEN"


def load_config(path: str | Path | None = None) -> AppConfig:
    """Load and validate config from a YAML file.

    A missing path yields the defaults. If no cities are specified, injects
    DEFAULT_CITIES. If the upstream token is empty, reads WAQI_TOKEN.
    """
    raw: dict[str, Any] = {}
    if path is not None and Path(path).exists():
        with open(path) as f:
            raw = yaml.safe_load(f) or {}

    if "cities" not in raw or not raw["cities"]:
        raw["cities"] = [c.model_dump() for c in DEFAULT_CITIES]

    upstream = raw.setdefault("upstream", {}) or {}
    if not upstream.get("token"):
        upstream["token"] = os.environ.get(TOKEN_ENV_VAR, "")
    raw["upstream"] = upstream

    return AppConfig(**raw)


def get_config_value(config: AppConfig, dotted_key: str) -> Any:
    """Get a config value by dotted key path. E.g. 'cache.live_ttl_minutes'."""
    parts = dotted_key.split(".")
    obj: Any = config
    for part in parts:
        if isinstance(obj, list):
            obj = obj[int(part)]
        elif hasattr(obj, part):
            obj = getattr(obj, part)
        elif isinstance(obj, dict):
            obj = obj[part]
        else:
            raise KeyError(f"Config key not found: {dotted_key}")
    return obj
