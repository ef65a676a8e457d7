"""Central configuration for the bizdash package."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

BASE_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = BASE_DIR / "data"
DEFAULT_SOURCES_PATH = DATA_DIR / "sources.json"

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ENV_PREFIX = "BIZDASH_"


@dataclass(slots=True, frozen=True)
class Settings:
    sources_path: Path
    api_key: str
    api_id: str
    terminal: str
    http_timeout: float
    max_workers: int
    top_n: int = 5
    basket_min_confidence: float = 0.1
    basket_min_support: float = 0.01
    basket_max_results: int = 20
    summary_default_days: int = 30
    forecast_default_days: int = 90


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = _env_float(environ, name, default)
    if value < 1:
        raise ValueError(f"{ENV_PREFIX}{name} must be at least 1")
    return int(value)


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    sources_path = env.get(ENV_PREFIX + "SOURCES_PATH")
    return Settings(
        sources_path=Path(sources_path) if sources_path else DEFAULT_SOURCES_PATH,
        api_key=env.get(ENV_PREFIX + "API_KEY", ""),
        api_id=env.get(ENV_PREFIX + "API_ID", ""),
        terminal=env.get(ENV_PREFIX + "TERMINAL", "BIZDASH_WEB"),
        http_timeout=_env_float(env, "HTTP_TIMEOUT", 60.0),
        max_workers=_env_int(env, "MAX_WORKERS", 8),
    )


SETTINGS = load_settings()
