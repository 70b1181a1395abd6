"""
Run configuration for the quizseed scripts.

Fixed pacing constants and tier definitions live in immutable values that are
passed into each component; a YAML file can override them and provide
provider keys.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from dotenv import load_dotenv

DIFFICULTIES = ("easy", "medium", "hard")

QUIZ_IDS = {
    "easy": "550e8400-e29b-41d4-a716-446655440001",
    "medium": "550e8400-e29b-41d4-a716-446655440002",
    "hard": "550e8400-e29b-41d4-a716-446655440003",
}


@dataclass(frozen=True)
class SeedSettings:
    chunk_size: int = 20
    batch_size: int = 20
    inter_chunk_delay: float = 1.0
    inter_batch_delay: float = 2.0
    rate_limit_cooldown: float = 10.0
    retry_limit: int = 1
    request_timeout: float = 60.0
    model: str = "gpt-3.5-turbo"
    temperature: float = 0.9
    max_tokens: int = 4000
    table: str = "questions"

    def __post_init__(self) -> None:
        if self.chunk_size < 1:
            raise ValueError(f"chunk_size must be >= 1, got {self.chunk_size}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {self.batch_size}")
        if self.retry_limit < 0:
            raise ValueError(f"retry_limit must be >= 0, got {self.retry_limit}")
        for name in ("inter_chunk_delay", "inter_batch_delay", "rate_limit_cooldown"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be > 0, got {self.request_timeout}")


@dataclass(frozen=True)
class TierConfig:
    difficulty: str
    count: int
    grade: int
    quiz_id: str

    def __post_init__(self) -> None:
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"difficulty must be one of {DIFFICULTIES}, got {self.difficulty!r}")
        if self.count < 1:
            raise ValueError(f"count must be a positive integer, got {self.count}")
        if not str(self.quiz_id).strip():
            raise ValueError("quiz_id must be non-empty")


DEFAULT_TIERS: Tuple[TierConfig, ...] = (
    TierConfig(difficulty="easy", count=200, grade=6, quiz_id=QUIZ_IDS["easy"]),
    TierConfig(difficulty="medium", count=200, grade=8, quiz_id=QUIZ_IDS["medium"]),
    TierConfig(difficulty="hard", count=150, grade=10, quiz_id=QUIZ_IDS["hard"]),
)


def load_config(config_path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(config_path)
    if not path.exists():
        raise SystemExit(f"[FATAL] Config file not found: {path}")
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise SystemExit(f"[FATAL] Failed to parse YAML at {path}:\n{e}")
    if not isinstance(data, dict):
        raise SystemExit(f"[FATAL] Config at {path} must be a mapping/object.")
    return data


def coerce_setting(key: str, raw: Any, current: Any) -> Any:
    """Convert one YAML value to the type of the setting it overrides."""
    kind = type(current)
    if raw is None or isinstance(raw, (bool, list, dict)):
        raise SystemExit(f"[FATAL] Expected {kind.__name__} for '{key}', got {raw!r}.")
    if kind is int and isinstance(raw, float):
        raise SystemExit(f"[FATAL] Expected integer for '{key}', got {raw!r}.")
    try:
        return kind(raw)
    except (TypeError, ValueError):
        raise SystemExit(f"[FATAL] Expected {kind.__name__} for '{key}', got {raw!r}.")


def settings_from_config(cfg: Dict[str, Any], base: Optional[SeedSettings] = None) -> SeedSettings:
    """
    Apply the optional `settings:` mapping on top of `base` (defaults if None).
    Unknown keys are fatal so typos do not silently fall back to defaults.
    """
    base = base or SeedSettings()
    raw = cfg.get("settings") or {}
    if not isinstance(raw, dict):
        raise SystemExit("[FATAL] 'settings' must be a mapping.")

    known = {f.name for f in fields(SeedSettings)}
    overrides: Dict[str, Any] = {}
    for key, val in raw.items():
        if key not in known:
            raise SystemExit(f"[FATAL] Unknown setting '{key}'. Known: {sorted(known)}")
        overrides[key] = coerce_setting(key, val, getattr(base, key))
    try:
        return replace(base, **overrides)
    except ValueError as e:
        raise SystemExit(f"[FATAL] Invalid settings: {e}")


def tiers_from_config(cfg: Dict[str, Any]) -> List[TierConfig]:
    raw = cfg.get("tiers")
    if raw is None:
        return list(DEFAULT_TIERS)
    if not isinstance(raw, list) or not raw:
        raise SystemExit("[FATAL] 'tiers' must be a non-empty list.")

    tiers: List[TierConfig] = []
    for idx, entry in enumerate(raw):
        if not isinstance(entry, dict):
            raise SystemExit(f"[FATAL] tiers[{idx}] must be a mapping.")
        difficulty = str(entry.get("difficulty", "")).strip().lower()
        quiz_id = entry.get("quiz_id") or QUIZ_IDS.get(difficulty)
        try:
            tiers.append(
                TierConfig(
                    difficulty=difficulty,
                    count=int(entry["count"]),
                    grade=int(entry["grade"]),
                    quiz_id=str(quiz_id or ""),
                )
            )
        except KeyError as e:
            raise SystemExit(f"[FATAL] tiers[{idx}] is missing required key {e}.")
        except (TypeError, ValueError) as e:
            raise SystemExit(f"[FATAL] tiers[{idx}] is invalid: {e}")
    return tiers


def select_tiers(tiers: List[TierConfig], tiers_csv: Optional[str]) -> List[TierConfig]:
    if not tiers_csv:
        return list(tiers)
    wanted = [t.strip().lower() for t in tiers_csv.split(",") if t.strip()]
    unknown = [w for w in wanted if w not in DIFFICULTIES]
    if unknown:
        raise SystemExit(f"[FATAL] Unknown tier(s): {', '.join(unknown)}")
    return [t for t in tiers if t.difficulty in wanted]


def collect_env(cfg: Dict[str, Any]) -> Dict[str, str]:
    """
    Collect environment variable overrides from config.
    - Provider keys at the top level (lowercase).
    - A top-level 'env' mapping for arbitrary env vars.
    """
    env: Dict[str, str] = {}

    def maybe_set(cfg_key: str, env_key: str):
        val = cfg.get(cfg_key)
        if val is not None:
            env[env_key] = str(val)

    maybe_set("openai_api_key", "OPENAI_API_KEY")
    maybe_set("openai_api_base_url", "OPENAI_API_BASE_URL")
    maybe_set("gemini_api_key", "GEMINI_API_KEY")
    maybe_set("supabase_url", "SUPABASE_URL")
    maybe_set("supabase_key", "SUPABASE_KEY")

    env_section = cfg.get("env")
    if isinstance(env_section, dict):
        for k, v in env_section.items():
            if isinstance(k, str) and v is not None:
                env[k] = str(v)

    return env


def load_environment(cfg: Optional[Dict[str, Any]] = None, dotenv_path: Optional[str] = None) -> None:
    """
    Load `.env` (existing variables win), then apply config-provided overrides.
    """
    load_dotenv(dotenv_path=dotenv_path, override=False)
    if cfg:
        os.environ.update(collect_env(cfg))


def require_env(var: str, hint: str = "") -> str:
    val = os.getenv(var, "").strip()
    if not val:
        msg = f"[FATAL] {var} is not set in environment variables"
        raise SystemExit(f"{msg}. {hint}" if hint else msg)
    return val


def supabase_credentials() -> Tuple[str, str]:
    url = os.getenv("SUPABASE_URL") or os.getenv("VITE_SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY") or os.getenv("VITE_SUPABASE_ANON_KEY")
    if not url or not key:
        raise SystemExit(
            "[FATAL] Set SUPABASE_URL and SUPABASE_KEY "
            "(or VITE_SUPABASE_URL / VITE_SUPABASE_ANON_KEY) to reach the database."
        )
    return url, key
