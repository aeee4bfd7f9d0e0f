"""
questline.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for the non-secret settings: where the assistant
lives, which model the proxy asks for, how much chat history to send and
which time zone defines "today" for streaks.  Secrets (``DATABASE_URL``,
``JWT_SECRET``, ``ASSISTANT_API_KEY``) stay in the environment / ``.env``.

Usage::

    from questline.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.assistant_url)     # "http://localhost:8000/api/assistant/chat"
    print(cfg.history_limit)     # 20
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from questline.constants import DEFAULT_XP_REWARD, HISTORY_LIMIT


@dataclass(frozen=True, slots=True)
class QuestlineConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    app_name: str

    # Assistant
    assistant_url: str  # Streaming chat endpoint the client talks to
    gateway_url: str    # Upstream OpenAI-compatible completions URL (proxy side)
    assistant_model: str

    # Optional tuning
    history_limit: int = HISTORY_LIMIT
    timezone: str = "UTC"
    default_xp_reward: int = DEFAULT_XP_REWARD
    request_timeout: float = 120.0


def load_config(path: str | Path = "config.yaml") -> QuestlineConfig:
    """Read *path* and return a :class:`QuestlineConfig` instance.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    return QuestlineConfig(
        app_name=raw["app_name"],
        assistant_url=raw["assistant_url"],
        gateway_url=raw["gateway_url"],
        assistant_model=raw["assistant_model"],
        history_limit=int(raw.get("history_limit", HISTORY_LIMIT)),
        timezone=raw.get("timezone") or "UTC",
        default_xp_reward=int(raw.get("default_xp_reward", DEFAULT_XP_REWARD)),
        request_timeout=float(raw.get("request_timeout", 120.0)),
    )
