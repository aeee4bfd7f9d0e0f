"""
questline.constants — Shared Constants & Helpers
=================================================

Single source of truth for the leveling formula and gameplay defaults.
Import from here instead of duplicating in services, client and API.
"""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

# ---------------------------------------------------------------------------
# Gameplay defaults
# ---------------------------------------------------------------------------
XP_PER_LEVEL = 100
DEFAULT_XP_REWARD = 25
HISTORY_LIMIT = 20  # Chat messages sent to the assistant as context
DEFAULT_USER_NAME = "Founder"

# Placeholder transcript entries live in their own id namespace
TEMP_ID_PREFIX = "temp-"


# ---------------------------------------------------------------------------
# Leveling formula — THE single canonical implementation
# ---------------------------------------------------------------------------
def level_for_xp(total_xp: int) -> int:
    """Level reached with *total_xp* experience points.

    Linear formula::

        level = total_xp // 100 + 1

    So 0–99 XP is level 1, 100–199 is level 2, and so on.
    """
    if total_xp < 0:
        raise ValueError(f"total_xp must be >= 0, got {total_xp}")
    return total_xp // XP_PER_LEVEL + 1


def xp_into_level(total_xp: int) -> tuple[int, int]:
    """Return (xp earned inside the current level, xp needed for the next)."""
    return total_xp % XP_PER_LEVEL, XP_PER_LEVEL


# ---------------------------------------------------------------------------
# Calendar helper
# ---------------------------------------------------------------------------
def today_in(tz_name: str = "UTC") -> date:
    """Today's calendar date in the user's effective time zone."""
    return datetime.now(ZoneInfo(tz_name)).date()
