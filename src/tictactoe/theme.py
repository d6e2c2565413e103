"""Cosmetic light/dark theme flag, kept apart from the game rules."""

from __future__ import annotations

import logging
from enum import Enum

logger = logging.getLogger(__name__)


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    def toggled(self) -> "Theme":
        return Theme.DARK if self is Theme.LIGHT else Theme.LIGHT


def parse_theme(value: str, fallback: Theme = Theme.LIGHT) -> Theme:
    """Lenient lookup for configuration values; unknown names use ``fallback``."""
    try:
        return Theme(value.strip().lower())
    except ValueError:
        logger.warning("Unknown theme %r, using %s", value, fallback.value)
        return fallback
