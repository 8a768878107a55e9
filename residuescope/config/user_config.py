"""User configuration persistence for ResidueScope.

Saves and restores preferences such as the proximity threshold and the last
opened folder.
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path

from residuescope.config.settings import DEFAULT_PROXIMITY_THRESHOLD
from residuescope.models.proximity import clamp_threshold

logger = logging.getLogger(__name__)

# Configuration file path
CONFIG_DIR = Path.home() / ".config" / "residuescope"
FULL_CONFIG_FILE = CONFIG_DIR / "config.json"


@dataclass
class AnalysisConfig:
    """Proximity filter preferences.

    Attributes:
        proximity_threshold: Neighbor threshold in Å, within [1, 5].
        filter_enabled: Whether residues out of proximity are disabled.
        color_scheme: Cartoon color scheme name.
    """

    proximity_threshold: float = DEFAULT_PROXIMITY_THRESHOLD
    filter_enabled: bool = True
    color_scheme: str = "spectrum"


@dataclass
class UserConfig:
    """Complete user configuration.

    Attributes:
        analysis: Proximity filter preferences.
        last_folder: Last opened folder path.
        window_geometry: Window position and size.
    """

    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    last_folder: str | None = None
    window_geometry: dict[str, int] | None = None


def save_config(config: UserConfig) -> bool:
    """Save full user configuration.

    Args:
        config: UserConfig to save.

    Returns:
        True if saved successfully.
    """
    try:
        CONFIG_DIR.mkdir(parents=True, exist_ok=True)

        data = {
            "analysis": {
                "proximity_threshold": config.analysis.proximity_threshold,
                "filter_enabled": config.analysis.filter_enabled,
                "color_scheme": config.analysis.color_scheme,
            },
            "last_folder": config.last_folder,
            "window_geometry": config.window_geometry,
        }

        with open(FULL_CONFIG_FILE, "w") as f:
            json.dump(data, f, indent=2)

        logger.debug(f"Saved config to {FULL_CONFIG_FILE}")
        return True

    except Exception as e:
        logger.error(f"Failed to save config: {e}")
        return False


def _parse_analysis(data: dict) -> AnalysisConfig:
    defaults = AnalysisConfig()
    threshold = data.get("proximity_threshold", defaults.proximity_threshold)
    if not isinstance(threshold, (int, float)) or isinstance(threshold, bool):
        threshold = defaults.proximity_threshold
    filter_enabled = data.get("filter_enabled", defaults.filter_enabled)
    color_scheme = data.get("color_scheme", defaults.color_scheme)
    return AnalysisConfig(
        proximity_threshold=clamp_threshold(threshold),
        filter_enabled=bool(filter_enabled),
        color_scheme=color_scheme if isinstance(color_scheme, str) else defaults.color_scheme,
    )


def load_config() -> UserConfig:
    """Load full user configuration.

    Returns:
        UserConfig (with defaults if the file is missing or unreadable).
    """
    if not FULL_CONFIG_FILE.exists():
        return UserConfig()

    try:
        with open(FULL_CONFIG_FILE) as f:
            data = json.load(f)

        return UserConfig(
            analysis=_parse_analysis(data.get("analysis") or {}),
            last_folder=data.get("last_folder"),
            window_geometry=data.get("window_geometry"),
        )

    except Exception as e:
        logger.error(f"Failed to load config: {e}")
        return UserConfig()


def clear_config() -> bool:
    """Delete the saved configuration.

    Returns:
        True if cleared successfully (or didn't exist), False on error.
    """
    try:
        if FULL_CONFIG_FILE.exists():
            FULL_CONFIG_FILE.unlink()
            logger.debug(f"Cleared config at {FULL_CONFIG_FILE}")
        return True
    except Exception as e:
        logger.error(f"Failed to clear config: {e}")
        return False
