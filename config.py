"""
Ranking & progress service configuration
Point weights, rank thresholds and data location
"""

import os
from typing import List


class ConfigError(ValueError):
    """Raised when an environment setting cannot be used"""


def _int_setting(name: str, default: int) -> int:
    raw = os.getenv(name, str(default))
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")
    if value < 0:
        raise ConfigError(f"{name} must not be negative, got {value}")
    return value


def parse_thresholds(raw: str) -> List[int]:
    """Parse a comma-separated list of ascending tier thresholds"""
    try:
        thresholds = [int(part) for part in raw.split(",")]
    except ValueError:
        raise ConfigError(f"RANK_THRESHOLDS must be comma-separated integers, got {raw!r}")

    if len(thresholds) != len(RANK_NAMES):
        raise ConfigError(
            f"RANK_THRESHOLDS needs {len(RANK_NAMES)} values ({', '.join(RANK_NAMES)}), got {len(thresholds)}"
        )
    if thresholds[0] != 0:
        raise ConfigError("The lowest rank threshold must be 0")
    if any(later <= earlier for earlier, later in zip(thresholds, thresholds[1:])):
        raise ConfigError(f"RANK_THRESHOLDS must be strictly increasing, got {raw!r}")
    return thresholds


# Tier names, lowest first
RANK_NAMES = ["Bronze", "Silver", "Gold", "Platinum"]

# Points per completed item
POINTS_PER_LESSON = _int_setting("POINTS_PER_LESSON", 1)
POINTS_PER_MATERIAL = _int_setting("POINTS_PER_MATERIAL", 1)
POINTS_PER_ASSIGNMENT = _int_setting("POINTS_PER_ASSIGNMENT", 2)
POINTS_PER_EXAM = _int_setting("POINTS_PER_EXAM", 2)

RANK_THRESHOLDS = parse_thresholds(os.getenv("RANK_THRESHOLDS", "0,50,150,300"))

# CSV tables exported from the course database
DATA_DIR = os.getenv("LMS_DATA_DIR", "data")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
