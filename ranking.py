"""
Ranking system: Bronze to Platinum

Points are earned from completed learning activities:
- Video lessons and course materials: POINTS_PER_LESSON / POINTS_PER_MATERIAL each
- Assignments (quizzes) and exams: POINTS_PER_ASSIGNMENT / POINTS_PER_EXAM each

The rank is a pure function of the point total. Nothing here is stored.
"""

import math
from typing import Dict, List, Mapping, Optional, Union

from pydantic import BaseModel, Field

import config


class CompletionCounts(BaseModel):
    completed_lessons: int = Field(..., ge=0)
    completed_materials: int = Field(..., ge=0)
    completed_assignments: int = Field(..., ge=0)
    completed_exams: int = Field(..., ge=0)


class RankTier(BaseModel):
    name: str
    threshold: int
    icon: str
    color: str
    bg_color: str


class RankingInfo(BaseModel):
    rank: str
    points: int
    icon: str
    color: str
    bg_color: str
    current_rank_points: int
    next_rank: Optional[str] = None
    next_rank_points: Optional[int] = None
    points_to_next_rank: Optional[int] = None
    progress: int  # 0-100


RANK_STYLES: Dict[str, Dict[str, str]] = {
    "Bronze": {"icon": "🥉", "color": "text-amber-700", "bg_color": "bg-amber-100"},
    "Silver": {"icon": "🥈", "color": "text-gray-600", "bg_color": "bg-gray-100"},
    "Gold": {"icon": "🥇", "color": "text-yellow-600", "bg_color": "bg-yellow-100"},
    "Platinum": {"icon": "💎", "color": "text-purple-700", "bg_color": "bg-purple-100"},
}

RANK_TIERS: List[RankTier] = [
    RankTier(name=name, threshold=threshold, **RANK_STYLES[name])
    for name, threshold in zip(config.RANK_NAMES, config.RANK_THRESHOLDS)
]


def rank_tiers() -> List[RankTier]:
    """Ordered tier table, lowest tier first"""
    return list(RANK_TIERS)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (12.5 -> 13)"""
    return int(math.floor(value + 0.5))


def rank_order(rank: str) -> int:
    """Position of a tier name in the ordered tier table"""
    for index, tier in enumerate(RANK_TIERS):
        if tier.name == rank:
            return index
    raise KeyError(f"Unknown rank: {rank}")


def rank_progress(points: int, current_rank_points: int, next_rank_points: Optional[int]) -> int:
    """Percentage of the way from the current tier threshold to the next one"""
    if next_rank_points is None:
        return 100
    span = next_rank_points - current_rank_points
    progress = (points - current_rank_points) / span * 100
    return round_half_up(min(100, max(0, progress)))


def calculate_total_points(counts: Union[CompletionCounts, Mapping[str, int]]) -> int:
    """
    Calculate total points for a student from their completion counts.

    Accepts a CompletionCounts or any mapping with the four count keys.
    """
    if not isinstance(counts, CompletionCounts):
        counts = CompletionCounts(**counts)

    return (
        counts.completed_lessons * config.POINTS_PER_LESSON
        + counts.completed_materials * config.POINTS_PER_MATERIAL
        + counts.completed_assignments * config.POINTS_PER_ASSIGNMENT
        + counts.completed_exams * config.POINTS_PER_EXAM
    )


def calculate_rank(points: int) -> RankingInfo:
    """
    Map a point total to its rank tier.

    A threshold is an inclusive lower bound: reaching exactly 50 points
    is Silver, not Bronze. The top tier has no next_rank_points.
    """
    current_index = 0
    for index, tier in enumerate(RANK_TIERS):
        if points >= tier.threshold:
            current_index = index

    current = RANK_TIERS[current_index]
    following = RANK_TIERS[current_index + 1] if current_index + 1 < len(RANK_TIERS) else None
    next_rank_points = following.threshold if following else None

    return RankingInfo(
        rank=current.name,
        points=points,
        icon=current.icon,
        color=current.color,
        bg_color=current.bg_color,
        current_rank_points=current.threshold,
        next_rank=following.name if following else None,
        next_rank_points=next_rank_points,
        points_to_next_rank=next_rank_points - points if following else None,
        progress=rank_progress(points, current.threshold, next_rank_points),
    )
