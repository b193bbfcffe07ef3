from fastapi import APIRouter, Path
from pydantic import BaseModel
from typing import List

import config
from ranking import CompletionCounts, RankingInfo, RankTier, calculate_rank, calculate_total_points, rank_tiers

router = APIRouter()


class PointsResult(BaseModel):
    total_points: int
    ranking: RankingInfo


class PointWeights(BaseModel):
    lesson: int
    material: int
    assignment: int
    exam: int


# API Endpoints
@router.get("/tiers", response_model=List[RankTier])
async def get_rank_tiers():
    """Rank tiers in ascending order of their point threshold"""
    return rank_tiers()


@router.get("/weights", response_model=PointWeights)
async def get_point_weights():
    """Points awarded per completed item of each kind"""
    return PointWeights(
        lesson=config.POINTS_PER_LESSON,
        material=config.POINTS_PER_MATERIAL,
        assignment=config.POINTS_PER_ASSIGNMENT,
        exam=config.POINTS_PER_EXAM,
    )


@router.post("/points", response_model=PointsResult)
async def score_completion_counts(counts: CompletionCounts):
    """Total points and rank for a set of completion counts"""
    total_points = calculate_total_points(counts)
    return PointsResult(total_points=total_points, ranking=calculate_rank(total_points))


@router.get("/rank/{points}", response_model=RankingInfo)
async def get_rank_for_points(points: int = Path(..., ge=0)):
    return calculate_rank(points)


@router.get("/health")
async def health_check():
    """Health check for ranking service"""
    return {
        "status": "healthy",
        "service": "ranking",
        "tiers": [tier.name for tier in rank_tiers()],
    }
