from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

import config
from progress_tracker import (
    CourseNotFoundError,
    CourseProgressTracker,
    CourseRoster,
    RankedGroup,
    StudentNotFoundError,
    StudentSummary,
    TABLES,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def get_tracker() -> CourseProgressTracker:
    """Fresh view of the exported tables for every request"""
    try:
        return CourseProgressTracker(config.DATA_DIR)
    except Exception as e:
        logger.error(f"Error loading progress data from {config.DATA_DIR}: {e}")
        raise HTTPException(status_code=500, detail=f"Error loading progress data: {str(e)}")


# API Endpoints
@router.get("/student/{student_id}", response_model=StudentSummary)
async def get_student_progress(
    student_id: str,
    course_id: Optional[str] = Query(None, description="Limit the summary to one course"),
    tracker: CourseProgressTracker = Depends(get_tracker),
):
    """Points, rank and progress for a specific student"""

    try:
        return tracker.get_student_summary(student_id, course_id)

    except (StudentNotFoundError, CourseNotFoundError) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting progress for {student_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error getting student progress: {str(e)}")


@router.get("/course/{course_id}", response_model=CourseRoster)
async def get_course_roster(course_id: str, tracker: CourseProgressTracker = Depends(get_tracker)):
    """Ranked roster of a course, as shown on the teacher's classroom page"""

    try:
        return tracker.get_course_roster(course_id)

    except CourseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception as e:
        logger.error(f"Error getting roster for {course_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Error getting course roster: {str(e)}")


@router.get("/overview", response_model=RankedGroup)
async def get_platform_overview(tracker: CourseProgressTracker = Depends(get_tracker)):
    """Every student ranked platform-wide, as shown on the admin dashboard"""

    try:
        return tracker.get_platform_overview()

    except Exception as e:
        logger.error(f"Error getting platform overview: {e}")
        raise HTTPException(status_code=500, detail=f"Error getting platform overview: {str(e)}")


@router.get("/health")
async def health_check():
    """Health check for student progress service"""
    return {
        "status": "healthy",
        "service": "student_progress",
        "data_files_available": [f"{name}.csv" for name in TABLES],
    }
