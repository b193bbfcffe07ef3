import logging
from pathlib import Path
from typing import Dict, List, Optional, Set

import numpy as np
import pandas as pd
from pydantic import BaseModel

from ranking import (
    CompletionCounts,
    RankingInfo,
    calculate_rank,
    calculate_total_points,
    rank_tiers,
    round_half_up,
)

logger = logging.getLogger(__name__)

# Expected columns per exported table
TABLES: Dict[str, List[str]] = {
    "students": ["student_id", "full_name"],
    "enrollments": ["student_id", "course_id", "is_active"],
    "lessons": ["id", "course_id", "is_published"],
    "quizzes": ["id", "course_id", "is_published"],
    "exams": ["id", "course_id", "is_published"],
    "materials": ["id", "course_id", "is_published"],
    "lesson_progress": ["student_id", "lesson_id", "is_completed"],
    "quiz_submissions": ["student_id", "quiz_id", "score", "total_points", "is_completed"],
    "exam_submissions": ["student_id", "exam_id", "score", "total_points", "is_completed"],
    "material_access": ["student_id", "material_id"],
}

ID_COLUMNS = {"student_id", "course_id", "id", "lesson_id", "quiz_id", "exam_id", "material_id"}
FLAG_COLUMNS = {"is_active", "is_published", "is_completed"}
TRUE_VALUES = {"true", "t", "1", "yes", "y"}


class ProgressDataError(Exception):
    """Base error for progress lookups"""


class StudentNotFoundError(ProgressDataError):
    pass


class CourseNotFoundError(ProgressDataError):
    pass


class StudentSummary(BaseModel):
    student_id: str
    full_name: str
    course_id: Optional[str] = None
    counts: CompletionCounts
    lessons_progress: int
    materials_progress: int
    assignments_progress: int
    exams_progress: int
    overall_progress: int
    avg_score: int
    total_points: int
    ranking: RankingInfo


class RankedGroup(BaseModel):
    total_students: int
    avg_points: float
    avg_score: int
    avg_progress: int
    rank_distribution: Dict[str, int]
    students: List[StudentSummary]


class CourseRoster(RankedGroup):
    course_id: str


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole > 0 else 0


def _score_percentages(submissions: pd.DataFrame) -> List[float]:
    """Score of each submission as a percentage of its total points"""
    percentages = []
    for _, row in submissions.iterrows():
        total = row["total_points"]
        score = 0 if pd.isna(row["score"]) else row["score"]
        percentages.append(score / total * 100 if total > 0 else 0)
    return percentages


class CourseProgressTracker:
    """
    Read-only view over the course database exports.

    Derives per-student completion counts, feeds them to the ranking
    calculator and builds the numbers shown on the student, teacher
    and admin dashboards.
    """

    def __init__(self, data_dir: str = "data"):
        self.data_dir = Path(data_dir)
        self.tables: Dict[str, pd.DataFrame] = {}
        self.load_tables()

    def load_tables(self):
        """Load every exported table, falling back to an empty frame when a file is missing"""
        for name, columns in TABLES.items():
            path = self.data_dir / f"{name}.csv"
            if path.exists():
                df = pd.read_csv(path, dtype=str, keep_default_na=False)
                missing = [c for c in columns if c not in df.columns]
                if missing:
                    raise ProgressDataError(f"{path.name} is missing columns: {', '.join(missing)}")
                logger.info(f"Loaded {name}: {len(df)} rows")
            else:
                logger.warning(f"{path} not found, treating {name} as empty")
                df = pd.DataFrame(columns=columns, dtype=str)
            self.tables[name] = self._normalize(df)

    @staticmethod
    def _normalize(df: pd.DataFrame) -> pd.DataFrame:
        df = df.copy()
        for column in df.columns:
            if column in ID_COLUMNS:
                df[column] = df[column].astype(str).str.strip()
            elif column in FLAG_COLUMNS:
                df[column] = df[column].astype(str).str.strip().str.lower().isin(TRUE_VALUES)
            elif column in ("score", "total_points"):
                df[column] = pd.to_numeric(df[column], errors="coerce")
        return df

    # ---- lookups ----

    def student_ids(self) -> List[str]:
        ids = set(self.tables["students"]["student_id"]) | set(self.tables["enrollments"]["student_id"])
        return sorted(ids)

    def course_ids(self) -> Set[str]:
        ids = set(self.tables["enrollments"]["course_id"])
        for name in ("lessons", "quizzes", "exams", "materials"):
            ids |= set(self.tables[name]["course_id"])
        return ids

    def student_name(self, student_id: str) -> str:
        students = self.tables["students"]
        match = students[students["student_id"] == student_id]
        return match.iloc[0]["full_name"] if not match.empty else student_id

    def _require_student(self, student_id: str):
        if student_id not in self.student_ids():
            raise StudentNotFoundError(f"No data found for student {student_id}")

    def _require_course(self, course_id: str):
        if course_id not in self.course_ids():
            raise CourseNotFoundError(f"No data found for course {course_id}")

    def active_courses(self, student_id: str) -> Set[str]:
        enrollments = self.tables["enrollments"]
        active = enrollments[(enrollments["student_id"] == student_id) & enrollments["is_active"]]
        return set(active["course_id"])

    def published_items(self, table: str, courses: Set[str]) -> Set[str]:
        items = self.tables[table]
        return set(items[items["course_id"].isin(courses) & items["is_published"]]["id"])

    def _content_scope(self, student_id: str, course_id: Optional[str]) -> Dict[str, Set[str]]:
        courses = self.active_courses(student_id)
        if course_id is not None:
            courses &= {course_id}
        return {
            table: self.published_items(table, courses)
            for table in ("lessons", "quizzes", "exams", "materials")
        }

    def _completed_submissions(self, table: str, key: str, student_id: str, item_ids: Set[str]) -> pd.DataFrame:
        submissions = self.tables[table]
        return submissions[
            (submissions["student_id"] == student_id)
            & submissions["is_completed"]
            & submissions[key].isin(item_ids)
        ]

    # ---- operations ----

    def get_completion_counts(self, student_id: str, course_id: Optional[str] = None) -> CompletionCounts:
        """Count the distinct content items a student has finished"""
        self._require_student(student_id)
        if course_id is not None:
            self._require_course(course_id)

        scope = self._content_scope(student_id, course_id)
        return self._counts_in_scope(student_id, scope)

    def _counts_in_scope(self, student_id: str, scope: Dict[str, Set[str]]) -> CompletionCounts:
        lesson_progress = self.tables["lesson_progress"]
        completed_lessons = lesson_progress[
            (lesson_progress["student_id"] == student_id)
            & lesson_progress["is_completed"]
            & lesson_progress["lesson_id"].isin(scope["lessons"])
        ]["lesson_id"].nunique()

        material_access = self.tables["material_access"]
        accessed_materials = material_access[
            (material_access["student_id"] == student_id)
            & material_access["material_id"].isin(scope["materials"])
        ]["material_id"].nunique()

        quizzes = self._completed_submissions("quiz_submissions", "quiz_id", student_id, scope["quizzes"])
        exams = self._completed_submissions("exam_submissions", "exam_id", student_id, scope["exams"])

        return CompletionCounts(
            completed_lessons=int(completed_lessons),
            completed_materials=int(accessed_materials),
            completed_assignments=int(quizzes["quiz_id"].nunique()),
            completed_exams=int(exams["exam_id"].nunique()),
        )

    def get_student_summary(self, student_id: str, course_id: Optional[str] = None) -> StudentSummary:
        """Everything the dashboard shows for one student, platform-wide or for one course"""
        self._require_student(student_id)
        if course_id is not None:
            self._require_course(course_id)

        scope = self._content_scope(student_id, course_id)
        counts = self._counts_in_scope(student_id, scope)

        quizzes = self._completed_submissions("quiz_submissions", "quiz_id", student_id, scope["quizzes"])
        exams = self._completed_submissions("exam_submissions", "exam_id", student_id, scope["exams"])
        percentages = _score_percentages(quizzes) + _score_percentages(exams)
        avg_score = round_half_up(np.mean(percentages)) if percentages else 0

        total_items = len(scope["lessons"]) + len(scope["quizzes"]) + len(scope["exams"])
        completed_items = counts.completed_lessons + counts.completed_assignments + counts.completed_exams

        total_points = calculate_total_points(counts)

        return StudentSummary(
            student_id=student_id,
            full_name=self.student_name(student_id),
            course_id=course_id,
            counts=counts,
            lessons_progress=_percent(counts.completed_lessons, len(scope["lessons"])),
            materials_progress=_percent(counts.completed_materials, len(scope["materials"])),
            assignments_progress=_percent(counts.completed_assignments, len(scope["quizzes"])),
            exams_progress=_percent(counts.completed_exams, len(scope["exams"])),
            overall_progress=_percent(completed_items, total_items),
            avg_score=int(avg_score),
            total_points=total_points,
            ranking=calculate_rank(total_points),
        )

    def _rank_group(self, summaries: List[StudentSummary]) -> Dict:
        summaries = sorted(summaries, key=lambda s: (-s.total_points, s.full_name))

        distribution = {tier.name: 0 for tier in rank_tiers()}
        for summary in summaries:
            distribution[summary.ranking.rank] += 1

        scored = [s.avg_score for s in summaries if s.counts.completed_assignments + s.counts.completed_exams > 0]
        return {
            "total_students": len(summaries),
            "avg_points": round(float(np.mean([s.total_points for s in summaries])), 1) if summaries else 0.0,
            "avg_score": round_half_up(np.mean(scored)) if scored else 0,
            "avg_progress": round_half_up(np.mean([s.overall_progress for s in summaries])) if summaries else 0,
            "rank_distribution": distribution,
            "students": summaries,
        }

    def get_course_roster(self, course_id: str) -> CourseRoster:
        """Ranked list of the students actively enrolled in a course"""
        self._require_course(course_id)

        enrollments = self.tables["enrollments"]
        enrolled = enrollments[(enrollments["course_id"] == course_id) & enrollments["is_active"]]
        summaries = [
            self.get_student_summary(student_id, course_id)
            for student_id in sorted(set(enrolled["student_id"]))
        ]
        return CourseRoster(course_id=course_id, **self._rank_group(summaries))

    def get_platform_overview(self) -> RankedGroup:
        """Ranked list of every student across all of their courses"""
        summaries = [self.get_student_summary(student_id) for student_id in self.student_ids()]
        return RankedGroup(**self._rank_group(summaries))
