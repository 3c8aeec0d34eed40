"""
Optional host capabilities the search service can be given at construction.

Each capability is None when the host feature is unavailable; callers branch
on presence.
"""
from typing import Dict, List, Optional, Protocol

from core.config import (
    POSTMETA_TABLE,
    PRICE_META_KEY,
    RATING_META_KEY,
    STUDENTS_META_KEY,
)
from core.database import Database
from models.content_models import CourseEnrichment


class CourseEnricher(Protocol):
    """Supplies price, rating and enrollment figures for a course."""

    def enrich(self, course_id: int) -> Optional[CourseEnrichment]:
        ...


class CurriculumRepository(Protocol):
    """Host-maintained lesson ownership, the most accurate linker source."""

    def get_lesson_course_ids(self, lesson_id: int) -> List[int]:
        ...


class CourseController(Protocol):
    """The host's default course listing."""

    def list_courses(
        self,
        search: Optional[str],
        per_page: int,
        page: int,
        sort: Optional[str] = None,
    ) -> Dict:
        ...


class MetaCourseEnricher:
    """Reads course commercial data from post meta."""

    def __init__(self, database: Database):
        self.db = database

    def enrich(self, course_id: int) -> Optional[CourseEnrichment]:
        """
        Return the course's price, rating and student count.

        Returns None when the course has none of the meta keys. Malformed
        values raise ValueError.
        """
        rows = self.db.execute(
            f"""
            SELECT meta_key, meta_value
            FROM {POSTMETA_TABLE}
            WHERE post_id = ? AND meta_key IN (?, ?, ?)
            ORDER BY meta_id
            """,
            (course_id, PRICE_META_KEY, RATING_META_KEY, STUDENTS_META_KEY)
        )
        if not rows:
            return None

        meta = {row["meta_key"]: row["meta_value"] for row in rows}
        return CourseEnrichment(
            price=float(meta.get(PRICE_META_KEY) or 0),
            rating=float(meta.get(RATING_META_KEY) or 0),
            student_count=int(float(meta.get(STUDENTS_META_KEY) or 0)),
        )
