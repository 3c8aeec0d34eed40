"""
Finds the course(s) a lesson belongs to.

Lesson ownership is not stored the same way in every deployment, so several
lookups are tried in order of decreasing reliability:

    1. Host curriculum repository (if one was provided)
    2. Curriculum tables: lesson -> section -> course
    3. Legacy `curriculum` course meta containing the lesson id
    4. Courses whose title equals or contains the lesson title

The first lookup that returns anything wins.
"""
import logging
from typing import Callable, Iterable, List, Optional

from core.config import (
    COURSE_POST_TYPE,
    CURRICULUM_MATERIALS_TABLE,
    CURRICULUM_META_KEY,
    CURRICULUM_SECTIONS_TABLE,
    LESSON_POST_TYPE,
    POSTMETA_TABLE,
    POSTS_TABLE,
    PUBLISHED_STATUS,
    TITLE_MATCH_LIMIT,
)
from core.database import Database
from services.search.collaborators import CurriculumRepository
from services.search.content_query import ContentQuery, escape_like

logger = logging.getLogger(__name__)

LinkStrategy = Callable[[int], List[int]]


def distinct_ids(values: Iterable) -> List[int]:
    """Positive integer ids in first-seen order."""
    ids: List[int] = []
    for value in values or []:
        try:
            course_id = int(value)
        except (TypeError, ValueError):
            continue
        if course_id > 0 and course_id not in ids:
            ids.append(course_id)
    return ids


class LessonCourseLinker:
    """Resolves lesson ownership through an ordered chain of lookups."""

    def __init__(
        self,
        database: Database,
        content_query: Optional[ContentQuery] = None,
        curriculum_repository: Optional[CurriculumRepository] = None,
    ):
        self.db = database
        self.content = content_query or ContentQuery(database)
        self.curriculum_repository = curriculum_repository
        self.strategies: List[LinkStrategy] = [
            self._from_repository,
            self._from_curriculum_tables,
            self._from_curriculum_meta,
            self._from_title_match,
        ]

    def course_ids_for(self, lesson_id: int) -> List[int]:
        """Distinct owning course ids, most authoritative first (may be empty)."""
        for strategy in self.strategies:
            try:
                course_ids = distinct_ids(strategy(lesson_id))
            except Exception as e:
                name = getattr(strategy, "__name__", repr(strategy))
                logger.warning(f"Lesson {lesson_id}: {name} failed: {e}")
                continue
            if course_ids:
                return course_ids
        return []

    def _from_repository(self, lesson_id: int) -> List[int]:
        if self.curriculum_repository is None:
            return []
        return self.curriculum_repository.get_lesson_course_ids(lesson_id)

    def _from_curriculum_tables(self, lesson_id: int) -> List[int]:
        if not self.content.curriculum_available():
            return []
        return self.db.execute_column(
            f"""
            SELECT s.course_id
            FROM {CURRICULUM_MATERIALS_TABLE} m
            INNER JOIN {CURRICULUM_SECTIONS_TABLE} s ON m.section_id = s.id
            WHERE m.post_id = ? AND m.post_type = ?
            GROUP BY s.course_id
            ORDER BY MIN(m.id)
            """,
            (lesson_id, LESSON_POST_TYPE)
        )

    def _from_curriculum_meta(self, lesson_id: int) -> List[int]:
        # Substring match: lesson 12 also matches a curriculum listing 123
        return self.db.execute_column(
            f"""
            SELECT DISTINCT p.ID
            FROM {POSTS_TABLE} p
            INNER JOIN {POSTMETA_TABLE} pm ON p.ID = pm.post_id
            WHERE p.post_type = ?
            AND p.post_status = ?
            AND pm.meta_key = ?
            AND pm.meta_value LIKE ? ESCAPE '\\'
            ORDER BY p.ID
            """,
            (
                COURSE_POST_TYPE,
                PUBLISHED_STATUS,
                CURRICULUM_META_KEY,
                f"%{escape_like(str(lesson_id))}%",
            )
        )

    def _from_title_match(self, lesson_id: int) -> List[int]:
        lesson = self.content.get_post(lesson_id)
        if lesson is None or not lesson.title:
            return []

        return self.db.execute_column(
            f"""
            SELECT ID
            FROM {POSTS_TABLE}
            WHERE post_type = ?
            AND post_status = ?
            AND (post_title = ? OR post_title LIKE ? ESCAPE '\\')
            ORDER BY
                CASE WHEN post_title = ? THEN 1 ELSE 2 END,
                post_date DESC
            LIMIT ?
            """,
            (
                COURSE_POST_TYPE,
                PUBLISHED_STATUS,
                lesson.title,
                f"%{escape_like(lesson.title)}%",
                lesson.title,
                TITLE_MATCH_LIMIT,
            )
        )
