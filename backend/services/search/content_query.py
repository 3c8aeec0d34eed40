"""
Filtered, paginated search over published courses and lessons.

Courses are filtered by category through a direct taxonomy join. Lessons have
no categories of their own; they are filtered through the curriculum chain
(lesson -> section -> course) and the owning course's categories.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from core.config import (
    COURSE_POST_TYPE,
    COURSE_TAXONOMY,
    CURRICULUM_MATERIALS_TABLE,
    CURRICULUM_SECTIONS_TABLE,
    LESSON_POST_TYPE,
    POSTS_TABLE,
    PUBLISHED_STATUS,
    TERM_RELATIONSHIPS_TABLE,
    TERM_TAXONOMY_TABLE,
)
from core.database import Database
from models.content_models import ContentRow

logger = logging.getLogger(__name__)


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so the term is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


@dataclass
class QueryFilter:
    """FROM/WHERE fragments for one content query, with bound parameters."""
    alias: str
    from_sql: str
    where: List[str] = field(default_factory=list)
    params: List[Any] = field(default_factory=list)

    def add(self, clause: str, *params: Any) -> None:
        self.where.append(clause)
        self.params.extend(params)

    @property
    def where_sql(self) -> str:
        return " AND ".join(self.where) if self.where else "1 = 1"


class ContentQuery:
    """Join-based search across the course and lesson collections."""

    def __init__(self, database: Database):
        self.db = database

    def curriculum_available(self) -> bool:
        """Both curriculum tables are required to link lessons to courses."""
        return (
            self.db.table_exists(CURRICULUM_MATERIALS_TABLE)
            and self.db.table_exists(CURRICULUM_SECTIONS_TABLE)
        )

    def search_courses(
        self,
        term: Optional[str] = None,
        category_ids: Optional[List[int]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[ContentRow], int]:
        """
        Search published courses.

        Args:
            term: Case-insensitive substring matched against title, content and excerpt
            category_ids: None for no category constraint; an empty list matches nothing
            limit: Page size, None for every match
            offset: Rows to skip

        Returns:
            (rows for the requested window, total number of matches)
        """
        if category_ids is not None and not category_ids:
            return [], 0

        query_filter = QueryFilter(alias="p", from_sql=f"{POSTS_TABLE} p")
        query_filter.add("p.post_type = ?", COURSE_POST_TYPE)
        query_filter.add("p.post_status = ?", PUBLISHED_STATUS)

        if category_ids:
            query_filter.from_sql += f"""
                INNER JOIN {TERM_RELATIONSHIPS_TABLE} tr ON p.ID = tr.object_id
                INNER JOIN {TERM_TAXONOMY_TABLE} tt ON tr.term_taxonomy_id = tt.term_taxonomy_id
            """
            query_filter.add("tt.taxonomy = ?", COURSE_TAXONOMY)
            query_filter.add(f"tt.term_id IN ({placeholders(category_ids)})", *category_ids)

        if term:
            self._add_text_match(query_filter, term)

        return self._select(query_filter, limit, offset), self._count(query_filter)

    def search_lessons(
        self,
        term: Optional[str] = None,
        category_ids: Optional[List[int]] = None,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> Tuple[List[ContentRow], int]:
        """
        Search published lessons, optionally limited to lessons of courses in
        the given categories.

        A category-filtered search returns nothing when the curriculum tables
        are missing, since lessons cannot be tied to course categories then.
        """
        query_filter = self._lesson_filter(category_ids)
        if query_filter is None:
            return [], 0

        if term:
            self._add_text_match(query_filter, term)

        return self._select(query_filter, limit, offset), self._count(query_filter)

    def lessons_by_category(
        self,
        category_ids: List[int],
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ContentRow]:
        """Lessons whose owning course belongs to any of the categories."""
        if not category_ids:
            return []

        query_filter = self._lesson_filter(category_ids)
        if query_filter is None:
            return []
        return self._select(query_filter, limit, offset)

    def lessons_in_courses(
        self,
        course_ids: Iterable[Any],
        term: Optional[str] = None,
    ) -> Optional[List[ContentRow]]:
        """
        Published lessons in the curriculum of any of the courses.

        Returns None when the curriculum tables are missing, since ownership
        cannot be read from them then.
        """
        if not self.curriculum_available():
            return None

        ids = []
        for course_id in course_ids:
            try:
                ids.append(int(course_id))
            except (TypeError, ValueError):
                continue
        ids = list(dict.fromkeys(ids))
        if not ids:
            return []

        query_filter = QueryFilter(
            alias="l",
            from_sql=f"""{POSTS_TABLE} l
                INNER JOIN {CURRICULUM_MATERIALS_TABLE} m ON l.ID = m.post_id
                INNER JOIN {CURRICULUM_SECTIONS_TABLE} s ON m.section_id = s.id
            """,
        )
        query_filter.add("l.post_type = ?", LESSON_POST_TYPE)
        query_filter.add("l.post_status = ?", PUBLISHED_STATUS)
        query_filter.add("m.post_type = ?", LESSON_POST_TYPE)
        query_filter.add(f"s.course_id IN ({placeholders(ids)})", *ids)

        if term:
            self._add_text_match(query_filter, term)

        return self._select(query_filter)

    def get_courses(
        self,
        course_ids: Iterable[int],
        category_ids: Optional[List[int]] = None,
    ) -> List[ContentRow]:
        """
        Fetch published courses by id, keeping the order of course_ids.

        Ids that no longer resolve to a published course (or fall outside the
        categories) are left out.
        """
        ids = list(dict.fromkeys(int(course_id) for course_id in course_ids))
        if not ids or (category_ids is not None and not category_ids):
            return []

        query_filter = QueryFilter(alias="p", from_sql=f"{POSTS_TABLE} p")
        query_filter.add("p.post_type = ?", COURSE_POST_TYPE)
        query_filter.add("p.post_status = ?", PUBLISHED_STATUS)
        query_filter.add(f"p.ID IN ({placeholders(ids)})", *ids)

        if category_ids:
            query_filter.from_sql += f"""
                INNER JOIN {TERM_RELATIONSHIPS_TABLE} tr ON p.ID = tr.object_id
                INNER JOIN {TERM_TAXONOMY_TABLE} tt ON tr.term_taxonomy_id = tt.term_taxonomy_id
            """
            query_filter.add("tt.taxonomy = ?", COURSE_TAXONOMY)
            query_filter.add(f"tt.term_id IN ({placeholders(category_ids)})", *category_ids)

        by_id = {row.id: row for row in self._select(query_filter)}
        return [by_id[course_id] for course_id in ids if course_id in by_id]

    def get_post(self, post_id: int) -> Optional[ContentRow]:
        """Fetch any post by id regardless of type or status."""
        row = self.db.execute_one(
            f"""
            SELECT ID, post_title, post_content, post_excerpt, post_date, post_author, post_name
            FROM {POSTS_TABLE}
            WHERE ID = ?
            """,
            (post_id,)
        )
        return ContentRow.from_row(row) if row else None

    def _lesson_filter(self, category_ids: Optional[List[int]]) -> Optional[QueryFilter]:
        if category_ids is not None and not category_ids:
            return None

        query_filter = QueryFilter(alias="l", from_sql=f"{POSTS_TABLE} l")
        query_filter.add("l.post_type = ?", LESSON_POST_TYPE)
        query_filter.add("l.post_status = ?", PUBLISHED_STATUS)

        if not category_ids:
            return query_filter

        if not self.curriculum_available():
            logger.info("Curriculum tables not found; lessons cannot be filtered by category")
            return None

        query_filter.from_sql += f"""
            INNER JOIN {CURRICULUM_MATERIALS_TABLE} m ON l.ID = m.post_id
            INNER JOIN {CURRICULUM_SECTIONS_TABLE} s ON m.section_id = s.id
            INNER JOIN {POSTS_TABLE} c ON s.course_id = c.ID
            INNER JOIN {TERM_RELATIONSHIPS_TABLE} tr ON c.ID = tr.object_id
            INNER JOIN {TERM_TAXONOMY_TABLE} tt ON tr.term_taxonomy_id = tt.term_taxonomy_id
        """
        query_filter.add("m.post_type = ?", LESSON_POST_TYPE)
        query_filter.add("c.post_type = ?", COURSE_POST_TYPE)
        query_filter.add("c.post_status = ?", PUBLISHED_STATUS)
        query_filter.add("tt.taxonomy = ?", COURSE_TAXONOMY)
        query_filter.add(f"tt.term_id IN ({placeholders(category_ids)})", *category_ids)
        return query_filter

    @staticmethod
    def _add_text_match(query_filter: QueryFilter, term: str) -> None:
        like = f"%{escape_like(term.lower())}%"
        a = query_filter.alias
        query_filter.add(
            f"""(
                LOWER({a}.post_title) LIKE ? ESCAPE '\\'
                OR LOWER({a}.post_content) LIKE ? ESCAPE '\\'
                OR LOWER({a}.post_excerpt) LIKE ? ESCAPE '\\'
            )""",
            like, like, like,
        )

    def _select(
        self,
        query_filter: QueryFilter,
        limit: Optional[int] = None,
        offset: int = 0,
    ) -> List[ContentRow]:
        if limit is not None and limit <= 0:
            return []

        a = query_filter.alias
        rows = self.db.execute(
            f"""
            SELECT DISTINCT {a}.ID, {a}.post_title, {a}.post_content, {a}.post_excerpt,
                   {a}.post_date, {a}.post_author, {a}.post_name
            FROM {query_filter.from_sql}
            WHERE {query_filter.where_sql}
            ORDER BY {a}.post_date DESC, {a}.ID DESC
            LIMIT ? OFFSET ?
            """,
            (*query_filter.params, -1 if limit is None else limit, max(offset, 0))
        )
        return [ContentRow.from_row(row) for row in rows]

    def _count(self, query_filter: QueryFilter) -> int:
        total = self.db.execute_scalar(
            f"""
            SELECT COUNT(DISTINCT {query_filter.alias}.ID)
            FROM {query_filter.from_sql}
            WHERE {query_filter.where_sql}
            """,
            query_filter.params
        )
        return int(total or 0)
