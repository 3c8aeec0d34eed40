"""
Course and lesson search behind the /courses and /search endpoints.

/search returns courses and lessons as two arrays cut from one page over
"all matching courses, then all matching lessons".

/courses returns only courses. With a category filter the course list is
built here, with matching lessons nested under their courses; without one the
host's course listing is used and matching lessons are grafted on.
"""
from typing import Any, Dict, List, Optional

from core.config import COURSES_PAGE_SLUG, SITE_URL
from core.database import Database
from core.errors import DependencyMissingError
from services.search.category_resolver import CategoryResolver
from services.search.collaborators import (
    CourseController,
    CourseEnricher,
    CurriculumRepository,
)
from services.search.content_query import ContentQuery
from services.search.formatter import ResultFormatter
from services.search.lesson_linker import LessonCourseLinker
from services.search.pagination import (
    attach_lessons,
    concatenated_window,
    empty_courses_page,
    empty_search_page,
    is_known_sort,
    normalize_paging,
    page_count,
    slice_page,
    sort_courses,
)


def clean_term(term: Optional[str]) -> Optional[str]:
    if term is None:
        return None
    term = term.strip()
    return term or None


class SearchService:
    """Stateless search facade shared by every request."""

    def __init__(
        self,
        database: Database,
        enricher: Optional[CourseEnricher] = None,
        curriculum_repository: Optional[CurriculumRepository] = None,
        course_controller: Optional[CourseController] = None,
        site_url: str = SITE_URL,
        courses_page_slug: str = COURSES_PAGE_SLUG,
    ):
        self.db = database
        self.categories = CategoryResolver(database)
        self.content = ContentQuery(database)
        self.linker = LessonCourseLinker(database, self.content, curriculum_repository)
        self.formatter = ResultFormatter(
            self.content,
            self.linker,
            enricher,
            site_url=site_url,
            courses_page_slug=courses_page_slug,
        )
        self.course_controller = course_controller

    def search(
        self,
        s: Optional[str] = None,
        category: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Combined course and lesson search.

        Returns:
            {
                "courses": List[dict],
                "lessons": List[dict],
                "total": int,   # matching courses + matching lessons
                "pages": int
            }
        """
        term = clean_term(s)
        category_requested = self.categories.is_requested(category)
        if not term and not category_requested:
            return empty_search_page()

        per_page, page = normalize_paging(per_page, page)
        # A category filter where nothing resolved matches nothing
        category_ids = self.categories.resolve(category) if category_requested else None

        _, total_courses = self.content.search_courses(term, category_ids, limit=0)
        _, total_lessons = self.content.search_lessons(term, category_ids, limit=0)
        window = concatenated_window(total_courses, total_lessons, page, per_page)

        courses = self._course_window(term, category_ids, sort, window.course_offset, window.course_limit)

        lessons: List[Dict[str, Any]] = []
        if window.lesson_limit > 0:
            if term:
                lesson_rows, _ = self.content.search_lessons(
                    term, category_ids, limit=window.lesson_limit, offset=window.lesson_offset
                )
            else:
                lesson_rows = self.content.lessons_by_category(
                    category_ids, limit=window.lesson_limit, offset=window.lesson_offset
                )
            lessons = self.formatter.format_lessons(lesson_rows)

        total = total_courses + total_lessons
        return {
            "courses": courses,
            "lessons": lessons,
            "total": total,
            "pages": page_count(total, per_page),
        }

    def list_courses(
        self,
        s: Optional[str] = None,
        category: Optional[str] = None,
        per_page: Optional[int] = None,
        page: Optional[int] = None,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Course listing with optional search term and category filter.

        Raises:
            DependencyMissingError: no category filter and no host course listing
        """
        term = clean_term(s)
        per_page, page = normalize_paging(per_page, page)

        if self.categories.is_requested(category):
            category_ids = self.categories.resolve(category)
            if not category_ids:
                return empty_courses_page()
            return self._courses_by_category(term, category_ids, per_page, page, sort)

        if self.course_controller is None:
            raise DependencyMissingError(
                "Courses controller not found. Please ensure the host LMS course listing is available."
            )

        response = self.course_controller.list_courses(term, per_page, page, sort)
        if term and isinstance(response, dict):
            courses = [course for course in response.get("courses") or [] if isinstance(course, dict)]
            lesson_rows = self.content.lessons_in_courses(
                (course.get("id") for course in courses), term
            )
            if lesson_rows is None:
                # No curriculum tables: ownership is only known per lesson
                lesson_rows, _ = self.content.search_lessons(term)
            attach_lessons(courses, self.formatter.format_lessons(lesson_rows))
        return response

    def _course_window(
        self,
        term: Optional[str],
        category_ids: Optional[List[int]],
        sort: Optional[str],
        offset: int,
        limit: int,
    ) -> List[Dict[str, Any]]:
        if limit <= 0:
            return []

        if is_known_sort(sort):
            rows, _ = self.content.search_courses(term, category_ids)
            courses = sort_courses(self.formatter.format_courses(rows), sort)
            return courses[offset:offset + limit]

        rows, _ = self.content.search_courses(term, category_ids, limit=limit, offset=offset)
        return self.formatter.format_courses(rows)

    def _courses_by_category(
        self,
        term: Optional[str],
        category_ids: List[int],
        per_page: int,
        page: int,
        sort: Optional[str],
    ) -> Dict[str, Any]:
        """
        Courses in the categories, paginated as one list.

        With a search term, courses that only match through one of their
        lessons are added after the direct matches, and every course carries
        the matching lessons it owns.
        """
        rows, _ = self.content.search_courses(term, category_ids)
        courses = self.formatter.format_courses(rows)

        if term:
            lesson_rows, _ = self.content.search_lessons(term, category_ids)
            lessons = self.formatter.format_lessons(lesson_rows)

            known_ids = {course["id"] for course in courses}
            discovered_ids = [
                course_id
                for lesson in lessons
                for course_id in lesson["course_ids"]
                if course_id not in known_ids
            ]
            # Courses removed since the lesson query simply drop out here
            discovered = self.content.get_courses(discovered_ids, category_ids)
            courses.extend(self.formatter.format_courses(discovered))

            attach_lessons(courses, lessons)

        courses = sort_courses(courses, sort)
        total = len(courses)
        return {
            "courses": slice_page(courses, page, per_page),
            "total": total,
            "pages": page_count(total, per_page),
        }
