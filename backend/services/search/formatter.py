"""
Turns content rows into the API's course and lesson items.
"""
import logging
from typing import Any, Dict, List, Optional

from bs4 import BeautifulSoup

from core.config import (
    COURSES_PAGE_SLUG,
    EXCERPT_WORD_LIMIT,
    LESSON_POST_TYPE,
    SITE_URL,
)
from models.content_models import ContentRow, CourseEnrichment
from services.search.collaborators import CourseEnricher
from services.search.content_query import ContentQuery
from services.search.lesson_linker import LessonCourseLinker

logger = logging.getLogger(__name__)

ELLIPSIS = "…"


def trim_words(text: Optional[str], limit: int = EXCERPT_WORD_LIMIT, more: str = ELLIPSIS) -> str:
    """
    Strip markup and keep the first `limit` words.

    `more` is appended only when words were dropped.
    """
    if not text:
        return ""
    plain = BeautifulSoup(text, "html.parser").get_text(separator=" ")
    words = plain.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + more


class ResultFormatter:
    """Builds course and lesson items, including links and enrichment."""

    def __init__(
        self,
        content_query: ContentQuery,
        linker: LessonCourseLinker,
        enricher: Optional[CourseEnricher] = None,
        site_url: str = SITE_URL,
        courses_page_slug: str = COURSES_PAGE_SLUG,
    ):
        self.content = content_query
        self.linker = linker
        self.enricher = enricher
        self.site_url = site_url.rstrip("/")
        self.courses_page_slug = courses_page_slug.strip("/")

    def course_permalink(self, course: ContentRow) -> str:
        if not course.slug:
            return f"{self.site_url}/?p={course.id}"
        return f"{self.site_url}/{self.courses_page_slug}/{course.slug}/"

    def lesson_permalink(self, lesson: ContentRow) -> str:
        if not lesson.slug:
            return f"{self.site_url}/?p={lesson.id}"
        return f"{self.site_url}/{LESSON_POST_TYPE}/{lesson.slug}/"

    def lesson_url(
        self,
        lesson_id: int,
        course_id: Optional[int] = None,
        lesson: Optional[ContentRow] = None,
    ) -> str:
        """
        Lesson link in the form {site}/{courses_page_slug}/{course_slug}/{lesson_id}/.

        Falls back to the lesson's own permalink when no owning course (or
        course slug) can be found.
        """
        if not course_id:
            course_ids = self.linker.course_ids_for(lesson_id)
            course_id = course_ids[0] if course_ids else None
        return self._lesson_link(lesson_id, course_id, lesson)

    def _lesson_link(
        self,
        lesson_id: int,
        course_id: Optional[int],
        lesson: Optional[ContentRow] = None,
    ) -> str:
        course = self.content.get_post(course_id) if course_id else None
        if course is None or not course.slug:
            if lesson is None:
                lesson = self.content.get_post(lesson_id)
            if lesson is None:
                return f"{self.site_url}/?p={lesson_id}"
            return self.lesson_permalink(lesson)

        return f"{self.site_url}/{self.courses_page_slug}/{course.slug}/{lesson_id}/"

    def format_course(self, course: ContentRow) -> Dict[str, Any]:
        item = {
            "id": course.id,
            "title": course.title,
            "excerpt": trim_words(course.excerpt or course.content),
            "link": self.course_permalink(course),
            "type": "course",
            "date": course.date,
            "author_id": course.author_id,
        }

        enrichment = self.enrich(course.id)
        if enrichment is not None:
            item["price"] = enrichment.price
            item["rating"] = enrichment.rating
            item["student_count"] = enrichment.student_count

        return item

    def format_lesson(self, lesson: ContentRow) -> Dict[str, Any]:
        course_ids = self.linker.course_ids_for(lesson.id)
        primary_course_id = course_ids[0] if course_ids else None

        return {
            "id": lesson.id,
            "title": lesson.title,
            "excerpt": trim_words(lesson.excerpt or lesson.content),
            "link": self._lesson_link(lesson.id, primary_course_id, lesson),
            "type": "lesson",
            "date": lesson.date,
            "author_id": lesson.author_id,
            "course_id": primary_course_id,
            "course_ids": course_ids,
        }

    def format_courses(self, courses: List[ContentRow]) -> List[Dict[str, Any]]:
        return [self.format_course(course) for course in courses]

    def format_lessons(self, lessons: List[ContentRow]) -> List[Dict[str, Any]]:
        return [self.format_lesson(lesson) for lesson in lessons]

    def enrich(self, course_id: int) -> Optional[CourseEnrichment]:
        """Best-effort enrichment; None when unavailable or failing."""
        if self.enricher is None:
            return None
        try:
            return self.enricher.enrich(course_id)
        except Exception as e:
            logger.warning(f"Course {course_id}: enrichment skipped: {e}")
            return None
