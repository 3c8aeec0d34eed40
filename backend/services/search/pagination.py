"""
Sorting and pagination shared by the /courses and /search endpoints.
"""
import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from core.config import DEFAULT_PER_PAGE
from core.database import parse_row_id

DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%dT%H:%M:%S", "%Y-%m-%d")

Item = Dict[str, Any]


def parse_date(value: Any) -> datetime:
    """Parse a content date; anything unparseable is the oldest possible date."""
    if isinstance(value, datetime):
        return value
    if not value:
        return datetime.min
    text = str(value).strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return datetime.min


def _number(item: Item, key: str) -> float:
    try:
        return float(item.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


# sort key -> (item key function, descending)
SORT_ORDERS: Dict[str, Tuple[Callable[[Item], Any], bool]] = {
    "date_high": (lambda item: parse_date(item.get("date")), True),
    "newest": (lambda item: parse_date(item.get("date")), True),
    "date_low": (lambda item: parse_date(item.get("date")), False),
    "oldest": (lambda item: parse_date(item.get("date")), False),
    "price_high": (lambda item: _number(item, "price"), True),
    "price_low": (lambda item: _number(item, "price"), False),
    "rating": (lambda item: _number(item, "rating"), True),
    "popular": (lambda item: _number(item, "student_count"), True),
}


def is_known_sort(sort: Optional[str]) -> bool:
    return bool(sort) and sort in SORT_ORDERS


def sort_courses(courses: List[Item], sort: Optional[str]) -> List[Item]:
    """
    Return courses in the requested order.

    Unknown or empty sort keys keep the original order. Sorting is stable, so
    ties keep their original relative order.
    """
    if not is_known_sort(sort):
        return list(courses)
    key, descending = SORT_ORDERS[sort]
    return sorted(courses, key=key, reverse=descending)


def normalize_paging(per_page: Optional[int], page: Optional[int]) -> Tuple[int, int]:
    """Missing, zero or negative values fall back to the defaults."""
    per_page = per_page if per_page and per_page > 0 else DEFAULT_PER_PAGE
    page = page if page and page > 0 else 1
    return per_page, page


def page_offset(page: int, per_page: int) -> int:
    return per_page * (page - 1)


def page_count(total: int, per_page: int) -> int:
    if total <= 0:
        return 0
    return math.ceil(total / per_page)


def slice_page(items: List[Any], page: int, per_page: int) -> List[Any]:
    offset = page_offset(page, per_page)
    return items[offset:offset + per_page]


@dataclass
class ConcatenatedWindow:
    """One page over courses followed by lessons."""
    course_offset: int
    course_limit: int
    lesson_offset: int
    lesson_limit: int


def concatenated_window(total_courses: int, total_lessons: int, page: int, per_page: int) -> ConcatenatedWindow:
    """
    Cut a page out of the conceptual list [all courses..., all lessons...].

    Courses fill the page first and lessons take the remaining slots, e.g.
    3 courses and 5 lessons at 5 per page give 3+2 on page 1 and 0+3 on page 2.
    """
    start = page_offset(page, per_page)
    end = start + per_page

    course_limit = max(0, min(end, total_courses) - start)
    lesson_offset = max(0, start - total_courses)
    lesson_limit = max(0, min(end - total_courses, total_lessons) - lesson_offset)

    return ConcatenatedWindow(
        course_offset=start,
        course_limit=course_limit,
        lesson_offset=lesson_offset,
        lesson_limit=min(lesson_limit, per_page - course_limit),
    )


def attach_lessons(courses: List[Item], lessons: List[Item]) -> List[Item]:
    """
    Give every course a `lessons` list with the lessons it owns.

    Host-supplied ids may arrive as strings ("101").
    """
    for course in courses:
        course_id = parse_row_id(course.get("id"))
        course["lessons"] = [
            lesson for lesson in lessons
            if course_id is not None and course_id in (lesson.get("course_ids") or [])
        ]
    return courses


def empty_courses_page() -> Dict[str, Any]:
    return {"courses": [], "total": 0, "pages": 0}


def empty_search_page() -> Dict[str, Any]:
    return {"courses": [], "lessons": [], "total": 0, "pages": 0}
