"""
Implementations of the host's default course listing used by /courses when
no category filter is given.
"""
from typing import Any, Dict, Optional

from core.host_client import HostClient
from services.search.content_query import ContentQuery
from services.search.formatter import ResultFormatter
from services.search.pagination import (
    is_known_sort,
    page_count,
    page_offset,
    slice_page,
    sort_courses,
)


class DatabaseCourseController:
    """Lists published courses straight from the datastore."""

    def __init__(self, content_query: ContentQuery, formatter: ResultFormatter):
        self.content = content_query
        self.formatter = formatter

    def list_courses(
        self,
        search: Optional[str],
        per_page: int,
        page: int,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        if is_known_sort(sort):
            rows, total = self.content.search_courses(term=search)
            courses = sort_courses(self.formatter.format_courses(rows), sort)
            courses = slice_page(courses, page, per_page)
        else:
            rows, total = self.content.search_courses(
                term=search,
                limit=per_page,
                offset=page_offset(page, per_page),
            )
            courses = self.formatter.format_courses(rows)

        return {
            "courses": courses,
            "total": total,
            "pages": page_count(total, per_page),
        }


class RemoteCourseController:
    """Delegates the listing to the host's own REST endpoint."""

    def __init__(self, client: HostClient):
        self.client = client

    def list_courses(
        self,
        search: Optional[str],
        per_page: int,
        page: int,
        sort: Optional[str] = None,
    ) -> Dict[str, Any]:
        return self.client.get_courses({
            "s": search,
            "per_page": per_page,
            "page": page,
            "sort": sort,
        })

    def close(self) -> None:
        self.client.close()
