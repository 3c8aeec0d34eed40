"""
Course listing route.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_search_service
from api.models.requests import SearchQuery
from api.models.responses import CoursesResponse
from core.errors import SearchAPIError, to_http_exception
from services.search.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


# Host listings are passed through as-is, so the model only documents the shape
@router.get("/courses", response_model=None, responses={200: {"model": CoursesResponse}})
async def list_courses(
    query: Annotated[SearchQuery, Query()],
    service: SearchService = Depends(get_search_service),
):
    """
    List courses, optionally filtered by search term and category.

    With a category filter only courses in those categories are returned, and
    a course whose lessons match the search term is included even if the
    course text itself does not match. With a search term every course carries
    its matching lessons.
    """
    try:
        return service.list_courses(
            s=query.s,
            category=query.category,
            per_page=query.per_page,
            page=query.page,
            sort=query.sort,
        )
    except SearchAPIError as e:
        logger.error(f"Course listing failed: {e.message}")
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Course listing failed")
        raise to_http_exception(e)
