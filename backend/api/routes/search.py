"""
Combined course and lesson search route.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_search_service
from api.models.requests import SearchQuery
from api.models.responses import SearchResponse
from core.errors import to_http_exception
from services.search.search_service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/search", response_model=SearchResponse, response_model_exclude_unset=True)
async def combined_search(
    query: Annotated[SearchQuery, Query()],
    service: SearchService = Depends(get_search_service),
):
    """
    Search courses and lessons by term and/or category.

    Both arrays come from one page over all matching courses followed by all
    matching lessons; `total` counts both. Without `s` and `category` the
    result is empty.
    """
    try:
        return service.search(
            s=query.s,
            category=query.category,
            per_page=query.per_page,
            page=query.page,
            sort=query.sort,
        )
    except Exception as e:
        logger.exception("Search failed")
        raise to_http_exception(e)
