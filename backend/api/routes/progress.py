"""
Agent progress route.
"""
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from api.dependencies import get_progress_aggregator
from api.models.requests import AgentProgressQuery
from api.models.responses import AgentProgressResponse
from core.errors import SearchAPIError, to_http_exception
from services.progress.progress_aggregator import ProgressAggregator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/agent-progress", response_model=AgentProgressResponse)
async def agent_progress(
    query: Annotated[AgentProgressQuery, Query()],
    aggregator: ProgressAggregator = Depends(get_progress_aggregator),
):
    """Completed and ongoing courses (and lessons) for one user."""
    try:
        return aggregator.aggregate(
            agent_id=query.agent_id,
            status=query.status,
            include_lessons=query.include_lessons,
        )
    except SearchAPIError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.exception("Agent progress failed")
        raise to_http_exception(e)
