"""
Long-lived service objects shared by every request.

Built once at import; routes receive them through FastAPI dependencies so
tests can swap them with app.dependency_overrides.
"""
import logging
from typing import Optional

from core.config import (
    COURSE_CONTROLLER,
    ENABLE_COURSE_ENRICHMENT,
    HOST_COURSES_API_URL,
)
from core.database import Database, db
from core.host_client import create_host_client
from services.progress.progress_aggregator import ProgressAggregator
from services.search.collaborators import CourseController, MetaCourseEnricher
from services.search.course_controller import DatabaseCourseController, RemoteCourseController
from services.search.search_service import SearchService

logger = logging.getLogger(__name__)


def build_search_service(
    database: Database,
    controller_mode: str = COURSE_CONTROLLER,
    host_courses_url: Optional[str] = HOST_COURSES_API_URL,
    enable_enrichment: bool = ENABLE_COURSE_ENRICHMENT,
) -> SearchService:
    """Assemble the search service with whichever host capabilities are configured."""
    enricher = MetaCourseEnricher(database) if enable_enrichment else None
    service = SearchService(database, enricher=enricher)

    controller: Optional[CourseController] = None
    if controller_mode == "remote":
        client = create_host_client(host_courses_url)
        if client is None:
            logger.warning("COURSE_CONTROLLER=remote but HOST_COURSES_API_URL is not set")
        else:
            controller = RemoteCourseController(client)
    elif controller_mode == "database":
        controller = DatabaseCourseController(service.content, service.formatter)

    service.course_controller = controller
    return service


def build_progress_aggregator(database: Database, search: SearchService) -> ProgressAggregator:
    return ProgressAggregator(database, search.formatter)


search_service = build_search_service(db)
progress_aggregator = build_progress_aggregator(db, search_service)


def get_search_service() -> SearchService:
    return search_service


def get_progress_aggregator() -> ProgressAggregator:
    return progress_aggregator


def close_services() -> None:
    """Release HTTP connections held by the host course listing."""
    close = getattr(search_service.course_controller, "close", None)
    if close is not None:
        close()
