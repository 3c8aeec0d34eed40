"""
Course and lesson progress reporting for one learner (agent).
"""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from core.config import (
    COURSE_COMPLETION_THRESHOLD,
    LESSON_COMPLETION_PROGRESS,
    LMS_SETTINGS_OPTION,
    OPTIONS_TABLE,
    POSTS_TABLE,
    THRESHOLD_SETTING_KEY,
    USER_COURSES_TABLE,
    USER_LESSONS_TABLE,
    USERS_TABLE,
)
from core.database import Database, parse_row_id
from core.errors import BadRequestError, InternalError, NotFoundError
from models.content_models import (
    Agent,
    ContentRow,
    CourseProgressRecord,
    LessonProgressRecord,
    ProgressBuckets,
)
from services.search.formatter import ResultFormatter

logger = logging.getLogger(__name__)

STATUS_FILTERS = ("all", "completed", "ongoing")


def is_set(timestamp: Any) -> bool:
    """Host timestamps use 0 / empty for "not set"."""
    if timestamp in (None, ""):
        return False
    try:
        return int(float(timestamp)) != 0
    except (TypeError, ValueError):
        return True


def _optional_int(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    return int(value)


def setting_value(raw: str, key: str) -> Any:
    """
    Read one key from a stored settings option.

    WordPress keeps options PHP-serialized (a:2:{s:21:"certificate_threshold";s:2:"70";...});
    JSON-encoded values are accepted as well. Returns None when the key is absent.
    Malformed JSON raises ValueError.
    """
    text = str(raw).strip()
    if text.startswith("{"):
        settings = json.loads(text)
        return settings.get(key) if isinstance(settings, dict) else None

    match = re.search(
        r's:\d+:"' + re.escape(key) + r'";(?:i:(-?\d+)|d:(-?[0-9.]+)|s:\d+:"([^"]*)");',
        text,
    )
    if match is None:
        return None
    return next(group for group in match.groups() if group is not None)


class ProgressAggregator:
    """Buckets a learner's course and lesson progress into completed/ongoing."""

    def __init__(
        self,
        database: Database,
        formatter: ResultFormatter,
        default_threshold: int = COURSE_COMPLETION_THRESHOLD,
    ):
        self.db = database
        self.formatter = formatter
        self.default_threshold = default_threshold

    def aggregate(
        self,
        agent_id: Optional[str],
        status: str = "all",
        include_lessons: bool = True,
    ) -> Dict[str, Any]:
        """
        Build the progress report for one agent.

        Args:
            agent_id: Numeric user id, email or login
            status: "all", "completed" or "ongoing"; the other bucket is returned empty
            include_lessons: Whether lesson progress is reported

        Raises:
            BadRequestError: empty identifier or unknown status
            NotFoundError: identifier does not match a user
            InternalError: progress data could not be read
        """
        status = (status or "all").strip().lower()
        if status not in STATUS_FILTERS:
            raise BadRequestError(
                f"Invalid status '{status}'. Expected one of: {', '.join(STATUS_FILTERS)}",
                error_code="invalid_status",
            )

        agent = self.resolve_agent(agent_id)
        threshold = self.completion_threshold()

        try:
            course_buckets = self._bucket_courses(self.course_records(agent.id), threshold)
            lesson_buckets = ProgressBuckets()
            if include_lessons:
                lesson_buckets = self._bucket_lessons(self.lesson_records(agent.id))
        except Exception as e:
            logger.exception(f"Progress aggregation failed for agent {agent.id}")
            raise InternalError("Failed to aggregate agent progress", details=str(e)) from e

        summary = {
            "courses": {
                "completed": len(course_buckets.completed),
                "ongoing": len(course_buckets.ongoing),
            },
            "lessons": {
                "completed": len(lesson_buckets.completed),
                "ongoing": len(lesson_buckets.ongoing),
            },
        }

        return {
            "agent_id": agent.id,
            "status_filter": status,
            "course_threshold": threshold,
            "courses": self._filter(course_buckets, status),
            "lessons": self._filter(lesson_buckets, status),
            "summary": summary,
        }

    def resolve_agent(self, identifier: Optional[str]) -> Agent:
        """Resolve by numeric id, then email, then login; first match wins."""
        identifier = (identifier or "").strip()
        if not identifier:
            raise BadRequestError("agent_id is required", error_code="invalid_agent")

        lookups: List[Tuple[str, Any]] = []
        user_id = parse_row_id(identifier)
        if user_id is not None:
            lookups.append(("ID = ?", user_id))
        lookups.append(("LOWER(user_email) = LOWER(?)", identifier))
        lookups.append(("user_login = ?", identifier))

        for clause, value in lookups:
            row = self.db.execute_one(
                f"""
                SELECT ID, user_login, user_email, display_name
                FROM {USERS_TABLE}
                WHERE {clause}
                ORDER BY ID
                LIMIT 1
                """,
                (value,)
            )
            if row:
                return Agent(
                    id=int(row["ID"]),
                    login=row["user_login"] or "",
                    email=row["user_email"] or "",
                    display_name=row["display_name"] or "",
                )

        raise NotFoundError(f"Agent '{identifier}' not found", error_code="agent_not_found")

    def completion_threshold(self) -> int:
        """Course completion threshold from host settings, else the configured default."""
        try:
            if not self.db.table_exists(OPTIONS_TABLE):
                return self.default_threshold
            raw = self.db.execute_scalar(
                f"SELECT option_value FROM {OPTIONS_TABLE} WHERE option_name = ?",
                (LMS_SETTINGS_OPTION,)
            )
            if not raw:
                return self.default_threshold
            value = setting_value(raw, THRESHOLD_SETTING_KEY)
            if value in (None, ""):
                return self.default_threshold
            return int(float(value))
        except (ValueError, TypeError) as e:
            logger.warning(f"Ignoring malformed {LMS_SETTINGS_OPTION}: {e}")
            return self.default_threshold

    def course_records(self, user_id: int) -> List[CourseProgressRecord]:
        rows = self.db.execute(
            f"""
            SELECT uc.user_id, uc.course_id, uc.progress_percent, uc.current_lesson_id,
                   uc.start_time, uc.end_time, p.post_title, p.post_name
            FROM {USER_COURSES_TABLE} uc
            LEFT JOIN {POSTS_TABLE} p ON p.ID = uc.course_id
            WHERE uc.user_id = ?
            ORDER BY uc.start_time DESC, uc.course_id
            """,
            (user_id,)
        )
        return [
            CourseProgressRecord(
                user_id=int(row["user_id"]),
                course_id=int(row["course_id"]),
                progress_percent=int(row["progress_percent"] or 0),
                current_lesson_id=_optional_int(row["current_lesson_id"]),
                start_time=_optional_int(row["start_time"]),
                end_time=_optional_int(row["end_time"]),
                title=row["post_title"] or "",
                slug=row["post_name"] or "",
            )
            for row in rows
        ]

    def lesson_records(self, user_id: int) -> List[LessonProgressRecord]:
        rows = self.db.execute(
            f"""
            SELECT ul.user_id, ul.lesson_id, ul.course_id, ul.progress,
                   ul.start_time, ul.end_time,
                   l.post_title AS lesson_title, c.post_title AS course_title
            FROM {USER_LESSONS_TABLE} ul
            LEFT JOIN {POSTS_TABLE} l ON l.ID = ul.lesson_id
            LEFT JOIN {POSTS_TABLE} c ON c.ID = ul.course_id
            WHERE ul.user_id = ?
            ORDER BY ul.start_time DESC, ul.lesson_id
            """,
            (user_id,)
        )
        return [
            LessonProgressRecord(
                user_id=int(row["user_id"]),
                lesson_id=int(row["lesson_id"]),
                course_id=_optional_int(row["course_id"]) or None,
                progress=_optional_int(row["progress"]),
                start_time=_optional_int(row["start_time"]),
                end_time=_optional_int(row["end_time"]),
                title=row["lesson_title"] or "",
                course_title=row["course_title"] or "",
            )
            for row in rows
        ]

    def _bucket_courses(self, records: List[CourseProgressRecord], threshold: int) -> ProgressBuckets:
        buckets = ProgressBuckets()
        for record in records:
            item = {
                "course_id": record.course_id,
                "title": record.title,
                "link": self.formatter.course_permalink(
                    ContentRow(id=record.course_id, title=record.title, slug=record.slug)
                ),
                "progress_percent": record.progress_percent,
                "current_lesson_id": record.current_lesson_id,
                "start_time": record.start_time,
                "end_time": record.end_time,
            }
            if record.progress_percent >= threshold:
                buckets.completed.append(item)
            else:
                buckets.ongoing.append(item)
        return buckets

    def _bucket_lessons(self, records: List[LessonProgressRecord]) -> ProgressBuckets:
        # Lessons use a fixed 100% rule, not the course threshold
        buckets = ProgressBuckets()
        for record in records:
            item = {
                "lesson_id": record.lesson_id,
                "title": record.title,
                "link": self.formatter.lesson_url(record.lesson_id, record.course_id),
                "course_id": record.course_id,
                "course_title": record.course_title,
                "progress": record.progress,
                "start_time": record.start_time,
                "end_time": record.end_time,
            }
            if (record.progress or 0) >= LESSON_COMPLETION_PROGRESS or is_set(record.end_time):
                buckets.completed.append(item)
            else:
                buckets.ongoing.append(item)
        return buckets

    @staticmethod
    def _filter(buckets: ProgressBuckets, status: str) -> Dict[str, List[dict]]:
        if status == "completed":
            return {"completed": buckets.completed, "ongoing": []}
        if status == "ongoing":
            return {"completed": [], "ongoing": buckets.ongoing}
        return buckets.to_dict()
