"""
Data models for LMS content, categories and learner progress.
"""
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional


@dataclass
class Category:
    """Course taxonomy term"""
    term_id: int
    slug: str
    name: str


@dataclass
class ContentRow:
    """A published course or lesson as stored in the posts table"""
    id: int
    title: str
    content: str = ""
    excerpt: str = ""
    date: str = ""
    author_id: int = 0
    slug: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ContentRow":
        # sqlite3.Row uses bracket access; post_name is not selected by every query
        keys = row.keys()

        def column(name: str, default: Any = "") -> Any:
            if name not in keys or row[name] is None:
                return default
            return row[name]

        return cls(
            id=int(row["ID"]),
            title=column("post_title"),
            content=column("post_content"),
            excerpt=column("post_excerpt"),
            date=str(column("post_date")),
            author_id=int(column("post_author", 0)),
            slug=column("post_name"),
        )


@dataclass
class CourseEnrichment:
    """Optional commercial data for a course"""
    price: float = 0.0
    rating: float = 0.0
    student_count: int = 0


@dataclass
class Agent:
    """A learner whose progress is being reported"""
    id: int
    login: str = ""
    email: str = ""
    display_name: str = ""


@dataclass
class CourseProgressRecord:
    """One (user, course) enrollment row"""
    user_id: int
    course_id: int
    progress_percent: int = 0
    current_lesson_id: Optional[int] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None

    # Joined content
    title: str = ""
    slug: str = ""


@dataclass
class LessonProgressRecord:
    """One (user, lesson) interaction row"""
    user_id: int
    lesson_id: int
    course_id: Optional[int] = None
    progress: Optional[int] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None

    # Joined content
    title: str = ""
    course_title: str = ""


@dataclass
class ProgressBuckets:
    """Completed/ongoing split of progress items"""
    completed: List[dict] = field(default_factory=list)
    ongoing: List[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"completed": self.completed, "ongoing": self.ongoing}
