"""
Pydantic response models for API endpoints.

Course enrichment fields are optional and left out of the JSON when a course
has no such data (routes serialize with response_model_exclude_unset).
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class LessonItem(BaseModel):
    """Lesson search result."""
    id: int
    title: str
    excerpt: str = ""
    link: str
    type: str = "lesson"
    date: str = ""
    author_id: int = 0
    course_id: Optional[int] = Field(default=None, description="Primary owning course")
    course_ids: List[int] = Field(default_factory=list, description="All resolved owning courses")


class CourseItem(BaseModel):
    """Course search result."""
    id: int
    title: str
    excerpt: str = ""
    link: str
    type: str = "course"
    date: str = ""
    author_id: int = 0
    price: Optional[float] = None
    rating: Optional[float] = None
    student_count: Optional[int] = None
    lessons: Optional[List[LessonItem]] = Field(
        default=None,
        description="Lessons matching the search term (present only when a term is given)",
    )


class CoursesResponse(BaseModel):
    """Response model for /courses (host listings may add fields of their own)."""
    courses: List[CourseItem]
    total: int
    pages: int


class SearchResponse(BaseModel):
    """Response model for /search."""
    courses: List[CourseItem]
    lessons: List[LessonItem]
    total: int
    pages: int


class CourseProgressItem(BaseModel):
    course_id: int
    title: str
    link: str
    progress_percent: int
    current_lesson_id: Optional[int] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None


class LessonProgressItem(BaseModel):
    lesson_id: int
    title: str
    link: str
    course_id: Optional[int] = None
    course_title: str = ""
    progress: Optional[int] = None
    start_time: Optional[int] = None
    end_time: Optional[int] = None


class CourseBuckets(BaseModel):
    completed: List[CourseProgressItem] = []
    ongoing: List[CourseProgressItem] = []


class LessonBuckets(BaseModel):
    completed: List[LessonProgressItem] = []
    ongoing: List[LessonProgressItem] = []


class BucketCounts(BaseModel):
    completed: int = 0
    ongoing: int = 0


class ProgressSummary(BaseModel):
    courses: BucketCounts
    lessons: BucketCounts


class AgentProgressResponse(BaseModel):
    """Response model for /agent-progress."""
    agent_id: int
    status_filter: str
    course_threshold: int
    courses: CourseBuckets
    lessons: LessonBuckets
    summary: ProgressSummary
