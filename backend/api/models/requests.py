"""
Pydantic query-parameter models for API endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional


class SearchQuery(BaseModel):
    """Query parameters shared by /courses and /search."""
    s: Optional[str] = Field(default=None, description="Search term (searches in titles and content)")
    category: Optional[str] = Field(
        default=None,
        description="Category IDs, slugs or names, comma-separated (e.g. 168,Vietnam,thailand)",
    )
    per_page: int = Field(default=10, description="Number of results per page")
    page: int = Field(default=1, description="Page number")
    sort: Optional[str] = Field(
        default=None,
        description="Sort by: date_high, newest, date_low, oldest, price_high, price_low, rating, popular (courses only)",
    )


class AgentProgressQuery(BaseModel):
    """Query parameters for /agent-progress."""
    agent_id: Optional[str] = Field(default=None, description="User ID, email or login")
    status: str = Field(default="all", description="all, completed or ongoing")
    include_lessons: bool = Field(default=True, description="Include lesson progress")
