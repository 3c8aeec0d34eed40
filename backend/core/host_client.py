"""
HTTP client for the host LMS's own REST endpoints.
"""
import httpx
from typing import Any, Dict, Optional
from core.config import HOST_API_TIMEOUT


class HostAPIError(Exception):
    """The host endpoint failed or returned something unusable."""
    pass


class HostClient:
    """Client for calling the host's default course listing."""

    def __init__(self, courses_url: str, timeout: float = HOST_API_TIMEOUT):
        self.courses_url = courses_url
        self.client = httpx.Client(timeout=timeout)

    def get_courses(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch one page of the host's course listing.

        Returns:
            {
                "courses": List[dict],
                "total": int,
                "pages": int
            }
        """
        query = {key: value for key, value in params.items() if value not in (None, "")}

        try:
            response = self.client.get(self.courses_url, params=query)
            response.raise_for_status()
            result = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise HostAPIError(f"Host course listing error: {str(e)}") from e

        if not isinstance(result, dict) or not isinstance(result.get("courses"), list):
            raise HostAPIError("Host course listing returned an unexpected payload")

        return {
            "courses": result["courses"],
            "total": int(result.get("total") or 0),
            "pages": int(result.get("pages") or 0),
        }

    def close(self) -> None:
        self.client.close()


def create_host_client(courses_url: Optional[str]) -> Optional[HostClient]:
    if not courses_url:
        return None
    return HostClient(courses_url)
