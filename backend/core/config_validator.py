"""
Configuration validation for the LMS search API.
Validates the datastore, required tables, settings and host endpoint on startup.
"""
import requests
from pathlib import Path
from typing import List, Dict, Any, Optional


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""
    pass


class ConfigValidator:
    """Validates system configuration before serving requests."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        # Run all checks
        self._validate_database()
        self._validate_config_values()
        self._validate_host_endpoint()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def _validate_database(self):
        """Check that the datastore is accessible and has the tables we read."""
        from core.config import (
            DB_PATH,
            POSTS_TABLE,
            POSTMETA_TABLE,
            TERMS_TABLE,
            TERM_TAXONOMY_TABLE,
            TERM_RELATIONSHIPS_TABLE,
            USERS_TABLE,
            USER_COURSES_TABLE,
            USER_LESSONS_TABLE,
            CURRICULUM_MATERIALS_TABLE,
            CURRICULUM_SECTIONS_TABLE,
        )
        from core.database import Database

        db_path = self.db_path or DB_PATH
        if not db_path.exists():
            self.errors.append(
                f"LMS database not found at {db_path}. "
                "Set LMS_DB_PATH to the host datastore."
            )
            return

        required_tables = [
            POSTS_TABLE,
            POSTMETA_TABLE,
            TERMS_TABLE,
            TERM_TAXONOMY_TABLE,
            TERM_RELATIONSHIPS_TABLE,
            USERS_TABLE,
            USER_COURSES_TABLE,
            USER_LESSONS_TABLE,
        ]
        optional_tables = [CURRICULUM_MATERIALS_TABLE, CURRICULUM_SECTIONS_TABLE]

        try:
            database = Database(db_path)

            for table in required_tables:
                if not database.table_exists(table):
                    self.errors.append(
                        f"Required database table missing: {table}. "
                        "Check TABLE_PREFIX."
                    )

            for table in optional_tables:
                if not database.table_exists(table):
                    self.warnings.append(
                        f"Curriculum table missing: {table}. "
                        "Lessons cannot be filtered by category; lesson ownership falls back to heuristics."
                    )

        except Exception as e:
            self.errors.append(f"Database connection error: {e}")

    def _validate_config_values(self):
        """Validate configuration value ranges."""
        from core.config import (
            COURSE_COMPLETION_THRESHOLD,
            DEFAULT_PER_PAGE,
            COURSE_CONTROLLER,
            HOST_COURSES_API_URL,
        )

        if not (0 <= COURSE_COMPLETION_THRESHOLD <= 100):
            self.errors.append(
                f"COURSE_COMPLETION_THRESHOLD ({COURSE_COMPLETION_THRESHOLD}) must be between 0 and 100"
            )

        if DEFAULT_PER_PAGE < 1:
            self.errors.append(f"DEFAULT_PER_PAGE ({DEFAULT_PER_PAGE}) must be positive")

        if COURSE_CONTROLLER not in ("database", "remote", "none"):
            self.errors.append(
                f"COURSE_CONTROLLER ({COURSE_CONTROLLER}) must be one of: database, remote, none"
            )
        elif COURSE_CONTROLLER == "remote" and not HOST_COURSES_API_URL:
            self.errors.append("COURSE_CONTROLLER=remote requires HOST_COURSES_API_URL")
        elif COURSE_CONTROLLER == "none":
            self.warnings.append(
                "No course controller configured: /courses without a category filter will fail"
            )

    def _validate_host_endpoint(self):
        """Check that the host course listing is reachable when it is used."""
        from core.config import COURSE_CONTROLLER, HOST_COURSES_API_URL

        if COURSE_CONTROLLER != "remote" or not HOST_COURSES_API_URL:
            return

        try:
            response = requests.get(HOST_COURSES_API_URL, params={"per_page": 1}, timeout=5)
            response.raise_for_status()
        except requests.exceptions.ConnectionError:
            self.warnings.append(
                f"Cannot connect to host course listing at {HOST_COURSES_API_URL}."
            )
        except requests.exceptions.Timeout:
            self.warnings.append(
                f"Host course listing timeout at {HOST_COURSES_API_URL}."
            )
        except Exception as e:
            self.warnings.append(f"Host course listing error: {e}")


# Global validator instance
config_validator = ConfigValidator()
