"""
Configuration management for the LMS search API.
Loads configuration from environment variables and .env file.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the backend directory or project root
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

# Base paths
BASE_DIR = PROJECT_ROOT
DATA_DIR = BASE_DIR / "data"
SCHEMA_FILE = BACKEND_DIR / "db" / "schema.sql"
DB_PATH = Path(os.getenv("LMS_DB_PATH", str(DATA_DIR / "lms.db")))

# Ensure directories exist
DATA_DIR.mkdir(exist_ok=True)

# Host table layout
TABLE_PREFIX = os.getenv("TABLE_PREFIX", "wp_")
POSTS_TABLE = f"{TABLE_PREFIX}posts"
POSTMETA_TABLE = f"{TABLE_PREFIX}postmeta"
TERMS_TABLE = f"{TABLE_PREFIX}terms"
TERM_TAXONOMY_TABLE = f"{TABLE_PREFIX}term_taxonomy"
TERM_RELATIONSHIPS_TABLE = f"{TABLE_PREFIX}term_relationships"
USERS_TABLE = f"{TABLE_PREFIX}users"
OPTIONS_TABLE = f"{TABLE_PREFIX}options"
CURRICULUM_MATERIALS_TABLE = f"{TABLE_PREFIX}stm_lms_curriculum_materials"
CURRICULUM_SECTIONS_TABLE = f"{TABLE_PREFIX}stm_lms_curriculum_sections"
USER_COURSES_TABLE = f"{TABLE_PREFIX}stm_lms_user_courses"
USER_LESSONS_TABLE = f"{TABLE_PREFIX}stm_lms_user_lessons"

# Content types
COURSE_POST_TYPE = "stm-courses"
LESSON_POST_TYPE = "stm-lessons"
COURSE_TAXONOMY = "stm_lms_course_taxonomy"
PUBLISHED_STATUS = "publish"
CURRICULUM_META_KEY = "curriculum"

# Course enrichment meta keys
PRICE_META_KEY = "price"
RATING_META_KEY = "course_mark_average"
STUDENTS_META_KEY = "current_students"
ENABLE_COURSE_ENRICHMENT = os.getenv("ENABLE_COURSE_ENRICHMENT", "true").lower() == "true"

# Links
SITE_URL = os.getenv("SITE_URL", "http://localhost").rstrip("/")
COURSES_PAGE_SLUG = os.getenv("COURSES_PAGE_SLUG", "courses").strip("/")

# Result shaping
EXCERPT_WORD_LIMIT = 20
TITLE_MATCH_LIMIT = 5
DEFAULT_PER_PAGE = int(os.getenv("DEFAULT_PER_PAGE", "10"))

# Progress
COURSE_COMPLETION_THRESHOLD = int(os.getenv("COURSE_COMPLETION_THRESHOLD", "70"))
LESSON_COMPLETION_PROGRESS = 100
LMS_SETTINGS_OPTION = "stm_lms_settings"
THRESHOLD_SETTING_KEY = "certificate_threshold"

# Host course listing ("database", "remote" or "none")
COURSE_CONTROLLER = os.getenv("COURSE_CONTROLLER", "database").lower()
HOST_COURSES_API_URL = os.getenv("HOST_COURSES_API_URL", None)
HOST_API_TIMEOUT = float(os.getenv("HOST_API_TIMEOUT", "10"))

# API configuration
API_PREFIX = os.getenv("API_PREFIX", "/wp-json/masterstudy-lms/v2")
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "*")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",")]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
