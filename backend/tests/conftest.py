"""
Shared fixtures: a throwaway SQLite datastore seeded with a small catalogue.

Catalogue used by most tests:

    Categories (course taxonomy): 168 Vietnam, 169 Thailand, 170 Marketing
    Courses:  101 Intro to Go             [Vietnam]
              102 Vietnam Marketing Basics [Vietnam, Marketing]
              103 Thailand Travel Guide     [Thailand]
              104 Draft Marketing Course    (draft)
              105 Advanced Go               [Thailand]
    Lessons:  201 Go Variables -> 101, 202 Marketing Funnels -> 102,
              203 Street Food Marketing -> 103, 204 draft -> 102,
              205 Go Channels -> 105
    Users:    7 alice, 8 bob
"""
import pytest

from core.config import (
    COURSE_POST_TYPE,
    COURSE_TAXONOMY,
    CURRICULUM_MATERIALS_TABLE,
    CURRICULUM_SECTIONS_TABLE,
    LESSON_POST_TYPE,
    OPTIONS_TABLE,
    POSTMETA_TABLE,
    POSTS_TABLE,
    PRICE_META_KEY,
    RATING_META_KEY,
    STUDENTS_META_KEY,
    TERM_RELATIONSHIPS_TABLE,
    TERM_TAXONOMY_TABLE,
    TERMS_TABLE,
    USER_COURSES_TABLE,
    USER_LESSONS_TABLE,
    USERS_TABLE,
)
from core.database import Database
from services.progress.progress_aggregator import ProgressAggregator
from services.search.collaborators import MetaCourseEnricher
from services.search.search_service import SearchService

SITE_URL = "https://lms.example"


class Catalogue:
    """Writes host-shaped rows into the test datastore."""

    def __init__(self, database: Database):
        self.db = database

    def execute(self, sql, params=()):
        with self.db.get_connection() as conn:
            conn.execute(sql, params)

    def add_category(self, term_id, name, slug, taxonomy=COURSE_TAXONOMY):
        self.execute(
            f"INSERT INTO {TERMS_TABLE} (term_id, name, slug) VALUES (?, ?, ?)",
            (term_id, name, slug),
        )
        # term_taxonomy_id mirrors term_id to keep fixtures readable
        self.execute(
            f"INSERT INTO {TERM_TAXONOMY_TABLE} (term_taxonomy_id, term_id, taxonomy) VALUES (?, ?, ?)",
            (term_id, term_id, taxonomy),
        )

    def add_post(self, post_id, title, post_type, slug="", content="", excerpt="",
                 date="2024-01-01 00:00:00", status="publish", author=1):
        self.execute(
            f"""
            INSERT INTO {POSTS_TABLE}
                (ID, post_author, post_date, post_content, post_title, post_excerpt,
                 post_status, post_name, post_type)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (post_id, author, date, content, title, excerpt, status, slug, post_type),
        )

    def add_course(self, post_id, title, categories=(), **kwargs):
        self.add_post(post_id, title, COURSE_POST_TYPE, **kwargs)
        for term_id in categories:
            self.execute(
                f"INSERT INTO {TERM_RELATIONSHIPS_TABLE} (object_id, term_taxonomy_id) VALUES (?, ?)",
                (post_id, term_id),
            )

    def add_lesson(self, post_id, title, course_id=None, **kwargs):
        self.add_post(post_id, title, LESSON_POST_TYPE, **kwargs)
        if course_id is not None:
            self.link_lesson(post_id, course_id)

    def link_lesson(self, lesson_id, course_id):
        # One section per course, sharing the course id
        self.execute(
            f"INSERT OR IGNORE INTO {CURRICULUM_SECTIONS_TABLE} (id, title, course_id) VALUES (?, ?, ?)",
            (course_id, "Section", course_id),
        )
        self.execute(
            f"INSERT INTO {CURRICULUM_MATERIALS_TABLE} (post_id, post_type, section_id) VALUES (?, ?, ?)",
            (lesson_id, LESSON_POST_TYPE, course_id),
        )

    def add_meta(self, post_id, key, value):
        self.execute(
            f"INSERT INTO {POSTMETA_TABLE} (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
            (post_id, key, value),
        )

    def add_enrichment(self, course_id, price, rating, students):
        self.add_meta(course_id, PRICE_META_KEY, str(price))
        self.add_meta(course_id, RATING_META_KEY, str(rating))
        self.add_meta(course_id, STUDENTS_META_KEY, str(students))

    def add_user(self, user_id, login, email, display_name=""):
        self.execute(
            f"INSERT INTO {USERS_TABLE} (ID, user_login, user_email, display_name) VALUES (?, ?, ?, ?)",
            (user_id, login, email, display_name or login),
        )

    def add_course_progress(self, user_id, course_id, progress_percent,
                            current_lesson_id=0, start_time=1700000000, end_time=0):
        self.execute(
            f"""
            INSERT INTO {USER_COURSES_TABLE}
                (user_id, course_id, current_lesson_id, progress_percent, start_time, end_time)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, course_id, current_lesson_id, progress_percent, start_time, end_time),
        )

    def add_lesson_progress(self, user_id, lesson_id, course_id=0, progress=None,
                            start_time=1700000000, end_time=0):
        self.execute(
            f"""
            INSERT INTO {USER_LESSONS_TABLE}
                (user_id, course_id, lesson_id, progress, start_time, end_time)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (user_id, course_id, lesson_id, progress, start_time, end_time),
        )

    def set_option(self, name, value):
        self.execute(
            f"INSERT OR REPLACE INTO {OPTIONS_TABLE} (option_name, option_value) VALUES (?, ?)",
            (name, value),
        )

    def drop_curriculum(self):
        self.execute(f"DROP TABLE {CURRICULUM_MATERIALS_TABLE}")
        self.execute(f"DROP TABLE {CURRICULUM_SECTIONS_TABLE}")


def seed_catalogue(catalogue: Catalogue):
    catalogue.add_category(168, "Vietnam", "vietnam")
    catalogue.add_category(169, "Thailand", "thailand")
    catalogue.add_category(170, "Marketing", "marketing-101")
    catalogue.add_category(172, "Travel", "travel", taxonomy="post_tag")

    catalogue.add_course(
        101, "Intro to Go", categories=[168], slug="intro-to-go",
        content="<p>Learn the <strong>Go</strong> language from scratch.</p>",
        date="2024-03-01 10:00:00",
    )
    catalogue.add_course(
        102, "Vietnam Marketing Basics", categories=[168, 170], slug="vietnam-marketing-basics",
        excerpt="Digital campaigns for Vietnamese markets",
        date="2024-02-01 09:00:00",
    )
    catalogue.add_course(
        103, "Thailand Travel Guide", categories=[169], slug="thailand-travel-guide",
        content="Explore Thailand", date="2024-01-15 08:00:00",
    )
    catalogue.add_course(
        104, "Draft Marketing Course", categories=[168], slug="draft-marketing-course",
        status="draft", date="2024-04-01 00:00:00",
    )
    catalogue.add_course(
        105, "Advanced Go", categories=[169], slug="advanced-go",
        content="Concurrency patterns", date="2023-12-01 00:00:00",
    )

    catalogue.add_enrichment(101, 49, 4.5, 120)
    catalogue.add_enrichment(102, 19.99, 4.8, 300)
    catalogue.add_enrichment(103, 99, 3.9, 50)

    catalogue.add_lesson(
        201, "Go Variables", course_id=101, slug="go-variables",
        content="Variables and types", date="2024-03-02 00:00:00",
    )
    catalogue.add_lesson(
        202, "Marketing Funnels", course_id=102, slug="marketing-funnels",
        content="Build a funnel", date="2024-02-02 00:00:00",
    )
    catalogue.add_lesson(
        203, "Street Food Marketing", course_id=103, slug="street-food-marketing",
        content="Selling street food", date="2024-01-16 00:00:00",
    )
    catalogue.add_lesson(
        204, "Draft Marketing Lesson", course_id=102, slug="draft-marketing-lesson",
        status="draft", date="2024-04-02 00:00:00",
    )
    catalogue.add_lesson(
        205, "Go Channels", course_id=105, slug="go-channels",
        content="Channels", date="2023-12-02 00:00:00",
    )

    catalogue.add_user(7, "alice", "alice@example.com", "Alice")
    catalogue.add_user(8, "bob", "bob@example.com", "Bob")


@pytest.fixture
def database(tmp_path):
    database = Database(tmp_path / "lms.db")
    database.ensure_tables()
    return database


@pytest.fixture
def empty_catalogue(database):
    return Catalogue(database)


@pytest.fixture
def catalogue(empty_catalogue):
    seed_catalogue(empty_catalogue)
    return empty_catalogue


@pytest.fixture
def service(database, catalogue):
    return SearchService(database, enricher=MetaCourseEnricher(database), site_url=SITE_URL)


@pytest.fixture
def aggregator(database, service):
    return ProgressAggregator(database, service.formatter)
