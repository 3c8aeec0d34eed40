"""
Tests for the combined search and the course listing.
"""
from unittest.mock import Mock, patch

import pytest

from core.errors import DependencyMissingError
from services.search.course_controller import DatabaseCourseController
from services.search.search_service import SearchService, clean_term


def ids(items):
    return [item["id"] for item in items]


class TestCleanTerm:
    """Test search term normalization."""

    def test_blank_terms_are_none(self):
        assert clean_term(None) is None
        assert clean_term("   ") is None

    def test_term_is_trimmed(self):
        assert clean_term("  go ") == "go"


class TestSearch:
    """Test /search semantics."""

    def test_no_term_and_no_category_is_empty(self, service):
        assert service.search() == {"courses": [], "lessons": [], "total": 0, "pages": 0}
        assert service.search(s="   ", category=" , ")["total"] == 0

    def test_term_only(self, service):
        result = service.search(s="marketing")

        assert ids(result["courses"]) == [102]
        assert ids(result["lessons"]) == [202, 203]
        assert result["total"] == 3
        assert result["pages"] == 1

    def test_term_and_category(self, service):
        result = service.search(s="marketing", category="vietnam")

        assert ids(result["courses"]) == [102]
        assert ids(result["lessons"]) == [202]
        assert result["total"] == 2

    def test_category_only(self, service):
        result = service.search(category="Thailand")

        assert ids(result["courses"]) == [103, 105]
        assert ids(result["lessons"]) == [203, 205]
        assert result["total"] == 4

    def test_lessons_belong_to_requested_categories(self, service):
        result = service.search(s="o", category="thailand")

        assert result["lessons"]
        for lesson in result["lessons"]:
            assert set(lesson["course_ids"]) & {103, 105}

    def test_unresolvable_category_matches_nothing(self, service):
        result = service.search(s="marketing", category="nowhere")
        assert result == {"courses": [], "lessons": [], "total": 0, "pages": 0}

    def test_unresolvable_tokens_are_ignored(self, service):
        result = service.search(s="marketing", category="nowhere,vietnam")
        assert ids(result["courses"]) == [102]
        assert ids(result["lessons"]) == [202]

    def test_sort_applies_to_courses(self, service):
        result = service.search(category="vietnam,thailand", sort="price_low")
        assert ids(result["courses"]) == [105, 102, 101, 103]

    def test_enrichment_fields_only_when_available(self, service):
        result = service.search(category="thailand")
        by_id = {course["id"]: course for course in result["courses"]}

        assert by_id[103]["price"] == 99.0
        assert by_id[103]["student_count"] == 50
        assert "price" not in by_id[105]

    def test_pages_count_courses_and_lessons(self, database, empty_catalogue):
        for i in range(3):
            empty_catalogue.add_course(10 + i, f"Zebra course {i}", slug=f"zebra-{i}",
                                       date=f"2024-01-0{i + 1} 00:00:00")
        for i in range(5):
            empty_catalogue.add_lesson(20 + i, f"Zebra lesson {i}", slug=f"zebra-lesson-{i}",
                                       date=f"2024-02-0{i + 1} 00:00:00")
        service = SearchService(database)

        first = service.search(s="zebra", per_page=5, page=1)
        second = service.search(s="zebra", per_page=5, page=2)
        third = service.search(s="zebra", per_page=5, page=3)

        assert ids(first["courses"]) == [12, 11, 10]
        assert ids(first["lessons"]) == [24, 23]
        assert ids(second["courses"]) == []
        assert ids(second["lessons"]) == [22, 21, 20]
        assert third["courses"] == [] and third["lessons"] == []
        for result in (first, second, third):
            assert result["total"] == 8
            assert result["pages"] == 2

    def test_invalid_paging_uses_defaults(self, service):
        result = service.search(s="marketing", per_page=0, page=-1)
        assert result["total"] == 3
        assert len(result["courses"]) + len(result["lessons"]) == 3


class TestListCoursesByCategory:
    """Test /courses with a category filter."""

    def test_category_without_term(self, service):
        result = service.list_courses(category="vietnam")

        assert ids(result["courses"]) == [101, 102]
        assert result["total"] == 2
        assert result["pages"] == 1
        assert all("lessons" not in course for course in result["courses"])

    def test_course_found_through_its_lesson(self, service):
        """Intro to Go does not mention variables, its lesson does."""
        result = service.list_courses(s="variables", category="vietnam")

        assert ids(result["courses"]) == [101]
        assert ids(result["courses"][0]["lessons"]) == [201]
        assert result["total"] == 1

    def test_direct_match_carries_its_lessons(self, service):
        result = service.list_courses(s="marketing", category="vietnam")

        assert ids(result["courses"]) == [102]
        assert ids(result["courses"][0]["lessons"]) == [202]

    def test_matching_lesson_outside_category_is_ignored(self, service):
        result = service.list_courses(s="funnel", category="thailand")
        assert result == {"courses": [], "total": 0, "pages": 0}

    def test_unresolvable_category(self, service):
        assert service.list_courses(category="nowhere") == {"courses": [], "total": 0, "pages": 0}

    def test_sort(self, service):
        result = service.list_courses(category="vietnam,thailand", sort="rating")
        assert ids(result["courses"]) == [102, 101, 103, 105]

    def test_large_page_size_is_honored(self, service):
        result = service.list_courses(category="vietnam", per_page=200)

        assert ids(result["courses"]) == [101, 102]
        assert result["pages"] == 1

    def test_pagination(self, service):
        result = service.list_courses(category="vietnam", per_page=1, page=2)

        assert ids(result["courses"]) == [102]
        assert result["total"] == 2
        assert result["pages"] == 2


class TestListCoursesWithController:
    """Test /courses without a category filter."""

    def test_missing_controller(self, service):
        service.course_controller = None
        with pytest.raises(DependencyMissingError) as excinfo:
            service.list_courses(s="go")
        assert excinfo.value.error_code == "controller_not_found"
        assert excinfo.value.status_code == 500

    def test_controller_response_gets_matching_lessons(self, service):
        controller = Mock()
        controller.list_courses.return_value = {
            "courses": [{"id": 101, "title": "Intro to Go"}, {"id": 103, "title": "Thailand Travel Guide"}],
            "total": 2,
            "pages": 1,
        }
        service.course_controller = controller

        result = service.list_courses(s="variables")

        controller.list_courses.assert_called_once_with("variables", 10, 1, None)
        assert ids(result["courses"][0]["lessons"]) == [201]
        assert result["courses"][1]["lessons"] == []

    def test_controller_response_without_term_is_untouched(self, service):
        controller = Mock()
        controller.list_courses.return_value = {"courses": [{"id": 101}], "total": 1, "pages": 1}
        service.course_controller = controller

        result = service.list_courses()

        assert result == {"courses": [{"id": 101}], "total": 1, "pages": 1}

    def test_database_controller(self, service):
        service.course_controller = DatabaseCourseController(service.content, service.formatter)

        result = service.list_courses(s="marketing")

        assert ids(result["courses"]) == [102]
        assert ids(result["courses"][0]["lessons"]) == [202]
        assert result["total"] == 1

    def test_database_controller_sorted(self, service):
        service.course_controller = DatabaseCourseController(service.content, service.formatter)

        result = service.list_courses(sort="price_high", per_page=2, page=1)

        assert ids(result["courses"]) == [103, 101]
        assert result["total"] == 4
        assert result["pages"] == 2

    def test_graft_formats_only_lessons_of_listed_courses(self, service):
        controller = Mock()
        controller.list_courses.return_value = {"courses": [{"id": 102}], "total": 1, "pages": 1}
        service.course_controller = controller

        with patch.object(
            service.formatter, "format_lessons", wraps=service.formatter.format_lessons
        ) as format_lessons:
            result = service.list_courses(s="marketing")

        formatted = format_lessons.call_args[0][0]
        assert [row.id for row in formatted] == [202]
        assert ids(result["courses"][0]["lessons"]) == [202]

    def test_graft_matches_string_course_ids(self, service):
        controller = Mock()
        controller.list_courses.return_value = {"courses": [{"id": "101"}], "total": 1, "pages": 1}
        service.course_controller = controller

        result = service.list_courses(s="variables")

        assert ids(result["courses"][0]["lessons"]) == [201]

    def test_graft_without_curriculum_tables(self, service, catalogue):
        catalogue.drop_curriculum()
        catalogue.add_meta(101, "curriculum", "201")
        controller = Mock()
        controller.list_courses.return_value = {"courses": [{"id": 101}], "total": 1, "pages": 1}
        service.course_controller = controller

        result = service.list_courses(s="variables")

        assert ids(result["courses"][0]["lessons"]) == [201]

    def test_host_items_keep_their_fields(self, service):
        controller = Mock()
        controller.list_courses.return_value = {
            "courses": [{"id": 101, "title": "Intro to Go", "image": "img.png", "students": 5}],
            "total": 1,
            "pages": 1,
        }
        service.course_controller = controller

        course = service.list_courses(s="variables")["courses"][0]

        assert course["image"] == "img.png"
        assert course["students"] == 5
        assert "link" not in course
