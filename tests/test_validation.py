"""
Validation helpers, error responses and profile strength.
"""
import json

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

from backend.app.services.profile_strength import compute_profile_strength
from backend.app.utils.error_handlers import (
    ConflictError,
    DatabaseError,
    NotFoundError,
    ValidationError,
    create_error_response,
    get_error_message,
    handle_database_error,
)
from backend.app.utils.validation import (
    EMPLOYMENT_TYPES,
    NETWORKS,
    clean_string_list,
    validate_choice,
    validate_email,
    validate_integer_field,
    validate_password,
    validate_string_field,
    validate_username,
)


class TestEmailValidation:
    def test_valid_email(self):
        assert validate_email("test@example.com") == "test@example.com"
        assert validate_email("  USER@EXAMPLE.COM ") == "user@example.com"

    def test_invalid_email(self):
        with pytest.raises(HTTPException) as exc:
            validate_email("invalid")
        assert exc.value.status_code == 400
        assert "Invalid email format" in str(exc.value.detail)

    def test_email_too_long(self):
        with pytest.raises(HTTPException) as exc:
            validate_email("a" * 250 + "@test.com")
        assert "too long" in str(exc.value.detail).lower()

    def test_empty_email(self):
        with pytest.raises(HTTPException):
            validate_email("")


class TestPasswordAndUsername:
    def test_password_bounds(self):
        validate_password("123456")
        with pytest.raises(HTTPException):
            validate_password("12345")
        with pytest.raises(HTTPException):
            validate_password("x" * 129)

    def test_username_rules(self):
        assert validate_username("  ada_l.dev ") == "ada_l.dev"
        for bad in ("ab", "has space", "x" * 51, ""):
            with pytest.raises(HTTPException):
                validate_username(bad)


class TestFieldValidation:
    def test_optional_blank_string_is_none(self):
        assert validate_string_field("   ", "Bio", required=False) is None
        assert validate_string_field(None, "Bio", required=False) is None

    def test_required_string(self):
        with pytest.raises(HTTPException) as exc:
            validate_string_field("  ", "Title")
        assert "cannot be empty" in exc.value.detail
        with pytest.raises(HTTPException):
            validate_string_field(123, "Title")

    def test_integer_field(self):
        assert validate_integer_field("5", "Limit", min_value=1) == 5
        with pytest.raises(HTTPException):
            validate_integer_field("abc", "Limit")
        with pytest.raises(HTTPException):
            validate_integer_field(0, "Limit", min_value=1)

    def test_choice_returns_canonical_spelling(self):
        assert validate_choice("Full-Time", "employment type", EMPLOYMENT_TYPES) == "full-time"
        assert validate_choice(None, "network", NETWORKS) is None
        with pytest.raises(HTTPException):
            validate_choice(None, "network", NETWORKS, required=True)
        with pytest.raises(HTTPException) as exc:
            validate_choice("bitcoin", "network", NETWORKS)
        assert "Must be one of" in exc.value.detail

    def test_choice_case_sensitive(self):
        with pytest.raises(HTTPException):
            validate_choice("ETHEREUM", "network", NETWORKS, case_sensitive=True)


class TestStringLists:
    def test_clean_string_list(self):
        assert clean_string_list([" Python ", "python", "", "SQL"], "Skills") == ["Python", "SQL"]
        assert clean_string_list("Go, Rust,,go", "Skills") == ["Go", "Rust"]
        assert clean_string_list(None, "Skills") == []

    def test_clean_string_list_rejects_bad_input(self):
        with pytest.raises(HTTPException):
            clean_string_list([1, 2], "Skills")
        with pytest.raises(HTTPException):
            clean_string_list(["a", "b", "c"], "Skills", max_items=2)
        with pytest.raises(HTTPException):
            clean_string_list(["x" * 201], "Skills")


class TestErrorHelpers:
    def test_error_messages(self):
        assert get_error_message("already_applied") == "You have already applied to this job."
        assert get_error_message("no_such_key") == get_error_message("server_error")

    def test_error_response_envelope(self):
        response = create_error_response(404, "Job not found", details={"id": "x"})
        assert response.status_code == 404
        assert json.loads(response.body) == {"success": False, "error": "Job not found", "details": {"id": "x"}}

    def test_handle_database_error_maps_integrity_errors(self):
        err = handle_database_error(IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: users.email")))
        assert isinstance(err, ConflictError)
        assert err.status_code == 409

        err = handle_database_error(IntegrityError("INSERT", {}, Exception("FOREIGN KEY constraint failed")))
        assert isinstance(err, ValidationError)

        err = handle_database_error(OperationalError("SELECT", {}, Exception("database is locked")))
        assert err.status_code == 503

    def test_app_error_status_codes(self):
        assert NotFoundError("x").status_code == 404
        assert DatabaseError("x").status_code == 500


class TestProfileStrength:
    def test_empty_profile(self):
        assert compute_profile_strength({}) == 0

    def test_partial_profile(self):
        user = {"first_name": "Ada", "last_name": "L", "title": "Engineer", "skills": ["Python", "SQL"]}
        # 10 + 10 + 15 + round(20 * 2 / 5)
        assert compute_profile_strength(user) == 43

    def test_complete_profile_caps_at_100(self):
        user = {
            "first_name": "Ada",
            "last_name": "L",
            "title": "Engineer",
            "bio": "Builds things",
            "linkedin_url": "https://linkedin.com/in/ada",
            "profile_image_url": "https://img.example.com/ada.png",
            "wallet_address": "0xabc",
            "skills": ["a", "b", "c", "d", "e", "f", "g"],
        }
        assert compute_profile_strength(user) == 100

    def test_blank_values_do_not_count(self):
        assert compute_profile_strength({"first_name": "  ", "skills": ["", " "]}) == 0

    def test_skill_set_counts_toward_strength(self):
        assert compute_profile_strength({"skills": {"Python", "SQL", " "}}) == 8
