"""
TaskHub Backend — Declarative Validation Unit Tests
=====================================================

What:  Tests for the rule evaluator and the rule sets in taskhub.validation.
How:   Pure function calls; no app, no database.

What we test:
    ✅ Every violation is reported, in rule order (no bail-out)
    ✅ Optional fields are skipped only when absent
    ✅ Task, auth and id rule sets accept good input and reject bad input
    ✅ enforce() raises ValidationError carrying the full list
    ✅ Bodies accepted by a rule set always validate into the request model
"""

import uuid

import pytest

from taskhub.exceptions import ValidationError
from taskhub.schemas.auth import LoginRequest, RefreshRequest, RegisterRequest
from taskhub.schemas.task import TaskCreate, TaskUpdate
from taskhub.validation import (
    CREATE_TASK_RULES,
    LOGIN_RULES,
    REFRESH_RULES,
    REGISTER_RULES,
    TASK_ID_RULES,
    UPDATE_TASK_RULES,
    Check,
    FieldRule,
    collect_violations,
    enforce,
    is_email,
    is_present,
    is_uuid,
    length_between,
    max_bytes,
)


def messages(violations):
    return [v["message"] for v in violations]


class TestPredicates:

    def test_is_present(self):
        assert is_present("x")
        assert is_present(0)
        assert not is_present(None)
        assert not is_present("   ")

    def test_length_between_rejects_non_strings(self):
        check = length_between(3, 5)
        assert check("abc")
        assert check("abcde")
        assert not check("ab")
        assert not check("abcdef")
        assert not check(12345)

    def test_max_bytes_counts_utf8_bytes(self):
        """Four 'é' are 8 bytes, not 4 characters."""
        assert max_bytes(8)("éééé")
        assert not max_bytes(7)("éééé")

    def test_is_uuid(self):
        assert is_uuid(str(uuid.uuid4()))
        assert not is_uuid("not-a-uuid")
        assert not is_uuid(123)

    def test_is_email(self):
        assert is_email("someone@example.com")
        assert not is_email("someone@")
        assert not is_email(None)


class TestCollectViolations:

    def test_all_checks_run_without_bail_out(self):
        """A single field failing several checks yields one violation per check."""
        rules = (
            FieldRule("body", "code", (
                Check(is_present, "Code is required"),
                Check(lambda v: isinstance(v, str), "Code must be a string"),
                Check(length_between(2, 4), "Code must be 2-4 characters"),
            )),
        )
        violations = collect_violations({"body": {}}, rules)
        assert messages(violations) == [
            "Code is required",
            "Code must be a string",
            "Code must be 2-4 characters",
        ]

    def test_violations_across_fields_keep_rule_order(self):
        violations = collect_violations(
            {"body": {"name": "", "email": "bad", "password": "123"}}, REGISTER_RULES
        )
        fields = [v["field"] for v in violations]
        assert fields == sorted(fields, key=["name", "email", "password"].index)
        assert "Name is required" in messages(violations)
        assert "Please provide a valid email" in messages(violations)
        assert "Password must be at least 6 characters" in messages(violations)

    def test_optional_field_absent_is_skipped(self):
        violations = collect_violations({"body": {"title": "Valid title"}}, CREATE_TASK_RULES)
        assert violations == []

    def test_optional_field_explicit_null_is_checked(self):
        violations = collect_violations(
            {"body": {"title": "Valid title", "description": None}}, CREATE_TASK_RULES
        )
        assert messages(violations) == ["Description must be a string"]

    def test_violation_shape(self):
        violations = collect_violations({"param": {"id": "nope"}}, TASK_ID_RULES)
        assert violations == [{"field": "id", "location": "param", "message": "Invalid task ID"}]


class TestTaskRules:

    def test_create_missing_title(self):
        violations = collect_violations({"body": {}}, CREATE_TASK_RULES)
        assert "Title is required" in messages(violations)

    @pytest.mark.parametrize("title", ["ab", "x" * 101])
    def test_create_title_length_bounds(self, title):
        violations = collect_violations({"body": {"title": title}}, CREATE_TASK_RULES)
        assert messages(violations) == ["Title must be between 3 and 100 characters"]

    @pytest.mark.parametrize("title", ["abc", "x" * 100])
    def test_create_title_length_accepts_bounds(self, title):
        assert collect_violations({"body": {"title": title}}, CREATE_TASK_RULES) == []

    def test_create_title_wrong_type(self):
        violations = collect_violations({"body": {"title": 42}}, CREATE_TASK_RULES)
        assert "Title must be a string" in messages(violations)

    def test_update_reports_id_and_body_together(self):
        violations = collect_violations(
            {"param": {"id": "bad"}, "body": {"title": "x", "description": 5}},
            UPDATE_TASK_RULES,
        )
        assert messages(violations) == [
            "Invalid task ID",
            "Title must be between 3 and 100 characters",
            "Description must be a string",
        ]

    def test_update_with_empty_body_is_valid(self):
        violations = collect_violations(
            {"param": {"id": str(uuid.uuid4())}, "body": {}}, UPDATE_TASK_RULES
        )
        assert violations == []


class TestAuthRules:

    def test_register_valid(self):
        body = {"name": "Ada", "email": "ada@example.com", "password": "secret1"}
        assert collect_violations({"body": body}, REGISTER_RULES) == []

    def test_register_password_over_72_bytes(self):
        body = {"name": "Ada", "email": "ada@example.com", "password": "p" * 73}
        violations = collect_violations({"body": body}, REGISTER_RULES)
        assert messages(violations) == ["Password must be at most 72 bytes"]

    def test_login_requires_both_fields(self):
        violations = collect_violations({"body": {}}, LOGIN_RULES)
        assert {"Email is required", "Password is required"} <= set(messages(violations))

    def test_refresh_requires_token(self):
        violations = collect_violations({"body": {"refreshToken": ""}}, REFRESH_RULES)
        assert messages(violations) == ["Refresh token is required"]


class TestEnforce:

    def test_enforce_passes_silently(self):
        assert enforce({"body": {"title": "Fine"}}, CREATE_TASK_RULES) is None

    def test_enforce_raises_with_all_errors(self):
        with pytest.raises(ValidationError) as exc_info:
            enforce({"body": {"title": 1, "description": 2}}, CREATE_TASK_RULES)

        exc = exc_info.value
        assert exc.status_code == 400
        assert exc.message == "Validation failed"
        assert len(exc.errors) == 3


class TestRulesAgreeWithModels:
    """A body the rules accept must always validate into its request model."""

    @pytest.mark.parametrize(
        "rules, model, body",
        [
            (CREATE_TASK_RULES, TaskCreate, {"title": "abc"}),
            (CREATE_TASK_RULES, TaskCreate, {"title": "t" * 100, "description": ""}),
            (UPDATE_TASK_RULES, TaskUpdate, {"title": "u" * 100}),
            (UPDATE_TASK_RULES, TaskUpdate, {}),
            (REGISTER_RULES, RegisterRequest,
             {"name": "A", "email": "a@x.com", "password": "é" * 36}),
            (LOGIN_RULES, LoginRequest, {"email": "not-checked-here", "password": "x"}),
            (REFRESH_RULES, RefreshRequest, {"refreshToken": "abc"}),
        ],
    )
    def test_accepted_body_validates(self, rules, model, body):
        sources = {"body": body, "param": {"id": str(uuid.uuid4())}}
        assert collect_violations(sources, rules) == []

        model.model_validate(body)
