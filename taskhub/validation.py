"""
TaskHub Backend — Declarative Request Validation
==================================================

What:  Field rules expressed as data and a single evaluator that applies them.
How:   A rule set is an ordered tuple of FieldRule. Each FieldRule names a
       field in a request location ("body" or "param") and carries an ordered
       tuple of Check(predicate, message) pairs.

       Evaluation never stops at the first failure: every check of every
       present field runs, and all violations are reported together in one
       ValidationError (HTTP 400). An optional field is skipped only when it is
       absent; an explicit null is still checked.

Example:
    RULES = (
        FieldRule("body", "title", (
            Check(is_present, "Title is required"),
            Check(is_string, "Title must be a string"),
        )),
    )
    enforce({"body": {"title": ""}}, RULES)
    → ValidationError(errors=[{"field": "title", "location": "body",
                               "message": "Title is required"}])
"""

import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from email_validator import EmailNotValidError, validate_email

from taskhub.exceptions import ValidationError

Predicate = Callable[[Any], bool]

# Marker for "field not sent at all", distinct from an explicit null
MISSING = object()


@dataclass(frozen=True)
class Check:
    predicate: Predicate
    message: str


@dataclass(frozen=True)
class FieldRule:
    location: str
    field: str
    checks: Sequence[Check]
    optional: bool = False


# ── Predicates ────────────────────────────────────────────────────────────

def is_present(value: Any) -> bool:
    """Not missing, not null and not an empty/whitespace-only string."""
    if value is MISSING or value is None:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def length_between(min_length: int, max_length: int) -> Predicate:
    def predicate(value: Any) -> bool:
        return isinstance(value, str) and min_length <= len(value) <= max_length
    return predicate


def min_length(minimum: int) -> Predicate:
    def predicate(value: Any) -> bool:
        return isinstance(value, str) and len(value) >= minimum
    return predicate


def max_bytes(maximum: int) -> Predicate:
    """UTF-8 encoded size limit (bcrypt only reads the first 72 bytes)."""
    def predicate(value: Any) -> bool:
        return isinstance(value, str) and len(value.encode("utf-8")) <= maximum
    return predicate


def is_uuid(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return True


def is_email(value: Any) -> bool:
    if not isinstance(value, str):
        return False
    try:
        validate_email(value, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


# ── Evaluation ────────────────────────────────────────────────────────────

def collect_violations(
    sources: Mapping[str, Mapping[str, Any]],
    rules: Sequence[FieldRule],
) -> List[Dict[str, str]]:
    """Runs every rule against `sources` and returns all violations in rule order."""
    violations: List[Dict[str, str]] = []
    for rule in rules:
        value = sources.get(rule.location, {}).get(rule.field, MISSING)
        if rule.optional and value is MISSING:
            continue
        for check in rule.checks:
            if not check.predicate(value):
                violations.append(
                    {"field": rule.field, "location": rule.location, "message": check.message}
                )
    return violations


def enforce(
    sources: Mapping[str, Mapping[str, Any]],
    rules: Sequence[FieldRule],
) -> None:
    """Raises ValidationError listing every violation, or returns None."""
    violations = collect_violations(sources, rules)
    if violations:
        raise ValidationError(message="Validation failed", errors=violations)


# ── Rule Sets ─────────────────────────────────────────────────────────────

_TITLE_CHECKS = (
    Check(is_string, "Title must be a string"),
    Check(length_between(3, 100), "Title must be between 3 and 100 characters"),
)
_DESCRIPTION_RULE = FieldRule(
    "body", "description", (Check(is_string, "Description must be a string"),), optional=True
)
_TASK_ID_RULE = FieldRule("param", "id", (Check(is_uuid, "Invalid task ID"),))

CREATE_TASK_RULES = (
    FieldRule("body", "title", (Check(is_present, "Title is required"),) + _TITLE_CHECKS),
    _DESCRIPTION_RULE,
)

UPDATE_TASK_RULES = (
    _TASK_ID_RULE,
    FieldRule("body", "title", _TITLE_CHECKS, optional=True),
    _DESCRIPTION_RULE,
)

TASK_ID_RULES = (_TASK_ID_RULE,)

REGISTER_RULES = (
    FieldRule("body", "name", (
        Check(is_present, "Name is required"),
        Check(is_string, "Name must be a string"),
        Check(length_between(1, 100), "Name must be at most 100 characters"),
    )),
    FieldRule("body", "email", (
        Check(is_present, "Email is required"),
        Check(is_email, "Please provide a valid email"),
    )),
    FieldRule("body", "password", (
        Check(is_present, "Password is required"),
        Check(is_string, "Password must be a string"),
        Check(min_length(6), "Password must be at least 6 characters"),
        Check(max_bytes(72), "Password must be at most 72 bytes"),
    )),
)

LOGIN_RULES = (
    FieldRule("body", "email", (
        Check(is_present, "Email is required"),
        Check(is_string, "Email must be a string"),
    )),
    FieldRule("body", "password", (
        Check(is_present, "Password is required"),
        Check(is_string, "Password must be a string"),
    )),
)

REFRESH_RULES = (
    FieldRule("body", "refreshToken", (
        Check(is_present, "Refresh token is required"),
        Check(is_string, "Refresh token must be a string"),
    )),
)
