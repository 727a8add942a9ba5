import pytest

from casedesk.core.permissions import Capability, can, parse_role
from casedesk.core.security import (
    PROFILE_PASSWORD_HINT,
    normalize_phone,
    profile_password_error,
    validate_password,
)
from casedesk.models.enums import UserRole


def test_password_checklist_all_met():
    req = validate_password("Abcdefghi1!")
    assert req.has_min_length and req.has_upper_case and req.has_numbers and req.has_special_char
    assert req.all_met


def test_password_checklist_reports_each_gap():
    req = validate_password("abcdefghij")
    assert req.has_min_length
    assert not req.has_upper_case
    assert not req.has_numbers
    assert not req.has_special_char
    assert not req.all_met


def test_password_checklist_length_is_ten():
    assert not validate_password("Abcdefg1!").has_min_length
    assert validate_password("Abcdefgh1!").has_min_length


def test_password_checklist_empty():
    assert validate_password("").all_met is False
    assert [label for label, ok in validate_password("").checklist() if ok] == []


def test_phone_strips_non_digits_and_truncates():
    assert normalize_phone("12a34b567890123") == "12345678901"


def test_phone_is_idempotent():
    once = normalize_phone("+63 (917) 123-4567 ext 89")
    assert normalize_phone(once) == once
    assert once.isdigit() and len(once) <= 11


def test_phone_empty():
    assert normalize_phone(None) == ""
    assert normalize_phone("abc") == ""


@pytest.mark.parametrize(
    "password,ok",
    [
        ("Password!", True),
        ("password!", False),  # no uppercase
        ("PassWord!", False),  # two uppercase
        ("Passwor!", True),
        ("Passwo!", False),  # too short
        ("Password1", False),  # no special
    ],
)
def test_profile_password_rule(password, ok):
    assert profile_password_error(password) == ("" if ok else PROFILE_PASSWORD_HINT)


def test_unknown_role_has_no_capabilities():
    assert parse_role("Janitor") is None
    assert not can("Janitor", Capability.VIEW_ALL_CASES)
    assert not can(None, Capability.ACCESS_CASES_PAGE)


def test_only_admin_and_lawyer_reach_cases_page():
    allowed = {r for r in UserRole if can(r, Capability.ACCESS_CASES_PAGE)}
    assert allowed == {UserRole.ADMIN, UserRole.LAWYER}


def test_admin_label():
    assert UserRole.ADMIN.label == "Super Lawyer"
    assert UserRole.STAFF.label == "Staff"
