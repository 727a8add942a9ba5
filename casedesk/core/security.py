from __future__ import annotations

import re
from dataclasses import dataclass

PHONE_MAX_DIGITS = 11

_NON_DIGIT = re.compile(r"\D")
_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SPECIAL = re.compile(r"[^A-Za-z0-9]")

PROFILE_PASSWORD_HINT = "Use 8+ chars, one uppercase, one special; others lowercase."


@dataclass(frozen=True)
class PasswordRequirements:
    has_min_length: bool = False
    has_upper_case: bool = False
    has_numbers: bool = False
    has_special_char: bool = False

    @property
    def all_met(self) -> bool:
        return self.has_min_length and self.has_upper_case and self.has_numbers and self.has_special_char

    def checklist(self) -> list[tuple[str, bool]]:
        return [
            ("At least 10 characters", self.has_min_length),
            ("At least one uppercase letter", self.has_upper_case),
            ("At least one number", self.has_numbers),
            ("At least one special character (!@#$%^&*...)", self.has_special_char),
        ]


def validate_password(password: str) -> PasswordRequirements:
    """New-user password checklist. Advisory: the backend enforces its own policy."""
    pwd = password or ""
    return PasswordRequirements(
        has_min_length=len(pwd) >= 10,
        has_upper_case=bool(_UPPER.search(pwd)),
        has_numbers=bool(_DIGIT.search(pwd)),
        has_special_char=bool(_SPECIAL.search(pwd)),
    )


def profile_password_error(password: str) -> str:
    """
    Profile-edit password rule: 8+ chars, a special char, a lowercase char and
    exactly one uppercase char. Returns the hint to show, or "" when satisfied.
    """
    pwd = password or ""
    ok = (
        len(pwd) >= 8
        and bool(_SPECIAL.search(pwd))
        and bool(_LOWER.search(pwd))
        and len(_UPPER.findall(pwd)) == 1
    )
    return "" if ok else PROFILE_PASSWORD_HINT


def normalize_phone(value: str | None) -> str:
    """Digits only, first 11 kept."""
    return _NON_DIGIT.sub("", value or "")[:PHONE_MAX_DIGITS]
