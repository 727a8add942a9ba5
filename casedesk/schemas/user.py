from __future__ import annotations

import datetime as dt

from pydantic import field_validator

from casedesk.schemas.common import ApiModel, empty_to_none, to_str_or_none


class Branch(ApiModel):
    branch_id: int
    branch_name: str


class User(ApiModel):
    user_id: int
    user_fname: str | None = None
    user_mname: str | None = None
    user_lname: str | None = None
    user_email: str | None = None
    user_phonenum: str | None = None
    user_role: str | None = None
    branch_id: int | None = None
    user_profile: str | None = None
    user_status: str | None = None
    user_date_created: dt.datetime | None = None
    user_last_updated_by: int | None = None

    @field_validator("user_phonenum", mode="before")
    @classmethod
    def _phone_as_text(cls, v):  # noqa: ANN001
        return to_str_or_none(v)

    @field_validator("branch_id", "user_last_updated_by", "user_date_created", mode="before")
    @classmethod
    def _blank_is_none(cls, v):  # noqa: ANN001
        return empty_to_none(v)

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.user_fname, self.user_mname, self.user_lname) if p)


class LawyerCaseSummary(ApiModel):
    """Row of /lawyers-with-case-counts (staff lawyer recommendation)."""

    user_id: int
    user_fname: str | None = None
    user_mname: str | None = None
    user_lname: str | None = None
    user_role: str | None = None
    user_profile: str | None = None
    specializations: str | None = None
    total_cases: int = 0
    completed_cases: int = 0
    dismissed_cases: int = 0

    @field_validator("total_cases", "completed_cases", "dismissed_cases", mode="before")
    @classmethod
    def _null_count_is_zero(cls, v):  # noqa: ANN001
        return v or 0
