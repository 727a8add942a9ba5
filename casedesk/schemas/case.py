from __future__ import annotations

import datetime as dt
import json
import logging
from decimal import Decimal
from typing import Any

from pydantic import Field, ValidationError, field_serializer, field_validator

from casedesk.schemas.common import ApiModel, empty_to_none, to_str_or_none

logger = logging.getLogger(__name__)


class CaseTag(ApiModel):
    ctag_id: int
    ctag_name: str | None = None


class Client(ApiModel):
    client_id: int
    client_fullname: str | None = None


class CaseCategory(ApiModel):
    cc_id: int
    cc_name: str | None = None


class CaseCategoryType(ApiModel):
    ct_id: int
    ct_name: str | None = None
    cc_id: int | None = None


class LawyerSpecialization(ApiModel):
    """A lawyer offered for cases of one category."""

    user_id: int
    user_fname: str | None = None
    user_mname: str | None = None
    user_lname: str | None = None
    cc_id: int | None = None

    @property
    def full_name(self) -> str:
        return " ".join(p for p in (self.user_fname, self.user_mname, self.user_lname) if p)


def _maybe_json(raw: Any) -> tuple[bool, Any]:
    if not isinstance(raw, str):
        return True, raw
    try:
        return True, json.loads(raw)
    except ValueError:
        return False, None


def parse_tag_list(raw: Any) -> list[CaseTag]:
    """Tolerant: invalid JSON, non-lists and malformed entries yield nothing."""
    if raw is None or raw == "":
        return []
    ok, value = _maybe_json(raw)
    if not ok or not isinstance(value, list):
        return []
    tags: list[CaseTag] = []
    for item in value:
        if isinstance(item, CaseTag):
            tags.append(item)
            continue
        try:
            tags.append(CaseTag.model_validate(item))
        except ValidationError:
            logger.debug("Skipping malformed case tag: %r", item)
    return tags


def parse_active_tag_id(raw: Any) -> int | None:
    """Current tag arrives as an object, a JSON string of one, or nothing. Unparseable means unset."""
    if isinstance(raw, CaseTag):
        return raw.ctag_id
    ok, value = _maybe_json(raw)
    if not ok or not isinstance(value, dict):
        return None
    try:
        return int(value.get("ctag_id"))
    except (TypeError, ValueError):
        return None


class Case(ApiModel):
    """
    A case as served by /cases.

    Tags are held once: ``tags`` (the case's candidate list, in order) and
    ``active_tag_id``. The wire pair ``case_tag`` / ``case_tag_list`` is parsed
    on input and rebuilt by ``to_payload`` on output.
    """

    case_id: int
    client_id: int | None = None
    cc_id: int | None = None
    ct_id: int | None = None
    user_id: int | None = None
    assigned_by: int | None = None
    case_status: str | None = None
    case_remarks: str | None = None
    case_cabinet: str | None = None
    case_drawer: str | None = None
    case_fee: Decimal | None = None
    case_balance: Decimal | None = None
    case_date_created: dt.datetime | None = None

    # Joined display columns.
    client_fullname: str | None = None
    cc_name: str | None = None
    ct_name: str | None = None
    user_fname: str | None = None
    user_mname: str | None = None
    user_lname: str | None = None

    tags: list[CaseTag] = Field(default_factory=list, validation_alias="case_tag_list")
    active_tag_id: int | None = Field(default=None, validation_alias="case_tag")

    @field_validator("tags", mode="before")
    @classmethod
    def _parse_tags(cls, v):  # noqa: ANN001
        return parse_tag_list(v)

    @field_validator("active_tag_id", mode="before")
    @classmethod
    def _parse_active_tag(cls, v):  # noqa: ANN001
        if isinstance(v, int) and not isinstance(v, bool):
            return v
        return parse_active_tag_id(v)

    @field_validator("case_cabinet", "case_drawer", mode="before")
    @classmethod
    def _location_as_text(cls, v):  # noqa: ANN001
        return to_str_or_none(v)

    @field_validator(
        "client_id", "cc_id", "ct_id", "user_id", "assigned_by", "case_fee", "case_balance", "case_date_created", mode="before"
    )
    @classmethod
    def _blank_is_none(cls, v):  # noqa: ANN001
        return empty_to_none(v)

    @field_serializer("case_fee", "case_balance")
    def _money_as_number(self, v: Decimal | None) -> float | None:
        return float(v) if v is not None else None

    @property
    def active_tag(self) -> CaseTag | None:
        return self.find_tag(self.active_tag_id)

    def find_tag(self, ctag_id: int | None) -> CaseTag | None:
        if ctag_id is None:
            return None
        return next((t for t in self.tags if t.ctag_id == ctag_id), None)

    @property
    def has_outstanding_balance(self) -> bool:
        return (self.case_balance or Decimal("0")) > 0

    def to_payload(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"tags", "active_tag_id"})
        tag = self.active_tag
        if tag is not None:
            data["case_tag"] = tag.model_dump(mode="json")
        data["case_tag_list"] = serialize_tags(self.tags)
        return data


def serialize_tags(tags: list[CaseTag]) -> str:
    return json.dumps([t.model_dump(mode="json") for t in tags])
