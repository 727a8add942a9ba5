from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class ApiModel(BaseModel):
    # extra="allow": fields the client does not model survive read-modify-write (e.g. case PUT).
    model_config = ConfigDict(populate_by_name=True, extra="allow")


def to_str_or_none(v: Any) -> Any:
    """Backend sends some text columns as numbers (cabinet, drawer, phone)."""
    if v is None or isinstance(v, str):
        return v
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return str(v)
    return v


def empty_to_none(v: Any) -> Any:
    if isinstance(v, str) and not v.strip():
        return None
    return v
