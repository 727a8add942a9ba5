from __future__ import annotations

import datetime as dt

from pydantic import BaseModel

from casedesk.schemas.common import ApiModel


class UserLog(ApiModel):
    user_log_id: int
    user_fullname: str | None = None
    user_log_action: str | None = None
    user_log_time: dt.datetime | None = None
    user_profile: str | None = None


class DashboardCounts(BaseModel):
    users: int = 0
    clients: int = 0
    processing_cases: int = 0
    archived_cases: int = 0
    docs_for_approval: int = 0
    processing_docs: int = 0
    pending_tasks: int = 0


class CategoryBucket(BaseModel):
    name: str
    total: int = 0


class DashboardCard(BaseModel):
    key: str
    title: str
    value: int


class ActivityRow(BaseModel):
    id: int
    actor: str
    action: str
    avatar_url: str
    time: str  # e.g. 03:05 PM
    date: str  # e.g. 10/18/2026
