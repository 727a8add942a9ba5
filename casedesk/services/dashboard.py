"""Dashboard aggregation: count cards, case overview chart, recent activity.

Every metric is fetched independently; a failed metric reads 0 (or an
empty list) and never affects the others.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.errors import ApiError
from casedesk.core.permissions import Capability, can, parse_role
from casedesk.core.session import AuthContext
from casedesk.models.enums import UserRole
from casedesk.schemas.dashboard import ActivityRow, CategoryBucket, DashboardCard, DashboardCounts, UserLog
from casedesk.schemas.user import LawyerCaseSummary, User
from casedesk.services.activity_log import activity_rows, fetch_user_logs

logger = logging.getLogger(__name__)

CHART_TITLE = "Overview of Cases in BOS' Law Firm"

# (response key, chart label)
CATEGORY_BUCKETS = (
    ("civil", "Civil"),
    ("criminal", "Criminal"),
    ("special_proceedings", "Special Proceedings"),
    ("constitutional", "Constitutional"),
    ("jurisdictional", "Jurisdictional"),
    ("special_courts", "Special Courts"),
)

GRID_COLUMNS = {
    UserRole.ADMIN: 4,
    UserRole.STAFF: 4,
    UserRole.LAWYER: 3,
    UserRole.PARALEGAL: 2,
}


def _count(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def category_buckets(data: Any) -> list[CategoryBucket]:
    raw = data if isinstance(data, dict) else {}
    return [CategoryBucket(name=label, total=_count(raw.get(key))) for key, label in CATEGORY_BUCKETS]


def count_endpoints(user: User) -> dict[str, str]:
    """Metric name -> count endpoint for this user's role."""
    role, uid = user.user_role, user.user_id
    firm_wide = can(role, Capability.FIRM_WIDE_CASE_COUNTS)
    endpoints = {
        "clients": "/clients/count",
        "processing_cases": "/cases/count/processing" if firm_wide else f"/cases/count/processing/user/{uid}",
        "archived_cases": "/cases/count/archived" if firm_wide else f"/cases/count/archived/user/{uid}",
        "docs_for_approval": "/documents/count/for-approval",
        "processing_docs": (
            "/documents/count/processing/lawyer"
            if can(role, Capability.LAWYER_SCOPED_DOCUMENTS)
            else "/documents/count/processing"
        ),
        "pending_tasks": (
            "/documents/count/pending-tasks"
            if can(role, Capability.FIRM_WIDE_PENDING_TASKS)
            else f"/documents/count/pending-tasks/{uid}"
        ),
    }
    if can(role, Capability.COUNT_USERS):
        endpoints["users"] = "/users/count"
    return endpoints


@dataclass
class DashboardLayout:
    rows: list[list[DashboardCard]]
    columns: int


class Dashboard:
    def __init__(self, api: ApiClient, auth: AuthContext, *, config: Settings | None = None) -> None:
        self.api = api
        self.auth = auth
        self.settings = config or default_settings
        self.counts = DashboardCounts()
        self.buckets: list[CategoryBucket] = category_buckets({})
        self.user_logs: list[UserLog] = []
        self.lawyers: list[LawyerCaseSummary] = []

    async def fetch_count(self, path: str) -> int:
        try:
            data = await self.api.get(path)
        except ApiError as e:
            logger.warning("Count request %s failed: %s", path, e)
            return 0
        return _count(data.get("count")) if isinstance(data, dict) else 0

    async def _load_count(self, name: str, path: str) -> None:
        value = await self.fetch_count(path)
        self.counts = self.counts.model_copy(update={name: value})

    async def load_counts(self) -> DashboardCounts:
        user = self.auth.require_user()
        await asyncio.gather(*(self._load_count(name, path) for name, path in count_endpoints(user).items()))
        return self.counts

    async def load_chart(self) -> list[CategoryBucket]:
        try:
            data = await self.api.get("/reports/case-counts-by-category")
        except ApiError as e:
            logger.warning("Failed to load case overview: %s", e)
            data = {}
        self.buckets = category_buckets(data)
        return self.buckets

    async def load_activity(self) -> list[UserLog]:
        self.user_logs = await fetch_user_logs(self.api, self.auth.require_user())
        return self.user_logs

    async def load_lawyers(self) -> list[LawyerCaseSummary]:
        user = self.auth.require_user()
        if not can(user.user_role, Capability.LAWYER_RECOMMENDATIONS):
            return self.lawyers
        try:
            data = await self.api.get("/lawyers-with-case-counts")
            self.lawyers = [LawyerCaseSummary.model_validate(x) for x in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Error fetching lawyers: %s", e)
        return self.lawyers

    async def refresh(self) -> None:
        await asyncio.gather(self.load_counts(), self.load_chart(), self.load_activity(), self.load_lawyers())

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    @property
    def welcome(self) -> str:
        user = self.auth.user
        name = user.user_fname if user and user.user_fname else ""
        return f"Welcome back {name}! Here's your overview."

    def cards(self) -> list[DashboardCard]:
        role = self.auth.require_user().user_role
        c = self.counts
        cards: list[DashboardCard] = []
        if can(role, Capability.COUNT_USERS):
            cards.append(DashboardCard(key="users", title="Users", value=c.users))
        if can(role, Capability.CASE_COUNT_CARDS):
            cards.append(DashboardCard(key="archived", title="Archived Cases", value=c.archived_cases))
            cards.append(DashboardCard(key="processingCases", title="Processing Cases", value=c.processing_cases))
        if can(role, Capability.DOCUMENT_AND_CLIENT_CARDS):
            cards.append(DashboardCard(key="processingDocs", title="Processing Documents", value=c.processing_docs))
            cards.append(DashboardCard(key="clients", title="Clients", value=c.clients))
        cards.append(DashboardCard(key="approvals", title="Pending Approvals", value=c.docs_for_approval))
        cards.append(DashboardCard(key="tasks", title="Pending Tasks", value=c.pending_tasks))
        return cards

    def layout(self) -> DashboardLayout:
        cards = self.cards()
        role = parse_role(self.auth.require_user().user_role)
        if role is UserRole.SUPER_LAWYER:
            # Four cards on top, the remaining three squeezed below.
            return DashboardLayout(rows=[cards[:4], cards[4:7]], columns=4)
        columns = GRID_COLUMNS.get(role, 3) if role is not None else 3
        rows = [cards[i : i + columns] for i in range(0, len(cards), columns)]
        return DashboardLayout(rows=rows, columns=columns)

    def activity(self) -> list[ActivityRow]:
        return activity_rows(
            self.user_logs,
            origin=self.api.origin,
            limit=self.settings.activity_feed_limit,
            default_avatar=self.settings.default_avatar,
        )
