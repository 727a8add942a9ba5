"""Recent activity feed shown on the dashboard."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.config import settings
from casedesk.core.errors import ApiError
from casedesk.core.permissions import Capability, can
from casedesk.schemas.dashboard import ActivityRow, UserLog
from casedesk.schemas.user import User
from casedesk.services.display import format_short_date, format_time, image_url

logger = logging.getLogger(__name__)

UNKNOWN_ACTOR = "Unknown User"
EMPTY_FEED = "No recent activity found."


def logs_endpoint(user: User) -> str:
    if can(user.user_role, Capability.VIEW_ALL_USER_LOGS):
        return "/user-logs"
    return f"/user-logs/{user.user_id}"


async def fetch_user_logs(api: ApiClient, user: User) -> list[UserLog]:
    """Firm-wide or own logs depending on role; an empty list on any failure."""
    try:
        data = await api.get(logs_endpoint(user))
        return [UserLog.model_validate(x) for x in (data or [])]
    except (ApiError, ValidationError, TypeError) as e:
        logger.warning("Failed to fetch user logs: %s", e)
        return []


def activity_rows(
    logs: list[UserLog],
    *,
    origin: str | None = None,
    limit: int | None = None,
    default_avatar: str | None = None,
) -> list[ActivityRow]:
    n = settings.activity_feed_limit if limit is None else limit
    return [
        ActivityRow(
            id=log.user_log_id,
            actor=log.user_fullname or UNKNOWN_ACTOR,
            action=log.user_log_action or "",
            avatar_url=image_url(log.user_profile, origin=origin, default=default_avatar),
            time=format_time(log.user_log_time),
            date=format_short_date(log.user_log_time),
        )
        for log in logs[:n]
    ]
