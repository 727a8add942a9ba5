"""Process-wide session state: who is logged in.

Only two flows write it: ``verify()`` (app load, profile save) and
``logout()``. Everything else reads ``snapshot``/``user``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from pydantic import ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.errors import ApiError, SessionNotResolved
from casedesk.core.permissions import Capability, can, parse_role
from casedesk.models.enums import UserRole
from casedesk.schemas.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionSnapshot:
    user: User | None = None
    resolved: bool = False

    @property
    def role(self) -> UserRole | None:
        return parse_role(self.user.user_role) if self.user else None

    def can(self, capability: Capability) -> bool:
        return can(self.role, capability)


Listener = Callable[[SessionSnapshot], None]


class AuthContext:
    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self._snapshot = SessionSnapshot()
        self._listeners: list[Listener] = []

    @property
    def snapshot(self) -> SessionSnapshot:
        return self._snapshot

    @property
    def user(self) -> User | None:
        return self._snapshot.user

    @property
    def is_resolved(self) -> bool:
        return self._snapshot.resolved

    def require_user(self) -> User:
        """Current user, or SessionNotResolved while verify is pending / nobody is logged in."""
        if not self._snapshot.resolved or self._snapshot.user is None:
            raise SessionNotResolved("Session user is not known yet")
        return self._snapshot.user

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_user(self, user: User | None) -> SessionSnapshot:
        previous = self._snapshot
        self._snapshot = SessionSnapshot(user=user, resolved=True)
        if previous != self._snapshot:
            for listener in list(self._listeners):
                listener(self._snapshot)
        return self._snapshot

    async def verify(self, *, strict: bool = False) -> User | None:
        """
        Resolve the session user from GET /verify.

        Any failure means "not authenticated"; there is no retry. With
        ``strict=True`` failures propagate instead and the snapshot is left as is
        (used after a profile save, where a failed re-verify must not log out).
        """
        try:
            data = await self.api.get("/verify")
            raw = data.get("user") if isinstance(data, dict) else None
            user = User.model_validate(raw) if raw else None
        except (ApiError, ValidationError) as e:
            if strict:
                raise
            logger.info("Session verify failed: %s", e)
            user = None
        self.set_user(user)
        return user

    def logout(self) -> None:
        self.set_user(None)
