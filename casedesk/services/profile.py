"""Profile modal for the logged-in user."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from casedesk.api.client import ApiClient, form_fields
from casedesk.core.errors import ApiError
from casedesk.core.notify import ToastLog
from casedesk.core.permissions import parse_role
from casedesk.core.security import normalize_phone, profile_password_error
from casedesk.core.session import AuthContext, SessionSnapshot
from casedesk.schemas.user import Branch, User
from casedesk.services.display import format_date, full_name, image_url
from casedesk.services.uploads import ImageSelection

logger = logging.getLogger(__name__)

BRANCH_LOADING = "Loading..."
BRANCH_UNKNOWN = "Unknown"
BRANCH_ERROR = "Error"

EDITABLE_FIELDS = frozenset({"user_email", "user_password", "user_phonenum"})

STATUS_OUTLINES = {
    "Active": "green",
    "Pending": "yellow",
    "Suspended": "red",
}


def _seed(user: User | None) -> dict[str, Any]:
    return user.model_dump(mode="json") if user is not None else {}


class ProfileEditor:
    def __init__(
        self,
        api: ApiClient,
        auth: AuthContext,
        *,
        notifier: ToastLog | None = None,
        on_close: Callable[[], None] | None = None,
    ) -> None:
        self.api = api
        self.auth = auth
        self.notifier = notifier or ToastLog()
        self.on_close = on_close

        self.form: dict[str, Any] = _seed(auth.user)
        self.is_editing = False
        self.branch_name = BRANCH_LOADING
        self.loading_branch = True
        self.password_error = ""
        self.image = ImageSelection()
        self._unsubscribe = auth.subscribe(self._on_session_change)

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        self.form = _seed(snapshot.user)

    async def load_branch_name(self) -> str:
        user = self.auth.user
        if user is None or user.branch_id is None:
            return self.branch_name
        try:
            data = await self.api.get("/branches")
            branches = [Branch.model_validate(b) for b in (data or [])]
            match = next((b for b in branches if b.branch_id == user.branch_id), None)
            self.branch_name = match.branch_name if match and match.branch_name else BRANCH_UNKNOWN
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Failed to fetch branches: %s", e)
            self.branch_name = BRANCH_ERROR
        finally:
            self.loading_branch = False
        return self.branch_name

    # ------------------------------------------------------------------
    # Edit mode
    # ------------------------------------------------------------------
    def start_editing(self) -> None:
        self.form = _seed(self.auth.user)
        self.is_editing = True

    def cancel(self) -> None:
        self.form = _seed(self.auth.user)
        self.image.release()
        self.password_error = ""
        self.is_editing = False

    def set_field(self, name: str, value: str) -> None:
        if name not in EDITABLE_FIELDS:
            raise KeyError(f"{name} is not editable")
        if name == "user_phonenum":
            value = normalize_phone(value)
        elif name == "user_password":
            # Advisory only: a hint is shown, saving is still allowed.
            self.password_error = profile_password_error(value)
        self.form[name] = value

    def choose_image(self, path: str | Path) -> str:
        return self.image.choose(path)

    @property
    def preview(self) -> str:
        if self.is_editing and self.image.chosen:
            return self.image.preview or ""
        user = self.auth.user
        return image_url(user.user_profile if user else None, origin=self.api.origin)

    async def save(self) -> bool:
        user = self.auth.require_user()
        toast_id = self.notifier.loading("Updating profile...")
        payload = {**self.form, "user_last_updated_by": user.user_id}
        try:
            if self.image.chosen:
                await self.api.send_form(
                    "PUT",
                    f"/users/{user.user_id}",
                    form_fields(payload),
                    {"user_profile": self.image.as_upload()},
                )
            else:
                await self.api.put(f"/users/{user.user_id}", json=payload)
            # The server copy is the source of truth after a save.
            await self.auth.verify(strict=True)
        except (ApiError, ValidationError) as e:
            logger.error("Profile update failed: %s", e)
            self.notifier.error("Profile update failed!", toast_id=toast_id)
            return False

        self.notifier.success("Profile updated successfully.", toast_id=toast_id)
        self.image.release()
        self.password_error = ""
        self.is_editing = False
        return True

    # ------------------------------------------------------------------
    # Display
    # ------------------------------------------------------------------
    @property
    def full_name(self) -> str:
        return full_name(self.form.get("user_fname"), self.form.get("user_mname"), self.form.get("user_lname"))

    @property
    def role_label(self) -> str:
        role = parse_role(self.form.get("user_role"))
        return role.label if role is not None else (self.form.get("user_role") or "")

    @property
    def status_outline(self) -> str:
        return STATUS_OUTLINES.get(self.form.get("user_status") or "", "gray")

    @property
    def date_created(self) -> str:
        return format_date(self.form.get("user_date_created"))

    def info_items(self) -> list[dict[str, Any]]:
        return [
            {"label": "User ID", "name": "user_id", "editable": False, "value": self.form.get("user_id")},
            {"label": "Date Created", "name": "user_date_created", "editable": False, "value": self.date_created},
            {"label": "Email", "name": "user_email", "editable": True, "value": self.form.get("user_email")},
            {"label": "Password", "name": "user_password", "editable": True, "value": self.form.get("user_password")},
            {"label": "Phone", "name": "user_phonenum", "editable": True, "value": self.form.get("user_phonenum")},
            {"label": "Status", "name": "user_status", "editable": False, "value": self.form.get("user_status")},
            {"label": "Branch", "name": "branchName", "editable": False, "value": self.branch_name},
        ]

    def close(self) -> None:
        self.image.release()
        self._unsubscribe()
        if self.on_close is not None:
            self.on_close()
