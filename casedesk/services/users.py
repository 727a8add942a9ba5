"""Add-user modal: new account form for administrators."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from pydantic import ValidationError

from casedesk.api.client import ApiClient, form_fields
from casedesk.core.errors import ApiError, ApiStatusError, ValidationFailure
from casedesk.core.notify import ToastLog
from casedesk.core.security import PasswordRequirements, normalize_phone, validate_password
from casedesk.core.session import AuthContext
from casedesk.models.enums import UserRole
from casedesk.schemas.user import Branch
from casedesk.services.uploads import ImageSelection

logger = logging.getLogger(__name__)

ROLE_OPTIONS: list[tuple[str, str]] = [
    (UserRole.PARALEGAL.value, UserRole.PARALEGAL.label),
    (UserRole.STAFF.value, UserRole.STAFF.label),
    (UserRole.LAWYER.value, UserRole.LAWYER.label),
    (UserRole.ADMIN.value, UserRole.ADMIN.label),
]

_REQUIRED = {
    "user_fname": "First Name",
    "user_lname": "Last Name",
    "user_email": "Email",
    "user_password": "Password",
    "user_role": "Role",
    "branch_id": "Branch",
}


class AddUserForm:
    FIELDS = (
        "user_fname",
        "user_mname",
        "user_lname",
        "user_email",
        "user_password",
        "user_phonenum",
        "user_role",
        "branch_id",
    )

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

        self.values: dict[str, str] = {name: "" for name in self.FIELDS}
        self.password_requirements = PasswordRequirements()
        self.image = ImageSelection()
        self.branches: list[Branch] = []
        self.error = ""
        self.is_open = True

    async def load_branches(self) -> list[Branch]:
        try:
            data = await self.api.get("/branches")
            self.branches = [Branch.model_validate(b) for b in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Failed to load branches: %s", e)
            self.error = str(e) or "Failed to load branches."
        return self.branches

    def set_field(self, name: str, value: str) -> None:
        if name not in self.values:
            raise KeyError(name)
        if name == "user_phonenum":
            value = normalize_phone(value)
        elif name == "user_password":
            self.password_requirements = validate_password(value)
        self.values[name] = value

    def set_password(self, value: str) -> PasswordRequirements:
        self.set_field("user_password", value)
        return self.password_requirements

    def set_phone(self, value: str) -> str:
        self.set_field("user_phonenum", value)
        return self.values["user_phonenum"]

    def choose_image(self, path: str | Path) -> str:
        return self.image.choose(path)

    @property
    def preview(self) -> str | None:
        return self.image.preview

    def missing_required(self) -> list[str]:
        return [label for name, label in _REQUIRED.items() if not self.values[name].strip()]

    def form_data(self) -> dict[str, str]:
        creator = self.auth.user.user_id if self.auth.user else None
        return form_fields({**self.values, "created_by": creator})

    async def submit(self) -> dict[str, Any] | None:
        """
        Multipart POST /users. On success the form resets and closes; on
        failure the message is kept inline and every field stays as typed.
        """
        self.error = ""
        missing = self.missing_required()
        if missing:
            err = ValidationFailure(f"Please fill out: {', '.join(missing)}")
            self.notifier.error(str(err))
            return None

        toast_id = self.notifier.loading("Adding new user...")
        files = {"user_profile": self.image.as_upload()} if self.image.chosen else None
        try:
            data = await self.api.send_form("POST", "/users", self.form_data(), files)
        except ApiStatusError as e:
            logger.error("Failed to add user: %s", e.body)
            self.error = e.server_message or "Fail adding user"
            self.notifier.error(e.server_message or "Failed to add user.", toast_id=toast_id)
            return None
        except ApiError as e:
            logger.error("Error adding user: %s", e)
            self.error = str(e) or "Something went wrong. Please try again."
            self.notifier.error(self.error, toast_id=toast_id)
            return None

        self.notifier.success("User successfully added!", toast_id=toast_id)
        self.reset()
        self.close()
        return data if isinstance(data, dict) else {}

    def reset(self) -> None:
        self.values = {name: "" for name in self.FIELDS}
        self.password_requirements = PasswordRequirements()
        self.image.release()

    def close(self) -> None:
        self.image.release()
        self.is_open = False
        if self.on_close is not None:
            self.on_close()
