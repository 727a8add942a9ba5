from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.errors import ApiError, Unauthorized
from casedesk.core.notify import ToastLog
from casedesk.core.permissions import Capability, can
from casedesk.core.session import AuthContext, SessionSnapshot
from casedesk.models.enums import ARCHIVED_STATUSES, CLOSED_STATUSES, CaseStatus
from casedesk.schemas.case import Case, CaseTag, serialize_tags
from casedesk.schemas.user import User
from casedesk.services.case_editor import CaseEditor
from casedesk.services.display import format_currency, format_date, short_name
from casedesk.services.listing import Page, matches_any, paginate
from casedesk.services.store import EntityStore

logger = logging.getLogger(__name__)

UNASSIGNED = "Unassigned"
LOAD_ERROR_HINT = "You might want to check your server connection."


def _int_or_none(value: Any) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


def _float_or_none(value: Any) -> float | None:
    try:
        return float(value) if value not in (None, "") else None
    except (TypeError, ValueError):
        return None


@dataclass
class NewCaseForm:
    client_id: str = ""
    cc_id: str = ""
    ct_id: str = ""
    user_id: str = ""
    assigned_by: str = ""
    case_cabinet: str = ""
    case_drawer: str = ""
    case_fee: str = ""
    case_remarks: str = ""
    case_status: str = ""

    @classmethod
    def for_user(cls, user: User | None) -> NewCaseForm:
        """Admins pick the lawyer and are recorded as assigner; anyone else is the lawyer."""
        if user is None:
            return cls()
        if can(user.user_role, Capability.ASSIGN_ANY_LAWYER):
            return cls(assigned_by=str(user.user_id))
        return cls(user_id=str(user.user_id))

    def to_payload(self, selected_tags: list[CaseTag]) -> dict[str, Any]:
        first = selected_tags[0] if selected_tags else None
        return {
            "client_id": _int_or_none(self.client_id) or None,
            "cc_id": _int_or_none(self.cc_id) or None,
            "ct_id": _int_or_none(self.ct_id) or None,
            "user_id": _int_or_none(self.user_id),
            "assigned_by": _int_or_none(self.assigned_by),
            "case_cabinet": self.case_cabinet,
            "case_drawer": self.case_drawer,
            "case_fee": _float_or_none(self.case_fee),
            "case_remarks": self.case_remarks,
            "case_status": self.case_status,
            # Every new case starts on its first tag.
            "case_tag_list": serialize_tags(selected_tags),
            "case_tag": json.dumps(first.model_dump(mode="json")) if first is not None else None,
        }


class CasesPage:
    def __init__(
        self,
        api: ApiClient,
        auth: AuthContext,
        *,
        notifier: ToastLog | None = None,
        config: Settings | None = None,
    ) -> None:
        self.api = api
        self.auth = auth
        self.notifier = notifier or ToastLog()
        self.settings = config or default_settings

        self.store: EntityStore[Case] = EntityStore(key=lambda c: c.case_id)
        self.search = ""
        self.status_filter = ""
        self.current_page = 1
        self.error: str | None = None

        self.new_case = NewCaseForm.for_user(auth.user)
        self.is_add_modal_open = False
        self.editor: CaseEditor | None = None

        self._reload_task: asyncio.Task | None = None
        self._unsubscribe = auth.subscribe(self._on_session_change)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def check_access(self) -> User:
        user = self.auth.require_user()
        if not can(user.user_role, Capability.ACCESS_CASES_PAGE):
            raise Unauthorized("/unauthorized")
        return user

    def _endpoint(self, user: User) -> str:
        if can(user.user_role, Capability.VIEW_ALL_CASES):
            return "/cases"
        return f"/cases/user/{user.user_id}"

    async def load(self) -> list[Case]:
        user = self.check_access()
        try:
            data = await self.api.get(self._endpoint(user))
            cases = [Case.model_validate(x) for x in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Error fetching cases: %s", e)
            self.error = f"Failed to fetch cases. {LOAD_ERROR_HINT}"
            return self.store.items
        self.store.replace_all(cases)
        self._apply_default_filter()
        return self.store.items

    def _apply_default_filter(self) -> None:
        pending = any(c.case_status == CaseStatus.PENDING.value for c in self.store)
        self.status_filter = CaseStatus.PENDING.value if pending else ""

    def _on_session_change(self, snapshot: SessionSnapshot) -> None:
        self.new_case = NewCaseForm.for_user(snapshot.user)
        if snapshot.user is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._reload_task = loop.create_task(self._reload())

    async def _reload(self) -> None:
        try:
            await self.load()
        except Unauthorized:
            logger.warning("Cases page is not available to role %s", self.auth.snapshot.role)

    # ------------------------------------------------------------------
    # Filtering / paging
    # ------------------------------------------------------------------
    def set_search(self, text: str) -> None:
        self.search = text or ""
        self.current_page = 1

    def set_status_filter(self, status: str) -> None:
        # The "All" tab clears the filter.
        self.status_filter = "" if status in ("", "All") else status
        self.current_page = 1

    def lawyer_name(self, lawyer_id: int | None) -> str:
        if lawyer_id is None:
            return UNASSIGNED
        row = next((c for c in self.store if c.user_id == lawyer_id), None)
        if row is None:
            return UNASSIGNED
        return short_name(row.user_fname, row.user_mname, row.user_lname) or UNASSIGNED

    def matches_search(self, case: Case, query: str) -> bool:
        if not query:
            return True
        return matches_any(
            query,
            [
                case.case_id,
                case.ct_name,
                case.cc_name,
                case.client_fullname,
                case.case_status,
                self.lawyer_name(case.user_id),
                format_date(case.case_date_created),
            ],
        )

    def filtered(self) -> list[Case]:
        return [
            c
            for c in self.store
            if (not self.status_filter or c.case_status == self.status_filter) and self.matches_search(c, self.search)
        ]

    def page(self) -> Page[Case]:
        return paginate(self.filtered(), page=self.current_page, page_size=self.settings.page_size, min_pages=1)

    @property
    def total_pages(self) -> int:
        return self.page().total_pages

    def go_to_page(self, page: int) -> int:
        self.current_page = min(max(page, 1), self.total_pages)
        return self.current_page

    def visible_rows(self) -> list[Case]:
        """Current page minus archived cases (those stay in the store)."""
        return [c for c in self.page().rows if c.case_status not in ARCHIVED_STATUSES]

    def table_rows(self) -> list[dict[str, Any]]:
        user = self.auth.user
        rows = []
        for c in self.visible_rows():
            rows.append(
                {
                    "case_id": c.case_id,
                    "client": c.client_fullname or "",
                    "category": c.cc_name or "",
                    "type": c.ct_name or "",
                    "status": c.case_status or "",
                    "lawyer": self.lawyer_name(c.user_id),
                    "balance": format_currency(c.case_balance),
                    "date_created": format_date(c.case_date_created),
                    "editable": self.is_editable(c),
                    "edit_title": self.edit_title(user),
                }
            )
        return rows

    # ------------------------------------------------------------------
    # Create / update
    # ------------------------------------------------------------------
    def open_add_modal(self) -> NewCaseForm:
        self.is_add_modal_open = True
        return self.new_case

    async def add_case(self, selected_tags: list[CaseTag]) -> Case | None:
        user = self.auth.require_user()
        toast_id = self.notifier.loading("Adding new case...")
        try:
            data = await self.api.post("/cases", json=self.new_case.to_payload(selected_tags))
            created = Case.model_validate(data)
        except (ApiError, ValidationError) as e:
            logger.error("Error adding case: %s", e)
            self.error = "Failed to add case. Please try again."
            self.notifier.error("Failed to add case. Please try again.", toast_id=toast_id)
            return None
        self.store.prepend(created)
        self.is_add_modal_open = False
        self.new_case = NewCaseForm.for_user(user)
        self.notifier.success("New case added successfully!", toast_id=toast_id)
        return created

    async def update_case(self, case: Case) -> Case | None:
        user = self.auth.require_user()
        toast_id = self.notifier.loading("Updating case...")
        payload = {**case.to_payload(), "last_updated_by": user.user_id}
        try:
            data = await self.api.put(f"/cases/{case.case_id}", json=payload)
            saved = Case.model_validate(data)
        except (ApiError, ValidationError) as e:
            logger.error("Error updating case: %s", e)
            self.notifier.error("Failed to update case.", toast_id=toast_id)
            return None
        self.store.update_by_id(saved)
        self.notifier.success("Case updated successfully!", toast_id=toast_id)
        return saved

    @staticmethod
    def is_editable(case: Case) -> bool:
        return case.case_status not in CLOSED_STATUSES

    @staticmethod
    def edit_title(user: User | None) -> str:
        if user is not None and can(user.user_role, Capability.ASSIGN_ANY_LAWYER):
            return "Edit case"
        return "Update and take case"

    def edit(self, case: Case) -> CaseEditor | None:
        """Open the edit modal for ``case``; completed/dismissed cases are read-only."""
        if not self.is_editable(case):
            return None
        if self.editor is not None:
            self.editor.close()
        annotated = case.model_copy(
            update={
                "lawyer_fullname": self.lawyer_name(case.user_id),
                "assigned_by_name": self.lawyer_name(case.assigned_by),
            }
        )
        self.editor = CaseEditor(self.api, self.auth, on_update=self.update_case, notifier=self.notifier)
        self.editor.open(annotated)
        return self.editor

    def close(self) -> None:
        self._unsubscribe()
        if self.editor is not None:
            self.editor.close()
        if self._reload_task is not None and not self._reload_task.done():
            self._reload_task.cancel()
