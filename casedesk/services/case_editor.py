"""Edit-case modal.

Lifecycle per open/close cycle::

    CLOSED -> LOADING (reference lists fetched in the background)
           -> READY   (form seeded, dropdowns filled)
           -> EDITING (user changed a field)
           -> submit: validate -> tag guard -> commit -> CLOSED

Closing the modal cancels an unfinished reference load, so nothing is
written to a disposed editor.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import BaseModel, ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.errors import ApiError
from casedesk.core.notify import ToastLog
from casedesk.core.permissions import Capability, can
from casedesk.core.session import AuthContext
from casedesk.models.enums import CaseStatus
from casedesk.schemas.case import Case, CaseCategory, CaseCategoryType, CaseTag, Client, LawyerSpecialization
from casedesk.services.display import full_name

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

TAG_LOCKED_MESSAGE = "Unsuccessful: Case fee is not yet paid. Settle payment first."

FORM_FIELDS = ("client_id", "cc_id", "ct_id", "user_id", "case_remarks", "case_cabinet", "case_drawer", "ctag_id")
NUMERIC_FIELDS = {"case_cabinet": "Cabinet", "case_drawer": "Drawer"}

_DIGITS = re.compile(r"[0-9]*")

UpdateCallback = Callable[[Case], Awaitable[Any]]


class EditorState(str, enum.Enum):
    CLOSED = "closed"
    LOADING = "loading"
    READY = "ready"
    EDITING = "editing"


@dataclass
class ReferenceData:
    clients: list[Client] = field(default_factory=list)
    categories: list[CaseCategory] = field(default_factory=list)
    types: list[CaseCategoryType] = field(default_factory=list)
    lawyers: list[LawyerSpecialization] = field(default_factory=list)


def _to_int(value: str | None) -> int | None:
    try:
        return int(value) if value not in (None, "") else None
    except ValueError:
        return None


def _is_number(value: str) -> bool:
    try:
        return math.isfinite(float(value))
    except ValueError:
        return False


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class CaseEditor:
    def __init__(
        self,
        api: ApiClient,
        auth: AuthContext,
        *,
        on_update: UpdateCallback | None = None,
        notifier: ToastLog | None = None,
    ) -> None:
        self.api = api
        self.auth = auth
        self.on_update = on_update
        self.notifier = notifier or ToastLog()

        self.state = EditorState.CLOSED
        self.case: Case | None = None
        self.tags: list[CaseTag] = []
        self.form: dict[str, str] = {name: "" for name in FORM_FIELDS}
        self.errors: dict[str, str] = {}
        self.reference = ReferenceData()
        self._load_task: asyncio.Task | None = None

    @property
    def is_open(self) -> bool:
        return self.state is not EditorState.CLOSED

    # ------------------------------------------------------------------
    # Open / close
    # ------------------------------------------------------------------
    def open(self, case: Case) -> asyncio.Task:
        """Seed the form from ``case`` and start loading dropdown data. Needs a running event loop."""
        self.close()
        self.case = case
        self.tags = list(case.tags)
        self.errors = {}
        self.reference = ReferenceData()
        self.form = self._seed_form(case)
        self.state = EditorState.LOADING
        self._load_task = asyncio.get_running_loop().create_task(self._load_reference_data())
        return self._load_task

    async def ready(self) -> None:
        """Wait for the reference load started by ``open`` (returns quietly if it was cancelled)."""
        if self._load_task is not None:
            await asyncio.wait({self._load_task})

    def close(self) -> None:
        if self._load_task is not None and not self._load_task.done():
            self._load_task.cancel()
        self._load_task = None
        self.state = EditorState.CLOSED

    def _seed_form(self, case: Case) -> dict[str, str]:
        user = self.auth.require_user()
        if can(user.user_role, Capability.SELF_ASSIGN_ON_EDIT):
            lawyer = _text(user.user_id)
        elif case.case_status == CaseStatus.PROCESSING.value:
            lawyer = _text(case.user_id)
        else:
            lawyer = ""
        return {
            "client_id": _text(case.client_id),
            "cc_id": _text(case.cc_id),
            "ct_id": _text(case.ct_id),
            "user_id": lawyer,
            "case_remarks": _text(case.case_remarks),
            "case_cabinet": _text(case.case_cabinet),
            "case_drawer": _text(case.case_drawer),
            "ctag_id": _text(case.active_tag_id),
        }

    async def _fetch_list(self, path: str, model: type[M]) -> list[M]:
        try:
            data = await self.api.get(path)
            return [model.model_validate(x) for x in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Error fetching dropdown data from %s: %s", path, e)
            return []

    async def _load_reference_data(self) -> None:
        clients, categories, types, lawyers = await asyncio.gather(
            self._fetch_list("/clients", Client),
            self._fetch_list("/case-categories", CaseCategory),
            self._fetch_list("/case-category-types", CaseCategoryType),
            self._fetch_list("/lawyer-specializations", LawyerSpecialization),
        )
        if self.state is EditorState.CLOSED:
            return
        self.reference = ReferenceData(clients=clients, categories=categories, types=types, lawyers=lawyers)
        if self.state is EditorState.LOADING:
            self.state = EditorState.READY

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------
    def change(self, name: str, value: Any) -> bool:
        """Apply one input change. Returns False when the input is refused and the form is unchanged."""
        if name not in FORM_FIELDS:
            raise KeyError(name)
        v = _text(value)
        if name in NUMERIC_FIELDS and not _DIGITS.fullmatch(v):
            return False
        if name == "user_id" and not self.lawyer_select_enabled:
            return False
        if name == "cc_id":
            # Case types belong to one category.
            self.form["ct_id"] = ""
        self.form[name] = v
        self.errors.pop(name, None)
        if self.state in (EditorState.LOADING, EditorState.READY):
            self.state = EditorState.EDITING
        return True

    def validate(self) -> bool:
        errors: dict[str, str] = {}
        for name, label in NUMERIC_FIELDS.items():
            v = self.form[name]
            if v and not _is_number(v):
                errors[name] = f"{label} must be a number"
        self.errors = errors
        return not errors

    def is_tag_changing(self) -> bool:
        original = self.case.active_tag_id if self.case else None
        return _to_int(self.form["ctag_id"]) != original

    async def submit(self) -> Case | None:
        """Validate, apply the tag guard, then hand the merged case to ``on_update`` and close."""
        if self.case is None or not self.is_open:
            return None
        if not self.validate():
            return None
        if self.is_tag_changing() and self.case.has_outstanding_balance:
            self.notifier.error(TAG_LOCKED_MESSAGE)
            return None

        updated = self.merged_case()
        if self.on_update is not None:
            await self.on_update(updated)
        self.close()
        return updated

    def merged_case(self) -> Case:
        if self.case is None:
            raise RuntimeError("Editor is not open")
        selected = _to_int(self.form["ctag_id"])
        if selected != self.case.active_tag_id:
            tag = self.case.find_tag(selected)
            selected = tag.ctag_id if tag is not None else None
        lawyer = _to_int(self.form["user_id"])
        updates: dict[str, Any] = {
            "client_id": _to_int(self.form["client_id"]),
            "cc_id": _to_int(self.form["cc_id"]),
            "ct_id": _to_int(self.form["ct_id"]),
            "user_id": lawyer,
            "case_remarks": self.form["case_remarks"],
            "case_cabinet": self.form["case_cabinet"] or None,
            "case_drawer": self.form["case_drawer"] or None,
            "tags": list(self.tags),
            "active_tag_id": selected,
        }
        if lawyer is not None:
            updates["case_status"] = CaseStatus.PROCESSING.value
        return self.case.model_copy(update=updates)

    # ------------------------------------------------------------------
    # Dropdown options
    # ------------------------------------------------------------------
    def client_options(self) -> list[tuple[int, str]]:
        return [(c.client_id, c.client_fullname or "") for c in self.reference.clients]

    def category_options(self) -> list[tuple[int, str]]:
        return [(c.cc_id, c.cc_name or "") for c in self.reference.categories]

    def case_type_options(self) -> list[tuple[int, str]]:
        cc_id = _to_int(self.form["cc_id"])
        if cc_id is None:
            return []
        return [(t.ct_id, t.ct_name or "") for t in self.reference.types if t.cc_id == cc_id]

    def tag_options(self) -> list[tuple[int, str]]:
        return [(t.ctag_id, t.ctag_name or "") for t in self.tags]

    @property
    def lawyer_select_enabled(self) -> bool:
        user = self.auth.user
        return bool(user and can(user.user_role, Capability.ASSIGN_ANY_LAWYER) and self.form["cc_id"])

    def lawyer_options(self) -> list[tuple[int, str]]:
        """Non-admins only ever see themselves; admins see the category's lawyers, else themselves."""
        user = self.auth.require_user()
        me = full_name(user.user_fname, user.user_mname, user.user_lname)
        if not can(user.user_role, Capability.ASSIGN_ANY_LAWYER):
            return [(user.user_id, me)]
        cc_id = _to_int(self.form["cc_id"])
        if cc_id is None:
            return []
        matching = [(x.user_id, x.full_name) for x in self.reference.lawyers if x.cc_id == cc_id]
        return matching or [(user.user_id, f"{me} (You)")]
