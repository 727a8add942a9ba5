from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from pydantic import ValidationError

from casedesk.api.client import ApiClient
from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.errors import ApiError, ApiStatusError, ValidationFailure
from casedesk.core.notify import ToastLog
from casedesk.core.permissions import Capability, can
from casedesk.core.session import AuthContext
from casedesk.models.enums import PaymentType
from casedesk.schemas.case import Case
from casedesk.schemas.payment import Payment, PaymentReceipt
from casedesk.schemas.user import User
from casedesk.services.display import format_currency, format_datetime, full_name, q_money, short_name
from casedesk.services.listing import Page, matches_any, paginate
from casedesk.services.store import EntityStore

logger = logging.getLogger(__name__)

PAYMENT_TYPE_FILTERS = ("All", PaymentType.CHEQUE.value, PaymentType.CASH.value)

BANK_BRANCH_OPTIONS = [
    "BDO",
    "BPI",
    "Metrobank",
    "Landbank",
    "PNB",
    "Security Bank",
    "RCBC",
    "China Bank",
    "UnionBank",
    "EastWest Bank",
]

BRANCH_LOCATION_OPTIONS = [
    "Robinson Galleria",
    "SM City Cebu",
    "SM Seaside",
    "Talisay",
    "Tabunok",
    "Tabada",
    "Pardo",
    "Carcar City",
    "Naga",
    "Minglanilla",
    "Danao City",
    "Catmon Cebu",
    "Barili",
    "Dumanjug",
    "San Fernando",
    "Fuente Osmeña",
    "Jones Avenue",
    "Lahug Cebu City",
    "IT Park",
    "Ayala Center Cebu",
    "Emall",
    "Escario",
    "Banilad Cebu City",
    "Talamban Cebu",
    "Mandaue City",
    "Subangdaku Mandaue",
    "Lapulapu City",
    "Ompad Mandaue",
    "Colon Cebu City",
]


@dataclass
class ChequeDetails:
    cheque_name: str = ""
    cheque_number: str = ""
    cheque_branch: str = ""
    cheque_location: str = ""


@dataclass
class AddPaymentForm:
    user_id: int | None = None
    case_id: str = ""
    payment_amount: str = ""
    payment_type: str = ""
    cheque: ChequeDetails = field(default_factory=ChequeDetails)


def _parse_amount(raw: str) -> Decimal | None:
    try:
        amt = Decimal(str(raw).strip())
    except InvalidOperation:
        return None
    if not amt.is_finite() or amt <= 0:
        return None
    return amt


def validate_payment(form: AddPaymentForm, case: Case | None) -> Decimal:
    """
    Checks run in a fixed order; the first failure raises ValidationFailure
    with the message shown to the user. Returns the amount to record.

    The amount must equal the case balance exactly: no partial or overpayment.
    """
    if not form.case_id:
        raise ValidationFailure("Please select a case.")
    if not form.payment_type:
        raise ValidationFailure("Please select a payment type.")
    amount = _parse_amount(form.payment_amount)
    if amount is None:
        raise ValidationFailure("Enter a valid payment amount.")
    if case is None or case.case_balance is None:
        raise ValidationFailure("Unable to validate case balance.")
    balance = case.case_balance
    if amount != balance:
        raise ValidationFailure(f"Payment must be exactly {format_currency(balance)}.")
    if form.payment_type == PaymentType.CHEQUE.value:
        cheque = form.cheque
        if not cheque.cheque_name.strip():
            raise ValidationFailure("Cheque name is required for cheque payments.")
        if not cheque.cheque_number.strip():
            raise ValidationFailure("Cheque number is required for cheque payments.")
        if not (cheque.cheque_branch or "").strip():
            raise ValidationFailure("Cheque branch is required for cheque payments.")
        if not (cheque.cheque_location or "").strip():
            raise ValidationFailure("Cheque branch location is required for cheque payments.")
    return amount


def payment_payload(form: AddPaymentForm, amount: Decimal) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "case_id": int(form.case_id),
        "user_id": form.user_id,
        "payment_amount": f"{q_money(amount)}",
        "payment_type": form.payment_type,
    }
    if form.payment_type == PaymentType.CHEQUE.value:
        c = form.cheque
        name, number = c.cheque_name.strip(), c.cheque_number.strip()
        payload.update(
            {
                # The backend still reads the older check_* keys too.
                "check_name": name,
                "check_number": number,
                "cheque_name": name,
                "cheque_number": number,
                "cheque_branch": c.cheque_branch.strip(),
                "cheque_location": c.cheque_location.strip(),
            }
        )
    return payload


ConfirmFn = Callable[[str], bool]


class PaymentsPage:
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

        self.store: EntityStore[Payment] = EntityStore(key=lambda p: p.payment_id)
        self.cases: list[Case] = []
        self.search = ""
        self.payment_type_filter = "All"
        self.current_page = 1
        self.error = ""
        self.form: AddPaymentForm | None = None
        self.selected_cheque: Payment | None = None
        self.receipt: PaymentReceipt | None = None

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def load(self) -> None:
        await asyncio.gather(self.load_cases(), self.load_payments())

    async def load_cases(self) -> list[Case]:
        """Cases that can still take a payment (balance > 0)."""
        user = self.auth.require_user()
        path = "/cases" if can(user.user_role, Capability.VIEW_ALL_CASES) else f"/cases/user/{user.user_id}"
        try:
            data = await self.api.get(path)
            cases = [Case.model_validate(x) for x in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Error fetching cases: %s", e)
            return self.cases
        self.cases = [c for c in cases if c.has_outstanding_balance]
        return self.cases

    async def load_payments(self) -> list[Payment]:
        user = self.auth.require_user()
        path = "/payments" if can(user.user_role, Capability.VIEW_ALL_PAYMENTS) else f"/payments/lawyer/{user.user_id}"
        try:
            data = await self.api.get(path)
            payments = [Payment.model_validate(x) for x in (data or [])]
        except (ApiError, ValidationError, TypeError) as e:
            logger.error("Error fetching payments: %s", e)
            self.error = "Failed to fetch payments. Please try again later."
            return self.store.items
        self.store.replace_all(payments)
        return self.store.items

    # ------------------------------------------------------------------
    # Filtering / paging
    # ------------------------------------------------------------------
    def set_search(self, text: str) -> None:
        self.search = text or ""
        self.current_page = 1

    def set_payment_type_filter(self, value: str) -> None:
        if value not in PAYMENT_TYPE_FILTERS:
            raise ValueError(f"Unknown payment type filter: {value}")
        self.payment_type_filter = value
        self.current_page = 1

    def matches_search(self, p: Payment, query: str) -> bool:
        if not query:
            return True
        return matches_any(
            query,
            [p.payment_id, p.client_fullname, p.case_id, p.ct_name, p.payment_type, format_datetime(p.payment_date)],
        )

    def filtered(self) -> list[Payment]:
        return [
            p
            for p in self.store
            if self.matches_search(p, self.search)
            and (self.payment_type_filter == "All" or p.payment_type == self.payment_type_filter)
        ]

    def page(self) -> Page[Payment]:
        return paginate(self.filtered(), page=self.current_page, page_size=self.settings.page_size)

    def go_to_page(self, page: int) -> int:
        """Clamp to 1..total_pages; an empty table stays on page 1."""
        self.current_page = min(max(page, 1), max(self.page().total_pages, 1))
        return self.current_page

    @property
    def show_cheque_columns(self) -> bool:
        return self.payment_type_filter == PaymentType.CHEQUE.value

    def table_rows(self) -> list[dict[str, Any]]:
        rows = []
        for p in self.page().rows:
            row: dict[str, Any] = {
                "payment_id": p.payment_id,
                "case_id": p.case_id,
                "client": p.client_fullname or "",
                "case_type": p.ct_name or "",
                "amount": format_currency(p.payment_amount),
                "payment_type": p.payment_type or "",
                "date": format_datetime(p.payment_date),
                "processed_by": short_name(p.user_fname, p.user_mname, p.user_lname),
            }
            if self.show_cheque_columns:
                row.update(
                    cheque_name=p.cheque_name or "",
                    cheque_number=p.cheque_number or "",
                    cheque_branch=p.cheque_branch or "",
                    cheque_location=p.cheque_location or "",
                )
            rows.append(row)
        return rows

    def view_cheque(self, payment: Payment) -> Payment | None:
        self.selected_cheque = payment if payment.payment_type == PaymentType.CHEQUE.value else None
        return self.selected_cheque

    def view_receipt(self, payment: Payment) -> PaymentReceipt:
        cheque = payment.payment_type == PaymentType.CHEQUE.value
        self.selected_cheque = payment if cheque else None
        self.receipt = PaymentReceipt(
            payment_id=payment.payment_id,
            payment_type=payment.payment_type or "",
            paid_to=payment.client_fullname or "",
            case_id=payment.case_id,
            amount=format_currency(payment.payment_amount),
            date=format_datetime(payment.payment_date),
            processed_by=full_name(payment.user_fname, payment.user_mname, payment.user_lname),
            cheque_name=payment.cheque_name if cheque else None,
            cheque_number=payment.cheque_number if cheque else None,
            cheque_branch=payment.cheque_branch if cheque else None,
            cheque_location=payment.cheque_location if cheque else None,
        )
        return self.receipt

    def close_receipt(self) -> None:
        self.receipt = None
        self.selected_cheque = None

    # ------------------------------------------------------------------
    # Add payment
    # ------------------------------------------------------------------
    def start_payment(self) -> AddPaymentForm:
        user: User = self.auth.require_user()
        self.form = AddPaymentForm(user_id=user.user_id)
        return self.form

    def cancel_payment(self) -> None:
        self.form = None

    def case_for(self, case_id: str | int | None) -> Case | None:
        try:
            cid = int(case_id) if case_id not in (None, "") else None
        except (TypeError, ValueError):
            return None
        return next((c for c in self.cases if c.case_id == cid), None)

    @property
    def selected_case_balance(self) -> Decimal | None:
        if self.form is None:
            return None
        case = self.case_for(self.form.case_id)
        return case.case_balance if case is not None else None

    async def submit_payment(self) -> Payment | None:
        form = self.form
        if form is None:
            return None
        try:
            amount = validate_payment(form, self.case_for(form.case_id))
        except ValidationFailure as e:
            self.notifier.error(str(e))
            return None

        toast_id = self.notifier.loading("Adding payment...")
        try:
            data = await self.api.post("/payments", json=payment_payload(form, amount))
            payment = Payment.model_validate(data)
        except ApiStatusError as e:
            logger.error("Payment failed: %s", e.body)
            self.notifier.error(e.server_message or "Failed to add payment", toast_id=toast_id)
            return None
        except ApiError as e:
            logger.error("Error adding payment: %s", e)
            self.notifier.error(f"Network error: {e}", toast_id=toast_id)
            return None
        except ValidationError as e:
            logger.error("Unexpected payment response: %s", e)
            self.notifier.error("Failed to add payment", toast_id=toast_id)
            return None

        self.store.append(payment)
        self.notifier.success("Payment added successfully!", toast_id=toast_id)
        self.form = None
        return payment

    # ------------------------------------------------------------------
    # Delete payment
    # ------------------------------------------------------------------
    async def delete_payment(self, payment: Payment, confirm: ConfirmFn) -> bool:
        """
        Ask, then DELETE. The row is removed and success reported only after
        the backend confirmed with a 2xx; on failure the row stays.
        """
        msg = f"Are you sure you want to delete payment ID {payment.payment_id}? This action cannot be undone."
        if not confirm(msg):
            return False
        toast_id = self.notifier.loading("Deleting payment...")
        try:
            await self.api.delete(f"/payments/{payment.payment_id}")
        except ApiError as e:
            logger.error("Failed to delete payment %s: %s", payment.payment_id, e)
            self.error = "Failed to delete payment. Please try again later."
            self.notifier.error("Failed to delete payment.", toast_id=toast_id)
            return False
        self.store.remove_by_id(payment.payment_id)
        self.notifier.success("Payment deleted successfully!", toast_id=toast_id)
        return True
