from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, field_validator

from casedesk.schemas.common import ApiModel, empty_to_none, to_str_or_none


class Payment(ApiModel):
    payment_id: int
    case_id: int | None = None
    user_id: int | None = None  # lawyer who processed the payment
    payment_amount: Decimal | None = None
    payment_date: dt.datetime | None = None
    payment_type: str | None = None

    # Cheque payments only.
    cheque_name: str | None = None
    cheque_number: str | None = None
    cheque_branch: str | None = None
    cheque_location: str | None = None

    # Joined display columns.
    client_fullname: str | None = None
    ct_name: str | None = None
    user_fname: str | None = None
    user_mname: str | None = None
    user_lname: str | None = None

    @field_validator("cheque_number", mode="before")
    @classmethod
    def _cheque_number_as_text(cls, v):  # noqa: ANN001
        return to_str_or_none(v)

    @field_validator("case_id", "user_id", "payment_amount", "payment_date", mode="before")
    @classmethod
    def _blank_is_none(cls, v):  # noqa: ANN001
        return empty_to_none(v)


class PaymentReceipt(BaseModel):
    """Read-only receipt shown when a payment row is opened."""

    payment_id: int
    payment_type: str
    paid_to: str
    case_id: int | None = None
    amount: str
    date: str
    processed_by: str

    # Cheque payments only.
    cheque_name: str | None = None
    cheque_number: str | None = None
    cheque_branch: str | None = None
    cheque_location: str | None = None
