from __future__ import annotations

import enum


class UserRole(str, enum.Enum):
    PARALEGAL = "Paralegal"
    STAFF = "Staff"
    LAWYER = "Lawyer"
    ADMIN = "Admin"  # shown as "Super Lawyer"
    SUPER_LAWYER = "SuperLawyer"

    @property
    def label(self) -> str:
        if self in (UserRole.ADMIN, UserRole.SUPER_LAWYER):
            return "Super Lawyer"
        return self.value


class UserStatus(str, enum.Enum):
    ACTIVE = "Active"
    PENDING = "Pending"
    SUSPENDED = "Suspended"


class CaseStatus(str, enum.Enum):
    PENDING = "Pending"
    PROCESSING = "Processing"
    COMPLETED = "Completed"
    DISMISSED = "Dismissed"
    ARCHIVED_COMPLETED = "Archived (Completed)"
    ARCHIVED_DISMISSED = "Archived (Dismissed)"


# Status tabs on the cases page; "" means no filter.
CASE_STATUS_TABS: tuple[CaseStatus, ...] = (
    CaseStatus.PENDING,
    CaseStatus.PROCESSING,
    CaseStatus.COMPLETED,
    CaseStatus.DISMISSED,
)

ARCHIVED_STATUSES = frozenset({CaseStatus.ARCHIVED_COMPLETED.value, CaseStatus.ARCHIVED_DISMISSED.value})
CLOSED_STATUSES = frozenset({CaseStatus.COMPLETED.value, CaseStatus.DISMISSED.value})


class PaymentType(str, enum.Enum):
    CASH = "Cash"
    CHEQUE = "Cheque"
