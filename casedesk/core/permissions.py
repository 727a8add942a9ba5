"""Role -> capability table consulted wherever behavior is role-gated."""

from __future__ import annotations

import enum

from casedesk.models.enums import UserRole


class Capability(str, enum.Enum):
    ACCESS_CASES_PAGE = "access_cases_page"
    VIEW_ALL_CASES = "view_all_cases"
    VIEW_ALL_PAYMENTS = "view_all_payments"
    ASSIGN_ANY_LAWYER = "assign_any_lawyer"
    SELF_ASSIGN_ON_EDIT = "self_assign_on_edit"
    COUNT_USERS = "count_users"
    FIRM_WIDE_CASE_COUNTS = "firm_wide_case_counts"
    FIRM_WIDE_PENDING_TASKS = "firm_wide_pending_tasks"
    LAWYER_SCOPED_DOCUMENTS = "lawyer_scoped_documents"
    VIEW_ALL_USER_LOGS = "view_all_user_logs"
    LAWYER_RECOMMENDATIONS = "lawyer_recommendations"
    CASE_COUNT_CARDS = "case_count_cards"
    DOCUMENT_AND_CLIENT_CARDS = "document_and_client_cards"


_A = UserRole.ADMIN
_SL = UserRole.SUPER_LAWYER
_L = UserRole.LAWYER
_S = UserRole.STAFF
_P = UserRole.PARALEGAL

ROLE_CAPABILITIES: dict[UserRole, frozenset[Capability]] = {
    _A: frozenset(
        {
            Capability.ACCESS_CASES_PAGE,
            Capability.VIEW_ALL_CASES,
            Capability.VIEW_ALL_PAYMENTS,
            Capability.ASSIGN_ANY_LAWYER,
            Capability.COUNT_USERS,
            Capability.FIRM_WIDE_CASE_COUNTS,
            Capability.FIRM_WIDE_PENDING_TASKS,
            Capability.VIEW_ALL_USER_LOGS,
            Capability.CASE_COUNT_CARDS,
            Capability.DOCUMENT_AND_CLIENT_CARDS,
        }
    ),
    _SL: frozenset(
        {
            Capability.COUNT_USERS,
            Capability.FIRM_WIDE_CASE_COUNTS,
            Capability.FIRM_WIDE_PENDING_TASKS,
            Capability.VIEW_ALL_USER_LOGS,
            Capability.CASE_COUNT_CARDS,
            Capability.DOCUMENT_AND_CLIENT_CARDS,
        }
    ),
    _L: frozenset(
        {
            Capability.ACCESS_CASES_PAGE,
            Capability.SELF_ASSIGN_ON_EDIT,
            Capability.LAWYER_SCOPED_DOCUMENTS,
            Capability.CASE_COUNT_CARDS,
            Capability.DOCUMENT_AND_CLIENT_CARDS,
        }
    ),
    _S: frozenset(
        {
            Capability.FIRM_WIDE_CASE_COUNTS,
            Capability.LAWYER_RECOMMENDATIONS,
            Capability.DOCUMENT_AND_CLIENT_CARDS,
        }
    ),
    _P: frozenset(),
}


def parse_role(value: UserRole | str | None) -> UserRole | None:
    if value is None or isinstance(value, UserRole):
        return value
    try:
        return UserRole(value)
    except ValueError:
        return None


def can(role: UserRole | str | None, capability: Capability) -> bool:
    """Unknown or missing roles have no capabilities."""
    r = parse_role(role)
    if r is None:
        return False
    return capability in ROLE_CAPABILITIES[r]
