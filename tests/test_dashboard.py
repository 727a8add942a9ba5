import pytest

from casedesk.core.config import Settings
from casedesk.schemas.dashboard import UserLog
from casedesk.services.activity_log import activity_rows, logs_endpoint
from casedesk.services.dashboard import Dashboard, category_buckets, count_endpoints

from tests.conftest import ORIGIN, make_user


def route_counts(backend, user, value=5):
    for path in count_endpoints(user).values():
        backend.on("GET", path, {"count": value})


def route_rest(backend, *, logs=None, chart=None):
    backend.on("GET", "/user-logs", logs or [])
    backend.on("GET", "/reports/case-counts-by-category", chart or {})


@pytest.mark.asyncio
async def test_failed_count_reads_zero_without_affecting_others(api, auth, backend, login):
    user = login("Admin", 1)
    route_counts(backend, user)
    route_rest(backend)
    backend.fail("GET", "/cases/count/processing")
    dash = Dashboard(api, auth)

    await dash.refresh()

    assert dash.counts.processing_cases == 0
    assert dash.counts.users == 5
    assert dash.counts.archived_cases == 5
    assert dash.counts.pending_tasks == 5


@pytest.mark.asyncio
async def test_missing_count_field_reads_zero(api, auth, backend, login):
    user = login("Admin", 1)
    route_counts(backend, user)
    backend.on("GET", "/clients/count", {"total": 3})
    dash = Dashboard(api, auth)
    await dash.load_counts()
    assert dash.counts.clients == 0
    assert dash.counts.users == 5


def test_endpoints_by_role():
    lawyer = count_endpoints(make_user("Lawyer", 7))
    assert "users" not in lawyer
    assert lawyer["processing_cases"] == "/cases/count/processing/user/7"
    assert lawyer["archived_cases"] == "/cases/count/archived/user/7"
    assert lawyer["processing_docs"] == "/documents/count/processing/lawyer"
    assert lawyer["pending_tasks"] == "/documents/count/pending-tasks/7"

    staff = count_endpoints(make_user("Staff", 8))
    assert staff["processing_cases"] == "/cases/count/processing"
    assert staff["processing_docs"] == "/documents/count/processing"
    assert staff["pending_tasks"] == "/documents/count/pending-tasks/8"

    boss = count_endpoints(make_user("SuperLawyer", 2))
    assert boss["users"] == "/users/count"
    assert boss["pending_tasks"] == "/documents/count/pending-tasks"

    assert logs_endpoint(make_user("SuperLawyer", 2)) == "/user-logs"
    assert logs_endpoint(make_user("Staff", 8)) == "/user-logs/8"


def test_absent_buckets_default_to_zero():
    buckets = category_buckets({"civil": 4, "special_courts": "2"})
    assert [(b.name, b.total) for b in buckets] == [
        ("Civil", 4),
        ("Criminal", 0),
        ("Special Proceedings", 0),
        ("Constitutional", 0),
        ("Jurisdictional", 0),
        ("Special Courts", 2),
    ]
    assert all(b.total == 0 for b in category_buckets(None))


@pytest.mark.asyncio
async def test_chart_failure_keeps_zero_buckets(api, auth, backend, login):
    login("Paralegal", 3)
    backend.on("GET", "/reports/case-counts-by-category", {"error": "x"}, status=500)
    dash = Dashboard(api, auth)
    buckets = await dash.load_chart()
    assert len(buckets) == 6 and sum(b.total for b in buckets) == 0


@pytest.mark.asyncio
async def test_cards_and_layout_per_role(api, auth, login):
    dash = Dashboard(api, auth)

    login("Paralegal", 3)
    assert [c.title for c in dash.cards()] == ["Pending Approvals", "Pending Tasks"]
    assert dash.layout().columns == 2

    login("Staff", 4)
    assert [c.key for c in dash.cards()] == ["processingDocs", "clients", "approvals", "tasks"]

    login("Lawyer", 7)
    assert [c.key for c in dash.cards()] == ["archived", "processingCases", "processingDocs", "clients", "approvals", "tasks"]
    assert [len(r) for r in dash.layout().rows] == [3, 3]

    login("SuperLawyer", 2)
    layout = dash.layout()
    assert [len(r) for r in layout.rows] == [4, 3]
    assert layout.rows[0][0].title == "Users"


@pytest.mark.asyncio
async def test_activity_feed(api, auth, backend, login):
    login("Lawyer", 7)
    logs = [
        {
            "user_log_id": i,
            "user_fullname": None if i == 1 else "Ana Reyes",
            "user_log_action": "Logged in",
            "user_log_time": "2026-10-18T15:05:00",
            "user_profile": "/uploads/ana.png" if i == 2 else None,
        }
        for i in range(1, 7)
    ]
    backend.on("GET", "/user-logs/7", logs)
    dash = Dashboard(api, auth)

    await dash.load_activity()
    rows = dash.activity()

    assert [r.id for r in rows] == [1, 2, 3, 4]
    assert rows[0].actor == "Unknown User"
    assert rows[1].avatar_url == f"{ORIGIN}/uploads/ana.png"
    assert rows[0].time == "03:05 PM"
    assert rows[0].date == "10/18/2026"


def test_activity_rows_use_default_avatar():
    (row,) = activity_rows([UserLog(user_log_id=1)], limit=4)
    assert row.avatar_url.endswith("default-avatar.png")
    assert row.time == "" and row.actor == "Unknown User"


@pytest.mark.asyncio
async def test_staff_gets_lawyer_recommendations(api, auth, backend, login):
    user = login("Staff", 4)
    route_counts(backend, user)
    backend.on("GET", "/user-logs/4", [])
    backend.on("GET", "/reports/case-counts-by-category", {})
    backend.on(
        "GET",
        "/lawyers-with-case-counts",
        [{"user_id": 20, "user_fname": "Pedro", "user_lname": "Lim", "total_cases": None, "completed_cases": 2}],
    )
    dash = Dashboard(api, auth)

    await dash.refresh()

    (lawyer,) = dash.lawyers
    assert lawyer.total_cases == 0 and lawyer.completed_cases == 2
    assert dash.welcome == "Welcome back Maria! Here's your overview."


@pytest.mark.asyncio
async def test_other_roles_skip_lawyer_recommendations(api, auth, backend, login):
    login("Lawyer", 7)
    dash = Dashboard(api, auth)
    assert await dash.load_lawyers() == []
    assert backend.calls("GET", "/lawyers-with-case-counts") == []


@pytest.mark.asyncio
async def test_activity_feed_follows_dashboard_settings(api, auth, backend, login):
    login("Lawyer", 7)
    backend.on("GET", "/user-logs/7", [{"user_log_id": i} for i in range(1, 7)])
    config = Settings(_env_file=None, api_base_url=ORIGIN, activity_feed_limit=2, default_avatar="img/blank.png")
    dash = Dashboard(api, auth, config=config)

    await dash.load_activity()
    rows = dash.activity()

    assert [r.id for r in rows] == [1, 2]
    assert all(r.avatar_url == "img/blank.png" for r in rows)
