"""Pytest fixtures for casedesk tests."""

import inspect
from typing import Any, Callable

import httpx
import pytest
import pytest_asyncio

from casedesk.api.client import ApiClient
from casedesk.core.config import Settings
from casedesk.core.notify import ToastLog
from casedesk.core.session import AuthContext
from casedesk.schemas.user import User

ORIGIN = "http://testserver"


class FakeBackend:
    """
    In-process stand-in for the REST API, mounted with httpx.MockTransport.

    Routes are keyed by method and path (without the /api prefix). A route is
    either canned JSON or a handler taking the request (sync or async).
    Unrouted requests answer 404. Every request is recorded.
    """

    def __init__(self, prefix: str = "/api") -> None:
        self.prefix = prefix
        self.routes: dict[tuple[str, str], Callable] = {}
        self.requests: list[httpx.Request] = []

    def on(self, method: str, path: str, body: Any = None, *, status: int = 200, handler: Callable | None = None):
        if handler is None:

            def handler(request, _status=status, _body=body):
                return httpx.Response(_status, json=_body)

        self.routes[(method.upper(), self.prefix + path)] = handler

    def fail(self, method: str, path: str):
        """Route that never gets an HTTP response."""

        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        self.routes[(method.upper(), self.prefix + path)] = handler

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        full = self.prefix + path
        return [r for r in self.requests if r.method == method.upper() and r.url.path == full]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        handler = self.routes.get((request.method, request.url.path))
        if handler is None:
            return httpx.Response(404, json={"error": f"no route for {request.method} {request.url.path}"})
        result = handler(request)
        if inspect.isawaitable(result):
            result = await result
        return result


def make_user(role: str, user_id: int = 7, **extra) -> User:
    data = {
        "user_id": user_id,
        "user_fname": "Maria",
        "user_mname": "Cruz",
        "user_lname": "Santos",
        "user_email": "maria@example.com",
        "user_phonenum": "09171234567",
        "user_role": role,
        "branch_id": 1,
        "user_status": "Active",
        "user_date_created": "2026-10-18T09:30:00",
    }
    data.update(extra)
    return User.model_validate(data)


@pytest.fixture
def config():
    return Settings(_env_file=None, api_base_url=ORIGIN)


@pytest.fixture
def backend():
    return FakeBackend()


@pytest_asyncio.fixture
async def api(config, backend):
    client = ApiClient(config=config, transport=httpx.MockTransport(backend))
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def auth(api):
    return AuthContext(api)


@pytest.fixture
def login(auth):
    """Put a user of the given role into the session."""

    def _login(role: str, user_id: int = 7, **extra) -> User:
        user = make_user(role, user_id, **extra)
        auth.set_user(user)
        return user

    return _login


@pytest.fixture
def toasts():
    return ToastLog()
