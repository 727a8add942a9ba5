import httpx
import pytest

from casedesk.services.users import AddUserForm


def _fill(form: AddUserForm) -> None:
    form.set_field("user_fname", "Juan")
    form.set_field("user_lname", "Dela Cruz")
    form.set_field("user_email", "juan@example.com")
    form.set_password("Abcdefghi1!")
    form.set_phone("0917-123-4567")
    form.set_field("user_role", "Lawyer")
    form.set_field("branch_id", "2")


@pytest.mark.asyncio
async def test_add_user_without_image_sends_multipart_and_resets(api, auth, backend, login, toasts):
    login("Admin", 1)
    closed = []
    backend.on("POST", "/users", {"user_id": 50}, status=201)
    form = AddUserForm(api, auth, notifier=toasts, on_close=lambda: closed.append(True))
    _fill(form)

    result = await form.submit()

    assert result == {"user_id": 50}
    (request,) = backend.calls("POST", "/users")
    assert request.headers["content-type"].startswith("multipart/form-data")
    assert b'name="user_fname"' in request.content
    assert b'name="created_by"' in request.content
    assert b"09171234567" in request.content
    assert b'name="user_profile"' not in request.content

    assert all(v == "" for v in form.values.values())
    assert not form.password_requirements.all_met
    assert closed == [True] and not form.is_open
    assert toasts.messages("success") == ["User successfully added!"]


@pytest.mark.asyncio
async def test_add_user_with_image(api, auth, backend, login, toasts, tmp_path):
    login("Admin", 1)
    backend.on("POST", "/users", {"user_id": 51}, status=201)
    img = tmp_path / "me.png"
    img.write_bytes(b"\x89PNG fake")
    form = AddUserForm(api, auth, notifier=toasts)
    _fill(form)
    assert form.choose_image(img).startswith("file://")

    await form.submit()

    (request,) = backend.calls("POST", "/users")
    assert b'name="user_profile"; filename="me.png"' in request.content
    assert not form.image.chosen


@pytest.mark.asyncio
async def test_add_user_failure_keeps_fields(api, auth, backend, login, toasts):
    login("Admin", 1)
    backend.on("POST", "/users", {"error": "Email already exists"}, status=409)
    form = AddUserForm(api, auth, notifier=toasts)
    _fill(form)
    before = dict(form.values)

    assert await form.submit() is None

    assert form.values == before
    assert form.error == "Email already exists"
    assert form.is_open
    assert toasts.messages("error") == ["Email already exists"]


@pytest.mark.asyncio
async def test_add_user_failure_without_server_message(api, auth, backend, login, toasts):
    login("Admin", 1)
    backend.on("POST", "/users", handler=lambda request: httpx.Response(500, text="oops"))
    form = AddUserForm(api, auth, notifier=toasts)
    _fill(form)

    await form.submit()

    assert form.error == "Fail adding user"
    assert toasts.messages("error") == ["Failed to add user."]


@pytest.mark.asyncio
async def test_missing_fields_never_hit_network(api, auth, backend, login, toasts):
    login("Admin", 1)
    form = AddUserForm(api, auth, notifier=toasts)
    form.set_field("user_fname", "Juan")

    assert await form.submit() is None

    assert backend.calls("POST", "/users") == []
    assert toasts.messages("error") == ["Please fill out: Last Name, Email, Password, Role, Branch"]


@pytest.mark.asyncio
async def test_load_branches_error(api, auth, backend, login):
    login("Admin", 1)
    backend.fail("GET", "/branches")
    form = AddUserForm(api, auth)
    assert await form.load_branches() == []
    assert form.error == "connection refused"


@pytest.mark.asyncio
async def test_replacing_image_releases_previous_file(api, auth, login, tmp_path):
    login("Admin", 1)
    first_img, second_img = tmp_path / "a.png", tmp_path / "b.png"
    first_img.write_bytes(b"a")
    second_img.write_bytes(b"b")
    form = AddUserForm(api, auth)

    form.choose_image(first_img)
    first = form.image._fh
    form.choose_image(second_img)
    second = form.image._fh

    assert first.closed and not second.closed
    assert form.preview == second_img.resolve().as_uri()

    form.reset()
    assert second.closed and not form.image.chosen

    form.choose_image(first_img)
    third = form.image._fh
    form.close()
    assert third.closed and form.image.path is None
