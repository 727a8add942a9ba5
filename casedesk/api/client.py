from __future__ import annotations

import logging
from typing import Any

import httpx

from casedesk.core.config import Settings, settings as default_settings
from casedesk.core.errors import ApiError, ApiStatusError, TransportFailure

logger = logging.getLogger(__name__)

# (filename, content, content_type), as accepted by httpx multipart uploads.
FileTuple = tuple[str, bytes, str]


def _server_message(response: httpx.Response) -> tuple[str | None, Any]:
    try:
        body = response.json()
    except ValueError:
        return None, None
    if isinstance(body, dict):
        msg = body.get("error") or body.get("message")
        return (str(msg) if msg else None), body
    return None, body


def form_fields(values: dict[str, Any]) -> dict[str, str]:
    """Multipart form values are strings; unset values are sent empty."""
    return {k: "" if v is None else str(v) for k, v in values.items()}


class ApiClient:
    """
    Thin async wrapper around one shared httpx.AsyncClient.

    - Base URL is ``api_base_url + api_prefix`` (e.g. http://localhost:3000/api).
    - The session cookie jar is shared by every request made through this client.
    - 2xx responses return decoded JSON (None for an empty body).
    - Failures raise TransportFailure or ApiStatusError; nothing is retried.
    """

    def __init__(
        self,
        *,
        config: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        cookies: dict[str, str] | None = None,
    ) -> None:
        self.settings = config or default_settings
        jar = dict(cookies or {})
        if self.settings.session_token and self.settings.session_cookie_name not in jar:
            jar[self.settings.session_cookie_name] = self.settings.session_token
        self._client = httpx.AsyncClient(
            base_url=f"{self.settings.api_base_url}{self.settings.api_prefix}",
            timeout=self.settings.request_timeout_seconds,
            transport=transport,
            cookies=jar,
        )

    @property
    def origin(self) -> str:
        return self.settings.api_base_url

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc_info) -> None:  # noqa: ANN002
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        data: dict[str, str] | None = None,
        files: dict[str, Any] | None = None,
    ) -> Any:
        try:
            r = await self._client.request(method, path, json=json, data=data, files=files)
        except httpx.RequestError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise TransportFailure(str(e) or e.__class__.__name__) from e

        if not r.is_success:
            msg, body = _server_message(r)
            logger.warning("%s %s -> %s %s", method, path, r.status_code, msg or "")
            raise ApiStatusError(status_code=r.status_code, server_message=msg, body=body)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"Malformed response body from {method} {path}", status_code=r.status_code) from e

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, **kwargs: Any) -> Any:
        return await self.request("POST", path, **kwargs)

    async def put(self, path: str, **kwargs: Any) -> Any:
        return await self.request("PUT", path, **kwargs)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

    async def send_form(
        self,
        method: str,
        path: str,
        fields: dict[str, str],
        files: dict[str, FileTuple] | None = None,
    ) -> Any:
        """multipart/form-data body, with or without a file part."""
        # Filename-less parts are plain form fields; httpx would otherwise urlencode a files-free body.
        parts: dict[str, Any] = {name: (None, value) for name, value in fields.items()}
        parts.update(files or {})
        return await self.request(method, path, files=parts)
