"""Forms REST API client.

Fetches forms and analytics summaries, submits responses, and drives the
authoring endpoints.  Uses httpx for async HTTP.  Any non-2xx answer raises
``ApiError`` carrying the status and the response body.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import httpx

from formpulse.aggregation.store import Snapshot
from formpulse.errors import ApiError
from formpulse.schema import Form, FormField, parse_form
from formpulse.validation import require_complete


def check_api(api_base: str, timeout: float = 10.0) -> tuple[bool | None, str | None]:
    """Call ``GET /health`` on the forms API.

    Returns:
        (True, None) if the API answered ok
        (False, error_message) if it answered with an error status
        (None, error_message) if network/other error
    """
    try:
        resp = httpx.get(f"{api_base.rstrip('/')}/health", timeout=timeout)
        if resp.status_code == 200:
            return True, None
        return False, f"unexpected status {resp.status_code}"
    except httpx.HTTPError as exc:
        return None, f"network error: {exc}"


def _wire_value(value: Any) -> Any:
    """JSON-safe answer value (checkbox selections may be sets)."""
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if isinstance(value, tuple):
        return list(value)
    return value


def _wire_fields(fields: Sequence[FormField]) -> list[dict[str, Any]]:
    return [f.model_dump(mode="json") for f in fields]


class FormsClient:
    """Async client for one forms API base URL."""

    def __init__(
        self,
        api_base: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=api_base,
            timeout=timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

    async def __aenter__(self) -> FormsClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, body: Any = None) -> Any:
        try:
            resp = await self._client.request(method, path, json=body)
        except httpx.HTTPError as exc:
            raise ApiError(0, f"network error: {exc}") from exc
        if not resp.is_success:
            raise ApiError(resp.status_code, resp.text)
        if "application/json" in resp.headers.get("content-type", ""):
            return resp.json()
        return resp.text

    # ── Reading ────────────────────────────────────────────────────

    async def get_form(self, form_id: str) -> Form:
        return parse_form(await self._request("GET", f"/forms/{form_id}"))

    async def get_summary(self, form_id: str) -> Snapshot:
        """Bucket counts per field, as stored server-side."""
        data = await self._request("GET", f"/analytics/{form_id}/summary")
        return data.get("buckets") or {}

    # ── Responding ─────────────────────────────────────────────────

    async def submit_response(
        self,
        form: Form,
        answers: Mapping[str, Any],
        *,
        enforce_required: bool = True,
    ) -> None:
        """Submit one response to *form*.

        Raises:
            ValidationError: a required field is unfilled (unless
                *enforce_required* is False, which posts regardless).
        """
        if enforce_required:
            require_complete(form.fields, answers)
        body = {
            "formId": form.id,
            "answers": [{"fieldId": k, "value": _wire_value(v)} for k, v in answers.items()],
        }
        await self._request("POST", "/responses", body)

    # ── Authoring ──────────────────────────────────────────────────

    async def create_form(
        self,
        title: str = "",
        description: str = "",
        fields: Sequence[FormField] = (),
    ) -> Form:
        body = {"title": title, "description": description, "fields": _wire_fields(fields)}
        return parse_form(await self._request("POST", "/forms", body))

    async def update_form(
        self,
        form_id: str,
        title: str,
        description: str,
        fields: Sequence[FormField],
    ) -> Form:
        body = {"title": title, "description": description, "fields": _wire_fields(fields)}
        return parse_form(await self._request("PUT", f"/forms/{form_id}", body))

    async def publish_form(self, form_id: str) -> Form:
        return parse_form(await self._request("POST", f"/forms/{form_id}/publish", {}))
