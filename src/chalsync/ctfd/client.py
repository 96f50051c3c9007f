"""CTFd REST API client (``/api/v1``) on top of httpx.

Every response is wrapped in CTFd's envelope::

    {"success": true, "data": {...}}
    {"success": false, "errors": {...}, "message": "..."}

The client unwraps it and turns failures into CTFdError subclasses.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from chalsync.config import Settings
from chalsync.ctfd.base import ChallengeBackend
from chalsync.ctfd.errors import CTFdAPIError, CTFdConnectionError, CTFdNotFoundError
from chalsync.ctfd.schemas import (
    ChallengeParams,
    ChallengeRecord,
    RequirementsPayload,
    TagRecord,
    TopicRecord,
)

logger = structlog.get_logger()


def _error_message(response: httpx.Response) -> str:
    """Best-effort extraction of a human readable error from a CTFd response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if not isinstance(body, dict):
        return str(body)
    errors = body.get("errors")
    if isinstance(errors, dict) and errors:
        return "; ".join(f"{key}: {value}" for key, value in errors.items())
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors)
    return str(body.get("message") or response.reason_phrase)


class CTFdClient(ChallengeBackend):
    """Talks to a CTFd instance with an admin API token."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 10.0,
        retries: int = 0,
        verify: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/") + "/api/v1",
            headers={
                "Authorization": f"Token {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport or httpx.AsyncHTTPTransport(retries=retries, verify=verify),
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> CTFdClient:
        return cls(
            settings.ctfd_url,
            settings.ctfd_api_key,
            timeout=settings.request_timeout_seconds,
            retries=settings.http_retries,
            verify=settings.verify_tls,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> CTFdClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Issue one request and return the envelope's ``data``."""
        try:
            response = await self._client.request(method, path, json=json, params=params)
        except httpx.HTTPError as exc:
            raise CTFdConnectionError(f"{method} {path}: {exc}") from exc

        logger.debug("ctfd_request", method=method, path=path, status=response.status_code)

        if response.status_code == 404:
            raise CTFdNotFoundError(_error_message(response))
        if response.is_error:
            raise CTFdAPIError(response.status_code, _error_message(response))

        if not response.content:
            return None
        try:
            body = response.json()
        except ValueError as exc:
            raise CTFdAPIError(response.status_code, f"invalid JSON response: {exc}") from exc
        if isinstance(body, dict):
            if body.get("success") is False:
                raise CTFdAPIError(response.status_code, _error_message(response))
            return body.get("data")
        return body

    # --- Challenges ---

    async def create_challenge(self, params: ChallengeParams) -> ChallengeRecord:
        data = await self._request("POST", "/challenges", json=params.model_dump(exclude_none=True))
        return ChallengeRecord.model_validate(data)

    async def get_challenge(self, challenge_id: int) -> ChallengeRecord:
        data = await self._request("GET", f"/challenges/{challenge_id}")
        if not data:
            raise CTFdNotFoundError(f"challenge {challenge_id}")
        return ChallengeRecord.model_validate(data)

    async def update_challenge(self, challenge_id: int, params: ChallengeParams) -> ChallengeRecord:
        # Full overwrite: nulls are sent so that cleared fields are cleared remotely
        body = params.model_dump(exclude={"type"})
        data = await self._request("PATCH", f"/challenges/{challenge_id}", json=body)
        return ChallengeRecord.model_validate(data)

    async def delete_challenge(self, challenge_id: int) -> None:
        await self._request("DELETE", f"/challenges/{challenge_id}")

    # --- Requirements ---

    async def get_requirements(self, challenge_id: int) -> RequirementsPayload | None:
        data = await self._request("GET", f"/challenges/{challenge_id}/requirements")
        if not data:
            return None
        return RequirementsPayload.model_validate(data)

    # --- Tags ---

    async def list_tags(self, challenge_id: int) -> list[TagRecord]:
        data = await self._request("GET", f"/challenges/{challenge_id}/tags")
        return [TagRecord.model_validate(item) for item in data or []]

    async def create_tag(self, challenge_id: int, value: str) -> TagRecord:
        data = await self._request("POST", "/tags", json={"challenge": challenge_id, "value": value})
        return TagRecord.model_validate(data)

    async def delete_tag(self, tag_id: int) -> None:
        await self._request("DELETE", f"/tags/{tag_id}")

    # --- Topics ---

    async def list_topics(self, challenge_id: int) -> list[TopicRecord]:
        data = await self._request("GET", f"/challenges/{challenge_id}/topics")
        return [TopicRecord.model_validate(item) for item in data or []]

    async def create_topic(self, challenge_id: int, owner_kind: str, value: str) -> TopicRecord:
        data = await self._request(
            "POST",
            "/topics",
            json={"challenge": challenge_id, "type": owner_kind, "value": value},
        )
        return TopicRecord.model_validate(data)

    async def delete_topic(self, topic_id: int, owner_kind: str) -> None:
        await self._request("DELETE", "/topics", params={"type": owner_kind, "target_id": topic_id})
