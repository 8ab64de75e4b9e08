"""Thin single-shot wrapper around the platform REST API."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping

import httpx
import structlog

from interaction_router.config import DEFAULT_API_BASE_URL
from interaction_router.errors import RestError

if TYPE_CHECKING:
    from interaction_router.interactions.messages import MemberEditBuilder, MessageBuilder

AUDIT_LOG_REASON_HEADER = "X-Audit-Log-Reason"
ROLE_AUDIT_REASON = "Reaction Role invoked"


class RestClient:
    """Authenticated client for calls back into the platform.

    Every call is attempted once. Non-2xx responses raise :class:`RestError`
    carrying the response body text.
    """

    def __init__(
        self,
        *,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = DEFAULT_API_BASE_URL,
        timeout_seconds: float = 10.0,
    ) -> None:
        if not token:
            raise ValueError("A bot token must be provided.")

        self._token = token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout_seconds)
        self._authorization_header = f"Bot {token}"

    @property
    def token(self) -> str:
        return self._token

    @property
    def client(self) -> httpx.AsyncClient:
        """Expose the underlying httpx client for advanced use cases."""

        return self._client

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RestClient":
        return self

    async def __aexit__(self, *_exc_info: object) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        audit_log_reason: str | None = None,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> httpx.Response:
        headers = {"Authorization": self._authorization_header}
        if audit_log_reason:
            headers[AUDIT_LOG_REASON_HEADER] = audit_log_reason

        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as exc:
            structlog.get_logger().warning(
                "rest_request_failed", method=method, path=path, error=type(exc).__name__
            )
            raise RestError(str(exc)) from exc

        if not response.is_success:
            structlog.get_logger().warning(
                "rest_request_rejected", method=method, path=path, status_code=response.status_code
            )
            raise RestError(response.text, status_code=response.status_code)
        return response

    async def request_json(
        self,
        method: str,
        path: str,
        audit_log_reason: str | None = None,
        *,
        json: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        response = await self.request(method, path, audit_log_reason, json=json, params=params)
        try:
            return response.json()
        except ValueError as exc:
            raise RestError(f"Expected a JSON response from {method} {path}") from exc

    async def add_role(
        self, guild_id: str, member_id: str, role_id: str, *, reason: str | None = ROLE_AUDIT_REASON
    ) -> None:
        await self.request("PUT", f"/guilds/{guild_id}/members/{member_id}/roles/{role_id}", reason)

    async def remove_role(
        self, guild_id: str, member_id: str, role_id: str, *, reason: str | None = ROLE_AUDIT_REASON
    ) -> None:
        await self.request("DELETE", f"/guilds/{guild_id}/members/{member_id}/roles/{role_id}", reason)

    async def get_member(self, guild_id: str, member_id: str) -> dict[str, Any]:
        return await self.request_json("GET", f"/guilds/{guild_id}/members/{member_id}")

    async def modify_member(
        self,
        guild_id: str,
        member_id: str,
        edit: MemberEditBuilder,
        *,
        reason: str | None = None,
    ) -> dict[str, Any]:
        return await self.request_json(
            "PATCH",
            f"/guilds/{guild_id}/members/{member_id}",
            reason,
            json=edit.to_payload(),
        )

    async def fetch_messages(
        self,
        channel_id: str,
        *,
        limit: int = 50,
        before: str | None = None,
        after: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": max(1, min(limit, 100))}
        if before:
            params["before"] = before
        if after:
            params["after"] = after
        payload = await self.request_json("GET", f"/channels/{channel_id}/messages", params=params)
        if not isinstance(payload, list):
            return []
        return [item for item in payload if isinstance(item, dict)]

    async def delete_message(
        self, channel_id: str, message_id: str, *, reason: str | None = None
    ) -> None:
        await self.request("DELETE", f"/channels/{channel_id}/messages/{message_id}", reason)

    async def post_followup(
        self, application_id: str, interaction_token: str, message: MessageBuilder
    ) -> dict[str, Any]:
        return await self.request_json(
            "POST",
            f"/webhooks/{application_id}/{interaction_token}",
            json=message.to_payload(),
        )

    async def edit_original_response(
        self, application_id: str, interaction_token: str, message: MessageBuilder
    ) -> dict[str, Any]:
        return await self.request_json(
            "PATCH",
            f"/webhooks/{application_id}/{interaction_token}/messages/@original",
            json=message.to_payload(),
        )
