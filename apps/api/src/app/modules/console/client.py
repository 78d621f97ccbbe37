"""
Console API Client

Async HTTP collaborator between the console and the directory backend.

Reads:
- fetch_snapshot() - the four collections, fetched concurrently

Mutations:
- approve_admin, reject_admin, remove_admin, allow_reapplication,
  assign_admin, delete_mosque

Every request carries the bearer token held by the ``TokenStore``.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

import httpx

from app.core.config import settings

from .errors import (
    ConsoleConflictError,
    ConsoleError,
    ConsoleRequestError,
    ConsoleTransientError,
    message_for_code,
)
from .records import (
    COLLECTIONS,
    ApprovedAdminRecord,
    MosqueRecord,
    PendingAdminRecord,
    RecordSnapshot,
    RejectedAdminRecord,
    parse_records,
)

logger = logging.getLogger(__name__)


class TokenStore:
    """Bearer token persisted to a small JSON file."""

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path or settings.console_token_path)
        self._token: str | None = None

    def load(self) -> str | None:
        if self._token is None and self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Could not read console token file {self.path}: {e}")
                return None
            self._token = data.get("access_token")
        return self._token

    def save(self, access_token: str, refresh_token: str | None = None) -> None:
        self._token = access_token
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"access_token": access_token, "refresh_token": refresh_token}),
            encoding="utf-8",
        )

    def clear(self) -> None:
        self._token = None
        self.path.unlink(missing_ok=True)


class MemoryTokenStore(TokenStore):
    """Token store that never touches the filesystem."""

    def __init__(self, token: str | None = None):
        self.path = None
        self._token = token

    def load(self) -> str | None:
        return self._token

    def save(self, access_token: str, refresh_token: str | None = None) -> None:
        self._token = access_token

    def clear(self) -> None:
        self._token = None


class ConsoleApiClient:
    def __init__(
        self,
        base_url: str | None = None,
        token_store: TokenStore | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.token_store = token_store or TokenStore()
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.console_api_base_url,
            timeout=timeout or settings.console_request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ConsoleApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    # ============================================
    # Transport
    # ============================================

    def _headers(self) -> dict[str, str]:
        token = self.token_store.load()
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict | None = None,
        params: dict | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method, path, json=json_body, params=params, headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ConsoleTransientError(str(e) or type(e).__name__) from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                raise ConsoleTransientError(
                    f"Invalid response body from {path}", response.status_code
                ) from e

        raise _decode_error(response)

    # ============================================
    # Reads
    # ============================================

    async def _collection(self, path: str, key: str, params: dict | None = None) -> list[dict]:
        data = await self._request("GET", path, params=params)
        if not isinstance(data, dict):
            raise ConsoleTransientError(f"Unexpected response body from {path}")
        items = data.get(key, [])
        if not isinstance(items, list):
            raise ConsoleTransientError(f"Unexpected \"{key}\" in response from {path}")
        return items

    async def list_mosques(self) -> list[dict]:
        return await self._collection("/superadmin/mosques", "mosques")

    async def list_pending(self) -> list[dict]:
        return await self._collection("/superadmin/pending", "pending_admins")

    async def list_approved(self) -> list[dict]:
        return await self._collection("/superadmin/approved", "approved_admins")

    async def list_rejected(self, search: str | None = None) -> list[dict]:
        params = {"limit": 1000}
        if search:
            params["search"] = search
        return await self._collection("/superadmin/rejected-admins", "rejected_admins", params)

    async def fetch_snapshot(self) -> RecordSnapshot:
        """
        Fetch all four collections concurrently.

        A collection whose read fails comes back empty and is named in
        ``failed_collections``; the others are still used.
        """
        results = await asyncio.gather(
            self.list_mosques(),
            self.list_pending(),
            self.list_approved(),
            self.list_rejected(),
            return_exceptions=True,
        )

        payloads: dict[str, list] = {}
        failed: set[str] = set()
        for name, result in zip(COLLECTIONS, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, ConsoleError):
                    raise result
                logger.warning(f"Failed to fetch {name}: {result}")
                failed.add(name)
                payloads[name] = []
            else:
                payloads[name] = result

        return RecordSnapshot(
            mosques=parse_records(MosqueRecord, payloads["mosques"]),
            pending=parse_records(PendingAdminRecord, payloads["pending"]),
            approved=parse_records(ApprovedAdminRecord, payloads["approved"]),
            rejected=parse_records(RejectedAdminRecord, payloads["rejected"]),
            failed_collections=frozenset(failed),
        )

    # ============================================
    # Mutations
    # ============================================

    async def login(self, email: str, password: str) -> dict:
        data = await self._request(
            "POST", "/auth/login", json_body={"email": email, "password": password}
        )
        self.token_store.save(data["access_token"], data.get("refresh_token"))
        return data

    async def approve_admin(self, admin_id: str, notes: str | None = None) -> dict:
        body = {"super_admin_notes": notes} if notes else None
        return await self._request("PUT", f"/superadmin/{admin_id}/approve", json_body=body)

    async def reject_admin(self, admin_id: str, reason: str) -> dict:
        return await self._request(
            "PUT", f"/superadmin/{admin_id}/reject", json_body={"reason": reason}
        )

    async def remove_admin(self, admin_id: str, reason: str) -> dict:
        return await self._request(
            "PUT", f"/superadmin/admin/{admin_id}/remove", json_body={"reason": reason}
        )

    async def allow_reapplication(self, admin_id: str, notes: str | None = None) -> dict:
        body = {"notes": notes} if notes else None
        return await self._request(
            "PUT", f"/superadmin/{admin_id}/allow-reapplication", json_body=body
        )

    async def assign_admin(self, mosque_id: str, payload: dict) -> dict:
        return await self._request(
            "POST", f"/superadmin/mosques/{mosque_id}/assign-admin", json_body=payload
        )

    async def delete_mosque(self, mosque_id: str, reason: str) -> dict:
        return await self._request(
            "DELETE", f"/superadmin/mosque/{mosque_id}", json_body={"reason": reason}
        )


def _detail_text(detail: Any) -> str | None:
    """Readable text for a ``detail`` that is a string, a message dict or a validation list."""
    if isinstance(detail, dict):
        return detail.get("message")
    if isinstance(detail, list):
        messages = [
            str(item.get("msg")) for item in detail if isinstance(item, dict) and item.get("msg")
        ]
        return "; ".join(messages) or None
    return str(detail) if detail else None


def _decode_error(
    response: httpx.Response,
) -> ConsoleConflictError | ConsoleRequestError | ConsoleTransientError:
    """
    Turn an error response into a console error.

    Structured ``{"detail": {"error": CODE, "message": ...}}`` bodies become
    conflicts. Server errors are transient. Any other refusal, such as a
    request validation error, is kept as a non-retryable request error.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    detail = body.get("detail") if isinstance(body, dict) else None
    message = _detail_text(detail) or f"Request failed with status {response.status_code}"

    if response.status_code >= 500:
        return ConsoleTransientError(message, response.status_code)

    if not isinstance(detail, dict) or "error" not in detail:
        return ConsoleRequestError(message, response.status_code)

    code = detail["error"]
    extras = {k: v for k, v in detail.items() if k not in ("error", "message")}
    return ConsoleConflictError(
        message_for_code(code, extras),
        code,
        status_code=response.status_code,
        details=extras,
    )
