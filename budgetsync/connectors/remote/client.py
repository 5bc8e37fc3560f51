"""BudgetSync — PostgREST Remote Store Client.

Talks to a Supabase-style REST endpoint over httpx. Handles auth headers,
retry with backoff, and converts every failure into an ``Err`` at the public
boundary.
"""

import asyncio
import time
from typing import Any, Dict, List, Optional

import httpx

from budgetsync.config import settings
from budgetsync.connectors.remote.base import (
    ChangeCallback,
    Fingerprint,
    RemoteStore,
    SubscriptionHandle,
)
from budgetsync.core.errors import TransientRemoteError
from budgetsync.core.result import Err, ErrorKind, Ok, Result
from budgetsync.core.logging import get_logger
from budgetsync.scheduler.change_feed import ChangeFeed

logger = get_logger("remote.client")

REST_PREFIX = "/rest/v1"


def to_err(error: TransientRemoteError) -> Err:
    """Classify a transport/store failure."""
    if error.timeout:
        kind = ErrorKind.TIMEOUT
    elif error.status_code == 0:
        kind = ErrorKind.NETWORK
    elif error.status_code == 409:
        kind = ErrorKind.CONFLICT
    elif error.status_code == 404:
        kind = ErrorKind.NOT_FOUND
    else:
        kind = ErrorKind.REMOTE
    return Err(kind, str(error), error.status_code)


def _json_rows(resp: httpx.Response) -> List[Dict[str, Any]]:
    """Decode a PostgREST row array; anything else is a store failure."""
    try:
        rows = resp.json()
    except ValueError as e:
        raise TransientRemoteError(
            f"Unreadable response body from {resp.request.url.path}", resp.status_code
        ) from e
    if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
        raise TransientRemoteError("Expected a JSON array of rows", resp.status_code)
    return rows


def _parse_total(content_range: str) -> Optional[int]:
    """Total from a ``Content-Range`` header such as ``0-0/42``."""
    total = content_range.rsplit("/", 1)[-1] if "/" in content_range else ""
    return int(total) if total.isdigit() else None


class PostgrestClient(RemoteStore):
    """Async client for a PostgREST ``requests`` table."""

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        change_feed: ChangeFeed | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        timeout: float | None = None,
    ):
        self.base_url = (base_url if base_url is not None else settings.remote_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.remote_api_key
        self.max_retries = max_retries or settings.remote_max_retries
        self.retry_base_delay = (
            retry_base_delay if retry_base_delay is not None else settings.remote_retry_base_delay
        )
        self.timeout = timeout or settings.remote_timeout
        self.change_feed = change_feed or ChangeFeed(self.fingerprint)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}{REST_PREFIX}",
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                },
            )
        return self._client

    async def close(self) -> None:
        self.change_feed.shutdown()
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    # ── Core Request Method ──

    async def _request(
        self,
        method: str,
        path: str,
        params: Dict[str, Any] | None = None,
        json: Any = None,
        headers: Dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a request with retry + rate-limit handling."""
        if not self.base_url:
            raise TransientRemoteError("Remote store URL is not configured")

        client = await self._get_client()

        for attempt in range(1, self.max_retries + 1):
            wait = self.retry_base_delay * (2 ** (attempt - 1))
            started = time.perf_counter()
            try:
                resp = await client.request(
                    method, path, params=params, json=json, headers=headers
                )

                # Rate limited
                if resp.status_code == 429 and attempt < self.max_retries:
                    logger.warning(
                        f"Rate limited (429). Retrying in {wait}s (attempt {attempt}/{self.max_retries})"
                    )
                    await asyncio.sleep(wait)
                    continue

                resp.raise_for_status()
                logger.debug(
                    f"{method} {path} -> {resp.status_code}",
                    extra={
                        "status_code": resp.status_code,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 1),
                    },
                )
                return resp

            except httpx.HTTPStatusError as e:
                body: Any = {}
                if e.response.headers.get("content-type", "").startswith("application/json"):
                    try:
                        body = e.response.json()
                    except ValueError:
                        body = {}
                error_msg = body.get("message", str(e)) if isinstance(body, dict) else str(e)

                if attempt < self.max_retries and e.response.status_code >= 500:
                    logger.warning(
                        f"Server error {e.response.status_code}. Retrying in {wait}s"
                    )
                    await asyncio.sleep(wait)
                    continue

                raise TransientRemoteError(error_msg, e.response.status_code) from e

            except httpx.TimeoutException as e:
                if attempt < self.max_retries:
                    logger.warning(f"Request timed out. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise TransientRemoteError(
                    f"Timed out after {self.max_retries} attempts: {e}", timeout=True
                ) from e

            except httpx.RequestError as e:
                if attempt < self.max_retries:
                    logger.warning(f"Request error: {e}. Retrying in {wait}s")
                    await asyncio.sleep(wait)
                    continue
                raise TransientRemoteError(
                    f"Connection failed after {self.max_retries} retries: {e}"
                ) from e

        raise TransientRemoteError("Max retries exhausted")

    # ── Collection API ──

    async def list(
        self, table: str, order_by: str = "updated_at", direction: str = "desc"
    ) -> Result[List[Dict[str, Any]]]:
        try:
            resp = await self._request(
                "GET", f"/{table}", params={"select": "*", "order": f"{order_by}.{direction}"}
            )
            rows = _json_rows(resp)
        except TransientRemoteError as e:
            logger.warning(f"List failed: {e}", extra={"table": table})
            return to_err(e)
        logger.info(f"Fetched {len(rows)} rows", extra={"table": table})
        return Ok(rows)

    async def insert(self, table: str, record: Dict[str, Any]) -> Result[None]:
        try:
            await self._request(
                "POST", f"/{table}", json=[record], headers={"Prefer": "return=minimal"}
            )
        except TransientRemoteError as e:
            logger.warning(f"Insert failed: {e}", extra={"table": table, "request_id": record.get("id")})
            return to_err(e)
        return Ok(None)

    async def update(
        self, table: str, record_id: str, partial: Dict[str, Any]
    ) -> Result[None]:
        try:
            resp = await self._request(
                "PATCH",
                f"/{table}",
                params={"id": f"eq.{record_id}"},
                json=partial,
                headers={"Prefer": "return=representation"},
            )
            rows = _json_rows(resp) if resp.content else None
        except TransientRemoteError as e:
            logger.warning(f"Update failed: {e}", extra={"table": table, "request_id": record_id})
            return to_err(e)
        if rows == []:
            return Err(ErrorKind.NOT_FOUND, f"No row with id {record_id}", resp.status_code)
        return Ok(None)

    async def fingerprint(self, table: str) -> Result[Fingerprint]:
        """Row count and newest ``updated_at`` in a single request."""
        try:
            resp = await self._request(
                "GET",
                f"/{table}",
                params={"select": "updated_at", "order": "updated_at.desc", "limit": "1"},
                headers={"Prefer": "count=exact"},
            )
            rows = _json_rows(resp)
        except TransientRemoteError as e:
            return to_err(e)
        count = _parse_total(resp.headers.get("content-range", ""))
        return Ok(
            Fingerprint(
                count=count if count is not None else len(rows),
                latest=rows[0].get("updated_at") if rows else None,
            )
        )

    # ── Change notifications ──

    def subscribe(
        self, table: str, event_mask: str, callback: ChangeCallback
    ) -> SubscriptionHandle:
        return self.change_feed.watch(table, event_mask, callback)

    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        self.change_feed.unwatch(handle)
