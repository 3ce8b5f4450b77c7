"""Flex Integration API client - OAuth token handling plus the endpoints we call."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import httpx

from flex_poller.errors import FlexApiError

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://flex-integ-api.sharetribe.com"

_TOKEN_PATH = "/v1/auth/token"
_API_PREFIX = "/v1/integration_api"

# Refresh the access token this many seconds before it actually expires
_TOKEN_EXPIRY_MARGIN = 60.0


def _error_detail(resp: httpx.Response) -> str:
    """Pull the first error title out of a JSON:API style error body."""
    try:
        body = resp.json()
    except ValueError:
        return resp.text[:200]
    errors = body.get("errors") if isinstance(body, dict) else None
    if errors and isinstance(errors, list):
        first = errors[0]
        return str(first.get("title") or first.get("code") or first)
    return str(body)[:200]


class FlexIntegrationClient:
    """Async client for the Sharetribe Flex Integration API.

    Authenticates with the client-credentials grant (scope "integ") and
    caches the access token until shortly before it expires. A 401 on any
    call drops the cached token and retries the call once.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._clock = clock
        self._http = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout, connect=10),
            headers={"Accept": "application/json"},
            transport=transport,
        )
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def close(self) -> None:
        """Close the underlying httpx client."""
        await self._http.aclose()

    # ── Auth ───────────────────────────────────────────────

    async def _access_token(self) -> str:
        if self._token and self._clock() < self._token_expires_at:
            return self._token

        log.debug("Requesting Integration API access token")
        try:
            resp = await self._http.post(
                _TOKEN_PATH,
                data={
                    "client_id": self._client_id,
                    "client_secret": self._client_secret,
                    "grant_type": "client_credentials",
                    "scope": "integ",
                },
            )
        except httpx.HTTPError as exc:
            raise FlexApiError(f"auth request failed: {exc}") from exc

        if resp.status_code != 200:
            raise FlexApiError(
                f"auth failed: HTTP {resp.status_code} {_error_detail(resp)}",
                status=resp.status_code,
            )

        try:
            body = resp.json()
            token = body["access_token"]
        except (ValueError, KeyError) as exc:
            raise FlexApiError(f"malformed auth response: {exc}") from exc

        expires_in = float(body.get("expires_in", 0) or 0)
        self._token = token
        self._token_expires_at = self._clock() + max(expires_in - _TOKEN_EXPIRY_MARGIN, 0)
        return token

    # ── Transport ──────────────────────────────────────────

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: dict[str, Any] | None,
    ) -> httpx.Response:
        token = await self._access_token()
        try:
            return await self._http.request(
                method,
                f"{_API_PREFIX}{path}",
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise FlexApiError(f"{method} {path} failed: {exc}") from exc

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        resp = await self._send(method, path, params, json)
        if resp.status_code == 401:
            log.info("Access token rejected, re-authenticating")
            self._token = None
            resp = await self._send(method, path, params, json)

        if resp.status_code >= 400:
            raise FlexApiError(
                f"{method} {path}: HTTP {resp.status_code} {_error_detail(resp)}",
                status=resp.status_code,
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise FlexApiError(f"{method} {path}: response is not JSON") from exc
        if not isinstance(body, dict):
            raise FlexApiError(f"{method} {path}: unexpected response shape")
        return body

    # ── Events ─────────────────────────────────────────────

    async def query_events(self, params: dict[str, Any]) -> dict[str, Any]:
        """GET events/query. Returns the raw {data, meta} document."""
        return await self._request("GET", "/events/query", params=params)

    # ── Listings ───────────────────────────────────────────

    async def query_listings(self, ids: list[str]) -> list[dict[str, Any]]:
        body = await self._request(
            "GET", "/listings/query", params={"ids": ",".join(ids)},
        )
        return list(body.get("data") or [])

    async def update_listing(
        self, listing_id: str, attributes: dict[str, Any], expand: bool = True
    ) -> dict[str, Any] | None:
        body = await self._request(
            "POST",
            "/listings/update",
            params={"expand": "true"} if expand else None,
            json={"id": listing_id, **attributes},
        )
        return body.get("data")
