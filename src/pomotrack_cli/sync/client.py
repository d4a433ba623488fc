"""HTTP client for the session-tracking server."""

from __future__ import annotations

import asyncio
from typing import Any

import httpx

from pomotrack_cli.errors import AuthError, ConflictError, NetworkError, SyncError
from pomotrack_cli.services.config_service import ConfigService, get_config_service
from pomotrack_cli.utils.logger import get_logger

logger = get_logger(__name__)


class APIClient:
    """Async client for the session API.

    Retries transport errors and 5xx responses with exponential backoff,
    never retries other 4xx responses, and on a 401 refreshes the token
    once before replaying the request.
    """

    def __init__(
        self,
        config_service: ConfigService | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        backoff_base: float = 1.0,
    ):
        self.config_service = config_service or get_config_service()
        config = self.config_service.config
        self.base_url = self.config_service.api_endpoint
        self.timeout = config.api.timeout
        self.retry = config.api.retry
        self.backoff_base = backoff_base
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_headers(self, skip_auth: bool = False) -> dict[str, str]:
        """Get HTTP headers with authentication."""
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if not skip_auth:
            credentials = self.config_service.load_credentials()
            if credentials and "token" in credentials:
                headers["Authorization"] = f"Bearer {credentials['token']}"
        return headers

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                follow_redirects=True,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> APIClient:
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        skip_auth: bool = False,
        _refreshed: bool = False,
    ) -> httpx.Response:
        """Make an HTTP request to the API.

        Raises:
            NetworkError: server unreachable or failing after all retries
            AuthError: 401 that a token refresh could not fix
            ConflictError: 409, with the server's copy when it sent one
            SyncError: any other 4xx
        """
        client = await self._get_client()
        url = path if path.startswith("/") else f"/{path}"
        headers = self._get_headers(skip_auth=skip_auth)

        last_error: Exception | None = None
        for attempt in range(self.retry + 1):
            try:
                response = await client.request(
                    method, url, json=json, params=params, headers=headers
                )
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 401 and not skip_auth:
                    if _refreshed:
                        raise AuthError("Authentication failed after token refresh") from e
                    await self.refresh_token()
                    return await self.request(
                        method, path, json=json, params=params, _refreshed=True
                    )
                if status == 409:
                    raise ConflictError(_resource_id(json), _remote_copy(e.response)) from e
                if 400 <= status < 500:
                    raise SyncError(f"{method} {url} rejected with {status}: {e.response.text}") from e
                last_error = e
            except httpx.RequestError as e:
                last_error = e

            if attempt < self.retry:
                delay = self.backoff_base * 2**attempt
                logger.warning(
                    "%s %s failed (%s), retry %d/%d in %.1fs",
                    method, url, last_error, attempt + 1, self.retry, delay,
                )
                await asyncio.sleep(delay)

        raise NetworkError(f"{method} {url} failed after {self.retry + 1} attempts: {last_error}")

    async def refresh_token(self) -> None:
        """Exchange the refresh token for a new access token.

        Raises:
            AuthError: no refresh token stored, or the server rejected it
        """
        credentials = self.config_service.load_credentials() or {}
        refresh = credentials.get("refresh_token")
        if not refresh:
            raise AuthError("Not authenticated - set an API token first")

        try:
            response = await self.request(
                "POST",
                "/v1/auth/refresh",
                json={"refresh_token": refresh},
                skip_auth=True,
            )
        except SyncError as e:
            if isinstance(e, NetworkError):
                raise
            raise AuthError(f"Token refresh rejected: {e}") from e

        data = response.json()
        self.config_service.save_credentials(
            data["token"], data.get("refresh_token", refresh)
        )
        logger.info("Refreshed API token")

    async def push_session(self, payload: dict[str, Any], force: bool = False) -> dict[str, Any]:
        """Upload one session; *force* overwrites a diverging server copy."""
        params = {"force": "true"} if force else None
        response = await self.request("POST", "/v1/sessions", json=payload, params=params)
        return response.json()

    async def fetch_sessions(self, since: str | None = None) -> list[dict[str, Any]]:
        """Sessions changed on the server since the ISO timestamp *since*."""
        params = {"since": since} if since else None
        response = await self.request("GET", "/v1/sessions", params=params)
        return response.json().get("sessions", [])

    async def health(self) -> bool:
        try:
            await self.request("GET", "/health", skip_auth=True)
        except SyncError:
            return False
        return True


def _resource_id(payload: dict[str, Any] | None) -> str:
    return str((payload or {}).get("id", "unknown"))


def _remote_copy(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    if isinstance(body, dict):
        return body.get("remote") or {}
    return {}
