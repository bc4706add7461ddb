"""
Venue REST client base.

Wraps an ``httpx.AsyncClient`` with request/response logging, retry on
network errors and uniform error mapping: every transport, status or JSON
failure surfaces as ``ApiError`` carrying the method and URL.
"""

import json
import time
from typing import Any, Dict, Optional

import httpx

from ..config import RequestConfig
from ..constants import LOG_INCLUDE_RESPONSE_CONTENT, LOG_MAX_PATH_LENGTH
from ..exceptions import ApiError
from ..logger import get_logger

logger = get_logger(__name__)


def _append_slash(url: str) -> str:
    if not url:
        return ""
    return url if url.endswith("/") else f"{url}/"


class BaseApi:
    """Shared HTTP plumbing for venue APIs."""

    def __init__(
        self,
        base_url: str,
        request_config: Optional[RequestConfig] = None,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.request_config = request_config or RequestConfig()
        self.base_url = f"{_append_slash(self.request_config.proxy_url)}{base_url}".rstrip("/")
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers=self.headers,
                timeout=self.request_config.timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        await self.close()

    async def request(self, method: str, path: str, **kwargs) -> Any:
        """
        Perform a request and return the decoded JSON body.

        Network errors are retried ``request_config.retries`` times; status
        and decoding errors are not.

        Raises:
            ApiError: on any failure
        """
        url = f"{self.base_url}{path}"
        log_url = url
        if len(log_url) > LOG_MAX_PATH_LENGTH:
            log_url = log_url[:LOG_MAX_PATH_LENGTH] + "...[TRUNCATED]"

        attempts = max(1, self.request_config.retries + 1)
        for attempt in range(1, attempts + 1):
            start_time = time.time()
            logger.debug(f"--> \"{method} {log_url}\"")
            try:
                response = await self.client.request(method, url, headers=self.headers, **kwargs)
                response.raise_for_status()
                data = response.json()
            except httpx.RequestError as e:
                process_time = time.time() - start_time
                logger.warning(
                    f"<-- \"{method} {log_url}\" NETWORK_ERROR ({process_time:.3f}s) "
                    f"attempt {attempt}/{attempts}: {e}"
                )
                if attempt == attempts:
                    raise ApiError(f"{method} {log_url} failed: {e}") from e
                continue
            except httpx.HTTPStatusError as e:
                process_time = time.time() - start_time
                logger.warning(
                    f"<-- \"{method} {log_url}\" {e.response.status_code} ERROR ({process_time:.3f}s)"
                )
                raise ApiError(f"{method} {log_url} returned {e.response.status_code}") from e
            except ValueError as e:
                raise ApiError(f"{method} {log_url} returned invalid JSON: {e}") from e

            process_time = time.time() - start_time
            body = f"\n{json.dumps(data, indent=2)}" if LOG_INCLUDE_RESPONSE_CONTENT else ""
            logger.debug(f"<-- \"{method} {log_url}\" {response.status_code} ({process_time:.3f}s){body}")
            return data

    async def get(self, path: str, **kwargs) -> Any:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, payload: Optional[Dict[str, Any]] = None, **kwargs) -> Any:
        return await self.request("POST", path, json=payload, **kwargs)
