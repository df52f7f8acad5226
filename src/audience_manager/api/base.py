"""Generic JSON REST client with retry and pagination."""

import logging
from typing import Any, AsyncIterator, Optional
from urllib.parse import urlencode

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from audience_manager.api.auth import TokenProvider
from audience_manager.config.defaults import DEFAULT_API_BASE_URL
from audience_manager.exceptions import ApiError

logger = logging.getLogger("audience_manager.api.base")

# Status codes worth another attempt (auth expiry, throttling, server errors)
RETRYABLE_STATUS_CODES = frozenset({401, 429})


def is_transient_error(exc: BaseException) -> bool:
    """Check whether a request failure may succeed when retried."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status in RETRYABLE_STATUS_CODES or status >= 500
    return False


class BaseApi:
    """Base class for Google-style REST APIs.

    Requests carry a bearer token from the token provider. Transient
    failures are retried with exponential backoff, refreshing the token
    before every new attempt.
    """

    def __init__(
        self,
        api_scope: str,
        api_version: str,
        token_provider: TokenProvider,
        client: Optional[httpx.AsyncClient] = None,
        base_url: str = DEFAULT_API_BASE_URL,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 60.0,
    ):
        """Initialize the client.

        Args:
            api_scope: API name in the URL (e.g. ``dfareporting``).
            api_version: API version in the URL (e.g. ``v4``).
            token_provider: Source of access tokens.
            client: HTTP client (created if not provided).
            base_url: Protocol and domain of the API.
            max_retries: Retries of transient failures after the first attempt.
            retry_delay: Base delay of the exponential backoff, in seconds.
            timeout: Request timeout in seconds.
        """
        self._api_scope = api_scope
        self._api_version = api_version
        self._token_provider = token_provider
        self._base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def api_scope(self) -> str:
        return self._api_scope

    @property
    def api_version(self) -> str:
        return self._api_version

    def build_api_url(self, path: str) -> str:
        """Build the fully-qualified URL of a request path.

        Args:
            path: Path relative to the API root, or an absolute URL.

        Returns:
            The absolute URL.
        """
        if path.startswith(self._base_url):
            return path
        return f"{self._base_url}{self._api_scope}/{self._api_version}/{path}"

    def build_headers(self, refresh_token: bool = False) -> dict[str, str]:
        """Build request headers.

        Args:
            refresh_token: Whether to ask the provider for a fresh token.

        Returns:
            Headers with authorization and JSON content negotiation.
        """
        token = self._token_provider.get_token(refresh=refresh_token)
        return {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def execute_api_request(
        self,
        path: str,
        method: str = "GET",
        payload: Optional[dict[str, Any]] = None,
        retry_on_failure: bool = True,
    ) -> dict[str, Any]:
        """Execute a request and parse its JSON response.

        Args:
            path: Request path or absolute URL.
            method: HTTP method.
            payload: JSON body.
            retry_on_failure: Whether transient failures are retried.

        Returns:
            Parsed response data, or an empty dict for empty responses.

        Raises:
            ApiError: If the request fails permanently.
        """
        url = self.build_api_url(path)
        attempts = self._max_retries + 1 if retry_on_failure else 1

        retrying = AsyncRetrying(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=self._retry_delay, max=30),
            retry=retry_if_exception(is_transient_error),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    refresh = attempt.retry_state.attempt_number > 1
                    response = await self._client.request(
                        method,
                        url,
                        headers=self.build_headers(refresh_token=refresh),
                        json=payload,
                    )
                    response.raise_for_status()
                    return response.json() if response.content else {}
        except httpx.HTTPStatusError as e:
            logger.error(f"{method} {url} failed: {e.response.status_code}")
            raise ApiError(
                f"{method} {path} failed with status {e.response.status_code}: "
                f"{e.response.text}",
                status_code=e.response.status_code,
            ) from e
        except httpx.TransportError as e:
            logger.error(f"{method} {url} failed: {e}")
            raise ApiError(f"{method} {path} failed: {e}") from e

        # Unreachable: AsyncRetrying either returns or re-raises
        raise ApiError(f"{method} {path} failed")

    async def execute_paged_api_request(
        self,
        path: str,
        max_pages: int = -1,
    ) -> AsyncIterator[dict[str, Any]]:
        """Fetch a paged collection, yielding one response per page.

        Args:
            path: Request path or absolute URL of the first page.
            max_pages: Maximum number of pages, -1 for all.

        Yields:
            Parsed response data of each page.
        """
        url = self.build_api_url(path)
        page_count = 0

        while True:
            result = await self.execute_api_request(url)
            page_count += 1
            yield result

            page_token = result.get("nextPageToken")
            if not page_token or (0 <= max_pages <= page_count):
                break
            url = str(httpx.URL(url).copy_set_param("pageToken", page_token))

    @staticmethod
    def object_to_url_query(url: str, params: dict[str, Any]) -> str:
        """Build a query string to append to a URL.

        List values are repeated per item; empty lists are dropped.

        Args:
            url: URL the query will be appended to.
            params: Query parameters.

        Returns:
            The query string starting with ``?`` or ``&``, or ``""``.
        """
        pairs: list[tuple[str, Any]] = []
        for key, value in (params or {}).items():
            if isinstance(value, (list, tuple)):
                pairs.extend((key, item) for item in value)
            elif value is not None:
                pairs.append((key, value))

        if not pairs:
            return ""

        prefix = "&" if "?" in url else "?"
        return prefix + urlencode(pairs)

    async def aclose(self) -> None:
        """Close the HTTP client if it was created here."""
        if self._owns_client:
            await self._client.aclose()
