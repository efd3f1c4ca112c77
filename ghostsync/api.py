"""API client for Ghost Inspector."""

from __future__ import annotations

import logging
import random
import time
from typing import Any

import httpx

from .config import config
from .exceptions import (
    GhostAPIError,
    GhostAuthenticationError,
    GhostConfigError,
    GhostInvalidResponseError,
    GhostNetworkError,
    GhostNotFoundError,
    GhostPermissionError,
    GhostRateLimitError,
)
from .utils import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY, DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)


class GhostInspectorClient:
    """Client for interacting with the Ghost Inspector API."""

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize Ghost Inspector API client.

        Args:
            api_key: Optional API key (uses config if not provided)
            api_url: Optional API URL (uses config if not provided)
            max_retries: Maximum number of retry attempts (default: 3)
            retry_delay: Initial delay between retries in seconds
            timeout: Request timeout in seconds (default: 30.0)
        """
        self.api_key = api_key or config.api_key
        self.api_url = (api_url or config.api_url).rstrip("/")
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout

        if not self.api_key:
            raise GhostConfigError(
                "API key not configured. "
                "Please set GHOST_INSPECTOR_API_KEY environment variable."
            )

        self._client: httpx.Client | None = None

    def _get_client(self) -> httpx.Client:
        """Get or create the httpx client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.Client(
                params={"apiKey": self.api_key},
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
            )
        return self._client

    def close(self) -> None:
        """Close the client and release connections."""
        if self._client is not None and not self._client.is_closed:
            self._client.close()
            self._client = None

    def __enter__(self) -> GhostInspectorClient:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _should_retry(self, exception: Exception, attempt: int) -> bool:
        """Determine if a request should be retried.

        Only transport failures and 5xx responses are retried. Client errors
        (4xx, including 429) and malformed responses are not.

        Args:
            exception: The exception that occurred
            attempt: Current attempt number (0-based)

        Returns:
            True if the request should be retried, False otherwise
        """
        if attempt >= self.max_retries:
            return False

        if isinstance(exception, GhostNetworkError):
            return True

        if isinstance(exception, httpx.HTTPStatusError):
            return 500 <= exception.response.status_code < 600

        return False

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Calculate delay before next retry using exponential backoff.

        Args:
            attempt: Current attempt number (0-based)

        Returns:
            Delay in seconds
        """
        base_delay = self.retry_delay * (2**attempt)
        # +/- 25% jitter
        jitter = base_delay * 0.25 * (2 * random.random() - 1)
        return base_delay + jitter

    def _error_from_status(self, e: httpx.HTTPStatusError) -> GhostAPIError:
        """Translate an HTTP error response into a ghostsync exception.

        Args:
            e: The HTTP error exception

        Returns:
            Exception describing the failure
        """
        status_code = e.response.status_code

        if status_code == 401:
            return GhostAuthenticationError("Invalid API key or unauthorized access")
        if status_code == 403:
            return GhostPermissionError("Access forbidden - check your permissions")
        if status_code == 404:
            return GhostNotFoundError("Resource not found")
        if status_code == 429:
            return GhostRateLimitError("Rate limit exceeded - please try again later")

        error_msg = f"API request failed with status {status_code}"
        try:
            if e.response.content:
                error_data = e.response.json()
                if isinstance(error_data, dict):
                    msg = error_data.get("message") or error_data.get("errorType")
                    if msg:
                        error_msg = f"{error_msg}: {msg}"
        except ValueError:
            # Body is not JSON, keep the status-based message
            pass
        return GhostAPIError(error_msg)

    def _send(self, method: str, endpoint: str, **kwargs: Any) -> httpx.Response:
        """Send an API request with retry logic.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            Successful response

        Raises:
            GhostAPIError: If the request fails after all retries
        """
        url = f"{self.api_url}/{endpoint.lstrip('/')}"
        last_exception: Exception | None = None
        client = self._get_client()

        for attempt in range(self.max_retries + 1):
            try:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
            except httpx.HTTPStatusError as e:
                error = self._error_from_status(e)
                last_exception = error
                if self._should_retry(e, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(
                        f"{method} {endpoint} returned "
                        f"{e.response.status_code}, retrying in {delay:.1f}s"
                    )
                    time.sleep(delay)
                    continue
                raise error from e
            except httpx.RequestError as e:
                error = GhostNetworkError(f"Network error: {e}")
                last_exception = error
                if self._should_retry(error, attempt):
                    delay = self._calculate_retry_delay(attempt)
                    logger.debug(f"{method} {endpoint} failed ({e}), retrying")
                    time.sleep(delay)
                    continue
                raise error from e

        if last_exception:
            raise last_exception
        raise GhostAPIError("Request failed after all retry attempts")

    def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Make an API request and unwrap the JSON envelope.

        Ghost Inspector wraps every payload as ``{"code": ..., "data": ...}``.

        Args:
            method: HTTP method
            endpoint: API endpoint path
            **kwargs: Additional arguments passed to httpx

        Returns:
            The ``data`` member of the response

        Raises:
            GhostAPIError: If the request fails or reports an error code
        """
        response = self._send(method, endpoint, **kwargs)

        content_type = response.headers.get("Content-Type", "")
        if response.content and "json" not in content_type:
            if "text/html" in content_type:
                raise GhostAuthenticationError(
                    "Invalid API key - server returned HTML instead of JSON"
                )
            raise GhostInvalidResponseError(f"Unexpected response type: {content_type}")

        if not response.content:
            return {}

        try:
            payload = response.json()
        except ValueError as e:
            raise GhostInvalidResponseError("Invalid JSON response from server") from e

        if not isinstance(payload, dict):
            raise GhostInvalidResponseError("Response is not a JSON object")

        if payload.get("code") == "ERROR":
            message = payload.get("message") or payload.get("errorType") or "unknown"
            raise GhostAPIError(f"{method} {endpoint} failed: {message}")

        return payload.get("data", {})

    # =========================
    # Suite Operations
    # =========================

    def list_folder_suites(self, folder_id: str) -> list[dict[str, Any]]:
        """List the suites inside a folder.

        Args:
            folder_id: Ghost Inspector folder ID

        Returns:
            List of suite documents (each carries ``_id`` and ``name``)
        """
        data = self._request("GET", f"/folders/{folder_id}/suites/")
        return data if isinstance(data, list) else []

    def get_suite(self, suite_id: str) -> dict[str, Any]:
        """Get a suite document.

        Args:
            suite_id: Suite ID

        Returns:
            Suite document including its current ``name``
        """
        data = self._request("GET", f"/suites/{suite_id}/")
        if not isinstance(data, dict):
            raise GhostInvalidResponseError(f"Suite {suite_id} is not an object")
        return data

    def export_suite(self, suite_id: str) -> bytes:
        """Download the JSON export of every test in a suite.

        Args:
            suite_id: Suite ID

        Returns:
            Raw zip archive bytes, one JSON document per test
        """
        response = self._send("GET", f"/suites/{suite_id}/export/json/")
        return response.content

    def list_suite_tests(self, suite_id: str) -> list[dict[str, Any]]:
        """List the tests of a suite.

        Args:
            suite_id: Suite ID

        Returns:
            List of test summaries (each carries ``_id`` and ``name``)
        """
        data = self._request("GET", f"/suites/{suite_id}/tests/")
        return data if isinstance(data, list) else []

    # =========================
    # Test Operations
    # =========================

    def get_test(self, test_id: str) -> dict[str, Any]:
        """Get the full document of a test.

        Args:
            test_id: Test ID

        Returns:
            Test document
        """
        data = self._request("GET", f"/tests/{test_id}/")
        if not isinstance(data, dict):
            raise GhostInvalidResponseError(f"Test {test_id} is not an object")
        return data

    def import_test(self, suite_id: str, document: dict[str, Any]) -> Any:
        """Create a test in a suite from its JSON definition.

        Args:
            suite_id: Suite ID
            document: Test document as stored locally

        Returns:
            Created test document
        """
        return self._request(
            "POST", f"/suites/{suite_id}/import-test/json", json=document
        )

    def update_test(self, test_id: str, document: dict[str, Any]) -> Any:
        """Replace a test's definition.

        Args:
            test_id: Test ID
            document: Full test document

        Returns:
            Updated test document
        """
        return self._request("POST", f"/tests/{test_id}/", json=document)

    def delete_test(self, test_id: str) -> Any:
        """Delete a test.

        Args:
            test_id: Test ID

        Returns:
            API response data
        """
        return self._request("DELETE", f"/tests/{test_id}/")
