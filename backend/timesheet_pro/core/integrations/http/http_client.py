"""
Async HTTP client wrapper using aiohttp.
Attaches the session bearer credential to every call and provides retry/backoff.
"""

import asyncio
from typing import Optional, Dict, Any
import aiohttp
import logging

from timesheet_pro.core.exceptions import RemoteStoreError

logger = logging.getLogger(__name__)


class HttpClient:
    """
    Async HTTP client wrapper using aiohttp.
    Provides get/post/put/delete methods with retry/backoff support.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: int = 1,
        retry_delay: float = 0.5,
    ):
        """
        Initialize HTTP client.

        Args:
            base_url: Optional base URL for all requests
            token: Opaque bearer credential issued by the login collaborator
            timeout: Total request timeout in seconds, None for aiohttp's default
            max_retries: Maximum number of attempts per request
            retry_delay: Initial delay between retries in seconds
        """
        self.base_url = base_url
        self.token = token
        self.timeout = aiohttp.ClientTimeout(total=timeout) if timeout else None
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            if self.timeout:
                self._session = aiohttp.ClientSession(timeout=self.timeout)
            else:
                self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    def _build_url(self, endpoint: str) -> str:
        """Build full URL from endpoint."""
        if self.base_url:
            return f"{self.base_url.rstrip('/')}/{endpoint.lstrip('/')}"
        return endpoint

    def _headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if extra:
            headers.update(extra)
        return headers

    async def _request_with_retry(
        self,
        method: str,
        url: str,
        **kwargs: Any,
    ) -> Any:
        """
        Make HTTP request with retry logic.

        Args:
            method: HTTP method
            url: Request URL
            **kwargs: Additional arguments for aiohttp request

        Returns:
            Decoded JSON body, or None when the body is not JSON

        Raises:
            RemoteStoreError: when every attempt failed
        """
        session = await self._get_session()
        last_exception: Optional[Exception] = None
        status: Optional[int] = None

        for attempt in range(self.max_retries):
            try:
                async with session.request(method, url, **kwargs) as response:
                    # Raise for status codes >= 400
                    response.raise_for_status()
                    if response.content_type == "application/json":
                        return await response.json()
                    await response.read()
                    return None
            except aiohttp.ClientResponseError as e:
                last_exception = e
                status = e.status
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                last_exception = e
            if attempt < self.max_retries - 1:
                delay = self.retry_delay * (2 ** attempt)  # Exponential backoff
                logger.warning(
                    f"{method} {url} failed (attempt {attempt + 1}/{self.max_retries}): {last_exception}. Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)

        logger.error(f"{method} {url} failed after {self.max_retries} attempts: {last_exception}")
        raise RemoteStoreError(
            f"{method} {url} failed: {last_exception}",
            status=status,
        ) from last_exception

    async def get(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            headers: Request headers

        Returns:
            JSON response
        """
        url = self._build_url(endpoint)
        return await self._request_with_retry("GET", url, params=params, headers=self._headers(headers))

    async def post(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make POST request.

        Args:
            endpoint: API endpoint
            json: JSON data
            headers: Request headers

        Returns:
            JSON response
        """
        url = self._build_url(endpoint)
        return await self._request_with_retry("POST", url, json=json, headers=self._headers(headers))

    async def put(
        self,
        endpoint: str,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make PUT request.

        Args:
            endpoint: API endpoint
            json: JSON data
            headers: Request headers

        Returns:
            JSON response, None for a plain-text acknowledgement
        """
        url = self._build_url(endpoint)
        return await self._request_with_retry("PUT", url, json=json, headers=self._headers(headers))

    async def delete(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        """
        Make DELETE request.

        Args:
            endpoint: API endpoint
            headers: Request headers

        Returns:
            JSON response, None for a plain-text acknowledgement
        """
        url = self._build_url(endpoint)
        return await self._request_with_retry("DELETE", url, headers=self._headers(headers))
