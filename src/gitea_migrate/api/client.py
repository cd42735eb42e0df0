"""Base API client shared by the GitLab and Gitea clients."""

import asyncio
import json
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urljoin

import aiohttp
import requests
from loguru import logger
from pydantic import BaseModel

from ..config.config import InstanceConfig
from .exceptions import (
    APIError,
    AuthenticationError,
    NotFoundError,
    RateLimitError,
)

USER_AGENT = 'gitea-migrate/0.1.0'
NEXT_PAGE_HEADER = 'X-Next-Page'
DEFAULT_RETRY_AFTER = 60


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    status_code: int
    data: Any
    headers: Dict[str, str]
    success: bool

    def header(self, name: str) -> Optional[str]:
        """Look up a response header case-insensitively."""
        return _header(self.headers, name)


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    name = name.lower()
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def parse_retry_after(value: Optional[str]) -> int:
    """Parse a Retry-After header given as seconds or as an HTTP date.

    Returns:
        Seconds to wait, DEFAULT_RETRY_AFTER when the value is missing or invalid
    """
    if value is None:
        return DEFAULT_RETRY_AFTER

    try:
        return max(0, int(value))
    except ValueError:
        pass

    try:
        retry_at = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return DEFAULT_RETRY_AFTER
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)

    return max(0, int((retry_at - datetime.now(timezone.utc)).total_seconds()))


def parse_next_page(value: Optional[str]) -> Optional[int]:
    """Parse a next-page header value.

    Returns:
        The next page index, or None when pagination is finished
    """
    try:
        page = int(value)
    except (TypeError, ValueError):
        return None
    return page if page > 0 else None


def _encode_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Render query parameters the way both APIs expect them."""
    if not params:
        return None
    return {
        key: ('true' if value else 'false') if isinstance(value, bool) else value
        for key, value in params.items()
    }


class APIClient:
    """REST API client with token authentication.

    Subclasses provide the authentication header for their platform.
    """

    platform = 'API'

    def __init__(self, config: InstanceConfig, api_version: str):
        """Initialize API client.

        Args:
            config: Instance configuration
            api_version: API version segment, e.g. ``v4``
        """
        self.config = config
        self.base_url = config.url.rstrip('/') + f'/api/{api_version}'
        self.session = requests.Session()
        self.session.headers.update(self._headers())

        logger.info(f'Initialized {self.platform} client for {config.url}')

    def _auth_headers(self) -> Dict[str, str]:
        raise NotImplementedError

    def _headers(self) -> Dict[str, str]:
        headers = {'Content-Type': 'application/json', 'User-Agent': USER_AGENT}
        headers.update(self._auth_headers())
        return headers

    def _build_url(self, endpoint: str) -> str:
        """Build full API URL from endpoint.

        Args:
            endpoint: API endpoint path

        Returns:
            Full API URL
        """
        return urljoin(self.base_url + '/', endpoint.lstrip('/'))

    @staticmethod
    def _parse_body(text: str) -> Any:
        if not text:
            return None
        try:
            return json.loads(text)
        except ValueError:
            return text

    def _raise_for_status(
        self,
        status: int,
        headers: Dict[str, str],
        text: str,
        reason: Optional[str],
    ) -> None:
        """Convert an error status into the matching exception.

        Raises:
            APIError: For any status of 400 and above
        """
        if status < 400:
            return

        body = self._parse_body(text)
        error_data = body if isinstance(body, dict) else None

        # Handle rate limiting
        if status == 429:
            retry_after = parse_retry_after(_header(headers, 'Retry-After'))
            raise RateLimitError(
                f'Rate limit exceeded. Retry after {retry_after} seconds',
                retry_after=retry_after,
                status_code=status,
                response_data=error_data,
                reason=reason,
            )

        if error_data is not None:
            message = error_data.get('message') or f'HTTP {status}'
        else:
            message = f'HTTP {status}: {text}' if text else f'HTTP {status}'

        error_class = APIError
        if status == 401:
            error_class = AuthenticationError
        elif status == 404:
            error_class = NotFoundError

        raise error_class(
            f'API request failed: {message}',
            status_code=status,
            response_data=error_data,
            reason=reason,
        )

    def _handle_response(self, response: requests.Response) -> APIResponse:
        """Handle API response and convert to standard format.

        Args:
            response: Raw HTTP response

        Returns:
            Standardized API response

        Raises:
            APIError: For various API errors
        """
        headers = dict(response.headers)
        self._raise_for_status(
            response.status_code, headers, response.text, response.reason
        )

        return APIResponse(
            status_code=response.status_code,
            data=self._parse_body(response.text),
            headers=headers,
            success=200 <= response.status_code < 300,
        )

    async def _make_request_async(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        **kwargs,
    ) -> APIResponse:
        """Make asynchronous API request.

        Args:
            method: HTTP method
            endpoint: API endpoint
            params: Query parameters
            data: Request body data
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)

        # No timeout: an import responds only once the clone has finished
        async with aiohttp.ClientSession(
            headers=self._headers(), timeout=aiohttp.ClientTimeout(total=None)
        ) as session:
            try:
                async with session.request(
                    method=method,
                    url=url,
                    params=_encode_params(params),
                    json=data,
                    **kwargs,
                ) as response:
                    response_headers = dict(response.headers)
                    response_text = await response.text()

                    self._raise_for_status(
                        response.status, response_headers, response_text, response.reason
                    )

                    return APIResponse(
                        status_code=response.status,
                        data=self._parse_body(response_text),
                        headers=response_headers,
                        success=200 <= response.status < 300,
                    )

            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                logger.error(f'Network error during {method} {url}: {e}')
                raise APIError(f'Network error: {str(e) or type(e).__name__}')

    def get(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make GET request.

        Args:
            endpoint: API endpoint
            params: Query parameters
            **kwargs: Additional request arguments

        Returns:
            API response
        """
        url = self._build_url(endpoint)

        try:
            response = self.session.get(url, params=_encode_params(params), **kwargs)
            return self._handle_response(response)
        except requests.RequestException as e:
            logger.error(f'Network error during GET request: {e}')
            raise APIError(f'Network error: {e}')

    async def get_async(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous GET request."""
        return await self._make_request_async('GET', endpoint, params=params, **kwargs)

    async def post_async(
        self, endpoint: str, data: Optional[Dict[str, Any]] = None, **kwargs
    ) -> APIResponse:
        """Make asynchronous POST request."""
        return await self._make_request_async('POST', endpoint, data=data, **kwargs)

    async def get_paginated_async(
        self,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        next_page_header: str = NEXT_PAGE_HEADER,
    ) -> List[Any]:
        """Get all pages of an endpoint that announces the next page in a header.

        The first request carries only ``params``. Each following request adds
        ``page`` set to the header value, until the header is missing or not a
        positive integer.

        Args:
            endpoint: API endpoint
            params: Base query parameters, kept on every page
            next_page_header: Response header holding the next page index

        Returns:
            Records of all pages, flattened in page order
        """
        base_params = dict(params or {})
        page_params = base_params
        pages: List[APIResponse] = []

        while True:
            response = await self.get_async(endpoint, params=page_params or None)
            pages.append(response)

            next_page = parse_next_page(response.header(next_page_header))
            if next_page is None:
                break

            page_params = {**base_params, 'page': next_page}

        items = [item for page in pages for item in (page.data or [])]

        logger.info(f'Retrieved {len(items)} items from {endpoint} in {len(pages)} pages')
        return items

    def test_connection(self) -> bool:
        """Test connection to the instance.

        Returns:
            True if connection successful, False otherwise
        """
        try:
            response = self.get('/user')
            return response.success
        except APIError as e:
            logger.error(f'Connection test failed: {e}')
            return False

    def close(self):
        """Close the client session."""
        self.session.close()
        logger.info(f'{self.platform} client session closed')

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
