"""HTTP client used by generated packages."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter
from pydantic_core import to_json

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 1000
DEFAULT_TIMEOUT = 30.0

type QueryValue = Union[str, int, float, bool, date, datetime, None, list[Any]]


class ClientError(RuntimeError):
    """Raised when the API answers with a non-success status."""

    def __init__(
        self,
        status_code: int,
        reason: str,
        method: str,
        url: str,
        body: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.method = method
        self.url = url
        self.body = body
        message = f"{status_code} {reason}: {method} {url}"
        if body:
            message = f"{message}: {body}"
        super().__init__(message)


class PaginationLimitError(RuntimeError):
    """Raised when walking a listing takes more pages than allowed."""

    def __init__(self, url: str, max_pages: int) -> None:
        self.url = url
        self.max_pages = max_pages
        super().__init__(f"Stopped paginating {url} after {max_pages} pages")


@dataclass(frozen=True)
class Message:
    """Request body together with its media type."""

    body: Optional[Union[str, bytes]] = None
    content_type: Optional[str] = None

    @classmethod
    def json(cls, value: Any) -> Message:
        """Serialize models, dicts or lists as a JSON body using field aliases."""
        return cls(
            body=to_json(value, by_alias=True, exclude_none=True),
            content_type="application/json",
        )


def encode_path(value: Any) -> str:
    """Percent-encode one path segment."""
    if isinstance(value, bool):
        value = str(value).lower()
    return quote(str(value), safe="")


class Client:
    """Thin synchronous wrapper around :class:`httpx.Client`.

    Generated packages subclass it to set ``default_host`` and expose one
    attribute per resource tag.
    """

    default_host = ""

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        token: Optional[str] = None,
        headers: Optional[dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = (base_url or self.default_host).rstrip("/")
        default_headers = {"Accept": "application/json"}
        if token:
            default_headers["Authorization"] = f"Bearer {token}"
        default_headers.update(headers or {})
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.Client(timeout=timeout)
        self._headers = default_headers

    def url(
        self,
        path: str,
        query: Optional[Iterable[tuple[str, QueryValue]]] = None,
        host: Optional[str] = None,
    ) -> str:
        """Build a request URL from a path and query pairs.

        Args:
            path (str): Path already encoded by :func:`encode_path`.
            query (Optional[Iterable[tuple[str, QueryValue]]]): Query pairs;
                ``None`` values are dropped and lists repeat the key.
            host (Optional[str]): Per-operation server overriding the client's base URL.

        Returns:
            str: The path, or an absolute URL when ``host`` is given, with its query string.
        """
        pairs: list[tuple[str, str]] = []
        for key, value in query or ():
            values = value if isinstance(value, list) else [value]
            pairs.extend((key, _query_text(item)) for item in values if item is not None)

        url = f"{host.rstrip('/')}{path}" if host else path
        if pairs:
            url = f"{url}?{httpx.QueryParams(pairs)}"
        return url

    def request(
        self,
        method: str,
        url: str,
        message: Optional[Message] = None,
        *,
        headers: Optional[dict[str, Optional[str]]] = None,
    ) -> httpx.Response:
        """Send one request and raise :class:`ClientError` on a non-2xx answer."""
        request_headers = dict(self._headers)
        for key, value in (headers or {}).items():
            if value is not None:
                request_headers[key] = str(value)
        content = None
        if message is not None and message.body is not None:
            content = message.body
            if message.content_type:
                request_headers["Content-Type"] = message.content_type

        absolute_url = self._absolute(url)
        logger.debug("%s %s", method, absolute_url)
        response = self._http.request(
            method, absolute_url, content=content, headers=request_headers
        )
        logger.debug("%s %s -> %s", method, absolute_url, response.status_code)
        if not response.is_success:
            raise ClientError(
                response.status_code,
                response.reason_phrase,
                method,
                absolute_url,
                body=response.text,
            )
        return response

    def request_json(
        self,
        method: str,
        url: str,
        message: Optional[Message] = None,
        *,
        headers: Optional[dict[str, Optional[str]]] = None,
    ) -> Any:
        """Send one request and return the decoded body, or ``None`` when it is empty."""
        return _decode(self.request(method, url, message, headers=headers))

    def send(
        self,
        method: str,
        url: str,
        message: Optional[Message] = None,
        *,
        headers: Optional[dict[str, Optional[str]]] = None,
        response_type: Any = None,
    ) -> Any:
        """Send a request and validate the decoded body against ``response_type``."""
        payload = self.request_json(method, url, message, headers=headers)
        if response_type is None:
            return None
        return type_adapter(response_type).validate_python(payload)

    def get(self, url: str, message: Optional[Message] = None, **kwargs: Any) -> Any:
        return self.send("GET", url, message, **kwargs)

    def post(self, url: str, message: Optional[Message] = None, **kwargs: Any) -> Any:
        return self.send("POST", url, message, **kwargs)

    def put(self, url: str, message: Optional[Message] = None, **kwargs: Any) -> Any:
        return self.send("PUT", url, message, **kwargs)

    def patch(self, url: str, message: Optional[Message] = None, **kwargs: Any) -> Any:
        return self.send("PATCH", url, message, **kwargs)

    def delete(self, url: str, message: Optional[Message] = None, **kwargs: Any) -> Any:
        return self.send("DELETE", url, message, **kwargs)

    def get_all_pages(
        self,
        url: str,
        *,
        item_type: Any,
        max_pages: int = DEFAULT_MAX_PAGES,
    ) -> list[Any]:
        """Follow ``Link: rel="next"`` headers and return every item in page order."""
        items: list[Any] = []
        next_url: Optional[str] = url
        pages = 0
        while next_url:
            if pages >= max_pages:
                raise PaginationLimitError(url, max_pages)
            response = self.request("GET", next_url)
            payload = _decode(response)
            if isinstance(payload, list):
                items.extend(payload)
            pages += 1
            next_url = response.links.get("next", {}).get("url")
        return type_adapter(list[item_type]).validate_python(items)

    def close(self) -> None:
        if self._owns_http_client:
            self._http.close()

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _absolute(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}{url}"


@lru_cache(maxsize=None)
def type_adapter(response_type: Any) -> TypeAdapter[Any]:
    return TypeAdapter(response_type)


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        return response.json()
    return response.text


def _query_text(value: Any) -> str:
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)
