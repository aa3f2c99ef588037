"""Drivers that walk every page of a vendor's paginated listing.

Each driver is one variant of :data:`PaginationStrategy` and shares the same
contract: ``first_url`` shapes the first request, ``items`` extracts the
collection from a decoded page, ``advance`` decides whether another page
exists and where it lives, and ``stops_on`` says whether an error raised while
fetching a follow-up page means "no more data".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Optional, Union
from urllib.parse import quote

from .client import DEFAULT_MAX_PAGES, Client, ClientError, PaginationLimitError, type_adapter

logger = logging.getLogger(__name__)

TRIPACTIONS_PAGE_SIZE = 100


@dataclass(frozen=True)
class PageState:
    """Cursor state carried between pages.

    ``url`` is the listing URL without pagination controls and ``host`` the
    client's base URL; ``cursor`` and ``page`` hold the value just used.
    """

    url: str
    host: str = ""
    cursor: Optional[str] = None
    page: int = 0


@dataclass(frozen=True)
class PageStep:
    """Outcome of :meth:`advance`: stop, or fetch ``url`` with the new ``state``."""

    done: bool
    state: PageState
    url: Optional[str] = None


@dataclass(frozen=True)
class StripePagination:
    """``has_more`` flag with a ``starting_after`` cursor taken from the last item id."""

    collection: str = "data"

    def first_url(self, url: str) -> str:
        return url

    def items(self, payload: Any) -> list[Any]:
        return _collection(payload, self.collection)

    def advance(self, state: PageState, payload: Any) -> PageStep:
        if not isinstance(payload, dict) or payload.get("has_more") is not True:
            return PageStep(done=True, state=state)
        cursor = state.cursor
        page_items = self.items(payload)
        if page_items and isinstance(page_items[-1], dict) and page_items[-1].get("id"):
            cursor = str(page_items[-1]["id"])
        if cursor is None:
            return PageStep(done=True, state=state)
        return PageStep(
            done=False,
            state=replace(state, cursor=cursor),
            url=_with_query(state.url, f"starting_after={quote(cursor, safe='')}"),
        )

    def stops_on(self, error: Exception) -> bool:
        return isinstance(error, ClientError) and error.status_code == 404


@dataclass(frozen=True)
class GooglePagination:
    """Continuation token echoed back as ``pageToken``."""

    collection: str = "items"
    token: str = "nextPageToken"

    def first_url(self, url: str) -> str:
        return url

    def items(self, payload: Any) -> list[Any]:
        return _collection(payload, self.collection)

    def advance(self, state: PageState, payload: Any) -> PageStep:
        token = payload.get(self.token) if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token or token == state.cursor:
            return PageStep(done=True, state=state)
        return PageStep(
            done=False,
            state=replace(state, cursor=token),
            url=_with_query(state.url, f"pageToken={quote(token, safe='')}"),
        )

    def stops_on(self, error: Exception) -> bool:
        return False


@dataclass(frozen=True)
class RampPagination:
    """``page.next`` holds the full URL of the following page."""

    collection: str = "data"

    def first_url(self, url: str) -> str:
        return url

    def items(self, payload: Any) -> list[Any]:
        return _collection(payload, self.collection)

    def advance(self, state: PageState, payload: Any) -> PageStep:
        page = payload.get("page") if isinstance(payload, dict) else None
        next_url = page.get("next") if isinstance(page, dict) else None
        if not isinstance(next_url, str) or not next_url or next_url == state.cursor:
            return PageStep(done=True, state=state)
        url = next_url.removeprefix(state.host) if state.host else next_url
        return PageStep(done=False, state=replace(state, cursor=next_url), url=url)

    def stops_on(self, error: Exception) -> bool:
        return "404 Not Found" in str(error)


@dataclass(frozen=True)
class TripActionsPagination:
    """Numbered pages of a fixed size, walked until ``page.total_pages`` is reached."""

    collection: str = "data"
    page_size: int = TRIPACTIONS_PAGE_SIZE

    def first_url(self, url: str) -> str:
        return _with_query(url, f"page=0&size={self.page_size}")

    def items(self, payload: Any) -> list[Any]:
        return _collection(payload, self.collection)

    def advance(self, state: PageState, payload: Any) -> PageStep:
        page = payload.get("page") if isinstance(payload, dict) else None
        if not isinstance(page, dict):
            return PageStep(done=True, state=state)
        current = _int_field(page, "current_page", "currentPage")
        total = _int_field(page, "total_pages", "totalPages")
        if current is None or total is None or current + 1 > total - 1:
            return PageStep(done=True, state=state)
        next_page = current + 1
        return PageStep(
            done=False,
            state=replace(state, page=next_page),
            url=_with_query(state.url, f"page={next_page}&size={self.page_size}"),
        )

    def stops_on(self, error: Exception) -> bool:
        return False


type PaginationStrategy = Union[
    StripePagination,
    GooglePagination,
    RampPagination,
    TripActionsPagination,
]


def collect_all_pages(
    client: Client,
    url: str,
    strategy: PaginationStrategy,
    *,
    item_type: Any,
    max_pages: int = DEFAULT_MAX_PAGES,
) -> list[Any]:
    """Fetch pages one after another and return every item in page order.

    Errors on the first page always propagate. On later pages an error the
    strategy recognizes as "no more data" ends the walk successfully.

    Args:
        client (Client): Client issuing the requests.
        url (str): Listing URL without pagination controls.
        strategy (PaginationStrategy): Vendor driver.
        item_type (Any): Type each collected item is validated against.
        max_pages (int): Ceiling on the number of pages fetched.

    Returns:
        list[Any]: Validated items from every page.
    """
    state = PageState(url=url, host=client.base_url)
    payload = client.request_json("GET", strategy.first_url(url))
    items = list(strategy.items(payload))
    pages = 1

    while True:
        step = strategy.advance(state, payload)
        if step.done or step.url is None:
            break
        if pages >= max_pages:
            raise PaginationLimitError(url, max_pages)
        state = step.state
        try:
            payload = client.request_json("GET", step.url)
        except ClientError as exc:
            if strategy.stops_on(exc):
                logger.debug("Treating %s as the end of %s", exc, url)
                break
            raise
        items.extend(strategy.items(payload))
        pages += 1

    return type_adapter(list[item_type]).validate_python(items)


def _collection(payload: Any, name: str) -> list[Any]:
    if not isinstance(payload, dict):
        return []
    value = payload.get(name)
    return value if isinstance(value, list) else []


def _int_field(page: dict[str, Any], *names: str) -> Optional[int]:
    for name in names:
        value = page.get(name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _with_query(url: str, query: str) -> str:
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{query}"
