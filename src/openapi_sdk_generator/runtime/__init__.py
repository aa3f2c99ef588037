"""Runtime support imported by generated client packages."""

from __future__ import annotations

from .client import (
    DEFAULT_MAX_PAGES,
    Client,
    ClientError,
    Message,
    PaginationLimitError,
    encode_path,
)
from .pagination import (
    GooglePagination,
    PageState,
    PageStep,
    PaginationStrategy,
    RampPagination,
    StripePagination,
    TripActionsPagination,
    collect_all_pages,
)

__all__ = [
    "DEFAULT_MAX_PAGES",
    "Client",
    "ClientError",
    "GooglePagination",
    "Message",
    "PageState",
    "PageStep",
    "PaginationLimitError",
    "PaginationStrategy",
    "RampPagination",
    "StripePagination",
    "TripActionsPagination",
    "collect_all_pages",
    "encode_path",
]
