"""Nexar Supply API client and result normalization."""

from .client import NexarClient, SEARCH_PARTS_QUERY, DEFAULT_LIMIT
from .models import Part, normalize_part, normalize_search_response

__all__ = [
    "NexarClient",
    "SEARCH_PARTS_QUERY",
    "DEFAULT_LIMIT",
    "Part",
    "normalize_part",
    "normalize_search_response",
]
