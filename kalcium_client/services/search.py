"""
Search service.
"""

from ..models.search import RawSearchResult, SearchRequest, SearchResult
from ..validation import ValidationError
from .base import BaseService

SEARCH_PATH = "/api/search"
RAW_SEARCH_PATH = "/api/search/raw"


def _check_paging(request: SearchRequest) -> None:
    if request.start_index < 0:
        raise ValidationError(f"start_index must not be negative, got {request.start_index}")
    if request.max_count < 1:
        raise ValidationError(f"max_count must be at least 1, got {request.max_count}")


class SearchService(BaseService):
    """Term search across termbases."""

    async def search(self, request: SearchRequest) -> SearchResult:
        """Search terms, returning the page of hits and the related entries."""
        _check_paging(request)
        response = await self._post(SEARCH_PATH, request.to_dict())
        return SearchResult.from_dict(response or {})

    async def search_raw(self, request: SearchRequest) -> RawSearchResult:
        """Faster search returning hits only."""
        _check_paging(request)
        response = await self._post(RAW_SEARCH_PATH, request.to_dict())
        return RawSearchResult.from_dict(response or {})
