"""Image search: filter normalization, predicate composition, result paging."""

import logging
from typing import Any, Mapping, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from photoshelf.search.filter_builder import Composition, CompositionPath, FilterBuilder
from photoshelf.search.filters import (
    FilterMode,
    NormalizedFilters,
    SearchFilterSet,
    TagResolver,
    normalize_filters,
    parse_filters,
)
from photoshelf.search.query_builder import QueryBuilder, SearchResult


class SearchError(Exception):
    """Base error for image search."""


class SearchFailedError(SearchError):
    """A storage query failed; the search was aborted with no partial results."""

    def __init__(self, message: str = "search failed"):
        super().__init__(message)


class ImageSearch:
    """Run a filtered, paginated image search for one owner.

    The instance holds no state between calls; create one per request.
    """

    def __init__(
        self,
        db: Session,
        owner_id: int,
        logger: Optional[logging.Logger] = None,
        resolve_tags: Optional[TagResolver] = None,
        default_page_size: Optional[int] = None,
    ):
        self.db = db
        self.owner_id = owner_id
        self.logger = logger or logging.getLogger(__name__)
        self.resolve_tags = resolve_tags
        self.filter_builder = FilterBuilder(db, owner_id, logger=self.logger)
        self.query_builder = QueryBuilder(db, default_page_size=default_page_size)

    def run(
        self,
        filters: Optional[Mapping[str, Any]] = None,
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
    ) -> SearchResult:
        """Search the owner's images.

        Args:
            filters: Raw filter mapping (see ``RAW_FILTER_KEYS``)
            page: 1-based page number; values below 1 are treated as 1
            page_size: Items per page; non-positive values use the default

        Returns:
            SearchResult with the page of images and the total match count

        Raises:
            SearchFailedError: Any storage error while searching
        """
        try:
            normalized = normalize_filters(
                self.db,
                self.owner_id,
                filters,
                resolve_tags=self.resolve_tags,
            )
            composition = self.filter_builder.compose(normalized)
            self.logger.debug("Search for owner %s using path %s", self.owner_id, composition.path)
            return self.query_builder.materialize(composition, page, page_size)
        except SQLAlchemyError as exc:
            self.logger.error("Image search failed for owner %s: %s", self.owner_id, exc)
            self.db.rollback()
            raise SearchFailedError() from exc


def search_images(
    db: Session,
    owner_id: int,
    filters: Optional[Mapping[str, Any]] = None,
    page: Optional[int] = 1,
    page_size: Optional[int] = None,
    logger: Optional[logging.Logger] = None,
) -> SearchResult:
    """Convenience wrapper around ``ImageSearch.run``."""
    return ImageSearch(db, owner_id, logger=logger).run(filters, page, page_size)


__all__ = [
    "Composition",
    "CompositionPath",
    "FilterBuilder",
    "FilterMode",
    "ImageSearch",
    "NormalizedFilters",
    "QueryBuilder",
    "SearchError",
    "SearchFailedError",
    "SearchFilterSet",
    "SearchResult",
    "normalize_filters",
    "parse_filters",
    "search_images",
]
