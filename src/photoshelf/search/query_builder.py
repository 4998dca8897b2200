"""Result materialization for image search.

Provides:
- Page/page-size normalization
- The fixed newest-first ordering
- Total count calculation
- Eager loading of tags, EXIF and thumbnail references
- Pagination
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Query, Session, selectinload

from photoshelf.metadata import Image, Thumbnail
from photoshelf.search.filter_builder import Composition
from photoshelf.settings import settings


@dataclass
class SearchResult:
    """One page of search results plus the total match count."""

    items: List[Image] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 20


class QueryBuilder:
    """Turns a composed search query into a page of fully-loaded images."""

    def __init__(self, db: Session, default_page_size: Optional[int] = None):
        """Initialize query builder.

        Args:
            db: SQLAlchemy database session
            default_page_size: Page size used when the caller's is missing or
                non-positive (defaults to ``settings.search_default_page_size``)
        """
        self.db = db
        self.default_page_size = default_page_size or settings.search_default_page_size

    def normalize_page(self, page: Optional[int], page_size: Optional[int]) -> Tuple[int, int]:
        """Clamp page to >= 1 and replace non-positive page sizes with the default."""
        page = page if page and page > 0 else 1
        page_size = page_size if page_size and page_size > 0 else self.default_page_size
        return page, page_size

    def build_order_clauses(self) -> Tuple:
        """Newest first, with id as a tie-breaker so pages never overlap."""
        return (Image.created_at.desc(), Image.id.desc())

    def with_associations(self, query: Query) -> Query:
        """Eager-load children in separate SELECT ... IN queries.

        Thumbnail bytes are deferred; only the reference fields are loaded.
        """
        return query.options(
            selectinload(Image.tags),
            selectinload(Image.exif),
            selectinload(Image.thumbnail).defer(Thumbnail.data),
        )

    def apply_pagination(self, query: Query, offset: int, limit: Optional[int]) -> List:
        """Apply SQL-based pagination to a query and execute it."""
        if limit:
            return query.limit(limit).offset(offset).all()
        return query.offset(offset).all()

    def get_total_count(self, query: Query) -> int:
        """Count distinct images matched by the query, ignoring pagination."""
        id_subquery = (
            query
            .with_entities(Image.id)
            .order_by(None)
            .distinct()
            .subquery()
        )
        return int(self.db.query(func.count()).select_from(id_subquery).scalar() or 0)

    def materialize(
        self,
        composition: Composition,
        page: Optional[int] = 1,
        page_size: Optional[int] = None,
    ) -> SearchResult:
        """Count, order, paginate and load one page of the composed query."""
        page, page_size = self.normalize_page(page, page_size)
        if composition.is_empty:
            return SearchResult(items=[], total=0, page=page, page_size=page_size)

        total = self.get_total_count(composition.query)
        if total == 0:
            return SearchResult(items=[], total=0, page=page, page_size=page_size)

        query = self.with_associations(composition.query).order_by(*self.build_order_clauses())
        items = self.apply_pagination(query, (page - 1) * page_size, page_size)
        return SearchResult(items=items, total=total, page=page, page_size=page_size)
