"""Predicate composition for image search.

Builds the owner-scoped queries behind a search. Tag matching needs a
JOIN + GROUP BY, which cannot be combined with eager loading of an image's
children (or OR-ed with a keyword predicate) without multiplying or
collapsing rows. Whenever a tag predicate or an OR between keyword and other
filters is involved, matching primary keys are resolved first with id-only
key-set queries and the final rows come from a clean ``id IN (...)`` query
with no joins or grouping.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Set

from sqlalchemy.orm import Query, Session, aliased

from photoshelf.metadata import Image, ImageExif, ImageTag, Tag
from photoshelf.search.filters import FilterMode, NormalizedFilters, SearchFilterSet


class CompositionPath:
    """Names of the composition strategies, reported for logging and tests."""

    UNSATISFIABLE = "unsatisfiable"
    ALL = "all"
    KEYWORD = "keyword"
    OTHER = "other"
    OTHER_KEYS = "other_keys"
    KEYWORD_AND_OTHER = "keyword_and_other"
    KEYWORD_AND_OTHER_KEYS = "keyword_and_other_keys"
    KEYWORD_OR_OTHER_KEYS = "keyword_or_other_keys"
    EMPTY_KEYS = "empty_keys"


@dataclass
class Composition:
    """Final image query for a search.

    ``query`` is None when the search is known to match nothing; no
    further queries should be run in that case.
    """

    query: Optional[Query]
    path: str

    @property
    def is_empty(self) -> bool:
        return self.query is None


class FilterBuilder:
    """Builder for owner-scoped image search predicates.

    Example:
        builder = FilterBuilder(db, owner_id)
        composition = builder.compose(normalized)
        if not composition.is_empty:
            rows = composition.query.all()
    """

    def __init__(self, db: Session, owner_id: int, logger: Optional[logging.Logger] = None):
        """Initialize filter builder.

        Args:
            db: Database session
            owner_id: ID of the user whose images are searched
            logger: Logger for composition tracing (defaults to module logger)
        """
        self.db = db
        self.owner_id = owner_id
        self.logger = logger or logging.getLogger(__name__)

    def _base_query(self) -> Query:
        """Id-only query scoped to the owner, used for key-set resolution."""
        return self.db.query(Image.id).filter(Image.user_id == self.owner_id)

    def _entity_query(self) -> Query:
        """Full-row query scoped to the owner."""
        return self.db.query(Image).filter(Image.user_id == self.owner_id)

    def clean_query(self, image_ids: Set[int]) -> Query:
        """Owner-scoped fetch of the given ids with no joins or grouping."""
        return self._entity_query().filter(Image.id.in_(sorted(image_ids)))

    def key_set(self, query: Query) -> Set[int]:
        """Execute an id-only query and return the matching primary keys."""
        return {row[0] for row in query.all()}

    def apply_keyword(self, query: Query, keyword: str) -> Query:
        """Substring match against the original filename."""
        return query.filter(Image.original_filename.contains(keyword, autoescape=True))

    def apply_created_range(self, query: Query, filters: SearchFilterSet) -> Query:
        if filters.created_start is not None:
            query = query.filter(Image.created_at >= filters.created_start)
        if filters.created_end is not None:
            query = query.filter(Image.created_at <= filters.created_end)
        return query

    def apply_dimension_range(self, query: Query, filters: SearchFilterSet) -> Query:
        if filters.width_min is not None:
            query = query.filter(Image.width >= filters.width_min)
        if filters.width_max is not None:
            query = query.filter(Image.width <= filters.width_max)
        if filters.height_min is not None:
            query = query.filter(Image.height >= filters.height_min)
        if filters.height_max is not None:
            query = query.filter(Image.height <= filters.height_max)
        return query

    def apply_size_range(self, query: Query, filters: SearchFilterSet) -> Query:
        if filters.size_min_bytes is not None:
            query = query.filter(Image.file_size >= filters.size_min_bytes)
        if filters.size_max_bytes is not None:
            query = query.filter(Image.file_size <= filters.size_max_bytes)
        return query

    def apply_taken_range(self, query: Query, filters: SearchFilterSet) -> Query:
        """Filter on EXIF capture time.

        Images without an EXIF row (or with a NULL capture time) never
        satisfy a present bound.
        """
        if not filters.has_taken_range:
            return query
        query = query.outerjoin(ImageExif, ImageExif.image_id == Image.id)
        if filters.taken_start is not None:
            query = query.filter(ImageExif.taken_at >= filters.taken_start)
        if filters.taken_end is not None:
            query = query.filter(ImageExif.taken_at <= filters.taken_end)
        return query

    def apply_tags(self, query: Query, tag_names, mode: FilterMode) -> Query:
        """Restrict to images carrying the given (existing) tags.

        OR: one join with ``tags.name IN (...)``.
        AND: one aliased join pair per tag name, so every name must match.
        Both group by image id; callers must treat the result as a key-set
        query.
        """
        tag_names = list(tag_names)
        if mode == FilterMode.AND:
            for tag_name in tag_names:
                image_tag = aliased(ImageTag)
                tag = aliased(Tag)
                query = query.join(
                    image_tag, image_tag.image_id == Image.id
                ).join(
                    tag,
                    (tag.id == image_tag.tag_id)
                    & (tag.user_id == self.owner_id)
                    & (tag.name == tag_name),
                )
        else:
            query = query.join(
                ImageTag, ImageTag.image_id == Image.id
            ).join(
                Tag,
                (Tag.id == ImageTag.tag_id) & (Tag.user_id == self.owner_id),
            ).filter(Tag.name.in_(tag_names))
        return query.group_by(Image.id)

    def apply_other_filters(self, query: Query, filters: SearchFilterSet) -> Query:
        """AND together every non-keyword predicate present in the filter set."""
        query = self.apply_created_range(query, filters)
        query = self.apply_dimension_range(query, filters)
        query = self.apply_size_range(query, filters)
        query = self.apply_taken_range(query, filters)
        if filters.has_tag_filter:
            query = self.apply_tags(query, filters.tag_names, filters.tag_mode)
        return query

    def _from_keys(self, image_ids: Set[int], path: str) -> Composition:
        self.logger.debug("Search path %s resolved %d image ids", path, len(image_ids))
        if not image_ids:
            return Composition(query=None, path=CompositionPath.EMPTY_KEYS)
        return Composition(query=self.clean_query(image_ids), path=path)

    def compose(self, normalized: NormalizedFilters) -> Composition:
        """Select and build the query strategy for a normalized filter set."""
        filters = normalized.filter_set
        has_keyword = normalized.has_keyword
        has_other = normalized.has_other_filters

        if normalized.unsatisfiable:
            self.logger.debug(
                "Tag filter %s matched no tags for owner %s; returning no results",
                list(normalized.requested_tag_names),
                self.owner_id,
            )
            return Composition(query=None, path=CompositionPath.UNSATISFIABLE)

        if not has_keyword and not has_other:
            return Composition(query=self._entity_query(), path=CompositionPath.ALL)

        if has_keyword and not has_other:
            query = self.apply_keyword(self._entity_query(), filters.keyword)
            return Composition(query=query, path=CompositionPath.KEYWORD)

        if not has_keyword:
            if filters.has_tag_filter:
                keys = self.key_set(self.apply_other_filters(self._base_query(), filters))
                return self._from_keys(keys, CompositionPath.OTHER_KEYS)
            query = self.apply_other_filters(self._entity_query(), filters)
            return Composition(query=query, path=CompositionPath.OTHER)

        if filters.keyword_mode == FilterMode.AND:
            if filters.has_tag_filter:
                query = self.apply_keyword(self._base_query(), filters.keyword)
                keys = self.key_set(self.apply_other_filters(query, filters))
                return self._from_keys(keys, CompositionPath.KEYWORD_AND_OTHER_KEYS)
            query = self.apply_keyword(self._entity_query(), filters.keyword)
            query = self.apply_other_filters(query, filters)
            return Composition(query=query, path=CompositionPath.KEYWORD_AND_OTHER)

        # OR: two independent key-sets, unioned in Python.
        keyword_keys = self.key_set(self.apply_keyword(self._base_query(), filters.keyword))
        other_keys = self.key_set(self.apply_other_filters(self._base_query(), filters))
        self.logger.debug(
            "Keyword matched %d ids, other filters matched %d ids",
            len(keyword_keys),
            len(other_keys),
        )
        return self._from_keys(keyword_keys | other_keys, CompositionPath.KEYWORD_OR_OTHER_KEYS)
