"""Tests for search result materialization."""

from datetime import datetime, timedelta

from sqlalchemy import inspect

from photoshelf.metadata import Image
from photoshelf.search.filter_builder import Composition, CompositionPath, FilterBuilder
from photoshelf.search.query_builder import QueryBuilder


def _all_images(test_db, owner) -> Composition:
    return Composition(query=FilterBuilder(test_db, owner.id)._entity_query(), path=CompositionPath.ALL)


class TestNormalizePage:

    def test_defaults(self, test_db):
        builder = QueryBuilder(test_db, default_page_size=20)
        assert builder.normalize_page(None, None) == (1, 20)
        assert builder.normalize_page(0, 0) == (1, 20)
        assert builder.normalize_page(-3, -5) == (1, 20)

    def test_keeps_valid_values(self, test_db):
        assert QueryBuilder(test_db).normalize_page(3, 7) == (3, 7)

    def test_default_page_size_from_settings(self, test_db):
        assert QueryBuilder(test_db).default_page_size == 20


class TestMaterialize:

    def test_empty_composition_runs_no_query(self, test_db):
        result = QueryBuilder(test_db).materialize(Composition(query=None, path=CompositionPath.UNSATISFIABLE), 2, 5)
        assert result.items == []
        assert result.total == 0
        assert (result.page, result.page_size) == (2, 5)

    def test_newest_first_with_id_tie_break(self, test_db, owner, make_image):
        same_time = datetime(2024, 5, 1, 8, 0)
        older = make_image(owner, "older.jpg", created_at=same_time - timedelta(days=1))
        first = make_image(owner, "first.jpg", created_at=same_time)
        second = make_image(owner, "second.jpg", created_at=same_time)

        result = QueryBuilder(test_db).materialize(_all_images(test_db, owner), 1, 10)

        assert [image.id for image in result.items] == [second.id, first.id, older.id]
        assert result.total == 3

    def test_page_beyond_end_is_empty_with_total(self, test_db, owner, make_image):
        for index in range(3):
            make_image(owner, f"img{index}.jpg")

        result = QueryBuilder(test_db).materialize(_all_images(test_db, owner), 5, 2)

        assert result.items == []
        assert result.total == 3

    def test_last_page_is_partial(self, test_db, owner, make_image):
        for index in range(5):
            make_image(owner, f"img{index}.jpg", created_at=datetime(2024, 1, 1) + timedelta(hours=index))

        result = QueryBuilder(test_db).materialize(_all_images(test_db, owner), 3, 2)

        assert [image.original_filename for image in result.items] == ["img0.jpg"]
        assert result.total == 5

    def test_associations_loaded_without_thumbnail_bytes(self, test_db, owner, make_image):
        make_image(owner, "full.jpg", taken_at=datetime(2023, 1, 1), thumbnail=b"\xff\xd8jpeg", tags=["z", "a"])
        composition = _all_images(test_db, owner)
        test_db.expunge_all()

        result = QueryBuilder(test_db).materialize(composition, 1, 10)
        image = result.items[0]
        state = inspect(image)

        assert "tags" not in state.unloaded
        assert "exif" not in state.unloaded
        assert "thumbnail" not in state.unloaded
        assert [tag.name for tag in image.tags] == ["a", "z"]
        assert image.exif.taken_at == datetime(2023, 1, 1)
        assert "data" in inspect(image.thumbnail).unloaded

    def test_total_counts_distinct_images(self, test_db, owner, make_image):
        make_image(owner, "one.jpg", tags=["a", "b", "c"])
        builder = FilterBuilder(test_db, owner.id)
        query = builder._entity_query().join(Image.tags)

        assert QueryBuilder(test_db).get_total_count(query) == 1
