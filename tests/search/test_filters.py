"""Tests for search filter parsing and normalization."""

from datetime import date, datetime, timedelta, timezone

import pytest

from photoshelf.search.filters import (
    BYTES_PER_MB,
    FilterMode,
    SearchFilterSet,
    megabytes_to_bytes,
    normalize_filters,
    parse_filters,
    parse_int,
    parse_tag_string,
    parse_timestamp,
)


class TestFilterMode:

    @pytest.mark.parametrize("value", ["or", None, "", "xor", "AND", " and", 1])
    def test_anything_but_and_means_or(self, value):
        assert FilterMode.parse(value) is FilterMode.OR

    def test_and(self):
        assert FilterMode.parse("and") is FilterMode.AND
        assert FilterMode.parse(FilterMode.AND) is FilterMode.AND


class TestParseInt:

    def test_valid_values(self):
        assert parse_int("12") == 12
        assert parse_int(" 7 ") == 7
        assert parse_int(640) == 640

    @pytest.mark.parametrize("value", [None, "", "   ", "abc", "1.5", True])
    def test_invalid_values_mean_no_bound(self, value):
        assert parse_int(value) is None

    def test_values_beyond_64_bit_range_mean_no_bound(self):
        assert parse_int(str(2 ** 63 - 1)) == 2 ** 63 - 1
        assert parse_int("99999999999999999999") is None
        assert parse_int(-(2 ** 63) - 1) is None


class TestParseTimestamp:

    def test_date_start_bound_is_midnight(self):
        assert parse_timestamp("2024-03-01") == datetime(2024, 3, 1)

    def test_date_end_bound_covers_whole_day(self):
        parsed = parse_timestamp("2024-03-01", end_of_day=True)
        assert parsed == datetime(2024, 3, 1, 23, 59, 59, 999999)

    def test_utc_designator(self):
        assert parse_timestamp("2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30)

    def test_offset_is_converted_to_naive_utc(self):
        assert parse_timestamp("2024-03-01T12:00:00+02:00") == datetime(2024, 3, 1, 10, 0)

    def test_datetime_and_date_objects(self):
        aware = datetime(2024, 3, 1, 5, 0, tzinfo=timezone(timedelta(hours=-3)))
        assert parse_timestamp(aware) == datetime(2024, 3, 1, 8, 0)
        assert parse_timestamp(date(2024, 3, 1), end_of_day=True).hour == 23

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-45", "abcdefghij"])
    def test_unparseable_means_no_bound(self, value):
        assert parse_timestamp(value) is None


class TestMegabytesToBytes:

    def test_fractional_megabytes_are_exact(self):
        assert megabytes_to_bytes("1.5") == 1572864
        assert megabytes_to_bytes(2) == 2 * BYTES_PER_MB

    def test_min_rounds_down_and_max_rounds_up(self):
        assert megabytes_to_bytes("1.6") == 1677721
        assert megabytes_to_bytes("1.6", round_up=True) == 1677722

    @pytest.mark.parametrize("value", [None, "", "0", "-1", "abc", "nan", "inf"])
    def test_non_positive_or_invalid_means_no_bound(self, value):
        assert megabytes_to_bytes(value) is None

    def test_byte_count_beyond_64_bit_range_means_no_bound(self):
        assert megabytes_to_bytes("1e30") is None
        assert megabytes_to_bytes("1e30", round_up=True) is None
        assert megabytes_to_bytes("1048576") == 1024 ** 4


class TestParseTagString:

    def test_split_trim_and_dedupe(self):
        assert parse_tag_string(" travel, family ,,travel ") == ["travel", "family"]

    def test_full_width_comma(self):
        assert parse_tag_string("旅行，家族,travel") == ["旅行", "家族", "travel"]

    def test_iterable_input(self):
        assert parse_tag_string(["a", " b ", "", "a"]) == ["a", "b"]

    def test_empty(self):
        assert parse_tag_string(None) == []
        assert parse_tag_string(" , ,") == []


class TestParseFilters:

    def test_empty_filters(self):
        filters = parse_filters({})
        assert filters == SearchFilterSet()
        assert not filters.has_keyword
        assert not filters.has_other_filters

    def test_unknown_keys_are_ignored(self):
        filters = parse_filters({"color": "red", "orderBy": "name"})
        assert filters == SearchFilterSet()

    def test_full_mapping(self):
        filters = parse_filters({
            "keyword": " beach ",
            "keyword_mode": "and",
            "created_start": "2024-01-01",
            "created_end": "2024-01-31",
            "width_min": "1024",
            "height_max": "abc",
            "size_min": "1.5",
            "size_max": "3",
            "tags": "sea, sun",
            "tag_mode": "and",
        })
        assert filters.keyword == "beach"
        assert filters.keyword_mode is FilterMode.AND
        assert filters.created_start == datetime(2024, 1, 1)
        assert filters.created_end == datetime(2024, 1, 31, 23, 59, 59, 999999)
        assert filters.width_min == 1024
        assert filters.height_max is None
        assert filters.size_min_bytes == 1572864
        assert filters.size_max_bytes == 3 * BYTES_PER_MB
        assert filters.tag_names == ("sea", "sun")
        assert filters.tag_mode is FilterMode.AND
        assert filters.has_other_filters

    def test_byte_bounds_take_precedence_over_megabytes(self):
        filters = parse_filters({"size_min": "1", "size_min_bytes": "500"})
        assert filters.size_min_bytes == 500

    def test_blank_keyword_is_no_keyword(self):
        assert not parse_filters({"keyword": "   "}).has_keyword


class TestNormalizeFilters:

    def test_no_tags_skips_catalog_lookup(self):
        def _resolver(names):
            raise AssertionError("resolver should not be called")

        normalized = normalize_filters(None, 1, {"keyword": "cat"}, resolve_tags=_resolver)
        assert normalized.has_keyword
        assert not normalized.unsatisfiable
        assert normalized.requested_tag_names == ()

    def test_unknown_tags_are_dropped(self, test_db, owner, make_tag):
        make_tag(owner, "travel")
        normalized = normalize_filters(test_db, owner.id, {"tags": "ghost,travel"})
        assert normalized.filter_set.tag_names == ("travel",)
        assert normalized.requested_tag_names == ("ghost", "travel")
        assert not normalized.unsatisfiable

    def test_all_tags_unknown_is_unsatisfiable(self, test_db, owner):
        normalized = normalize_filters(test_db, owner.id, {"tags": "ghost"})
        assert normalized.unsatisfiable
        assert normalized.has_other_filters
        assert not normalized.has_tag_filter

    def test_other_owners_tags_are_not_resolved(self, test_db, owner, other_owner, make_tag):
        make_tag(other_owner, "travel")
        normalized = normalize_filters(test_db, owner.id, {"tags": "travel"})
        assert normalized.unsatisfiable

    def test_custom_resolver(self):
        class _Tag:
            def __init__(self, name):
                self.name = name

        normalized = normalize_filters(
            None,
            1,
            {"tags": "a,b,c"},
            resolve_tags=lambda names: [_Tag("c"), _Tag("a")],
        )
        assert normalized.filter_set.tag_names == ("a", "c")
