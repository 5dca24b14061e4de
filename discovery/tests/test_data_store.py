from __future__ import annotations

import json

import pytest

from discovery.catalog import data_store
from discovery.catalog.data_store import Catalog, get_catalog, load_catalog, set_catalog
from discovery.catalog.hours import TAG_UNTIL_22, TAG_UNTIL_MORNING
from discovery.config import DEFAULT_SEARCH_CONFIG
from discovery.search.errors import DataSourceUnavailableError, ErrorCode


class TestPreparation:
    def test_missing_columns_get_defaults(self):
        catalog = Catalog.from_records([{"id": 1, "name": "Bare"}])
        row = catalog.frame.iloc[0]
        assert row["id"] == "1"
        assert row["categories"] == []
        assert row["status"] == "active"
        assert row["review_count"] == 0
        assert row["boost_score"] == 0.0
        assert bool(row["is_24_hours"]) is False
        assert row["hours_tags"] == []

    def test_comma_separated_tags_are_split(self, make_record):
        catalog = Catalog.from_records([make_record("x", categories="bar, pub ,", features="wifi")])
        row = catalog.frame.iloc[0]
        assert row["categories"] == ["bar", "pub"]
        assert row["features"] == ["wifi"]

    def test_hours_tags_derived_from_schedule(self, make_record):
        catalog = Catalog.from_records([
            make_record("late", working_hours={"friday": {"open": "20:00", "close": "05:00"}}),
            make_record("always", is_24_hours=True),
        ])
        tags = dict(zip(catalog.frame["id"], catalog.frame["hours_tags"]))
        assert tags["late"] == [TAG_UNTIL_22, TAG_UNTIL_MORNING]
        assert tags["always"] == [TAG_UNTIL_22, TAG_UNTIL_MORNING]

    def test_explicit_hours_tags_take_precedence(self, make_record):
        catalog = Catalog.from_records([make_record("x", is_24_hours=True, hours_tags=[])])
        assert catalog.frame.iloc[0]["hours_tags"] == []

    def test_haystack_is_casefolded(self, make_record):
        catalog = Catalog.from_records([
            make_record("x", name="Кафе Ёлка", description=None, cuisines=["Italian"])
        ])
        haystack = catalog.frame.iloc[0]["_haystack"]
        assert "кафе ёлка" in haystack
        assert "italian" in haystack

    def test_negative_boost_and_reviews_are_clamped(self, make_record):
        catalog = Catalog.from_records([make_record("x", boost_score=-3, review_count=-1)])
        row = catalog.frame.iloc[0]
        assert row["boost_score"] == 0.0
        assert row["review_count"] == 0


class TestCatalog:
    def test_active_and_located_subsets(self, make_record):
        catalog = Catalog.from_records([
            make_record("a"),
            make_record("b", latitude=None),
            make_record("c", status="SUSPENDED"),
        ])
        assert len(catalog) == 3
        assert sorted(catalog.active_frame()["id"]) == ["a", "b"]
        assert list(catalog.located_frame()["id"]) == ["a"]
        assert catalog.ball_tree is not None

    def test_get_returns_active_rows_only(self, make_record):
        catalog = Catalog.from_records([make_record("a"), make_record("b", status="suspended")])
        assert catalog.get("a")["id"] == "a"
        assert catalog.get("b") is None
        assert catalog.get("missing") is None

    def test_no_located_rows_means_no_tree(self, make_record):
        catalog = Catalog.from_records([make_record("a", latitude=None, longitude=None)])
        assert catalog.ball_tree is None


class TestLoadCatalog:
    def test_list_payload(self, tmp_path, make_record):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps([make_record("a"), make_record("b")]), encoding="utf-8")
        assert len(load_catalog(path)) == 2

    def test_wrapped_payload(self, tmp_path, make_record):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"establishments": [make_record("a")]}), encoding="utf-8")
        assert len(load_catalog(path)) == 1

    def test_missing_file(self, tmp_path):
        with pytest.raises(DataSourceUnavailableError) as exc_info:
            load_catalog(tmp_path / "nope.json")
        assert exc_info.value.code is ErrorCode.DATA_SOURCE_UNAVAILABLE
        assert exc_info.value.status_code == 503

    def test_corrupt_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DataSourceUnavailableError):
            load_catalog(path)

    def test_unexpected_shape(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps({"rows": []}), encoding="utf-8")
        with pytest.raises(DataSourceUnavailableError):
            load_catalog(path)

    def test_bundled_snapshot_loads(self):
        catalog = load_catalog(DEFAULT_SEARCH_CONFIG.catalog_path)
        assert len(catalog) > 0
        assert len(catalog.active_frame()) < len(catalog)


class TestGlobalSnapshot:
    def test_set_and_get(self, scenario_catalog):
        set_catalog(scenario_catalog)
        try:
            assert get_catalog() is scenario_catalog
        finally:
            set_catalog(None)

    def test_lazy_load_failure_propagates(self, monkeypatch, tmp_path):
        monkeypatch.setattr(
            data_store,
            "DEFAULT_SEARCH_CONFIG",
            type(DEFAULT_SEARCH_CONFIG)(catalog_path=tmp_path / "missing.json"),
        )
        set_catalog(None)
        with pytest.raises(DataSourceUnavailableError):
            get_catalog()
