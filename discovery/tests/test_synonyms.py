from __future__ import annotations

import json

from discovery.catalog.data_store import Catalog
from discovery.search.synonyms import (
    DEFAULT_SYNONYMS,
    SynonymExpansion,
    expand_query,
    load_synonyms,
    match_text,
)


def _frame(make_record):
    return Catalog.from_records([
        make_record("pizzeria", name="Папа Джонс", categories=["pizzeria"], cuisines=["italian"]),
        make_record("trattoria", name="Траттория", categories=["restaurant"], cuisines=["Итальянская"]),
        make_record("sushi", name="Суши Весла", categories=["restaurant"], cuisines=["japanese"]),
        make_record("wok", name="Вок Лапша", categories=["cafe"], cuisines=["asian"]),
        make_record("pub", name="Друзья", description="Крафтовое пиво", categories=["pub"]),
    ]).active_frame()


def _ids(df) -> list[str]:
    return sorted(df["id"])


class TestExpandQuery:
    def test_pizza_expands_to_pizzeria_and_italian(self):
        expansion = expand_query("pizza")
        assert "pizzeria" in expansion.categories
        assert "italian" in expansion.cuisines

    def test_russian_keys_are_case_insensitive(self):
        expansion = expand_query("  ПИЦЦА ")
        assert "пиццерия" in expansion.categories

    def test_sushi_maps_to_japanese_only(self):
        expansion = expand_query("суши")
        assert expansion.cuisines == frozenset({"japanese", "японская"})
        assert not expansion.categories

    def test_words_of_a_phrase_are_expanded(self):
        expansion = expand_query("пицца и суши")
        assert {"italian", "japanese"} <= expansion.cuisines

    def test_unknown_query_is_empty(self):
        assert not expand_query("стейк")

    def test_expansions_union(self):
        combined = DEFAULT_SYNONYMS["кофе"] | DEFAULT_SYNONYMS["пиво"]
        assert {"cafe", "pub", "bar"} <= combined.categories


class TestMatchText:
    def test_empty_text_is_a_no_op(self, make_record):
        df = _frame(make_record)
        assert match_text(df, None) is df
        assert match_text(df, "   ") is df

    def test_literal_substring_of_name(self, make_record):
        assert _ids(match_text(_frame(make_record), "весла")) == ["sushi"]

    def test_literal_substring_of_description(self, make_record):
        assert _ids(match_text(_frame(make_record), "крафтовое")) == ["pub"]

    def test_pizza_synonym_matches_pizzerias_and_italian(self, make_record):
        assert _ids(match_text(_frame(make_record), "пицца")) == ["pizzeria", "trattoria"]

    def test_sushi_synonym_does_not_match_asian(self, make_record):
        assert _ids(match_text(_frame(make_record), "суши")) == ["sushi"]

    def test_no_match(self, make_record):
        assert match_text(_frame(make_record), "стейкхаус").empty

    def test_custom_synonym_table(self, make_record):
        table = {"noodles": SynonymExpansion(cuisines=frozenset({"asian"}))}
        assert _ids(match_text(_frame(make_record), "noodles", table)) == ["wok"]


def test_load_synonyms(tmp_path):
    path = tmp_path / "synonyms.json"
    path.write_text(
        json.dumps({"Шаурма": {"categories": ["Фаст-фуд"], "cuisines": []}}, ensure_ascii=False),
        encoding="utf-8",
    )
    table = load_synonyms(path)
    assert table["шаурма"].categories == frozenset({"фаст-фуд"})
    assert table["шаурма"].cuisines == frozenset()
