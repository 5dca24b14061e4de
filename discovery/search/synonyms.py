"""
Free-text matching with keyword synonyms.

A row matches when the query is a case-insensitive substring of its name,
description, categories or cuisines, or when the query (or one of its words)
is a synonym key whose expansion shares a tag with the row. Tags are listed
in both the English slugs and the Russian labels used by the catalog.
"""
from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pandas as pd

_WORD_RE = re.compile(r"\w+", re.UNICODE)


@dataclass(frozen=True)
class SynonymExpansion:
    categories: frozenset[str] = field(default_factory=frozenset)
    cuisines: frozenset[str] = field(default_factory=frozenset)

    def __bool__(self) -> bool:
        return bool(self.categories or self.cuisines)

    def __or__(self, other: "SynonymExpansion") -> "SynonymExpansion":
        return SynonymExpansion(
            categories=self.categories | other.categories,
            cuisines=self.cuisines | other.cuisines,
        )


def _entry(categories: tuple[str, ...] = (), cuisines: tuple[str, ...] = ()) -> SynonymExpansion:
    return SynonymExpansion(
        categories=frozenset(c.casefold() for c in categories),
        cuisines=frozenset(c.casefold() for c in cuisines),
    )


_PIZZA = _entry(("pizzeria", "Пиццерия"), ("italian", "Итальянская"))
_ITALIAN = _entry(cuisines=("italian", "Итальянская"))
_JAPANESE = _entry(cuisines=("japanese", "Японская"))
_ASIAN = _entry(cuisines=("asian", "Азиатская"))
_COFFEE = _entry(("cafe", "Кофейня"))
_BEER = _entry(("pub", "Паб", "bar", "Бар"))
_COCKTAILS = _entry(("bar", "Бар"))
_BURGER = _entry(("fast_food", "Фаст-фуд"), ("american", "Американская"))
_GEORGIAN = _entry(cuisines=("georgian", "Грузинская"))
_BELARUSIAN = _entry(cuisines=("belarusian", "Народная"))
_DESSERT = _entry(("confectionery", "Кондитерская", "bakery", "Пекарня"))
_BREAD = _entry(("bakery", "Пекарня"))
_VEGGIE = _entry(cuisines=("vegetarian", "Вегетарианская"))
_HOOKAH = _entry(("hookah", "Кальянная"))
_KARAOKE = _entry(("karaoke", "Караоке"))
_LUNCH = _entry(("canteen", "Столовая"))

DEFAULT_SYNONYMS: dict[str, SynonymExpansion] = {
    "pizza": _PIZZA,
    "пицца": _PIZZA,
    "pasta": _ITALIAN,
    "паста": _ITALIAN,
    "sushi": _JAPANESE,
    "суши": _JAPANESE,
    "rolls": _JAPANESE,
    "роллы": _JAPANESE,
    "ramen": _JAPANESE,
    "рамен": _JAPANESE,
    "wok": _ASIAN,
    "вок": _ASIAN,
    "noodles": _ASIAN,
    "лапша": _ASIAN,
    "coffee": _COFFEE,
    "кофе": _COFFEE,
    "beer": _BEER,
    "пиво": _BEER,
    "cocktails": _COCKTAILS,
    "коктейли": _COCKTAILS,
    "burger": _BURGER,
    "бургер": _BURGER,
    "бургеры": _BURGER,
    "khinkali": _GEORGIAN,
    "хинкали": _GEORGIAN,
    "khachapuri": _GEORGIAN,
    "хачапури": _GEORGIAN,
    "draniki": _BELARUSIAN,
    "драники": _BELARUSIAN,
    "dessert": _DESSERT,
    "десерт": _DESSERT,
    "десерты": _DESSERT,
    "cake": _DESSERT,
    "торт": _DESSERT,
    "bread": _BREAD,
    "хлеб": _BREAD,
    "vegan": _VEGGIE,
    "веган": _VEGGIE,
    "hookah": _HOOKAH,
    "кальян": _HOOKAH,
    "karaoke": _KARAOKE,
    "караоке": _KARAOKE,
    "lunch": _LUNCH,
    "обед": _LUNCH,
}


def load_synonyms(path: Path | str) -> dict[str, SynonymExpansion]:
    """
    Load a synonym table from JSON::

        {"pizza": {"categories": ["pizzeria"], "cuisines": ["italian"]}}
    """
    with Path(path).open(encoding="utf-8") as fh:
        raw = json.load(fh)
    return {
        str(key).casefold(): _entry(
            tuple(value.get("categories", ())),
            tuple(value.get("cuisines", ())),
        )
        for key, value in raw.items()
    }


def expand_query(
    text: str,
    synonyms: Mapping[str, SynonymExpansion] = DEFAULT_SYNONYMS,
) -> SynonymExpansion:
    """Union of expansions for the whole query and each of its words."""
    normalized = text.strip().casefold()
    keys = [normalized, *_WORD_RE.findall(normalized)]
    expansion = SynonymExpansion()
    for key in dict.fromkeys(keys):
        found = synonyms.get(key)
        if found is not None:
            expansion = expansion | found
    return expansion


def match_text(
    df: pd.DataFrame,
    text: str | None,
    synonyms: Mapping[str, SynonymExpansion] = DEFAULT_SYNONYMS,
) -> pd.DataFrame:
    if not text or not text.strip() or df.empty:
        return df

    needle = text.strip().casefold()
    mask = df["_haystack"].str.contains(needle, regex=False)

    expansion = expand_query(needle, synonyms)
    if expansion:
        mask |= df["_categories_key"].apply(
            lambda tags: not expansion.categories.isdisjoint(tags)
        ).astype(bool)
        mask |= df["_cuisines_key"].apply(
            lambda tags: not expansion.cuisines.isdisjoint(tags)
        ).astype(bool)

    return df.loc[mask]
