from __future__ import annotations

import pandas as pd

from .models import HoursFilter, SearchFilters


def _any_of(column: pd.Series, wanted: tuple[str, ...]) -> pd.Series:
    """OR within a field: the row's tag list shares at least one tag."""
    wanted_lower = {w.casefold() for w in wanted}
    return column.apply(lambda tags: not wanted_lower.isdisjoint(tags)).astype(bool)


def _all_of(column: pd.Series, wanted: tuple[str, ...]) -> pd.Series:
    wanted_lower = {w.casefold() for w in wanted}
    return column.apply(lambda flags: wanted_lower.issubset(flags)).astype(bool)


def filter_mask(df: pd.DataFrame, filters: SearchFilters) -> pd.Series:
    """Conjunction of every active filter; absent filters pass everything."""
    mask = pd.Series(True, index=df.index)
    if df.empty:
        return mask

    if filters.city:
        mask &= df["city"].fillna("").str.casefold() == filters.city.casefold()

    if filters.categories:
        mask &= _any_of(df["_categories_key"], filters.categories)

    if filters.cuisines:
        mask &= _any_of(df["_cuisines_key"], filters.cuisines)

    if filters.price_tiers:
        mask &= df["price_tier"].isin([tier.value for tier in filters.price_tiers])

    if filters.min_rating is not None:
        # NaN compares False, so unrated rows drop out
        mask &= df["average_rating"] >= filters.min_rating

    if filters.hours_filter is HoursFilter.hours_24:
        mask &= df["is_24_hours"]
    elif filters.hours_filter is not None:
        tag = filters.hours_filter.value
        mask &= df["hours_tags"].apply(lambda tags: tag in tags).astype(bool)

    if filters.features:
        mask &= _all_of(df["_features_key"], filters.features)

    return mask


def apply_filters(df: pd.DataFrame, filters: SearchFilters) -> pd.DataFrame:
    return df.loc[filter_mask(df, filters)]
