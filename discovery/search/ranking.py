from __future__ import annotations

import numpy as np
import pandas as pd

from ..config import DEFAULT_RANKING_WEIGHTS, RankingWeights
from .models import PRICE_ORDER, SortKey

# Applied after every primary key so equal keys always land in the same order
_TIE_BREAK: list[tuple[str, bool]] = [("review_count", False), ("id", True)]

_PRICE_RANK = {tier: position for position, tier in enumerate(PRICE_ORDER)}


def relevance_scores(
    df: pd.DataFrame,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
) -> pd.Series:
    """
    Composite score, each term squashed into [0, 1] before weighting.

    - distance: ``1 / (1 + d / scale)``; 0 when no distance is known
    - rating: ``rating / 5``; 0 when unrated
    - reviews: ``log1p(count) / log1p(saturation)`` capped at 1
    - boost: ``b / (1 + b)``
    """
    distance = df["distance_km"].astype(float)
    distance_term = (1.0 / (1.0 + distance.clip(lower=0) / weights.distance_scale_km)).fillna(0.0)
    rating_term = (df["average_rating"].astype(float) / 5.0).clip(0.0, 1.0).fillna(0.0)
    reviews_term = (
        np.log1p(df["review_count"].astype(float)) / np.log1p(weights.review_saturation)
    ).clip(upper=1.0)
    boost = df["boost_score"].astype(float).clip(lower=0)
    boost_term = boost / (1.0 + boost)

    return (
        weights.distance * distance_term
        + weights.rating * rating_term
        + weights.reviews * reviews_term
        + weights.boost * boost_term
    )


def _primary_key(df: pd.DataFrame, sort: SortKey, weights: RankingWeights) -> tuple[pd.DataFrame, str, bool]:
    if sort is SortKey.distance:
        return df, "distance_km", True
    if sort is SortKey.rating:
        return df, "average_rating", False
    if sort in (SortKey.price_asc, SortKey.price_desc):
        ranked = df.assign(_price_rank=df["price_tier"].map(_PRICE_RANK).astype(float))
        return ranked, "_price_rank", sort is SortKey.price_asc
    return df.assign(_score=relevance_scores(df, weights)), "_score", False


def rank(
    df: pd.DataFrame,
    sort: SortKey = SortKey.relevance,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
) -> pd.DataFrame:
    """Order candidates by ``sort``, then review count desc, then id asc."""
    if df.empty:
        return df

    keyed, column, ascending = _primary_key(df, sort, weights)
    keys = [(column, ascending), *_TIE_BREAK]
    return keyed.sort_values(
        by=[k for k, _ in keys],
        ascending=[a for _, a in keys],
        na_position="last",
        kind="mergesort",
    )
