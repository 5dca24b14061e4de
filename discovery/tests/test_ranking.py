from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from discovery.catalog.data_store import Catalog
from discovery.config import RankingWeights
from discovery.search.models import SortKey
from discovery.search.ranking import rank, relevance_scores


def _candidates(make_record, *records, distances=None):
    df = Catalog.from_records([make_record(rid, **fields) for rid, fields in records]).active_frame()
    if distances is None:
        distances = [np.nan] * len(df)
    return df.assign(distance_km=distances)


def _ids(df) -> list[str]:
    return list(df["id"])


class TestRelevanceScores:
    def test_closer_scores_higher(self, make_record):
        df = _candidates(
            make_record,
            ("near", {"average_rating": 4.0, "review_count": 10}),
            ("far", {"average_rating": 4.0, "review_count": 10}),
            distances=[1.0, 8.0],
        )
        scores = relevance_scores(df)
        assert scores.iloc[0] > scores.iloc[1]

    def test_better_rated_scores_higher(self, make_record):
        df = _candidates(
            make_record,
            ("good", {"average_rating": 4.8}),
            ("ok", {"average_rating": 3.0}),
        )
        scores = relevance_scores(df)
        assert scores.iloc[0] > scores.iloc[1]

    def test_more_reviews_score_higher(self, make_record):
        df = _candidates(make_record, ("busy", {"review_count": 200}), ("quiet", {"review_count": 2}))
        scores = relevance_scores(df)
        assert scores.iloc[0] > scores.iloc[1]

    def test_boost_scores_higher(self, make_record):
        df = _candidates(make_record, ("promoted", {"boost_score": 3.0}), ("plain", {}))
        scores = relevance_scores(df)
        assert scores.iloc[0] > scores.iloc[1]

    def test_scores_are_bounded_by_weight_sum(self, make_record):
        df = _candidates(
            make_record,
            ("max", {"average_rating": 5.0, "review_count": 100_000, "boost_score": 1e9}),
            ("min", {}),
            distances=[0.0, np.nan],
        )
        weights = RankingWeights()
        scores = relevance_scores(df, weights)
        total = weights.distance + weights.rating + weights.reviews + weights.boost
        assert scores.iloc[0] <= total + 1e-9
        assert scores.iloc[1] == pytest.approx(0.0)

    def test_unrated_row_gets_no_rating_credit(self, make_record):
        df = _candidates(make_record, ("unrated", {}), ("rated", {"average_rating": 1.0}))
        scores = relevance_scores(df)
        assert scores.iloc[0] < scores.iloc[1]


class TestRank:
    def test_distance_ascending(self, make_record):
        df = _candidates(make_record, ("b", {}), ("a", {}), ("c", {}), distances=[4.0, 2.0, 12.0])
        assert _ids(rank(df, SortKey.distance)) == ["a", "b", "c"]

    def test_rating_descending_with_nulls_last(self, make_record):
        df = _candidates(
            make_record,
            ("none", {}),
            ("low", {"average_rating": 3.1}),
            ("high", {"average_rating": 4.9}),
        )
        assert _ids(rank(df, SortKey.rating)) == ["high", "low", "none"]

    def test_price_ascending_and_descending(self, make_record):
        df = _candidates(
            make_record,
            ("lux", {"price_tier": "$$$$"}),
            ("cheap", {"price_tier": "$"}),
            ("unknown", {"price_tier": None}),
            ("mid", {"price_tier": "$$"}),
        )
        assert _ids(rank(df, SortKey.price_asc)) == ["cheap", "mid", "lux", "unknown"]
        assert _ids(rank(df, SortKey.price_desc)) == ["lux", "mid", "cheap", "unknown"]

    def test_ties_break_on_review_count_then_id(self, make_record):
        df = _candidates(
            make_record,
            ("z", {"average_rating": 4.0, "review_count": 5}),
            ("y", {"average_rating": 4.0, "review_count": 50}),
            ("x", {"average_rating": 4.0, "review_count": 5}),
        )
        assert _ids(rank(df, SortKey.rating)) == ["y", "x", "z"]

    def test_order_is_deterministic(self, make_record):
        df = _candidates(make_record, *[(f"id{i}", {"review_count": i % 3}) for i in range(12)])
        first = _ids(rank(df, SortKey.relevance))
        shuffled = df.sample(frac=1.0, random_state=7)
        assert _ids(rank(shuffled, SortKey.relevance)) == first

    def test_relevance_orders_by_composite_score(self, make_record):
        df = _candidates(
            make_record,
            ("far_unrated", {}),
            ("near_rated", {"average_rating": 4.5, "review_count": 40}),
            distances=[9.0, 1.0],
        )
        assert _ids(rank(df)) == ["near_rated", "far_unrated"]

    def test_empty_frame(self):
        empty = pd.DataFrame(columns=["id", "distance_km"])
        assert rank(empty, SortKey.distance).empty
