from __future__ import annotations

import copy
from typing import Any

import pandas as pd

from .models import (
    EstablishmentOut,
    MapResultItem,
    MapSearchResponse,
    SearchResponse,
    SearchResultItem,
)
from .pagination import PageMeta


def _float_or_none(value: Any) -> float | None:
    if value is None or pd.isna(value):
        return None
    return float(value)


def establishment_from_row(row: pd.Series) -> EstablishmentOut:
    """Copy a catalog row into a response model; the row is left untouched."""
    working_hours = row["working_hours"]
    return EstablishmentOut(
        id=str(row["id"]),
        name=row["name"],
        description=row["description"],
        city=row["city"],
        latitude=_float_or_none(row["latitude"]),
        longitude=_float_or_none(row["longitude"]),
        categories=list(row["categories"]),
        cuisines=list(row["cuisines"]),
        features=list(row["features"]),
        price_tier=row["price_tier"],
        average_rating=_float_or_none(row["average_rating"]),
        review_count=int(row["review_count"]),
        boost_score=float(row["boost_score"]),
        is_24_hours=bool(row["is_24_hours"]),
        working_hours=copy.deepcopy(working_hours) if isinstance(working_hours, dict) else None,
    )


def assemble(window: pd.DataFrame, meta: PageMeta) -> SearchResponse:
    items = [
        SearchResultItem(
            establishment=establishment_from_row(row),
            distance_km=_float_or_none(row["distance_km"]),
        )
        for _, row in window.iterrows()
    ]
    return SearchResponse(
        results=items,
        total=meta.total,
        page=meta.page,
        page_size=meta.page_size,
        total_pages=meta.total_pages,
        has_next=meta.has_next,
        has_previous=meta.has_previous,
    )


def assemble_map(df: pd.DataFrame) -> MapSearchResponse:
    items = [MapResultItem(establishment=establishment_from_row(row)) for _, row in df.iterrows()]
    return MapSearchResponse(results=items, count=len(items))
