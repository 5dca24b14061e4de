from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd
from sklearn.neighbors import BallTree

from ..config import DEFAULT_SEARCH_CONFIG
from ..search.errors import DataSourceUnavailableError
from .hours import derive_hours_tags

logger = logging.getLogger(__name__)

CATALOG_COLUMNS: list[str] = [
    "id",
    "name",
    "description",
    "city",
    "latitude",
    "longitude",
    "categories",
    "cuisines",
    "features",
    "price_tier",
    "average_rating",
    "review_count",
    "boost_score",
    "is_24_hours",
    "working_hours",
    "hours_tags",
    "status",
]

_LIST_COLUMNS = ("categories", "cuisines", "features")
_TEXT_SEPARATOR = "\x1f"


def _as_list(value: Any) -> list[str]:
    """Accept a list, a comma-separated string or a missing value."""
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple, set)):
        return []
    return [str(v).strip() for v in value if v is not None and str(v).strip()]


def _haystack(row: pd.Series) -> str:
    parts = [v for v in (row["name"], row["description"]) if isinstance(v, str)]
    parts.extend(row["categories"])
    parts.extend(row["cuisines"])
    return _TEXT_SEPARATOR.join(parts).casefold()


def _prepare(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    for column in CATALOG_COLUMNS:
        if column not in df.columns:
            df[column] = None

    df["id"] = df["id"].astype(str)
    df["name"] = df["name"].fillna("").astype(str)
    df["description"] = df["description"].apply(lambda v: v if isinstance(v, str) else None)
    df["city"] = df["city"].apply(lambda v: v.strip() if isinstance(v, str) else None)
    df["price_tier"] = df["price_tier"].apply(lambda v: v.strip() if isinstance(v, str) else None)
    df["status"] = df["status"].fillna("active").astype(str).str.lower()

    for column in _LIST_COLUMNS:
        df[column] = df[column].apply(_as_list)

    df["latitude"] = pd.to_numeric(df["latitude"], errors="coerce")
    df["longitude"] = pd.to_numeric(df["longitude"], errors="coerce")
    df["average_rating"] = pd.to_numeric(df["average_rating"], errors="coerce")
    df["review_count"] = (
        pd.to_numeric(df["review_count"], errors="coerce").fillna(0).clip(lower=0).astype(int)
    )
    df["boost_score"] = (
        pd.to_numeric(df["boost_score"], errors="coerce").fillna(0.0).clip(lower=0.0)
    )
    df["is_24_hours"] = df["is_24_hours"].fillna(False).astype(bool)
    df["working_hours"] = df["working_hours"].apply(lambda v: v if isinstance(v, dict) else None)

    # Explicit tags on a record win over tags derived from its schedule
    df["hours_tags"] = pd.Series(
        [
            _as_list(tags) if isinstance(tags, (list, tuple)) else derive_hours_tags(hours, is_24)
            for tags, hours, is_24 in zip(df["hours_tags"], df["working_hours"], df["is_24_hours"])
        ],
        index=df.index,
        dtype=object,
    )

    # Pre-lowercased helpers for case-insensitive matching
    df["_categories_key"] = df["categories"].apply(lambda items: [c.casefold() for c in items])
    df["_cuisines_key"] = df["cuisines"].apply(lambda items: [c.casefold() for c in items])
    df["_features_key"] = df["features"].apply(lambda items: [f.casefold() for f in items])
    df["_haystack"] = df.apply(_haystack, axis=1) if not df.empty else pd.Series(dtype=str)

    return df.reset_index(drop=True)


class Catalog:
    """
    Read-only snapshot of the establishment catalog.

    Holds the prepared DataFrame, the ``active`` subset that every search
    runs over, and a haversine ``BallTree`` over the active rows that have
    coordinates. Nothing here changes after construction.
    """

    def __init__(self, frame: pd.DataFrame) -> None:
        self._frame = _prepare(frame)
        self._active = self._frame.loc[self._frame["status"] == "active"]
        located = self._active["latitude"].notna() & self._active["longitude"].notna()
        self._located = self._active.loc[located]
        self._tree: BallTree | None = None
        if not self._located.empty:
            coords = np.radians(self._located[["latitude", "longitude"]].to_numpy(dtype=float))
            self._tree = BallTree(coords, metric="haversine")

    @classmethod
    def from_records(cls, records: Iterable[dict[str, Any]]) -> "Catalog":
        return cls(pd.DataFrame.from_records(list(records)))

    def __len__(self) -> int:
        return len(self._frame)

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame

    def active_frame(self) -> pd.DataFrame:
        return self._active

    def located_frame(self) -> pd.DataFrame:
        """Active rows with coordinates, in the order the ball tree indexes them."""
        return self._located

    @property
    def ball_tree(self) -> BallTree | None:
        return self._tree

    def get(self, establishment_id: str) -> pd.Series | None:
        """Return the active row with this id, or ``None``."""
        matches = self._active.loc[self._active["id"] == str(establishment_id)]
        if matches.empty:
            return None
        return matches.iloc[0]


def load_catalog(path: Path | str) -> Catalog:
    """Read a processed JSON snapshot (a list of establishment records)."""
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            payload = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise DataSourceUnavailableError() from exc

    if isinstance(payload, dict):
        payload = payload.get("establishments")
    if not isinstance(payload, list):
        raise DataSourceUnavailableError()

    catalog = Catalog.from_records(payload)
    logger.info(
        "Loaded %d establishments (%d active, %d located) from %s",
        len(catalog),
        len(catalog.active_frame()),
        len(catalog.located_frame()),
        path,
    )
    return catalog


_catalog: Catalog | None = None
_lock = threading.Lock()


def get_catalog() -> Catalog:
    """Return the in-memory catalog, loading it on first call."""
    global _catalog
    if _catalog is None:
        with _lock:
            if _catalog is None:
                _catalog = load_catalog(DEFAULT_SEARCH_CONFIG.catalog_path)
    return _catalog


def set_catalog(catalog: Catalog | None) -> None:
    """Swap the snapshot wholesale; ``None`` forces a reload on next access."""
    global _catalog
    with _lock:
        _catalog = catalog
