from __future__ import annotations

import json
from pathlib import Path
from typing import Any, List

import pandas as pd

from ..config import DEFAULT_INGESTION_CONFIG, IngestionConfig
from ..search.models import PRICE_ORDER
from .data_store import CATALOG_COLUMNS

# hours_tags are derived from the schedule when the snapshot is loaded
CANONICAL_COLUMNS: List[str] = [c for c in CATALOG_COLUMNS if c != "hours_tags"]


def _normalize_rating(rating: Any, review_count: Any) -> float | None:
    if rating is None:
        return None
    try:
        value = float(str(rating).strip())
        reviews = int(float(review_count)) if review_count is not None else 0
    except (TypeError, ValueError):
        return None
    if pd.isna(value) or value <= 0 or reviews <= 0:
        # The backend stores 0.0 until the first review arrives
        return None
    # Clamp to [1, 5]
    return max(1.0, min(5.0, value))


def _normalize_tier(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if value in PRICE_ORDER else None


def _features_from_attributes(attributes: Any) -> list[str]:
    """Truthy keys of the ``attributes`` JSON object become feature flags."""
    if isinstance(attributes, str):
        try:
            attributes = json.loads(attributes)
        except json.JSONDecodeError:
            return []
    if isinstance(attributes, dict):
        return sorted(str(k) for k, v in attributes.items() if v is True or v == "true")
    if isinstance(attributes, list):
        return [str(a).strip() for a in attributes if str(a).strip()]
    return []


def _clean_tags(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.strip("{}").split(",")
    if not isinstance(value, (list, tuple)):
        return []
    return [str(v).strip().strip('"') for v in value if str(v).strip().strip('"')]


def _coordinate(series: pd.Series, limit: float) -> pd.Series:
    values = pd.to_numeric(series, errors="coerce")
    return values.where(values.between(-limit, limit))


def normalize_export(df: pd.DataFrame) -> pd.DataFrame:
    """Map raw backend rows onto the canonical catalog columns."""

    def _first_present(columns: List[str]) -> str | None:
        for col in columns:
            if col in df.columns:
                return col
        return None

    def _column(candidates: List[str], default: Any = None) -> pd.Series:
        col = _first_present(candidates)
        if col is None:
            return pd.Series([default] * len(df), index=df.index, dtype=object)
        return df[col]

    canonical = pd.DataFrame(index=df.index)
    canonical["id"] = _column(["id", "establishment_id"]).astype(str)
    canonical["name"] = _column(["name"], "").fillna("").astype(str).str.strip()
    canonical["description"] = _column(["description"])
    canonical["city"] = _column(["city"])

    canonical["latitude"] = _coordinate(_column(["latitude", "lat"]), 90.0)
    canonical["longitude"] = _coordinate(_column(["longitude", "lon", "lng"]), 180.0)

    canonical["categories"] = _column(["categories", "category"]).apply(_clean_tags)
    canonical["cuisines"] = _column(["cuisines", "cuisine"]).apply(_clean_tags)
    canonical["features"] = _column(["features", "attributes"]).apply(_features_from_attributes)
    canonical["price_tier"] = _column(["price_tier", "price_range"]).apply(_normalize_tier)

    review_count = pd.to_numeric(_column(["review_count"], 0), errors="coerce").fillna(0)
    canonical["review_count"] = review_count.clip(lower=0).astype(int)
    canonical["average_rating"] = [
        _normalize_rating(r, c)
        for r, c in zip(_column(["average_rating", "rating"]), canonical["review_count"])
    ]
    canonical["boost_score"] = (
        pd.to_numeric(_column(["boost_score"], 0), errors="coerce").fillna(0.0).clip(lower=0.0)
    )
    canonical["is_24_hours"] = _column(["is_24_hours"], False).fillna(False).astype(bool)
    canonical["working_hours"] = _column(["working_hours"]).apply(
        lambda v: json.loads(v) if isinstance(v, str) and v.strip().startswith("{") else v
    )
    canonical["status"] = _column(["status"], "active").fillna("active").astype(str).str.lower()

    # Ensure all expected columns exist and order them
    return canonical[CANONICAL_COLUMNS]


def run_ingestion(config: IngestionConfig = DEFAULT_INGESTION_CONFIG) -> Path:
    """
    Convert a raw establishment export into the processed catalog snapshot.

    Steps:
    - Read the raw JSON export (a list of backend rows).
    - Map raw fields into the canonical catalog columns.
    - Persist the snapshot as JSON for the search service.
    """
    config.processed_data_dir.mkdir(parents=True, exist_ok=True)

    with Path(config.raw_path).open(encoding="utf-8") as fh:
        raw = json.load(fh)
    if isinstance(raw, dict):
        raw = raw.get("establishments", [])

    canonical = normalize_export(pd.DataFrame.from_records(raw))
    records = canonical.astype(object).where(canonical.notna(), None).to_dict(orient="records")

    output_path = config.processed_path
    with output_path.open("w", encoding="utf-8") as fh:
        json.dump(records, fh, ensure_ascii=False, indent=2)
    return output_path


if __name__ == "__main__":
    path = run_ingestion()
    print(f"Ingestion complete. Catalog snapshot saved to: {path}")
