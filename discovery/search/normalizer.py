"""
Query normalisation.

Turns loosely typed request parameters (a Starlette ``QueryParams`` multi-dict
or any plain mapping) into immutable ``SearchRequest`` / ``MapSearchRequest``
models. Every validation failure raises ``SearchValidationError`` with a
machine-readable code before any catalog access happens.
"""
from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from ..config import DEFAULT_SEARCH_CONFIG, SearchConfig
from .errors import ErrorCode, SearchValidationError
from .models import (
    BoundsMode,
    GeoPoint,
    HoursFilter,
    MapSearchRequest,
    NoLocationMode,
    Pagination,
    PriceTier,
    RadiusMode,
    SearchFilters,
    SearchRequest,
    SortKey,
)

_SORT_ALIASES: dict[str, SortKey] = {
    "relevance": SortKey.relevance,
    "distance": SortKey.distance,
    "rating": SortKey.rating,
    "priceasc": SortKey.price_asc,
    "price_asc": SortKey.price_asc,
    "pricedesc": SortKey.price_desc,
    "price_desc": SortKey.price_desc,
}


# ---------------------------------------------------------------------------
# Raw parameter access
# ---------------------------------------------------------------------------


def _raw_values(params: Mapping[str, Any], name: str) -> list[Any]:
    if hasattr(params, "getlist"):
        return list(params.getlist(name))
    value = params.get(name)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _first(params: Mapping[str, Any], *names: str) -> str | None:
    """Return the first non-blank value among ``names``, stripped."""
    for name in names:
        for value in _raw_values(params, name):
            if value is None:
                continue
            text = str(value).strip()
            if text:
                return text
    return None


def _get_list(params: Mapping[str, Any], *names: str) -> list[str]:
    """Collect repeated and comma-delimited values, trimmed, empties dropped."""
    items: list[str] = []
    for name in names:
        for value in _raw_values(params, name):
            if value is None:
                continue
            items.extend(part.strip() for part in str(value).split(","))
    return list(dict.fromkeys(item for item in items if item))


def _parse_float(raw: str, code: ErrorCode, message: str) -> float:
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise SearchValidationError(code, message) from None
    if not math.isfinite(value):
        raise SearchValidationError(code, message)
    return value


def _parse_int(raw: str, code: ErrorCode, message: str) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise SearchValidationError(code, message) from None


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


def _parse_max_distance(
    params: Mapping[str, Any],
) -> tuple[float | None, tuple[ErrorCode, ...]]:
    """Optional tighter cutoff; bad values are dropped with a notice."""
    raw_km = _first(params, "maxDistanceKm", "max_distance_km")
    raw_meters = _first(params, "max_distance")
    if raw_km is None and raw_meters is None:
        return None, ()

    try:
        if raw_km is not None:
            value = float(raw_km)
        else:
            value = float(raw_meters) / 1000.0
    except (TypeError, ValueError):
        return None, (ErrorCode.MAX_DISTANCE_IGNORED,)

    if not math.isfinite(value) or value <= 0:
        return None, (ErrorCode.MAX_DISTANCE_IGNORED,)
    return value, ()


def _parse_location(
    params: Mapping[str, Any],
    config: SearchConfig,
) -> tuple[RadiusMode | NoLocationMode, tuple[ErrorCode, ...]]:
    raw_lat = _first(params, "latitude", "lat")
    raw_lon = _first(params, "longitude", "lon")

    if (raw_lat is None) != (raw_lon is None):
        raise SearchValidationError(
            ErrorCode.COORDINATES_INCOMPLETE,
            "Both latitude and longitude must be provided together",
        )
    if raw_lat is None:
        return NoLocationMode(), ()

    latitude = _parse_float(raw_lat, ErrorCode.INVALID_COORDINATES, "Invalid latitude")
    longitude = _parse_float(raw_lon, ErrorCode.INVALID_COORDINATES, "Invalid longitude")
    if not -90.0 <= latitude <= 90.0:
        raise SearchValidationError(
            ErrorCode.INVALID_COORDINATES, "Latitude must be between -90 and 90"
        )
    if not -180.0 <= longitude <= 180.0:
        raise SearchValidationError(
            ErrorCode.INVALID_COORDINATES, "Longitude must be between -180 and 180"
        )

    raw_radius = _first(params, "radiusKm", "radius_km", "radius")
    if raw_radius is None:
        radius_km = config.default_radius_km
    else:
        radius_km = _parse_float(raw_radius, ErrorCode.INVALID_RADIUS, "Invalid radius")
    if radius_km <= 0 or radius_km > config.max_radius_km:
        raise SearchValidationError(
            ErrorCode.INVALID_RADIUS,
            f"Radius must be greater than 0 and at most {config.max_radius_km:g} km",
        )

    max_distance_km, notices = _parse_max_distance(params)
    mode = RadiusMode(
        center=GeoPoint(latitude=latitude, longitude=longitude),
        radius_km=radius_km,
        max_distance_km=max_distance_km,
    )
    return mode, notices


def _parse_bounds(params: Mapping[str, Any]) -> BoundsMode:
    raw = {
        "min_lat": _first(params, "swLat", "minLat"),
        "min_lon": _first(params, "swLon", "minLon"),
        "max_lat": _first(params, "neLat", "maxLat"),
        "max_lon": _first(params, "neLon", "maxLon"),
    }
    if any(value is None for value in raw.values()):
        raise SearchValidationError(
            ErrorCode.INVALID_BOUNDS,
            "All bounds parameters are required (swLat, swLon, neLat, neLon)",
        )

    values = {
        key: _parse_float(value, ErrorCode.INVALID_BOUNDS, "Invalid bounds coordinates")
        for key, value in raw.items()
    }
    for key in ("min_lat", "max_lat"):
        if not -90.0 <= values[key] <= 90.0:
            raise SearchValidationError(
                ErrorCode.INVALID_BOUNDS, "Bounds latitude must be between -90 and 90"
            )
    for key in ("min_lon", "max_lon"):
        if not -180.0 <= values[key] <= 180.0:
            raise SearchValidationError(
                ErrorCode.INVALID_BOUNDS, "Bounds longitude must be between -180 and 180"
            )
    if values["min_lat"] >= values["max_lat"]:
        raise SearchValidationError(
            ErrorCode.INVALID_BOUNDS, "South-west latitude must be less than north-east latitude"
        )
    if values["min_lon"] >= values["max_lon"]:
        raise SearchValidationError(
            ErrorCode.INVALID_BOUNDS, "South-west longitude must be less than north-east longitude"
        )
    return BoundsMode(**values)


# ---------------------------------------------------------------------------
# Filters, text, sort, pagination
# ---------------------------------------------------------------------------


def _parse_filters(params: Mapping[str, Any]) -> SearchFilters:
    price_tiers: list[PriceTier] = []
    for raw in _get_list(params, "priceTiers", "price_tiers", "priceRange", "price_range"):
        try:
            price_tiers.append(PriceTier(raw))
        except ValueError:
            valid = ", ".join(tier.value for tier in PriceTier)
            raise SearchValidationError(
                ErrorCode.INVALID_PRICE_TIER,
                f"Invalid price tier {raw!r}. Must be one of: {valid}",
            ) from None

    min_rating = None
    raw_rating = _first(params, "minRating", "min_rating")
    if raw_rating is not None:
        min_rating = _parse_float(
            raw_rating, ErrorCode.INVALID_RATING, "minRating must be between 1 and 5"
        )
        if not 1.0 <= min_rating <= 5.0:
            raise SearchValidationError(
                ErrorCode.INVALID_RATING, "minRating must be between 1 and 5"
            )

    hours_filter = None
    raw_hours = _first(params, "hoursFilter", "hours_filter")
    if raw_hours is not None:
        try:
            hours_filter = HoursFilter(raw_hours)
        except ValueError:
            valid = ", ".join(h.value for h in HoursFilter)
            raise SearchValidationError(
                ErrorCode.INVALID_HOURS_FILTER,
                f"Invalid hours filter. Must be one of: {valid}",
            ) from None

    return SearchFilters(
        city=_first(params, "city"),
        categories=tuple(_get_list(params, "categories", "category")),
        cuisines=tuple(_get_list(params, "cuisines", "cuisine")),
        price_tiers=tuple(dict.fromkeys(price_tiers)),
        min_rating=min_rating,
        hours_filter=hours_filter,
        features=tuple(_get_list(params, "features")),
    )


def _parse_sort(params: Mapping[str, Any], *, has_distance: bool) -> SortKey:
    raw = _first(params, "sort", "sort_by", "sortBy")
    if raw is None:
        return SortKey.relevance
    sort = _SORT_ALIASES.get(raw.lower())
    if sort is None:
        valid = ", ".join(key.value for key in SortKey)
        raise SearchValidationError(
            ErrorCode.INVALID_SORT, f"Invalid sort. Must be one of: {valid}"
        )
    # Without a centre point there is nothing to measure distance from.
    if sort is SortKey.distance and not has_distance:
        return SortKey.relevance
    return sort


def _parse_pagination(params: Mapping[str, Any], config: SearchConfig) -> Pagination:
    """
    ``page`` wins over ``offset``. A bare ``offset`` is honoured exactly and
    need not sit on a page boundary; the reported ``page`` is then the page
    that contains the first returned row (``offset // page_size + 1``).
    """
    raw_size = _first(params, "pageSize", "page_size", "limit")
    if raw_size is None:
        page_size = config.default_page_size
    else:
        page_size = _parse_int(
            raw_size, ErrorCode.INVALID_PAGE_SIZE, "Page size must be an integer"
        )
        page_size = max(1, min(page_size, config.max_page_size))

    raw_page = _first(params, "page")
    raw_offset = _first(params, "offset")
    if raw_page is not None:
        page = _parse_int(raw_page, ErrorCode.INVALID_PAGE, "Page must be a positive integer")
        if page < 1:
            raise SearchValidationError(ErrorCode.INVALID_PAGE, "Page must be a positive integer")
        offset = (page - 1) * page_size
    elif raw_offset is not None:
        offset = _parse_int(raw_offset, ErrorCode.INVALID_PAGE, "Offset must be non-negative")
        if offset < 0:
            raise SearchValidationError(ErrorCode.INVALID_PAGE, "Offset must be non-negative")
        page = offset // page_size + 1
    else:
        page, offset = 1, 0

    return Pagination(page=page, page_size=page_size, offset=offset)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def normalize_search_params(
    params: Mapping[str, Any],
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> SearchRequest:
    """Build a radius or no-location ``SearchRequest`` from raw parameters."""
    mode, notices = _parse_location(params, config)
    return SearchRequest(
        mode=mode,
        filters=_parse_filters(params),
        text=_first(params, "search", "q"),
        sort=_parse_sort(params, has_distance=isinstance(mode, RadiusMode)),
        pagination=_parse_pagination(params, config),
        notices=notices,
    )


def normalize_map_params(
    params: Mapping[str, Any],
    config: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> MapSearchRequest:
    """Build a viewport ``MapSearchRequest``; results are capped, not paged."""
    bounds = _parse_bounds(params)

    raw_limit = _first(params, "limit")
    if raw_limit is None:
        limit = config.map_default_limit
    else:
        limit = _parse_int(raw_limit, ErrorCode.INVALID_PAGE_SIZE, "Limit must be an integer")
        limit = max(1, min(limit, config.map_max_limit))

    return MapSearchRequest(
        mode=bounds,
        filters=_parse_filters(params),
        text=_first(params, "search", "q"),
        sort=_parse_sort(params, has_distance=False),
        limit=limit,
    )
