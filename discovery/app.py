from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .catalog.data_store import get_catalog
from .config import CITIES, DEFAULT_SEARCH_CONFIG
from .search.errors import DataSourceUnavailableError, ErrorCode, SearchError
from .search.models import (
    EstablishmentOut,
    ErrorResponse,
    HoursFilter,
    MapSearchRequest,
    MapSearchResponse,
    PriceTier,
    SearchRequest,
    SearchResponse,
    SortKey,
)
from .search.normalizer import normalize_map_params, normalize_search_params
from .search.service import check_health, get_establishment, search_establishments, search_map
from .search.synonyms import DEFAULT_SYNONYMS, load_synonyms

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

logging.basicConfig(level=DEFAULT_SEARCH_CONFIG.log_level.upper(), format=LOG_FORMAT)
logger = logging.getLogger(__name__)

_SYNONYMS = (
    load_synonyms(DEFAULT_SEARCH_CONFIG.synonyms_path)
    if DEFAULT_SEARCH_CONFIG.synonyms_path
    else DEFAULT_SYNONYMS
)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    422: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}

app = FastAPI(title="Establishment Search API", version="1.0.0")


# ── Error handling ───────────────────────────────────────────────────────


@app.exception_handler(SearchError)
def handle_search_error(request: Request, exc: SearchError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(
            "%s on %s %s", exc.code.value, request.method, request.url.path, exc_info=exc
        )
    else:
        logger.warning(
            "%s on %s %s: %s", exc.code.value, request.method, request.url.path, exc.message
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(Exception)
def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": {
                "code": ErrorCode.INTERNAL_ERROR.value,
                "message": "An unexpected error occurred",
            }
        },
    )


def _filter_fields(request: SearchRequest | MapSearchRequest) -> dict[str, Any]:
    filters = request.filters
    return {
        "city": filters.city,
        "categories": list(filters.categories),
        "cuisines": list(filters.cuisines),
        "price_tiers": [tier.value for tier in filters.price_tiers],
        "min_rating": filters.min_rating,
        "hours_filter": filters.hours_filter.value if filters.hours_filter else None,
        "features": list(filters.features),
        "text": request.text,
        "sort": request.sort.value,
    }


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    df = get_catalog().active_frame()
    categories: set[str] = set()
    cuisines: set[str] = set()
    for tags in df["categories"]:
        categories.update(tags)
    for tags in df["cuisines"]:
        cuisines.update(tags)
    features: set[str] = set()
    for flags in df["features"]:
        features.update(flags)
    return {
        "cities": list(CITIES),
        "categories": sorted(categories),
        "cuisines": sorted(cuisines),
        "features": sorted(features),
        "price_tiers": [tier.value for tier in PriceTier],
        "hours_filters": [h.value for h in HoursFilter],
        "sort_keys": [key.value for key in SortKey],
    }


# ── Search endpoints ─────────────────────────────────────────────────────


@app.get("/search/establishments", response_model=SearchResponse, responses=_ERROR_RESPONSES)
def search(request: Request) -> SearchResponse:
    start_time = time.time()
    # Validation runs before the catalog is touched
    search_request = normalize_search_params(request.query_params)
    response = search_establishments(search_request, get_catalog(), synonyms=_SYNONYMS)

    record_event("search", {
        "mode": search_request.mode.kind,
        **_filter_fields(search_request),
        "total": response.total,
        "results_returned": len(response.results),
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })
    return response


@app.get("/search/map", response_model=MapSearchResponse, responses=_ERROR_RESPONSES)
def map_search(request: Request) -> MapSearchResponse:
    start_time = time.time()
    map_request = normalize_map_params(request.query_params)
    response = search_map(map_request, get_catalog(), synonyms=_SYNONYMS)

    record_event("map_search", {
        "mode": map_request.mode.kind,
        **_filter_fields(map_request),
        "total": response.count,
        "results_returned": response.count,
        "response_time_ms": round((time.time() - start_time) * 1000, 1),
    })
    return response


@app.get(
    "/search/establishments/{establishment_id}",
    response_model=EstablishmentOut,
    responses={404: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def establishment_detail(establishment_id: str) -> EstablishmentOut:
    return get_establishment(get_catalog(), establishment_id)


@app.get("/search/health")
def search_health() -> JSONResponse:
    try:
        catalog = get_catalog()
    except DataSourceUnavailableError:
        logger.error("Search health check failed: catalog unavailable", exc_info=True)
        return JSONResponse(status_code=503, content={"healthy": False})
    return JSONResponse(status_code=200, content=check_health(catalog))


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())
