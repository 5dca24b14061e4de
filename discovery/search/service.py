"""
Search pipeline orchestration.

Wires the pure stages together:

    spatial resolve -> attribute filter -> text/synonym match -> rank
    -> paginate (or cap) -> assemble

The stages never log; this layer takes an optional logger and reports a
one-line summary per request plus any soft-fallback notices.
"""
from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any

from ..catalog.data_store import Catalog
from ..config import DEFAULT_RANKING_WEIGHTS, RankingWeights
from .assembler import assemble, assemble_map, establishment_from_row
from .errors import ErrorCode, EstablishmentNotFoundError
from .filters import apply_filters
from .models import (
    EstablishmentOut,
    MapSearchRequest,
    MapSearchResponse,
    SearchRequest,
    SearchResponse,
)
from .pagination import paginate
from .ranking import rank
from .spatial import resolve_bounds, resolve_candidates
from .synonyms import DEFAULT_SYNONYMS, SynonymExpansion, match_text

logger = logging.getLogger(__name__)


def search_establishments(
    request: SearchRequest,
    catalog: Catalog,
    *,
    synonyms: Mapping[str, SynonymExpansion] = DEFAULT_SYNONYMS,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
    log: logging.Logger = logger,
) -> SearchResponse:
    start_time = time.perf_counter()

    for notice in request.notices:
        if notice is ErrorCode.MAX_DISTANCE_IGNORED:
            log.warning("%s: unusable max distance, searching without the cutoff", notice.value)

    candidates = resolve_candidates(catalog, request.mode)
    filtered = apply_filters(candidates, request.filters)
    matched = match_text(filtered, request.text, synonyms)
    ranked = rank(matched, request.sort, weights)
    window, meta = paginate(ranked, request.pagination)
    response = assemble(window, meta)

    log.info(
        "search mode=%s sort=%s candidates=%d matched=%d page=%d/%d returned=%d took=%.1fms",
        request.mode.kind,
        request.sort.value,
        len(candidates),
        meta.total,
        meta.page,
        meta.total_pages,
        len(response.results),
        (time.perf_counter() - start_time) * 1000,
    )
    return response


def search_map(
    request: MapSearchRequest,
    catalog: Catalog,
    *,
    synonyms: Mapping[str, SynonymExpansion] = DEFAULT_SYNONYMS,
    weights: RankingWeights = DEFAULT_RANKING_WEIGHTS,
    log: logging.Logger = logger,
) -> MapSearchResponse:
    start_time = time.perf_counter()

    candidates = resolve_bounds(catalog, request.mode)
    filtered = apply_filters(candidates, request.filters)
    matched = match_text(filtered, request.text, synonyms)
    ranked = rank(matched, request.sort, weights)
    response = assemble_map(ranked.head(request.limit))

    log.info(
        "map search candidates=%d matched=%d returned=%d limit=%d took=%.1fms",
        len(candidates),
        len(ranked),
        response.count,
        request.limit,
        (time.perf_counter() - start_time) * 1000,
    )
    return response


def get_establishment(catalog: Catalog, establishment_id: str) -> EstablishmentOut:
    row = catalog.get(establishment_id)
    if row is None:
        raise EstablishmentNotFoundError(establishment_id)
    return establishment_from_row(row)


def check_health(catalog: Catalog) -> dict[str, Any]:
    return {
        "healthy": True,
        "establishments": len(catalog),
        "active": len(catalog.active_frame()),
        "located": len(catalog.located_frame()),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
