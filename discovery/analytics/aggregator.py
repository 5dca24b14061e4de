from __future__ import annotations

from collections import Counter
from typing import Any

_SEARCH_EVENTS = {"search", "map_search"}
_FILTER_FIELDS = ("categories", "cuisines", "price_tiers", "min_rating", "hours_filter", "features")


def _top(counter: Counter[str], n: int = 10) -> list[dict[str, Any]]:
    return [{"name": name, "count": count} for name, count in counter.most_common(n)]


def compute_analytics(events: list[dict[str, Any]]) -> dict[str, Any]:
    searches = [e for e in events if e["type"] in _SEARCH_EVENTS]
    total = len(searches)

    # Average response time
    times = [s["response_time_ms"] for s in searches if "response_time_ms" in s]
    avg_time = round(sum(times) / len(times), 1) if times else 0.0

    zero_results = sum(1 for s in searches if s.get("total", 0) == 0)

    # Mode usage: radius / bounds / none
    mode_usage = dict(Counter(s.get("mode", "unknown") for s in searches))

    city_counter: Counter[str] = Counter()
    query_counter: Counter[str] = Counter()
    sort_counter: Counter[str] = Counter()
    for s in searches:
        if s.get("city"):
            city_counter[s["city"]] += 1
        if s.get("text"):
            query_counter[s["text"].casefold()] += 1
        sort_counter[s.get("sort", "relevance")] += 1

    # Filter usage rates
    filter_counts = {field: 0 for field in _FILTER_FIELDS}
    for s in searches:
        for field in _FILTER_FIELDS:
            if s.get(field):
                filter_counts[field] += 1
    filter_usage = {
        k: round(v / total * 100, 1) if total else 0.0
        for k, v in filter_counts.items()
    }

    return {
        "total_searches": total,
        "avg_response_time_ms": avg_time,
        "zero_result_rate": round(zero_results / total * 100, 1) if total else 0.0,
        "mode_usage": mode_usage,
        "sort_usage": dict(sort_counter),
        "top_cities": _top(city_counter),
        "top_queries": _top(query_counter),
        "filter_usage": filter_usage,
    }
