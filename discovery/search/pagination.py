from __future__ import annotations

import math
from dataclasses import dataclass

import pandas as pd

from .models import Pagination


@dataclass(frozen=True)
class PageMeta:
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


def paginate(df: pd.DataFrame, pagination: Pagination) -> tuple[pd.DataFrame, PageMeta]:
    """Slice ``[offset, offset + page_size)``; out-of-range pages come back empty."""
    total = len(df)
    size = pagination.page_size
    start = pagination.offset
    window = df.iloc[start : start + size]

    meta = PageMeta(
        total=total,
        page=pagination.page,
        page_size=size,
        total_pages=math.ceil(total / size),
        has_next=start + size < total,
        has_previous=start > 0,
    )
    return window, meta
