from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ErrorCode


class PriceTier(str, Enum):
    budget = "$"
    moderate = "$$"
    expensive = "$$$"
    luxury = "$$$$"


PRICE_ORDER: list[str] = [tier.value for tier in PriceTier]


class SortKey(str, Enum):
    relevance = "relevance"
    distance = "distance"
    rating = "rating"
    price_asc = "priceAsc"
    price_desc = "priceDesc"


class HoursFilter(str, Enum):
    until_22 = "until_22"
    until_morning = "until_morning"
    hours_24 = "24_hours"


# ── Search modes ─────────────────────────────────────────────────────────


class GeoPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class RadiusMode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["radius"] = "radius"
    center: GeoPoint
    radius_km: float = Field(..., gt=0)
    max_distance_km: float | None = Field(default=None, gt=0)


class BoundsMode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["bounds"] = "bounds"
    min_lat: float = Field(..., ge=-90.0, le=90.0)
    min_lon: float = Field(..., ge=-180.0, le=180.0)
    max_lat: float = Field(..., ge=-90.0, le=90.0)
    max_lon: float = Field(..., ge=-180.0, le=180.0)


class NoLocationMode(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["none"] = "none"


SearchMode = Annotated[
    Union[RadiusMode, BoundsMode, NoLocationMode],
    Field(discriminator="kind"),
]


# ── Requests ─────────────────────────────────────────────────────────────


class SearchFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    city: str | None = None
    categories: tuple[str, ...] = ()
    cuisines: tuple[str, ...] = ()
    price_tiers: tuple[PriceTier, ...] = ()
    min_rating: float | None = Field(default=None, ge=1.0, le=5.0)
    hours_filter: HoursFilter | None = None
    features: tuple[str, ...] = ()


class Pagination(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class SearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: SearchMode = Field(default_factory=NoLocationMode)
    filters: SearchFilters = Field(default_factory=SearchFilters)
    text: str | None = None
    sort: SortKey = SortKey.relevance
    pagination: Pagination = Field(default_factory=Pagination)
    notices: tuple[ErrorCode, ...] = ()


class MapSearchRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: BoundsMode
    filters: SearchFilters = Field(default_factory=SearchFilters)
    text: str | None = None
    sort: SortKey = SortKey.relevance
    limit: int = Field(default=100, ge=1, le=500)


# ── Responses ────────────────────────────────────────────────────────────


class EstablishmentOut(BaseModel):
    id: str
    name: str
    description: str | None = None
    city: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    categories: list[str] = Field(default_factory=list)
    cuisines: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    price_tier: str | None = None
    average_rating: float | None = None
    review_count: int = 0
    boost_score: float = 0.0
    is_24_hours: bool = False
    working_hours: dict[str, Any] | None = None


class SearchResultItem(BaseModel):
    establishment: EstablishmentOut
    distance_km: float | None = None


class SearchResponse(BaseModel):
    results: list[SearchResultItem]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


class MapResultItem(BaseModel):
    establishment: EstablishmentOut


class MapSearchResponse(BaseModel):
    results: list[MapResultItem]
    count: int


class ErrorBody(BaseModel):
    code: str
    message: str


class ErrorResponse(BaseModel):
    error: ErrorBody
