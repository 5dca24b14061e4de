from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    COORDINATES_INCOMPLETE = "COORDINATES_INCOMPLETE"
    INVALID_COORDINATES = "INVALID_COORDINATES"
    INVALID_RADIUS = "INVALID_RADIUS"
    INVALID_BOUNDS = "INVALID_BOUNDS"
    INVALID_RATING = "INVALID_RATING"
    INVALID_HOURS_FILTER = "INVALID_HOURS_FILTER"
    INVALID_PAGE = "INVALID_PAGE"
    INVALID_PAGE_SIZE = "INVALID_PAGE_SIZE"
    INVALID_PRICE_TIER = "INVALID_PRICE_TIER"
    INVALID_SORT = "INVALID_SORT"
    MAX_DISTANCE_IGNORED = "MAX_DISTANCE_IGNORED"
    ESTABLISHMENT_NOT_FOUND = "ESTABLISHMENT_NOT_FOUND"
    DATA_SOURCE_UNAVAILABLE = "DATA_SOURCE_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SearchError(Exception):
    """Base error carrying a machine-readable code and an HTTP status."""

    status_code: int = 500

    def __init__(self, code: ErrorCode, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    def to_dict(self) -> dict[str, str]:
        return {"code": self.code.value, "message": self.message}


class SearchValidationError(SearchError):
    status_code = 422


class EstablishmentNotFoundError(SearchError):
    status_code = 404

    def __init__(self, establishment_id: str) -> None:
        super().__init__(ErrorCode.ESTABLISHMENT_NOT_FOUND, "Establishment not found")
        self.establishment_id = establishment_id


class DataSourceUnavailableError(SearchError):
    status_code = 503

    def __init__(self, message: str = "Search is temporarily unavailable") -> None:
        super().__init__(ErrorCode.DATA_SOURCE_UNAVAILABLE, message)
