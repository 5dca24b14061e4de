from __future__ import annotations

import math
from typing import Any, Callable

import pytest

from discovery.analytics.store import clear_events
from discovery.catalog.data_store import Catalog, set_catalog

CENTER_LAT = 53.9
CENTER_LON = 27.5


def _north(km: float) -> float:
    return CENTER_LAT + math.degrees(km / 6371.0)


def _east(km: float) -> float:
    return CENTER_LON + math.degrees(km / (6371.0 * math.cos(math.radians(CENTER_LAT))))


def _record(establishment_id: str, **overrides: Any) -> dict[str, Any]:
    record = {
        "id": establishment_id,
        "name": f"Place {establishment_id}",
        "description": "",
        "city": "Минск",
        "latitude": CENTER_LAT,
        "longitude": CENTER_LON,
        "categories": ["restaurant"],
        "cuisines": [],
        "features": [],
        "price_tier": "$$",
        "average_rating": None,
        "review_count": 0,
        "boost_score": 0.0,
        "is_24_hours": False,
        "working_hours": None,
        "status": "active",
    }
    record.update(overrides)
    return record


@pytest.fixture
def make_record() -> Callable[..., dict[str, Any]]:
    return _record


@pytest.fixture
def offsets() -> dict[str, Callable[[float], float]]:
    """Coordinates ``km`` north / east of the shared centre point."""
    return {"north": _north, "east": _east}


@pytest.fixture
def scenario_records() -> list[dict[str, Any]]:
    """
    A is 2 km north, B is 4 km east, C is 12 km north of the centre.
    B is the best rated; C sits outside a 10 km radius.
    """
    return [
        _record(
            "a",
            name="Васильки",
            description="Белорусская кухня",
            latitude=_north(2.0),
            average_rating=4.5,
            review_count=10,
            cuisines=["belarusian"],
            price_tier="$$",
        ),
        _record(
            "b",
            name="Гамбринус",
            description="Пивоварня и стейки",
            longitude=_east(4.0),
            average_rating=4.9,
            review_count=5,
            categories=["restaurant", "bar"],
            cuisines=["european"],
            price_tier="$$$",
        ),
        _record(
            "c",
            name="Дальний",
            description="Загородный ресторан",
            latitude=_north(12.0),
            average_rating=4.0,
            review_count=3,
            cuisines=["european"],
            price_tier="$",
        ),
    ]


@pytest.fixture
def scenario_catalog(scenario_records) -> Catalog:
    return Catalog.from_records(scenario_records)


@pytest.fixture
def installed_catalog(scenario_catalog):
    """Install the scenario catalog as the service-wide snapshot."""
    set_catalog(scenario_catalog)
    clear_events()
    yield scenario_catalog
    set_catalog(None)
    clear_events()
