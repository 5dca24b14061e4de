"""
Spatial candidate resolution.

Each search mode has its own path:

* ``RadiusMode``: ball-tree lookup over the haversine metric, then the
  great-circle distance per row, an exact ``distance_km <= radius_km`` check
  and the optional ``max_distance_km`` cut.
* ``BoundsMode``: rectangular containment, no distance.
* ``NoLocationMode``: every active row, no distance.

All paths return a DataFrame with a ``distance_km`` column (NaN where no
distance applies).
"""
from __future__ import annotations

import numpy as np
import pandas as pd

from ..catalog.data_store import Catalog
from .models import BoundsMode, NoLocationMode, RadiusMode

EARTH_RADIUS_KM = 6371.0

_TREE_SLACK = 1e-6


def haversine_km(lat1, lon1, lat2, lon2):
    """Great-circle distance in km; accepts scalars or numpy arrays."""
    phi1, phi2 = np.radians(lat1), np.radians(lat2)
    d_phi = phi2 - phi1
    d_lam = np.radians(lon2) - np.radians(lon1)
    a = np.sin(d_phi / 2) ** 2 + np.cos(phi1) * np.cos(phi2) * np.sin(d_lam / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))


def resolve_radius(catalog: Catalog, mode: RadiusMode) -> pd.DataFrame:
    located = catalog.located_frame()
    tree = catalog.ball_tree
    if tree is None:
        return located.assign(distance_km=pd.Series(dtype=float))

    lat, lon = mode.center.latitude, mode.center.longitude
    # Tree lookup is the coarse pass; distances are recomputed per row below.
    # The slack keeps rows exactly on the boundary in the candidate set.
    coarse_radius = mode.radius_km / EARTH_RADIUS_KM * (1 + _TREE_SLACK) + _TREE_SLACK
    indices = tree.query_radius(np.radians([[lat, lon]]), r=coarse_radius)
    candidates = located.iloc[np.sort(indices[0])]
    candidates = candidates.assign(
        distance_km=haversine_km(
            lat,
            lon,
            candidates["latitude"].to_numpy(dtype=float),
            candidates["longitude"].to_numpy(dtype=float),
        )
    )

    mask = candidates["distance_km"] <= mode.radius_km
    if mode.max_distance_km is not None:
        mask &= candidates["distance_km"] <= mode.max_distance_km
    return candidates.loc[mask]


def resolve_bounds(catalog: Catalog, mode: BoundsMode) -> pd.DataFrame:
    located = catalog.located_frame()
    mask = (
        located["latitude"].between(mode.min_lat, mode.max_lat)
        & located["longitude"].between(mode.min_lon, mode.max_lon)
    )
    return located.loc[mask].assign(distance_km=np.nan)


def resolve_all(catalog: Catalog) -> pd.DataFrame:
    return catalog.active_frame().assign(distance_km=np.nan)


def resolve_candidates(
    catalog: Catalog,
    mode: RadiusMode | BoundsMode | NoLocationMode,
) -> pd.DataFrame:
    if isinstance(mode, RadiusMode):
        return resolve_radius(catalog, mode)
    if isinstance(mode, BoundsMode):
        return resolve_bounds(catalog, mode)
    if isinstance(mode, NoLocationMode):
        return resolve_all(catalog)
    raise TypeError(f"Unsupported search mode: {type(mode).__name__}")
