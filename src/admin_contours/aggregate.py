from __future__ import annotations

from typing import Iterable

import geopandas as gpd
from shapely.geometry.base import BaseGeometry

from .models import Feature


def dissolve_features(features: Iterable[Feature], by: str) -> list[tuple[str, BaseGeometry]]:
    """
    Group features on the `by` attribute and union each group's geometries.

    Features without a value for `by` are left out of every group. Members
    are ordered by (key, code) before the union so the result does not depend
    on input order. Returns (key, geometry) pairs sorted by key.
    """
    members = sorted(
        (f for f in features if f.properties.get(by) is not None),
        key=lambda f: (f.properties[by], f.properties.get("code") or ""),
    )
    if not members:
        return []

    gdf = gpd.GeoDataFrame(
        {by: [f.properties[by] for f in members]},
        geometry=[f.geometry for f in members],
    )
    dissolved = gdf.dissolve(by=by, as_index=False, sort=True)

    return list(zip(dissolved[by], dissolved.geometry))
