from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

import numpy as np
import shapely

from .feature_store import set_features
from .models import Feature

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LayerOutput:
    layer: str
    interval: int
    geojson_path: Path
    db_path: Path
    feature_count: int


def get_precision(interval: int) -> int:
    """Decimal digits kept for coordinates at a given simplification interval (meters)."""
    if interval < 10:
        return 6
    if interval < 100:
        return 5
    if interval < 1000:
        return 4
    return 3


def truncate_feature(feature: Feature, precision: int) -> Feature:
    """Return a copy with 2-D coordinates rounded to `precision` decimals."""
    geometry = shapely.transform(
        feature.geometry,
        lambda coords: np.round(coords, precision),
        include_z=False,
    )
    return Feature(geometry=geometry, properties=dict(feature.properties))


def layer_filename(layer: str, interval: int, suffix: str) -> str:
    return f"{layer}-{interval}m.{suffix}"


def _write_geojson(path: Path, features: list[dict]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump({"type": "FeatureCollection", "features": features}, f, ensure_ascii=False)


def write_layer(
    features: Iterable[Feature],
    interval: int,
    layer: str,
    dist_dir: Path,
    db_dir: Path | None = None,
) -> LayerOutput:
    """
    Truncate every feature, then persist the layer to its key-value store and
    to <layer>-<interval>m.geojson. Both writes start only once truncation is done.
    """
    precision = get_precision(interval)
    truncated = [truncate_feature(f, precision).to_geojson() for f in features]

    geojson_path = Path(dist_dir) / layer_filename(layer, interval, "geojson")
    db_path = Path(db_dir or dist_dir) / layer_filename(layer, interval, "sqlite")
    # every run is a full rebuild
    db_path.unlink(missing_ok=True)

    with ThreadPoolExecutor(max_workers=2) as pool:
        store = pool.submit(set_features, db_path, truncated)
        collection = pool.submit(_write_geojson, geojson_path, truncated)
        store.result()
        collection.result()

    logger.info("Wrote %s (%d features, precision=%d)", geojson_path, len(truncated), precision)
    return LayerOutput(
        layer=layer,
        interval=interval,
        geojson_path=geojson_path,
        db_path=db_path,
        feature_count=len(truncated),
    )
