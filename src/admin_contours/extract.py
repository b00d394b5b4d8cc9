from __future__ import annotations

import logging
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Mapping, Any

import geopandas as gpd

from .models import RawFeature, Source, SourceFile

logger = logging.getLogger(__name__)

SHAPEFILE_EXTENSIONS = (".cpg", ".shp", ".dbf", ".prj", ".shx")

# Rough length of one degree at the equator, used to express a metric
# interval as a tolerance in lon/lat units.
METERS_PER_DEGREE = 111_320


def read_source_files(sources_dir: Path, basename: str) -> list[SourceFile]:
    """
    Read the five files of a shapefile set (e.g. COMMUNE.shp, COMMUNE.dbf, ...) as bytes.
    """
    files: list[SourceFile] = []
    for ext in SHAPEFILE_EXTENSIONS:
        path = Path(sources_dir) / f"{basename}{ext}"
        if not path.exists():
            raise FileNotFoundError(f"Missing source file: {path}")
        files.append(SourceFile(name=path.name, data=path.read_bytes()))
    return files


def simplify_tolerance(interval: int, crs) -> float:
    if crs is None or crs.is_geographic:
        return interval / METERS_PER_DEGREE
    return float(interval)


def read_shapefile(files: Iterable[SourceFile]) -> gpd.GeoDataFrame:
    files = list(files)
    shp = next((f for f in files if f.name.lower().endswith(".shp")), None)
    if shp is None:
        raise FileNotFoundError(
            f"No .shp file among sources: {', '.join(f.name for f in files)}"
        )

    with tempfile.TemporaryDirectory(prefix="admin-contours-") as tmp:
        for f in files:
            (Path(tmp) / f.name).write_bytes(f.data)
        # read fully before the directory goes away
        return gpd.read_file(Path(tmp) / shp.name)


def extract_features(
    files: Iterable[SourceFile],
    interval: int,
    record_from_row: Callable[[Mapping[str, Any]], Source],
) -> list[RawFeature]:
    """
    Read a shapefile set and simplify every geometry at the given interval (meters).

    record_from_row turns the attribute row into the tagged source record
    (CommuneSource.from_row, ArrondissementSource.from_row, ...).
    """
    gdf = read_shapefile(files)

    tolerance = simplify_tolerance(interval, gdf.crs)
    gdf["geometry"] = gdf.geometry.simplify(tolerance=tolerance, preserve_topology=True)

    empty = gdf.geometry.isna() | gdf.geometry.is_empty
    if empty.any():
        raise ValueError(f"{int(empty.sum())} source record(s) have no geometry after simplification")

    attributes = gdf.drop(columns=gdf.geometry.name).to_dict(orient="records")
    features = [
        RawFeature(geometry=geom, source=record_from_row(row))
        for geom, row in zip(gdf.geometry, attributes)
    ]

    logger.debug("Extracted %d features (interval=%sm, tolerance=%s)", len(features), interval, tolerance)
    return features
