from __future__ import annotations

import json
import sys
from pathlib import Path

import geopandas as gpd
import pytest
from shapely.geometry import box

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from admin_contours.reference import load_reference_index  # noqa: E402


# ========================================
# Reference dataset (decoupage-administratif shape)
# ========================================

COMMUNES_JSON = [
    {"code": "75056", "nom": "Paris", "type": "commune-actuelle", "departement": "75", "region": "11"},
    {"code": "75056", "nom": "Paris (ancienne)", "type": "commune-deleguee", "departement": "75", "region": "11"},
    {"code": "75057", "nom": "Lutèce", "type": "commune-actuelle", "departement": "75", "region": "11"},
    {"code": "92012", "nom": "Boulogne-Billancourt", "type": "commune-actuelle", "departement": "92", "region": "11"},
    {
        "code": "75101",
        "nom": "Paris 1er Arrondissement",
        "type": "arrondissement-municipal",
        "commune": "75056",
        "departement": "75",
        "region": "11",
    },
    {
        "code": "97701",
        "nom": "Saint-Barthélemy",
        "type": "commune-actuelle",
        "collectiviteOutremer": {"code": "977", "nom": "Saint-Barthélemy"},
    },
    {
        "code": "97801",
        "nom": "Saint-Martin",
        "type": "commune-actuelle",
        "collectiviteOutremer": {"code": "978", "nom": "Saint-Martin"},
    },
]

DEPARTEMENTS_JSON = [
    {"code": "75", "nom": "Paris", "region": "11"},
    {"code": "92", "nom": "Hauts-de-Seine", "region": "11"},
]

REGIONS_JSON = [
    {"code": "11", "nom": "Île-de-France"},
]

EPCI_JSON = [
    {
        "code": "200054781",
        "nom": "Métropole du Grand Paris",
        "membres": [{"code": "75056"}, {"code": "92012"}],
    },
]

# Adjacent squares: 75056 and 75057 share the lon=2.31 edge
PARIS = box(2.30, 48.85, 2.31, 48.86)
LUTECE = box(2.31, 48.85, 2.32, 48.86)
BOULOGNE = box(2.24, 48.83, 2.25, 48.84)
PARIS_1ER = box(2.30, 48.85, 2.305, 48.855)
SAINT_BARTH = box(-62.85, 17.88, -62.80, 17.92)
SAINT_MARTIN = box(-63.15, 18.05, -63.00, 18.12)


@pytest.fixture
def reference_dir(tmp_path: Path) -> Path:
    d = tmp_path / "reference"
    d.mkdir()
    for name, data in [
        ("communes.json", COMMUNES_JSON),
        ("departements.json", DEPARTEMENTS_JSON),
        ("regions.json", REGIONS_JSON),
        ("epci.json", EPCI_JSON),
    ]:
        (d / name).write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    return d


@pytest.fixture
def reference(reference_dir: Path):
    return load_reference_index(reference_dir)


# ========================================
# Synthetic shapefiles
# ========================================

def write_shapefile(directory: Path, basename: str, records: list[dict], geometries: list) -> Path:
    gdf = gpd.GeoDataFrame(records, geometry=geometries, crs="EPSG:4326")
    path = directory / f"{basename}.shp"
    gdf.to_file(path, driver="ESRI Shapefile", encoding="UTF-8")

    # GDAL only writes a .cpg for some encodings; the reader expects all five files
    cpg = directory / f"{basename}.cpg"
    if not cpg.exists():
        cpg.write_text("UTF-8", encoding="ascii")
    return path


@pytest.fixture
def sources_dir(tmp_path: Path) -> Path:
    d = tmp_path / "sources"
    d.mkdir()

    write_shapefile(
        d,
        "COMMUNE",
        [
            {"INSEE_COM": "75056", "NOM": "PARIS", "INSEE_DEP": "75", "INSEE_REG": "11"},
            {"INSEE_COM": "75057", "NOM": "LUTECE", "INSEE_DEP": "75", "INSEE_REG": "11"},
            {"INSEE_COM": "92012", "NOM": "BOULOGNE", "INSEE_DEP": "92", "INSEE_REG": "11"},
        ],
        [PARIS, LUTECE, BOULOGNE],
    )
    write_shapefile(
        d,
        "ARRONDISSEMENT_MUNICIPAL",
        [{"INSEE_ARM": "75101", "NOM": "Paris 1er", "INSEE_COM": "75056"}],
        [PARIS_1ER],
    )
    write_shapefile(
        d,
        "osm-communes-com",
        [
            {"insee": "97701", "nom": "Saint-Barthélemy"},
            {"insee": "97801", "nom": "Saint-Martin"},
            {"insee": "977", "nom": "Collectivité de Saint-Barthélemy"},
            {"insee": "9770", "nom": "Code tronqué"},
            {"insee": "977011", "nom": "Code trop long"},
        ],
        [SAINT_BARTH, SAINT_MARTIN, SAINT_BARTH, SAINT_BARTH, SAINT_BARTH],
    )
    return d
