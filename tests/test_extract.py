from __future__ import annotations

import pytest

from admin_contours.extract import (
    METERS_PER_DEGREE,
    extract_features,
    read_source_files,
    simplify_tolerance,
)
from admin_contours.models import ArrondissementSource, CommuneComSource, CommuneSource

from conftest import PARIS


def test_read_source_files(sources_dir):
    files = read_source_files(sources_dir, "COMMUNE")

    assert sorted(f.name for f in files) == [
        "COMMUNE.cpg",
        "COMMUNE.dbf",
        "COMMUNE.prj",
        "COMMUNE.shp",
        "COMMUNE.shx",
    ]
    assert all(f.data for f in files)


def test_read_source_files_missing(tmp_path):
    with pytest.raises(FileNotFoundError, match="COMMUNE"):
        read_source_files(tmp_path, "COMMUNE")


def test_extract_communes(sources_dir):
    files = read_source_files(sources_dir, "COMMUNE")
    raws = extract_features(files, 5, CommuneSource.from_row)

    assert [r.source for r in raws] == [
        CommuneSource(code="75056", nom="PARIS", departement="75", region="11"),
        CommuneSource(code="75057", nom="LUTECE", departement="75", region="11"),
        CommuneSource(code="92012", nom="BOULOGNE", departement="92", region="11"),
    ]
    assert raws[0].geometry.equals(PARIS)


def test_extract_tagged_records(sources_dir):
    arrondissements = extract_features(
        read_source_files(sources_dir, "ARRONDISSEMENT_MUNICIPAL"), 100, ArrondissementSource.from_row
    )
    communes_com = extract_features(
        read_source_files(sources_dir, "osm-communes-com"), 100, CommuneComSource.from_row
    )

    assert arrondissements[0].source == ArrondissementSource(code="75101", nom="Paris 1er", commune="75056")
    # the extractor keeps every record, filtering happens at normalization
    assert [r.source.code for r in communes_com] == ["97701", "97801", "977", "9770", "977011"]


def test_extract_without_shp(sources_dir):
    files = [f for f in read_source_files(sources_dir, "COMMUNE") if not f.name.endswith(".shp")]
    with pytest.raises(FileNotFoundError):
        extract_features(files, 5, CommuneSource.from_row)


def test_simplify_tolerance():
    from pyproj import CRS

    assert simplify_tolerance(1000, CRS.from_epsg(4326)) == pytest.approx(1000 / METERS_PER_DEGREE)
    assert simplify_tolerance(1000, None) == pytest.approx(1000 / METERS_PER_DEGREE)
    assert simplify_tolerance(1000, CRS.from_epsg(2154)) == 1000.0
