from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Union

import pandas as pd
from shapely.geometry import mapping
from shapely.geometry.base import BaseGeometry


@dataclass(frozen=True)
class SourceFile:
    """One raw file of a shapefile set (.shp, .dbf, .shx, .prj, .cpg)."""

    name: str
    data: bytes


def _field(row: Mapping[str, Any], column: str) -> str | None:
    value = row.get(column)
    # empty dbf cells come back as None or NaN
    if value is None or pd.isna(value):
        return None
    return str(value).strip()


@dataclass(frozen=True)
class CommuneSource:
    code: str
    nom: str
    departement: str | None
    region: str | None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CommuneSource":
        return cls(
            code=_field(row, "INSEE_COM"),
            nom=_field(row, "NOM"),
            departement=_field(row, "INSEE_DEP"),
            region=_field(row, "INSEE_REG"),
        )


@dataclass(frozen=True)
class ArrondissementSource:
    code: str
    nom: str
    commune: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "ArrondissementSource":
        return cls(
            code=_field(row, "INSEE_ARM"),
            nom=_field(row, "NOM"),
            commune=_field(row, "INSEE_COM"),
        )


@dataclass(frozen=True)
class CommuneComSource:
    code: str
    nom: str

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "CommuneComSource":
        return cls(code=_field(row, "insee") or "", nom=_field(row, "nom"))


Source = Union[CommuneSource, ArrondissementSource, CommuneComSource]


@dataclass(frozen=True)
class RawFeature:
    """A simplified geometry still carrying its shapefile attributes."""

    geometry: BaseGeometry
    source: Source


@dataclass(frozen=True)
class Feature:
    geometry: BaseGeometry
    properties: Mapping[str, str | None] = field(default_factory=dict)

    def __post_init__(self):
        # read-only copy; the same feature is shared across layers
        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def code(self) -> str:
        return self.properties["code"]

    def to_geojson(self) -> dict:
        # Absent attributes (e.g. a commune outside any EPCI) are dropped, not nulled
        return {
            "type": "Feature",
            "geometry": mapping(self.geometry),
            "properties": {k: v for k, v in self.properties.items() if v is not None},
        }
