from __future__ import annotations

from typing import Iterable

from .aggregate import dissolve_features
from .models import Feature
from .reference import ReferenceIndex

LAYER_EPCI = "epci"
LAYER_DEPARTEMENTS = "departements"
LAYER_REGIONS = "regions"
LAYER_COMMUNES = "communes"
LAYER_ARRONDISSEMENTS = "arrondissements-municipaux"
LAYER_COMMUNES_COM = "communes-com"

LAYERS = (
    LAYER_EPCI,
    LAYER_DEPARTEMENTS,
    LAYER_REGIONS,
    LAYER_COMMUNES,
    LAYER_ARRONDISSEMENTS,
    LAYER_COMMUNES_COM,
)


# ----------------------------
# Dissolved layers (from communes)
# ----------------------------

def build_epci(communes: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for code, geometry in dissolve_features(communes, "epci"):
        e = reference.epci_record(code)
        out.append(Feature(geometry, {"code": e.code, "nom": e.nom}))
    return out


def build_departements(communes: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for code, geometry in dissolve_features(communes, "departement"):
        d = reference.departement(code)
        out.append(Feature(geometry, {"code": d.code, "nom": d.nom, "region": d.region}))
    return out


def build_regions(communes: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for code, geometry in dissolve_features(communes, "region"):
        r = reference.region(code)
        out.append(Feature(geometry, {"code": r.code, "nom": r.nom}))
    return out


# ----------------------------
# One-to-one layers
# ----------------------------

def build_communes(communes: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for f in communes:
        c = reference.commune(f.code)
        out.append(
            Feature(
                f.geometry,
                {
                    "code": c.code,
                    "nom": c.nom,
                    "departement": c.departement,
                    "region": c.region,
                    "epci": f.properties.get("epci"),
                },
            )
        )
    return out


def build_arrondissements(arrondissements: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for f in arrondissements:
        a = reference.commune(f.code)
        out.append(
            Feature(
                f.geometry,
                {
                    "code": a.code,
                    "nom": a.nom,
                    "commune": f.properties["commune"],
                    "departement": f.properties["departement"],
                    "region": f.properties["region"],
                },
            )
        )
    return out


def build_communes_com(communes_com: Iterable[Feature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for f in communes_com:
        c = reference.commune(f.code)
        out.append(Feature(f.geometry, {"code": c.code, "nom": c.nom, "collectivite": c.code[:3]}))
    return out
