from __future__ import annotations

from typing import Iterable

from .models import ArrondissementSource, CommuneComSource, CommuneSource, Feature, RawFeature
from .reference import ReferenceIndex

# Overseas sources also carry collectivity-level entities; only 5-char codes are communes
COMMUNE_CODE_LENGTH = 5


def normalize_commune(raw: RawFeature, reference: ReferenceIndex) -> Feature:
    s: CommuneSource = raw.source
    record = reference.commune(s.code)

    return Feature(
        geometry=raw.geometry,
        properties={
            "code": s.code,
            "nom": s.nom,
            "departement": record.departement,
            "region": record.region,
            "epci": reference.epci_for_commune(s.code),
        },
    )


def normalize_arrondissement(raw: RawFeature, reference: ReferenceIndex) -> Feature:
    """
    Department and region come from the owning commune: the arrondissement
    source file does not reliably carry them.
    """
    s: ArrondissementSource = raw.source
    commune = reference.commune(s.commune)

    return Feature(
        geometry=raw.geometry,
        properties={
            "code": s.code,
            "nom": s.nom,
            "commune": s.commune,
            "departement": commune.departement,
            "region": commune.region,
        },
    )


def is_overseas_commune(source: CommuneComSource) -> bool:
    return len(source.code) == COMMUNE_CODE_LENGTH


def normalize_commune_com(raw: RawFeature) -> Feature:
    s: CommuneComSource = raw.source
    return Feature(
        geometry=raw.geometry,
        properties={
            "code": s.code,
            "nom": s.nom,
            "collectivite": s.code[:3],
        },
    )


def normalize_feature(raw: RawFeature, reference: ReferenceIndex) -> Feature | None:
    """
    Map a raw feature onto its canonical attributes. Raw attributes are
    replaced, never merged. Returns None for filtered overseas records.
    """
    source = raw.source
    if isinstance(source, CommuneSource):
        return normalize_commune(raw, reference)
    if isinstance(source, ArrondissementSource):
        return normalize_arrondissement(raw, reference)
    if isinstance(source, CommuneComSource):
        if not is_overseas_commune(source):
            return None
        return normalize_commune_com(raw)
    raise TypeError(f"Unsupported source record: {type(source).__name__}")


def normalize_features(raws: Iterable[RawFeature], reference: ReferenceIndex) -> list[Feature]:
    out = []
    for raw in raws:
        feature = normalize_feature(raw, reference)
        if feature is not None:
            out.append(feature)
    return out
