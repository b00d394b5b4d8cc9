from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

import requests

logger = logging.getLogger(__name__)

REFERENCE_FILES = ("communes.json", "departements.json", "regions.json", "epci.json")

# Commune types kept in the commune index. Delegated/associated communes reuse
# the code of the commune they belong to.
COMMUNE_TYPES = {"commune-actuelle", "arrondissement-municipal"}


class ReferenceLookupError(KeyError):
    """A code read from the sources has no entry in the reference dataset."""

    def __init__(self, kind: str, code: str | None):
        self.kind = kind
        self.code = code
        super().__init__(f"Unknown {kind} code: {code!r}")

    def __str__(self) -> str:
        return self.args[0]


@dataclass(frozen=True)
class CommuneRecord:
    code: str
    nom: str
    type: str
    departement: str | None = None
    region: str | None = None
    collectivite: str | None = None
    commune: str | None = None  # parent commune, for arrondissements


@dataclass(frozen=True)
class DepartementRecord:
    code: str
    nom: str
    region: str


@dataclass(frozen=True)
class RegionRecord:
    code: str
    nom: str


@dataclass(frozen=True)
class EpciRecord:
    code: str
    nom: str
    membres: tuple[str, ...] = ()


@dataclass(frozen=True)
class ReferenceIndex:
    """
    Read-only code -> record lookups over the administrative hierarchy.

    Built once, then passed explicitly to the normalizer and layer builders.
    Every lookup raises ReferenceLookupError on an unknown code.
    """

    communes: Mapping[str, CommuneRecord]
    departements: Mapping[str, DepartementRecord]
    regions: Mapping[str, RegionRecord]
    epci: Mapping[str, EpciRecord]
    commune_epci: Mapping[str, str]

    @classmethod
    def build(
        cls,
        communes: list[CommuneRecord],
        departements: list[DepartementRecord],
        regions: list[RegionRecord],
        epci: list[EpciRecord],
    ) -> "ReferenceIndex":
        commune_epci: dict[str, str] = {}
        for e in epci:
            for member in e.membres:
                commune_epci[member] = e.code

        return cls(
            communes=MappingProxyType({c.code: c for c in communes}),
            departements=MappingProxyType({d.code: d for d in departements}),
            regions=MappingProxyType({r.code: r for r in regions}),
            epci=MappingProxyType({e.code: e for e in epci}),
            commune_epci=MappingProxyType(commune_epci),
        )

    def commune(self, code: str | None) -> CommuneRecord:
        try:
            return self.communes[code]
        except KeyError:
            raise ReferenceLookupError("commune", code) from None

    def departement(self, code: str | None) -> DepartementRecord:
        try:
            return self.departements[code]
        except KeyError:
            raise ReferenceLookupError("departement", code) from None

    def region(self, code: str | None) -> RegionRecord:
        try:
            return self.regions[code]
        except KeyError:
            raise ReferenceLookupError("region", code) from None

    def epci_record(self, code: str | None) -> EpciRecord:
        try:
            return self.epci[code]
        except KeyError:
            raise ReferenceLookupError("epci", code) from None

    def epci_for_commune(self, commune_code: str) -> str | None:
        """EPCI code of a commune, or None when it belongs to no EPCI."""
        return self.commune_epci.get(commune_code)


def _read_json(path: Path) -> list[dict]:
    if not path.exists():
        raise FileNotFoundError(
            f"Missing reference file: {path}. "
            f"Run scripts/fetch_reference_data.py (or admin-contours --fetch-reference) to download it."
        )
    with path.open(encoding="utf-8") as f:
        return json.load(f)


def _commune_from_json(item: dict) -> CommuneRecord:
    collectivite = item.get("collectiviteOutremer") or {}
    return CommuneRecord(
        code=item["code"],
        nom=item["nom"],
        type=item.get("type", "commune-actuelle"),
        departement=item.get("departement"),
        region=item.get("region"),
        collectivite=collectivite.get("code"),
        commune=item.get("commune"),
    )


def load_reference_index(reference_dir: Path) -> ReferenceIndex:
    """
    Load the decoupage-administratif JSON files from reference_dir:
      communes.json, departements.json, regions.json, epci.json
    """
    reference_dir = Path(reference_dir)

    communes = [
        _commune_from_json(item)
        for item in _read_json(reference_dir / "communes.json")
        if item.get("type", "commune-actuelle") in COMMUNE_TYPES
    ]
    departements = [
        DepartementRecord(code=item["code"], nom=item["nom"], region=item["region"])
        for item in _read_json(reference_dir / "departements.json")
    ]
    regions = [
        RegionRecord(code=item["code"], nom=item["nom"])
        for item in _read_json(reference_dir / "regions.json")
    ]
    epci = [
        EpciRecord(
            code=item["code"],
            nom=item["nom"],
            membres=tuple(m["code"] for m in item.get("membres", [])),
        )
        for item in _read_json(reference_dir / "epci.json")
    ]

    index = ReferenceIndex.build(communes, departements, regions, epci)
    logger.info(
        "Loaded reference index: %d communes, %d departements, %d regions, %d EPCI",
        len(index.communes),
        len(index.departements),
        len(index.regions),
        len(index.epci),
    )
    return index


def download_reference_data(dest_dir: Path, base_url: str) -> list[Path]:
    """
    Fetch the four reference JSON files from base_url into dest_dir.
    """
    dest_dir = Path(dest_dir)
    dest_dir.mkdir(parents=True, exist_ok=True)

    written: list[Path] = []
    for name in REFERENCE_FILES:
        url = f"{base_url.rstrip('/')}/{name}"
        logger.info("Downloading %s", url)
        resp = requests.get(url, timeout=60)
        resp.raise_for_status()

        path = dest_dir / name
        path.write_bytes(resp.content)
        written.append(path)

    return written
