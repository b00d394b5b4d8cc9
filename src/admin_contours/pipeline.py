from __future__ import annotations

import logging
import threading
from concurrent.futures import FIRST_EXCEPTION, CancelledError, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable

from .extract import extract_features, read_source_files
from .layers import (
    LAYER_ARRONDISSEMENTS,
    LAYER_COMMUNES,
    LAYER_COMMUNES_COM,
    LAYER_DEPARTEMENTS,
    LAYER_EPCI,
    LAYER_REGIONS,
    build_arrondissements,
    build_communes,
    build_communes_com,
    build_departements,
    build_epci,
    build_regions,
)
from .models import (
    ArrondissementSource,
    CommuneComSource,
    CommuneSource,
    Feature,
    SourceFile,
)
from .normalize import normalize_features
from .reference import ReferenceIndex
from .writer import LayerOutput, write_layer

logger = logging.getLogger(__name__)

COMMUNES_BASENAME = "COMMUNE"
ARRONDISSEMENTS_BASENAME = "ARRONDISSEMENT_MUNICIPAL"
COMMUNES_COM_BASENAME = "osm-communes-com"


@dataclass(frozen=True)
class SourceSets:
    communes: list[SourceFile]
    arrondissements: list[SourceFile]
    communes_com: list[SourceFile]


def read_sources(sources_dir: Path) -> SourceSets:
    return SourceSets(
        communes=read_source_files(sources_dir, COMMUNES_BASENAME),
        arrondissements=read_source_files(sources_dir, ARRONDISSEMENTS_BASENAME),
        communes_com=read_source_files(sources_dir, COMMUNES_COM_BASENAME),
    )


class _FailFastJobs:
    """
    Submits jobs to a pool. Once one job fails, jobs that have not started
    yet are skipped, and results() re-raises that first failure.
    """

    def __init__(self, pool: ThreadPoolExecutor):
        self.pool = pool
        self.failed = threading.Event()

    def check(self) -> None:
        if self.failed.is_set():
            raise CancelledError("an earlier job failed")

    def submit(self, fn: Callable, *args) -> Future:
        def guarded():
            self.check()
            try:
                return fn(*args)
            except BaseException:
                self.failed.set()
                raise

        return self.pool.submit(guarded)

    def results(self, jobs: list[Future]) -> list:
        wait(jobs, return_when=FIRST_EXCEPTION)

        if self.failed.is_set():
            for job in jobs:
                job.cancel()
            for job in jobs:
                if not job.done() or job.cancelled():
                    continue
                error = job.exception()
                if error is not None and not isinstance(error, CancelledError):
                    raise error

        return [job.result() for job in jobs]


def _extract_and_normalize(
    files: list[SourceFile],
    interval: int,
    record_from_row: Callable,
    reference: ReferenceIndex,
) -> list[Feature]:
    raws = extract_features(files, interval, record_from_row)
    return normalize_features(raws, reference)


def build_contours(
    sources: SourceSets,
    reference: ReferenceIndex,
    interval: int,
    dist_dir: Path,
    db_dir: Path | None = None,
    max_workers: int = 6,
) -> list[LayerOutput]:
    """
    Build and write the six layers for one simplification interval.

    extract -> normalize runs once per source set (concurrently), then each
    layer is built and written on its own worker. EPCI, departements and
    regions all read the same normalized communes.
    """
    logger.info("Extracting and simplifying sources: %sm", interval)

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        jobs = _FailFastJobs(pool)

        communes, arrondissements, communes_com = jobs.results([
            jobs.submit(_extract_and_normalize, sources.communes, interval, CommuneSource.from_row, reference),
            jobs.submit(
                _extract_and_normalize, sources.arrondissements, interval, ArrondissementSource.from_row, reference
            ),
            jobs.submit(_extract_and_normalize, sources.communes_com, interval, CommuneComSource.from_row, reference),
        ])

        logger.info(
            "  %d communes, %d arrondissements, %d overseas communes",
            len(communes),
            len(arrondissements),
            len(communes_com),
        )

        tasks = [
            (LAYER_EPCI, build_epci, communes),
            (LAYER_DEPARTEMENTS, build_departements, communes),
            (LAYER_REGIONS, build_regions, communes),
            (LAYER_COMMUNES, build_communes, communes),
            (LAYER_ARRONDISSEMENTS, build_arrondissements, arrondissements),
            (LAYER_COMMUNES_COM, build_communes_com, communes_com),
        ]

        def build_and_write(layer: str, builder: Callable, features: list[Feature]) -> LayerOutput:
            layer_features = builder(features, reference)
            # nothing is written once another layer has failed
            jobs.check()
            return write_layer(layer_features, interval, layer, dist_dir, db_dir)

        return jobs.results([jobs.submit(build_and_write, *task) for task in tasks])


def build_all(
    sources: SourceSets,
    reference: ReferenceIndex,
    intervals: Iterable[int],
    dist_dir: Path,
    db_dir: Path | None = None,
    max_workers: int = 6,
) -> list[LayerOutput]:
    """Run build_contours for each interval, one interval at a time."""
    outputs: list[LayerOutput] = []
    for interval in intervals:
        outputs.extend(build_contours(sources, reference, interval, dist_dir, db_dir, max_workers))
    return outputs
