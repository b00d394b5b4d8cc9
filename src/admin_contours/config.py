from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

DEFAULT_INTERVALS = (1000, 100, 50, 5)
DEFAULT_REFERENCE_URL = "https://unpkg.com/@etalab/decoupage-administratif/data"


@dataclass(frozen=True)
class Settings:
    sources_dir: Path
    dist_dir: Path
    db_dir: Path
    reference_dir: Path
    reference_url: str
    intervals: tuple[int, ...]
    max_workers: int
    log_level: str


def parse_intervals(value: str | None) -> tuple[int, ...]:
    if not value or not value.strip():
        return DEFAULT_INTERVALS
    intervals = tuple(int(v) for v in value.split(",") if v.strip())
    if any(i <= 0 for i in intervals):
        raise ValueError(f"Simplification intervals must be positive: {value}")
    return intervals


def load_settings() -> Settings:
    """
    Resolve settings from the environment (a .env file is picked up if present).
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)

    dist_dir = Path(os.getenv("CONTOURS_DIST_PATH", "dist"))
    max_workers = int(os.getenv("CONTOURS_MAX_WORKERS", "6"))
    if max_workers < 1:
        raise ValueError(f"CONTOURS_MAX_WORKERS must be >= 1, got {max_workers}")

    return Settings(
        sources_dir=Path(os.getenv("CONTOURS_SOURCES_PATH", "sources")),
        dist_dir=dist_dir,
        db_dir=Path(os.getenv("CONTOURS_DB_PATH") or dist_dir),
        reference_dir=Path(os.getenv("CONTOURS_REFERENCE_PATH", "data/decoupage-administratif")),
        reference_url=os.getenv("CONTOURS_REFERENCE_URL", DEFAULT_REFERENCE_URL),
        intervals=parse_intervals(os.getenv("CONTOURS_INTERVALS")),
        max_workers=max_workers,
        log_level=os.getenv("CONTOURS_LOG_LEVEL", "INFO").upper(),
    )
