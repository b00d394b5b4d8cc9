"""
Batch entry point: rebuild every contour layer from the raw shapefiles.

Behaviour:
- Reads COMMUNE.*, ARRONDISSEMENT_MUNICIPAL.* and osm-communes-com.* from the sources folder
- Loads the decoupage-administratif reference dataset (optionally downloading it first)
- For each simplification interval, writes <layer>-<interval>m.geojson and
  <layer>-<interval>m.sqlite for the six layers

Configuration comes from the environment / .env (see config.py); CLI flags override it.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from .config import Settings, parse_intervals, load_settings
from .pipeline import build_all, read_sources
from .reference import download_reference_data, load_reference_index

logger = logging.getLogger("admin_contours")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="admin-contours",
        description="Build simplified administrative boundary layers (GeoJSON + SQLite).",
    )
    parser.add_argument("--sources", type=Path, help="Directory holding the raw shapefile sets")
    parser.add_argument("--dist", type=Path, help="Output directory")
    parser.add_argument("--intervals", help="Comma-separated simplification intervals in meters")
    parser.add_argument(
        "--fetch-reference",
        action="store_true",
        help="Download the reference dataset before building",
    )
    return parser.parse_args(argv)


def _apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    overrides = {}
    if args.sources is not None:
        overrides["sources_dir"] = args.sources
    if args.dist is not None:
        overrides["dist_dir"] = args.dist
        overrides["db_dir"] = args.dist
    if args.intervals:
        overrides["intervals"] = parse_intervals(args.intervals)
    return replace(settings, **overrides)


def run(settings: Settings, fetch_reference: bool = False):
    if fetch_reference:
        download_reference_data(settings.reference_dir, settings.reference_url)

    reference = load_reference_index(settings.reference_dir)
    sources = read_sources(settings.sources_dir)

    return build_all(
        sources,
        reference,
        settings.intervals,
        dist_dir=settings.dist_dir,
        db_dir=settings.db_dir,
        max_workers=settings.max_workers,
    )


# ---------- CLI entry point ----------

def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        args = _parse_args(argv)
        settings = _apply_overrides(load_settings(), args)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logging.getLogger().setLevel(settings.log_level)

    try:
        outputs = run(settings, fetch_reference=args.fetch_reference)
    except Exception:
        logger.exception("Build failed")
        return 1

    print(f"Wrote {len(outputs)} layers to: {settings.dist_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
