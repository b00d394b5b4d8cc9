from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Iterable, Iterator, Optional


def _connect(db_path: Path) -> sqlite3.Connection:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS features (
            code TEXT PRIMARY KEY,
            feature TEXT NOT NULL
        )
        """
    )

    return conn


def set_features(db_path: Path, features: Iterable[dict]) -> int:
    """
    Store GeoJSON features keyed by properties.code. A duplicate code
    overwrites the previous entry.
    """
    rows = [
        (f["properties"]["code"], json.dumps(f, ensure_ascii=False))
        for f in features
    ]

    conn = _connect(db_path)
    try:
        conn.executemany(
            """
            INSERT OR REPLACE INTO features (code, feature)
            VALUES (?, ?)
            """,
            rows,
        )
        conn.commit()
    finally:
        conn.close()

    return len(rows)


def get_feature(db_path: Path, code: str) -> Optional[dict]:
    conn = _connect(db_path)
    try:
        cur = conn.execute("SELECT feature FROM features WHERE code = ?", (code,))
        row = cur.fetchone()
        if not row:
            return None
        return json.loads(row[0])
    finally:
        conn.close()


def iter_features(db_path: Path) -> Iterator[dict]:
    conn = _connect(db_path)
    try:
        for (feature,) in conn.execute("SELECT feature FROM features ORDER BY code"):
            yield json.loads(feature)
    finally:
        conn.close()
