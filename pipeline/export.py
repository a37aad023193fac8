"""
Playoff Tracker Export: Writes a computed bracket to data/export/.

Each run produces ``bracket_<mode>.json`` (the payload the frontend reads)
and ``bracket_<mode>.csv`` (one row per seeded or next-out team).

Usage:
    python -m pipeline.export --mode fair     # re-render the CSV from the saved JSON
"""

from __future__ import annotations

import argparse
import json
import logging
import os
from pathlib import Path
from typing import Any

import pandas as pd

from pipeline import settings

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "seed", "status", "id", "name", "shortName", "conference", "record",
    "rank", "sor", "fairRankScore", "isAutoBid",
]


def bracket_frame(payload: dict[str, Any]) -> pd.DataFrame:
    """Flatten a bracket payload into one row per team."""
    rows = []
    for team in payload.get("seeds") or []:
        rows.append({**team, "status": "seeded"})
    for team in payload.get("nextOut") or []:
        rows.append({**team, "status": "next_out", "seed": None})
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=CSV_COLUMNS)
    for col in CSV_COLUMNS:
        if col not in df.columns:
            df[col] = None
    df["seed"] = pd.to_numeric(df["seed"], errors="coerce").astype("Int64")
    df["isAutoBid"] = df["isAutoBid"].fillna(False).astype(bool)
    return df[CSV_COLUMNS]


def write_bracket(payload: dict[str, Any], export_dir: str | Path | None = None, pretty: bool = True) -> dict[str, Path]:
    """Save the bracket JSON and CSV; returns the paths written."""
    out_dir = Path(export_dir or settings.EXPORT_DIR)
    os.makedirs(out_dir, exist_ok=True)
    mode = payload.get("mode") or "direct"

    json_path = out_dir / f"bracket_{mode}.json"
    with open(json_path, "w") as f:
        json.dump(payload, f, indent=2 if pretty else None, default=str)
    logger.info("  Saved %s", json_path)

    csv_path = out_dir / f"bracket_{mode}.csv"
    bracket_frame(payload).to_csv(csv_path, index=False)
    logger.info("  Saved %s", csv_path)
    return {"json": json_path, "csv": csv_path}


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    parser = argparse.ArgumentParser(description="Playoff Tracker bracket export")
    parser.add_argument("--mode", choices=("direct", "fair"), default="direct")
    args = parser.parse_args()

    path = settings.EXPORT_DIR / f"bracket_{args.mode}.json"
    if not path.exists():
        logger.error("No saved bracket at %s. Run pipeline.bracketology first.", path)
        raise SystemExit(1)
    with open(path) as f:
        payload = json.load(f)
    write_bracket(payload)


if __name__ == "__main__":
    main()
