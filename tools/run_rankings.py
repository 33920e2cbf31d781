#!/usr/bin/env python3
"""Rank reefers by meeting activity and print the table as JSON."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from analytics import RankingFilters, parse_selector
from common.errors import PortalError
from common.settings import load_settings
from portal import ReeferPortal
from report import format_percent, view_subtitle, write_rankings_brief


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--data-dir", type=Path, help="Directory holding the CSV exports")
    parser.add_argument("--years", nargs=2, type=int, metavar=("FIRST", "LAST"), help="Inclusive year range")
    parser.add_argument(
        "--distance",
        nargs=2,
        type=float,
        metavar=("MIN_NM", "MAX_NM"),
        help="Distance-from-shore band in nautical miles",
    )
    parser.add_argument("--min-meetings", type=int, default=0, help="Drop vessels below this total")
    parser.add_argument(
        "--jurisdiction",
        help='Enforcer: ISO3 code, "U.S.", "NATO", "Five Eyes" or "any country"',
    )
    parser.add_argument("--view", choices=["flag", "eez", "port"], default="flag")
    parser.add_argument("--output-dir", type=Path, help="Write rankings.json here instead of stdout")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def serialize_row(row) -> Dict[str, Any]:
    payload = row.model_dump(mode="json")
    payload["tracked"] = format_percent(row.tracked_ratio)
    payload["authorized"] = format_percent(row.authorized_ratio)
    return payload


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s: %(message)s",
    )

    settings = load_settings()
    if args.data_dir is not None:
        settings = replace(settings, data_dir=args.data_dir)

    try:
        filters = RankingFilters(
            year_range=tuple(args.years) if args.years else None,
            distance_band_nm=tuple(args.distance) if args.distance else None,
            min_meetings=args.min_meetings,
            jurisdiction=parse_selector(args.jurisdiction) if args.jurisdiction else None,
            view=args.view,
        )
    except (PortalError, ValueError) as exc:
        parser.error(str(exc))

    portal = ReeferPortal.from_data_dir(settings)
    rows = portal.get_rankings(filters)
    logging.info("%d vessels %s", len(rows), view_subtitle(filters.view, filters.jurisdiction))

    if args.output_dir:
        path = write_rankings_brief(rows, filters=filters, artifact_dir=args.output_dir)
        logging.info("Wrote %s", path)
    else:
        payload = [serialize_row(row) for row in rows]
        print(json.dumps(payload, indent=2 if args.pretty else None))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
