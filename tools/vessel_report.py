#!/usr/bin/env python3
"""Print one reefer's summary and activity timeline, optionally exporting its meetings."""

from __future__ import annotations

import argparse
import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

import sys

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from common.settings import load_settings
from portal import ReeferPortal
from report import export_filename


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("mmsi", type=int, help="MMSI of the reefer")
    parser.add_argument("--data-dir", type=Path, help="Directory holding the CSV exports")
    parser.add_argument("--export-dir", type=Path, help="Write the vessel's meeting rows as CSV here")
    parser.add_argument("--history", action="store_true", help="Also fetch the recent position history")
    parser.add_argument("--verbose", action="store_true", help="Log at DEBUG level")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="[%(asctime)s] %(levelname)s: %(message)s",
    )

    settings = load_settings()
    if args.data_dir is not None:
        settings = replace(settings, data_dir=args.data_dir)
    portal = ReeferPortal.from_data_dir(settings)

    description = portal.describe_vessel(args.mmsi)
    if description is None:
        logging.warning("Vessel %s has no recorded meetings", args.mmsi)
        return 1
    print(description)
    print()
    for event in portal.get_timeline(args.mmsi):
        print(f"{event.start:%Y-%m-%d %H:%M}  {event.caption}")

    if args.history:
        history = portal.get_history(args.mmsi)
        if history.available:
            print(f"\n{len(history.fixes)} positions over the last {history.window_days} days")
        else:
            print(f"\nPosition history unavailable: {history.error}")

    if args.export_dir:
        args.export_dir.mkdir(parents=True, exist_ok=True)
        path = args.export_dir / export_filename(args.mmsi)
        path.write_bytes(portal.export_vessel_events(args.mmsi))
        logging.info("Wrote %s", path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
