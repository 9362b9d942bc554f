#!/usr/bin/env python3
"""Dump the station directory as the library sees it.

Opens a live directory, waits for the first snapshot and prints every
station, both the decoded fields **and** the raw store document, so you
can spot documents that decode differently than expected (or are
dropped).

Usage
-----
Set environment variables and run::

    export PYSTATIONS_BASE_URL="https://store.example/v1"
    export PYSTATIONS_API_KEY="..."
    python scripts/dump_stations.py

Options::

    --search TEXT        Only stations whose name or address contains TEXT
    --near LAT,LNG       Only stations within --radius km of this point
    --radius KM          Radius for --near (default: config.nearby_radius_km)
    --json               Output as machine-readable JSON
    --output FILE        Write output to FILE instead of stdout
    --watch SECONDS      Keep the feed open and print each new revision
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pystations import CacheChange, Station, StationDirectory, StationQuery, StationsConfig  # noqa: E402
from pystations._redact import redact_for_log  # noqa: E402

# ── helpers ──────────────────────────────────────────────────


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _station_lines(station: Station, distance_km: float | None = None) -> list[str]:
    lines = [f"  {station.id}  {station.name}"]
    lines.append(f"    address  : {station.address}" + (f" ({station.city})" if station.city else ""))
    lines.append(f"    price    : {station.price:.2f}")
    lines.append(f"    position : {station.coordinates.latitude:.5f}, {station.coordinates.longitude:.5f}")
    if distance_km is not None:
        lines.append(f"    distance : {distance_km:.2f} km")
    if station.services:
        lines.append(f"    services : {', '.join(station.services)}")
    lines.append(f"    created  : {station.created_at.isoformat()}  updated: {station.updated_at.isoformat()}")
    return lines


def _station_record(station: Station) -> dict[str, Any]:
    return {"parsed": station.model_dump(mode="json"), "raw": redact_for_log(station.raw)}


def _parse_point(text: str) -> tuple[float, float]:
    lat_text, _, lng_text = text.partition(",")
    try:
        return float(lat_text), float(lng_text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LNG, got {text!r}") from exc


async def main() -> None:
    parser = argparse.ArgumentParser(
        description="Dump the live station directory for debugging / development.",
    )
    parser.add_argument("--search", default="", help="Substring filter on name or address")
    parser.add_argument("--near", type=_parse_point, help="LAT,LNG point for a nearby search")
    parser.add_argument("--radius", type=float, help="Radius in km for --near")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--watch", type=float, default=0.0, help="Keep watching for SECONDS")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = StationsConfig.from_env(mqtt_enabled=args.watch > 0)
    result: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "base_url": config.base_url,
        "collection": config.collection,
        "deletion_policy": str(config.deletion_policy),
        "stations": [],
    }

    out: list[str] = [_section("pystations dump_stations")]
    out.append(f"  time       : {result['timestamp']}")
    out.append(f"  store      : {config.base_url} ({config.collection})")
    out.append(f"  deletion   : {config.deletion_policy}")

    async with StationDirectory(config) as directory:
        await directory.wait_synced(timeout=config.request_timeout)

        if args.near is not None:
            radius = args.radius if args.radius is not None else config.nearby_radius_km
            hits = directory.views.nearby(args.near[0], args.near[1], radius)
            out.append(_section(f"NEARBY  {args.near[0]},{args.near[1]}  r={radius} km  ({len(hits)})"))
            for hit in hits:
                out.extend(_station_lines(hit.station, hit.distance_km))
                result["stations"].append({**_station_record(hit.station), "distance_km": hit.distance_km})
        else:
            total = len(directory.cache)
            page = directory.views.page(StationQuery(search=args.search, page_size=max(1, total)))
            out.append(_section(f"STATIONS  ({page.info.total_items} of {total})"))
            for station in page.items:
                out.extend(_station_lines(station))
                result["stations"].append(_station_record(station))

        if not args.json_mode:
            print("\n".join(out))

        if args.watch > 0:

            def _on_change(change: CacheChange) -> None:
                print(f"  revision={change.revision} state={change.state} size={len(directory.cache)}")

            directory.cache.add_listener(_on_change)
            await asyncio.sleep(args.watch)

    # ── Output ──
    if args.json_mode or args.output:
        payload = json.dumps(result, indent=2, default=str, ensure_ascii=False)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)


if __name__ == "__main__":
    asyncio.run(main())
