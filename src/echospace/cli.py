"""
Echo Space CLI entrypoint.

This CLI is intended for quick local demos and debugging without a frontend: list
fragments, run the proximity filter around a point, or render one AR tick as text.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from echospace.ar.pipeline import build_ar_frame
from echospace.catalog.loader import load_catalog
from echospace.config.settings import Settings, get_settings
from echospace.core.logging import configure_logging
from echospace.core.time import utc_now
from echospace.discovery.feed import format_distance
from echospace.discovery.proximity import nearby, sort_nearest_first
from echospace.domain.models import DeviceOrientation, GeoPoint, LiveLocation
from echospace.sensors.location import ManualLocationSource
from echospace.storage.memory import InMemoryFragmentStore, build_store


def _load_store(args: argparse.Namespace, settings: Settings) -> InMemoryFragmentStore:
    if args.catalog:
        store = InMemoryFragmentStore(index_cell_size_deg=settings.storage.index_cell_size_deg)
        store.seed(load_catalog(args.catalog))
        return store
    return build_store(settings)


def _dump(items: list[Any]) -> None:
    print(json.dumps([i.model_dump(mode="json", by_alias=True) for i in items], ensure_ascii=False, indent=2))


def _cmd_fragments(args: argparse.Namespace) -> int:
    """Handle the `fragments` subcommand."""
    store = _load_store(args, get_settings())
    fragments = store.search(args.search or "", args.category)
    if args.json:
        _dump(fragments)
        return 0
    for f in fragments:
        print(f"{f.id}  [{f.category}] {f.title} @ {f.location_name} ({f.likes} likes)")
    return 0


def _cmd_nearby(args: argparse.Namespace) -> int:
    """Handle the `nearby` subcommand."""
    settings = get_settings()
    store = _load_store(args, settings)
    origin = GeoPoint(lat=float(args.lat), lng=float(args.lng)).to_core()
    radius_m = float(args.radius_m) if args.radius_m is not None else settings.proximity.nearby_radius_m

    results = sort_nearest_first(nearby(store.list_all(), origin, radius_m))
    if args.json:
        _dump(results)
        return 0

    print(f"{len(results)} fragments within {radius_m:g}m:")
    for f in results:
        print(f"  {format_distance(f.distance):>12}  [{f.category}] {f.title}")
    return 0


def _cmd_ar(args: argparse.Namespace) -> int:
    """Handle the `ar` subcommand."""
    settings = get_settings()
    store = _load_store(args, settings)
    source = ManualLocationSource.from_settings(settings, enabled=True)
    source.update(LiveLocation(lat=float(args.lat), lng=float(args.lng), timestamp=utc_now()))
    orientation = DeviceOrientation(heading=float(args.heading)) if args.heading is not None else None

    frame = build_ar_frame(store.list_all(), source.current(), orientation, settings=settings)
    if args.json:
        print(json.dumps(frame.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0

    print(f"Heading {frame.heading:.0f} deg, {frame.nearby_count} nearby, {len(frame.markers)} in view")
    for m in frame.markers:
        print(
            f"  x={m.screen_x:5.1f}% y={m.screen_y:5.1f}%  bearing={m.bearing:5.1f}  "
            f"{format_distance(m.distance):>12}  {m.title}"
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the Echo Space CLI."""
    parser = argparse.ArgumentParser(prog="echospace")
    parser.add_argument("--catalog", type=str, default=None, help="Fragment catalog JSON (default: sample data)")
    sub = parser.add_subparsers(dest="command", required=True)

    frag = sub.add_parser("fragments", help="List fragments, optionally filtered.")
    frag.add_argument("--search", type=str, default=None)
    frag.add_argument("--category", type=str, default=None)
    frag.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    frag.set_defaults(func=_cmd_fragments)

    near = sub.add_parser("nearby", help="Fragments within a radius of a point, nearest first.")
    near.add_argument("--lat", required=True, type=float)
    near.add_argument("--lng", required=True, type=float)
    near.add_argument("--radius-m", dest="radius_m", type=float, default=None, help="Default: nearby badge radius")
    near.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    near.set_defaults(func=_cmd_nearby)

    ar = sub.add_parser("ar", help="Project nearby fragments onto the AR overlay for a heading.")
    ar.add_argument("--lat", required=True, type=float)
    ar.add_argument("--lng", required=True, type=float)
    ar.add_argument("--heading", type=float, default=None, help="Compass heading in degrees (default: 0)")
    ar.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    ar.set_defaults(func=_cmd_ar)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m echospace.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
