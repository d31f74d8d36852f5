#!/usr/bin/env python3
"""
DataWatchman CLI -- the French address and street-works lookups from a terminal.

Runs the same core/pipeline.py calls as the REST API, without the origin
gate or rate limiters. Output is JSON on stdout; errors go to stderr.

Usage:
  python main.py resolve "8 Boulevard du Port, 80000 Amiens"
  python main.py reverse 48.8566 2.3522
  python main.py companies "12 rue de Rivoli, 75004 Paris"
  python main.py bdtopo "12 rue de Rivoli, 75004 Paris"
  python main.py streetworks --arrondissement 75011 --active-only --limit 20

Environment variables:
  INSEE_API_KEY   Required for real results from the companies command.
                  Without it the command returns an empty list and a message.
"""

import argparse
import json
import sys
from dataclasses import asdict
from typing import Any, Optional

from core.address import AddressResolver, Found, NotFound
from core.config import get_settings
from core.errors import ServiceError
from core.pipeline import (
    MAX_STREET_WORKS_LIMIT,
    build_street_works_params,
    describe_location,
    find_companies,
    find_road_sections,
    list_street_works,
)


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _cmd_resolve(args: argparse.Namespace) -> int:
    result = AddressResolver().resolve(args.address)
    if isinstance(result, Found):
        _print_json({"address": args.address, "banId": result.address_id})
        return 0
    if isinstance(result, NotFound):
        print(f"  [!] No BAN match for '{args.address}'.", file=sys.stderr)
        return 1
    print(f"  [!] Address service unavailable: {result.detail}", file=sys.stderr)
    return 2


def _cmd_reverse(args: argparse.Namespace) -> int:
    _print_json({"address": describe_location(args.lat, args.lon)})
    return 0


def _cmd_companies(args: argparse.Namespace) -> int:
    search = find_companies(args.address, AddressResolver(), get_settings().insee_api_key)
    _print_json(asdict(search))
    return 0


def _cmd_bdtopo(args: argparse.Namespace) -> int:
    sections = find_road_sections(args.address, AddressResolver())
    _print_json(asdict(sections))
    return 0


def _cmd_streetworks(args: argparse.Namespace) -> int:
    params = build_street_works_params(
        limit=args.limit,
        offset=args.offset,
        arrondissement=args.arrondissement,
        date_debut=args.date_debut,
        date_fin=args.date_fin,
        active_only=args.active_only,
    )
    _print_json(asdict(list_street_works(params)))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="datawatchman",
        description="French address resolution, business registry and Paris street works lookups.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py resolve "8 Boulevard du Port, 80000 Amiens"
  python main.py reverse 48.8566 2.3522
  INSEE_API_KEY=your-key python main.py companies "12 rue de Rivoli, 75004 Paris"
  python main.py streetworks --arrondissement 75011 --active-only
        """,
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p = sub.add_parser("resolve", help="Resolve a free-text address to its BAN identifier")
    p.add_argument("address", help="Full address, e.g. '8 Boulevard du Port, 80000 Amiens'")
    p.set_defaults(func=_cmd_resolve)

    p = sub.add_parser("reverse", help="Postal label of the address nearest to a point")
    p.add_argument("lat", type=float, help="Latitude (WGS84)")
    p.add_argument("lon", type=float, help="Longitude (WGS84)")
    p.set_defaults(func=_cmd_reverse)

    p = sub.add_parser("companies", help="Active employer establishments on an address's street")
    p.add_argument("address")
    p.set_defaults(func=_cmd_companies)

    p = sub.add_parser("bdtopo", help="BD TOPO road sections for an address's street")
    p.add_argument("address")
    p.set_defaults(func=_cmd_bdtopo)

    p = sub.add_parser("streetworks", help="Paris street works, filtered")
    p.add_argument("--arrondissement", metavar="POSTCODE", help="5-digit Paris postcode, e.g. 75011")
    p.add_argument("--from", dest="date_debut", metavar="YYYY-MM-DD", help="Works starting on or after")
    p.add_argument("--to", dest="date_fin", metavar="YYYY-MM-DD", help="Works ending on or before")
    p.add_argument("--active-only", action="store_true", help="Only works in progress today")
    p.add_argument(
        "--limit",
        type=int,
        default=MAX_STREET_WORKS_LIMIT,
        help=f"Page size, 1-{MAX_STREET_WORKS_LIMIT} (default: {MAX_STREET_WORKS_LIMIT})",
    )
    p.add_argument("--offset", type=int, default=None)
    p.set_defaults(func=_cmd_streetworks)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not getattr(args, "func", None):
        parser.print_help()
        return 0
    try:
        return args.func(args)
    except ServiceError as exc:
        print(f"  [!] {exc.public_message} ({exc.code})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
