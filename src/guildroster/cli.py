"""Command-line interface for importing and inspecting the guild roster."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from guildroster.config import RosterSettings
from guildroster.errors import RaiderIOError
from guildroster.ingest import RaiderIOClient
from guildroster.persistence import FileRosterStore, build_store
from guildroster.query import RosterFilter, apply_filters, role_counts, sort_members
from guildroster.service import RosterService
from guildroster.view import format_last_online


_DEFAULT_COLUMNS = ("name", "level", "class", "mainSpec", "mainRole", "rankName", "lastOnline")


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage the guild roster")
    parser.add_argument("--data-dir", type=Path, default=None, help="Directory holding roster.json")
    parser.add_argument("--roster", type=Path, default=None, help="Roster JSON path override")
    parser.add_argument("--export", type=Path, default=None, help="Addon export (.lua) path override")
    parser.add_argument("--load-profile", type=Path, default=None, help="Load settings JSON")
    parser.add_argument("--save-profile", type=Path, default=None, help="Save resolved settings JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="List roster members")
    show.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="FIELD:OPERATOR[:VALUE]",
        help="Filter such as level:greaterThan:79 (repeatable)",
    )
    show.add_argument("--any", action="store_true", help="Match any filter instead of all")
    show.add_argument("--sort", default="name", help="Field to sort by")
    show.add_argument("--desc", action="store_true", help="Sort descending")
    show.add_argument(
        "--columns",
        default=",".join(_DEFAULT_COLUMNS),
        help="Comma-separated columns to print",
    )
    show.add_argument("--json", action="store_true", help="Print members as JSON")

    sub.add_parser("check", help="Compare the addon export against the stored roster")
    sub.add_parser("apply", help="Merge the addon export into the stored roster")
    sub.add_parser("enrich", help="Pull spec/role data from Raider.IO")
    sub.add_parser("snapshots", help="List historical roster snapshots")
    return parser.parse_args(argv)


def _parse_filters(entries: list[str]) -> list[RosterFilter]:
    filters: list[RosterFilter] = []
    for index, entry in enumerate(entries, start=1):
        parts = entry.split(":", 2)
        if len(parts) < 2:
            raise ValueError(f"Invalid filter '{entry}', expected field:operator[:value]")
        field, operator = parts[0].strip(), parts[1].strip()
        value = parts[2] if len(parts) == 3 else ""
        filters.append(RosterFilter(id=index, field=field, operator=operator, value=value))
    return filters


def _resolve_settings(args: argparse.Namespace) -> RosterSettings:
    settings = RosterSettings.load(args.load_profile) if args.load_profile else RosterSettings.from_env()
    if args.data_dir:
        settings = RosterSettings.for_directory(
            args.data_dir,
            store_mode=settings.store_mode,
            raiderio_api_key=settings.raiderio_api_key,
            raiderio_region=settings.raiderio_region,
            raiderio_realm=settings.raiderio_realm,
            raiderio_guild=settings.raiderio_guild,
        )
    overrides = {}
    if args.roster:
        overrides["roster_path"] = args.roster
    if args.export:
        overrides["export_path"] = args.export
    if overrides:
        settings = replace(settings, **overrides)
    return settings


def _format_cell(member, column: str) -> str:
    if column == "lastOnline":
        return format_last_online(member.last_online)
    value = member.get(column)
    return "-" if value in (None, "") else str(value)


def _print_table(members, columns: Sequence[str]) -> None:
    rows = [[_format_cell(member, column) for column in columns] for member in members]
    widths = [
        max([len(column)] + [len(row[idx]) for row in rows]) for idx, column in enumerate(columns)
    ]
    print("  ".join(column.ljust(width) for column, width in zip(columns, widths)))
    for row in rows:
        print("  ".join(cell.ljust(width) for cell, width in zip(row, widths)))


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    settings = _resolve_settings(args)
    if args.save_profile:
        settings.save(args.save_profile)
        print(f"Saved settings profile to {args.save_profile}")

    store = build_store(settings)
    service = RosterService(store, settings.export_path)

    if args.command == "show":
        try:
            filters = _parse_filters(args.filter)
        except ValueError as exc:
            print(exc, file=sys.stderr)
            return 2
        members = service.get_roster().members
        selected = apply_filters(members, filters, match_all=not args.any)
        ordered = sort_members(selected, args.sort, "desc" if args.desc else "asc")
        if args.json:
            print(json.dumps([member.to_json() for member in ordered], indent=2))
            return 0
        columns = [column.strip() for column in args.columns.split(",") if column.strip()]
        _print_table(ordered, columns)
        counts = role_counts(ordered)
        print(
            f"{len(ordered)}/{len(members)} members "
            f"(Tank {counts['Tank']}, Healer {counts['Healer']}, DPS {counts['DPS']})"
        )
        return 0

    if args.command == "check":
        check = service.check_for_updates()
        if check.error:
            print(f"Update check failed: {check.error}")
            return 1
        status = "Update available" if check.has_update else "Roster is up to date"
        print(
            f"{status}: export lastUpdated={check.lua_last_updated}, "
            f"stored lastUpdated={check.current_last_updated}"
        )
        return 0

    if args.command == "apply":
        result = service.apply_update()
        if not result.success:
            print(f"Update failed: {result.error}")
            return 1
        print(
            f"Imported {result.member_count} members "
            f"({result.roles_preserved} roles kept, {result.new_players} new)"
        )
        if result.historical_snapshot_saved:
            print("Historical snapshot saved")
        return 0

    if args.command == "enrich":
        try:
            client = RaiderIOClient(
                settings.raiderio_api_key or "",
                region=settings.raiderio_region,
                realm=settings.raiderio_realm,
                guild=settings.raiderio_guild,
            )
        except RaiderIOError as exc:
            print(f"Raider.IO unavailable: {exc}")
            return 1
        with client:
            enrichment = service.apply_raiderio(client)
        if not enrichment.success:
            print(f"Raider.IO update failed: {enrichment.error}")
            return 1
        print(
            f"Updated {enrichment.updated_count}/{enrichment.total_members} members "
            f"({enrichment.role_updated_count} roles filled)"
        )
        return 0

    if args.command == "snapshots":
        if not isinstance(store, FileRosterStore):
            print("Snapshots are only kept for file-backed rosters")
            return 1
        for key in store.list_snapshots():
            print(key)
        return 0

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
