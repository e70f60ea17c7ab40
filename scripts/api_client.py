"""Lightweight REST client for the guildroster API."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

import httpx


def build_filters(entries: list[str]) -> list[dict[str, object]]:
    filters: list[dict[str, object]] = []
    for index, entry in enumerate(entries, start=1):
        parts = entry.split(":", 2)
        if len(parts) < 2:
            raise SystemExit(f"Invalid filter '{entry}', expected field:operator[:value]")
        filters.append(
            {
                "id": index,
                "field": parts[0],
                "operator": parts[1],
                "value": parts[2] if len(parts) == 3 else "",
            }
        )
    return filters


def main() -> None:
    parser = argparse.ArgumentParser(description="Interact with the guildroster REST API")
    parser.add_argument("base_url", help="Base URL of the API, e.g. http://localhost:8000")
    parser.add_argument("--check", action="store_true", help="Check the addon export for a newer roster")
    parser.add_argument("--apply", action="store_true", help="Merge the addon export into the roster")
    parser.add_argument("--preview", type=Path, metavar="JSON", help="Preview merging a roster JSON file")
    parser.add_argument("--filter", action="append", default=[], metavar="FIELD:OPERATOR[:VALUE]")
    parser.add_argument("--any", action="store_true", help="Match any filter instead of all")
    parser.add_argument("--sort", default="name", help="Sort key for the query")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--set-spec", nargs=2, metavar=("NAME", "SPEC"), help="Assign a main spec")
    args = parser.parse_args()

    with httpx.Client(base_url=args.base_url) as client:
        if args.check:
            resp = client.get("/roster/updates")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.apply:
            resp = client.post("/roster/updates")
            resp.raise_for_status()
            print(json.dumps(resp.json(), indent=2))
            return

        if args.preview:
            resp = client.post("/roster/merge-preview", json={"jsonText": args.preview.read_text()})
            if resp.status_code == 400:
                raise SystemExit(f"merge rejected: {resp.json()['detail']}")
            resp.raise_for_status()
            preview = resp.json()
            for change in preview["changes"]:
                print(f"{change['name']}: {change['message']}")
            print(f"{preview['rolesPreserved']} roles kept, {preview['newPlayers']} new players")
            return

        if args.set_spec:
            name, spec = args.set_spec
            resp = client.post(f"/roster/members/{name}/spec", json={"mainSpec": spec})
            if resp.status_code == 404:
                raise SystemExit(f"member {name} not found")
            resp.raise_for_status()
            print(json.dumps(resp.json()["member"], indent=2))
            return

        query = {
            "filters": build_filters(args.filter),
            "matchAll": not args.any,
            "sortKey": args.sort,
            "sortDirection": "desc" if args.desc else "asc",
        }
        resp = client.post("/roster/query", json=query)
        resp.raise_for_status()
        payload = resp.json()
        print(f"{payload['matched']}/{payload['total']} members", json.dumps(payload["roleCounts"]))
        for member in payload["members"]:
            print(f"{member['name']:<14} {member.get('level', 0):>3} {member.get('class', '')}")


if __name__ == "__main__":
    main()
