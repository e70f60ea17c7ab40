"""Raider.IO guild lookups and roster enrichment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple

import httpx

from guildroster.config import RAIDERIO_ROLE_MAP
from guildroster.errors import RaiderIOError
from guildroster.models import RosterMember


logger = logging.getLogger(__name__)

RAIDERIO_BASE_URL = "https://raider.io"
_GUILD_PROFILE_PATH = "/api/v1/guilds/profile"


@dataclass(frozen=True)
class RaiderIOGuild:
    members: List[dict]
    last_crawled_at: Optional[str]


class RaiderIOClient:
    """Thin wrapper over the guild profile endpoint."""

    def __init__(
        self,
        api_key: str,
        *,
        region: str,
        realm: str,
        guild: str,
        base_url: str = RAIDERIO_BASE_URL,
        transport: httpx.BaseTransport | None = None,
        timeout: float = 10.0,
    ):
        if not api_key:
            raise RaiderIOError("RAIDERIO_API_KEY not configured")
        self.api_key = api_key
        self.region = region
        self.realm = realm
        self.guild = guild
        self._client = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "RaiderIOClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def fetch_guild_members(self) -> RaiderIOGuild:
        params = {
            "access_key": self.api_key,
            "region": self.region,
            "realm": self.realm,
            "name": self.guild,
            "fields": "members",
        }
        try:
            resp = self._client.get(_GUILD_PROFILE_PATH, params=params)
        except httpx.HTTPError as exc:
            raise RaiderIOError(f"Raider.IO request failed: {exc}") from exc

        if resp.is_error:
            raise RaiderIOError(f"Raider.IO API error: {resp.status_code} {resp.reason_phrase}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise RaiderIOError("Invalid response from Raider.IO API") from exc

        members = data.get("members") if isinstance(data, dict) else None
        if not isinstance(members, list):
            raise RaiderIOError("Invalid response from Raider.IO API")

        logger.info("Fetched %d members from Raider.IO", len(members))
        return RaiderIOGuild(members=members, last_crawled_at=data.get("last_crawled_at"))


def _rio_lookup(rio_members: Sequence[Mapping[str, Any]]) -> dict[str, dict[str, Any]]:
    lookup: dict[str, dict[str, Any]] = {}
    for entry in rio_members:
        character = entry.get("character") if isinstance(entry, Mapping) else None
        if not isinstance(character, Mapping) or not character.get("name"):
            continue
        lookup[str(character["name"]).lower()] = {
            "rio_active_spec_name": character.get("active_spec_name"),
            "rio_active_spec_role": character.get("active_spec_role"),
            "rio_profile_url": character.get("profile_url"),
            "rio_last_crawled": character.get("last_crawled_at"),
        }
    return lookup


def enrich_members(
    members: Sequence[RosterMember],
    rio_members: Sequence[Mapping[str, Any]],
) -> Tuple[List[RosterMember], int, int, int]:
    """Copy Raider.IO fields onto matching members.

    Returns ``(members, updated_count, role_updated_count, rio_members_found)``.
    Assigned ``mainRole``/``mainSpec`` values are never replaced.
    """

    lookup = _rio_lookup(rio_members)
    updated: List[RosterMember] = []
    updated_count = 0
    role_updated_count = 0

    for member in members:
        rio = lookup.get(member.name.lower())
        if rio is None:
            updated.append(member)
            continue

        updated_count += 1
        update = dict(rio)
        if not member.main_role and rio["rio_active_spec_role"]:
            mapped = RAIDERIO_ROLE_MAP.get(str(rio["rio_active_spec_role"]).upper())
            if mapped:
                update["main_role"] = mapped
                role_updated_count += 1
        if not member.main_spec and rio["rio_active_spec_name"]:
            update["main_spec"] = rio["rio_active_spec_name"]
        updated.append(member.model_copy(update=update))

    return updated, updated_count, role_updated_count, len(lookup)
