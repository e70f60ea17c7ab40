"""Query/command boundary over the roster store and addon export."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Iterable, Mapping, Optional

from pydantic import ValidationError

from guildroster.config import get_role_for_spec
from guildroster.errors import RaiderIOError, RosterError, RosterValidationError
from guildroster.ingest import (
    RaiderIOClient,
    coerce_members,
    enrich_members,
    load_export_file,
    max_last_online,
    reconcile,
)
from guildroster.models import ROLES, RosterData, RosterMember, roster_version
from guildroster.persistence import RosterStore


logger = logging.getLogger(__name__)

READ_ONLY_MESSAGE = "Roster editing is only available with a file-backed store"
READ_ONLY_CHECK_MESSAGE = "Only available with a file-backed store"
EMPTY_EXPORT_MESSAGE = "Export contains no members"


@dataclass(frozen=True)
class UpdateCheck:
    has_update: bool
    lua_last_updated: Optional[int] = None
    current_last_updated: Optional[int] = None
    member_count: Optional[int] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ApplyUpdateResult:
    success: bool
    member_count: int = 0
    roles_preserved: int = 0
    new_players: int = 0
    last_updated: Optional[int] = None
    historical_snapshot_saved: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class SaveResult:
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class MemberUpdateResult:
    success: bool
    member: Optional[RosterMember] = None
    not_found: bool = False
    error: Optional[str] = None


@dataclass(frozen=True)
class EnrichmentResult:
    success: bool
    updated_count: int = 0
    role_updated_count: int = 0
    total_members: int = 0
    rio_members_found: int = 0
    last_crawled: Optional[str] = None
    error: Optional[str] = None


class RosterService:
    def __init__(
        self,
        store: RosterStore,
        export_path: Path,
        *,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.export_path = Path(export_path)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def _version(self) -> str:
        return roster_version(self._clock())

    def _current(self) -> Optional[RosterData]:
        if not self.store.exists():
            return None
        return self.store.load()

    def get_roster(self) -> RosterData:
        """Current roster; an absent file reads as an empty roster."""

        current = self._current()
        if current is None:
            logger.warning("Roster file missing; serving an empty roster")
            return RosterData()
        return current

    def _load_export(self) -> tuple[Optional[list[RosterMember]], Optional[str]]:
        try:
            result = load_export_file(self.export_path)
        except RosterError as exc:
            return None, str(exc)
        if not result.ok:
            return None, f"Could not parse export file: {result.message}"
        try:
            return coerce_members(result.members), None
        except RosterValidationError as exc:
            return None, f"Export contains an invalid member: {exc}"

    def check_for_updates(self) -> UpdateCheck:
        if not self.store.writable:
            return UpdateCheck(has_update=False, error=READ_ONLY_CHECK_MESSAGE)

        imported, error = self._load_export()
        if imported is None:
            return UpdateCheck(has_update=False, error=error)

        lua_last_updated = max_last_online(imported)
        if lua_last_updated is None:
            return UpdateCheck(has_update=False, member_count=0, error=EMPTY_EXPORT_MESSAGE)

        try:
            current = self._current()
        except RosterError as exc:
            logger.warning("Error checking for updates: %s", exc)
            return UpdateCheck(has_update=False, error=str(exc))

        current_last_updated = current.last_updated if current else 0
        return UpdateCheck(
            has_update=lua_last_updated > current_last_updated,
            lua_last_updated=lua_last_updated,
            current_last_updated=current_last_updated,
            member_count=len(imported),
        )

    def apply_update(self) -> ApplyUpdateResult:
        """Merge the addon export into the stored roster and persist it."""

        if not self.store.writable:
            return ApplyUpdateResult(success=False, error=READ_ONLY_MESSAGE)

        imported, error = self._load_export()
        if imported is None:
            return ApplyUpdateResult(success=False, error=error)
        if not imported:
            return ApplyUpdateResult(success=False, error=EMPTY_EXPORT_MESSAGE)

        try:
            current = self._current()
            existing = current.members if current else []
            preview = reconcile(
                existing,
                imported,
                fallback_last_updated=current.last_updated if current else 0,
            )
            snapshot_path = self.store.save(
                preview.to_roster_data(version=self._version())
            )
        except RosterError as exc:
            logger.warning("Error updating roster: %s", exc)
            return ApplyUpdateResult(success=False, error=str(exc))

        logger.info(
            "Applied export: %d members, %d roles kept, %d new",
            len(preview.merged),
            preview.roles_preserved,
            preview.new_players,
        )
        return ApplyUpdateResult(
            success=True,
            member_count=len(preview.merged),
            roles_preserved=preview.roles_preserved,
            new_players=preview.new_players,
            last_updated=preview.last_updated,
            historical_snapshot_saved=snapshot_path is not None,
        )

    def save_roster(
        self,
        members: Iterable[Mapping[str, Any] | RosterMember],
        last_updated: int,
    ) -> SaveResult:
        if not self.store.writable:
            return SaveResult(success=False, error=READ_ONLY_MESSAGE)
        try:
            data = RosterData(
                version=self._version(),
                last_updated=last_updated,
                members=coerce_members(members),
            )
        except RosterValidationError as exc:
            return SaveResult(success=False, error=f"Invalid roster payload: {exc}")
        except ValidationError as exc:
            return SaveResult(success=False, error=f"Invalid roster payload: {exc.errors()[0]['msg']}")

        try:
            self.store.save(data)
        except RosterError as exc:
            logger.warning("Error saving roster: %s", exc)
            return SaveResult(success=False, error=str(exc))
        return SaveResult(success=True)

    def update_member_spec(
        self,
        name: str,
        spec: str,
        role: Optional[str] = None,
    ) -> MemberUpdateResult:
        """Assign a main spec (and role, inferred from the class if omitted)."""

        if not self.store.writable:
            return MemberUpdateResult(success=False, error=READ_ONLY_MESSAGE)
        if not name or not spec:
            return MemberUpdateResult(success=False, error="Missing required fields")

        try:
            current = self.get_roster()
        except RosterError as exc:
            return MemberUpdateResult(success=False, error=str(exc))

        index = next((i for i, m in enumerate(current.members) if m.name == name), None)
        if index is None:
            return MemberUpdateResult(success=False, not_found=True, error="Member not found")

        member = current.members[index]
        role = role or get_role_for_spec(member.class_name or member.class_file_name, spec)
        if role not in ROLES:
            return MemberUpdateResult(success=False, error=f"Unknown role for spec {spec!r}")

        updated = member.model_copy(update={"main_spec": spec, "main_role": role})
        members = list(current.members)
        members[index] = updated
        result = self.save_roster(members, current.last_updated)
        if not result.success:
            return MemberUpdateResult(success=False, error=result.error)
        return MemberUpdateResult(success=True, member=updated)

    def apply_raiderio(self, client: RaiderIOClient) -> EnrichmentResult:
        if not self.store.writable:
            return EnrichmentResult(success=False, error=READ_ONLY_MESSAGE)

        try:
            guild = client.fetch_guild_members()
            current = self._current()
        except RaiderIOError as exc:
            logger.warning("Error fetching Raider.IO data: %s", exc)
            return EnrichmentResult(success=False, error=str(exc))
        except RosterError as exc:
            return EnrichmentResult(success=False, error=str(exc))

        if current is None:
            return EnrichmentResult(success=False, error="Roster file not found")

        members, updated_count, role_updated_count, found = enrich_members(
            current.members, guild.members
        )
        last_updated = current.last_updated or int(self._clock().timestamp())
        data = RosterData(version=self._version(), last_updated=last_updated, members=members)
        try:
            self.store.save(data)
        except RosterError as exc:
            logger.warning("Error applying Raider.IO data: %s", exc)
            return EnrichmentResult(success=False, error=str(exc))

        return EnrichmentResult(
            success=True,
            updated_count=updated_count,
            role_updated_count=role_updated_count,
            total_members=len(members),
            rio_members_found=found,
            last_crawled=guild.last_crawled_at,
        )
