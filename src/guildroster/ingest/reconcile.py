"""Merge a fresh addon import into the stored roster."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from guildroster.errors import RosterValidationError
from guildroster.ingest.export import max_last_online
from guildroster.models import RosterData, RosterMember, roster_version


logger = logging.getLogger(__name__)

NEW_PLAYER_MESSAGE = "New player (no role assigned)"


@dataclass(frozen=True)
class MergeChange:
    name: str
    class_file_name: str
    message: str


@dataclass(frozen=True)
class MergePreview:
    """Dry-run result of a merge; becomes the stored roster when applied."""

    merged: List[RosterMember]
    roles_preserved: int
    new_players: int
    changes: List[MergeChange]
    last_updated: int

    def to_roster_data(self, *, version: str | None = None) -> RosterData:
        return RosterData(
            version=version or roster_version(),
            last_updated=self.last_updated,
            members=list(self.merged),
        )


def coerce_members(raw_members: Iterable[Mapping[str, Any] | RosterMember]) -> List[RosterMember]:
    """Validate raw member dicts, raising RosterValidationError on bad input."""

    members: List[RosterMember] = []
    for index, raw in enumerate(raw_members):
        # Instances may carry unvalidated model_copy updates.
        if isinstance(raw, RosterMember):
            raw = raw.model_dump(by_alias=True, warnings=False)
        try:
            members.append(RosterMember.model_validate(raw))
        except ValidationError as exc:
            error = exc.errors()[0]
            location = ".".join(str(part) for part in error["loc"]) or "member"
            raise RosterValidationError(
                f"member {index}: {location}: {error['msg']}"
            ) from exc
    return members


def reconcile(
    existing: Sequence[RosterMember],
    imported: Sequence[RosterMember],
    *,
    last_updated: Optional[int] = None,
    fallback_last_updated: int = 0,
) -> MergePreview:
    """Full-replace merge that carries ``mainSpec``/``mainRole`` forward by name.

    The imported list replaces the existing one in import order. An explicit
    ``last_updated`` wins; otherwise the newest ``lastOnline`` of the import is
    used, and an empty import falls back to ``fallback_last_updated``.
    """

    existing_roles: dict[str, Tuple[str, str]] = {}
    for member in existing:
        if member.main_spec and member.main_role:
            existing_roles[member.name] = (member.main_spec, member.main_role)

    existing_names = {member.name for member in existing}
    changes: List[MergeChange] = []
    merged: List[RosterMember] = []
    roles_preserved = 0
    new_players = 0

    for member in imported:
        role = existing_roles.get(member.name)
        if role is not None:
            spec, role_name = role
            roles_preserved += 1
            changes.append(
                MergeChange(
                    name=member.name,
                    class_file_name=member.class_file_name,
                    message=f"Kept role: {spec} ({role_name})",
                )
            )
            merged.append(member.model_copy(update={"main_spec": spec, "main_role": role_name}))
            continue

        if member.name not in existing_names:
            new_players += 1
            changes.append(
                MergeChange(
                    name=member.name,
                    class_file_name=member.class_file_name,
                    message=NEW_PLAYER_MESSAGE,
                )
            )
        merged.append(member)

    if last_updated is None:
        newest = max_last_online(imported)
        if newest is None:
            logger.debug("Empty import; keeping lastUpdated=%s", fallback_last_updated)
            last_updated = fallback_last_updated
        else:
            last_updated = newest

    return MergePreview(
        merged=merged,
        roles_preserved=roles_preserved,
        new_players=new_players,
        changes=changes,
        last_updated=last_updated,
    )


def merge_preview_from_json(
    existing: Sequence[RosterMember],
    candidate_json: str,
    *,
    last_updated: Optional[int] = None,
    fallback_last_updated: int = 0,
) -> Tuple[Optional[MergePreview], Optional[str]]:
    """Build a preview from pasted JSON text, returning ``(preview, error)``."""

    try:
        payload = json.loads(candidate_json)
    except json.JSONDecodeError as exc:
        return None, f"Failed to parse JSON: {exc}"

    if not isinstance(payload, list):
        return None, "Invalid JSON: Expected an array of roster members"

    try:
        imported = coerce_members(payload)
    except RosterValidationError as exc:
        return None, f"Invalid roster member: {exc}"

    preview = reconcile(
        existing,
        imported,
        last_updated=last_updated,
        fallback_last_updated=fallback_last_updated,
    )
    return preview, None
