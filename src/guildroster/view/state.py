"""Observable roster table state with derived filtered and sorted views."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Optional, Sequence

from guildroster.ingest.reconcile import MergePreview, merge_preview_from_json
from guildroster.models import ROLES, RosterData, RosterMember, roster_version
from guildroster.query import (
    DAYS_OFFLINE,
    RosterFilter,
    SortDirection,
    apply_filters,
    class_counts,
    days_offline,
    role_counts,
    sort_members,
)


logger = logging.getLogger(__name__)

Listener = Callable[["RosterViewState", str], None]


@dataclass(frozen=True)
class ColumnConfig:
    key: str
    label: str
    visible: bool = True
    always_visible: bool = False
    sortable: bool = True


DEFAULT_COLUMNS: tuple[ColumnConfig, ...] = (
    ColumnConfig("name", "Name", always_visible=True),
    ColumnConfig("level", "Level"),
    ColumnConfig("class", "Class"),
    ColumnConfig("mainSpec", "Spec"),
    ColumnConfig("mainRole", "Role"),
    ColumnConfig("rankName", "Rank"),
    ColumnConfig("note", "Note"),
    ColumnConfig("lastOnline", "Last Online"),
    ColumnConfig("zone", "Zone"),
    ColumnConfig("achievementPoints", "Achievement Points"),
    ColumnConfig("daysOffline", "Days Offline"),
    ColumnConfig("realmName", "Realm"),
    ColumnConfig("rioMythicPlusScore", "M+ Score", visible=False),
    ColumnConfig("rioRaidProgress", "Raid Progress", visible=False),
    ColumnConfig("rioLastCrawled", "Last Crawled", visible=False),
)


def format_last_online(last_online: Optional[int], *, now: Optional[float] = None) -> str:
    if not last_online:
        return "Never"
    days = days_offline(last_online, now=now)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 7:
        return f"{days} days ago"
    if days < 30:
        return f"{days // 7} weeks ago"
    if days < 365:
        return f"{days // 30} months ago"
    return f"{days // 365} years ago"


class RosterViewState:
    """Roster table aggregate.

    Fields are only changed through the named operations below; each one bumps
    a revision counter and notifies subscribers. Derived views are recomputed
    lazily on read and cached per revision.
    """

    def __init__(
        self,
        members: Sequence[RosterMember] = (),
        last_updated: int = 0,
        *,
        clock: Callable[[], float] = time.time,
    ):
        self._clock = clock
        self._roster: List[RosterMember] = list(members)
        self._last_updated = last_updated
        self._filters: List[RosterFilter] = []
        self._match_all = False
        self._filters_enabled = True
        self._sort_key = "name"
        self._sort_direction: SortDirection = "asc"
        self._columns: List[ColumnConfig] = list(DEFAULT_COLUMNS)
        self._is_typing = False
        self._new_roster_json = ""
        self._merge_error: Optional[str] = None
        self._merge_preview: Optional[MergePreview] = None
        self._revision = 0
        self._cache: Dict[str, tuple[int, Any]] = {}
        self._listeners: List[Listener] = []

    # Read-only fields

    @property
    def roster(self) -> List[RosterMember]:
        return list(self._roster)

    @property
    def last_updated(self) -> int:
        return self._last_updated

    @property
    def filters(self) -> List[RosterFilter]:
        return list(self._filters)

    @property
    def match_all(self) -> bool:
        return self._match_all

    @property
    def filters_enabled(self) -> bool:
        return self._filters_enabled

    @property
    def sort_key(self) -> str:
        return self._sort_key

    @property
    def sort_direction(self) -> SortDirection:
        return self._sort_direction

    @property
    def columns(self) -> List[ColumnConfig]:
        return list(self._columns)

    @property
    def is_typing(self) -> bool:
        return self._is_typing

    @property
    def new_roster_json(self) -> str:
        return self._new_roster_json

    @property
    def merge_error(self) -> Optional[str]:
        return self._merge_error

    @property
    def merge_preview(self) -> Optional[MergePreview]:
        return self._merge_preview

    @property
    def revision(self) -> int:
        return self._revision

    # Derived values

    def _derived(self, name: str, compute: Callable[[], Any]) -> Any:
        cached = self._cache.get(name)
        if cached is not None and cached[0] == self._revision:
            return cached[1]
        value = compute()
        self._cache[name] = (self._revision, value)
        return value

    @property
    def visible_columns(self) -> List[ColumnConfig]:
        return self._derived(
            "visible_columns", lambda: [col for col in self._columns if col.visible]
        )

    @property
    def filtered_roster(self) -> List[RosterMember]:
        def compute() -> List[RosterMember]:
            if not self._filters_enabled or not self._filters:
                return list(self._roster)
            return apply_filters(self._roster, self._filters, self._match_all, now=self._clock())

        return self._derived("filtered_roster", compute)

    @property
    def sorted_roster(self) -> List[RosterMember]:
        return self._derived(
            "sorted_roster",
            lambda: sort_members(
                self.filtered_roster,
                self._sort_key,
                self._sort_direction,
                now=self._clock(),
            ),
        )

    @property
    def role_counts(self) -> Dict[str, int]:
        return self._derived("role_counts", lambda: role_counts(self.filtered_roster))

    @property
    def class_counts(self) -> Dict[str, int]:
        return self._derived("class_counts", lambda: class_counts(self.filtered_roster))

    @property
    def member_count(self) -> int:
        return len(self._roster)

    # Subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(state, event)``; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _changed(self, event: str) -> None:
        self._revision += 1
        for listener in list(self._listeners):
            listener(self, event)

    # Mutations

    def set_roster(self, members: Sequence[RosterMember], last_updated: int) -> None:
        self._roster = list(members)
        self._last_updated = last_updated
        self._changed("roster")

    def update_roster(self, members: Sequence[RosterMember]) -> None:
        self._roster = list(members)
        self._changed("roster")

    def set_is_typing(self, typing: bool) -> None:
        self._is_typing = typing
        self._changed("typing")

    def toggle_sort(self, key: str) -> None:
        if self._sort_key == key:
            self._sort_direction = "desc" if self._sort_direction == "asc" else "asc"
        else:
            self._sort_key = key
            self._sort_direction = "asc"
        self._changed("sort")

    def update_filters(self, filters: Sequence[RosterFilter], match_all: bool) -> None:
        self._filters = list(filters)
        self._match_all = match_all
        self._changed("filters")

    def toggle_filters(self) -> None:
        self._filters_enabled = not self._filters_enabled
        self._changed("filters")

    def set_column_visibility(self, key: str, visible: bool) -> None:
        columns: List[ColumnConfig] = []
        for column in self._columns:
            if column.key == key and not column.always_visible:
                column = replace(column, visible=visible)
            columns.append(column)
        self._columns = columns
        self._changed("columns")

    def reset_columns(self) -> None:
        self._columns = list(DEFAULT_COLUMNS)
        self._changed("columns")

    def _replace_member(self, member: RosterMember, **update: Any) -> None:
        target = member.identity()
        self._roster = [
            m.model_copy(update=update) if m.identity() == target else m for m in self._roster
        ]

    def update_member_spec(self, member: RosterMember, spec: str, role: str) -> None:
        if role not in ROLES:
            raise ValueError(f"Unknown role {role!r}; expected one of {', '.join(ROLES)}")
        self._replace_member(member, main_spec=spec, main_role=role)
        self._changed("roster")

    def update_member_note(self, member: RosterMember, note: str) -> None:
        self._replace_member(member, note=note)
        self._changed("roster")

    def set_new_roster_json(self, text: str) -> None:
        self._new_roster_json = text
        self._changed("merge")

    def merge_rosters(
        self,
        candidate_json: Optional[str] = None,
        new_last_updated: Optional[int] = None,
    ) -> Optional[MergePreview]:
        """Build a merge preview from pasted JSON.

        With no explicit timestamp and an empty import, the preview keeps the
        current ``last_updated``.
        """

        if candidate_json is not None:
            self._new_roster_json = candidate_json
        self._merge_error = None
        preview, error = merge_preview_from_json(
            self._roster,
            self._new_roster_json,
            last_updated=new_last_updated or None,
            fallback_last_updated=self._last_updated,
        )
        if error is not None:
            logger.debug("Merge preview rejected: %s", error)
            self._merge_error = error
            self._merge_preview = None
        else:
            self._merge_preview = preview
        self._changed("merge")
        return preview

    def apply_merge(self) -> bool:
        if self._merge_preview is None:
            return False
        self._roster = list(self._merge_preview.merged)
        self._last_updated = self._merge_preview.last_updated
        self._merge_preview = None
        self._merge_error = None
        self._new_roster_json = ""
        self._changed("roster")
        return True

    def cancel_merge(self) -> None:
        self._merge_preview = None
        self._merge_error = None
        self._changed("merge")

    # Helpers

    def export_data(self) -> RosterData:
        return RosterData(
            version=roster_version(),
            last_updated=self._last_updated,
            members=list(self._roster),
        )

    def cell_value(self, member: RosterMember, key: str) -> Any:
        if key == DAYS_OFFLINE:
            return days_offline(member.last_online, now=self._clock())
        return member.get(key)

    def format_last_online(self, last_online: Optional[int]) -> str:
        return format_last_online(last_online, now=self._clock())
