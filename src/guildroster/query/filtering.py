"""Filter, sort and summarize roster members in memory."""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from functools import cmp_to_key
from typing import Any, Dict, Iterable, List, Literal, Optional, Sequence, Union

from guildroster.models import ROLES, RosterMember


FilterField = Literal[
    "name",
    "class",
    "level",
    "rankName",
    "mainSpec",
    "mainRole",
    "zone",
    "note",
    "officerNote",
    "realmName",
    "achievementPoints",
    "rioMythicPlusScore",
    "lastOnline",
    "daysOffline",
]

FilterOperator = Literal[
    "equals",
    "notEquals",
    "contains",
    "notContains",
    "startsWith",
    "endsWith",
    "greaterThan",
    "lessThan",
    "greaterThanOrEqual",
    "lessThanOrEqual",
    "isEmpty",
    "isNotEmpty",
]

SortDirection = Literal["asc", "desc"]

DAYS_OFFLINE = "daysOffline"
NEVER_ONLINE = -1
_MS_PER_DAY = 86_400_000

NUMERIC_FIELDS = frozenset({"level", "achievementPoints", "rioMythicPlusScore", "daysOffline"})


@dataclass(frozen=True)
class RosterFilter:
    """Single field/operator/value predicate."""

    id: int
    field: str
    operator: str
    value: Union[str, int, float] = ""


def days_offline(last_online: Optional[int], *, now: Optional[float] = None) -> int:
    """Whole days since ``last_online``; -1 when the member was never seen."""

    if not last_online:
        return NEVER_ONLINE
    now_ms = (time.time() if now is None else now) * 1000
    return math.floor((now_ms - last_online * 1000) / _MS_PER_DAY)


def field_value(member: RosterMember, field: str, *, now: Optional[float] = None) -> Any:
    if field == DAYS_OFFLINE:
        return days_offline(member.last_online, now=now)
    return member.get(field)


def is_empty_value(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def _compare_numbers(operator: str, left: float, right: float) -> bool:
    if operator == "equals":
        return left == right
    if operator == "notEquals":
        return left != right
    if operator == "greaterThan":
        return left > right
    if operator == "lessThan":
        return left < right
    if operator == "greaterThanOrEqual":
        return left >= right
    if operator == "lessThanOrEqual":
        return left <= right
    # contains/startsWith/endsWith have no numeric meaning.
    return False


def _compare_strings(operator: str, left: str, right: str) -> bool:
    if operator == "equals":
        return left == right
    if operator == "notEquals":
        return left != right
    if operator == "contains":
        return right in left
    if operator == "notContains":
        return right not in left
    if operator == "startsWith":
        return left.startswith(right)
    if operator == "endsWith":
        return left.endswith(right)
    # Ordering operators only apply to numeric fields.
    return False


def member_matches_filter(
    member: RosterMember,
    roster_filter: RosterFilter,
    *,
    now: Optional[float] = None,
) -> bool:
    value = field_value(member, roster_filter.field, now=now)
    empty = is_empty_value(value)

    if roster_filter.operator == "isEmpty":
        return empty
    if roster_filter.operator == "isNotEmpty":
        return not empty
    if empty:
        return False

    if roster_filter.field in NUMERIC_FIELDS:
        left = _to_number(value)
        right = _to_number(roster_filter.value)
        if left is None or right is None:
            return False
        return _compare_numbers(roster_filter.operator, left, right)

    return _compare_strings(
        roster_filter.operator,
        str(value).lower(),
        str(roster_filter.value).lower(),
    )


def apply_filters(
    members: Sequence[RosterMember],
    filters: Sequence[RosterFilter],
    match_all: bool = True,
    *,
    now: Optional[float] = None,
) -> List[RosterMember]:
    """Members passing every filter (``match_all``) or at least one."""

    if not filters:
        return list(members)

    combine = all if match_all else any
    return [
        member
        for member in members
        if combine(member_matches_filter(member, f, now=now) for f in filters)
    ]


def _compare_values(left: Any, right: Any) -> int:
    if isinstance(left, str) and isinstance(right, str):
        left_key, right_key = left.lower(), right.lower()
    elif _is_number(left) and _is_number(right):
        left_key, right_key = left, right
    else:
        return 0
    if left_key < right_key:
        return -1
    if left_key > right_key:
        return 1
    return 0


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def sort_members(
    members: Sequence[RosterMember],
    field: str = "name",
    direction: SortDirection = "asc",
    *,
    now: Optional[float] = None,
) -> List[RosterMember]:
    """Return a new, stably sorted list.

    Members without a value for ``field`` always go last, in input order,
    whichever direction is requested.
    """

    present: List[tuple[Any, RosterMember]] = []
    missing: List[RosterMember] = []
    for member in members:
        value = field_value(member, field, now=now)
        if value is None:
            missing.append(member)
        else:
            present.append((value, member))

    sign = -1 if direction == "desc" else 1
    present.sort(key=cmp_to_key(lambda a, b: sign * _compare_values(a[0], b[0])))
    return [member for _, member in present] + missing


def role_counts(members: Iterable[RosterMember]) -> Dict[str, int]:
    counts = {role: 0 for role in ROLES}
    for member in members:
        if member.main_role:
            counts[member.main_role] = counts.get(member.main_role, 0) + 1
    return counts


def class_counts(members: Iterable[RosterMember]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for member in members:
        counts[member.class_name] = counts.get(member.class_name, 0) + 1
    return counts


FILTER_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "Name"),
    ("class", "Class"),
    ("level", "Level"),
    ("rankName", "Rank"),
    ("mainSpec", "Spec"),
    ("mainRole", "Role"),
    ("zone", "Zone"),
    ("note", "Note"),
    ("officerNote", "Officer Note"),
    ("realmName", "Realm"),
    ("achievementPoints", "Achievement Points"),
    ("rioMythicPlusScore", "M+ Score"),
    ("lastOnline", "Last Online"),
    ("daysOffline", "Days Offline"),
)

FILTER_OPERATORS: tuple[tuple[str, str], ...] = (
    ("equals", "Equals"),
    ("notEquals", "Not Equals"),
    ("contains", "Contains"),
    ("notContains", "Does Not Contain"),
    ("startsWith", "Starts With"),
    ("endsWith", "Ends With"),
    ("greaterThan", "Greater Than"),
    ("lessThan", "Less Than"),
    ("greaterThanOrEqual", "Greater Than Or Equal"),
    ("lessThanOrEqual", "Less Than Or Equal"),
    ("isEmpty", "Is Empty"),
    ("isNotEmpty", "Is Not Empty"),
)


__all__ = [
    "DAYS_OFFLINE",
    "FILTER_FIELDS",
    "FILTER_OPERATORS",
    "NUMERIC_FIELDS",
    "FilterField",
    "FilterOperator",
    "RosterFilter",
    "SortDirection",
    "apply_filters",
    "class_counts",
    "days_offline",
    "field_value",
    "is_empty_value",
    "member_matches_filter",
    "role_counts",
    "sort_members",
]
