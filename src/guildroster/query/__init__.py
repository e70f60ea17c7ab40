"""Stateless roster query helpers (filtering, sorting, counts)."""

from .filtering import (
    DAYS_OFFLINE,
    FILTER_FIELDS,
    FILTER_OPERATORS,
    NUMERIC_FIELDS,
    FilterField,
    FilterOperator,
    RosterFilter,
    SortDirection,
    apply_filters,
    class_counts,
    days_offline,
    field_value,
    is_empty_value,
    member_matches_filter,
    role_counts,
    sort_members,
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
