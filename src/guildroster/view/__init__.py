"""Roster table view state."""

from .state import DEFAULT_COLUMNS, ColumnConfig, RosterViewState, format_last_online

__all__ = ["DEFAULT_COLUMNS", "ColumnConfig", "RosterViewState", "format_last_online"]
