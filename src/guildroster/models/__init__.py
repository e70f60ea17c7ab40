"""Roster data models."""

from .member import LEGACY_VERSION, ROLES, Role, RosterData, RosterMember, roster_version

__all__ = [
    "LEGACY_VERSION",
    "ROLES",
    "Role",
    "RosterData",
    "RosterMember",
    "roster_version",
]
