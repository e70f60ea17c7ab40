"""Canonical roster models shared across ingestion, storage and query layers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


Role = Literal["Tank", "DPS", "Healer"]

ROLES: tuple[str, ...] = ("Tank", "Healer", "DPS")

LEGACY_VERSION = "1.0.0"


class RosterMember(BaseModel):
    """One guild character as exported by the addon.

    Attribute names are snake_case; the JSON wire format keeps the addon's
    camelCase keys. Keys the model does not know about (``zone`` variants,
    future addon fields) are kept verbatim.
    """

    name: str = Field(..., min_length=1)
    class_name: str = Field(default="", alias="class")
    level: int = 0
    rank_name: str = Field(default="", alias="rankName")
    rank_index: int = Field(default=0, alias="rankIndex")
    zone: Optional[str] = None
    note: str = ""
    officer_note: str = Field(default="", alias="officerNote")
    status: int = 0
    class_file_name: str = Field(default="", alias="classFileName")
    achievement_points: int = Field(default=0, alias="achievementPoints")
    achievement_rank: int = Field(default=0, alias="achievementRank")
    last_online: int = Field(default=0, alias="lastOnline")
    realm_name: str = Field(default="", alias="realmName")
    main_spec: Optional[str] = Field(default=None, alias="mainSpec")
    main_role: Optional[Role] = Field(default=None, alias="mainRole")
    rio_mythic_plus_score: Optional[float] = Field(default=None, alias="rioMythicPlusScore")
    rio_raid_progress: Optional[str] = Field(default=None, alias="rioRaidProgress")
    rio_active_spec_name: Optional[str] = Field(default=None, alias="rioActiveSpecName")
    rio_active_spec_role: Optional[str] = Field(default=None, alias="rioActiveSpecRole")
    rio_profile_url: Optional[str] = Field(default=None, alias="rioProfileUrl")
    rio_last_crawled: Optional[str] = Field(default=None, alias="rioLastCrawled")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="allow")

    def get(self, key: str, default: Any = None) -> Any:
        """Look up a value by its wire name (``rankName``) or attribute name."""

        attr = _ATTRIBUTE_BY_ALIAS.get(key, key)
        if attr in type(self).model_fields:
            return getattr(self, attr)
        extra = self.model_extra or {}
        return extra.get(key, default)

    def identity(self) -> tuple[str, str]:
        return self.name, self.realm_name

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


_ATTRIBUTE_BY_ALIAS: Dict[str, str] = {
    (info.alias or attr): attr for attr, info in RosterMember.model_fields.items()
}


class RosterData(BaseModel):
    """Persisted roster aggregate."""

    version: str = LEGACY_VERSION
    last_updated: int = Field(default=0, alias="lastUpdated", ge=0)
    members: List[RosterMember] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_json(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated,
            "members": [member.to_json() for member in self.members],
        }


def roster_version(now: datetime | None = None) -> str:
    """Return the ``YYYY.MM.DD`` version stamp written on every save."""

    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y.%m.%d")
