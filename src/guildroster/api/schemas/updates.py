from __future__ import annotations

from typing import Any, List, Optional

from .roster import CamelModel


class UpdateCheckResponse(CamelModel):
    has_update: bool
    lua_last_updated: Optional[int] = None
    current_last_updated: Optional[int] = None
    member_count: Optional[int] = None
    error: Optional[str] = None


class ApplyUpdateResponse(CamelModel):
    success: bool
    member_count: int = 0
    roles_preserved: int = 0
    new_players: int = 0
    last_updated: Optional[int] = None
    historical_snapshot_saved: bool = False
    error: Optional[str] = None


class MergePreviewRequest(CamelModel):
    json_text: Optional[str] = None
    lua: Optional[str] = None
    last_updated: Optional[int] = None


class MergeChangeResponse(CamelModel):
    name: str
    class_file_name: str
    message: str


class MergePreviewResponse(CamelModel):
    merged: List[dict[str, Any]]
    roles_preserved: int
    new_players: int
    changes: List[MergeChangeResponse]
    last_updated: int


class EnrichmentResponse(CamelModel):
    success: bool
    updated_count: int = 0
    role_updated_count: int = 0
    total_members: int = 0
    rio_members_found: int = 0
    last_crawled: Optional[str] = None
    error: Optional[str] = None
