"""Input adapters: addon export decoding, reconciliation and enrichment."""

from .export import (
    EXPORT_MARKER,
    ExportParseResult,
    extract_payload,
    load_export_file,
    max_last_online,
    parse_export,
    unescape_lua_string,
)
from .raiderio import RaiderIOClient, RaiderIOGuild, enrich_members
from .reconcile import (
    MergeChange,
    MergePreview,
    coerce_members,
    merge_preview_from_json,
    reconcile,
)

__all__ = [
    "EXPORT_MARKER",
    "ExportParseResult",
    "MergeChange",
    "MergePreview",
    "RaiderIOClient",
    "RaiderIOGuild",
    "coerce_members",
    "enrich_members",
    "extract_payload",
    "load_export_file",
    "max_last_online",
    "merge_preview_from_json",
    "parse_export",
    "reconcile",
    "unescape_lua_string",
]
