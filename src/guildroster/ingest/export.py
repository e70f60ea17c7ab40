"""Decode the guild addon's Lua saved-variables export."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional

from guildroster.errors import ExportParseError, RosterIOError


logger = logging.getLogger(__name__)

EXPORT_MARKER = '["autoExportSave"] = "'

# A payload ends at `",` followed by the next table key.
_TERMINATOR = '",'
_LOOKAHEAD_CHARS = 8
_NEXT_KEY_PATTERN = re.compile(r"^\s*\[")


@dataclass(frozen=True)
class ExportParseResult:
    """Outcome of decoding an export blob.

    Exactly one of ``members`` / ``error`` is meaningful: ``ok`` tells which.
    """

    members: List[dict] = field(default_factory=list)
    error: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _find_payload_end(text: str, start: int) -> int:
    search_pos = start
    while search_pos < len(text):
        quote_pos = text.find(_TERMINATOR, search_pos)
        if quote_pos == -1:
            break
        lookahead = text[quote_pos + 2 : quote_pos + 2 + _LOOKAHEAD_CHARS]
        if _NEXT_KEY_PATTERN.match(lookahead):
            return quote_pos
        search_pos = quote_pos + 2
    return -1


def unescape_lua_string(raw: str) -> str:
    """Undo the addon's Lua string escaping.

    ``\\n`` markers are formatting only and are dropped. Backslash pairs must
    collapse before quotes are unescaped.
    """

    return raw.replace("\\n", "").replace("\\\\", "\\").replace('\\"', '"')


def extract_payload(text: str) -> str:
    """Return the raw JSON text embedded in ``text`` or raise ExportParseError."""

    start_index = text.find(EXPORT_MARKER)
    if start_index == -1:
        raise ExportParseError(
            ExportParseError.MARKER_NOT_FOUND,
            "Export marker autoExportSave not found",
        )
    payload_start = start_index + len(EXPORT_MARKER)
    payload_end = _find_payload_end(text, payload_start)
    if payload_end == -1:
        raise ExportParseError(
            ExportParseError.TERMINATOR_NOT_FOUND,
            "Could not find the end of the autoExportSave payload",
        )
    return unescape_lua_string(text[payload_start:payload_end])


def parse_export(text: str) -> ExportParseResult:
    """Parse an export blob into member dicts without raising."""

    try:
        payload = extract_payload(text)
        try:
            members = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise ExportParseError(
                ExportParseError.INVALID_JSON,
                f"Export payload is not valid JSON: {exc}",
            ) from None
        if not isinstance(members, list):
            raise ExportParseError(
                ExportParseError.NOT_A_LIST,
                "Export payload is not a list of members",
            )
    except ExportParseError as exc:
        logger.warning("Unable to parse roster export: %s", exc.message)
        return ExportParseResult(error=exc.kind, message=exc.message)

    logger.debug("Parsed %d members from roster export", len(members))
    return ExportParseResult(members=members)


def load_export_file(path: Path) -> ExportParseResult:
    """Read and parse an export file; a missing file raises RosterIOError."""

    if not path.exists():
        raise RosterIOError(f"Export file not found: {path}")
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RosterIOError(f"Unable to read export file {path}: {exc}") from exc
    return parse_export(text)


def max_last_online(members: Iterable[Mapping[str, Any] | Any]) -> Optional[int]:
    """Largest ``lastOnline`` across members, or None for an empty import."""

    values: list[int] = []
    for member in members:
        if isinstance(member, Mapping):
            raw = member.get("lastOnline")
        else:
            raw = getattr(member, "last_online", None)
        try:
            values.append(int(raw or 0))
        except (TypeError, ValueError):
            values.append(0)
    if not values:
        return None
    return max(values)
