"""Persistence strategies for the roster file and its historical snapshots."""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional

from pydantic import ValidationError

from guildroster.config import RosterSettings
from guildroster.errors import RosterFormatError, RosterIOError
from guildroster.models import LEGACY_VERSION, RosterData


logger = logging.getLogger(__name__)


def normalize_roster(raw: Any) -> RosterData:
    """Convert either stored roster shape into RosterData.

    Legacy files are a bare member array with implied version ``1.0.0`` and
    ``lastUpdated`` 0.
    """

    if isinstance(raw, list):
        payload = {"version": LEGACY_VERSION, "lastUpdated": 0, "members": raw}
    elif isinstance(raw, dict) and isinstance(raw.get("members"), list):
        payload = {
            "version": raw.get("version") or LEGACY_VERSION,
            "lastUpdated": raw.get("lastUpdated") or 0,
            "members": raw["members"],
        }
    else:
        raise RosterFormatError("Invalid roster data format")

    try:
        return RosterData.model_validate(payload)
    except ValidationError as exc:
        raise RosterFormatError(f"Invalid roster data format: {exc}") from exc


def snapshot_key(last_updated: int) -> str:
    """File stem for a snapshot, e.g. ``2024-01-01_120000`` (UTC)."""

    moment = datetime.fromtimestamp(last_updated, tz=timezone.utc)
    return moment.strftime("%Y-%m-%d_%H%M%S")


def _target_mode(path: Path) -> int:
    """Keep the replaced file's permissions; new files get 0644."""

    try:
        return stat.S_IMODE(path.stat().st_mode)
    except FileNotFoundError:
        return 0o644


def _atomic_write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    )
    try:
        with tmp:
            json.dump(payload, tmp, indent=2)
            tmp.write("\n")
        os.chmod(tmp.name, _target_mode(path))
        os.replace(tmp.name, path)
    except BaseException:
        Path(tmp.name).unlink(missing_ok=True)
        raise


class RosterStore:
    """Interface shared by the storage strategies."""

    writable: bool = False

    def exists(self) -> bool:
        raise NotImplementedError

    def load(self) -> RosterData:
        raise NotImplementedError

    def save(self, data: RosterData) -> Optional[Path]:
        raise NotImplementedError

    def list_snapshots(self) -> List[str]:
        return []

    def load_snapshot(self, key: str) -> RosterData:
        raise RosterIOError(f"Snapshot {key} not found")


class FileRosterStore(RosterStore):
    """JSON file on disk with write-once snapshots next to it."""

    writable = True

    def __init__(self, roster_path: Path | str, snapshot_dir: Path | str | None = None):
        self.roster_path = Path(roster_path)
        self.snapshot_dir = (
            Path(snapshot_dir) if snapshot_dir is not None else self.roster_path.parent / "rosters"
        )

    def exists(self) -> bool:
        return self.roster_path.exists()

    def _read_json(self, path: Path) -> Any:
        if not path.exists():
            raise RosterIOError(f"Roster file not found: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RosterIOError(f"Unable to read {path}: {exc}") from exc
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise RosterFormatError(f"Roster file {path} is not valid JSON: {exc}") from exc

    def load(self) -> RosterData:
        return normalize_roster(self._read_json(self.roster_path))

    def snapshot(self, data: RosterData) -> Optional[Path]:
        """Write ``data`` as a historical snapshot unless one already exists.

        Returns the snapshot path (new or pre-existing), or None when the
        roster has never been stamped.
        """

        if not data.last_updated:
            return None
        path = self.snapshot_dir / f"{snapshot_key(data.last_updated)}.json"
        if path.exists():
            logger.debug("Snapshot %s already exists; leaving it untouched", path.name)
            return path
        try:
            _atomic_write_json(path, data.to_json())
        except OSError as exc:
            raise RosterIOError(f"Unable to write snapshot {path}: {exc}") from exc
        logger.info("Saved historical snapshot: %s", path.stem)
        return path

    def save(self, data: RosterData) -> Optional[Path]:
        """Snapshot the current roster, then replace it atomically."""

        snapshot_path: Optional[Path] = None
        if self.exists():
            try:
                current = self.load()
            except RosterFormatError as exc:
                logger.warning("Skipping snapshot of unreadable roster: %s", exc)
            else:
                snapshot_path = self.snapshot(current)

        try:
            _atomic_write_json(self.roster_path, data.to_json())
        except OSError as exc:
            raise RosterIOError(f"Unable to write {self.roster_path}: {exc}") from exc
        logger.info("Saved roster with %d members", len(data.members))
        return snapshot_path

    def list_snapshots(self) -> List[str]:
        if not self.snapshot_dir.exists():
            return []
        return sorted(path.stem for path in self.snapshot_dir.glob("*.json"))

    def load_snapshot(self, key: str) -> RosterData:
        path = self.snapshot_dir / f"{key}.json"
        if path.parent != self.snapshot_dir:
            raise RosterIOError(f"Invalid snapshot key {key!r}")
        return normalize_roster(self._read_json(path))


class EmbeddedRosterStore(RosterStore):
    """Read-only roster captured once at construction time."""

    writable = False

    def __init__(self, data: RosterData):
        self._data = data

    @classmethod
    def from_file(cls, path: Path) -> "EmbeddedRosterStore":
        if not path.exists():
            logger.warning("Embedded roster %s missing; serving an empty roster", path)
            return cls(RosterData())
        return cls(FileRosterStore(path).load())

    def exists(self) -> bool:
        return True

    def load(self) -> RosterData:
        return self._data

    def save(self, data: RosterData) -> Optional[Path]:
        raise RosterIOError("Embedded roster is read-only")


def build_store(settings: RosterSettings) -> RosterStore:
    if settings.store_mode == "embedded":
        return EmbeddedRosterStore.from_file(settings.roster_path)
    return FileRosterStore(settings.roster_path, settings.snapshot_dir)


__all__ = [
    "EmbeddedRosterStore",
    "FileRosterStore",
    "RosterStore",
    "build_store",
    "normalize_roster",
    "snapshot_key",
]
