"""Runtime settings resolved from the environment or a saved profile."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Literal, Optional


logger = logging.getLogger(__name__)

StoreMode = Literal["file", "embedded"]

_DATA_DIR_ENV = "GUILDROSTER_DATA_DIR"
_ROSTER_PATH_ENV = "GUILDROSTER_ROSTER_PATH"
_EXPORT_PATH_ENV = "GUILDROSTER_EXPORT_PATH"
_STORE_MODE_ENV = "GUILDROSTER_STORE_MODE"

_DEFAULT_DATA_DIR = Path("data")
_DEFAULT_EXPORT_NAME = "GuildRosterExport.lua"


@dataclass(frozen=True)
class RosterSettings:
    data_dir: Path
    roster_path: Path
    export_path: Path
    store_mode: StoreMode = "file"
    raiderio_api_key: Optional[str] = None
    raiderio_region: str = "eu"
    raiderio_realm: str = "Executus"
    raiderio_guild: str = "The Hive"

    @property
    def snapshot_dir(self) -> Path:
        return self.roster_path.parent / "rosters"

    @classmethod
    def for_directory(cls, data_dir: Path, **overrides) -> "RosterSettings":
        data_dir = Path(data_dir)
        settings = cls(
            data_dir=data_dir,
            roster_path=data_dir / "roster.json",
            export_path=data_dir / _DEFAULT_EXPORT_NAME,
        )
        return replace(settings, **overrides) if overrides else settings

    @classmethod
    def from_env(cls) -> "RosterSettings":
        data_dir = Path(os.getenv(_DATA_DIR_ENV) or _DEFAULT_DATA_DIR)
        settings = cls.for_directory(data_dir)
        roster_path = os.getenv(_ROSTER_PATH_ENV)
        export_path = os.getenv(_EXPORT_PATH_ENV)
        return replace(
            settings,
            roster_path=Path(roster_path) if roster_path else settings.roster_path,
            export_path=Path(export_path) if export_path else settings.export_path,
            store_mode=_store_mode(os.getenv(_STORE_MODE_ENV)),
            raiderio_api_key=os.getenv("RAIDERIO_API_KEY") or None,
            raiderio_region=os.getenv("RAIDERIO_GUILD_REGION") or settings.raiderio_region,
            raiderio_realm=os.getenv("RAIDERIO_GUILD_REALM") or settings.raiderio_realm,
            raiderio_guild=os.getenv("RAIDERIO_GUILD_NAME") or settings.raiderio_guild,
        )

    @classmethod
    def load(cls, path: Path) -> "RosterSettings":
        """Read a saved profile; the API key always comes from the environment."""

        data = json.loads(path.read_text(encoding="utf-8"))
        base = cls.for_directory(Path(data.get("data_dir", _DEFAULT_DATA_DIR)))
        return replace(
            base,
            roster_path=Path(data["roster_path"]) if data.get("roster_path") else base.roster_path,
            export_path=Path(data["export_path"]) if data.get("export_path") else base.export_path,
            store_mode=_store_mode(data.get("store_mode")),
            raiderio_api_key=os.getenv("RAIDERIO_API_KEY") or None,
            raiderio_region=data.get("raiderio_region", base.raiderio_region),
            raiderio_realm=data.get("raiderio_realm", base.raiderio_realm),
            raiderio_guild=data.get("raiderio_guild", base.raiderio_guild),
        )

    def save(self, path: Path) -> None:
        payload = {
            key: str(value) if isinstance(value, Path) else value
            for key, value in asdict(self).items()
        }
        # Never write the API key to disk.
        payload.pop("raiderio_api_key", None)
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")


def _store_mode(raw: Optional[str]) -> StoreMode:
    if raw is None or not raw.strip():
        return "file"
    value = raw.strip().lower()
    if value in {"file", "embedded"}:
        return value  # type: ignore[return-value]
    logger.warning("Invalid store mode %r; using 'file'", raw)
    return "file"
