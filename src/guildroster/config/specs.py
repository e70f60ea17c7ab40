"""Class and specialization catalogue for supported WoW classes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class SpecInfo:
    name: str
    role: str


@dataclass(frozen=True)
class ClassSpecs:
    class_token: str
    specs: Tuple[SpecInfo, ...]

    def role_for(self, spec_name: str) -> Optional[str]:
        for spec in self.specs:
            if spec.name == spec_name:
                return spec.role
        return None


def _specs(*pairs: Tuple[str, str]) -> Tuple[SpecInfo, ...]:
    return tuple(SpecInfo(name=name, role=role) for name, role in pairs)


_CLASS_SPECS: Dict[str, ClassSpecs] = {
    "WARRIOR": ClassSpecs(
        class_token="WARRIOR",
        specs=_specs(("Arms", "DPS"), ("Fury", "DPS"), ("Protection", "Tank")),
    ),
    "PALADIN": ClassSpecs(
        class_token="PALADIN",
        specs=_specs(("Holy", "Healer"), ("Protection", "Tank"), ("Retribution", "DPS")),
    ),
    "HUNTER": ClassSpecs(
        class_token="HUNTER",
        specs=_specs(("Beast Mastery", "DPS"), ("Marksmanship", "DPS"), ("Survival", "DPS")),
    ),
    "ROGUE": ClassSpecs(
        class_token="ROGUE",
        specs=_specs(("Assassination", "DPS"), ("Outlaw", "DPS"), ("Subtlety", "DPS")),
    ),
    "PRIEST": ClassSpecs(
        class_token="PRIEST",
        specs=_specs(("Discipline", "Healer"), ("Holy", "Healer"), ("Shadow", "DPS")),
    ),
    "DEATHKNIGHT": ClassSpecs(
        class_token="DEATHKNIGHT",
        specs=_specs(("Blood", "Tank"), ("Frost", "DPS"), ("Unholy", "DPS")),
    ),
    "SHAMAN": ClassSpecs(
        class_token="SHAMAN",
        specs=_specs(("Elemental", "DPS"), ("Enhancement", "DPS"), ("Restoration", "Healer")),
    ),
    "MAGE": ClassSpecs(
        class_token="MAGE",
        specs=_specs(("Arcane", "DPS"), ("Fire", "DPS"), ("Frost", "DPS")),
    ),
    "WARLOCK": ClassSpecs(
        class_token="WARLOCK",
        specs=_specs(("Affliction", "DPS"), ("Demonology", "DPS"), ("Destruction", "DPS")),
    ),
    "MONK": ClassSpecs(
        class_token="MONK",
        specs=_specs(("Brewmaster", "Tank"), ("Mistweaver", "Healer"), ("Windwalker", "DPS")),
    ),
    "DRUID": ClassSpecs(
        class_token="DRUID",
        specs=_specs(
            ("Balance", "DPS"),
            ("Feral", "DPS"),
            ("Guardian", "Tank"),
            ("Restoration", "Healer"),
        ),
    ),
    "DEMONHUNTER": ClassSpecs(
        class_token="DEMONHUNTER",
        specs=_specs(("Havoc", "DPS"), ("Vengeance", "Tank"), ("Devourer", "DPS")),
    ),
    "EVOKER": ClassSpecs(
        class_token="EVOKER",
        specs=_specs(("Devastation", "DPS"), ("Preservation", "Healer"), ("Augmentation", "DPS")),
    ),
}


# Raider.IO reports roles in upper case.
RAIDERIO_ROLE_MAP: Mapping[str, str] = {
    "TANK": "Tank",
    "DPS": "DPS",
    "HEALING": "Healer",
}


def _class_key(class_name: str) -> str:
    return class_name.replace(" ", "").upper()


def iter_classes() -> Iterable[ClassSpecs]:
    """Return an iterator over every configured class."""

    return _CLASS_SPECS.values()


def get_specs(class_name: str) -> Tuple[SpecInfo, ...]:
    """Specs for a class token or display name; empty for unknown classes."""

    entry = _CLASS_SPECS.get(_class_key(class_name))
    return entry.specs if entry else ()


def get_role_for_spec(class_name: str, spec_name: str) -> Optional[str]:
    entry = _CLASS_SPECS.get(_class_key(class_name))
    if entry is None:
        return None
    return entry.role_for(spec_name)
