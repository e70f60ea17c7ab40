"""Sample roster data shared by the test modules."""

import json

from guildroster.models import RosterMember


NOW = 1_700_000_000


def member_dict(name: str, **overrides) -> dict:
    payload = {
        "name": name,
        "class": "Warrior",
        "classFileName": "WARRIOR",
        "level": 80,
        "rankName": "Member",
        "rankIndex": 3,
        "zone": "Dornogal",
        "note": "",
        "officerNote": "",
        "status": 0,
        "achievementPoints": 12000,
        "achievementRank": 100,
        "lastOnline": NOW - 3600,
        "realmName": "Executus",
    }
    payload.update(overrides)
    return payload


def make_member(name: str, **overrides) -> RosterMember:
    return RosterMember.model_validate(member_dict(name, **overrides))


def lua_export(members: list[dict]) -> str:
    """Render members the way the addon writes its saved-variables file."""

    escaped = json.dumps(members).replace("\\", "\\\\").replace('"', '\\"')
    return (
        "GuildRosterExportDB = {\n"
        f'\t["autoExportSave"] = "{escaped}",\n'
        '\t["autoExportTime"] = 1700000000,\n'
        "}\n"
    )
