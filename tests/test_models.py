from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from guildroster.models import RosterData, RosterMember, roster_version

from tests.helpers import member_dict


def test_member_reads_camel_case_keys():
    member = RosterMember.model_validate(member_dict("Alice", mainSpec="Arms", mainRole="DPS"))

    assert member.class_name == "Warrior"
    assert member.rank_name == "Member"
    assert member.get("rankName") == "Member"
    assert member.get("class") == "Warrior"
    assert member.get("main_spec") == "Arms"
    assert member.identity() == ("Alice", "Executus")


def test_member_keeps_unknown_keys():
    member = RosterMember.model_validate(member_dict("Alice", guildXP=10))

    assert member.get("guildXP") == 10
    assert member.to_json()["guildXP"] == 10


def test_member_to_json_uses_wire_names():
    payload = RosterMember(name="Alice", class_name="Mage").to_json()

    assert payload["class"] == "Mage"
    assert "mainRole" not in payload
    assert "zone" not in payload


def test_member_requires_name_and_known_role():
    with pytest.raises(ValidationError):
        RosterMember.model_validate({"name": ""})
    with pytest.raises(ValidationError):
        RosterMember.model_validate({"name": "Alice", "mainRole": "Support"})


def test_member_is_immutable():
    member = RosterMember(name="Alice")

    with pytest.raises(ValidationError):
        member.name = "Bob"


def test_roster_data_defaults_and_json():
    data = RosterData.model_validate({"lastUpdated": 10, "members": [member_dict("Alice")]})

    assert data.version == "1.0.0"
    assert data.to_json()["lastUpdated"] == 10
    assert data.to_json()["members"][0]["name"] == "Alice"


def test_roster_version_format():
    assert roster_version(datetime(2024, 1, 2, 23, 0, tzinfo=timezone.utc)) == "2024.01.02"
