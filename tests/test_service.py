from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from guildroster.ingest import RaiderIOClient
from guildroster.models import RosterData
from guildroster.persistence import EmbeddedRosterStore, FileRosterStore
from guildroster.service import READ_ONLY_MESSAGE, RosterService

from tests.helpers import NOW, lua_export, make_member, member_dict


FIXED = datetime(2024, 3, 5, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def paths(tmp_path: Path):
    return tmp_path / "roster.json", tmp_path / "export.lua"


def _service(paths) -> RosterService:
    roster_path, export_path = paths
    return RosterService(FileRosterStore(roster_path), export_path, clock=lambda: FIXED)


def _seed(paths, last_updated: int, *members) -> None:
    FileRosterStore(paths[0]).save(
        RosterData(version="2024.01.01", last_updated=last_updated, members=list(members))
    )


def _write_export(paths, members) -> None:
    paths[1].write_text(lua_export(members), encoding="utf-8")


def test_get_roster_missing_file_is_empty(paths):
    data = _service(paths).get_roster()

    assert data.members == []
    assert data.last_updated == 0


def test_check_for_updates_detects_newer_export(paths):
    _seed(paths, NOW - 100, make_member("Alice"))
    _write_export(paths, [member_dict("Alice", lastOnline=NOW), member_dict("Bob")])

    check = _service(paths).check_for_updates()

    assert check.has_update
    assert check.lua_last_updated == NOW
    assert check.current_last_updated == NOW - 100
    assert check.member_count == 2
    assert check.error is None


def test_check_for_updates_not_newer(paths):
    _seed(paths, NOW, make_member("Alice"))
    _write_export(paths, [member_dict("Alice", lastOnline=NOW)])

    assert not _service(paths).check_for_updates().has_update


def test_check_for_updates_missing_export(paths):
    check = _service(paths).check_for_updates()

    assert not check.has_update
    assert "Export file not found" in check.error


def test_check_for_updates_empty_export(paths):
    _write_export(paths, [])

    check = _service(paths).check_for_updates()

    assert check.error == "Export contains no members"


def test_check_for_updates_unparsable_export(paths):
    paths[1].write_text("garbage", encoding="utf-8")

    check = _service(paths).check_for_updates()

    assert check.error.startswith("Could not parse export file")


def test_apply_update_preserves_roles_and_snapshots(paths):
    _seed(
        paths,
        NOW - 100,
        make_member("Alice", mainSpec="Protection", mainRole="Tank"),
        make_member("Gone"),
    )
    _write_export(paths, [member_dict("Alice", lastOnline=NOW), member_dict("Newbie")])

    result = _service(paths).apply_update()

    assert result.success
    assert result.member_count == 2
    assert result.roles_preserved == 1
    assert result.new_players == 1
    assert result.last_updated == NOW
    assert result.historical_snapshot_saved

    stored = FileRosterStore(paths[0]).load()
    assert stored.version == "2024.03.05"
    assert stored.last_updated == NOW
    assert [m.name for m in stored.members] == ["Alice", "Newbie"]
    assert stored.members[0].main_role == "Tank"


def test_apply_update_rejects_empty_export(paths):
    _seed(paths, NOW - 100, make_member("Alice", mainSpec="Arms", mainRole="DPS"))
    _write_export(paths, [])

    result = _service(paths).apply_update()

    assert not result.success
    assert result.error == "Export contains no members"
    stored = FileRosterStore(paths[0]).load()
    assert stored.last_updated == NOW - 100
    assert [(m.name, m.main_role) for m in stored.members] == [("Alice", "DPS")]
    assert FileRosterStore(paths[0]).list_snapshots() == []


def test_apply_update_without_existing_roster(paths):
    _write_export(paths, [member_dict("Alice", lastOnline=NOW)])

    result = _service(paths).apply_update()

    assert result.success
    assert result.new_players == 1
    assert not result.historical_snapshot_saved


def test_read_only_store_rejects_commands(paths):
    store = EmbeddedRosterStore(RosterData(members=[make_member("Alice")]))
    service = RosterService(store, paths[1])

    assert service.get_roster().members[0].name == "Alice"
    assert service.apply_update().error == READ_ONLY_MESSAGE
    assert service.save_roster([], 0).error == READ_ONLY_MESSAGE
    assert service.update_member_spec("Alice", "Arms").error == READ_ONLY_MESSAGE
    assert not service.check_for_updates().has_update
    assert service.check_for_updates().error


def test_save_roster_validates_members(paths):
    service = _service(paths)

    bad = service.save_roster([{"level": 10}], NOW)
    good = service.save_roster([member_dict("Alice")], NOW)

    assert not bad.success
    assert bad.error.startswith("Invalid roster payload")
    assert good.success
    assert FileRosterStore(paths[0]).load().last_updated == NOW


def test_update_member_spec_infers_role(paths):
    _seed(paths, NOW, make_member("Alice", **{"class": "Paladin"}, classFileName="PALADIN"))
    service = _service(paths)

    result = service.update_member_spec("Alice", "Holy")

    assert result.success
    assert result.member.main_role == "Healer"
    assert FileRosterStore(paths[0]).load().members[0].main_spec == "Holy"


def test_update_member_spec_errors(paths):
    _seed(paths, NOW, make_member("Alice"))
    service = _service(paths)

    assert service.update_member_spec("", "Arms").error == "Missing required fields"
    assert service.update_member_spec("Nobody", "Arms").not_found
    assert not service.update_member_spec("Alice", "Holy").success
    assert service.update_member_spec("Alice", "Holy", "Healer").success


def test_apply_raiderio_enriches_roster(paths):
    _seed(paths, NOW, make_member("Alice"), make_member("Bob", mainRole="Tank"))

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["fields"] == "members"
        return httpx.Response(
            200,
            json={
                "last_crawled_at": "2024-03-05T10:00:00Z",
                "members": [
                    {"character": {"name": "alice", "active_spec_name": "Fury", "active_spec_role": "DPS"}},
                    {"character": {"name": "Bob", "active_spec_name": "Frost", "active_spec_role": "DPS"}},
                ],
            },
        )

    client = RaiderIOClient(
        "key", region="eu", realm="Executus", guild="The Hive", transport=httpx.MockTransport(handler)
    )
    with client:
        result = _service(paths).apply_raiderio(client)

    assert result.success
    assert result.updated_count == 2
    assert result.role_updated_count == 1
    assert result.rio_members_found == 2
    assert result.last_crawled == "2024-03-05T10:00:00Z"
    alice, bob = FileRosterStore(paths[0]).load().members
    assert (alice.main_spec, alice.main_role) == ("Fury", "DPS")
    assert (bob.main_spec, bob.main_role) == ("Frost", "Tank")


def test_apply_raiderio_without_roster(paths):
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"members": []}))
    with RaiderIOClient("key", region="eu", realm="r", guild="g", transport=transport) as client:
        result = _service(paths).apply_raiderio(client)

    assert not result.success
    assert result.error == "Roster file not found"


def test_save_roster_rejects_unvalidated_member_copies(paths):
    _seed(paths, NOW, make_member("Alice"))
    service = _service(paths)
    bad = make_member("Alice").model_copy(update={"main_role": "dps"})

    result = service.save_roster([bad], NOW)

    assert not result.success
    assert "mainRole" in result.error
    assert service.get_roster().members[0].main_role is None


def test_apply_raiderio_regenerates_version(paths):
    _seed(paths, NOW, make_member("Alice"))
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"members": [{"character": {"name": "Alice"}}]})
    )
    with RaiderIOClient("key", region="eu", realm="r", guild="g", transport=transport) as client:
        assert _service(paths).apply_raiderio(client).success

    stored = FileRosterStore(paths[0]).load()
    assert stored.version == "2024.03.05"
    assert stored.last_updated == NOW
