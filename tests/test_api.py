import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from guildroster.api import create_app
from guildroster.config import RosterSettings
from guildroster.ingest import RaiderIOClient
from guildroster.models import RosterData
from guildroster.persistence import FileRosterStore

from tests.helpers import NOW, lua_export, make_member, member_dict


@pytest.fixture
def settings(tmp_path):
    settings = RosterSettings.for_directory(tmp_path)
    FileRosterStore(settings.roster_path).save(
        RosterData(
            version="2024.01.01",
            last_updated=NOW - 100,
            members=[
                make_member("Alice", level=80, mainSpec="Protection", mainRole="Tank"),
                make_member("Bob", level=79, **{"class": "Mage"}, classFileName="MAGE"),
            ],
        )
    )
    return settings


@pytest.fixture
async def client(settings):
    app = create_app(settings)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        async_client.app = app
        yield async_client


@pytest.mark.anyio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


@pytest.mark.anyio
async def test_get_roster(client):
    resp = await client.get("/roster")
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["lastUpdated"] == NOW - 100
    assert [m["name"] for m in payload["members"]] == ["Alice", "Bob"]
    assert payload["members"][0]["mainRole"] == "Tank"


@pytest.mark.anyio
async def test_get_roster_corrupt_file(client, settings):
    settings.roster_path.write_text('{"foo": 1}', encoding="utf-8")

    resp = await client.get("/roster")
    assert resp.status_code == 500
    assert resp.json()["detail"] == "Failed to load roster data"


@pytest.mark.anyio
async def test_save_roster(client, settings):
    resp = await client.put(
        "/roster",
        json={"members": [member_dict("Carl")], "lastUpdated": NOW},
    )
    assert resp.status_code == 200
    assert resp.json() == {"success": True, "error": None}
    assert FileRosterStore(settings.roster_path).load().members[0].name == "Carl"

    bad = await client.put("/roster", json={"members": [{"level": 1}], "lastUpdated": NOW})
    assert bad.status_code == 200
    assert bad.json()["success"] is False


@pytest.mark.anyio
async def test_update_check_and_apply(client, settings):
    settings.export_path.write_text(
        lua_export([member_dict("Alice", lastOnline=NOW), member_dict("Dana")]),
        encoding="utf-8",
    )

    check = await client.get("/roster/updates")
    assert check.status_code == 200
    assert check.json()["hasUpdate"] is True
    assert check.json()["luaLastUpdated"] == NOW

    applied = await client.post("/roster/updates")
    body = applied.json()
    assert body["success"] is True
    assert body["rolesPreserved"] == 1
    assert body["newPlayers"] == 1
    assert body["historicalSnapshotSaved"] is True

    roster = (await client.get("/roster")).json()
    assert [m["name"] for m in roster["members"]] == ["Alice", "Dana"]
    assert roster["members"][0]["mainSpec"] == "Protection"


@pytest.mark.anyio
async def test_update_check_without_export(client):
    resp = await client.get("/roster/updates")
    assert resp.status_code == 200
    assert resp.json()["hasUpdate"] is False
    assert resp.json()["error"]


@pytest.mark.anyio
async def test_merge_preview_from_json(client):
    resp = await client.post(
        "/roster/merge-preview",
        json={
            "jsonText": '[{"name": "Alice", "lastOnline": %d}, {"name": "Eve", "classFileName": "PRIEST"}]'
            % NOW
        },
    )
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["rolesPreserved"] == 1
    assert payload["newPlayers"] == 1
    assert payload["changes"][1] == {
        "name": "Eve",
        "classFileName": "PRIEST",
        "message": "New player (no role assigned)",
    }
    assert payload["lastUpdated"] == NOW


@pytest.mark.anyio
async def test_merge_preview_from_lua(client):
    resp = await client.post(
        "/roster/merge-preview",
        json={"lua": lua_export([member_dict("Alice", lastOnline=NOW)])},
    )
    assert resp.status_code == 200
    assert resp.json()["lastUpdated"] == NOW


@pytest.mark.anyio
async def test_merge_preview_errors(client):
    missing = await client.post("/roster/merge-preview", json={})
    assert missing.status_code == 400

    bad_json = await client.post("/roster/merge-preview", json={"jsonText": "{}"})
    assert bad_json.status_code == 400
    assert "Expected an array" in bad_json.json()["detail"]

    bad_lua = await client.post("/roster/merge-preview", json={"lua": "nothing"})
    assert bad_lua.status_code == 400


@pytest.mark.anyio
async def test_update_member_spec(client):
    resp = await client.post("/roster/members/Bob/spec", json={"mainSpec": "Frost"})
    assert resp.status_code == 200
    assert resp.json()["member"]["mainRole"] == "DPS"

    missing = await client.post("/roster/members/Nobody/spec", json={"mainSpec": "Frost"})
    assert missing.status_code == 404

    unknown = await client.post("/roster/members/Bob/spec", json={"mainSpec": "Guardian"})
    assert unknown.status_code == 400

    invalid = await client.post("/roster/members/Bob/spec", json={"mainSpec": ""})
    assert invalid.status_code == 422


@pytest.mark.anyio
async def test_query_roster(client):
    resp = await client.post(
        "/roster/query",
        json={
            "filters": [{"id": 1, "field": "level", "operator": "greaterThan", "value": "79"}],
            "sortKey": "level",
            "sortDirection": "desc",
        },
    )
    assert resp.status_code == 200
    payload = resp.json()
    assert payload["total"] == 2
    assert payload["matched"] == 1
    assert payload["roleCounts"] == {"Tank": 1, "Healer": 0, "DPS": 0}
    assert [m["name"] for m in payload["members"]] == ["Alice"]

    disabled = await client.post(
        "/roster/query",
        json={
            "filters": [{"id": 1, "field": "level", "operator": "greaterThan", "value": "79"}],
            "filtersEnabled": False,
            "sortKey": "name",
            "sortDirection": "desc",
        },
    )
    assert [m["name"] for m in disabled.json()["members"]] == ["Bob", "Alice"]


@pytest.mark.anyio
async def test_query_rejects_unknown_operator(client):
    resp = await client.post(
        "/roster/query",
        json={"filters": [{"id": 1, "field": "level", "operator": "between", "value": "1"}]},
    )
    assert resp.status_code == 422


@pytest.mark.anyio
async def test_raiderio_without_key(client):
    resp = await client.post("/roster/raiderio")
    assert resp.status_code == 200
    assert resp.json()["success"] is False
    assert "RAIDERIO_API_KEY" in resp.json()["error"]


@pytest.mark.anyio
async def test_raiderio_with_mock_transport(settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={"members": [{"character": {"name": "Bob", "active_spec_name": "Fire", "active_spec_role": "DPS"}}]},
        )

    def factory(cfg: RosterSettings) -> RaiderIOClient:
        return RaiderIOClient(
            "key",
            region=cfg.raiderio_region,
            realm=cfg.raiderio_realm,
            guild=cfg.raiderio_guild,
            transport=httpx.MockTransport(handler),
        )

    app = create_app(settings, raiderio_factory=factory)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        resp = await client.post("/roster/raiderio")

    payload = resp.json()
    assert payload["success"] is True
    assert payload["updatedCount"] == 1
    assert payload["roleUpdatedCount"] == 1
    assert FileRosterStore(settings.roster_path).load().members[1].main_spec == "Fire"


@pytest.mark.anyio
async def test_embedded_mode_is_read_only(settings):
    embedded = RosterSettings.for_directory(settings.data_dir, store_mode="embedded")
    app = create_app(embedded)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        roster = await client.get("/roster")
        applied = await client.post("/roster/updates")

    assert len(roster.json()["members"]) == 2
    assert applied.json()["success"] is False
    assert "file-backed" in applied.json()["error"]
