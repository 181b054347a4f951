from urllib.parse import quote

import pytest

from matrix_mock.models import Room
from matrix_mock.services import identifiers
from matrix_mock.services import rooms as room_service


pytestmark = pytest.mark.asyncio

BASE = "/s1/_matrix/client/r0"


async def _login(create_user, auth_header_factory, user_id: str = "alice"):
    await create_user(user_id, "secret")
    return await auth_header_factory(user_id, "secret")


def room_path(room_id: str, suffix: str) -> str:
    return f"{BASE}/rooms/{quote(room_id)}/{suffix}"


async def test_create_room(client, create_user, auth_header_factory, frozen_clock):
    headers = await _login(create_user, auth_header_factory)

    resp = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby", "topic": "hi"})
    body = resp.json()
    assert resp.status_code == 200, resp.text
    assert body == {"room_id": identifiers.room_id("s1", "Lobby", "testserver", timestamp=1_700_000_000)}

    room = await Room.get(room_id=body["room_id"])
    assert room.name == "Lobby"
    assert room.topic == "hi"
    assert room.creator == "alice"
    assert room.server_id == "s1"
    assert room.room_alias is None


async def test_create_room_without_body_gets_placeholder_name(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    resp = await client.post(f"{BASE}/createRoom", headers=headers)
    assert resp.status_code == 200
    room = await Room.get(room_id=resp.json()["room_id"])
    assert room.name.isdigit()


async def test_create_room_requires_auth_and_post(client, create_user, auth_header_factory):
    unauth = await client.post(f"{BASE}/createRoom", json={"name": "Lobby"})
    assert unauth.status_code == 401

    headers = await _login(create_user, auth_header_factory)
    wrong_method = await client.get(f"{BASE}/createRoom", headers=headers)
    assert wrong_method.status_code == 405


async def test_alias_uniqueness(client, create_user, auth_header_factory, frozen_clock):
    headers = await _login(create_user, auth_header_factory)

    first = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "A", "room_alias_name": "foo"})
    assert first.status_code == 200
    assert first.json()["room_alias"] == "#foo:testserver"

    taken = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "B", "room_alias_name": "foo"})
    assert taken.status_code == 400
    assert taken.json() == {"errcode": "M_ROOM_IN_USE", "error": "Room alias already taken"}
    assert await Room.filter(name="B").count() == 0


async def test_alias_race_lost_at_insert_is_reported_as_in_use(client, create_user, auth_header_factory, monkeypatch):
    headers = await _login(create_user, auth_header_factory)
    first = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "A", "room_alias_name": "foo"})
    assert first.status_code == 200

    # The pre-insert check misses the existing alias, as it would for a concurrent create
    real_alias_taken = room_service.alias_taken
    calls = []

    async def stale_alias_taken(alias):
        calls.append(alias)
        if len(calls) == 1:
            return False
        return await real_alias_taken(alias)

    monkeypatch.setattr(room_service, "alias_taken", stale_alias_taken)
    raced = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "B", "room_alias_name": "foo"})

    assert raced.status_code == 400
    assert raced.json()["errcode"] == "M_ROOM_IN_USE"
    assert calls == ["#foo:testserver", "#foo:testserver"]
    assert await Room.filter(name="B").count() == 0
    assert await Room.filter(room_alias="#foo:testserver").count() == 1


async def test_alias_with_other_host_is_distinct(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)

    first = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "A", "room_alias_name": "foo"})
    other = await client.post(
        f"http://other.host{BASE}/createRoom", headers=headers, json={"name": "B", "room_alias_name": "foo"}
    )
    assert first.status_code == 200
    assert other.status_code == 200
    assert other.json()["room_alias"] == "#foo:other.host"


async def test_same_room_id_in_same_tick_conflicts(client, create_user, auth_header_factory, frozen_clock):
    headers = await _login(create_user, auth_header_factory)

    first = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})
    clash = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})
    assert first.status_code == 200
    assert clash.status_code == 409

    frozen_clock(1_700_000_001)
    later = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})
    assert later.status_code == 200
    assert later.json()["room_id"] != first.json()["room_id"]


async def test_room_state_updates(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    room_id = (await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})).json()["room_id"]

    topic = await client.put(room_path(room_id, "state/m.room.topic"), headers=headers, json={"topic": "one"})
    assert topic.status_code == 200
    assert topic.json()["event_id"] == identifiers.event_id("s1", room_id, "m.room.topic")

    name = await client.put(room_path(room_id, "state/m.room.name"), headers=headers, json={"name": "Hall"})
    avatar = await client.put(
        room_path(room_id, "state/m.room.avatar"), headers=headers, json={"url": "mxc://testserver/abc"}
    )
    assert name.status_code == 200
    assert avatar.status_code == 200
    assert name.json()["event_id"] != topic.json()["event_id"]

    room = await Room.get(room_id=room_id)
    assert (room.topic, room.name, room.avatar) == ("one", "Hall", "mxc://testserver/abc")

    read = await client.get(room_path(room_id, "state/m.room.topic"), headers=headers)
    assert read.json() == {"topic": "one"}


async def test_repeated_state_updates_share_event_id(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    room_id = (await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})).json()["room_id"]

    first = await client.put(room_path(room_id, "state/m.room.topic"), headers=headers, json={"topic": "one"})
    second = await client.put(room_path(room_id, "state/m.room.topic"), headers=headers, json={"topic": "two"})
    assert first.json()["event_id"] == second.json()["event_id"]
    assert (await Room.get(room_id=room_id)).topic == "two"


async def test_room_state_accepts_trailing_slash(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    room_id = (await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})).json()["room_id"]

    plain = await client.put(room_path(room_id, "state/m.room.topic"), headers=headers, json={"topic": "one"})
    slashed = await client.put(room_path(room_id, "state/m.room.topic/"), headers=headers, json={"topic": "x"})
    assert slashed.status_code == 200, slashed.text
    assert slashed.json()["event_id"] == plain.json()["event_id"]
    assert (await Room.get(room_id=room_id)).topic == "x"

    read = await client.get(room_path(room_id, "state/m.room.topic/"), headers=headers)
    assert read.json() == {"topic": "x"}


async def test_room_state_errors(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    room_id = (await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "Lobby"})).json()["room_id"]

    unknown_type = await client.put(room_path(room_id, "state/m.room.power_levels"), headers=headers, json={})
    assert unknown_type.status_code == 404
    assert unknown_type.json()["errcode"] == "M_UNRECOGNIZED"

    missing_field = await client.put(room_path(room_id, "state/m.room.topic"), headers=headers, json={"name": "x"})
    assert missing_field.status_code == 400
    assert missing_field.json() == {"errcode": "M_INVALID_PARAM", "error": "Bad parameter: topic"}

    unknown_room = await client.put(room_path("!nope:testserver", "state/m.room.topic"), headers=headers, json={"topic": "x"})
    assert unknown_room.status_code == 404
    assert unknown_room.json()["errcode"] == "M_NOT_FOUND"

    no_avatar = await client.get(room_path(room_id, "state/m.room.avatar"), headers=headers)
    assert no_avatar.status_code == 404

    wrong_method = await client.post(room_path(room_id, "state/m.room.topic"), headers=headers, json={"topic": "x"})
    assert wrong_method.status_code == 405


async def test_alias_directory(client, create_user, auth_header_factory):
    headers = await _login(create_user, auth_header_factory)
    created = await client.post(f"{BASE}/createRoom", headers=headers, json={"name": "A", "room_alias_name": "foo"})

    resp = await client.get(f"{BASE}/directory/room/{quote('#foo:testserver')}", headers=headers)
    assert resp.status_code == 200
    assert resp.json() == {"room_id": created.json()["room_id"], "servers": ["testserver"]}

    missing = await client.get(f"{BASE}/directory/room/{quote('#bar:testserver')}", headers=headers)
    assert missing.status_code == 404
