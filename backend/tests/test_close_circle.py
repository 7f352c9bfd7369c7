"""Tests for close-circle maintenance."""
from conftest import befriend, register_user


class TestAdd:
    """POST /close-circle/{user_id}."""

    async def test_add_sends_request_when_none_incoming(self, client, alice, bob):
        r = await client.post(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json()["status"] == "pending"
        assert r.json()["request"]["to_user_id"] == bob["id"]
        count = await client.get("/api/close-circle/count", headers=alice["headers"])
        assert count.json() == {"count": 0}

    async def test_add_accepts_incoming_request(self, client, alice, bob):
        await client.post("/api/friend-requests/send", json={"to_user_id": alice["id"]}, headers=bob["headers"])
        r = await client.post(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json()["status"] == "accepted"
        for user in (alice, bob):
            count = await client.get("/api/close-circle/count", headers=user["headers"])
            assert count.json() == {"count": 1}

    async def test_add_self_is_invalid(self, client, alice):
        r = await client.post(f"/api/close-circle/{alice['id']}", headers=alice["headers"])
        assert r.status_code == 400

    async def test_add_existing_member_is_conflict(self, client, alice, bob):
        await befriend(client, alice, bob)
        r = await client.post(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 409


class TestRemove:
    """DELETE /close-circle/{user_id}."""

    async def test_remove_is_symmetric(self, client, alice, bob):
        await befriend(client, alice, bob)
        r = await client.delete(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        assert (await client.get("/api/close-circle", headers=alice["headers"])).json() == []
        assert (await client.get("/api/close-circle", headers=bob["headers"])).json() == []

    async def test_pair_can_request_again_after_removal(self, client, alice, bob):
        await befriend(client, alice, bob)
        await client.delete(f"/api/close-circle/{alice['id']}", headers=bob["headers"])
        status = await client.get(f"/api/friend-requests/status/{bob['id']}", headers=alice["headers"])
        assert status.json()["status"] == "none"
        r = await client.post("/api/friend-requests/send", json={"to_user_id": bob["id"]}, headers=alice["headers"])
        assert r.status_code == 201

    async def test_removal_forgets_older_rejection(self, client, alice, bob):
        sent = await client.post("/api/friend-requests/send", json={"to_user_id": bob["id"]}, headers=alice["headers"])
        await client.post(f"/api/friend-requests/reject/{sent.json()['id']}", headers=bob["headers"])
        await befriend(client, bob, alice)

        r = await client.delete(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        for viewer, other in ((alice, bob), (bob, alice)):
            status = await client.get(f"/api/friend-requests/status/{other['id']}", headers=viewer["headers"])
            assert status.json()["status"] == "none"
        again = await client.post("/api/friend-requests/send", json={"to_user_id": bob["id"]}, headers=alice["headers"])
        assert again.status_code == 201

    async def test_remove_non_member_is_not_found(self, client, alice, bob):
        r = await client.delete(f"/api/close-circle/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 404


class TestListing:
    """Members and suggestions."""

    async def test_members_carry_public_profile_only(self, client, alice, bob):
        await befriend(client, alice, bob)
        members = (await client.get("/api/close-circle", headers=alice["headers"])).json()
        assert [m["username"] for m in members] == ["bob"]
        assert "email" not in members[0]

    async def test_suggestions_exclude_self_and_members(self, client, alice, bob, carol):
        await befriend(client, alice, bob)
        dave = await register_user(client, "dave")
        r = await client.get("/api/close-circle/suggested", headers=alice["headers"])
        assert r.status_code == 200
        ids = {u["id"] for u in r.json()}
        assert ids == {carol["id"], dave["id"]}

    async def test_suggestion_limit(self, client, alice, bob, carol):
        r = await client.get("/api/close-circle/suggested", params={"limit": 1}, headers=alice["headers"])
        assert len(r.json()) == 1
