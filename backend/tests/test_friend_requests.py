"""Tests for the friend request lifecycle."""
from conftest import befriend


async def _send(client, sender, recipient):
    return await client.post("/api/friend-requests/send", json={"to_user_id": recipient["id"]}, headers=sender["headers"])


async def _circle_ids(client, user) -> set[str]:
    r = await client.get("/api/close-circle", headers=user["headers"])
    assert r.status_code == 200
    return {m["id"] for m in r.json()}


class TestSend:
    """Sending requests."""

    async def test_send_creates_pending_request(self, client, alice, bob):
        r = await _send(client, alice, bob)
        assert r.status_code == 201
        body = r.json()
        assert body["status"] == "pending"
        assert body["from_user_id"] == alice["id"]
        assert body["to_user_id"] == bob["id"]

    async def test_cannot_send_to_self(self, client, alice):
        r = await _send(client, alice, alice)
        assert r.status_code == 400

    async def test_unknown_recipient(self, client, alice):
        r = await _send(client, alice, {"id": "no-such-user"})
        assert r.status_code == 404

    async def test_duplicate_pending_is_conflict(self, client, alice, bob):
        assert (await _send(client, alice, bob)).status_code == 201
        r = await _send(client, alice, bob)
        assert r.status_code == 409

    async def test_reverse_pending_is_conflict(self, client, alice, bob):
        assert (await _send(client, alice, bob)).status_code == 201
        r = await _send(client, bob, alice)
        assert r.status_code == 409
        assert r.json()["detail"] == "Friend request already pending"

    async def test_already_in_circle_is_conflict(self, client, alice, bob):
        await befriend(client, alice, bob)
        r = await _send(client, bob, alice)
        assert r.status_code == 409
        assert r.json()["detail"] == "Already in close circle"

    async def test_can_send_again_after_rejection(self, client, alice, bob):
        sent = await _send(client, alice, bob)
        await client.post(f"/api/friend-requests/reject/{sent.json()['id']}", headers=bob["headers"])
        r = await _send(client, alice, bob)
        assert r.status_code == 201


class TestAcceptReject:
    """Responding to requests."""

    async def test_accept_makes_membership_symmetric(self, client, alice, bob):
        sent = await _send(client, alice, bob)
        r = await client.post(f"/api/friend-requests/accept/{sent.json()['id']}", headers=bob["headers"])
        assert r.status_code == 200
        assert r.json()["status"] == "accepted"
        assert await _circle_ids(client, alice) == {bob["id"]}
        assert await _circle_ids(client, bob) == {alice["id"]}

    async def test_only_recipient_may_accept(self, client, alice, bob, carol):
        sent = await _send(client, alice, bob)
        for outsider in (alice, carol):
            r = await client.post(f"/api/friend-requests/accept/{sent.json()['id']}", headers=outsider["headers"])
            assert r.status_code == 403
        assert await _circle_ids(client, alice) == set()

    async def test_accept_unknown_request(self, client, bob):
        r = await client.post("/api/friend-requests/accept/missing", headers=bob["headers"])
        assert r.status_code == 404

    async def test_reject_twice_is_conflict_and_circles_untouched(self, client, alice, bob):
        sent = await _send(client, alice, bob)
        request_id = sent.json()["id"]
        first = await client.post(f"/api/friend-requests/reject/{request_id}", headers=bob["headers"])
        assert first.status_code == 200
        assert first.json()["status"] == "rejected"
        second = await client.post(f"/api/friend-requests/reject/{request_id}", headers=bob["headers"])
        assert second.status_code == 409
        assert await _circle_ids(client, alice) == set()
        assert await _circle_ids(client, bob) == set()

    async def test_accept_after_reject_is_conflict(self, client, alice, bob):
        sent = await _send(client, alice, bob)
        request_id = sent.json()["id"]
        await client.post(f"/api/friend-requests/reject/{request_id}", headers=bob["headers"])
        r = await client.post(f"/api/friend-requests/accept/{request_id}", headers=bob["headers"])
        assert r.status_code == 409


class TestStatusAndCancel:
    """Status views, listing and cancellation."""

    async def test_status_from_both_sides(self, client, alice, bob):
        none = await client.get(f"/api/friend-requests/status/{bob['id']}", headers=alice["headers"])
        assert none.json() == {"status": "none", "request_id": None}

        sent = await _send(client, alice, bob)
        mine = await client.get(f"/api/friend-requests/status/{bob['id']}", headers=alice["headers"])
        theirs = await client.get(f"/api/friend-requests/status/{alice['id']}", headers=bob["headers"])
        assert mine.json()["status"] == "pending"
        assert theirs.json()["status"] == "received"
        assert theirs.json()["request_id"] == sent.json()["id"]

        await client.post(f"/api/friend-requests/accept/{sent.json()['id']}", headers=bob["headers"])
        after = await client.get(f"/api/friend-requests/status/{bob['id']}", headers=alice["headers"])
        assert after.json()["status"] == "accepted"

    async def test_pending_and_sent_lists(self, client, alice, bob, carol):
        await _send(client, alice, bob)
        await _send(client, carol, bob)

        pending = await client.get("/api/friend-requests/pending", headers=bob["headers"])
        assert pending.status_code == 200
        senders = {r["from_user"]["username"] for r in pending.json()}
        assert senders == {"alice", "carol"}
        assert all("email" not in r["from_user"] for r in pending.json())

        sent = await client.get("/api/friend-requests/sent", headers=alice["headers"])
        assert [r["to_user"]["username"] for r in sent.json()] == ["bob"]

    async def test_sender_cancels_pending(self, client, alice, bob):
        await _send(client, alice, bob)
        r = await client.delete(f"/api/friend-requests/cancel/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        status = await client.get(f"/api/friend-requests/status/{bob['id']}", headers=alice["headers"])
        assert status.json()["status"] == "none"
        assert (await client.get("/api/friend-requests/pending", headers=bob["headers"])).json() == []

    async def test_recipient_cannot_cancel(self, client, alice, bob):
        await _send(client, alice, bob)
        r = await client.delete(f"/api/friend-requests/cancel/{alice['id']}", headers=bob["headers"])
        assert r.status_code == 404

    async def test_cancel_after_accept_is_not_found(self, client, alice, bob):
        await befriend(client, alice, bob)
        r = await client.delete(f"/api/friend-requests/cancel/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 404
        assert r.json()["detail"] == "Request not found or already processed"
