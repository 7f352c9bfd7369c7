"""Tests for own profile, public profiles, search and profile images."""
from closecircle.domain.media.services import ProfileImageService
from conftest import PNG_BYTES, befriend, create_journal


def _profile_body(**overrides):
    body = {"name": "Alice Liddell", "username": "alice"}
    body.update(overrides)
    return body


class TestMyProfile:
    """GET/PUT /myprofile."""

    async def test_get_includes_stats(self, client, alice):
        await create_journal(client, alice, "2026-10-01")
        r = await client.get("/api/myprofile", headers=alice["headers"])
        assert r.status_code == 200
        body = r.json()
        assert body["user"]["email"] == "alice@example.com"
        assert body["stats"]["journals_count"] == 1
        assert body["stats"]["recent_activity"] == 1
        assert body["stats"]["consistency"] == 3

    async def test_update_profile(self, client, alice):
        r = await client.put(
            "/api/myprofile",
            json=_profile_body(username="Alice_L", bio="  Down the rabbit hole  ", location="Oxford"),
            headers=alice["headers"],
        )
        assert r.status_code == 200
        body = r.json()
        assert body["name"] == "Alice Liddell"
        assert body["username"] == "alice_l"
        assert body["bio"] == "Down the rabbit hole"
        assert body["location"] == "Oxford"

        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["username"] == "alice_l"

    async def test_username_taken(self, client, alice, bob):
        r = await client.put("/api/myprofile", json=_profile_body(username="bob"), headers=alice["headers"])
        assert r.status_code == 409

    async def test_keeping_own_username_is_fine(self, client, alice):
        r = await client.put("/api/myprofile", json=_profile_body(username="ALICE"), headers=alice["headers"])
        assert r.status_code == 200

    async def test_bio_too_long(self, client, alice):
        r = await client.put("/api/myprofile", json=_profile_body(bio="x" * 501), headers=alice["headers"])
        assert r.status_code == 400

    async def test_blank_name(self, client, alice):
        r = await client.put("/api/myprofile", json=_profile_body(name="  "), headers=alice["headers"])
        assert r.status_code == 400

    async def test_refresh_stats_persists_counters(self, client, alice, bob):
        journal = (await create_journal(client, alice, "2026-10-01", visibility="public")).json()
        await client.post("/api/reactions", json={"journal_id": journal["id"]}, headers=bob["headers"])

        r = await client.post("/api/myprofile/stats/refresh", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json()["message"] == "Stats updated successfully"
        assert r.json()["stats"]["total_likes"] == 1

        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["total_likes"] == 1
        assert me.json()["consistency"] == 3


class TestPublicProfiles:
    """GET /users/{id} and search."""

    async def test_public_profile_hides_email(self, client, alice, bob):
        await create_journal(client, bob, "2026-10-01", visibility="public")
        r = await client.get(f"/api/users/{bob['id']}", headers=alice["headers"])
        assert r.status_code == 200
        body = r.json()
        assert "email" not in body
        assert body["username"] == "bob"
        assert body["journals_count"] == 1
        assert body["relation_status"] == "none"

    async def test_public_profile_shows_relation(self, client, alice, bob):
        await befriend(client, alice, bob)
        r = await client.get(f"/api/users/{bob['id']}", headers=alice["headers"])
        assert r.json()["relation_status"] == "accepted"

    async def test_unknown_user(self, client, alice):
        r = await client.get("/api/users/ghost", headers=alice["headers"])
        assert r.status_code == 404

    async def test_search_by_name_or_username(self, client, alice, bob, carol):
        r = await client.get("/api/users/search", params={"q": "CAR"}, headers=alice["headers"])
        assert r.status_code == 200
        assert [u["username"] for u in r.json()["users"]] == ["carol"]

    async def test_search_excludes_self(self, client, alice):
        r = await client.get("/api/users/search", params={"q": "alice"}, headers=alice["headers"])
        assert r.json()["users"] == []

    async def test_search_needs_two_characters(self, client, alice):
        r = await client.get("/api/users/search", params={"q": " a "}, headers=alice["headers"])
        assert r.status_code == 400


class TestProfileImage:
    """Profile picture upload and deletion."""

    async def test_upload_sets_profile_image(self, client, alice, media_host):
        r = await client.post(
            "/api/upload/profile-image",
            files={"image": ("me.png", PNG_BYTES, "image/png")},
            headers=alice["headers"],
        )
        assert r.status_code == 200
        body = r.json()
        assert body["public_id"].startswith(f"journal-app/profile-images/profile_{alice['id']}_")
        assert body["public_id"] in media_host.images

        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["profile_image"] == body["url"]

    async def test_delete_own_image_clears_profile(self, client, alice, media_host):
        uploaded = (await client.post(
            "/api/upload/profile-image",
            files={"image": ("me.png", PNG_BYTES, "image/png")},
            headers=alice["headers"],
        )).json()

        r = await client.delete(f"/api/upload/profile-image/{uploaded['public_id']}", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json() == {"message": "Image deleted successfully", "deleted": True}
        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["profile_image"] is None

        again = await client.delete(f"/api/upload/profile-image/{uploaded['public_id']}", headers=alice["headers"])
        assert again.json()["deleted"] is False

    async def test_cannot_delete_someone_elses_image(self, client, alice, bob, media_host):
        uploaded = (await client.post(
            "/api/upload/profile-image",
            files={"image": ("me.png", PNG_BYTES, "image/png")},
            headers=alice["headers"],
        )).json()
        r = await client.delete(f"/api/upload/profile-image/{uploaded['public_id']}", headers=bob["headers"])
        assert r.status_code == 403
        assert uploaded["public_id"] in media_host.images

    async def test_failed_upload_keeps_old_image(self, client, alice, media_host):
        media_host.fail_uploads = True
        r = await client.post(
            "/api/upload/profile-image",
            files={"image": ("me.png", PNG_BYTES, "image/png")},
            headers=alice["headers"],
        )
        assert r.status_code == 502
        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["profile_image"] is None

    async def test_deleting_other_own_image_keeps_profile(self, client, alice, media_host):
        uploaded = (await client.post(
            "/api/upload/profile-image",
            files={"image": ("me.png", PNG_BYTES, "image/png")},
            headers=alice["headers"],
        )).json()
        # shares a prefix with the current picture's id
        older = f"journal-app/profile-images/profile_{alice['id']}_1"

        r = await client.delete(f"/api/upload/profile-image/{older}", headers=alice["headers"])
        assert r.status_code == 200
        assert r.json()["deleted"] is False
        me = await client.get("/api/auth/me", headers=alice["headers"])
        assert me.json()["profile_image"] == uploaded["url"]
        assert uploaded["public_id"] in media_host.images


class TestProfileImageMatching:
    """ProfileImageService.points_at compares the delivered file name."""

    def test_exact_file_name(self):
        url = "https://res.cloudinary.test/image/upload/v1/journal-app/profile-images/profile_u1_1700.png"
        assert ProfileImageService.points_at(url, "journal-app/profile-images/profile_u1_1700")
        assert not ProfileImageService.points_at(url, "journal-app/profile-images/profile_u1_17")
        assert not ProfileImageService.points_at(url, "journal-app/profile-images/profile_u1_17000")

    def test_query_string_ignored(self):
        url = "https://res.cloudinary.test/image/upload/profile_u1_1700.jpg?version=2"
        assert ProfileImageService.points_at(url, "profile_u1_1700")
