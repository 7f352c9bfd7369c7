"""Tests for the Cloudinary and Google OAuth clients against mocked HTTP."""
import hashlib
import json
from urllib.parse import parse_qs

import httpx
import pytest

from closecircle.domain.common.errors import UpstreamError, ValidationError
from closecircle.domain.media.models import ImageUpload
from closecircle.infra.vendors.google_oauth import TOKEN_URL, USERINFO_URL, GoogleOAuthClient
from closecircle.infra.vendors.media_host import CloudinaryMediaHost, sign_params

IMAGE = ImageUpload(filename="a.png", content_type="image/png", data=b"\x89PNG" + b"\x00" * 16)


def _host(handler) -> CloudinaryMediaHost:
    return CloudinaryMediaHost(
        cloud_name="demo",
        api_key="key-1",
        api_secret="shh",
        base_url="https://api.cloudinary.test/v1_1",
        transport=httpx.MockTransport(handler),
    )


def _google(handler) -> GoogleOAuthClient:
    return GoogleOAuthClient(
        client_id="client-1",
        client_secret="secret-1",
        redirect_uri="http://localhost:8000/api/auth/google/callback",
        transport=httpx.MockTransport(handler),
    )


class TestSignature:
    def test_sorted_pairs_then_secret(self):
        expected = hashlib.sha1(b"public_id=sample&timestamp=1315060510abcd").hexdigest()
        assert sign_params({"timestamp": "1315060510", "public_id": "sample"}, "abcd") == expected

    def test_empty_values_are_skipped(self):
        assert sign_params({"timestamp": "1", "folder": ""}, "s") == sign_params({"timestamp": "1"}, "s")


class TestCloudinaryMediaHost:
    """Upload and destroy."""

    async def test_upload_posts_signed_multipart(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = request.read()
            return httpx.Response(
                200,
                json={"secure_url": "https://res.cloudinary.test/x.png", "public_id": "journals/x", "width": 10},
            )

        stored = await _host(handler).upload(IMAGE, folder="journals")

        assert seen["url"] == "https://api.cloudinary.test/v1_1/demo/image/upload"
        assert b'name="folder"' in seen["body"]
        assert b'name="signature"' in seen["body"]
        assert b'name="api_key"' in seen["body"]
        assert stored.url == "https://res.cloudinary.test/x.png"
        assert stored.public_id == "journals/x"
        assert stored.width == 10

    async def test_upload_http_error_is_upstream(self):
        host = _host(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(UpstreamError):
            await host.upload(IMAGE, folder="journals")

    async def test_upload_without_url_is_upstream(self):
        host = _host(lambda request: httpx.Response(200, json={"public_id": "x"}))
        with pytest.raises(UpstreamError):
            await host.upload(IMAGE, folder="journals")

    @pytest.mark.parametrize("result, expected", [("ok", True), ("not found", False)])
    async def test_delete_outcomes(self, result, expected):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["form"] = parse_qs(request.read().decode())
            return httpx.Response(200, json={"result": result})

        assert await _host(handler).delete("journals/x") is expected
        assert seen["url"].endswith("/demo/image/destroy")
        assert seen["form"]["public_id"] == ["journals/x"]

    async def test_delete_unexpected_result(self):
        host = _host(lambda request: httpx.Response(200, json={"result": "error"}))
        with pytest.raises(UpstreamError):
            await host.delete("journals/x")

    async def test_unconfigured_host(self):
        host = _host(lambda request: httpx.Response(200, json={}))
        host.api_secret = ""
        with pytest.raises(UpstreamError):
            await host.upload(IMAGE, folder="journals")


class TestGoogleOAuthClient:
    """Consent URL and code exchange."""

    def test_authorization_url_carries_state(self):
        client = _google(lambda request: httpx.Response(500))
        url = httpx.URL(client.authorization_url("abc"))
        assert url.params["state"] == "abc"
        assert url.params["client_id"] == "client-1"
        assert url.params["response_type"] == "code"

    async def test_fetch_profile(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                form = parse_qs(request.read().decode())
                assert form["code"] == ["the-code"]
                assert form["grant_type"] == ["authorization_code"]
                return httpx.Response(200, json={"access_token": "at-1"})
            assert str(request.url) == USERINFO_URL
            assert request.headers["Authorization"] == "Bearer at-1"
            return httpx.Response(
                200,
                content=json.dumps(
                    {"sub": "42", "email": "jane@gmail.com", "email_verified": True, "name": "Jane", "picture": "p"}
                ),
            )

        profile = await _google(handler).fetch_profile("the-code")
        assert profile.subject == "42"
        assert profile.email == "jane@gmail.com"
        assert profile.display_name == "Jane"

    async def test_rejected_code(self):
        client = _google(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))
        with pytest.raises(ValidationError):
            await client.fetch_profile("stale")

    async def test_unverified_email(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url) == TOKEN_URL:
                return httpx.Response(200, json={"access_token": "at"})
            return httpx.Response(200, json={"sub": "1", "email": "x@gmail.com", "email_verified": False})

        with pytest.raises(ValidationError):
            await _google(handler).fetch_profile("code")

    async def test_provider_outage(self):
        client = _google(lambda request: httpx.Response(503))
        with pytest.raises(UpstreamError):
            await client.fetch_profile("code")
