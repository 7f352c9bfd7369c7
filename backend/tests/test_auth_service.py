"""AuthService with its password hasher and token issuer swapped out."""
from typing import Optional

import pytest

from closecircle.domain.common.errors import AuthenticationError
from closecircle.domain.identity.models import AuthTokens
from closecircle.domain.identity.services import AuthService
from closecircle.infra.db.repositories.user_repo import UserRepositoryImpl


class PlainHasher:
    def hash(self, password: str) -> str:
        return f"hashed:{password}"

    def verify(self, password: str, password_hash: str) -> bool:
        return password_hash == f"hashed:{password}"


class CountingIssuer:
    """Tokens are "<kind>-<user_id>-<n>"; decode reads them back."""

    def __init__(self):
        self.issued = 0

    def issue(self, user_id: str) -> AuthTokens:
        self.issued += 1
        return AuthTokens(
            access_token=f"access-{user_id}-{self.issued}",
            refresh_token=f"refresh-{user_id}-{self.issued}",
        )

    def decode(self, token: str) -> Optional[dict]:
        kind, _, rest = token.partition("-")
        user_id, _, _ = rest.rpartition("-")
        if not user_id:
            return None
        return {"type": kind, "sub": user_id}


@pytest.fixture
async def session(database):
    async with database.session() as s:
        yield s


@pytest.fixture
def issuer():
    return CountingIssuer()


@pytest.fixture
def service(session, issuer):
    return AuthService(UserRepositoryImpl(session), PlainHasher(), issuer)


class TestInjectedCollaborators:
    async def test_register_uses_hasher_and_issuer(self, service):
        user, tokens = await service.register("Dana", "dana", "dana@example.com", "secret123")
        assert user.password_hash == "hashed:secret123"
        assert tokens.access_token == f"access-{user.id}-1"

    async def test_login_verifies_through_hasher(self, service):
        user, _ = await service.register("Dana", "dana", "dana@example.com", "secret123")
        logged_in, tokens = await service.login("dana@example.com", "secret123")
        assert logged_in.id == user.id
        assert tokens.refresh_token == f"refresh-{user.id}-2"
        with pytest.raises(AuthenticationError):
            await service.login("dana", "wrong-password")

    async def test_refresh_decodes_through_issuer(self, service, issuer):
        _, tokens = await service.register("Dana", "dana", "dana@example.com", "secret123")
        fresh = await service.refresh(tokens.refresh_token)
        assert issuer.issued == 2
        assert fresh.access_token.endswith("-2")
        with pytest.raises(AuthenticationError):
            await service.refresh(tokens.access_token)
        with pytest.raises(AuthenticationError):
            await service.refresh("garbage")
