"""Tests for identity types and providers."""

import pytest
from aiohttp.test_utils import make_mocked_request

from noted_store.identity import (
    AuthenticationRequiredError,
    HeaderIdentityProvider,
    StaticIdentityProvider,
    UserIdentity,
)


class TestUserIdentity:
    """Tests for UserIdentity."""

    def test_user_id_is_email(self):
        identity = UserIdentity(email="alice@example.com", user="Alice")

        assert identity.user_id == "alice@example.com"

    def test_requires_email(self):
        with pytest.raises(ValueError):
            UserIdentity(email="")

    def test_dict_round_trip(self):
        identity = UserIdentity(email="alice@example.com", user="Alice")

        assert UserIdentity.from_dict(identity.to_dict()) == identity


class TestHeaderIdentityProvider:
    """Tests for HeaderIdentityProvider."""

    async def test_reads_proxy_headers(self):
        request = make_mocked_request(
            "GET",
            "/api/store/getLogs",
            headers={"X-Forwarded-Email": "alice@example.com", "X-Forwarded-User": "Alice"},
        )

        identity = await HeaderIdentityProvider().get_identity(request)

        assert identity == UserIdentity(email="alice@example.com", user="Alice")

    async def test_user_defaults_to_local_part(self):
        request = make_mocked_request(
            "GET", "/", headers={"X-Forwarded-Email": "bob@example.com"}
        )

        identity = await HeaderIdentityProvider().get_identity(request)

        assert identity.user == "bob"

    async def test_custom_header(self):
        request = make_mocked_request("GET", "/", headers={"X-Auth-Email": "c@example.com"})

        identity = await HeaderIdentityProvider(email_header="X-Auth-Email").get_identity(
            request
        )

        assert identity.user_id == "c@example.com"

    async def test_missing_header_raises(self):
        request = make_mocked_request("GET", "/", headers={"X-Forwarded-Email": "  "})

        with pytest.raises(AuthenticationRequiredError):
            await HeaderIdentityProvider().get_identity(request)


class TestStaticIdentityProvider:
    """Tests for StaticIdentityProvider."""

    async def test_same_identity_every_time(self):
        provider = StaticIdentityProvider("dev@example.com")
        request = make_mocked_request("GET", "/")

        first = await provider.get_identity(request)
        second = await provider.get_identity(request)

        assert first is second
        assert first.user == "dev"
