"""ABOUTME: Unit tests for the Client domain model
ABOUTME: Tests redirect URI checks and detached copies"""

import uuid

import pytest

from openidp.domain.clients import Client


class TestClient:
    def test_client_name_defaults_to_client_id(self):
        client = Client(client_id="portal")

        assert client.client_name == "portal"
        assert client.has_theme is False

    def test_client_id_required(self):
        with pytest.raises(ValueError):
            Client(client_id="")

    def test_allows_only_registered_redirects(self):
        client = Client(client_id="portal", redirect_uris=["https://portal.example.com/cb"])

        assert client.allows_redirect("https://portal.example.com/cb")
        assert not client.allows_redirect("https://evil.example.com/cb")
        assert not client.allows_redirect(None)
        assert not client.allows_redirect("")

    def test_allows_only_registered_post_logout_redirects(self):
        client = Client(client_id="portal", post_logout_redirect_uris=["https://portal.example.com/bye"])

        assert client.allows_post_logout_redirect("https://portal.example.com/bye")
        assert not client.allows_post_logout_redirect("https://portal.example.com/cb")

    def test_detached_copy_does_not_share_lists(self):
        client = Client(client_id="portal", theme_id=uuid.uuid4(), redirect_uris=["https://a.example.com"])

        copy = client.create_detached_copy()
        copy.redirect_uris.append("https://b.example.com")

        assert copy == client
        assert copy.theme_id == client.theme_id
        assert client.redirect_uris == ["https://a.example.com"]
