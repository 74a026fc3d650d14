"""Tests for the moderation client."""

import httpx
import pytest
import respx

from filegate.services.moderation import ModerationUnavailableError
from tests.helpers import MODERATION_API_URL


class TestModerateContentClient:
    """Tests for ModerateContentClient.rate."""

    @respx.mock
    def test_returns_rating_label(self, moderation):
        route = respx.get(MODERATION_API_URL).respond(200, json={"rating_label": "adult"})

        assert moderation.rate("https://telegraph.test/file/a.png") == "adult"

        params = route.calls.last.request.url.params
        assert params["key"] == "test-key"
        assert params["url"] == "https://telegraph.test/file/a.png"

    @respx.mock
    def test_missing_label(self, moderation):
        respx.get(MODERATION_API_URL).respond(200, json={"error": "bad url"})
        assert moderation.rate("https://telegraph.test/file/a.png") is None

    @respx.mock
    def test_http_error(self, moderation):
        respx.get(MODERATION_API_URL).respond(503)

        with pytest.raises(ModerationUnavailableError, match="503"):
            moderation.rate("https://telegraph.test/file/a.png")

    @respx.mock
    def test_invalid_json(self, moderation):
        respx.get(MODERATION_API_URL).respond(200, text="<html>")

        with pytest.raises(ModerationUnavailableError, match="invalid JSON"):
            moderation.rate("https://telegraph.test/file/a.png")

    @respx.mock
    def test_network_error(self, moderation):
        respx.get(MODERATION_API_URL).mock(side_effect=httpx.ReadTimeout("slow"))

        with pytest.raises(ModerationUnavailableError):
            moderation.rate("https://telegraph.test/file/a.png")
