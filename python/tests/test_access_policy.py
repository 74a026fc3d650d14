"""Tests for the access policy.

Tests cover:
- Block list and adult label redirects
- Admin Referer bypass, including turning it off
- Whitelist-only mode
- When moderation is asked for
- Persisting an adult verdict and degrading on moderation failure
- Redirect targets
"""

import pytest
import respx

from filegate.services.access_policy import (
    AccessDecision,
    RequestContext,
    blocked_redirect_url,
    decide,
    moderate,
    whitelist_redirect_url,
)
from filegate.services.records import build_record
from filegate.services.resolver import ResolvedFile
from tests.helpers import MODERATION_API_URL

ORIGIN = "https://files.example"
PUBLIC = RequestContext(origin=ORIGIN)
ADMIN = RequestContext(origin=ORIGIN, referer=f"{ORIGIN}/admin.html")


def _resolved(key: str = "img:a.png", **metadata) -> ResolvedFile:
    metadata.setdefault("fileName", "a.png")
    return ResolvedFile(record=build_record(key, metadata, kv_key=key), kv_key=key, value="v")


class TestDecide:
    """Tests for decide."""

    def test_blocked_file_redirects(self, settings):
        decision = decide(_resolved(ListType="Block"), PUBLIC, settings, moderation_enabled=False)
        assert decision == AccessDecision.REDIRECT_BLOCKED

    def test_adult_label_redirects(self, settings):
        decision = decide(_resolved(Label="adult"), PUBLIC, settings, moderation_enabled=False)
        assert decision == AccessDecision.REDIRECT_BLOCKED

    def test_admin_referer_bypasses_block(self, settings):
        decision = decide(_resolved(ListType="Block"), ADMIN, settings, moderation_enabled=False)
        assert decision == AccessDecision.SERVE

    def test_admin_bypass_can_be_disabled(self, settings):
        strict = settings.model_copy(update={"admin_referer_bypass": False})
        decision = decide(_resolved(ListType="Block"), ADMIN, strict, moderation_enabled=False)
        assert decision == AccessDecision.REDIRECT_BLOCKED

    def test_foreign_admin_referer_does_not_bypass(self, settings):
        ctx = RequestContext(origin=ORIGIN, referer="https://evil.example/admin")
        decision = decide(_resolved(ListType="Block"), ctx, settings, moderation_enabled=False)
        assert decision == AccessDecision.REDIRECT_BLOCKED

    def test_whitelisted_file_served(self, settings):
        whitelist_only = settings.model_copy(update={"whitelist_mode": True})
        decision = decide(
            _resolved(ListType="White"), PUBLIC, whitelist_only, moderation_enabled=True
        )
        assert decision == AccessDecision.SERVE

    def test_whitelist_mode_redirects_others(self, settings):
        whitelist_only = settings.model_copy(update={"whitelist_mode": True})
        decision = decide(_resolved(), PUBLIC, whitelist_only, moderation_enabled=False)
        assert decision == AccessDecision.REDIRECT_WHITELIST_ONLY

    def test_unlabelled_message_host_file_needs_moderation(self, settings):
        decision = decide(_resolved(), PUBLIC, settings, moderation_enabled=True)
        assert decision == AccessDecision.NEEDS_MODERATION

    def test_labelled_file_skips_moderation(self, settings):
        decision = decide(_resolved(Label="everyone"), PUBLIC, settings, moderation_enabled=True)
        assert decision == AccessDecision.SERVE

    def test_object_store_file_skips_moderation(self, settings):
        resolved = _resolved("r2:a.png", storage="r2")
        decision = decide(resolved, PUBLIC, settings, moderation_enabled=True)
        assert decision == AccessDecision.SERVE

    def test_served_without_moderation(self, settings):
        assert decide(_resolved(), PUBLIC, settings, moderation_enabled=False) == (
            AccessDecision.SERVE
        )


class TestModerate:
    """Tests for moderate."""

    @respx.mock
    def test_adult_verdict_is_persisted(self, moderation, metadata_store):
        respx.get(MODERATION_API_URL).respond(200, json={"rating_label": "adult"})
        resolved = _resolved(uploader="x")

        decision = moderate(
            resolved, moderation, metadata_store, content_url="https://telegraph.test/file/a.png"
        )

        assert decision == AccessDecision.REDIRECT_BLOCKED
        entry = metadata_store.get_with_metadata("img:a.png")
        assert entry.value == "v"
        assert entry.metadata["Label"] == "adult"
        assert entry.metadata["uploader"] == "x"

    @respx.mock
    def test_other_verdict_is_served(self, moderation, metadata_store):
        respx.get(MODERATION_API_URL).respond(200, json={"rating_label": "everyone"})

        decision = moderate(
            _resolved(), moderation, metadata_store, content_url="https://telegraph.test/a.png"
        )

        assert decision == AccessDecision.SERVE
        assert metadata_store.keys() == []

    @respx.mock
    def test_moderation_failure_is_served(self, moderation, metadata_store):
        respx.get(MODERATION_API_URL).respond(500)

        decision = moderate(
            _resolved(), moderation, metadata_store, content_url="https://telegraph.test/a.png"
        )

        assert decision == AccessDecision.SERVE


class TestRedirectTargets:
    """Tests for redirect URLs."""

    def test_blocked_embedded_request_gets_placeholder_image(self, settings):
        ctx = RequestContext(origin=ORIGIN, referer="https://blog.example/post")
        assert blocked_redirect_url(ctx, settings) == settings.blocked_image_url

    def test_blocked_direct_request_gets_page(self, settings):
        assert blocked_redirect_url(PUBLIC, settings) == f"{ORIGIN}/block-img.html"

    def test_whitelist_page(self):
        assert whitelist_redirect_url(PUBLIC) == f"{ORIGIN}/whitelist-on.html"

    @pytest.mark.parametrize(
        "referer,expected",
        [(None, False), (f"{ORIGIN}/admin", True), (f"{ORIGIN}/admin-imgtc.html", True)],
    )
    def test_from_admin_page(self, referer, expected):
        assert RequestContext(origin=ORIGIN, referer=referer).from_admin_page is expected
