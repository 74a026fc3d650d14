"""Access policy for resolved files.

Rules, in order:
(a) Blocked or adult-labelled files redirect to the blocked placeholder,
    unless the request comes from the admin page.
(b) Whitelisted files are served.
(c) In whitelist-only mode everything else redirects.
(d) Message-host files without a moderation label are sent to the
    moderation collaborator when one is configured.
(e) Everything else is served.

The admin check is a Referer substring match. The Referer header is set by
the client, so this only keeps the admin page working; it does not
authenticate anyone and can be turned off with ADMIN_REFERER_BYPASS=false.
"""

from dataclasses import dataclass
from enum import Enum

from filegate.config import Settings
from filegate.logging import get_logger
from filegate.services.moderation import ModerateContentClient, ModerationUnavailableError
from filegate.services.records import ADULT_LABEL, ListType, StorageKind
from filegate.services.resolver import ResolvedFile
from filegate.storage.kv import MetadataStoreBase, MetadataStoreError

logger = get_logger(__name__)


class AccessDecision(str, Enum):
    """What to do with a read request."""

    SERVE = "serve"
    REDIRECT_BLOCKED = "redirect_blocked"
    REDIRECT_WHITELIST_ONLY = "redirect_whitelist_only"
    NEEDS_MODERATION = "needs_moderation"


@dataclass(frozen=True)
class RequestContext:
    """Request facts the policy depends on."""

    origin: str
    referer: str | None = None

    @property
    def from_admin_page(self) -> bool:
        return bool(self.referer and f"{self.origin}/admin" in self.referer)


def decide(
    resolved: ResolvedFile,
    ctx: RequestContext,
    settings: Settings,
    *,
    moderation_enabled: bool,
) -> AccessDecision:
    """Apply the access rules to a resolved record."""
    record = resolved.record

    if record.is_blocked:
        if settings.admin_referer_bypass and ctx.from_admin_page:
            logger.warning("admin_referer_bypass_used", kv_key=resolved.kv_key)
            return AccessDecision.SERVE
        return AccessDecision.REDIRECT_BLOCKED

    if record.list_type == ListType.WHITE:
        return AccessDecision.SERVE

    if settings.whitelist_mode:
        return AccessDecision.REDIRECT_WHITELIST_ONLY

    if (
        moderation_enabled
        and record.label is None
        and record.storage_kind == StorageKind.MESSAGE_HOST
    ):
        return AccessDecision.NEEDS_MODERATION

    return AccessDecision.SERVE


def moderate(
    resolved: ResolvedFile,
    moderation: ModerateContentClient,
    store: MetadataStoreBase,
    *,
    content_url: str,
) -> AccessDecision:
    """Run the moderation call and persist an adult verdict.

    Moderation failures never block access: they are logged and the file is
    served.
    """
    try:
        label = moderation.rate(content_url)
    except ModerationUnavailableError as e:
        logger.warning("moderation_failed", kv_key=resolved.kv_key, error=str(e))
        return AccessDecision.SERVE

    if label != ADULT_LABEL:
        return AccessDecision.SERVE

    labelled = resolved.record.with_label(label)
    try:
        store.put(resolved.kv_key, resolved.value, metadata=labelled.to_metadata())
    except MetadataStoreError as e:
        logger.warning("moderation_label_not_saved", kv_key=resolved.kv_key, error=e.message)
    else:
        logger.info("moderation_label_saved", kv_key=resolved.kv_key, label=label)

    return AccessDecision.REDIRECT_BLOCKED


def blocked_redirect_url(ctx: RequestContext, settings: Settings) -> str:
    """Placeholder image for embedded requests, placeholder page otherwise."""
    if ctx.referer:
        return settings.blocked_image_url
    return f"{ctx.origin}/block-img.html"


def whitelist_redirect_url(ctx: RequestContext) -> str:
    return f"{ctx.origin}/whitelist-on.html"
