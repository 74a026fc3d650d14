"""Read path: identifier to streamed bytes.

resolve -> access policy -> (moderation) -> backend via range shim -> response

Without a metadata store, message-host files are served directly with no
access control. Ids prefixed r2: are served from the object store even when
no metadata record exists.
"""

from starlette.responses import Response

from filegate.errors import NotFoundError
from filegate.gateway import Gateway
from filegate.logging import get_logger
from filegate.services.access_policy import (
    AccessDecision,
    RequestContext,
    blocked_redirect_url,
    decide,
    moderate,
    whitelist_redirect_url,
)
from filegate.services.backends import select_adapter
from filegate.services.delivery import build_file_response, redirect_response
from filegate.services.range_shim import RangeCompatibilityShim
from filegate.services.records import FileRecord, MessageHostLocation, build_record
from filegate.services.resolver import ResolvedFile, resolve_file
from filegate.storage.keys import is_object_store_id

logger = get_logger(__name__)


def _unrecorded_file(gateway: Gateway, file_id: str) -> FileRecord:
    """Default record for ids without metadata, where serving is still allowed."""
    if is_object_store_id(file_id) or gateway.metadata_store is None:
        return build_record(file_id, None)
    raise NotFoundError()


def _moderation_url(gateway: Gateway, resolved: ResolvedFile) -> str | None:
    location = resolved.record.location
    if not isinstance(location, MessageHostLocation):
        return None
    base_url = gateway.settings.telegraph_base_url.rstrip("/")
    return f"{base_url}/file/{location.file_id}"


def _apply_policy(
    gateway: Gateway, resolved: ResolvedFile, ctx: RequestContext
) -> AccessDecision:
    decision = decide(
        resolved,
        ctx,
        gateway.settings,
        moderation_enabled=gateway.moderation is not None,
    )

    content_url = _moderation_url(gateway, resolved)
    if (
        decision == AccessDecision.NEEDS_MODERATION
        and gateway.moderation is not None
        and gateway.metadata_store is not None
        and content_url is not None
    ):
        decision = moderate(
            resolved, gateway.moderation, gateway.metadata_store, content_url=content_url
        )
    elif decision == AccessDecision.NEEDS_MODERATION:
        decision = AccessDecision.SERVE

    return decision


def serve_file(
    gateway: Gateway,
    file_id: str,
    ctx: RequestContext,
    *,
    range_header: str | None = None,
    head: bool = False,
) -> Response:
    """Resolve, authorize and stream a file.

    Args:
        gateway: Settings and backend clients.
        file_id: Identifier from the request path.
        ctx: Request facts for the access policy.
        range_header: Client's Range header, if any.
        head: True for HEAD requests (headers only).

    Returns:
        200/206 streaming response, or a 302 redirect.

    Raises:
        ApiError: 404 for unknown files, 416 for unsatisfiable ranges, 500 for
            backend and resolution failures.
    """
    resolved = None
    if gateway.metadata_store is not None:
        resolved = resolve_file(gateway.metadata_store, file_id)

    if resolved is None:
        record = _unrecorded_file(gateway, file_id)
    else:
        decision = _apply_policy(gateway, resolved, ctx)
        logger.info("access_decided", kv_key=resolved.kv_key, decision=decision.value)

        if decision == AccessDecision.REDIRECT_BLOCKED:
            return redirect_response(blocked_redirect_url(ctx, gateway.settings))
        if decision == AccessDecision.REDIRECT_WHITELIST_ONLY:
            return redirect_response(whitelist_redirect_url(ctx))
        record = resolved.record

    adapter = select_adapter(
        record.location,
        object_store=gateway.object_store,
        message_host=gateway.message_host,
    )
    shim = RangeCompatibilityShim(
        adapter, max_buffered_bytes=gateway.settings.max_buffered_range_bytes
    )
    backend_response = shim.fetch(range_header, head=head)

    return build_file_response(backend_response, record.file_name, head=head)
