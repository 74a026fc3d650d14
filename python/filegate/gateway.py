"""The immutable bundle of settings and backend clients a request works with.

Built once at startup from Settings and stored on app.state; services
receive it explicitly instead of looking up configuration themselves.
Optional collaborators are None when their configuration is absent.
"""

from dataclasses import dataclass

import httpx

from filegate.config import Settings
from filegate.logging import get_logger
from filegate.services.moderation import ModerateContentClient
from filegate.storage.client import ObjectStoreBase, R2StorageClient
from filegate.storage.kv import CloudflareKVClient, MetadataStoreBase
from filegate.storage.telegram import TelegramBotClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class Gateway:
    """Configuration and backend clients for request handling."""

    settings: Settings
    message_host: TelegramBotClient | None = None
    metadata_store: MetadataStoreBase | None = None
    object_store: ObjectStoreBase | None = None
    moderation: ModerateContentClient | None = None


def create_http_client(settings: Settings) -> httpx.Client:
    """Create the shared httpx client for all outbound REST calls."""
    return httpx.Client(
        timeout=httpx.Timeout(settings.upstream_timeout_s, connect=10.0),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
        follow_redirects=True,
    )


def build_gateway(settings: Settings, http_client: httpx.Client) -> Gateway:
    """Construct every configured backend client.

    Args:
        settings: Loaded settings.
        http_client: Shared client used by the REST-based backends.

    Returns:
        Gateway with unconfigured collaborators left as None.
    """
    metadata_store = None
    if settings.metadata_store_configured:
        metadata_store = CloudflareKVClient(
            http_client,
            account_id=settings.cf_account_id,  # type: ignore[arg-type]
            namespace_id=settings.kv_namespace_id,  # type: ignore[arg-type]
            api_token=settings.cf_api_token,  # type: ignore[arg-type]
            base_url=settings.cf_api_base_url,
        )

    object_store = None
    if settings.object_store_configured:
        object_store = R2StorageClient(
            bucket=settings.r2_bucket,  # type: ignore[arg-type]
            endpoint_url=settings.effective_r2_endpoint_url,  # type: ignore[arg-type]
            access_key_id=settings.r2_access_key_id,  # type: ignore[arg-type]
            secret_access_key=settings.r2_secret_access_key,  # type: ignore[arg-type]
        )

    moderation = None
    if settings.moderation_configured:
        moderation = ModerateContentClient(
            http_client,
            api_key=settings.moderate_content_api_key,  # type: ignore[arg-type]
            api_url=settings.moderation_api_url,
        )

    # Legacy Telegraph files need no credentials, so the message host is always present
    message_host = TelegramBotClient(
        http_client,
        bot_token=settings.tg_bot_token,
        chat_id=settings.tg_chat_id,
        api_base_url=settings.tg_api_base_url,
        telegraph_base_url=settings.telegraph_base_url,
    )

    logger.info(
        "gateway_initialized",
        metadata_store=metadata_store is not None,
        object_store=object_store is not None,
        moderation=moderation is not None,
        message_host_bot=settings.message_host_configured,
        whitelist_mode=settings.whitelist_mode,
    )

    return Gateway(
        settings=settings,
        message_host=message_host,
        metadata_store=metadata_store,
        object_store=object_store,
        moderation=moderation,
    )
