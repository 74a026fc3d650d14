"""Gateway settings loaded from environment variables.

Object Store (Cloudflare R2, S3-compatible API):
    R2_BUCKET: Bucket holding object-store files
    R2_ACCOUNT_ID: Cloudflare account id (used to derive the endpoint)
    R2_ENDPOINT_URL: Explicit S3 endpoint (overrides R2_ACCOUNT_ID)
    R2_ACCESS_KEY_ID / R2_SECRET_ACCESS_KEY: S3 credentials

Metadata Store (Cloudflare Workers KV, REST API):
    CF_ACCOUNT_ID, CF_API_TOKEN, KV_NAMESPACE_ID
    Optional. Without it only message-host files are served, with no
    access control and no moderation.

Message Host (Telegram Bot API):
    TG_Bot_Token, TG_Chat_ID: Required to resolve and delete bot uploads
    TG_API_BASE_URL, TELEGRAPH_BASE_URL: Upstream base URLs

Access Policy:
    ModerateContentApiKey: Enables the moderation call (optional)
    WhiteList_Mode: Only whitelisted files are served
    ADMIN_REFERER_BYPASS: Let requests whose Referer points at <origin>/admin
        through the block gate. The Referer header is client-controlled, so this
        is a convenience for the admin page, not an authentication boundary.

Variable names follow the ones used by the existing deployment, so an
environment file from the worker deployment can be reused as-is.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Gateway configuration.

    Immutable once loaded; request handling receives it through the Gateway
    value built at startup and never reads the environment itself.
    """

    # Object store
    r2_bucket: str | None = Field(default=None, alias="R2_BUCKET")
    r2_account_id: str | None = Field(default=None, alias="R2_ACCOUNT_ID")
    r2_endpoint_url: str | None = Field(default=None, alias="R2_ENDPOINT_URL")
    r2_access_key_id: str | None = Field(default=None, alias="R2_ACCESS_KEY_ID")
    r2_secret_access_key: str | None = Field(default=None, alias="R2_SECRET_ACCESS_KEY")

    # Metadata store
    cf_account_id: str | None = Field(default=None, alias="CF_ACCOUNT_ID")
    cf_api_token: str | None = Field(default=None, alias="CF_API_TOKEN")
    kv_namespace_id: str | None = Field(default=None, alias="KV_NAMESPACE_ID")
    cf_api_base_url: str = Field(
        default="https://api.cloudflare.com/client/v4", alias="CF_API_BASE_URL"
    )

    # Message host
    tg_bot_token: str | None = Field(default=None, alias="TG_Bot_Token")
    tg_chat_id: str | None = Field(default=None, alias="TG_Chat_ID")
    tg_api_base_url: str = Field(default="https://api.telegram.org", alias="TG_API_BASE_URL")
    telegraph_base_url: str = Field(default="https://telegra.ph", alias="TELEGRAPH_BASE_URL")

    # Moderation
    moderate_content_api_key: str | None = Field(default=None, alias="ModerateContentApiKey")
    moderation_api_url: str = Field(
        default="https://api.moderatecontent.com/moderate/", alias="MODERATION_API_URL"
    )

    # Access policy
    whitelist_mode: bool = Field(default=False, alias="WhiteList_Mode")
    admin_referer_bypass: bool = Field(default=True, alias="ADMIN_REFERER_BYPASS")
    blocked_image_url: str = Field(
        default="https://static-res.pages.dev/teleimage/img-block-compressed.png",
        alias="BLOCKED_IMAGE_URL",
    )

    # Limits
    max_buffered_range_bytes: int = Field(
        default=64 * 1024 * 1024, alias="MAX_BUFFERED_RANGE_BYTES"
    )  # 64 MB
    upstream_timeout_s: float = Field(default=30.0, alias="UPSTREAM_TIMEOUT_S")

    log_json: bool = Field(default=True, alias="LOG_JSON")

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
        "frozen": True,
        "populate_by_name": True,
    }

    @property
    def object_store_configured(self) -> bool:
        """Whether bucket and credentials for the object store are present."""
        return bool(
            self.r2_bucket
            and self.r2_access_key_id
            and self.r2_secret_access_key
            and (self.r2_endpoint_url or self.r2_account_id)
        )

    @property
    def effective_r2_endpoint_url(self) -> str | None:
        """Return the S3 endpoint, deriving it from R2_ACCOUNT_ID if not set."""
        if self.r2_endpoint_url:
            return self.r2_endpoint_url
        if self.r2_account_id:
            return f"https://{self.r2_account_id}.r2.cloudflarestorage.com"
        return None

    @property
    def metadata_store_configured(self) -> bool:
        """Whether the KV namespace binding is complete."""
        return bool(self.cf_account_id and self.cf_api_token and self.kv_namespace_id)

    @property
    def message_host_configured(self) -> bool:
        """Whether bot credentials needed to resolve and delete messages are present."""
        return bool(self.tg_bot_token)

    @property
    def moderation_configured(self) -> bool:
        """Whether the moderation collaborator is enabled."""
        return bool(self.moderate_content_api_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached gateway settings.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If a setting has an invalid value.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache. Useful for testing."""
    get_settings.cache_clear()
