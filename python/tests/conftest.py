"""Pytest configuration and fixtures for filegate tests.

Test isolation strategy:
- Backends are in-memory fakes (FakeMetadataStore, FakeObjectStore)
- The message host and moderation clients run against respx-mocked HTTP
- Each test gets a fresh Gateway and app; settings never come from the
  process environment
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path

# Add repo root to sys.path for importing top-level packages (e.g., apps)
_repo_root = Path(__file__).parent.parent.parent
if str(_repo_root) not in sys.path:
    sys.path.insert(0, str(_repo_root))

import httpx
import pytest
from fastapi.testclient import TestClient

from filegate.app import add_request_id_middleware, create_app
from filegate.config import Settings, clear_settings_cache
from filegate.gateway import Gateway
from filegate.services.moderation import ModerateContentClient
from filegate.storage.client import FakeObjectStore
from filegate.storage.kv import FakeMetadataStore
from filegate.storage.telegram import TelegramBotClient
from tests.helpers import (
    BOT_TOKEN,
    CHAT_ID,
    MODERATION_API_URL,
    TELEGRAPH_BASE_URL,
    TG_API_BASE_URL,
)


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    """Never let a cached Settings leak between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Settings:
    """Settings pointing every upstream at a mocked host."""
    return Settings(
        _env_file=None,
        tg_bot_token=BOT_TOKEN,
        tg_chat_id=CHAT_ID,
        tg_api_base_url=TG_API_BASE_URL,
        telegraph_base_url=TELEGRAPH_BASE_URL,
        moderation_api_url=MODERATION_API_URL,
        log_json=False,
    )


@pytest.fixture
def http_client() -> Generator[httpx.Client, None, None]:
    with httpx.Client() as client:
        yield client


@pytest.fixture
def metadata_store() -> FakeMetadataStore:
    return FakeMetadataStore()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def telegram(http_client: httpx.Client) -> TelegramBotClient:
    return TelegramBotClient(
        http_client,
        bot_token=BOT_TOKEN,
        chat_id=CHAT_ID,
        api_base_url=TG_API_BASE_URL,
        telegraph_base_url=TELEGRAPH_BASE_URL,
    )


@pytest.fixture
def moderation(http_client: httpx.Client) -> ModerateContentClient:
    return ModerateContentClient(http_client, api_key="test-key", api_url=MODERATION_API_URL)


@pytest.fixture
def gateway(
    settings: Settings,
    telegram: TelegramBotClient,
    metadata_store: FakeMetadataStore,
    object_store: FakeObjectStore,
) -> Gateway:
    """Gateway with every backend configured and moderation off."""
    return Gateway(
        settings=settings,
        message_host=telegram,
        metadata_store=metadata_store,
        object_store=object_store,
    )


@pytest.fixture
def make_client() -> Generator[Callable[[Gateway], TestClient], None, None]:
    """Factory for test clients over a specific gateway."""
    clients: list[TestClient] = []

    def _make(gateway: Gateway) -> TestClient:
        app = create_app(gateway=gateway)
        add_request_id_middleware(app, log_requests=False)
        client = TestClient(app, follow_redirects=False)
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


@pytest.fixture
def client(make_client: Callable[[Gateway], TestClient], gateway: Gateway) -> TestClient:
    """Test client over the default gateway."""
    return make_client(gateway)
