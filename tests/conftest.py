"""Shared fixtures for bot-session-storage tests."""
from __future__ import annotations

import pytest
import pytest_asyncio

from bot_session_storage.remote.client import RemoteStorageClient
from bot_session_storage.remote.retry import BackoffRetrier
from fakes import BOT_TOKEN, ROOT_URL, FakeRedis, FakeRemoteStore, RecordingSleep


@pytest.fixture()
def fake_store() -> FakeRemoteStore:
    return FakeRemoteStore()


@pytest.fixture()
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest_asyncio.fixture()
async def remote_client(fake_store: FakeRemoteStore, recording_sleep: RecordingSleep):
    """A RemoteStorageClient wired to ``fake_store`` with recorded backoff sleeps."""
    http_client = fake_store.client()
    client = RemoteStorageClient(
        BOT_TOKEN,
        root_url=ROOT_URL,
        http_client=http_client,
        retrier=BackoffRetrier(sleep=recording_sleep),
    )
    yield client
    await http_client.aclose()
