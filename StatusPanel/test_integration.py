"""Integration tests - can optionally hit a real backend (disabled by default)."""
import asyncio
import os
import pytest
from hello_api_provider import HelloApiProvider
from kv_store import CacheSlot, MemoryStore
from scheduler import AsyncioScheduler
from status_service import StatusService
from status_view import StatusView


@pytest.mark.skipif(
    not os.environ.get("STATUS_API_BASE_LIVE"),
    reason="STATUS_API_BASE_LIVE not set - skipping integration test"
)
def test_hello_api_integration():
    """
    Integration test that hits a running backend.

    Set STATUS_API_BASE_LIVE (e.g. http://localhost:3001) to run this test.
    """
    provider = HelloApiProvider(os.environ["STATUS_API_BASE_LIVE"])

    payload = provider.get_current()

    assert payload["message"]
    assert payload["timestamp"]


@pytest.mark.skipif(
    not os.environ.get("STATUS_API_BASE_LIVE"),
    reason="STATUS_API_BASE_LIVE not set - skipping integration test"
)
def test_status_view_integration():
    """Integration test for StatusView with a real backend and timer."""
    service = StatusService(HelloApiProvider(os.environ["STATUS_API_BASE_LIVE"]), CacheSlot(MemoryStore()))
    view = StatusView(service, resolver=None, scheduler=AsyncioScheduler(), refresh_interval=0.2)

    async def scenario():
        view.mount()
        await asyncio.sleep(0.5)
        view.unmount()
        await view.wait_idle()

    asyncio.run(scenario())

    assert view.state.result is not None
    assert view.state.result.is_stale is False
