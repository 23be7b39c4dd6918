# tests/test_api.py

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from seawatch.services.replay import main
from seawatch.services.replay.service import ReplayService
from seawatch.shared.core.config import ReplayConfig

from fakes import SEAPORT_ADDRESS, order_cancelled_log


@pytest_asyncio.fixture
async def replayed(chain, db, checkpoint_repository, event_repository):
    """Service with one completed pass, installed as the app's service"""
    service = ReplayService(
        chain_client=chain,
        checkpoint_repository=checkpoint_repository,
        event_repository=event_repository,
        contract_address=SEAPORT_ADDRESS,
        config=ReplayConfig(start_block=10)
    )
    chain.head = 50
    chain.add(order_cancelled_log(20), order_cancelled_log(30))
    await service.run_once(SEAPORT_ADDRESS, 10, 1)

    main.service, main.db = service, db
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=main.app), base_url="http://test") as client:
        yield service, client
    main.service, main.db = None, None


def test_not_initialized():
    client = TestClient(main.app)
    assert client.get("/status").status_code == 503
    assert client.get("/health").status_code == 503


@pytest.mark.asyncio
async def test_status(replayed):
    service, client = replayed
    response = await client.get("/status")
    assert response.status_code == 200
    assert response.json()["metrics"]["events_recorded"] == 2


@pytest.mark.asyncio
async def test_checkpoints(replayed):
    service, client = replayed
    response = await client.get("/checkpoints")
    assert response.status_code == 200
    assert response.json() == [{"key": service.key, "block_number": 50}]


@pytest.mark.asyncio
async def test_events(replayed):
    service, client = replayed
    response = await client.get("/events", params={"event": "OrderCancelled", "limit": 1})
    assert response.status_code == 200
    [event] = response.json()
    assert event["block_number"] == 30
    assert event["event_name"] == "OrderCancelled"


@pytest.mark.asyncio
async def test_health(replayed):
    service, client = replayed
    response = await client.get("/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"]["connection_ok"] is True


@pytest.mark.asyncio
async def test_prometheus_metrics(replayed):
    service, client = replayed
    response = await client.get("/metrics")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    body = response.text
    assert f'replay_checkpoint_block{{key="{service.key}"}} 50.0' in body
    assert 'result="inserted"' in body
