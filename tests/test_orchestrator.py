# tests/test_orchestrator.py

import pytest

from seawatch.services.replay.events import build_seaport_registry
from seawatch.services.replay.orchestrator import ReplayOrchestrator, checkpoint_key
from seawatch.services.replay.recorder import EventRecorder
from seawatch.shared.core.enums import ReplayState
from seawatch.shared.core.exceptions import ChainClientError, ReplayError

from fakes import (
    DEFINITIONS,
    OFFERER,
    ZONE,
    SEAPORT_ADDRESS,
    FailingRecorder,
    FakeChainClient,
    counter_incremented_log,
    order_cancelled_log,
    tx_hash
)

KEY = checkpoint_key("seaport", SEAPORT_ADDRESS)


@pytest.fixture
def orchestrator(chain, checkpoint_repository, event_repository) -> ReplayOrchestrator:
    return ReplayOrchestrator(
        chain,
        checkpoint_repository,
        EventRecorder(event_repository),
        build_seaport_registry()
    )


def test_checkpoint_key_uses_lowercase_address():
    assert KEY == "seaport" + SEAPORT_ADDRESS.lower()


@pytest.mark.asyncio
async def test_single_pass_end_to_end(chain: FakeChainClient, orchestrator, checkpoint_repository, event_repository):
    """Head 50, one confirmation, start block 10, one cancelled order at block 20"""
    chain.head = 50
    chain.add(order_cancelled_log(20, log_index=4, tx=tx_hash(0xbeef)))

    report = await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    assert (report.block_range.start, report.block_range.end) == (10, 50)
    assert report.advanced
    assert orchestrator.state == ReplayState.IDLE

    [record] = await event_repository.get_recent()
    assert record.event_name == "OrderCancelled"
    assert record.tx_hash == tx_hash(0xbeef)
    assert record.log_index == 4
    assert record.attributes["orderHash"] == "0x" + "ab" * 32
    assert record.attributes["offerer"] == OFFERER
    assert record.attributes["zone"] == ZONE
    assert record.attributes["signature"] == DEFINITIONS["OrderCancelled"].topic

    assert await checkpoint_repository.get_checkpoint(KEY) == 50


@pytest.mark.asyncio
async def test_consumers_run_in_registration_order(chain: FakeChainClient, orchestrator):
    chain.head = 10
    await orchestrator.run(SEAPORT_ADDRESS, start_block=1, confirmations=1)

    topics = [topic for topic, _, _ in chain.queries]
    assert topics == [d.topic for d in build_seaport_registry()]


@pytest.mark.asyncio
async def test_rerun_without_new_blocks_changes_nothing(chain: FakeChainClient, orchestrator, checkpoint_repository, event_repository):
    chain.head = 50
    chain.add(order_cancelled_log(20), counter_incremented_log(30))
    await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)
    queries = len(chain.queries)

    report = await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    assert report.is_noop
    assert len(chain.queries) == queries
    assert await event_repository.count() == 2
    assert await checkpoint_repository.get_checkpoint(KEY) == 50


@pytest.mark.asyncio
async def test_confirmations_hold_back_recent_blocks(chain: FakeChainClient, orchestrator, checkpoint_repository, event_repository):
    chain.head = 100
    chain.add(order_cancelled_log(97))

    report = await orchestrator.run(SEAPORT_ADDRESS, start_block=90, confirmations=5)

    assert report.block_range.end == 96
    assert await event_repository.count() == 0
    assert await checkpoint_repository.get_checkpoint(KEY) == 96

    chain.head = 101
    await orchestrator.run(SEAPORT_ADDRESS, start_block=90, confirmations=5)
    assert await event_repository.count() == 1
    assert await checkpoint_repository.get_checkpoint(KEY) == 97


@pytest.mark.asyncio
async def test_resumes_from_checkpoint(chain: FakeChainClient, orchestrator, checkpoint_repository):
    await checkpoint_repository.set_checkpoint(KEY, 40)
    chain.head = 60

    report = await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    assert (report.block_range.start, report.block_range.end) == (41, 60)


@pytest.mark.asyncio
async def test_head_failure_leaves_checkpoint(chain: FakeChainClient, orchestrator, checkpoint_repository):
    await checkpoint_repository.set_checkpoint(KEY, 40)
    chain.head = 60
    chain.fail_head = True

    with pytest.raises(ChainClientError):
        await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    assert orchestrator.state == ReplayState.IDLE
    assert isinstance(orchestrator.last_error, ChainClientError)
    assert await checkpoint_repository.get_checkpoint(KEY) == 40


@pytest.mark.asyncio
async def test_query_failure_keeps_earlier_records(chain: FakeChainClient, orchestrator, checkpoint_repository, event_repository):
    chain.head = 50
    chain.add(counter_incremented_log(15), order_cancelled_log(20))
    chain.fail_topics.add(DEFINITIONS["OrderFulfilled"].topic)

    with pytest.raises(ChainClientError):
        await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    assert await event_repository.count() == 2
    assert await checkpoint_repository.get_checkpoint(KEY) is None

    chain.fail_topics.clear()
    await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)
    assert await event_repository.count() == 2
    assert await checkpoint_repository.get_checkpoint(KEY) == 50


@pytest.mark.asyncio
async def test_storage_error_withholds_advance(chain: FakeChainClient, checkpoint_repository, event_repository):
    chain.head = 50
    chain.add(order_cancelled_log(20), counter_incremented_log(30))
    orchestrator = ReplayOrchestrator(
        chain,
        checkpoint_repository,
        FailingRecorder(event_repository, failing_blocks={20}),
        build_seaport_registry()
    )

    with pytest.raises(ReplayError):
        await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)

    # consumers after the failing one still ran
    assert len(chain.queries) == 5
    assert await event_repository.count() == 1
    assert await checkpoint_repository.get_checkpoint(KEY) is None

    orchestrator.consumers[1].recorder = EventRecorder(event_repository)
    await orchestrator.run(SEAPORT_ADDRESS, start_block=10, confirmations=1)
    assert await event_repository.count() == 2
    assert await checkpoint_repository.get_checkpoint(KEY) == 50
