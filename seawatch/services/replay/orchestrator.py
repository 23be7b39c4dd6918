from dataclasses import dataclass, field

from seawatch.shared.core.enums import ReplayState
from seawatch.shared.core.exceptions import ReplayError
from seawatch.shared.core.models import BlockRange
from seawatch.shared.core.protocols import ChainClient
from seawatch.shared.database.repositories import CheckpointRepository
from seawatch.shared.utils.logger import LoggerSetup

from .consumers import ConsumerReport, EventConsumer
from .events import EventRegistry
from .recorder import EventRecorder
from .resolver import resolve_range


def checkpoint_key(source_name: str, contract_address: str) -> str:
    """Synchronization key of a tracked contract"""
    return f"{source_name}{contract_address.lower()}"


@dataclass
class ReplayReport:
    """Outcome of one replay pass"""
    key: str
    chain_head: int | None = None
    block_range: BlockRange | None = None
    advanced: bool = False
    consumers: list[ConsumerReport] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return self.block_range is None

    def total(self) -> ConsumerReport:
        summary = ConsumerReport(event_name="*")
        for report in self.consumers:
            summary.merge(report)
        return summary


class ReplayOrchestrator:
    """
    Runs one replay pass for a tracked contract.

    State machine:
        IDLE -> RESOLVING -> SCANNING -> ADVANCING -> IDLE
        any step error: -> FAILED -> IDLE, error re-raised

    The checkpoint is advanced once per pass, to the end of the scanned range,
    and only when every consumer finished without a storage error.
    """

    def __init__(self,
                 chain_client: ChainClient,
                 checkpoint_repository: CheckpointRepository,
                 recorder: EventRecorder,
                 registry: EventRegistry,
                 source_name: str = "seaport"):
        self.chain_client = chain_client
        self.checkpoint_repository = checkpoint_repository
        self.source_name = source_name
        self.consumers = [
            EventConsumer(definition, chain_client, recorder)
            for definition in registry
        ]

        self._state = ReplayState.IDLE
        self._last_error: Exception | None = None
        self.logger = LoggerSetup.setup(__class__.__name__)

    @property
    def state(self) -> ReplayState:
        return self._state

    @property
    def last_error(self) -> Exception | None:
        return self._last_error

    def _transition(self, state: ReplayState) -> None:
        self.logger.debug(f"{self._state.value} -> {state.value}")
        self._state = state

    async def run(self, contract_address: str, start_block: int, confirmations: int) -> ReplayReport:
        """
        Run one pass: resolve the range, scan every event, advance the checkpoint.

        Args:
            contract_address: Tracked contract
            start_block: First block to scan when no checkpoint exists
            confirmations: Required confirmation depth

        Returns:
            ReplayReport: What the pass scanned and stored.

        Raises:
            ChainClientError: If the chain head or a log query fails.
            RepositoryError: If the checkpoint cannot be read or written.
            ReplayError: If any event failed to store; the checkpoint is left unchanged.
        """
        key = checkpoint_key(self.source_name, contract_address)
        report = ReplayReport(key=key)

        try:
            self._transition(ReplayState.RESOLVING)
            last_synced = await self.checkpoint_repository.get_checkpoint(key)
            report.chain_head = await self.chain_client.get_block_number()
            report.block_range = resolve_range(last_synced, start_block, report.chain_head, confirmations)

            if report.block_range is None:
                self.logger.debug(f"{key} up to date at {last_synced}, head {report.chain_head}")
                self._transition(ReplayState.IDLE)
                return report

            self._transition(ReplayState.SCANNING)
            for consumer in self.consumers:
                report.consumers.append(await consumer.consume(contract_address, report.block_range))

            storage_errors = report.total().storage_errors
            if storage_errors:
                raise ReplayError(
                    f"{storage_errors} events failed to store for {key} in {report.block_range}, "
                    "checkpoint not advanced"
                )

            self._transition(ReplayState.ADVANCING)
            await self.checkpoint_repository.set_checkpoint(key, report.block_range.end)
            report.advanced = True

            self._transition(ReplayState.IDLE)
            self.logger.info(
                f"{key} synced {report.block_range} ({report.total().inserted} new events)"
            )
            return report

        except Exception as e:
            self._last_error = e
            self._transition(ReplayState.FAILED)
            self.logger.error(f"Replay pass failed for {key}: {e}")
            self._transition(ReplayState.IDLE)
            raise
