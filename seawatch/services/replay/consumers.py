from dataclasses import dataclass

from seawatch.shared.core.exceptions import DecodeError, RepositoryError
from seawatch.shared.core.models import BlockRange
from seawatch.shared.core.protocols import ChainClient
from seawatch.shared.utils.logger import LoggerSetup

from .events import EventDefinition
from .recorder import EventRecorder


@dataclass
class ConsumerReport:
    """Outcome of one consumer over one block range"""
    event_name: str
    scanned: int = 0
    inserted: int = 0
    duplicates: int = 0
    decode_errors: int = 0
    storage_errors: int = 0

    def merge(self, other: 'ConsumerReport') -> None:
        self.scanned += other.scanned
        self.inserted += other.inserted
        self.duplicates += other.duplicates
        self.decode_errors += other.decode_errors
        self.storage_errors += other.storage_errors


class EventConsumer:
    """
    Scans one event type over a block range and records every match.

    A malformed log or a failed insert affects only that log. A failed log
    query aborts the consumer and propagates to the caller.
    """

    def __init__(self,
                 definition: EventDefinition,
                 chain_client: ChainClient,
                 recorder: EventRecorder):
        self.definition = definition
        self.chain_client = chain_client
        self.recorder = recorder
        self.logger = LoggerSetup.setup(__class__.__name__)

    @property
    def event_name(self) -> str:
        return self.definition.name

    async def consume(self, contract_address: str, block_range: BlockRange) -> ConsumerReport:
        """
        Record every log of this event emitted by the contract within the range.

        Raises:
            ChainClientError: If the log query fails.
        """
        report = ConsumerReport(event_name=self.event_name)

        logs = self.chain_client.iter_logs(
            contract_address,
            self.definition.topic,
            block_range.start,
            block_range.end
        )
        async for log in logs:
            report.scanned += 1

            try:
                attributes = self.definition.decode(log)
            except DecodeError as e:
                report.decode_errors += 1
                self.logger.warning(f"Skipping undecodable {self.event_name} log {log}: {e}")
                continue

            try:
                if await self.recorder.record(log, self.event_name, attributes):
                    report.inserted += 1
                else:
                    report.duplicates += 1
            except RepositoryError as e:
                report.storage_errors += 1
                self.logger.error(f"Failed to store {self.event_name} {log} for {contract_address}: {e}")

        if report.scanned:
            self.logger.info(
                f"{self.event_name} {block_range}: {report.scanned} logs, "
                f"{report.inserted} new, {report.duplicates} duplicate"
            )
        return report
