from seawatch.shared.core.models import ChainLog, EventRecordModel
from seawatch.shared.database.repositories import EventLogRepository
from seawatch.shared.utils.logger import LoggerSetup


class EventRecorder:
    """
    Turns a matched log and its decoded attributes into a stored event record.

    Store and move on: the only side effect is the idempotent insert.
    """

    def __init__(self, event_repository: EventLogRepository):
        self.event_repository = event_repository
        self.logger = LoggerSetup.setup(__class__.__name__)

    async def record(self, log: ChainLog, event_name: str, attributes: dict[str, str]) -> bool:
        """
        Store one decoded event.

        Args:
            log: Source log
            event_name: Logical event name
            attributes: Decoded payload, the `signature` attribute is added here

        Returns:
            bool: True if a new record was stored, False if it was already present.

        Raises:
            RepositoryError: If the insert fails for any reason other than a duplicate.
        """
        record = EventRecordModel.from_log(log, event_name, attributes)
        inserted = await self.event_repository.insert_if_absent(record)

        if inserted:
            self.logger.debug(f"Recorded {event_name} {log}")
        else:
            self.logger.debug(f"Skipped duplicate {event_name} {log}")
        return inserted
