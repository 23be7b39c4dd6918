import json

from sqlalchemy import select, func

from seawatch.shared.core.enums import IsolationLevel
from seawatch.shared.core.exceptions import RepositoryError
from seawatch.shared.core.models import EventRecordModel
from seawatch.shared.database.connection import DatabaseConnection
from seawatch.shared.database.models import EventLog
from seawatch.shared.utils.logger import LoggerSetup


class EventLogRepository:
    """Append-only store of decoded contract events."""

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.logger = LoggerSetup.setup(__class__.__name__)

    async def insert_if_absent(self, record: EventRecordModel) -> bool:
        """
        Insert an event record unless one with the same (tx_hash, log_index) exists.

        Args:
            record (EventRecordModel): Event to store.

        Returns:
            bool: True if a new row was created, False if it already existed.

        Raises:
            RepositoryError: On any storage failure other than the duplicate.
        """
        try:
            async with self.db.session() as session:
                stmt = self.db.insert(EventLog).values(
                    tx_hash=record.tx_hash,
                    log_index=record.log_index,
                    block_number=record.block_number,
                    event=record.event_name,
                    event_args=record.serialize_attributes(),
                    contract=record.contract_address
                )
                stmt = stmt.on_conflict_do_nothing(
                    index_elements=['tx_hash', 'log_index']
                ).returning(EventLog.id)

                result = await session.execute(stmt)
                return result.scalar_one_or_none() is not None

        except Exception as e:
            self.logger.error(f"Error inserting {record.event_name} {record.tx_hash}:{record.log_index}: {e}")
            raise RepositoryError(f"Failed to insert event: {str(e)}")

    async def count(self, contract: str | None = None) -> int:
        """
        Count stored events, optionally for a single contract.

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            async with self.db.session() as session:
                stmt = select(func.count(EventLog.id))
                if contract:
                    stmt = stmt.where(EventLog.contract == contract)
                result = await session.execute(stmt)
                return result.scalar_one()

        except Exception as e:
            self.logger.error(f"Error counting events: {e}")
            raise RepositoryError(f"Failed to count events: {str(e)}")

    async def get_recent(self,
                         contract: str | None = None,
                         event_name: str | None = None,
                         limit: int = 100) -> list[EventRecordModel]:
        """
        Get the most recent events, newest first.

        Args:
            contract: Optional emitting contract filter
            event_name: Optional event name filter
            limit: Maximum number of records

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            async with self.db.session(isolation_level=IsolationLevel.REPEATABLE_READ) as session:
                stmt = select(EventLog)
                if contract:
                    stmt = stmt.where(EventLog.contract == contract)
                if event_name:
                    stmt = stmt.where(EventLog.event == event_name)
                stmt = stmt.order_by(
                    EventLog.block_number.desc(),
                    EventLog.log_index.desc()
                ).limit(limit)

                result = await session.execute(stmt)
                return [
                    EventRecordModel(
                        tx_hash=row.tx_hash,
                        log_index=row.log_index,
                        block_number=row.block_number,
                        event_name=row.event,
                        attributes=json.loads(row.event_args),
                        contract_address=row.contract
                    )
                    for row in result.scalars()
                ]

        except Exception as e:
            self.logger.error(f"Error getting recent events: {e}")
            raise RepositoryError(f"Failed to get recent events: {str(e)}")
