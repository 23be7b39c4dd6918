from sqlalchemy import select, func

from seawatch.shared.core.enums import IsolationLevel
from seawatch.shared.core.exceptions import RepositoryError
from seawatch.shared.core.models import CheckpointModel
from seawatch.shared.database.connection import DatabaseConnection
from seawatch.shared.database.models import SyncState
from seawatch.shared.utils.logger import LoggerSetup


class CheckpointRepository:
    """
    Checkpoint store keyed by synchronization key.

    Writes are upserts guarded so that a stored block number never decreases.
    """

    def __init__(self, db: DatabaseConnection):
        self.db = db
        self.logger = LoggerSetup.setup(__class__.__name__)

    async def get_checkpoint(self, key: str) -> int | None:
        """
        Get the last processed block for a key.

        Args:
            key (str): Synchronization key.

        Returns:
            Optional[int]: Block number, or None when the key was never synced.

        Raises:
            RepositoryError: If the lookup fails.
        """
        try:
            async with self.db.session() as session:
                stmt = select(SyncState.block_number).where(SyncState.name == key)
                result = await session.execute(stmt)
                return result.scalar_one_or_none()

        except Exception as e:
            self.logger.error(f"Error getting checkpoint for {key}: {e}")
            raise RepositoryError(f"Failed to get checkpoint for {key}: {str(e)}")

    async def set_checkpoint(self, key: str, block_number: int) -> None:
        """
        Create or advance the checkpoint for a key.

        A write carrying a lower block number than the stored one leaves the row unchanged.

        Args:
            key (str): Synchronization key.
            block_number (int): Highest fully processed block.

        Raises:
            RepositoryError: If the upsert fails.
        """
        if block_number < 0:
            raise RepositoryError(f"Invalid checkpoint {block_number} for {key}")

        try:
            async with self.db.session(isolation_level=IsolationLevel.SERIALIZABLE) as session:
                stmt = self.db.insert(SyncState).values(name=key, block_number=block_number)
                stmt = stmt.on_conflict_do_update(
                    index_elements=['name'],
                    set_=dict(block_number=stmt.excluded.block_number, updated_at=func.now()),
                    where=SyncState.block_number <= stmt.excluded.block_number
                )
                await session.execute(stmt)

            self.logger.debug(f"Checkpoint {key} set to block {block_number}")

        except Exception as e:
            self.logger.error(f"Error setting checkpoint for {key}: {e}")
            raise RepositoryError(f"Failed to set checkpoint for {key}: {str(e)}")

    async def get_all(self) -> list[CheckpointModel]:
        """
        List every stored checkpoint.

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            async with self.db.session() as session:
                result = await session.execute(select(SyncState).order_by(SyncState.name))
                return [
                    CheckpointModel(key=state.name, block_number=state.block_number)
                    for state in result.scalars()
                ]

        except Exception as e:
            self.logger.error(f"Error listing checkpoints: {e}")
            raise RepositoryError(f"Failed to list checkpoints: {str(e)}")
