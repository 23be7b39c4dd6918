from typing import AsyncIterator, Protocol

from .models import ChainLog


class Service(Protocol):
    """
    Base class for all services.

    Features:
    - Service lifecycle (start/stop)
    - Status reporting
    """
    async def start(self) -> None:
        """
        Start the service.

        Each service must implement its startup logic:
        - Initialize resources
        - Start background tasks
        """
        ...

    async def stop(self) -> None:
        """
        Stop the service.

        Each service must implement its cleanup logic:
        - Signal background tasks
        - Release resources
        """
        ...

    def get_service_status(self) -> str:
        """
        Generate detailed service status report.

        Returns:
            str: Multi-line status report
        """
        ...


class ChainClient(Protocol):
    """
    Read access to a ledger node.

    Implementations must be safe to share between independent replay tasks and
    impose their own transport deadlines; callers never retry within a pass.
    """

    async def get_block_number(self) -> int:
        """Current chain head height"""
        ...

    def iter_logs(self,
                  address: str,
                  topic: str,
                  from_block: int,
                  to_block: int) -> AsyncIterator[ChainLog]:
        """
        Stream logs emitted by `address` whose topic-0 equals `topic`
        within [from_block, to_block], ordered by block number then log index.
        """
        ...

    async def close(self) -> None:
        """Release the underlying connection"""
        ...
