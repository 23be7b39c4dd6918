import asyncio
from datetime import datetime, timezone

from prometheus_client import generate_latest

from seawatch.shared.core.config import ReplayConfig
from seawatch.shared.core.enums import ServiceStatus
from seawatch.shared.core.exceptions import ServiceError
from seawatch.shared.core.protocols import ChainClient, Service
from seawatch.shared.database.repositories import CheckpointRepository, EventLogRepository
from seawatch.shared.utils.logger import LoggerSetup

from .events import EventRegistry, build_seaport_registry
from .orchestrator import ReplayOrchestrator, ReplayReport, checkpoint_key
from .recorder import EventRecorder
from .replay_metrics import ReplayMetrics
from .scheduler import ReplayScheduler


class ReplayService(Service):
    """
    Keeps the event log and checkpoint of one tracked contract in sync with the chain.

    On start it runs one catch-up pass, then replays on a fixed interval until stopped.
    """

    def __init__(self,
                 chain_client: ChainClient,
                 checkpoint_repository: CheckpointRepository,
                 event_repository: EventLogRepository,
                 contract_address: str,
                 config: ReplayConfig,
                 registry: EventRegistry | None = None,
                 stop_timeout: float = 30.0):
        """
        Initialize the ReplayService.

        Args:
            chain_client (ChainClient): Connected ledger client.
            checkpoint_repository (CheckpointRepository): Checkpoint store.
            event_repository (EventLogRepository): Event record store.
            contract_address (str): Tracked contract.
            config (ReplayConfig): Start block, confirmations, interval and key prefix.
            registry (EventRegistry): Tracked events, defaults to the Seaport set.
            stop_timeout (float): Seconds to wait for an in-flight tick on stop.
        """
        self.chain_client = chain_client
        self.checkpoint_repository = checkpoint_repository
        self.event_repository = event_repository
        self.contract_address = contract_address
        self.config = config
        self.stop_timeout = stop_timeout

        self.orchestrator = ReplayOrchestrator(
            chain_client,
            checkpoint_repository,
            EventRecorder(event_repository),
            registry or build_seaport_registry(),
            source_name=config.source_name
        )

        # Service state
        self._status = ServiceStatus.STOPPED
        self._start_time: datetime | None = None
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self._scheduler: ReplayScheduler | None = None

        # Tick tracking
        self._passes = 0
        self._failed_passes = 0
        self._events_recorded = 0
        self._last_report: ReplayReport | None = None
        self._last_error: Exception | None = None
        self.metrics = ReplayMetrics()

        self.logger = LoggerSetup.setup(__class__.__name__)

    @property
    def key(self) -> str:
        return checkpoint_key(self.config.source_name, self.contract_address)

    async def run_once(self, contract_address: str, start_block: int, confirmations: int) -> ReplayReport:
        """
        Run a single replay pass.

        Raises:
            ChainClientError, RepositoryError, ReplayError: When the pass fails;
            the checkpoint is unchanged in that case.
        """
        self._passes += 1
        try:
            report = await self.orchestrator.run(contract_address, start_block, confirmations or 1)
        except Exception as e:
            self._failed_passes += 1
            self._last_error = e
            self.metrics.observe_failure(checkpoint_key(self.config.source_name, contract_address))
            raise

        self._last_report = report
        self.metrics.observe(report)
        self._events_recorded += report.total().inserted
        return report

    async def run_loop(self,
                       contract_address: str,
                       start_block: int,
                       confirmations: int,
                       interval: int,
                       stop_event: asyncio.Event) -> None:
        """Replay on a fixed interval until `stop_event` is set"""
        self._scheduler = ReplayScheduler(
            lambda: self.run_once(contract_address, start_block, confirmations),
            interval or 1,
            name=checkpoint_key(self.config.source_name, contract_address)
        )
        await self._scheduler.run(stop_event)

    async def _run(self) -> None:
        try:
            await self.run_once(self.contract_address, self.config.start_block, self.config.confirmations)
        except Exception as e:
            self.logger.error(f"Startup catch-up failed for {self.key}: {e}")

        await self.run_loop(
            self.contract_address,
            self.config.start_block,
            self.config.confirmations,
            self.config.interval,
            self._stop_event
        )

    async def start(self) -> None:
        """Start the service"""
        try:
            self._status = ServiceStatus.STARTING
            self._start_time = datetime.now(timezone.utc)

            self._stop_event.clear()
            self._task = asyncio.create_task(self._run(), name=f"replay-{self.key}")

            self._status = ServiceStatus.RUNNING
            self.logger.info(f"Replay service started for {self.key}")

        except Exception as e:
            self._status = ServiceStatus.ERROR
            self._last_error = e
            self.logger.error(f"Failed to start replay service: {e}")
            raise ServiceError(f"Service start failed: {str(e)}")

    async def stop(self) -> None:
        """Stop the service, letting an in-flight pass finish"""
        try:
            self._status = ServiceStatus.STOPPING
            self._stop_event.set()

            if self._task:
                done, _ = await asyncio.wait({self._task}, timeout=self.stop_timeout)
                if not done:
                    self.logger.warning(f"Replay pass for {self.key} did not finish in time, cancelling")
                    self._task.cancel()
                    try:
                        await self._task
                    except asyncio.CancelledError:
                        pass
                self._task = None

            self._status = ServiceStatus.STOPPED
            self.logger.info("Replay service stopped successfully")

        except Exception as e:
            self._status = ServiceStatus.ERROR
            self.logger.error(f"Error stopping replay service: {e}")
            raise ServiceError(f"Service stop failed: {str(e)}")

    def get_service_status(self) -> str:
        """
        Get a status report of the service.

        Returns:
            str: A formatted multi-line status report.
        """
        last = self._last_report
        status_lines = [
            "Replay Service Status:",
            f"Status: {self._status.value}",
            f"Checkpoint key: {self.key}",
            f"Orchestrator state: {self.orchestrator.state.value}",
            f"Passes: {self._passes} ({self._failed_passes} failed)",
            f"Events recorded: {self._events_recorded}",
        ]
        if last and last.block_range:
            status_lines.append(f"Last range: {last.block_range} (head {last.chain_head})")
        if self._scheduler:
            status_lines.append(f"Skipped fires: {self._scheduler.skipped}")
        if self._last_error:
            status_lines.append(f"Last error: {self._last_error}")
        return "\n".join(status_lines)

    def get_prometheus_metrics(self) -> bytes:
        """Prometheus exposition of the replay metrics"""
        return generate_latest(self.metrics.registry)

    def get_metrics(self) -> dict:
        """Service counters for the status endpoint"""
        last = self._last_report
        return {
            "status": self._status.value,
            "key": self.key,
            "state": self.orchestrator.state.value,
            "started_at": self._start_time.isoformat() if self._start_time else None,
            "passes": self._passes,
            "failed_passes": self._failed_passes,
            "events_recorded": self._events_recorded,
            "last_range": str(last.block_range) if last and last.block_range else None,
            "last_error": str(self._last_error) if self._last_error else None
        }
