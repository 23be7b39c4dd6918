from prometheus_client import Counter, Gauge, CollectorRegistry

from .orchestrator import ReplayReport


class ReplayMetrics:
    """
    Prometheus metrics for the replay service.

    Metrics:
    - Passes by outcome (advanced, noop, failed)
    - Events stored, skipped as duplicates, undecodable or failed to store
    - Stored checkpoint and observed chain head per key
    """

    def __init__(self):
        self.registry = CollectorRegistry()

        self.passes = Counter(
            'replay_passes_total',
            'Replay passes by outcome',
            ['key', 'outcome'],
            registry=self.registry
        )

        self.events = Counter(
            'replay_events_total',
            'Scanned events by event name and result',
            ['key', 'event', 'result'],
            registry=self.registry
        )

        self.checkpoint_block = Gauge(
            'replay_checkpoint_block',
            'Last fully processed block',
            ['key'],
            registry=self.registry
        )

        self.chain_head = Gauge(
            'replay_chain_head_block',
            'Chain head observed by the last pass',
            ['key'],
            registry=self.registry
        )

    def observe(self, report: ReplayReport) -> None:
        """Record a completed pass"""
        if report.chain_head is not None:
            self.chain_head.labels(key=report.key).set(report.chain_head)

        if report.is_noop:
            self.passes.labels(key=report.key, outcome='noop').inc()
            return

        self.passes.labels(key=report.key, outcome='advanced').inc()
        self.checkpoint_block.labels(key=report.key).set(report.block_range.end)
        for consumer in report.consumers:
            for result, count in (('inserted', consumer.inserted),
                                  ('duplicate', consumer.duplicates),
                                  ('decode_error', consumer.decode_errors),
                                  ('storage_error', consumer.storage_errors)):
                if count:
                    self.events.labels(key=report.key, event=consumer.event_name, result=result).inc(count)

    def observe_failure(self, key: str) -> None:
        self.passes.labels(key=key, outcome='failed').inc()
