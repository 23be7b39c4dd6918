from .checkpoint import CheckpointRepository
from .event import EventLogRepository

__all__ = [
    'CheckpointRepository',
    'EventLogRepository'
]
