from .base import Base
from .sync import SyncState, EventLog

__all__ = [
    'Base',
    'SyncState',
    'EventLog'
]
