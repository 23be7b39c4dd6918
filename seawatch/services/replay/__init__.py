from .events import EventDefinition, EventInput, EventRegistry, SEAPORT_EVENTS, build_seaport_registry
from .orchestrator import ReplayOrchestrator, ReplayReport, checkpoint_key
from .resolver import resolve_range, safe_head
from .scheduler import ReplayScheduler
from .service import ReplayService

__all__ = [
    'EventDefinition',
    'EventInput',
    'EventRegistry',
    'SEAPORT_EVENTS',
    'build_seaport_registry',
    'ReplayOrchestrator',
    'ReplayReport',
    'checkpoint_key',
    'resolve_range',
    'safe_head',
    'ReplayScheduler',
    'ReplayService'
]
