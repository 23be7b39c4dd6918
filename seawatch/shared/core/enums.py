from enum import Enum


class ServiceStatus(str, Enum):
    """Service statuses"""
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    ERROR = "error"
    UNKNOWN = "unknown"


class IsolationLevel(str, Enum):
    """Transaction isolation levels"""
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class ReplayState(str, Enum):
    """
    Replay orchestrator states.

    A pass walks IDLE -> RESOLVING -> SCANNING -> ADVANCING -> IDLE,
    or drops to FAILED on any step error before returning to IDLE.
    """
    IDLE = "idle"
    RESOLVING = "resolving"
    SCANNING = "scanning"
    ADVANCING = "advancing"
    FAILED = "failed"


class EventName(str, Enum):
    """
    Tracked Seaport events.

    Declaration order is the order in which consumers run within a pass.
    """
    COUNTER_INCREMENTED = "CounterIncremented"
    ORDER_CANCELLED = "OrderCancelled"
    ORDER_FULFILLED = "OrderFulfilled"
    ORDER_VALIDATED = "OrderValidated"
    ORDERS_MATCHED = "OrdersMatched"
