from enum import Enum


class ChangeTable(str, Enum):
    """Tables whose mutations are republished on the change feed."""

    STATUS = "status"
    READINGS = "readings"
    HEARTBEATS = "heartbeats"


class ChangeOp(str, Enum):
    INSERT = "insert"
    UPDATE = "update"


class WebSocketEvent(str, Enum):
    """WebSocket event names for real-time communication."""

    CHANGE_EVENT = "change_event"
    SUBSCRIBED = "subscribed"
    ERROR = "error"


ALL_CHANGE_TABLES: tuple[ChangeTable, ...] = (
    ChangeTable.STATUS,
    ChangeTable.READINGS,
    ChangeTable.HEARTBEATS,
)
