from enum import Enum


class RealtimeEvent(str, Enum):
    MESSAGE_RECEIVED = "message.received"
    CONVERSATION_UPDATED = "conversation.updated"


class SystemEvent(str, Enum):
    CONNECTED = "system.connected"
    SUBSCRIBED = "system.subscribed"
    UNSUBSCRIBED = "system.unsubscribed"
    PONG = "system.pong"
    ERROR = "system.error"
