from uuid import UUID

CONVERSATION_CHANNEL_PREFIX = "conversation:"


def conversation_channel(conversation_id: UUID) -> str:
    return f"{CONVERSATION_CHANNEL_PREFIX}{conversation_id}"
