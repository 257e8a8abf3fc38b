from app.domain.enums import ConversationStatus, TransitionAction
from app.domain.exceptions import InvalidConversationTransition


class ConversationLifecycle:
    """State machine for conversation lifecycle: open <-> assigned -> closed."""

    _allowed_transitions: dict[tuple[ConversationStatus, TransitionAction], ConversationStatus] = {
        (ConversationStatus.OPEN, TransitionAction.ASSIGN): ConversationStatus.ASSIGNED,
        (ConversationStatus.ASSIGNED, TransitionAction.ASSIGN): ConversationStatus.ASSIGNED,
        (ConversationStatus.ASSIGNED, TransitionAction.UNASSIGN): ConversationStatus.OPEN,
        (ConversationStatus.OPEN, TransitionAction.CLOSE): ConversationStatus.CLOSED,
        (ConversationStatus.ASSIGNED, TransitionAction.CLOSE): ConversationStatus.CLOSED,
    }

    @classmethod
    def transition(cls, current: ConversationStatus, action: TransitionAction) -> ConversationStatus:
        # Idempotent semantics for repeated UI actions.
        if current == ConversationStatus.OPEN and action == TransitionAction.UNASSIGN:
            return ConversationStatus.OPEN
        if current == ConversationStatus.CLOSED and action == TransitionAction.CLOSE:
            return ConversationStatus.CLOSED

        next_state = cls._allowed_transitions.get((current, action))
        if not next_state:
            raise InvalidConversationTransition(current=current, action=action)
        return next_state

    @staticmethod
    def is_closed(status: ConversationStatus) -> bool:
        return status == ConversationStatus.CLOSED

    @staticmethod
    def is_active(status: ConversationStatus) -> bool:
        return status in (ConversationStatus.OPEN, ConversationStatus.ASSIGNED)
