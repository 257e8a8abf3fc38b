import pytest

from app.domain.enums import ConversationStatus, TransitionAction
from app.domain.exceptions import InvalidConversationTransition
from app.domain.state_machine import ConversationLifecycle


def test_open_to_assigned_transition() -> None:
    next_state = ConversationLifecycle.transition(
        ConversationStatus.OPEN, TransitionAction.ASSIGN
    )
    assert next_state == ConversationStatus.ASSIGNED


def test_reassign_keeps_assigned() -> None:
    next_state = ConversationLifecycle.transition(
        ConversationStatus.ASSIGNED, TransitionAction.ASSIGN
    )
    assert next_state == ConversationStatus.ASSIGNED


def test_unassign_returns_to_open() -> None:
    next_state = ConversationLifecycle.transition(
        ConversationStatus.ASSIGNED, TransitionAction.UNASSIGN
    )
    assert next_state == ConversationStatus.OPEN


@pytest.mark.parametrize("current", [ConversationStatus.OPEN, ConversationStatus.ASSIGNED])
def test_active_conversation_can_close(current: ConversationStatus) -> None:
    next_state = ConversationLifecycle.transition(current, TransitionAction.CLOSE)
    assert next_state == ConversationStatus.CLOSED


def test_idempotent_unassign_and_close() -> None:
    assert (
        ConversationLifecycle.transition(ConversationStatus.OPEN, TransitionAction.UNASSIGN)
        == ConversationStatus.OPEN
    )
    assert (
        ConversationLifecycle.transition(ConversationStatus.CLOSED, TransitionAction.CLOSE)
        == ConversationStatus.CLOSED
    )


@pytest.mark.parametrize("action", [TransitionAction.ASSIGN, TransitionAction.UNASSIGN])
def test_closed_is_terminal(action: TransitionAction) -> None:
    with pytest.raises(InvalidConversationTransition):
        ConversationLifecycle.transition(ConversationStatus.CLOSED, action)


def test_active_and_closed_helpers() -> None:
    assert ConversationLifecycle.is_closed(ConversationStatus.CLOSED)
    assert not ConversationLifecycle.is_closed(ConversationStatus.OPEN)
    assert ConversationLifecycle.is_active(ConversationStatus.ASSIGNED)
    assert not ConversationLifecycle.is_active(ConversationStatus.CLOSED)
