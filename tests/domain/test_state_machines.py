"""Tests for mutation and autosave state machines."""

import pytest

from vendorcatalog.domain import AutoSaveStatus, MutationStatus
from vendorcatalog.domain.exceptions import InvalidStateTransitionError
from vendorcatalog.domain.state_machines import validate_mutation_transition


class TestMutationStatus:
    """Tests for MutationStatus state machine."""

    def test_idle_can_start_applying(self) -> None:
        """IDLE can transition to APPLYING."""
        assert MutationStatus.IDLE.can_transition_to(MutationStatus.APPLYING)

    def test_idle_cannot_commit_directly(self) -> None:
        """IDLE cannot skip the optimistic write."""
        assert not MutationStatus.IDLE.can_transition_to(MutationStatus.COMMITTED)

    def test_applying_settles_either_way(self) -> None:
        """APPLYING can commit or roll back."""
        assert MutationStatus.APPLYING.can_transition_to(MutationStatus.COMMITTED)
        assert MutationStatus.APPLYING.can_transition_to(MutationStatus.ROLLED_BACK)

    def test_committed_is_terminal(self) -> None:
        """COMMITTED is a terminal state."""
        assert MutationStatus.COMMITTED.is_terminal()
        assert MutationStatus.COMMITTED.allowed_transitions() == []

    def test_rolled_back_is_terminal(self) -> None:
        """ROLLED_BACK is a terminal state."""
        assert MutationStatus.ROLLED_BACK.is_terminal()

    def test_only_applying_is_in_flight(self) -> None:
        """Only APPLYING is in flight."""
        assert MutationStatus.APPLYING.is_in_flight()
        assert not MutationStatus.IDLE.is_in_flight()
        assert not MutationStatus.COMMITTED.is_in_flight()


class TestAutoSaveStatus:
    """Tests for AutoSaveStatus state machine."""

    def test_idle_to_saving(self) -> None:
        assert AutoSaveStatus.IDLE.can_transition_to(AutoSaveStatus.SAVING)

    def test_saving_to_saved(self) -> None:
        assert AutoSaveStatus.SAVING.can_transition_to(AutoSaveStatus.SAVED)

    def test_saved_decays_to_idle(self) -> None:
        assert AutoSaveStatus.SAVED.can_transition_to(AutoSaveStatus.IDLE)

    def test_idle_cannot_jump_to_saved(self) -> None:
        assert not AutoSaveStatus.IDLE.can_transition_to(AutoSaveStatus.SAVED)


class TestValidateMutationTransition:
    """Tests for transition validation helper."""

    def test_valid_transition_passes(self) -> None:
        validate_mutation_transition("m-1", MutationStatus.IDLE, MutationStatus.APPLYING)

    def test_invalid_transition_raises(self) -> None:
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            validate_mutation_transition(
                "m-1", MutationStatus.COMMITTED, MutationStatus.ROLLED_BACK
            )

        assert exc_info.value.details["entity_type"] == "Mutation"
        assert exc_info.value.details["current_state"] == "committed"
        assert exc_info.value.details["allowed_transitions"] == []
