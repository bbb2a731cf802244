"""State machines for catalog coordination.

Deterministic state machines that define valid state transitions
for optimistic mutations and the draft autosave indicator.
"""

from enum import Enum

from vendorcatalog.domain.exceptions import InvalidStateTransitionError


# ============================================================================
# Mutation State Machine
# ============================================================================


class MutationStatus(str, Enum):
    """Optimistic mutation lifecycle states.

    State diagram:
        IDLE
          │
          │ apply (optimistic write)
          ▼
        APPLYING ────────────────┐
          │                      │ network failure
          │ server confirmed     ▼
          ▼                  ROLLED_BACK
        COMMITTED
    """

    IDLE = "idle"
    APPLYING = "applying"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"

    def can_transition_to(self, target: "MutationStatus") -> bool:
        """Check if transition to target state is valid.

        Args:
            target: Target state to transition to.

        Returns:
            True if transition is valid.
        """
        return target in _MUTATION_TRANSITIONS.get(self, set())

    def allowed_transitions(self) -> list["MutationStatus"]:
        """Get list of valid target states.

        Returns:
            List of states that can be transitioned to.
        """
        return list(_MUTATION_TRANSITIONS.get(self, set()))

    def is_terminal(self) -> bool:
        """Check if this is a terminal (final) state.

        Returns:
            True if no further transitions are possible.
        """
        return len(_MUTATION_TRANSITIONS.get(self, set())) == 0

    def is_in_flight(self) -> bool:
        """Check if the optimistic change is visible but unconfirmed."""
        return self == MutationStatus.APPLYING


# Mutation state transitions (defined outside enum to avoid Enum restrictions)
_MUTATION_TRANSITIONS: dict[MutationStatus, set[MutationStatus]] = {
    MutationStatus.IDLE: {MutationStatus.APPLYING},
    MutationStatus.APPLYING: {MutationStatus.COMMITTED, MutationStatus.ROLLED_BACK},
    MutationStatus.COMMITTED: set(),  # Terminal state
    MutationStatus.ROLLED_BACK: set(),  # Terminal state
}


# ============================================================================
# Autosave State Machine
# ============================================================================


class AutoSaveStatus(str, Enum):
    """Draft autosave indicator states.

    State diagram:
        IDLE ──timer──► SAVING ──written──► SAVED ──decay──► IDLE
          ▲                                   │
          └──────────── form edited ──────────┘
    """

    IDLE = "idle"
    SAVING = "saving"
    SAVED = "saved"

    def can_transition_to(self, target: "AutoSaveStatus") -> bool:
        return target in _AUTOSAVE_TRANSITIONS.get(self, set())


_AUTOSAVE_TRANSITIONS: dict[AutoSaveStatus, set[AutoSaveStatus]] = {
    AutoSaveStatus.IDLE: {AutoSaveStatus.SAVING, AutoSaveStatus.IDLE},
    AutoSaveStatus.SAVING: {AutoSaveStatus.SAVED, AutoSaveStatus.IDLE},
    AutoSaveStatus.SAVED: {AutoSaveStatus.IDLE, AutoSaveStatus.SAVING},
}


# ============================================================================
# State Machine Helpers
# ============================================================================


def validate_mutation_transition(
    mutation_id: str,
    current_status: MutationStatus,
    target_status: MutationStatus,
) -> None:
    """Validate and raise if mutation state transition is invalid.

    Args:
        mutation_id: Mutation identifier for error message.
        current_status: Current mutation status.
        target_status: Target mutation status.

    Raises:
        InvalidStateTransitionError: If transition is not valid.
    """
    if not current_status.can_transition_to(target_status):
        raise InvalidStateTransitionError(
            entity_type="Mutation",
            entity_id=mutation_id,
            current_state=current_status.value,
            target_state=target_status.value,
            allowed_transitions=[s.value for s in current_status.allowed_transitions()],
        )
