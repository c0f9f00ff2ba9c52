"""Phase transition table and the automatic quorum/deadline rule."""

from datetime import datetime

from planner.domain.errors import IllegalTransitionError, PhaseClosedError
from planner.domain.value_objects import Phase, Quorum

ALLOWED_TRANSITIONS: dict[Phase, frozenset[Phase]] = {
    Phase.VOTE: frozenset({Phase.PICK_DAYS, Phase.FAILED}),
    Phase.PICK_DAYS: frozenset({Phase.RESULTS}),
    Phase.RESULTS: frozenset({Phase.FINALIZED}),
    Phase.FINALIZED: frozenset(),
    Phase.FAILED: frozenset(),
}

HOST_TRANSITIONS: frozenset[tuple[Phase, Phase]] = frozenset(
    {
        (Phase.PICK_DAYS, Phase.RESULTS),
        (Phase.RESULTS, Phase.FINALIZED),
    }
)

VOTING_PHASES = frozenset({Phase.VOTE, Phase.PICK_DAYS})


def can_transition(current: Phase, target: Phase) -> bool:
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: Phase, target: Phase) -> None:
    """Raise unless ``current -> target`` is an edge of the table."""
    if not can_transition(current, target):
        raise IllegalTransitionError(current, target)


def ensure_host_transition(current: Phase, target: Phase) -> None:
    """Raise unless ``current -> target`` is an edge the host may request.

    Raises:
        PhaseClosedError: If the event is already in a terminal phase.
        IllegalTransitionError: For any other edge.
    """
    if current.is_terminal:
        raise PhaseClosedError(current)
    if (current, target) not in HOST_TRANSITIONS:
        raise IllegalTransitionError(current, target)


def ensure_open(phase: Phase, accepted: frozenset[Phase], action: str) -> None:
    """Raise PhaseClosedError unless a mutation is accepted in ``phase``."""
    if phase not in accepted:
        raise PhaseClosedError(phase, f"{action} is not accepted while the event is {phase}")


def decide_automatic_transition(
    phase: Phase,
    count_in: int,
    quorum: Quorum,
    vote_deadline: datetime,
    now: datetime,
) -> Phase | None:
    """Return the phase an event in ``phase`` should move to, or None.

    Quorum outranks deadline expiry: an event past its deadline with enough
    "in" votes still proceeds to PICK_DAYS. Both checks use the same count.
    """
    if phase != Phase.VOTE:
        return None
    if quorum.is_met_by(count_in):
        return Phase.PICK_DAYS
    if now > vote_deadline:
        return Phase.FAILED
    return None
