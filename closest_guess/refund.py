from typing import Optional

from .errors import EntitlementError, StateConflictError
from .models import Participant, Round
from .phases import require_refund_window, require_started, reveal_window_elapsed


def refund_available(round_: Round, now: int) -> bool:
    return not round_.revealed and reveal_window_elapsed(round_, now)


def require_refundable(round_: Round, participant: Optional[Participant], identity: str, now: int):
    """Fallback path when the authority never revealed in time."""
    require_started(round_)
    if round_.revealed:
        raise StateConflictError("Round already revealed; refunds disabled")
    require_refund_window(round_, now)
    if participant is None or not participant.has_played:
        raise EntitlementError(f"{identity} did not play")
    if participant.refunded:
        raise StateConflictError(f"{identity} already refunded")
    if participant.claimed:
        raise StateConflictError(f"{identity} already claimed")
