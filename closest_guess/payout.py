from typing import Optional

from .config import STAKE_AMOUNT
from .errors import EntitlementError, PhaseError, StateConflictError
from .models import Participant, Round
from .winner import distance


def pool_size(total_staked: int, stake_amount: int = STAKE_AMOUNT) -> int:
    return total_staked * stake_amount


def prize_per_winner(total_staked: int, winner_count: int, stake_amount: int = STAKE_AMOUNT) -> int:
    # Floor division; the remainder stays in escrow unclaimed
    if winner_count <= 0:
        raise ValueError("winner_count must be positive")
    return pool_size(total_staked, stake_amount) // winner_count


def dust(total_staked: int, winner_count: int, stake_amount: int = STAKE_AMOUNT) -> int:
    prize = prize_per_winner(total_staked, winner_count, stake_amount)
    return pool_size(total_staked, stake_amount) - winner_count * prize


def is_winner(round_: Round, participant: Optional[Participant]) -> bool:
    # Recomputed from the stored guess on every call; no per-user winner flag
    if participant is None or not round_.revealed:
        return False
    return distance(participant.guess, round_.winning_number) == round_.winning_distance


def require_claimable(round_: Round, participant: Optional[Participant], identity: str):
    if not round_.revealed:
        raise PhaseError("Round not revealed")
    if participant is None or not participant.has_played:
        raise EntitlementError(f"{identity} did not play")
    if participant.claimed:
        raise StateConflictError(f"{identity} already claimed")
    if participant.refunded:
        raise StateConflictError(f"{identity} already refunded")
    if not is_winner(round_, participant):
        raise EntitlementError(f"{identity} did not win")
