"""
Round phases, derived from the stored milestones and the current height.

    UNSTARTED --start--> OPEN --(close height)--> CLOSED
    CLOSED --reveal--> REVEALED
    CLOSED --(reveal deadline passes, no reveal)--> REFUND_OPEN

Only UNSTARTED -> OPEN and CLOSED -> REVEALED are stored transitions; the rest
hold by height alone.
"""

from enum import Enum
from typing import Optional

from .config import GAME_DURATION, REVEAL_DEADLINE
from .errors import PhaseError
from .models import Round


class GamePhase(str, Enum):
    UNSTARTED = "UNSTARTED"
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    REVEALED = "REVEALED"
    REFUND_OPEN = "REFUND_OPEN"


def is_started(round_: Round) -> bool:
    return round_.start_height is not None


def close_height(round_: Round) -> Optional[int]:
    if not is_started(round_):
        return None
    return round_.start_height + GAME_DURATION


def reveal_deadline_height(round_: Round) -> Optional[int]:
    if not is_started(round_):
        return None
    return round_.start_height + GAME_DURATION + REVEAL_DEADLINE


def betting_open(round_: Round, now: int) -> bool:
    return is_started(round_) and round_.start_height <= now < close_height(round_)


def reveal_window_elapsed(round_: Round, now: int) -> bool:
    # Shared by reveal and refund so the two can never both be legal
    return is_started(round_) and now > reveal_deadline_height(round_)


def phase_at(round_: Round, now: int) -> GamePhase:
    if not is_started(round_):
        return GamePhase.UNSTARTED
    if round_.revealed:
        return GamePhase.REVEALED
    if now < close_height(round_):
        return GamePhase.OPEN
    if reveal_window_elapsed(round_, now):
        return GamePhase.REFUND_OPEN
    return GamePhase.CLOSED


# --- Guards ---

def require_started(round_: Round):
    if not is_started(round_):
        raise PhaseError("Round not started")


def require_betting_open(round_: Round, now: int):
    require_started(round_)
    if now < round_.start_height:
        raise PhaseError("Betting not open yet")
    if now >= close_height(round_):
        raise PhaseError(f"Betting closed at height {close_height(round_)}")


def require_reveal_window(round_: Round, now: int):
    require_started(round_)
    if now < close_height(round_):
        raise PhaseError(f"Betting still open until height {close_height(round_)}")
    if reveal_window_elapsed(round_, now):
        raise PhaseError(f"Reveal deadline passed at height {reveal_deadline_height(round_)}")


def require_refund_window(round_: Round, now: int):
    require_started(round_)
    if not reveal_window_elapsed(round_, now):
        raise PhaseError(f"Refunds open after height {reveal_deadline_height(round_)}")
