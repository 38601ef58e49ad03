from dataclasses import dataclass
from typing import Mapping

from .config import GUESS_MAX, GUESS_MIN
from .errors import NoParticipantsError


@dataclass(frozen=True)
class WinnerSelection:
    min_distance: int
    winner_count: int


def distance(guess: int, winning_number: int) -> int:
    return abs(guess - winning_number)


def select_winner(counts: Mapping[int, int], winning_number: int) -> WinnerSelection:
    """
    Minimum distance to `winning_number` and how many participants sit at it.

    Scans the admissible guess domain rather than the participant set, so the
    cost does not grow with the number of players. Ties all win, including
    several participants on the same value.
    """
    min_distance = None
    winner_count = 0

    for value in range(GUESS_MIN, GUESS_MAX + 1):
        n = counts.get(value, 0)
        if n <= 0:
            continue
        d = distance(value, winning_number)
        if min_distance is None or d < min_distance:
            min_distance = d
            winner_count = n
        elif d == min_distance:
            winner_count += n

    if min_distance is None:
        raise NoParticipantsError("No participants; winner cannot be determined")

    return WinnerSelection(min_distance=min_distance, winner_count=winner_count)
