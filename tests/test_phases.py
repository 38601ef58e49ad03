import pytest

from closest_guess.config import GAME_DURATION, REVEAL_DEADLINE
from closest_guess.errors import PhaseError
from closest_guess.models import Round
from closest_guess.phases import (
    GamePhase,
    betting_open,
    phase_at,
    require_betting_open,
    require_refund_window,
    require_reveal_window,
    reveal_window_elapsed,
)

START = 100
CLOSE = START + GAME_DURATION
DEADLINE = CLOSE + REVEAL_DEADLINE


def make_round(start_height=START, revealed=False):
    return Round(authority_id="auth", start_height=start_height, revealed=revealed, total_staked=0)


def test_unstarted_round():
    round_ = make_round(start_height=None)
    assert phase_at(round_, 5) == GamePhase.UNSTARTED
    assert not betting_open(round_, 5)
    assert not reveal_window_elapsed(round_, 10 ** 9)
    with pytest.raises(PhaseError):
        require_betting_open(round_, 5)
    with pytest.raises(PhaseError):
        require_refund_window(round_, 10 ** 9)


def test_round_started_at_height_zero_is_started():
    round_ = make_round(start_height=0)
    assert phase_at(round_, 0) == GamePhase.OPEN
    assert betting_open(round_, 0)


@pytest.mark.parametrize(
    "now,expected",
    [
        (START, GamePhase.OPEN),
        (CLOSE - 1, GamePhase.OPEN),
        (CLOSE, GamePhase.CLOSED),
        (DEADLINE, GamePhase.CLOSED),
        (DEADLINE + 1, GamePhase.REFUND_OPEN),
    ],
)
def test_phase_boundaries(now, expected):
    assert phase_at(make_round(), now) == expected


def test_revealed_round_stays_revealed():
    round_ = make_round(revealed=True)
    assert phase_at(round_, DEADLINE + 500) == GamePhase.REVEALED


def test_reveal_and_refund_windows_never_overlap():
    round_ = make_round()
    for now in range(CLOSE - 2, DEADLINE + 3):
        reveal_ok = refund_ok = True
        try:
            require_reveal_window(round_, now)
        except PhaseError:
            reveal_ok = False
        try:
            require_refund_window(round_, now)
        except PhaseError:
            refund_ok = False
        assert not (reveal_ok and refund_ok)
        if now >= CLOSE:
            assert reveal_ok or refund_ok
