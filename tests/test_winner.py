import pytest

from closest_guess.errors import NoParticipantsError, StateConflictError
from closest_guess.winner import WinnerSelection, distance, select_winner


def counts_of(*guesses):
    counts = {}
    for g in guesses:
        counts[g] = counts.get(g, 0) + 1
    return counts


def test_sole_closest_wins():
    assert select_winner(counts_of(45, 49, 55), 50) == WinnerSelection(min_distance=1, winner_count=1)


def test_equal_distance_on_both_sides_ties():
    result = select_winner(counts_of(48, 52, 60), 50)
    assert result.min_distance == 2
    assert result.winner_count == 2


def test_shared_value_counts_every_participant():
    result = select_winner(counts_of(48, 48, 52), 50)
    assert result.min_distance == 2
    assert result.winner_count == 3


def test_exact_hit_has_distance_zero():
    result = select_winner(counts_of(50, 51, 49), 50)
    assert result == WinnerSelection(min_distance=0, winner_count=1)


def test_domain_edges():
    assert select_winner(counts_of(1, 100), 1) == WinnerSelection(0, 1)
    assert select_winner(counts_of(1, 100), 100) == WinnerSelection(0, 1)
    assert select_winner(counts_of(100), 1) == WinnerSelection(99, 1)


def test_values_outside_domain_are_never_scanned():
    assert select_winner({0: 5, 101: 5, 90: 1}, 100) == WinnerSelection(10, 1)


def test_empty_round_has_no_winner():
    with pytest.raises(NoParticipantsError):
        select_winner({}, 50)
    # zero-count buckets do not count as participants
    with pytest.raises(StateConflictError):
        select_winner({50: 0}, 50)


def test_selection_is_repeatable():
    counts = counts_of(3, 97, 97, 50)
    assert select_winner(counts, 75) == select_winner(counts, 75)


def test_distance_is_absolute():
    assert distance(40, 50) == distance(60, 50) == 10
