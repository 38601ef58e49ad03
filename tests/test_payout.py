import pytest

from closest_guess.config import STAKE_AMOUNT
from closest_guess.payout import dust, pool_size, prize_per_winner


@pytest.mark.parametrize("bets,winners", [(1, 1), (3, 2), (7, 3), (10, 10), (100, 7)])
def test_unit_stake_prize_is_floor_and_never_exceeds_pool(bets, winners):
    prize = prize_per_winner(bets, winners, stake_amount=1)
    assert prize == bets // winners
    assert winners * prize <= bets
    assert dust(bets, winners, stake_amount=1) == bets - winners * prize


def test_pool_uses_fixed_stake():
    assert pool_size(4) == 4 * STAKE_AMOUNT
    assert prize_per_winner(4, 3) == (4 * STAKE_AMOUNT) // 3


def test_zero_winners_is_a_programming_error():
    with pytest.raises(ValueError):
        prize_per_winner(3, 0)
