from closest_guess.transfers import InMemoryValueLedger


def test_pull_and_push_move_through_escrow():
    value_ledger = InMemoryValueLedger()
    value_ledger.credit("alice", 250)

    assert value_ledger.pull("alice", 100)
    assert value_ledger.balance("alice") == 150
    assert value_ledger.escrow_balance() == 100

    assert value_ledger.push("bob", 60)
    assert value_ledger.balance("bob") == 60
    assert value_ledger.escrow_balance() == 40


def test_short_balances_refuse():
    value_ledger = InMemoryValueLedger()
    assert not value_ledger.pull("nobody", 1)
    assert not value_ledger.push("nobody", 1)
    assert value_ledger.balance("nobody") == 0
