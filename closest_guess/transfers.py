"""
Value-transfer ledger boundary.

The round never moves value itself: it asks a ledger to pull a stake from a
participant into escrow, or push a payout from escrow back out. Anything other
than a True return is a failure of the calling operation.
"""

import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)

ESCROW_ACCOUNT = "__escrow__"


class ValueLedger:
    def pull(self, from_id: str, amount: int) -> bool:
        raise NotImplementedError

    def push(self, to_id: str, amount: int) -> bool:
        raise NotImplementedError

    def balance(self, identity: str) -> int:
        raise NotImplementedError


class InMemoryValueLedger(ValueLedger):
    """Balances per identity plus one escrow account."""

    def __init__(self):
        self.balances: Dict[str, int] = defaultdict(int)

    def credit(self, identity: str, amount: int):
        if amount < 0:
            raise ValueError("amount must be >= 0")
        self.balances[identity] += amount

    def pull(self, from_id: str, amount: int) -> bool:
        if amount < 0 or self.balances[from_id] < amount:
            logger.warning(f"[ledger] pull of {amount} from {from_id} refused (balance {self.balances[from_id]})")
            return False
        self.balances[from_id] -= amount
        self.balances[ESCROW_ACCOUNT] += amount
        return True

    def push(self, to_id: str, amount: int) -> bool:
        if amount < 0 or self.balances[ESCROW_ACCOUNT] < amount:
            logger.warning(f"[ledger] push of {amount} to {to_id} refused (escrow {self.balances[ESCROW_ACCOUNT]})")
            return False
        self.balances[ESCROW_ACCOUNT] -= amount
        self.balances[to_id] += amount
        return True

    def balance(self, identity: str) -> int:
        return self.balances.get(identity, 0)

    def escrow_balance(self) -> int:
        return self.balance(ESCROW_ACCOUNT)
