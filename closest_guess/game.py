"""
Closest-guess round: the single owned aggregate every operation runs against.

Each mutating operation checks its preconditions, applies its effects to the
session and commits them before performing at most one external transfer. A
failed transfer is compensated by a follow-up commit that reverses the effects,
so value never moves without the matching record being durable.
"""

import functools
import json
import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .betting import (
    check_bet,
    get_participant,
    guess_counts,
    participant_count,
    participants_by_guess,
    record_bet,
    require_in_domain,
    unrecord_bet,
)
from .clock import ClockSource
from .commitment import generate_commitment, verify_commitment
from .config import STAKE_AMOUNT
from .errors import (
    AuthorizationError,
    GameError,
    IntegrityError,
    PersistenceError,
    StateConflictError,
    TransferError,
    ValidationError,
)
from .models import ROUND_ID, AdminLog, Participant, Round
from .payout import dust, is_winner, pool_size, prize_per_winner, require_claimable
from .phases import (
    close_height,
    is_started,
    phase_at,
    require_betting_open,
    require_reveal_window,
    require_started,
    reveal_deadline_height,
)
from .refund import refund_available, require_refundable
from .transfers import ValueLedger
from .winner import select_winner

logger = logging.getLogger(__name__)

# Mutating operations are applied one at a time, process-wide. The lock is held
# across the ledger call, so a ledger may only call back into the game from the
# thread that invoked it; a callback from another thread blocks until the
# transfer returns.
ROUND_LOCK = threading.RLock()


def ensure_round(db: Session, authority_id: Optional[str]) -> Round:
    """Create the singleton round on first use. The stored authority never changes."""
    round_ = db.get(Round, ROUND_ID)
    if round_ is None:
        if not authority_id:
            raise ValueError("authority identity required to create the round")
        round_ = Round(id=ROUND_ID, authority_id=authority_id, total_staked=0, revealed=False)
        db.add(round_)
        db.commit()
        db.refresh(round_)
        logger.info(f"[round] created with authority {authority_id}")
    elif authority_id and authority_id != round_.authority_id:
        logger.warning(
            f"[round] configured authority {authority_id} ignored; round belongs to {round_.authority_id}"
        )
    return round_


def serialized(method):
    """
    Run `method` under ROUND_LOCK with the current height passed as `now`.

    The height is read before the lock is taken, so a slow clock source (RPC)
    never holds up other operations.
    """
    @functools.wraps(method)
    def wrapper(self, caller, *args, **kwargs):
        try:
            now = self.clock.now()
            with ROUND_LOCK:
                return method(self, caller, *args, now=now, **kwargs)
        except GameError as e:
            logger.warning(f"[{method.__name__}] rejected for {caller}: {e}")
            raise
    return wrapper


class GuessingGame:
    def __init__(self, db: Session, clock: ClockSource, value_ledger: ValueLedger):
        self.db = db
        self.clock = clock
        self.value_ledger = value_ledger
        self._transfer_in_progress = False

    # --- internals ---

    def _round(self) -> Round:
        round_ = self.db.get(Round, ROUND_ID)
        if round_ is None:
            raise StateConflictError("Round not initialized")
        return round_

    def _require_authority(self, round_: Round, caller: str):
        if caller != round_.authority_id:
            raise AuthorizationError("Only the round authority may do this")

    def _guard_reentry(self):
        if self._transfer_in_progress:
            raise StateConflictError("Another transfer is in progress")

    def _audit(self, action: str, height: int, **details) -> AdminLog:
        entry = AdminLog(action=action, height=height, details=json.dumps(details, sort_keys=True))
        self.db.add(entry)
        return entry

    def _commit(self, action: str):
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"[{action}] commit failed: {e}")
            raise PersistenceError(f"{action}: round state could not be saved") from e

    def _commit_then_transfer(
        self,
        transfer: Callable[[str, int], bool],
        action: str,
        identity: str,
        amount: int,
        undo: Callable[[], None],
    ):
        """
        Commit the operation's effects, then move value.

        The effects are durable before the ledger is called, so neither a
        reentrant call nor a later failure can observe the operation as not
        applied while value has moved. If the ledger refuses or raises, `undo`
        reverses the effects in a follow-up commit.
        """
        self._commit(action)

        error = None
        self._transfer_in_progress = True
        try:
            ok = transfer(identity, amount)
        except Exception as e:
            ok, error = False, e
        finally:
            self._transfer_in_progress = False

        if ok:
            return

        logger.error(f"[{action}] {amount} for {identity} failed: {error or 'refused by ledger'}")
        try:
            undo()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.critical(f"[{action}] could not revert effects for {identity} after failed transfer: {e}")
            raise PersistenceError(
                f"{action} of {amount} for {identity} failed and could not be reverted"
            ) from e

        detail = f": {error}" if error is not None else ""
        raise TransferError(f"{action} of {amount} for {identity} failed{detail}") from error

    # --- authority operations ---

    @serialized
    def start(self, caller: str, commitment_digest: str, *, now: int) -> Round:
        round_ = self._round()

        self._require_authority(round_, caller)
        if is_started(round_):
            raise StateConflictError(f"Round already started at height {round_.start_height}")
        digest = commitment_digest
        if not digest or not digest.strip():
            raise ValidationError("Commitment digest must not be empty")
        self._guard_reentry()

        round_.start_height = now
        round_.commitment_digest = digest
        self._audit("START", now, commitment_digest=digest, close_height=close_height(round_))
        self._commit("start")

        logger.info(f"[start] betting open {now}..{close_height(round_)}, commitment {digest}")
        return round_

    @serialized
    def reveal(self, caller: str, number: int, secret: str, *, now: int) -> Round:
        round_ = self._round()

        self._require_authority(round_, caller)
        require_started(round_)
        if round_.revealed:
            raise StateConflictError("Round already revealed")
        require_reveal_window(round_, now)
        require_in_domain(number, "number")
        if not verify_commitment(round_.commitment_digest, number, secret, caller):
            raise IntegrityError("Reveal does not match the stored commitment")

        selection = select_winner(guess_counts(self.db), number)
        self._guard_reentry()

        round_.revealed = True
        round_.winning_number = number
        round_.winning_distance = selection.min_distance
        round_.winner_count = selection.winner_count
        round_.prize_per_winner = prize_per_winner(round_.total_staked, selection.winner_count)
        round_.revealed_secret = secret
        round_.reveal_height = now
        self._audit(
            "REVEAL",
            now,
            winning_number=number,
            winning_distance=selection.min_distance,
            winner_count=selection.winner_count,
            prize_per_winner=round_.prize_per_winner,
        )
        self._commit("reveal")

        logger.info(
            f"[reveal] number={number} distance={selection.min_distance} "
            f"winners={selection.winner_count} prize={round_.prize_per_winner}"
        )
        return round_

    # --- participant operations ---

    @serialized
    def bet(self, caller: str, guess: int, *, now: int) -> Participant:
        round_ = self._round()

        require_betting_open(round_, now)
        if not round_.commitment_digest:
            raise ValidationError("Commitment digest not set")
        check_bet(self.db, caller, guess)
        self._guard_reentry()

        participant = record_bet(self.db, round_, caller, guess, now)
        entry = self._audit("BET", now, identity=caller, guess=guess, stake=STAKE_AMOUNT)

        def undo():
            unrecord_bet(self.db, round_, participant)
            self.db.delete(entry)

        self._commit_then_transfer(self.value_ledger.pull, "pull stake", caller, STAKE_AMOUNT, undo)

        logger.info(f"[bet] {caller} guessed {guess} at height {now}")
        return participant

    @serialized
    def claim(self, caller: str, *, now: int) -> int:
        round_ = self._round()

        participant = get_participant(self.db, caller)
        require_claimable(round_, participant, caller)
        self._guard_reentry()

        prize = round_.prize_per_winner
        participant.claimed = True
        entry = self._audit("CLAIM", now, identity=caller, amount=prize)

        def undo():
            participant.claimed = False
            self.db.delete(entry)

        self._commit_then_transfer(self.value_ledger.push, "push prize", caller, prize, undo)

        logger.info(f"[claim] paid {prize} to {caller}")
        return prize

    @serialized
    def refund(self, caller: str, *, now: int) -> int:
        round_ = self._round()

        participant = get_participant(self.db, caller)
        require_refundable(round_, participant, caller, now)
        self._guard_reentry()

        participant.refunded = True
        entry = self._audit("REFUND", now, identity=caller, amount=STAKE_AMOUNT)

        def undo():
            participant.refunded = False
            self.db.delete(entry)

        self._commit_then_transfer(self.value_ledger.push, "push refund", caller, STAKE_AMOUNT, undo)

        logger.info(f"[refund] returned {STAKE_AMOUNT} to {caller}")
        return STAKE_AMOUNT

    # --- pure helper ---

    def generate_commitment(self, caller: str, number: int, secret: str) -> str:
        require_in_domain(number, "number")
        if not secret:
            raise ValidationError("Secret must not be empty")
        return generate_commitment(number, secret, caller)

    # --- read-only accessors ---

    def participant_count(self) -> int:
        return participant_count(self.db)

    def participants_by_guess(self, guess: int) -> List[str]:
        return participants_by_guess(self.db, guess)

    def participant(self, identity: str) -> Optional[Dict[str, Any]]:
        round_ = self._round()
        participant = get_participant(self.db, identity)
        if participant is None:
            return None

        winner = is_winner(round_, participant)
        if winner and not participant.claimed:
            payout = round_.prize_per_winner
        elif not participant.refunded and refund_available(round_, self.clock.now()):
            payout = STAKE_AMOUNT
        else:
            payout = 0

        return {
            "identity": participant.identity,
            "guess": participant.guess,
            "bet_height": participant.bet_height,
            "has_played": participant.has_played,
            "claimed": participant.claimed,
            "refunded": participant.refunded,
            "is_winner": winner,
            "payout": payout,
        }

    def snapshot(self) -> Dict[str, Any]:
        round_ = self._round()
        now = self.clock.now()

        pool = pool_size(round_.total_staked)
        leftover = None
        if round_.revealed:
            leftover = dust(round_.total_staked, round_.winner_count)

        return {
            "authority_id": round_.authority_id,
            "phase": phase_at(round_, now).value,
            "current_height": now,
            "start_height": round_.start_height,
            "close_height": close_height(round_),
            "reveal_deadline_height": reveal_deadline_height(round_),
            "commitment_digest": round_.commitment_digest,
            "total_staked": round_.total_staked,
            "stake_amount": STAKE_AMOUNT,
            "pool": pool,
            "revealed": round_.revealed,
            "winning_number": round_.winning_number,
            "winning_distance": round_.winning_distance,
            "winner_count": round_.winner_count,
            "prize_per_winner": round_.prize_per_winner,
            "dust": leftover,
            "revealed_secret": round_.revealed_secret,
            "reveal_height": round_.reveal_height,
        }

    def audit_log(self, limit: int = 100) -> List[AdminLog]:
        return self.db.query(AdminLog).order_by(AdminLog.id.desc()).limit(limit).all()
