from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from .config import GUESS_MAX, GUESS_MIN
from .errors import ValidationError
from .models import GuessBucket, Participant, Round


def in_domain(value: int) -> bool:
    return GUESS_MIN <= value <= GUESS_MAX


def require_in_domain(value: int, what: str = "guess"):
    if not isinstance(value, int) or isinstance(value, bool) or not in_domain(value):
        raise ValidationError(f"{what} must be an integer in [{GUESS_MIN}, {GUESS_MAX}]")


def get_participant(db: Session, identity: str) -> Optional[Participant]:
    return db.query(Participant).filter(Participant.identity == identity).first()


def check_bet(db: Session, identity: str, guess: int):
    require_in_domain(guess)
    if get_participant(db, identity) is not None:
        raise ValidationError(f"{identity} already placed a bet")


def record_bet(db: Session, round_: Round, identity: str, guess: int, height: int) -> Participant:
    """
    Insert the participant record, index it under its guess and count the stake.

    Phase checks and `check_bet` are the caller's job. Nothing is committed here.
    """
    participant = Participant(
        identity=identity,
        guess=guess,
        has_played=True,
        claimed=False,
        refunded=False,
        bet_height=height,
    )
    db.add(participant)

    bucket = db.get(GuessBucket, guess)
    if bucket is None:
        bucket = GuessBucket(guess=guess, count=0)
        db.add(bucket)
    bucket.count += 1

    round_.total_staked += 1
    return participant


def guess_counts(db: Session) -> Dict[int, int]:
    return {b.guess: b.count for b in db.query(GuessBucket).all() if b.count > 0}


def participants_by_guess(db: Session, guess: int) -> List[str]:
    require_in_domain(guess)
    rows = (
        db.query(Participant.identity)
        .filter(Participant.guess == guess)
        .order_by(Participant.id)
        .all()
    )
    return [identity for (identity,) in rows]


def participant_count(db: Session) -> int:
    return db.query(Participant).count()


def unrecord_bet(db: Session, round_: Round, participant: Participant):
    """Reverse `record_bet` for a stake that could not be pulled."""
    bucket = db.get(GuessBucket, participant.guess)
    if bucket is not None:
        bucket.count -= 1
    round_.total_staked -= 1
    db.delete(participant)
