from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, DateTime
from sqlalchemy import Text
from datetime import datetime
from .config import GUESS_MAX, GUESS_MIN
from .database import Base


ROUND_ID = 1


class Round(Base):
    __tablename__ = "rounds"

    # Singleton row, always ROUND_ID
    id = Column(Integer, primary_key=True)

    authority_id = Column(String, nullable=False)

    # None until start; set once
    start_height = Column(Integer, nullable=True)
    commitment_digest = Column(String, nullable=True)

    # Count of admitted bets (not units)
    total_staked = Column(Integer, default=0, nullable=False)

    # --- Frozen once revealed ---
    revealed = Column(Boolean, default=False, nullable=False)
    winning_number = Column(Integer, nullable=True)
    winning_distance = Column(Integer, nullable=True)
    winner_count = Column(Integer, nullable=True)
    prize_per_winner = Column(Integer, nullable=True)

    # Published so anyone can recompute the digest
    revealed_secret = Column(Text, nullable=True)
    reveal_height = Column(Integer, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)


class Participant(Base):
    __tablename__ = "participants"
    __table_args__ = (
        CheckConstraint("NOT (claimed AND refunded)", name="ck_single_payout_path"),
        CheckConstraint(f"guess BETWEEN {GUESS_MIN} AND {GUESS_MAX}", name="ck_guess_domain"),
    )

    # Autoincrement id doubles as insertion order for the guess index
    id = Column(Integer, primary_key=True, autoincrement=True)
    identity = Column(String, unique=True, index=True, nullable=False)
    guess = Column(Integer, index=True, nullable=False)

    has_played = Column(Boolean, default=True, nullable=False)
    claimed = Column(Boolean, default=False, nullable=False)
    refunded = Column(Boolean, default=False, nullable=False)

    bet_height = Column(Integer, nullable=False)


class GuessBucket(Base):
    __tablename__ = "guess_buckets"

    guess = Column(Integer, primary_key=True)
    count = Column(Integer, default=0, nullable=False)


class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(Integer, primary_key=True)
    timestamp = Column(DateTime, default=datetime.utcnow)
    height = Column(Integer, nullable=True)
    action = Column(String)
    details = Column(String)
