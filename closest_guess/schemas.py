from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from .config import GUESS_MAX, GUESS_MIN


class StartIn(BaseModel):
    commitment_digest: str


class BetIn(BaseModel):
    # Range is enforced by the game so out-of-domain guesses get its error
    guess: int


class RevealIn(BaseModel):
    number: int
    secret: str


class CommitmentIn(BaseModel):
    number: int = Field(ge=GUESS_MIN, le=GUESS_MAX)
    secret: str = Field(min_length=1)


class CommitmentOut(BaseModel):
    committer_id: str
    commitment_digest: str


class RoundOut(BaseModel):
    authority_id: str
    phase: str
    current_height: int
    start_height: Optional[int] = None
    close_height: Optional[int] = None
    reveal_deadline_height: Optional[int] = None
    commitment_digest: Optional[str] = None
    total_staked: int
    stake_amount: int
    pool: int
    revealed: bool
    winning_number: Optional[int] = None
    winning_distance: Optional[int] = None
    winner_count: Optional[int] = None
    prize_per_winner: Optional[int] = None
    dust: Optional[int] = None
    revealed_secret: Optional[str] = None
    reveal_height: Optional[int] = None


class ParticipantOut(BaseModel):
    identity: str
    guess: int
    bet_height: int
    has_played: bool
    claimed: bool
    refunded: bool
    is_winner: bool
    payout: int


class GuessParticipantsOut(BaseModel):
    guess: int
    participants: List[str]


class PayoutOut(BaseModel):
    identity: str
    amount: int


class AdminLogOut(BaseModel):
    id: int
    timestamp: datetime
    height: Optional[int] = None
    action: str
    details: Optional[str] = None

    class Config:
        from_attributes = True
