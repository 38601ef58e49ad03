import logging
import os
from typing import List

from fastapi import Depends, FastAPI, Header, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from .clock import ClockSource, build_clock
from .config import AUTHORITY_ID, CORS_ORIGINS
from .database import Base, SessionLocal, engine, get_db
from .errors import GameError
from .game import GuessingGame, ensure_round
from .schemas import (
    AdminLogOut,
    BetIn,
    CommitmentIn,
    CommitmentOut,
    GuessParticipantsOut,
    ParticipantOut,
    PayoutOut,
    RevealIn,
    RoundOut,
    StartIn,
)
from .transfers import InMemoryValueLedger, ValueLedger

logging.basicConfig(
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    level=logging.INFO
)
logger = logging.getLogger(__name__)

# --- Collaborators (overridable in tests / deployments) ---

_clock = None
# Process-local balances with no funding endpoint; deployments override get_value_ledger.
_value_ledger = InMemoryValueLedger()


def get_clock() -> ClockSource:
    global _clock
    if _clock is None:
        _clock = build_clock()
    return _clock


def get_value_ledger() -> ValueLedger:
    return _value_ledger


def warn_if_volatile_ledger(value_ledger: ValueLedger) -> bool:
    if isinstance(value_ledger, InMemoryValueLedger):
        logger.warning(
            "[startup] using the in-memory value ledger: balances are lost on restart "
            "and nothing funds them, so bets will fail until get_value_ledger is overridden"
        )
        return True
    return False


def get_game(
    db: Session = Depends(get_db),
    clock: ClockSource = Depends(get_clock),
    value_ledger: ValueLedger = Depends(get_value_ledger),
) -> GuessingGame:
    return GuessingGame(db, clock, value_ledger)


def get_caller(x_caller_id: str = Header(None)) -> str:
    if not x_caller_id:
        raise HTTPException(status_code=401, detail="X-Caller-Id header required")
    return x_caller_id


def require_admin(x_admin_secret: str = Header(None)):
    expected = os.getenv("ADMIN_SECRET")
    if expected is None:
        raise HTTPException(status_code=500, detail="Admin secret not configured")
    if x_admin_secret != expected:
        raise HTTPException(status_code=403, detail="Forbidden")


app = FastAPI(title="Closest Guess Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(GameError)
async def game_error_handler(request: Request, exc: GameError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": str(exc), "error": exc.code},
    )


@app.on_event("startup")
def startup_event():
    Base.metadata.create_all(bind=engine)

    db: Session = SessionLocal()
    try:
        round_ = ensure_round(db, AUTHORITY_ID)
        logger.info(f"[startup] round ready, authority {round_.authority_id}")
    finally:
        db.close()

    warn_if_volatile_ledger(app.dependency_overrides.get(get_value_ledger, get_value_ledger)())


@app.get("/health")
def health():
    return {"status": "ok"}


# --- Round ---

@app.get("/api/round", response_model=RoundOut)
def get_round(game: GuessingGame = Depends(get_game)):
    return game.snapshot()


@app.post("/api/round/start", response_model=RoundOut)
def start_round(payload: StartIn, game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    game.start(caller, payload.commitment_digest)
    return game.snapshot()


@app.post("/api/round/reveal", response_model=RoundOut)
def reveal_number(payload: RevealIn, game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    game.reveal(caller, payload.number, payload.secret)
    return game.snapshot()


@app.post("/api/commitments", response_model=CommitmentOut)
def make_commitment(payload: CommitmentIn, game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    digest = game.generate_commitment(caller, payload.number, payload.secret)
    return {"committer_id": caller, "commitment_digest": digest}


# --- Participants ---

@app.post("/api/bets", response_model=ParticipantOut)
def place_bet(payload: BetIn, game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    game.bet(caller, payload.guess)
    return game.participant(caller)


@app.post("/api/claims", response_model=PayoutOut)
def claim_prize(game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    amount = game.claim(caller)
    return {"identity": caller, "amount": amount}


@app.post("/api/refunds", response_model=PayoutOut)
def claim_refund(game: GuessingGame = Depends(get_game), caller: str = Depends(get_caller)):
    amount = game.refund(caller)
    return {"identity": caller, "amount": amount}


@app.get("/api/participants/count")
def get_participant_count(game: GuessingGame = Depends(get_game)):
    return {"count": game.participant_count()}


@app.get("/api/participants/{identity}", response_model=ParticipantOut)
def get_participant(identity: str, game: GuessingGame = Depends(get_game)):
    record = game.participant(identity)
    if record is None:
        raise HTTPException(status_code=404, detail="Participant not found")
    return record


@app.get("/api/guesses/{guess}/participants", response_model=GuessParticipantsOut)
def get_guess_participants(guess: int, game: GuessingGame = Depends(get_game)):
    return {"guess": guess, "participants": game.participants_by_guess(guess)}


# --- Admin ---

@app.get("/api/admin/logs", response_model=List[AdminLogOut])
def get_admin_logs(limit: int = 100, game: GuessingGame = Depends(get_game), _: None = Depends(require_admin)):
    return game.audit_log(limit=limit)
