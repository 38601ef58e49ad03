import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from closest_guess.clock import ManualClock
from closest_guess.commitment import generate_commitment
from closest_guess.config import GAME_DURATION, REVEAL_DEADLINE, STAKE_AMOUNT
from closest_guess.database import Base
from closest_guess.game import GuessingGame, ensure_round
from closest_guess.transfers import InMemoryValueLedger

AUTHORITY = "authority-wallet"
SECRET = "correct horse battery staple"
START_HEIGHT = 10
CLOSE_HEIGHT = START_HEIGHT + GAME_DURATION
DEADLINE_HEIGHT = CLOSE_HEIGHT + REVEAL_DEADLINE

PLAYERS = ["alice", "bob", "carol", "dave", "erin", "frank"]


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=True)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    ensure_round(session, AUTHORITY)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def clock():
    return ManualClock(START_HEIGHT)


@pytest.fixture
def ledger():
    value_ledger = InMemoryValueLedger()
    for player in PLAYERS:
        value_ledger.credit(player, STAKE_AMOUNT * 5)
    return value_ledger


@pytest.fixture
def game(db, clock, ledger):
    return GuessingGame(db, clock, ledger)


def commitment_for(number, secret=SECRET, committer=AUTHORITY):
    return generate_commitment(number, secret, committer)


def start_round(game, number=50):
    return game.start(AUTHORITY, commitment_for(number))


def play_and_reveal(game, clock, guesses, number=50):
    """Start, place `guesses` ({identity: guess}), close betting and reveal."""
    start_round(game, number)
    for identity, guess in guesses.items():
        game.bet(identity, guess)
    clock.set(CLOSE_HEIGHT)
    return game.reveal(AUTHORITY, number, SECRET)
