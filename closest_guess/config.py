import os

# --- Fixed game parameters (one game, never configurable) ---

GUESS_MIN = 1
GUESS_MAX = 100

# Heights, as reported by the clock source
GAME_DURATION = 1800
REVEAL_DEADLINE = 900

# Ledger units locked per bet
STAKE_AMOUNT = 100

# --- Deployment settings ---

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./closest_guess.db")
AUTHORITY_ID = os.getenv("AUTHORITY_ID")

# "slot" uses Helius getSlot, "unix" uses whole UNIX seconds
CLOCK_SOURCE = os.getenv("CLOCK_SOURCE", "slot")
HELIUS_API_KEY = os.getenv("HELIUS_API_KEY")
HELIUS_RPC_URL = os.getenv("HELIUS_RPC_URL", "https://mainnet.helius-rpc.com/")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "https://kaybeecrypto.github.io").split(",")
    if origin.strip()
]
