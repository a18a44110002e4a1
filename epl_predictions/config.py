# -*- coding: utf-8 -*-
"""
Central configuration for the epl-predictions backend.
Constants and environment variables.
"""
import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# =============================================================================
# DATABASE
# =============================================================================
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///epl_predictions.db")
DATABASE_ECHO = _flag("DATABASE_ECHO")

# =============================================================================
# USERS / BALANCES
# =============================================================================
DEFAULT_USER_BALANCE = Decimal(os.getenv("DEFAULT_USER_BALANCE", "1000.00"))

# =============================================================================
# SETTLEMENT
# =============================================================================
# Over/under and both-teams-score bets are settled as lost unless enabled
EVALUATE_GOAL_MARKETS = _flag("EVALUATE_GOAL_MARKETS")

SETTLEMENT_SWEEP_ENABLED = _flag("SETTLEMENT_SWEEP_ENABLED")
SETTLEMENT_SWEEP_MINUTES = int(os.getenv("SETTLEMENT_SWEEP_MINUTES", "10"))

# =============================================================================
# API
# =============================================================================
HOST = os.getenv("HOST", "127.0.0.1")
PORT = int(os.getenv("PORT", "8000"))

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv(
        "ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000"
    ).split(",")
    if origin.strip()
]

# =============================================================================
# LOGGING
# =============================================================================
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
