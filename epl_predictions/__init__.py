# -*- coding: utf-8 -*-
"""
epl-predictions: football predictions with simulated betting and bet settlement.
"""
from .errors import (
    BettingError,
    ConcurrencyConflictError,
    ConflictError,
    InsufficientBalanceError,
    InvalidScoreError,
    MatchNotFoundError,
    MatchNotSettleableError,
    NotFoundError,
    PredictionNotFoundError,
    UserNotFoundError,
    ValidationError,
)

# Outcomes
from .outcomes import (
    MatchResult,
    evaluate_bet,
    parse_selection,
    resolve_outcome,
)

# Services
from .services.betting import create_bet
from .services.ledger import credit, debit
from .services.results import update_match_result
from .services.settlement import (
    pay_unpaid_winnings,
    settle_completed_matches,
    settle_match,
)

__version__ = "0.1.0"
