# -*- coding: utf-8 -*-
"""Domain errors raised by the services and mapped to HTTP responses in main."""


class BettingError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code = 400


class NotFoundError(BettingError):
    status_code = 404
    entity = "Entity"

    def __init__(self, entity_id):
        self.entity_id = entity_id
        super().__init__(f"{self.entity} with id {entity_id} not found")


class TeamNotFoundError(NotFoundError):
    entity = "Team"


class MatchNotFoundError(NotFoundError):
    entity = "Match"


class PredictionNotFoundError(NotFoundError):
    entity = "Prediction"


class UserNotFoundError(NotFoundError):
    entity = "User"


class BetNotFoundError(NotFoundError):
    entity = "Bet"


class ValidationError(BettingError):
    status_code = 422


class InvalidScoreError(ValidationError):
    pass


class InsufficientBalanceError(BettingError):
    status_code = 409

    def __init__(self, required, available=None):
        self.required = required
        self.available = available
        if available is None:
            message = f"Insufficient balance. Required: {required}"
        else:
            message = f"Insufficient balance. Required: {required}, Available: {available}"
        super().__init__(message)


class MatchNotSettleableError(BettingError):
    status_code = 409

    def __init__(self, match_id):
        self.match_id = match_id
        super().__init__(f"Match {match_id} is not completed or scores are missing")


class ConflictError(BettingError):
    status_code = 409


class ConcurrencyConflictError(BettingError):
    """Bets skipped because another settlement run moved them first.

    A log label only: settle_match() formats its debug line with it and
    never raises it.
    """

    status_code = 409

    def __init__(self, bet_ids):
        self.bet_ids = list(bet_ids)
        super().__init__(f"Bets {self.bet_ids} were already settled by another run")
