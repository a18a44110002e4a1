# -*- coding: utf-8 -*-
"""Bet placement: debit the stake and record a pending bet in one transaction."""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import PredictionNotFoundError, ValidationError
from ..models_db import Bet, BetStatus, Match, MatchStatus, Prediction
from ..money import MAX_AMOUNT, MONEY_SCALE, ODDS_SCALE, potential_return, to_decimal, to_money
from ..outcomes import parse_selection
from . import ledger

logger = logging.getLogger(__name__)


def _positive(name: str, value, scale: int):
    try:
        number = to_decimal(value, scale, MAX_AMOUNT)
    except ValueError as e:
        raise ValidationError(f"{name}: {e}")
    if number <= 0:
        raise ValidationError(f"{name} must be positive, got {value}")
    return number


async def create_bet(
    session: AsyncSession,
    user_id: int,
    prediction_id: int,
    amount,
    bet_type,
    bet_value: str,
    odds,
) -> Bet:
    """
    Place a bet against a prediction.

    The stake is taken from the user's balance immediately; the payout
    (potential_return = amount x odds) is credited at settlement if the bet
    wins. On any error nothing is written.

    Raises UserNotFoundError, InsufficientBalanceError,
    PredictionNotFoundError or ValidationError.
    """
    stake = _positive("amount", amount, MONEY_SCALE)
    price = _positive("odds", odds, ODDS_SCALE)
    selection = parse_selection(bet_type, bet_value)
    returns = potential_return(stake, price)
    if returns > MAX_AMOUNT:
        raise ValidationError(f"Potential return {returns} exceeds the limit of {MAX_AMOUNT}")

    try:
        await ledger.debit(session, user_id, stake)

        row = (
            await session.execute(
                select(Prediction.id, Match.status)
                .join(Match, Match.id == Prediction.match_id)
                .where(Prediction.id == prediction_id)
            )
        ).one_or_none()
        if row is None:
            raise PredictionNotFoundError(prediction_id)
        if row.status == MatchStatus.COMPLETED.value:
            raise ValidationError(
                f"Prediction {prediction_id} belongs to a completed match"
            )

        bet = Bet(
            user_id=user_id,
            prediction_id=prediction_id,
            amount=stake,
            bet_type=selection.bet_type.value,
            bet_value=str(selection),
            odds=price,
            potential_return=returns,
            status=BetStatus.PENDING.value,
        )
        session.add(bet)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    await session.refresh(bet)
    logger.info(
        "[Betting] User %s bet %s on %s=%s @ %s (returns %s)",
        user_id, to_money(bet.amount), bet.bet_type, bet.bet_value, bet.odds, bet.potential_return,
    )
    return bet
