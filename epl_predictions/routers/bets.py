# -*- coding: utf-8 -*-
"""Bets router: place + fetch."""
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..errors import BetNotFoundError
from ..models_db import Bet, BetType
from ..money import MAX_AMOUNT, format_money
from ..services.betting import create_bet

router = APIRouter(tags=["bets"])


# ─── Schemas ────────────────────────────────────────────────────────────────

class BetCreate(BaseModel):
    user_id: int
    prediction_id: int
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)
    bet_type: BetType
    bet_value: str = Field(min_length=1)  # "home_win", "over_2.5", "yes"
    odds: Decimal = Field(gt=0, le=MAX_AMOUNT, decimal_places=2)


# ─── Endpoints ──────────────────────────────────────────────────────────────

@router.post("/bets")
async def place_bet(
    data: BetCreate,
    session: AsyncSession = Depends(get_session),
):
    """Place a bet and deduct the stake from the user's balance immediately."""
    bet = await create_bet(
        session,
        user_id=data.user_id,
        prediction_id=data.prediction_id,
        amount=data.amount,
        bet_type=data.bet_type,
        bet_value=data.bet_value,
        odds=data.odds,
    )
    return bet_to_dict(bet)


@router.get("/bets/{bet_id}")
async def get_bet(
    bet_id: int,
    session: AsyncSession = Depends(get_session),
):
    bet = await session.get(Bet, bet_id)
    if bet is None:
        raise BetNotFoundError(bet_id)
    return bet_to_dict(bet)


def bet_to_dict(b: Bet) -> dict:
    return {
        "id": b.id,
        "user_id": b.user_id,
        "prediction_id": b.prediction_id,
        "amount": format_money(b.amount),
        "bet_type": b.bet_type,
        "bet_value": b.bet_value,
        "odds": format_money(b.odds),
        "potential_return": format_money(b.potential_return),
        "status": b.status,
        "settled_at": b.settled_at.isoformat() if b.settled_at else None,
        "paid_at": b.paid_at.isoformat() if b.paid_at else None,
        "created_at": b.created_at.isoformat() if b.created_at else None,
    }
