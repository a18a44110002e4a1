# -*- coding: utf-8 -*-
"""Users router: accounts, balances, bet history and stats."""
from decimal import Decimal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import desc, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import DEFAULT_USER_BALANCE
from ..database import get_session
from ..errors import ConflictError, UserNotFoundError
from ..models_db import Bet, BetStatus, User
from ..money import MAX_BALANCE, format_money
from .bets import bet_to_dict

router = APIRouter(tags=["users"])

ZERO = Decimal("0.00")


class UserCreate(BaseModel):
    username: str = Field(min_length=1)
    email: str = Field(pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    total_balance: Decimal = Field(DEFAULT_USER_BALANCE, ge=0, le=MAX_BALANCE, decimal_places=2)


@router.post("/users")
async def create_user(
    data: UserCreate,
    session: AsyncSession = Depends(get_session),
):
    """Open an account with a virtual balance. Username and email are unique."""
    taken = await session.execute(
        select(User.id).where(or_(User.username == data.username, User.email == data.email))
    )
    if taken.first() is not None:
        raise ConflictError("Username or email already registered")

    user = User(username=data.username, email=data.email, total_balance=data.total_balance)
    session.add(user)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConflictError("Username or email already registered")
    await session.refresh(user)
    return user_to_dict(user)


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    session: AsyncSession = Depends(get_session),
):
    return user_to_dict(await _get_user(session, user_id))


@router.get("/users/{user_id}/bets")
async def list_user_bets(
    user_id: int,
    status: BetStatus | None = Query(None),
    limit: int = Query(50, gt=0, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """A user's bets, newest first."""
    query = select(Bet).where(Bet.user_id == user_id)
    if status is not None:
        query = query.where(Bet.status == status.value)

    query = query.order_by(desc(Bet.created_at), desc(Bet.id)).limit(limit).offset(offset)
    result = await session.execute(query)
    return [bet_to_dict(b) for b in result.scalars().all()]


@router.get("/users/{user_id}/stats")
async def user_stats(
    user_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Betting statistics: counts, win rate, winnings, losses, net profit."""
    user = await _get_user(session, user_id)

    result = await session.execute(
        select(Bet.status, Bet.amount, Bet.potential_return).where(Bet.user_id == user_id)
    )
    bets = result.all()

    won = [b for b in bets if b.status == BetStatus.WON.value]
    lost = [b for b in bets if b.status == BetStatus.LOST.value]
    pending = [b for b in bets if b.status == BetStatus.PENDING.value]

    # winnings are profit over the stake; losses are the stakes lost
    total_winnings = sum((b.potential_return - b.amount for b in won), ZERO)
    total_losses = sum((b.amount for b in lost), ZERO)
    settled = len(won) + len(lost)
    win_rate = round(len(won) / settled * 100, 2) if settled else 0

    return {
        "user": user_to_dict(user),
        "total_bets": len(bets),
        "won_bets": len(won),
        "lost_bets": len(lost),
        "pending_bets": len(pending),
        "win_rate": win_rate,
        "total_winnings": format_money(total_winnings),
        "total_losses": format_money(total_losses),
        "net_profit": format_money(total_winnings - total_losses),
    }


async def _get_user(session: AsyncSession, user_id: int) -> User:
    user = await session.get(User, user_id, populate_existing=True)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def user_to_dict(u: User) -> dict:
    return {
        "id": u.id,
        "username": u.username,
        "email": u.email,
        "total_balance": format_money(u.total_balance),
        "created_at": u.created_at.isoformat() if u.created_at else None,
    }
