# -*- coding: utf-8 -*-
"""
Balance ledger: the only code that writes users.total_balance.

Each operation is one UPDATE evaluated by the database, so concurrent
credits/debits to the same user never overwrite each other. Nothing here
commits; the caller owns the transaction.
"""
import logging
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import InsufficientBalanceError, UserNotFoundError, ValidationError
from ..models_db import User
from ..money import MAX_BALANCE, to_money

logger = logging.getLogger(__name__)


def _positive(amount) -> Decimal:
    try:
        value = to_money(amount)
    except ValueError as e:
        raise ValidationError(str(e))
    if value <= 0:
        raise ValidationError(f"Amount must be positive, got {value}")
    return value


async def credit(session: AsyncSession, user_id: int, amount) -> Decimal:
    """Add `amount` to the user's balance. Returns the new balance."""
    value = _positive(amount)
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.total_balance <= MAX_BALANCE - value)
        .values(total_balance=User.total_balance + value)
        .returning(User.total_balance)
        .execution_options(synchronize_session=False)
    )
    new_balance = result.scalar_one_or_none()
    if new_balance is None:
        if await _current_balance(session, user_id) is None:
            raise UserNotFoundError(user_id)
        raise ValidationError(f"Credit of {value} would take user {user_id} past {MAX_BALANCE}")
    logger.debug("[Ledger] credit user=%s amount=%s balance=%s", user_id, value, new_balance)
    return new_balance


async def debit(session: AsyncSession, user_id: int, amount) -> Decimal:
    """Subtract `amount` if the balance covers it. Returns the new balance."""
    value = _positive(amount)
    result = await session.execute(
        update(User)
        .where(User.id == user_id, User.total_balance >= value)
        .values(total_balance=User.total_balance - value)
        .returning(User.total_balance)
        .execution_options(synchronize_session=False)
    )
    new_balance = result.scalar_one_or_none()
    if new_balance is not None:
        logger.debug("[Ledger] debit user=%s amount=%s balance=%s", user_id, value, new_balance)
        return new_balance

    # Nothing updated: tell a missing user apart from a short balance.
    available = await _current_balance(session, user_id)
    if available is None:
        raise UserNotFoundError(user_id)
    raise InsufficientBalanceError(value, available)


async def _current_balance(session: AsyncSession, user_id: int) -> Decimal | None:
    return (
        await session.execute(select(User.total_balance).where(User.id == user_id))
    ).scalar_one_or_none()
