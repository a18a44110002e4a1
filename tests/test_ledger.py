import asyncio
from decimal import Decimal

import pytest

from epl_predictions.errors import InsufficientBalanceError, UserNotFoundError, ValidationError
from epl_predictions.money import MAX_BALANCE
from epl_predictions.services import ledger

pytestmark = pytest.mark.asyncio


async def test_credit_returns_new_balance(seed, session):
    user = await seed.user("100.00")

    balance = await ledger.credit(session, user.id, "25.50")
    await session.commit()

    assert balance == Decimal("125.50")
    assert await seed.balance(user) == Decimal("125.50")


async def test_debit_returns_new_balance(seed, session):
    user = await seed.user("100.00")

    balance = await ledger.debit(session, user.id, Decimal("40"))
    await session.commit()

    assert balance == Decimal("60.00")
    assert await seed.balance(user) == Decimal("60.00")


async def test_debit_whole_balance(seed, session):
    user = await seed.user("50.00")

    assert await ledger.debit(session, user.id, "50.00") == Decimal("0.00")


async def test_debit_insufficient_balance(seed, session):
    user = await seed.user("10.00")

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await ledger.debit(session, user.id, "10.01")
    await session.rollback()

    assert exc_info.value.required == Decimal("10.01")
    assert exc_info.value.available == Decimal("10.00")
    assert await seed.balance(user) == Decimal("10.00")


async def test_unknown_user(session):
    with pytest.raises(UserNotFoundError):
        await ledger.credit(session, 999, "1.00")
    with pytest.raises(UserNotFoundError):
        await ledger.debit(session, 999, "1.00")


@pytest.mark.parametrize("amount", ["0", "-5.00", "abc", None])
async def test_rejects_non_positive_or_malformed_amounts(seed, session, amount):
    user = await seed.user()

    with pytest.raises(ValidationError):
        await ledger.credit(session, user.id, amount)
    with pytest.raises(ValidationError):
        await ledger.debit(session, user.id, amount)


async def test_amounts_are_rounded_to_cents(seed, session):
    user = await seed.user("0.00")

    await ledger.credit(session, user.id, 0.1)
    await ledger.credit(session, user.id, 0.2)
    await session.commit()

    assert await seed.balance(user) == Decimal("0.30")


async def test_concurrent_credits_are_not_lost(seed, sessionmaker):
    user = await seed.user("0.00")

    async def credit_once(amount):
        async with sessionmaker() as session:
            await ledger.credit(session, user.id, amount)
            await session.commit()

    await asyncio.gather(*(credit_once("10.00") for _ in range(10)))

    assert await seed.balance(user) == Decimal("100.00")


async def test_concurrent_debits_never_overdraw(seed, sessionmaker):
    user = await seed.user("50.00")

    async def debit_once():
        async with sessionmaker() as session:
            try:
                await ledger.debit(session, user.id, "20.00")
            except InsufficientBalanceError:
                await session.rollback()
                return False
            await session.commit()
            return True

    results = await asyncio.gather(*(debit_once() for _ in range(5)))

    assert results.count(True) == 2
    assert await seed.balance(user) == Decimal("10.00")


async def test_huge_amounts_are_validation_errors(seed, session):
    user = await seed.user("10.00")

    with pytest.raises(ValidationError):
        await ledger.credit(session, user.id, "1E+30")
    with pytest.raises(ValidationError):
        await ledger.debit(session, user.id, "1E+30")


async def test_credit_cannot_pass_balance_limit(seed, session):
    user = await seed.user(str(MAX_BALANCE - Decimal("5.00")))

    assert await ledger.credit(session, user.id, "5.00") == MAX_BALANCE
    with pytest.raises(ValidationError):
        await ledger.credit(session, user.id, "0.01")
    await session.commit()

    assert await seed.balance(user) == MAX_BALANCE
