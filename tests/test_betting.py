from decimal import Decimal

import pytest
from sqlalchemy import func, select

from epl_predictions.errors import (
    InsufficientBalanceError,
    PredictionNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from epl_predictions.models_db import Bet, BetStatus
from epl_predictions.services.betting import create_bet

pytestmark = pytest.mark.asyncio


async def _bet_count(sessionmaker) -> int:
    async with sessionmaker() as session:
        return (await session.execute(select(func.count(Bet.id)))).scalar_one()


async def test_create_bet_debits_stake_and_freezes_return(seed, session):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")
    user = await seed.user("1000.00")

    bet = await create_bet(session, user.id, prediction.id, "100.00", "outcome", "home_win", "2.50")

    assert bet.id is not None
    assert bet.status == BetStatus.PENDING.value
    assert bet.amount == Decimal("100.00")
    assert bet.odds == Decimal("2.50")
    assert bet.potential_return == Decimal("250.00")
    assert bet.settled_at is None
    assert bet.paid_at is None
    assert await seed.balance(user) == Decimal("900.00")


async def test_potential_return_rounds_to_cents(seed, session):
    match = await seed.match()
    prediction = await seed.prediction(match, "draw")
    user = await seed.user()

    bet = await create_bet(session, user.id, prediction.id, "33.33", "outcome", "draw", "1.55")

    # 33.33 x 1.55 = 51.6615
    assert bet.potential_return == Decimal("51.66")


async def test_bet_value_is_stored_canonical(seed, session):
    match = await seed.match()
    prediction = await seed.prediction(match, "away_win")
    user = await seed.user()

    bet = await create_bet(session, user.id, prediction.id, "10", "over_under", "Over 2.50", "1.90")

    assert bet.bet_type == "over_under"
    assert bet.bet_value == "over_2.5"


async def test_insufficient_balance_changes_nothing(seed, session, sessionmaker):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")
    user = await seed.user("50.00")

    with pytest.raises(InsufficientBalanceError):
        await create_bet(session, user.id, prediction.id, "100.00", "outcome", "home_win", "2.00")

    assert await seed.balance(user) == Decimal("50.00")
    assert await _bet_count(sessionmaker) == 0


async def test_unknown_user(seed, session):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")

    with pytest.raises(UserNotFoundError):
        await create_bet(session, 404, prediction.id, "10.00", "outcome", "home_win", "2.00")


async def test_unknown_prediction_rolls_back_debit(seed, session, sessionmaker):
    user = await seed.user("100.00")

    with pytest.raises(PredictionNotFoundError):
        await create_bet(session, user.id, 404, "10.00", "outcome", "home_win", "2.00")

    assert await seed.balance(user) == Decimal("100.00")
    assert await _bet_count(sessionmaker) == 0


async def test_completed_match_is_rejected(seed, session):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")
    user = await seed.user("100.00")
    await seed.finish(match, 1, 0)

    with pytest.raises(ValidationError):
        await create_bet(session, user.id, prediction.id, "10.00", "outcome", "home_win", "2.00")

    assert await seed.balance(user) == Decimal("100.00")


@pytest.mark.parametrize(
    "amount, bet_type, bet_value, odds",
    [
        ("0", "outcome", "home_win", "2.00"),
        ("-10", "outcome", "home_win", "2.00"),
        ("10", "outcome", "home_win", "0"),
        ("10", "outcome", "home", "2.00"),
        ("10", "over_under", "lots", "2.00"),
        ("10", "both_teams_score", "maybe", "2.00"),
        ("10", "handicap", "home_win", "2.00"),
    ],
)
async def test_invalid_input_is_rejected_before_debit(
    seed, session, amount, bet_type, bet_value, odds
):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")
    user = await seed.user("100.00")

    with pytest.raises(ValidationError):
        await create_bet(session, user.id, prediction.id, amount, bet_type, bet_value, odds)

    assert await seed.balance(user) == Decimal("100.00")


async def test_several_bets_draw_down_balance(seed):
    match = await seed.match()
    prediction = await seed.prediction(match, "draw")
    user = await seed.user("100.00")

    await seed.bet(user, prediction, "30.00", "3.10")
    await seed.bet(user, prediction, "70.00", "3.10")

    assert await seed.balance(user) == Decimal("0.00")
    with pytest.raises(InsufficientBalanceError):
        await seed.bet(user, prediction, "0.01", "3.10")


@pytest.mark.parametrize(
    "amount, odds",
    [
        ("1E+30", "2.00"),
        ("10.00", "1E+30"),
        ("1000000000000.01", "2.00"),
        ("1000000000.00", "5000.00"),  # return above the limit
    ],
)
async def test_out_of_range_amounts_are_rejected(seed, session, sessionmaker, amount, odds):
    match = await seed.match()
    prediction = await seed.prediction(match, "home_win")
    user = await seed.user("100.00")

    with pytest.raises(ValidationError):
        await create_bet(session, user.id, prediction.id, amount, "outcome", "home_win", odds)

    assert await seed.balance(user) == Decimal("100.00")
    assert await _bet_count(sessionmaker) == 0
