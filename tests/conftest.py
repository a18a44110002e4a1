"""
Shared fixtures: a fresh SQLite file database per test and a `seed` helper
that writes fixtures through their own sessions, so the session handed to a
test never holds stale rows.
"""
import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest_asyncio
from sqlalchemy import select

from epl_predictions.database import create_tables, make_engine, make_sessionmaker
from epl_predictions.models_db import Bet, Match, MatchStatus, Prediction, Team, User
from epl_predictions.services.betting import create_bet


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def sessionmaker(engine):
    return make_sessionmaker(engine)


@pytest_asyncio.fixture
async def session(sessionmaker):
    async with sessionmaker() as session:
        yield session


class Seed:
    def __init__(self, sessionmaker):
        self.sessionmaker = sessionmaker
        self._ids = itertools.count(1)

    async def _add(self, obj):
        async with self.sessionmaker() as session:
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
        return obj

    async def team(self, name=None):
        n = next(self._ids)
        return await self._add(Team(name=name or f"Team {n}", code=f"T{n:02d}"))

    async def match(self, days_ahead=3, gameweek=1, season="2024-25"):
        home = await self.team()
        away = await self.team()
        return await self._add(
            Match(
                home_team_id=home.id,
                away_team_id=away.id,
                match_date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
                gameweek=gameweek,
                season=season,
                status=MatchStatus.SCHEDULED.value,
            )
        )

    async def prediction(self, match, outcome, confidence=70):
        return await self._add(
            Prediction(
                match_id=match.id,
                predicted_outcome=outcome,
                confidence_percentage=confidence,
                model_version="test-model-1",
            )
        )

    async def user(self, balance="1000.00"):
        n = next(self._ids)
        return await self._add(
            User(username=f"user{n}", email=f"user{n}@example.com", total_balance=Decimal(balance))
        )

    async def bet(self, user, prediction, amount, odds, bet_type="outcome", bet_value=None):
        async with self.sessionmaker() as session:
            return await create_bet(
                session,
                user_id=user.id,
                prediction_id=prediction.id,
                amount=amount,
                bet_type=bet_type,
                bet_value=bet_value or prediction.predicted_outcome,
                odds=odds,
            )

    async def finish(self, match, home_score, away_score, status=MatchStatus.COMPLETED.value):
        """Store a score without triggering settlement."""
        async with self.sessionmaker() as session:
            row = await session.get(Match, match.id)
            row.home_score = home_score
            row.away_score = away_score
            row.status = status
            await session.commit()

    async def balance(self, user) -> Decimal:
        async with self.sessionmaker() as session:
            return (
                await session.execute(select(User.total_balance).where(User.id == user.id))
            ).scalar_one()

    async def reload_bet(self, bet) -> Bet:
        async with self.sessionmaker() as session:
            return await session.get(Bet, bet.id)


@pytest_asyncio.fixture
async def seed(sessionmaker):
    return Seed(sessionmaker)
