# -*- coding: utf-8 -*-
"""SQLAlchemy models for the epl-predictions database."""
import enum
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    BigInteger, CheckConstraint, Column, DateTime, ForeignKey, Integer, Text,
)
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.types import TypeDecorator

from .config import DEFAULT_USER_BALANCE
from .money import MONEY_SCALE, ODDS_SCALE, to_decimal


class MatchStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    POSTPONED = "postponed"


class Outcome(str, enum.Enum):
    HOME_WIN = "home_win"
    DRAW = "draw"
    AWAY_WIN = "away_win"


class BetType(str, enum.Enum):
    OUTCOME = "outcome"
    OVER_UNDER = "over_under"
    BOTH_TEAMS_SCORE = "both_teams_score"


class BetStatus(str, enum.Enum):
    PENDING = "pending"
    WON = "won"
    LOST = "lost"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FixedPoint(TypeDecorator):
    """Decimal in Python, scaled integer in the database.

    Increments such as ``total_balance + :amount`` stay integer arithmetic
    on every backend, SQLite included.
    """

    impl = BigInteger
    cache_ok = True

    def __init__(self, scale: int = MONEY_SCALE):
        super().__init__()
        self.scale = scale

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        return int(to_decimal(value, self.scale).scaleb(self.scale))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Decimal(int(value)).scaleb(-self.scale)


class Base(DeclarativeBase):
    pass


class Team(Base):
    __tablename__ = "teams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Text, nullable=False)
    code = Column(Text, nullable=False, unique=True)  # "MCI", "LIV"
    logo_url = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)


class Match(Base):
    __tablename__ = "matches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    home_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    away_team_id = Column(Integer, ForeignKey("teams.id"), nullable=False)
    match_date = Column(DateTime(timezone=True), nullable=False, index=True)
    home_score = Column(Integer, nullable=True)  # null until played
    away_score = Column(Integer, nullable=True)
    status = Column(Text, nullable=False, default=MatchStatus.SCHEDULED.value, index=True)
    gameweek = Column(Integer, nullable=False)
    season = Column(Text, nullable=False)  # "2024-25"
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    home_team = relationship("Team", foreign_keys=[home_team_id], lazy="raise")
    away_team = relationship("Team", foreign_keys=[away_team_id], lazy="raise")

    __table_args__ = (
        CheckConstraint("home_team_id <> away_team_id", name="different_teams"),
        CheckConstraint(
            "status IN ('scheduled', 'in_progress', 'completed', 'postponed')",
            name="valid_match_status",
        ),
    )


class Prediction(Base):
    __tablename__ = "predictions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    match_id = Column(Integer, ForeignKey("matches.id"), nullable=False, index=True)
    predicted_outcome = Column(Text, nullable=False)
    confidence_percentage = Column(Integer, nullable=False)  # 0-100
    predicted_home_score = Column(Integer, nullable=True)
    predicted_away_score = Column(Integer, nullable=True)
    reasoning = Column(Text, nullable=True)
    model_version = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "predicted_outcome IN ('home_win', 'draw', 'away_win')",
            name="valid_predicted_outcome",
        ),
        CheckConstraint(
            "confidence_percentage BETWEEN 0 AND 100",
            name="valid_confidence",
        ),
    )


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(Text, nullable=False, unique=True)
    email = Column(Text, nullable=False, unique=True)
    total_balance = Column(FixedPoint(MONEY_SCALE), nullable=False, default=DEFAULT_USER_BALANCE)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("total_balance >= 0", name="non_negative_balance"),
    )


class Bet(Base):
    __tablename__ = "bets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    prediction_id = Column(Integer, ForeignKey("predictions.id"), nullable=False, index=True)
    amount = Column(FixedPoint(MONEY_SCALE), nullable=False)
    bet_type = Column(Text, nullable=False)
    bet_value = Column(Text, nullable=False)  # "home_win", "over_2.5", "yes"
    odds = Column(FixedPoint(ODDS_SCALE), nullable=False)
    potential_return = Column(FixedPoint(MONEY_SCALE), nullable=False)
    status = Column(Text, nullable=False, default=BetStatus.PENDING.value, index=True)
    settled_at = Column(DateTime(timezone=True), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)  # set once when credited
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("amount > 0", name="positive_amount"),
        CheckConstraint("odds > 0", name="positive_odds"),
        CheckConstraint(
            "bet_type IN ('outcome', 'over_under', 'both_teams_score')",
            name="valid_bet_type",
        ),
        CheckConstraint(
            "status IN ('pending', 'won', 'lost')",
            name="valid_bet_status",
        ),
    )
