# -*- coding: utf-8 -*-
"""Matches router: fixtures, results and settlement."""
from datetime import datetime
from typing import Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import asc, desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import get_session
from ..errors import MatchNotFoundError, TeamNotFoundError, ValidationError
from ..models_db import Match, MatchStatus, Prediction, Team
from ..services.results import update_match_result
from ..services.settlement import settle_match
from .bets import bet_to_dict
from .predictions import prediction_to_dict
from .teams import team_to_dict

router = APIRouter(tags=["matches"])


# ─── Schemas ────────────────────────────────────────────────────────────────

class MatchCreate(BaseModel):
    home_team_id: int
    away_team_id: int
    match_date: datetime
    gameweek: int = Field(gt=0)
    season: str = Field(min_length=1)  # "2024-25"


class MatchResultUpdate(BaseModel):
    home_score: int = Field(ge=0)
    away_score: int = Field(ge=0)
    status: Literal["completed"] = "completed"


# ─── Endpoints ──────────────────────────────────────────────────────────────

@router.post("/matches")
async def create_match(
    data: MatchCreate,
    session: AsyncSession = Depends(get_session),
):
    """Schedule a match between two existing, different teams."""
    for team_id in (data.home_team_id, data.away_team_id):
        if await session.get(Team, team_id) is None:
            raise TeamNotFoundError(team_id)
    if data.home_team_id == data.away_team_id:
        raise ValidationError("A team cannot play against itself")

    match = Match(
        home_team_id=data.home_team_id,
        away_team_id=data.away_team_id,
        match_date=data.match_date,
        gameweek=data.gameweek,
        season=data.season,
        status=MatchStatus.SCHEDULED.value,
    )
    session.add(match)
    await session.commit()
    await session.refresh(match)
    return match_to_dict(match)


@router.get("/matches")
async def list_matches(
    gameweek: int | None = Query(None, gt=0),
    season: str | None = Query(None),
    status: MatchStatus | None = Query(None),
    limit: int = Query(50, gt=0, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """List matches with optional filters, latest kick-off first."""
    query = select(Match).order_by(desc(Match.match_date), desc(Match.id))

    if gameweek is not None:
        query = query.where(Match.gameweek == gameweek)
    if season:
        query = query.where(Match.season == season)
    if status is not None:
        query = query.where(Match.status == status.value)

    query = query.limit(limit).offset(offset)
    result = await session.execute(query)
    return [match_to_dict(m) for m in result.scalars().all()]


@router.get("/matches/upcoming")
async def upcoming_matches(
    limit: int = Query(10, gt=0, le=100),
    session: AsyncSession = Depends(get_session),
):
    """Scheduled matches by kick-off with both teams and the latest prediction."""
    result = await session.execute(
        select(Match)
        .options(selectinload(Match.home_team), selectinload(Match.away_team))
        .where(Match.status == MatchStatus.SCHEDULED.value)
        .order_by(asc(Match.match_date), asc(Match.id))
        .limit(limit)
    )
    matches = result.scalars().all()
    if not matches:
        return []

    predictions = await session.execute(
        select(Prediction)
        .where(Prediction.match_id.in_([m.id for m in matches]))
        .order_by(Prediction.created_at, Prediction.id)
    )
    latest: dict[int, Prediction] = {}
    for p in predictions.scalars().all():
        latest[p.match_id] = p

    return [
        {
            "match": match_to_dict(m),
            "home_team": team_to_dict(m.home_team),
            "away_team": team_to_dict(m.away_team),
            "prediction": prediction_to_dict(latest[m.id]) if m.id in latest else None,
        }
        for m in matches
    ]


@router.get("/matches/{match_id}")
async def get_match(
    match_id: int,
    session: AsyncSession = Depends(get_session),
):
    match = await session.get(Match, match_id)
    if match is None:
        raise MatchNotFoundError(match_id)
    return match_to_dict(match)


@router.put("/matches/{match_id}/result")
async def record_result(
    match_id: int,
    data: MatchResultUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Store the final score; pending bets on the match are settled right away."""
    match = await update_match_result(
        session, match_id, data.home_score, data.away_score, data.status
    )
    return match_to_dict(match)


@router.post("/matches/{match_id}/settle")
async def settle(
    match_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Settle (or re-settle) a completed match. Returns the bets settled now."""
    bets = await settle_match(session, match_id)
    return [bet_to_dict(b) for b in bets]


def match_to_dict(m: Match) -> dict:
    return {
        "id": m.id,
        "home_team_id": m.home_team_id,
        "away_team_id": m.away_team_id,
        "match_date": m.match_date.isoformat() if m.match_date else None,
        "home_score": m.home_score,
        "away_score": m.away_score,
        "status": m.status,
        "gameweek": m.gameweek,
        "season": m.season,
        "created_at": m.created_at.isoformat() if m.created_at else None,
    }
