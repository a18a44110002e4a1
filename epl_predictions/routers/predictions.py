# -*- coding: utf-8 -*-
"""Predictions router: record AI predictions and query them."""
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field
from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_session
from ..errors import MatchNotFoundError, PredictionNotFoundError, ValidationError
from ..models_db import Match, MatchStatus, Outcome, Prediction

router = APIRouter(tags=["predictions"])


class PredictionCreate(BaseModel):
    match_id: int
    predicted_outcome: Outcome
    confidence_percentage: int = Field(ge=0, le=100)
    predicted_home_score: int | None = Field(None, ge=0)
    predicted_away_score: int | None = Field(None, ge=0)
    reasoning: str | None = None
    model_version: str = Field(min_length=1)


@router.post("/predictions")
async def create_prediction(
    data: PredictionCreate,
    session: AsyncSession = Depends(get_session),
):
    """Store a prediction for a match that has not been completed yet."""
    match = await session.get(Match, data.match_id)
    if match is None:
        raise MatchNotFoundError(data.match_id)
    if match.status == MatchStatus.COMPLETED.value:
        raise ValidationError(f"Cannot create prediction for completed match {data.match_id}")

    prediction = Prediction(
        match_id=data.match_id,
        predicted_outcome=data.predicted_outcome.value,
        confidence_percentage=data.confidence_percentage,
        predicted_home_score=data.predicted_home_score,
        predicted_away_score=data.predicted_away_score,
        reasoning=data.reasoning,
        model_version=data.model_version,
    )
    session.add(prediction)
    await session.commit()
    await session.refresh(prediction)
    return prediction_to_dict(prediction)


@router.get("/predictions")
async def get_predictions(
    match_id: int | None = Query(None),
    session: AsyncSession = Depends(get_session),
):
    """Predictions, newest match first, optionally for one match."""
    query = (
        select(Prediction)
        .join(Match, Match.id == Prediction.match_id)
        .order_by(desc(Match.match_date), desc(Prediction.id))
    )
    if match_id is not None:
        query = query.where(Prediction.match_id == match_id)

    result = await session.execute(query)
    return [prediction_to_dict(p) for p in result.scalars().all()]


@router.get("/predictions/{prediction_id}")
async def get_prediction(
    prediction_id: int,
    session: AsyncSession = Depends(get_session),
):
    prediction = await session.get(Prediction, prediction_id)
    if prediction is None:
        raise PredictionNotFoundError(prediction_id)
    return prediction_to_dict(prediction)


def prediction_to_dict(p: Prediction) -> dict:
    return {
        "id": p.id,
        "match_id": p.match_id,
        "predicted_outcome": p.predicted_outcome,
        "confidence_percentage": p.confidence_percentage,
        "predicted_home_score": p.predicted_home_score,
        "predicted_away_score": p.predicted_away_score,
        "reasoning": p.reasoning,
        "model_version": p.model_version,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }
