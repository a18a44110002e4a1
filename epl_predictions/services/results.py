# -*- coding: utf-8 -*-
"""Recording final scores. Settlement runs right after the result is stored."""
import logging
from typing import Mapping

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import MatchNotFoundError, ValidationError
from ..models_db import Bet, BetStatus, BetType, Match, MatchStatus, Prediction
from ..outcomes import Evaluator, MatchResult
from .settlement import settle_match

logger = logging.getLogger(__name__)


async def _has_settled_bets(session: AsyncSession, match_id: int) -> bool:
    row = (
        await session.execute(
            select(Bet.id)
            .join(Prediction, Bet.prediction_id == Prediction.id)
            .where(Prediction.match_id == match_id, Bet.status != BetStatus.PENDING.value)
            .limit(1)
        )
    ).first()
    return row is not None


async def update_match_result(
    session: AsyncSession,
    match_id: int,
    home_score: int,
    away_score: int,
    status: str = MatchStatus.COMPLETED.value,
    evaluators: Mapping[BetType, Evaluator] | None = None,
) -> Match:
    """Store the final score, mark the match completed and settle its bets.

    A completed match can be re-recorded with the same score (settlement is
    idempotent) or corrected while none of its bets are settled. Changing the
    score after bets were settled on it raises ValidationError.
    """
    if status != MatchStatus.COMPLETED.value:
        raise ValidationError(f"A result can only be recorded as completed, got {status!r}")
    result = MatchResult.from_scores(home_score, away_score)

    match = await session.get(Match, match_id, populate_existing=True)
    if match is None:
        raise MatchNotFoundError(match_id)

    previous = (match.home_score, match.away_score)
    if match.status == MatchStatus.COMPLETED.value and previous != (home_score, away_score):
        if await _has_settled_bets(session, match_id):
            raise ValidationError(
                f"Match {match_id} already has bets settled on {previous[0]}-{previous[1]}"
            )
        logger.warning(
            "[Results] Match %s score corrected from %s-%s to %s-%s",
            match_id, previous[0], previous[1], home_score, away_score,
        )

    try:
        match.home_score = result.home_score
        match.away_score = result.away_score
        match.status = MatchStatus.COMPLETED.value
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    logger.info(
        "[Results] Match %s finished %s-%s (%s)",
        match_id, result.home_score, result.away_score, result.outcome.value,
    )
    await settle_match(session, match_id, evaluators)
    return match
