# -*- coding: utf-8 -*-
"""
Bet settlement for completed matches.

settle_match() is the single settlement path: recording a match result, the
admin settle endpoint and the background sweep all go through it.

Two transactions per run:
  1. pending -> won/lost, written with `WHERE status = 'pending'` so only one
     run can move a given bet. Committed before any money moves.
  2. payout: winners of this run are claimed with `WHERE paid_at IS NULL`
     and their potential_return credited to the owners, one ledger update
     per user.
If the process dies between 1 and 2 the won bets stay unpaid and
pay_unpaid_winnings() picks them up later.
"""
import logging
from collections import defaultdict
from datetime import datetime, timezone
from decimal import Decimal
from typing import Mapping, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..errors import ConcurrencyConflictError, MatchNotFoundError, MatchNotSettleableError
from ..models_db import Bet, BetStatus, BetType, Match, MatchStatus, Prediction
from ..outcomes import Evaluator, MatchResult, evaluate_bet
from . import ledger

logger = logging.getLogger(__name__)


async def _load_settleable_match(session: AsyncSession, match_id: int) -> tuple[Match, MatchResult]:
    match = await session.get(Match, match_id, populate_existing=True)
    if match is None:
        raise MatchNotFoundError(match_id)
    if (
        match.status != MatchStatus.COMPLETED.value
        or match.home_score is None
        or match.away_score is None
    ):
        raise MatchNotSettleableError(match_id)
    return match, MatchResult.from_scores(match.home_score, match.away_score)


async def _transition(
    session: AsyncSession, bet_ids: list[int], status: BetStatus, settled_at: datetime
) -> list[Bet]:
    """Move still-pending bets to `status`; returns only the rows this call moved."""
    if not bet_ids:
        return []
    result = await session.scalars(
        update(Bet)
        .where(Bet.id.in_(bet_ids), Bet.status == BetStatus.PENDING.value)
        .values(status=status.value, settled_at=settled_at)
        .returning(Bet)
        .execution_options(populate_existing=True)
    )
    return list(result.all())


async def _pay_out(
    session: AsyncSession, bet_ids: list[int], bets: Sequence[Bet] = ()
) -> dict[int, Decimal]:
    """Credit the potential_return of won, unpaid bets. Returns credits per user."""
    if not bet_ids:
        return {}
    paid_at = datetime.now(timezone.utc)
    credits: dict[int, Decimal] = defaultdict(Decimal)
    try:
        claimed = (
            await session.execute(
                update(Bet)
                .where(
                    Bet.id.in_(bet_ids),
                    Bet.status == BetStatus.WON.value,
                    Bet.paid_at.is_(None),
                )
                .values(paid_at=paid_at)
                .returning(Bet.id, Bet.user_id, Bet.potential_return)
                .execution_options(synchronize_session=False)
            )
        ).all()
        for row in claimed:
            credits[row.user_id] += row.potential_return

        for user_id in sorted(credits):
            balance = await ledger.credit(session, user_id, credits[user_id])
            logger.info(
                "[Settlement] Paid user %s +%s (balance %s)", user_id, credits[user_id], balance
            )
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    claimed_ids = {row.id for row in claimed}
    for bet in bets:
        if bet.id in claimed_ids:
            set_committed_value(bet, "paid_at", paid_at)
    return dict(credits)


async def settle_match(
    session: AsyncSession,
    match_id: int,
    evaluators: Mapping[BetType, Evaluator] | None = None,
) -> list[Bet]:
    """
    Settle every pending bet on predictions of `match_id`.

    Returns the bets this call transitioned. Bets already won/lost are not
    touched, so calling it again is a no-op returning [].

    Raises MatchNotFoundError / MatchNotSettleableError.
    """
    match, result = await _load_settleable_match(session, match_id)
    actual = result.outcome

    rows = (
        await session.execute(
            select(Bet.id, Bet.bet_type, Bet.bet_value, Prediction.predicted_outcome)
            .join(Prediction, Bet.prediction_id == Prediction.id)
            .where(
                Prediction.match_id == match_id,
                Bet.status == BetStatus.PENDING.value,
            )
            .order_by(Bet.id)
        )
    ).all()
    if not rows:
        logger.debug("[Settlement] Match %s: no pending bets", match_id)
        return []

    won_ids: list[int] = []
    lost_ids: list[int] = []
    for row in rows:
        if evaluate_bet(row.bet_type, row.bet_value, row.predicted_outcome, result, evaluators):
            won_ids.append(row.id)
        else:
            lost_ids.append(row.id)

    settled_at = datetime.now(timezone.utc)
    try:
        settled = await _transition(session, won_ids, BetStatus.WON, settled_at)
        settled += await _transition(session, lost_ids, BetStatus.LOST, settled_at)
        await session.commit()
    except Exception:
        await session.rollback()
        raise

    skipped = set(won_ids) | set(lost_ids)
    skipped -= {bet.id for bet in settled}
    if skipped:
        # another run settled these between our read and our write
        logger.debug("[Settlement] Match %s: %s", match_id, ConcurrencyConflictError(sorted(skipped)))

    winners = [bet for bet in settled if bet.status == BetStatus.WON.value]
    credits = await _pay_out(session, [bet.id for bet in winners], winners)

    settled.sort(key=lambda bet: bet.id)
    logger.info(
        "[Settlement] Match %s (%s-%s, %s): %s settled, %s won, %s credited to %s user(s)",
        match_id, match.home_score, match.away_score, actual.value,
        len(settled), len(winners), sum(credits.values(), Decimal("0.00")), len(credits),
    )
    return settled


async def settle_completed_matches(
    session: AsyncSession,
    evaluators: Mapping[BetType, Evaluator] | None = None,
) -> dict[int, int]:
    """Settle every completed match that still has pending bets.

    Returns {match_id: bets settled}.
    """
    match_ids = (
        await session.scalars(
            select(Prediction.match_id)
            .join(Bet, Bet.prediction_id == Prediction.id)
            .join(Match, Match.id == Prediction.match_id)
            .where(
                Match.status == MatchStatus.COMPLETED.value,
                Match.home_score.is_not(None),
                Match.away_score.is_not(None),
                Bet.status == BetStatus.PENDING.value,
            )
            .distinct()
        )
    ).all()

    summary: dict[int, int] = {}
    for match_id in sorted(match_ids):
        settled = await settle_match(session, match_id, evaluators)
        summary[match_id] = len(settled)
    return summary


async def pay_unpaid_winnings(session: AsyncSession) -> dict[int, Decimal]:
    """Credit won bets that were never paid (run interrupted after settling)."""
    bet_ids = list(
        (
            await session.scalars(
                select(Bet.id)
                .where(Bet.status == BetStatus.WON.value, Bet.paid_at.is_(None))
                .order_by(Bet.id)
            )
        ).all()
    )
    if not bet_ids:
        return {}
    logger.warning("[Settlement] Recovering %s unpaid winning bet(s)", len(bet_ids))
    return await _pay_out(session, bet_ids)


async def sweep(session: AsyncSession) -> dict:
    """Settle leftover pending bets and pay any unpaid winners."""
    settled = await settle_completed_matches(session)
    paid = await pay_unpaid_winnings(session)

    result = {
        "matches": len(settled),
        "settled": sum(settled.values()),
        "paid_users": len(paid),
        "paid_total": str(sum(paid.values(), Decimal("0.00"))),
    }
    logger.info("[Settlement] Sweep finished: %s", result)
    return result


async def run_settlement_sweep() -> dict:
    """sweep() in a session of its own, for the scheduler."""
    from ..database import async_session

    async with async_session() as session:
        return await sweep(session)
