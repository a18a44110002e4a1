# -*- coding: utf-8 -*-
"""
Match outcome resolution and bet evaluation.

Everything here is pure: no database, no clock. The settlement service feeds
it rows and acts on the boolean decisions.

Bet values travel as strings ("home_win", "over_2.5", "yes"); inside the
service they are parsed into one selection type per bet type.
"""
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Callable, ClassVar, Mapping, Union

from . import config
from .errors import InvalidScoreError, ValidationError
from .models_db import BetType, Outcome


# ─── Outcome resolution ──────────────────────────────────────────────────────

def _check_score(name: str, value) -> int:
    if value is None or isinstance(value, bool) or not isinstance(value, int):
        raise InvalidScoreError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise InvalidScoreError(f"{name} must be non-negative, got {value}")
    return value


def resolve_outcome(home_score, away_score) -> Outcome:
    home = _check_score("home_score", home_score)
    away = _check_score("away_score", away_score)
    if home > away:
        return Outcome.HOME_WIN
    if home < away:
        return Outcome.AWAY_WIN
    return Outcome.DRAW


@dataclass(frozen=True)
class MatchResult:
    home_score: int
    away_score: int

    @classmethod
    def from_scores(cls, home_score, away_score) -> "MatchResult":
        return cls(_check_score("home_score", home_score), _check_score("away_score", away_score))

    @property
    def outcome(self) -> Outcome:
        return resolve_outcome(self.home_score, self.away_score)

    @property
    def total_goals(self) -> int:
        return self.home_score + self.away_score

    @property
    def both_scored(self) -> bool:
        return self.home_score > 0 and self.away_score > 0


# ─── Selections ──────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OutcomeSelection:
    bet_type: ClassVar[BetType] = BetType.OUTCOME
    outcome: Outcome

    def __str__(self) -> str:
        return self.outcome.value


@dataclass(frozen=True)
class OverUnderSelection:
    bet_type: ClassVar[BetType] = BetType.OVER_UNDER
    side: str  # "over" / "under"
    line: Decimal

    def __str__(self) -> str:
        return f"{self.side}_{format(self.line.normalize(), 'f')}"


@dataclass(frozen=True)
class BothTeamsScoreSelection:
    bet_type: ClassVar[BetType] = BetType.BOTH_TEAMS_SCORE
    both_score: bool

    def __str__(self) -> str:
        return "yes" if self.both_score else "no"


Selection = Union[OutcomeSelection, OverUnderSelection, BothTeamsScoreSelection]

_OVER_UNDER_RE = re.compile(r"^(over|under)[_\s]?(\d+(?:\.\d+)?)$", re.IGNORECASE)
_YES = {"yes", "y", "true", "si"}
_NO = {"no", "n", "false"}


def as_bet_type(bet_type) -> BetType:
    try:
        return BetType(bet_type)
    except ValueError:
        raise ValidationError(f"Unknown bet type: {bet_type!r}")


def parse_selection(bet_type, bet_value: str) -> Selection:
    """Parse the wire string of a bet into its typed selection."""
    kind = as_bet_type(bet_type)
    value = (bet_value or "").strip()
    if not value:
        raise ValidationError("bet_value must not be empty")

    if kind is BetType.OUTCOME:
        try:
            return OutcomeSelection(Outcome(value.lower()))
        except ValueError:
            raise ValidationError(
                f"Outcome bets take one of home_win / draw / away_win, got {value!r}"
            )

    if kind is BetType.OVER_UNDER:
        m = _OVER_UNDER_RE.match(value)
        if not m:
            raise ValidationError(f"Over/under bets look like 'over_2.5', got {value!r}")
        try:
            line = Decimal(m.group(2))
        except InvalidOperation:
            raise ValidationError(f"Bad goal line in {value!r}")
        return OverUnderSelection(m.group(1).lower(), line)

    lowered = value.lower()
    if lowered in _YES:
        return BothTeamsScoreSelection(True)
    if lowered in _NO:
        return BothTeamsScoreSelection(False)
    raise ValidationError(f"Both-teams-score bets take yes / no, got {value!r}")


# ─── Evaluators ──────────────────────────────────────────────────────────────

Evaluator = Callable[[str, Outcome, MatchResult], bool]


def evaluate_outcome(bet_value: str, predicted_outcome: Outcome, result: MatchResult) -> bool:
    # Outcome bets back the prediction itself; bet_value is descriptive only.
    return predicted_outcome == result.outcome


def settle_as_lost(bet_value: str, predicted_outcome: Outcome, result: MatchResult) -> bool:
    return False


def evaluate_over_under(bet_value: str, predicted_outcome: Outcome, result: MatchResult) -> bool:
    selection = parse_selection(BetType.OVER_UNDER, bet_value)
    total = Decimal(result.total_goals)
    if selection.side == "over":
        return total > selection.line
    return total < selection.line


def evaluate_both_teams_score(bet_value: str, predicted_outcome: Outcome, result: MatchResult) -> bool:
    selection = parse_selection(BetType.BOTH_TEAMS_SCORE, bet_value)
    return result.both_scored == selection.both_score


DEFAULT_EVALUATORS: Mapping[BetType, Evaluator] = {
    BetType.OUTCOME: evaluate_outcome,
    BetType.OVER_UNDER: settle_as_lost,
    BetType.BOTH_TEAMS_SCORE: settle_as_lost,
}

GOAL_MARKET_EVALUATORS: Mapping[BetType, Evaluator] = {
    BetType.OUTCOME: evaluate_outcome,
    BetType.OVER_UNDER: evaluate_over_under,
    BetType.BOTH_TEAMS_SCORE: evaluate_both_teams_score,
}


def default_evaluators() -> Mapping[BetType, Evaluator]:
    if config.EVALUATE_GOAL_MARKETS:
        return GOAL_MARKET_EVALUATORS
    return DEFAULT_EVALUATORS


def evaluate_bet(
    bet_type,
    bet_value: str,
    predicted_outcome,
    result: MatchResult,
    evaluators: Mapping[BetType, Evaluator] | None = None,
) -> bool:
    """Win/loss decision for one bet. Missing evaluators fall back to the defaults."""
    kind = as_bet_type(bet_type)
    table = dict(default_evaluators())
    if evaluators:
        table.update({as_bet_type(k): v for k, v in evaluators.items()})
    return table[kind](bet_value, Outcome(predicted_outcome), result)
