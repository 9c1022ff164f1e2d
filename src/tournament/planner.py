"""Round-count planning.

Americano aims at every pair of players partnering at least once (twice
with rematch) while everybody plays the same number of games.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterable, Sequence, Tuple

from tournament.history import aggregate_history
from tournament.models import (
    PlayMode, Player, Round, ScoringMode, Team, TournamentConfig, Variant, pair_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AutoPlan:
    matches: int
    games_per_player: int


def max_matches_per_round(n: int, courts: int) -> int:
    return min(courts, n // 4)


def auto_partner_plan(n: int, rematch: bool) -> AutoPlan:
    """Smallest match count covering every partner pair, evenly spread.

    Each doubles match creates two partnerships, and 4*M player slots must
    divide evenly by n, so M is rounded up to a multiple of n / gcd(n, 4).
    """
    factor = 2 if rematch else 1
    pairs_needed = n * (n - 1) // 2 * factor
    min_matches = math.ceil(pairs_needed / 2)
    step = n // math.gcd(n, 4)
    matches = math.ceil(min_matches / step) * step
    return AutoPlan(matches=matches, games_per_player=4 * matches // n)


def auto_target_games_americano(n: int, rematch: bool) -> int:
    return auto_partner_plan(n, rematch).games_per_player


def generate_auto_round_count(config: TournamentConfig,
                              players: Sequence[Player],
                              teams: Sequence[Team]) -> int:
    """Number of rounds to play when ``rounds_planned`` is 0 (auto)."""
    rematch = config.auto_rematch

    if config.scoring_mode is ScoringMode.TEAM:
        if len(teams) < 2:
            return 0
        base = len(teams) - 1
        return base * 2 if rematch else base

    if config.scoring_mode is not ScoringMode.INDIVIDUAL:
        raise AssertionError(f"unhandled scoring mode {config.scoring_mode!r}")

    n = len(players)
    if n < 4:
        return 0
    per_round = max_matches_per_round(n, config.courts)
    if per_round <= 0:
        return 0

    if config.variant is Variant.MEXICANO:
        base = n - 1 if per_round * 4 == n and n % 2 == 0 else n
        return base * 2 if rematch else base

    plan = auto_partner_plan(n, rematch)
    rounds = max(plan.games_per_player, math.ceil(plan.matches / per_round))
    logger.debug(
        "Americano auto plan for %d players: %d matches, %d games each, %d rounds",
        n, plan.matches, plan.games_per_player, rounds,
    )
    return rounds


def planned_rounds(config: TournamentConfig,
                   players: Sequence[Player],
                   teams: Sequence[Team]) -> int:
    """Round limit for the tournament; 0 means unbounded (timer play)."""
    if config.play_mode is PlayMode.TIMER:
        return 0
    if config.rounds_planned > 0:
        return config.rounds_planned
    return generate_auto_round_count(config, players, teams)


def partner_shortfall(rounds: Sequence[Round], ids: Iterable[str],
                      rematch: bool) -> Dict[Tuple[str, str], int]:
    """Partner pairs below the auto-plan coverage and how many partnerships each lacks.

    Pairing is a best-effort search, so a finished plan can still leave a
    few pairs uncovered while others partnered more than needed.
    """
    required = 2 if rematch else 1
    ids = list(ids)
    history = aggregate_history(rounds, ids)
    missing = {}
    for i, a in enumerate(ids):
        for b in ids[i + 1:]:
            count = history.partners(a, b)
            if count < required:
                missing[pair_key(a, b)] = required - count
    return missing
