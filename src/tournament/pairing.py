"""Splitting foursomes into doubles sides with the fewest repeats.

A foursome (p0, p1, p2, p3) has exactly three splits into two sides. Each
split is scored against the history; the cheapest one wins, ties going to
the earliest split.
"""
import logging
import random
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from tournament.history import History
from tournament.models import Match, ScoringMode, court_number, match_id

logger = logging.getLogger(__name__)

Side = Tuple[str, str]
Split = Tuple[Side, Side]

DEFAULT_ATTEMPTS = 200


@dataclass(frozen=True)
class Weights:
    partner_repeat: int
    partner_last: int
    opp_repeat: int
    opp_last: int


# Americano: partner repeats punished hardest
AMERICANO_WEIGHTS = Weights(partner_repeat=25000, partner_last=60000, opp_repeat=2000, opp_last=350)
# Mexicano: standings already drive the grouping
MEXICANO_WEIGHTS = Weights(partner_repeat=15000, partner_last=40000, opp_repeat=1500, opp_last=250)


def split_cost(a: str, b: str, c: str, d: str, history: History, weights: Weights) -> int:
    """Cost of sides (a, b) against (c, d)."""
    cost = (history.partners(a, b) + history.partners(c, d)) * weights.partner_repeat

    if history.were_last_partners(a, b):
        cost += weights.partner_last
    if history.were_last_partners(c, d):
        cost += weights.partner_last

    for x, y in ((a, c), (a, d), (b, c), (b, d)):
        rep = history.opponents(x, y)
        if rep > 0:
            cost += rep * weights.opp_repeat
        if history.were_last_opponents(x, y):
            cost += weights.opp_last

    return cost


def best_split(four: Sequence[str], history: History, weights: Weights) -> Tuple[Split, int]:
    p0, p1, p2, p3 = four
    options = (
        ((p0, p1), (p2, p3)),
        ((p0, p2), (p1, p3)),
        ((p0, p3), (p1, p2)),
    )
    best, best_cost = options[0], None
    for side_a, side_b in options:
        cost = split_cost(side_a[0], side_a[1], side_b[0], side_b[1], history, weights)
        if best_cost is None or cost < best_cost:
            best, best_cost = (side_a, side_b), cost
    return best, best_cost


def pair_blocks(playing: Sequence[str], history: History, weights: Weights) -> Tuple[List[Split], int]:
    """Split consecutive quartets of ``playing`` in order, one pass."""
    splits = []
    total = 0
    for base in range(0, len(playing) // 4 * 4, 4):
        split, cost = best_split(playing[base:base + 4], history, weights)
        splits.append(split)
        total += cost
    return splits, total


def search_pairings(playing: Sequence[str], history: History, weights: Weights,
                    rng: random.Random, attempts: int = DEFAULT_ATTEMPTS) -> List[Split]:
    """Best of ``attempts`` random groupings of ``playing`` into matches.

    Every attempt shuffles the whole list, cuts it into quartets and splits
    each one. Matches are never swapped between quartets afterwards, so the
    result is good rather than optimal.
    """
    best: List[Split] = []
    best_cost = None
    for _ in range(max(1, attempts)):
        ids = list(playing)
        rng.shuffle(ids)
        splits, total = pair_blocks(ids, history, weights)
        if best_cost is None or total < best_cost:
            best, best_cost = splits, total
            if best_cost == 0:
                break

    logger.debug("Best pairing cost %s over %d players", best_cost, len(playing))
    return best


def matches_from_splits(splits: Sequence[Split], round_index: int, courts: int) -> List[Match]:
    """Doubles matches on courts 1, 2, ... in split order."""
    return [
        Match.create(
            ScoringMode.INDIVIDUAL,
            id=match_id(round_index, i),
            round_index=round_index,
            court=court_number(i, courts),
            side_a=side_a,
            side_b=side_b,
        )
        for i, (side_a, side_b) in enumerate(splits)
    ]
