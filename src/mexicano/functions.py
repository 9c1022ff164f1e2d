import logging
import random
from typing import List, Sequence

from tournament.history import aggregate_history
from tournament.models import Match, Player, TournamentConfig
from tournament.pairing import MEXICANO_WEIGHTS, matches_from_splits, pair_blocks
from tournament.planner import max_matches_per_round
from tournament.selection import order_for_mexicano

logger = logging.getLogger(__name__)


def generate_mexicano_round(config: TournamentConfig, round_index: int,
                            players: Sequence[Player], rounds_so_far,
                            rng: random.Random) -> List[Match]:
    """
    Generate a Mexicano round: players ordered by current standings are cut
    into blocks of four, and each block is split to rotate partners.
    The first two rounds fall back to random order.
    """
    max_matches = max_matches_per_round(len(players), config.courts)
    if max_matches == 0:
        return []

    ordered = order_for_mexicano(players, rounds_so_far, round_index, rng)
    # Lowest ranked players sit out when the courts are full
    playing = ordered[:max_matches * 4]

    history = aggregate_history(rounds_so_far, ordered)
    splits, cost = pair_blocks(playing, history, MEXICANO_WEIGHTS)
    logger.debug("Mexicano round %d: %d blocks, cost %d", round_index + 1, len(splits), cost)
    return matches_from_splits(splits, round_index, config.courts)
