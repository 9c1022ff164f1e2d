import random
from typing import List, Sequence

from tournament.history import aggregate_history
from tournament.models import Match, Player, TournamentConfig
from tournament.pairing import AMERICANO_WEIGHTS, DEFAULT_ATTEMPTS, matches_from_splits, search_pairings
from tournament.planner import auto_target_games_americano, max_matches_per_round
from tournament.selection import select_americano_players, select_fallback


def generate_americano_round(config: TournamentConfig, round_index: int,
                             players: Sequence[Player], rounds_so_far,
                             planned_rounds: int, rng: random.Random,
                             attempts: int = DEFAULT_ATTEMPTS) -> List[Match]:
    """Generate an Americano round where partners and opponents rotate.

    With a round plan the players are chosen so everybody reaches the same
    number of games by the last round; without one (timer play) the first
    players in roster order fill the courts.
    """
    n = len(players)
    max_matches = max_matches_per_round(n, config.courts)
    if max_matches == 0:
        return []

    ids = [p.id for p in players]
    history = aggregate_history(rounds_so_far, ids)

    if planned_rounds > 0:
        playing = select_americano_players(
            ids,
            max_matches,
            history,
            auto_target_games_americano(n, config.auto_rematch),
            planned_rounds,
            round_index,
        )
    else:
        playing = select_fallback(ids, max_matches)

    if len(playing) < 4:
        return []

    splits = search_pairings(playing, history, AMERICANO_WEIGHTS, rng, attempts)
    return matches_from_splits(splits, round_index, config.courts)
