"""Who plays this round and in what order."""
import logging
import math
import random
from typing import List, Sequence

from tournament.history import History
from tournament.models import Player, Round, ScoringMode, Team
from tournament.standings import rank_players, rank_teams, recompute_standings

logger = logging.getLogger(__name__)

SHUFFLED_ROUNDS = 2


def select_americano_players(ids: Sequence[str], max_matches: int, history: History,
                             target_games: int, planned_rounds: int,
                             round_index: int) -> List[str]:
    """Pick the players for an Americano round with a round target.

    Players who have to play every remaining round to reach ``target_games``
    always play. The rest of the court capacity goes to players with the
    largest outstanding need, then to whoever sat out last round, then to
    the fewest byes, then to roster order. The match count can drop below
    ``max_matches`` near the end of the plan, never above it.
    """
    remaining = planned_rounds - round_index

    rows = []
    for idx, pid in enumerate(ids):
        games = history.games_played.get(pid, 0)
        rows.append({
            "id": pid,
            "idx": idx,
            "need": max(0, target_games - games),
            "byes": history.bye_count.get(pid, 0),
            "byed_last": history.byed_last_round.get(pid, False),
        })

    ranked = sorted(
        (r for r in rows if r["need"] > 0),
        key=lambda r: (-r["need"], not r["byed_last"], r["byes"], r["idx"]),
    )
    must_play = [r["id"] for r in ranked if r["need"] == remaining]

    total_need = sum(r["need"] for r in rows)
    match_count = max(math.ceil(total_need / 4), math.ceil(len(must_play) / 4))
    # Capped by the courts; a short manual plan can leave more must-play
    # players than seats
    match_count = min(max_matches, match_count)
    wanted = match_count * 4

    selected = must_play[:wanted]
    chosen = set(selected)
    for r in ranked:
        if len(selected) >= wanted:
            break
        if r["id"] not in chosen:
            selected.append(r["id"])
            chosen.add(r["id"])

    playing = selected[:len(selected) // 4 * 4]
    logger.debug(
        "Round %d: %d must play, %d selected of %d (target %d games)",
        round_index + 1, len(must_play), len(playing), len(ids), target_games,
    )
    return playing


def select_fallback(ids: Sequence[str], max_matches: int) -> List[str]:
    """First ``max_matches * 4`` ids in roster order, no fairness weighting."""
    return list(ids[:max_matches * 4])


def order_for_mexicano(players: Sequence[Player], rounds: Sequence[Round],
                       round_index: int, rng: random.Random) -> List[str]:
    """Random order for the first two rounds, standings order afterwards."""
    if round_index < SHUFFLED_ROUNDS:
        ids = [p.id for p in players]
        rng.shuffle(ids)
        return ids
    scored, _ = recompute_standings(players, (), rounds, ScoringMode.INDIVIDUAL)
    return [p.id for p in rank_players(scored, rounds)]


def order_teams_for_mexicano(teams: Sequence[Team], rounds: Sequence[Round],
                             round_index: int, rng: random.Random) -> List[str]:
    """Random order for the first two rounds, team standings afterwards."""
    if round_index < SHUFFLED_ROUNDS:
        ids = [t.id for t in teams]
        rng.shuffle(ids)
        return ids
    _, scored = recompute_standings((), teams, rounds, ScoringMode.TEAM)
    return [t.id for t in rank_teams(scored, rounds)]
