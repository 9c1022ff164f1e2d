"""Round generation, dispatched on scoring mode then variant."""
import logging
import random
from typing import List, Optional, Sequence, Tuple

from americano.functions import generate_americano_round
from mexicano.functions import generate_mexicano_round
from tournament.models import (
    Match, Player, Round, ScoringMode, Team, TournamentConfig, Variant,
    court_number, match_id,
)
from tournament.pairing import DEFAULT_ATTEMPTS
from tournament.planner import planned_rounds as plan_rounds
from tournament.selection import order_teams_for_mexicano

logger = logging.getLogger(__name__)

BYE = None


def circle_pairings(ids: Sequence[str], round_index: int) -> List[Tuple[str, str]]:
    """Pairs for one round of the circle method.

    The first id stays fixed while the others rotate one position per round.
    An odd count gets a bye slot, so the cycle is n-1 rounds for even n and n
    rounds for odd n, with no pair repeated inside a cycle.
    """
    slots = list(ids)
    if len(slots) % 2 == 1:
        slots.append(BYE)
    n = len(slots)
    if n < 2:
        return []

    rest = slots[1:]
    shift = round_index % (n - 1)
    if shift:
        rest = rest[-shift:] + rest[:-shift]
    arranged = [slots[0]] + rest

    pairs = []
    for i in range(n // 2):
        a, b = arranged[i], arranged[n - 1 - i]
        if a is BYE or b is BYE:
            continue
        pairs.append((a, b))
    return pairs


def generate_team_round(config: TournamentConfig, round_index: int,
                        teams: Sequence[Team], rounds_so_far: Sequence[Round],
                        rng: random.Random) -> List[Match]:
    max_matches = min(config.courts, len(teams) // 2)
    if max_matches == 0:
        return []

    if config.variant is Variant.AMERICANO:
        pairs = circle_pairings([t.id for t in teams], round_index)
        # Rotate which pairs get the courts when there are fewer courts than pairs
        offset = round_index * max_matches % len(pairs)
        pairs = (pairs[offset:] + pairs[:offset])[:max_matches]
    elif config.variant is Variant.MEXICANO:
        ordered = order_teams_for_mexicano(teams, rounds_so_far, round_index, rng)
        playing = ordered[:max_matches * 2]
        pairs = [(playing[i], playing[i + 1]) for i in range(0, len(playing) - 1, 2)]
    else:
        raise AssertionError(f"unhandled variant {config.variant!r}")

    return [
        Match.create(
            ScoringMode.TEAM,
            id=match_id(round_index, i),
            round_index=round_index,
            court=court_number(i, config.courts),
            side_a=(a,),
            side_b=(b,),
        )
        for i, (a, b) in enumerate(pairs)
    ]


def build_round(config: TournamentConfig, round_index: int,
                players: Sequence[Player], teams: Sequence[Team],
                rounds_so_far: Sequence[Round],
                rng: Optional[random.Random] = None,
                planned: Optional[int] = None,
                attempts: int = DEFAULT_ATTEMPTS) -> Round:
    """Build round ``round_index`` from the history so far.

    Returns an empty round when there are too few participants for a single
    match. ``planned`` overrides the planned round count used by Americano
    selection; by default it follows the config. Past rounds are never
    modified.
    """
    rng = rng or random.Random()
    rounds_so_far = tuple(rounds_so_far)

    if config.scoring_mode is ScoringMode.TEAM:
        matches = generate_team_round(config, round_index, teams, rounds_so_far, rng)
    elif config.scoring_mode is ScoringMode.INDIVIDUAL:
        if config.variant is Variant.MEXICANO:
            matches = generate_mexicano_round(config, round_index, players, rounds_so_far, rng)
        elif config.variant is Variant.AMERICANO:
            if planned is None:
                planned = plan_rounds(config, players, teams)
            matches = generate_americano_round(
                config, round_index, players, rounds_so_far, planned, rng, attempts,
            )
        else:
            raise AssertionError(f"unhandled variant {config.variant!r}")
    else:
        raise AssertionError(f"unhandled scoring mode {config.scoring_mode!r}")

    logger.info(
        "Built round %d (%s/%s): %d matches",
        round_index + 1, config.variant.value, config.scoring_mode.value, len(matches),
    )
    return tuple(matches)
