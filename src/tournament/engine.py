"""Tournament state operations.

Every function takes a TournamentState and returns a new one; inputs are
never mutated. Operations that make no sense in the current state (a blank
player name, removing players after play started, a round past the plan)
return the state unchanged.
"""
import logging
import random
import time
from dataclasses import replace
from typing import Dict, List, Optional, Sequence, Tuple

from tournament.builder import build_round
from tournament.exceptions import MatchNotFoundError
from tournament.models import (
    MAX_PLAYERS, Match, Player, PlayMode, Round, ScoringMode, Team,
    TournamentConfig, TournamentState, Variant, generate_id,
)
from tournament.pairing import DEFAULT_ATTEMPTS
from tournament.planner import generate_auto_round_count, partner_shortfall, planned_rounds
from tournament.standings import rank_players, rank_teams, recompute_standings
from tournament.timer import is_timer_expired, timer_remaining_ms

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


def clamp(n: int, low: int, high: int) -> int:
    return max(low, min(high, n))


def is_valid_sum(score_a: int, score_b: int, match_points: int) -> bool:
    return score_a + score_b == match_points


# -- State --------------------------------------------------------------------

def make_empty_state(config: Optional[TournamentConfig] = None) -> TournamentState:
    return TournamentState(config=config or TournamentConfig())


def reset_tournament(state: TournamentState) -> TournamentState:
    """Discard players, teams and rounds; keep the configuration."""
    return make_empty_state(state.config)


def set_config(state: TournamentState, **changes) -> TournamentState:
    """Replace config fields; out-of-range values raise ConfigError."""
    return replace(state, config=replace(state.config, **changes))


def recompute_state(state: TournamentState) -> TournamentState:
    players, teams = recompute_standings(
        state.players, state.teams, state.rounds, state.config.scoring_mode,
    )
    return replace(state, players=players, teams=teams)


# -- Players & teams ----------------------------------------------------------

def add_player(state: TournamentState, name: str) -> TournamentState:
    if state.has_rounds:
        return state
    clean = (name or "").strip()
    if not clean:
        return state
    if len(state.players) >= MAX_PLAYERS:
        logger.debug("Player cap of %d reached, ignoring %r", MAX_PLAYERS, clean)
        return state
    player = Player(id=generate_id("p_"), name=clean)
    return replace(state, players=state.players + (player,))


def rename_player(state: TournamentState, player_id: str, name: str) -> TournamentState:
    clean = (name or "").strip()
    players = tuple(
        replace(p, name=clean or p.name) if p.id == player_id else p
        for p in state.players
    )
    return replace(state, players=players)


def remove_player(state: TournamentState, player_id: str) -> TournamentState:
    if state.has_rounds:
        return state
    return replace(
        state,
        players=tuple(p for p in state.players if p.id != player_id),
        teams=tuple(t for t in state.teams if player_id not in t.player_ids),
    )


def generate_teams_random(state: TournamentState, rng: Optional[random.Random] = None) -> TournamentState:
    """Pair the players into random teams of two; rosters freeze at round one."""
    if state.has_rounds:
        return state
    if len(state.players) < 4 or len(state.players) % 2 != 0:
        return state

    rng = rng or random.Random()
    ids = [p.id for p in state.players]
    rng.shuffle(ids)

    teams = tuple(
        Team(id=generate_id("t_"), name=f"Team {i // 2 + 1}", player_ids=(ids[i], ids[i + 1]))
        for i in range(0, len(ids), 2)
    )
    return replace(state, teams=teams)


def rename_team(state: TournamentState, team_id: str, name: str) -> TournamentState:
    clean = (name or "").strip()
    teams = tuple(
        replace(t, name=clean or t.name) if t.id == team_id else t
        for t in state.teams
    )
    return replace(state, teams=teams)


# -- Rounds -------------------------------------------------------------------

def compute_auto_rounds(state: TournamentState) -> int:
    return generate_auto_round_count(state.config, state.players, state.teams)


def get_planned_rounds(state: TournamentState) -> int:
    return planned_rounds(state.config, state.players, state.teams)


def get_timer_remaining(state: TournamentState, now: Optional[int] = None) -> Optional[int]:
    return timer_remaining_ms(state.config, state.started_at, now_ms() if now is None else now)


def can_add_next_round(state: TournamentState, now: Optional[int] = None) -> bool:
    config = state.config
    if config.play_mode is PlayMode.TIMER:
        return not is_timer_expired(config, state.started_at, now_ms() if now is None else now)
    planned = get_planned_rounds(state)
    if planned <= 0:
        return True
    return len(state.rounds) < planned


def has_enough_participants(state: TournamentState) -> bool:
    n = len(state.players)
    if state.config.scoring_mode is ScoringMode.TEAM:
        return n >= 4 and n % 2 == 0 and len(state.teams) >= 2
    if state.config.scoring_mode is ScoringMode.INDIVIDUAL:
        return n >= 4
    raise AssertionError(f"unhandled scoring mode {state.config.scoring_mode!r}")


def start_or_next_round(state: TournamentState, rng: Optional[random.Random] = None,
                        now: Optional[int] = None,
                        attempts: int = DEFAULT_ATTEMPTS) -> TournamentState:
    """Append the next round, starting the tournament clock on the first one."""
    now = now_ms() if now is None else now

    if not can_add_next_round(state, now):
        logger.debug("Next round blocked: timer expired or plan complete")
        return state
    if not has_enough_participants(state):
        logger.debug("Next round blocked: not enough players or teams")
        return state

    state = recompute_state(state)
    if not state.started_at:
        state = replace(state, started_at=now)

    round_ = build_round(
        state.config,
        len(state.rounds),
        state.players,
        state.teams,
        state.rounds,
        rng=rng,
        planned=get_planned_rounds(state),
        attempts=attempts,
    )
    return replace(state, started=True, rounds=state.rounds + (round_,))


# -- Scores -------------------------------------------------------------------

def set_match_score(round_: Sequence[Match], match_id: str, score_a: Optional[int],
                    score_b: Optional[int], match_points: int) -> Match:
    """Scored copy of the match: both cleared if either is missing, else clamped.

    The sum is not enforced here; see ``is_valid_sum``.
    """
    match = next((m for m in round_ if m.id == match_id), None)
    if match is None:
        raise MatchNotFoundError(f"no match {match_id!r} in round")
    if score_a is None or score_b is None:
        return match.with_scores(None, None)
    return match.with_scores(clamp(score_a, 0, match_points), clamp(score_b, 0, match_points))


def set_score(state: TournamentState, round_index: int, match_id: str,
              score_a: Optional[int], score_b: Optional[int]) -> TournamentState:
    if not 0 <= round_index < len(state.rounds):
        return state
    round_ = state.rounds[round_index]
    if not any(m.id == match_id for m in round_):
        return state

    updated = set_match_score(round_, match_id, score_a, score_b, state.config.match_points)
    new_round: Round = tuple(updated if m.id == match_id else m for m in round_)
    rounds = state.rounds[:round_index] + (new_round,) + state.rounds[round_index + 1:]
    return recompute_state(replace(state, rounds=rounds))


def invalid_score_matches(state: TournamentState) -> List[Match]:
    """Scored matches whose points do not add up to the match target."""
    return [
        m for round_ in state.rounds for m in round_
        if m.is_scored and not is_valid_sum(m.score_a, m.score_b, state.config.match_points)
    ]


def uncovered_partner_pairs(state: TournamentState) -> Dict[Tuple[str, str], int]:
    """Individual Americano partner pairs not yet covered as often as the auto plan aims for."""
    config = state.config
    if config.scoring_mode is not ScoringMode.INDIVIDUAL or config.variant is not Variant.AMERICANO:
        return {}
    return partner_shortfall(state.rounds, [p.id for p in state.players], config.auto_rematch)


def ranked_players(state: TournamentState) -> List[Player]:
    return rank_players(state.players, state.rounds)


def ranked_teams(state: TournamentState) -> List[Team]:
    return rank_teams(state.teams, state.rounds)
