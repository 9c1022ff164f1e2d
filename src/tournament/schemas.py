from typing import List, Optional

from pydantic import BaseModel

from tournament.engine import is_valid_sum
from tournament.models import Match, Player, Team


class ConfigOut(BaseModel):
    variant: str
    scoring_mode: str
    courts: int
    match_points: int
    rounds_planned: int
    auto_rematch: bool
    play_mode: str
    timer_minutes: int


class StandingRow(BaseModel):
    rank: int
    id: str
    name: str
    points_for: int
    points_against: int
    diff: int
    games_played: int
    player_ids: Optional[List[str]] = None


class MatchOut(BaseModel):
    id: str
    round_index: int
    court: int
    side_a: List[str]
    side_b: List[str]
    score_a: Optional[int] = None
    score_b: Optional[int] = None
    valid_sum: Optional[bool] = None


class TournamentOut(BaseModel):
    id: str
    name: str
    config: ConfigOut
    started: bool
    started_at: Optional[int] = None
    planned_rounds: int
    auto_rounds: int
    can_add_round: bool
    timer_remaining_ms: Optional[int] = None
    partner_pairs_missing: int = 0
    players: List[StandingRow]
    teams: List[StandingRow]
    rounds: List[List[MatchOut]]
    sitting_out: List[str]


class TournamentSummary(BaseModel):
    id: str
    name: str
    scoring_mode: str
    courts: int
    rounds: int


def standing_rows(participants: List[Player | Team]) -> List[StandingRow]:
    return [
        StandingRow(
            rank=i + 1,
            id=p.id,
            name=p.name,
            points_for=p.points_for,
            points_against=p.points_against,
            diff=p.diff,
            games_played=p.games_played,
            player_ids=list(p.player_ids) if isinstance(p, Team) else None,
        )
        for i, p in enumerate(participants)
    ]


def match_out(m: Match, match_points: int) -> MatchOut:
    return MatchOut(
        id=m.id,
        round_index=m.round_index,
        court=m.court,
        side_a=list(m.side_a),
        side_b=list(m.side_b),
        score_a=m.score_a,
        score_b=m.score_b,
        valid_sum=is_valid_sum(m.score_a, m.score_b, match_points) if m.is_scored else None,
    )
