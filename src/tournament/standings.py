"""Standings aggregation and ranking.

Sort order:
1) points_for DESC
2) head-to-head wins (only when points_for is tied)
3) point difference DESC
4) points_against ASC (fewer conceded ranks higher)
"""
from collections import Counter
from dataclasses import replace
from functools import cmp_to_key
from typing import Dict, List, Sequence, Tuple, Union

from tournament.models import Player, Round, ScoringMode, Team


def recompute_standings(players: Sequence[Player],
                        teams: Sequence[Team],
                        rounds: Sequence[Round],
                        scoring_mode: ScoringMode) -> Tuple[Tuple[Player, ...], Tuple[Team, ...]]:
    """Rebuild points and games for everybody from the scored matches.

    In TEAM mode the sides hold team ids; each team's result is also
    credited to its roster players.
    """
    totals: Dict[str, List[int]] = {p.id: [0, 0, 0] for p in players}
    team_totals: Dict[str, List[int]] = {t.id: [0, 0, 0] for t in teams}
    rosters = {t.id: t.player_ids for t in teams}

    def credit(table, pid, scored, conceded):
        row = table.get(pid)
        if row is None:
            return
        row[0] += scored
        row[1] += conceded
        row[2] += 1

    for round_ in rounds:
        for m in round_:
            if not m.is_scored:
                continue
            for side, scored, conceded in ((m.side_a, m.score_a, m.score_b),
                                           (m.side_b, m.score_b, m.score_a)):
                if scoring_mode is ScoringMode.INDIVIDUAL:
                    for pid in side:
                        credit(totals, pid, scored, conceded)
                elif scoring_mode is ScoringMode.TEAM:
                    for tid in side:
                        credit(team_totals, tid, scored, conceded)
                        for pid in rosters.get(tid, ()):
                            credit(totals, pid, scored, conceded)
                else:
                    raise AssertionError(f"unhandled scoring mode {scoring_mode!r}")

    new_players = tuple(
        replace(p, points_for=totals[p.id][0], points_against=totals[p.id][1],
                games_played=totals[p.id][2])
        for p in players
    )
    new_teams = tuple(
        replace(t, points_for=team_totals[t.id][0], points_against=team_totals[t.id][1],
                games_played=team_totals[t.id][2])
        for t in teams
    )
    return new_players, new_teams


def head_to_head(rounds: Sequence[Round], side_size: int) -> Counter:
    """Directed win counts keyed by (winner_id, loser_id).

    Only matches whose sides have ``side_size`` members count, so player
    rankings look at doubles and team rankings at 1v1 team matches.
    """
    wins: Counter = Counter()
    for round_ in rounds:
        for m in round_:
            if not m.is_scored or m.score_a == m.score_b:
                continue
            if len(m.side_a) != side_size or len(m.side_b) != side_size:
                continue
            winners, losers = (m.side_a, m.side_b) if m.score_a > m.score_b else (m.side_b, m.side_a)
            for w in winners:
                for l in losers:
                    wins[(w, l)] += 1
    return wins


def _compare(a: Union[Player, Team], b: Union[Player, Team], h2h: Counter) -> int:
    if a.points_for != b.points_for:
        return b.points_for - a.points_for

    ab = h2h.get((a.id, b.id), 0)
    ba = h2h.get((b.id, a.id), 0)
    if ab != ba:
        return -1 if ab > ba else 1

    if a.diff != b.diff:
        return b.diff - a.diff

    return a.points_against - b.points_against


def _rank(participants, rounds, side_size):
    h2h = head_to_head(rounds or (), side_size)
    return sorted(participants, key=cmp_to_key(lambda a, b: _compare(a, b, h2h)))


def rank_players(players: Sequence[Player], rounds: Sequence[Round] = ()) -> List[Player]:
    return _rank(players, rounds, ScoringMode.INDIVIDUAL.side_size)


def rank_teams(teams: Sequence[Team], rounds: Sequence[Round] = ()) -> List[Team]:
    return _rank(teams, rounds, ScoringMode.TEAM.side_size)
