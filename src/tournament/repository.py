"""Mapping between the ORM rows and TournamentState snapshots."""
from database import MatchORM, PlayerORM, TeamORM, TournamentORM
from tournament.models import Match, Player, Team, TournamentConfig, TournamentState


def orm_to_state(t_row: TournamentORM) -> TournamentState:
    """Convert SQLAlchemy ORM object into a TournamentState snapshot."""
    config = TournamentConfig(
        variant=t_row.mode,
        scoring_mode=t_row.scoring_mode,
        courts=t_row.courts,
        match_points=t_row.match_points,
        rounds_planned=t_row.rounds_planned,
        auto_rematch=t_row.auto_rematch,
        play_mode=t_row.play_mode,
        timer_minutes=t_row.timer_minutes,
    )
    players = [
        Player(
            id=p.id, name=p.name,
            points_for=p.points_for, points_against=p.points_against,
            games_played=p.games_played,
        )
        for p in t_row.players
    ]
    teams = [
        Team(
            id=t.id, name=t.name, player_ids=tuple(t.player_ids),
            points_for=t.points_for, points_against=t.points_against,
            games_played=t.games_played,
        )
        for t in t_row.teams
    ]

    round_count = max([t_row.round_count or 0] + [m.round + 1 for m in t_row.matches])
    rounds: list[list[Match]] = [[] for _ in range(round_count)]
    for m in t_row.matches:
        rounds[m.round].append(Match(
            id=m.match_id, round_index=m.round, court=m.court,
            side_a=list(m.side_a), side_b=list(m.side_b),
            score_a=m.score_a, score_b=m.score_b,
        ))

    return TournamentState(
        config=config,
        players=players,
        teams=teams,
        rounds=rounds,
        started=t_row.started,
        started_at=t_row.started_at,
    )


def new_tournament_orm(tid: str, name: str, state: TournamentState) -> TournamentORM:
    t_orm = TournamentORM(id=tid, name=name)
    apply_state(t_orm, state)
    return t_orm


def apply_state(t_orm: TournamentORM, state: TournamentState) -> None:
    """Write the snapshot onto the ORM object; removed rows are orphan-deleted."""
    config = state.config
    t_orm.mode = config.variant.value
    t_orm.scoring_mode = config.scoring_mode.value
    t_orm.courts = config.courts
    t_orm.match_points = config.match_points
    t_orm.rounds_planned = config.rounds_planned
    t_orm.auto_rematch = config.auto_rematch
    t_orm.play_mode = config.play_mode.value
    t_orm.timer_minutes = config.timer_minutes
    t_orm.started = state.started
    t_orm.started_at = state.started_at
    t_orm.round_count = len(state.rounds)

    players = _sync(t_orm.players, [p.id for p in state.players],
                    lambda pid: PlayerORM(id=pid, tournament_id=t_orm.id))
    for pos, p in enumerate(state.players):
        row = players[p.id]
        row.position = pos
        row.name = p.name
        row.points_for = p.points_for
        row.points_against = p.points_against
        row.games_played = p.games_played

    teams = _sync(t_orm.teams, [t.id for t in state.teams],
                  lambda tid: TeamORM(id=tid, tournament_id=t_orm.id))
    for pos, t in enumerate(state.teams):
        row = teams[t.id]
        row.position = pos
        row.name = t.name
        row.player_ids = list(t.player_ids)
        row.points_for = t.points_for
        row.points_against = t.points_against
        row.games_played = t.games_played

    all_matches = [m for round_ in state.rounds for m in round_]
    matches = _sync(t_orm.matches, [f"{t_orm.id}:{m.id}" for m in all_matches],
                    lambda key: MatchORM(id=key, tournament_id=t_orm.id))
    for round_ in state.rounds:
        for pos, m in enumerate(round_):
            row = matches[f"{t_orm.id}:{m.id}"]
            row.match_id = m.id
            row.round = m.round_index
            row.position = pos
            row.court = m.court
            row.side_a = list(m.side_a)
            row.side_b = list(m.side_b)
            row.score_a = m.score_a
            row.score_b = m.score_b


def _sync(collection, ids, make) -> dict:
    """Drop rows not in ``ids``, create missing ones, return rows by id."""
    wanted = set(ids)
    for row in list(collection):
        if row.id not in wanted:
            collection.remove(row)
    rows = {row.id: row for row in collection}
    for key in ids:
        if key not in rows:
            rows[key] = make(key)
            collection.append(rows[key])
    return rows
