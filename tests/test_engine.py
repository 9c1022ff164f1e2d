import random

import pytest

from tournament import engine
from tournament.exceptions import ConfigError, MatchNotFoundError
from tournament.models import (
    MAX_PLAYERS, PlayMode, ScoringMode, TournamentConfig, TournamentState,
)

T0 = 1_700_000_000_000


def state_with(n, **config):
    state = engine.make_empty_state(TournamentConfig(**config))
    for i in range(n):
        state = engine.add_player(state, f"Player {i + 1}")
    return state


def first_match(state, round_index=0):
    return state.rounds[round_index][0]


def test_add_player_strips_and_ignores_blank():
    state = engine.add_player(engine.make_empty_state(), "  Anna  ")
    assert [p.name for p in state.players] == ["Anna"]
    assert state.players[0].id.startswith("p_")
    assert engine.add_player(state, "   ") is state
    assert engine.add_player(state, None) is state


def test_add_player_cap():
    state = state_with(MAX_PLAYERS)
    assert len(state.players) == MAX_PLAYERS
    assert engine.add_player(state, "One more") is state


def test_rename_player_keeps_old_name_when_blank():
    state = state_with(4)
    pid = state.players[0].id
    assert engine.rename_player(state, pid, " Bea ").players[0].name == "Bea"
    assert engine.rename_player(state, pid, "").players[0].name == "Player 1"


def test_remove_player_only_before_start():
    state = state_with(5)
    pid = state.players[0].id
    assert len(engine.remove_player(state, pid).players) == 4

    started = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert engine.remove_player(started, pid) is started


def test_add_player_only_before_start():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    assert engine.add_player(state, "Late") is state


def test_late_player_cannot_stall_team_play():
    state = state_with(4, scoring_mode=ScoringMode.TEAM, rounds_planned=3)
    state = engine.generate_teams_random(state, rng=random.Random(2))
    state = engine.start_or_next_round(state, rng=random.Random(3), now=T0)
    state = engine.add_player(state, "Late")
    assert len(state.players) == 4

    state = engine.start_or_next_round(state, rng=random.Random(4), now=T0)
    assert len(state.rounds) == 2


def test_remove_player_drops_their_team():
    state = engine.generate_teams_random(state_with(6), rng=random.Random(2))
    team = state.teams[0]
    after = engine.remove_player(state, team.player_ids[0])
    assert team.id not in {t.id for t in after.teams}
    assert len(after.teams) == 2


def test_generate_teams_random():
    state = engine.generate_teams_random(state_with(8), rng=random.Random(3))
    assert [t.name for t in state.teams] == ["Team 1", "Team 2", "Team 3", "Team 4"]
    rostered = sorted(pid for t in state.teams for pid in t.player_ids)
    assert rostered == sorted(p.id for p in state.players)


@pytest.mark.parametrize("n", [3, 5])
def test_generate_teams_needs_even_count_of_four_or_more(n):
    state = state_with(n)
    assert engine.generate_teams_random(state) is state


def test_teams_are_frozen_after_start():
    state = engine.generate_teams_random(state_with(4, scoring_mode=ScoringMode.TEAM), rng=random.Random(4))
    state = engine.start_or_next_round(state, rng=random.Random(5), now=T0)
    assert engine.generate_teams_random(state, rng=random.Random(6)) is state


def test_rename_team():
    state = engine.generate_teams_random(state_with(4), rng=random.Random(7))
    tid = state.teams[1].id
    assert engine.rename_team(state, tid, "Smash").teams[1].name == "Smash"


def test_start_stamps_clock_once():
    state = state_with(4, courts=1)
    state = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert state.started and state.started_at == T0
    assert len(state.rounds) == 1 and len(state.rounds[0]) == 1

    state = engine.start_or_next_round(state, rng=random.Random(1), now=T0 + 5000)
    assert state.started_at == T0
    assert len(state.rounds) == 2


def test_too_few_players_blocks_start():
    state = state_with(3)
    assert engine.start_or_next_round(state, now=T0) is state


def test_team_mode_needs_even_roster_with_teams():
    state = state_with(4, scoring_mode=ScoringMode.TEAM)
    assert engine.start_or_next_round(state, now=T0) is state

    teamed = engine.generate_teams_random(state, rng=random.Random(8))
    state = engine.add_player(teamed, "Odd one")
    assert engine.start_or_next_round(state, now=T0) is state

    started = engine.start_or_next_round(teamed, rng=random.Random(9), now=T0)
    assert len(started.rounds) == 1
    assert len(first_match(started).side_a) == 1


def test_plan_limits_rounds():
    state = state_with(4, courts=1, rounds_planned=2)
    for _ in range(2):
        state = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert not engine.can_add_next_round(state, now=T0)
    assert engine.start_or_next_round(state, now=T0) is state


def test_auto_plan_for_four_players():
    state = state_with(4, courts=1)
    assert engine.compute_auto_rounds(state) == 3
    assert engine.get_planned_rounds(state) == 3


def test_timer_blocks_after_expiry():
    state = state_with(4, courts=1, play_mode=PlayMode.TIMER, timer_minutes=1)
    assert engine.get_timer_remaining(state, now=T0) == 60_000

    state = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert engine.get_timer_remaining(state, now=T0 + 15_000) == 45_000
    assert engine.can_add_next_round(state, now=T0 + 59_999)

    assert engine.get_timer_remaining(state, now=T0 + 90_000) == 0
    assert not engine.can_add_next_round(state, now=T0 + 60_000)
    assert engine.start_or_next_round(state, now=T0 + 60_000) is state


def test_timer_remaining_is_none_in_rounds_mode():
    assert engine.get_timer_remaining(state_with(4), now=T0) is None


def test_set_score_updates_standings():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    m = first_match(state)
    state = engine.set_score(state, 0, m.id, 13, 8)

    by_id = {p.id: p for p in state.players}
    assert all(by_id[pid].points_for == 13 and by_id[pid].games_played == 1 for pid in m.side_a)
    assert all(by_id[pid].points_for == 8 and by_id[pid].points_against == 13 for pid in m.side_b)
    assert engine.ranked_players(state)[0].id in m.side_a


def test_set_score_clamps_and_clears():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    mid = first_match(state).id

    clamped = engine.set_score(state, 0, mid, 40, -3)
    assert (first_match(clamped).score_a, first_match(clamped).score_b) == (21, 0)

    cleared = engine.set_score(clamped, 0, mid, 10, None)
    assert first_match(cleared).score_a is None and first_match(cleared).score_b is None
    assert all(p.games_played == 0 for p in cleared.players)


def test_set_score_ignores_unknown_targets():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    assert engine.set_score(state, 3, "r1m1", 11, 10) is state
    assert engine.set_score(state, 0, "r9m9", 11, 10) is state


def test_set_match_score_raises_for_unknown_match():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    with pytest.raises(MatchNotFoundError):
        engine.set_match_score(state.rounds[0], "nope", 1, 2, 21)


def test_invalid_sums_are_kept_but_reported():
    state = engine.start_or_next_round(state_with(4, courts=1), rng=random.Random(1), now=T0)
    mid = first_match(state).id
    state = engine.set_score(state, 0, mid, 15, 4)
    assert [m.id for m in engine.invalid_score_matches(state)] == [mid]
    assert any(p.points_for == 15 for p in state.players)

    state = engine.set_score(state, 0, mid, 15, 6)
    assert engine.invalid_score_matches(state) == []


def test_set_config_validates():
    state = engine.make_empty_state()
    assert engine.set_config(state, courts=4).config.courts == 4
    with pytest.raises(ConfigError):
        engine.set_config(state, match_points=22)


def test_reset_keeps_config():
    state = state_with(6, courts=3, match_points=15)
    state = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    reset = engine.reset_tournament(state)
    assert reset == TournamentState(config=state.config)
    assert reset.config.courts == 3 and reset.config.match_points == 15


def test_state_is_not_mutated():
    state = state_with(4, courts=1)
    engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert state.rounds == () and not state.started


def test_uncovered_partner_pairs_shrinks_as_rounds_are_played():
    state = state_with(4, courts=1)
    assert len(engine.uncovered_partner_pairs(state)) == 6

    for _ in range(engine.get_planned_rounds(state)):
        state = engine.start_or_next_round(state, rng=random.Random(1), now=T0)
    assert engine.uncovered_partner_pairs(state) == {}


def test_uncovered_partner_pairs_only_for_individual_americano():
    state = state_with(4, variant="MEXICANO")
    assert engine.uncovered_partner_pairs(state) == {}
