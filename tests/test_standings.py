from tournament.models import Match, Player, ScoringMode, Team
from tournament.standings import head_to_head, rank_players, rank_teams, recompute_standings


def doubles(mid, a, b, score_a=None, score_b=None, round_index=0):
    return Match(id=mid, round_index=round_index, court=1, side_a=a, side_b=b,
                 score_a=score_a, score_b=score_b)


def test_scored_match_credits_both_sides(make_players):
    players = make_players(4)
    rounds = [(doubles("r1m1", ("p01", "p02"), ("p03", "p04"), 21, 15),)]
    scored, teams = recompute_standings(players, [], rounds, ScoringMode.INDIVIDUAL)
    by_id = {p.id: p for p in scored}

    for pid in ("p01", "p02"):
        assert (by_id[pid].points_for, by_id[pid].points_against, by_id[pid].games_played) == (21, 15, 1)
    for pid in ("p03", "p04"):
        assert (by_id[pid].points_for, by_id[pid].points_against, by_id[pid].games_played) == (15, 21, 1)
    assert teams == ()


def test_unscored_matches_are_ignored(make_players):
    players = make_players(4)
    rounds = [(doubles("r1m1", ("p01", "p02"), ("p03", "p04")),)]
    scored, _ = recompute_standings(players, [], rounds, ScoringMode.INDIVIDUAL)
    assert all(p.games_played == 0 and p.points_for == 0 for p in scored)


def test_recompute_is_idempotent(make_players):
    players = make_players(4)
    rounds = [
        (doubles("r1m1", ("p01", "p02"), ("p03", "p04"), 12, 9),),
        (doubles("r2m1", ("p01", "p03"), ("p02", "p04"), 5, 16, round_index=1),),
    ]
    once = recompute_standings(players, [], rounds, ScoringMode.INDIVIDUAL)
    twice = recompute_standings(once[0], once[1], rounds, ScoringMode.INDIVIDUAL)
    assert once == twice


def test_inputs_are_not_mutated(make_players):
    players = make_players(4)
    rounds = [(doubles("r1m1", ("p01", "p02"), ("p03", "p04"), 21, 15),)]
    recompute_standings(players, [], rounds, ScoringMode.INDIVIDUAL)
    assert all(p.points_for == 0 for p in players)


def test_team_results_reach_roster_players(make_players, make_teams):
    players = make_players(4)
    teams = make_teams(2)
    rounds = [(Match(id="r1m1", round_index=0, court=1, side_a=("t1",), side_b=("t2",),
                     score_a=14, score_b=7),)]
    scored_players, scored_teams = recompute_standings(players, teams, rounds, ScoringMode.TEAM)
    t = {x.id: x for x in scored_teams}
    p = {x.id: x for x in scored_players}

    assert (t["t1"].points_for, t["t1"].points_against, t["t1"].games_played) == (14, 7, 1)
    assert (t["t2"].points_for, t["t2"].points_against, t["t2"].games_played) == (7, 14, 1)
    assert p["p01"].points_for == p["p02"].points_for == 14
    assert p["p03"].points_against == p["p04"].points_against == 14


def test_ranking_by_points_for():
    players = [
        Player(id="a", name="A", points_for=10, points_against=0),
        Player(id="b", name="B", points_for=30, points_against=40),
        Player(id="c", name="C", points_for=20, points_against=5),
    ]
    assert [p.id for p in rank_players(players)] == ["b", "c", "a"]


def test_head_to_head_beats_point_difference():
    # a and c tie on points_for; c has the better difference but a beat c
    players = [
        Player(id="c", name="C", points_for=21, points_against=5),
        Player(id="a", name="A", points_for=21, points_against=30),
    ]
    rounds = [(doubles("r1m1", ("a", "x"), ("c", "y"), 11, 10),)]
    assert head_to_head(rounds, 2)[("a", "c")] == 1
    assert [p.id for p in rank_players(players, rounds)] == ["a", "c"]


def test_difference_then_points_against():
    players = [
        Player(id="a", name="A", points_for=20, points_against=18),
        Player(id="b", name="B", points_for=20, points_against=10),
        Player(id="c", name="C", points_for=20, points_against=10),
    ]
    ranked = rank_players(players)
    assert ranked[0].id in ("b", "c") and ranked[1].id in ("b", "c")
    assert ranked[2].id == "a"


def test_drawn_matches_do_not_count_as_wins():
    rounds = [(doubles("r1m1", ("a", "b"), ("c", "d"), 10, 10),)]
    assert head_to_head(rounds, 2) == {}


def test_team_head_to_head_uses_team_matches(make_teams):
    t1, t2 = make_teams(2)
    t1 = Team(id=t1.id, name=t1.name, player_ids=t1.player_ids, points_for=21, points_against=30)
    t2 = Team(id=t2.id, name=t2.name, player_ids=t2.player_ids, points_for=21, points_against=0)
    rounds = [(Match(id="r1m1", round_index=0, court=1, side_a=("t2",), side_b=("t1",),
                     score_a=8, score_b=13),)]
    assert [t.id for t in rank_teams([t2, t1], rounds)] == ["t1", "t2"]
    # doubles head-to-head is not consulted for teams
    assert head_to_head(rounds, 2) == {}
