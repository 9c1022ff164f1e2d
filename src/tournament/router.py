"""HTTP routes shared by the Americano and Mexicano routers."""
import logging
import os
from pathlib import Path
from typing import List, Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import TournamentORM, get_session
from tournament.engine import (
    add_player, can_add_next_round, compute_auto_rounds, generate_teams_random,
    get_planned_rounds, get_timer_remaining, make_empty_state, now_ms,
    ranked_players, ranked_teams, remove_player, reset_tournament, set_config,
    rename_player, rename_team, set_score, start_or_next_round,
    uncovered_partner_pairs,
)
from tournament.models import (
    ScoringMode, TournamentConfig, TournamentState, Variant, generate_id, sitting_out,
)
from tournament.pairing import DEFAULT_ATTEMPTS
from tournament.repository import apply_state, new_tournament_orm, orm_to_state
from tournament.schemas import (
    ConfigOut, TournamentOut, TournamentSummary, match_out, standing_rows,
)

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))

# Attempts per Americano round; lower it for very large player pools
PAIRING_ATTEMPTS = int(os.getenv("PAIRING_ATTEMPTS", DEFAULT_ATTEMPTS))


def tournament_view(tid: str, name: str, state: TournamentState, now: int) -> TournamentOut:
    config = state.config
    if config.scoring_mode is ScoringMode.TEAM:
        roster = [t.id for t in state.teams]
    else:
        roster = [p.id for p in state.players]

    return TournamentOut(
        id=tid,
        name=name,
        config=ConfigOut(
            variant=config.variant.value,
            scoring_mode=config.scoring_mode.value,
            courts=config.courts,
            match_points=config.match_points,
            rounds_planned=config.rounds_planned,
            auto_rematch=config.auto_rematch,
            play_mode=config.play_mode.value,
            timer_minutes=config.timer_minutes,
        ),
        started=state.started,
        started_at=state.started_at,
        planned_rounds=get_planned_rounds(state),
        auto_rounds=compute_auto_rounds(state),
        can_add_round=can_add_next_round(state, now),
        timer_remaining_ms=get_timer_remaining(state, now),
        partner_pairs_missing=sum(uncovered_partner_pairs(state).values()),
        players=standing_rows(ranked_players(state)),
        teams=standing_rows(ranked_teams(state)),
        rounds=[[match_out(m, config.match_points) for m in r] for r in state.rounds],
        sitting_out=sitting_out(state.rounds[-1], roster) if state.rounds else [],
    )


def make_router(variant: Variant, prefix: str, tags: List[str]) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=tags)

    def view_url(tid: str) -> str:
        return f"{prefix}/tournament/{tid}"

    async def _get_tournament_orm(tid: str, session: AsyncSession) -> TournamentORM:
        result = await session.get(TournamentORM, tid)
        if not result or result.mode != variant.value:
            raise HTTPException(status_code=404, detail="Tournament not found")
        return result

    async def _save(t_orm: TournamentORM, state: TournamentState, session: AsyncSession):
        apply_state(t_orm, state)
        await session.commit()
        return RedirectResponse(view_url(t_orm.id), status_code=303)

    @router.get("/", response_model=List[TournamentSummary])
    async def index(session: AsyncSession = Depends(get_session)):
        result = await session.execute(
            select(TournamentORM)
            .where(TournamentORM.mode == variant.value)
            .order_by(TournamentORM.created_at)
        )
        return [
            TournamentSummary(
                id=t.id, name=t.name, scoring_mode=t.scoring_mode,
                courts=t.courts, rounds=t.round_count,
            )
            for t in result.scalars().all()
        ]

    @router.post("/tournament/create")
    async def create_tournament(
        name: str = Form(...),
        player_names: str = Form(...),
        courts: int = Form(2),
        match_points: int = Form(21),
        rounds_planned: int = Form(0),
        auto_rematch: bool = Form(False),
        play_mode: str = Form("ROUNDS"),
        timer_minutes: int = Form(60),
        scoring_mode: str = Form("INDIVIDUAL"),
        session: AsyncSession = Depends(get_session),
    ):
        names = [n.strip() for n in player_names.split("\n") if n.strip()]
        if len(names) < 4:
            raise HTTPException(status_code=400, detail="Введите минимум 4 имени")

        try:
            config = TournamentConfig(
                variant=variant, scoring_mode=scoring_mode, courts=courts,
                match_points=match_points, rounds_planned=rounds_planned,
                auto_rematch=auto_rematch, play_mode=play_mode,
                timer_minutes=timer_minutes,
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        state = make_empty_state(config)
        for player_name in names:
            state = add_player(state, player_name)
        if config.scoring_mode is ScoringMode.TEAM:
            state = generate_teams_random(state)

        tid = generate_id()
        session.add(new_tournament_orm(tid, name, state))
        await session.commit()
        logger.info("Created %s tournament %s with %d players", variant.value, tid, len(state.players))
        return RedirectResponse(view_url(tid), status_code=303)

    @router.head("/tournament/{tid}")
    async def tournament_head(tid: str, session: AsyncSession = Depends(get_session)):
        await _get_tournament_orm(tid, session)
        return Response(status_code=200)

    @router.get("/tournament/{tid}", response_model=TournamentOut)
    async def tournament_get(tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return tournament_view(tid, t_orm.name, orm_to_state(t_orm), now_ms())

    @router.get("/tournament/{tid}/tv", response_class=HTMLResponse)
    async def tournament_tv(request: Request, tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        view = tournament_view(tid, t_orm.name, orm_to_state(t_orm), now_ms())
        names = {row.id: row.name for row in view.players + view.teams}
        return templates.TemplateResponse(request, "tv.html", {
            "tournament": view,
            "names": names,
            "current_matches": view.rounds[-1] if view.rounds else [],
        })

    @router.post("/tournament/{tid}/config")
    async def update_config(
        tid: str,
        courts: Optional[int] = Form(None),
        match_points: Optional[int] = Form(None),
        rounds_planned: Optional[int] = Form(None),
        auto_rematch: Optional[bool] = Form(None),
        play_mode: Optional[str] = Form(None),
        timer_minutes: Optional[int] = Form(None),
        session: AsyncSession = Depends(get_session),
    ):
        t_orm = await _get_tournament_orm(tid, session)
        changes = {
            key: value for key, value in (
                ("courts", courts), ("match_points", match_points),
                ("rounds_planned", rounds_planned), ("auto_rematch", auto_rematch),
                ("play_mode", play_mode), ("timer_minutes", timer_minutes),
            )
            if value is not None
        }
        try:
            state = set_config(orm_to_state(t_orm), **changes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return await _save(t_orm, state, session)

    @router.post("/tournament/{tid}/players")
    async def player_add(tid: str, name: str = Form(...), session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, add_player(orm_to_state(t_orm), name), session)

    @router.post("/tournament/{tid}/players/{pid}/rename")
    async def player_rename(tid: str, pid: str, name: str = Form(...), session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, rename_player(orm_to_state(t_orm), pid, name), session)

    @router.post("/tournament/{tid}/players/{pid}/delete")
    async def player_delete(tid: str, pid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, remove_player(orm_to_state(t_orm), pid), session)

    @router.post("/tournament/{tid}/teams/shuffle")
    async def teams_shuffle(tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, generate_teams_random(orm_to_state(t_orm)), session)

    @router.post("/tournament/{tid}/teams/{team_id}/rename")
    async def team_rename(tid: str, team_id: str, name: str = Form(...), session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, rename_team(orm_to_state(t_orm), team_id, name), session)

    @router.post("/tournament/{tid}/next-round")
    async def next_round(tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        state = orm_to_state(t_orm)
        new_state = start_or_next_round(state, attempts=PAIRING_ATTEMPTS)
        if new_state is not state:
            logger.info("Tournament %s: round %d generated", tid, len(new_state.rounds))
        return await _save(t_orm, new_state, session)

    @router.post("/tournament/{tid}/score")
    async def submit_score(
        tid: str,
        round_index: int = Form(...),
        match_id: str = Form(...),
        score_a: Optional[int] = Form(None),
        score_b: Optional[int] = Form(None),
        session: AsyncSession = Depends(get_session),
    ):
        t_orm = await _get_tournament_orm(tid, session)
        state = set_score(orm_to_state(t_orm), round_index, match_id, score_a, score_b)
        return await _save(t_orm, state, session)

    @router.post("/tournament/{tid}/reset")
    async def reset(tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await _get_tournament_orm(tid, session)
        return await _save(t_orm, reset_tournament(orm_to_state(t_orm)), session)

    @router.post("/tournament/{tid}/delete")
    async def delete_tournament(tid: str, session: AsyncSession = Depends(get_session)):
        t_orm = await session.get(TournamentORM, tid)
        if t_orm and t_orm.mode == variant.value:
            await session.delete(t_orm)
            await session.commit()
        return RedirectResponse(f"{prefix}/", status_code=303)

    return router
