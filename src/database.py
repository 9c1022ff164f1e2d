import os
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from dotenv import load_dotenv
from uuid import uuid4
from sqlalchemy import (
    JSON, BigInteger, Boolean, Column, ForeignKey, Integer, String,
    func, DateTime,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, relationship

load_dotenv()

POSTGRES_USER = os.getenv("POSTGRES_USER")
POSTGRES_PASSWORD = os.getenv("POSTGRES_PASSWORD")
POSTGRES_DB = os.getenv("POSTGRES_DB_URL")

class Base(DeclarativeBase): pass

postgres_file_name = f"{POSTGRES_USER}:{POSTGRES_PASSWORD}@{POSTGRES_DB}"

# DATABASE_URL overrides the postgres settings (tests use sqlite+aiosqlite)
DATABASE_URL = os.getenv("DATABASE_URL") or f"postgresql+asyncpg://{postgres_file_name}"


def _connect_args(url: str) -> dict:
    if not url.startswith("postgresql+asyncpg"):
        return {}

    from asyncpg import Connection

    class FixedConnection(Connection):
        def _get_unique_id(self, prefix: str) -> str:
            return f'__asyncpg_{prefix}_{uuid4()}__'

    return {
        "statement_cache_size": 0,
        "prepared_statement_cache_size": 0,
        "connection_class": FixedConnection,
    }


engine = create_async_engine(
    DATABASE_URL,
    echo=False,
    future=True,
    connect_args=_connect_args(DATABASE_URL),
)

# Фабрика сессий
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False
)


async def get_session():
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def create_tables():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

# JSONB on postgres, plain JSON elsewhere
IdList = JSON().with_variant(JSONB(), "postgresql")

#ORM

class TournamentORM(Base):
    __tablename__ = "tournaments"

    id             = Column(String, primary_key=True)
    mode           = Column(String, nullable=False, default="AMERICANO")   # AMERICANO | MEXICANO
    scoring_mode   = Column(String, nullable=False, default="INDIVIDUAL")  # INDIVIDUAL | TEAM
    name           = Column(String, nullable=False)
    courts         = Column(Integer, nullable=False)
    match_points   = Column(Integer, nullable=False, default=21)
    rounds_planned = Column(Integer, nullable=False, default=0)            # 0 = auto
    auto_rematch   = Column(Boolean, nullable=False, default=False)
    play_mode      = Column(String, nullable=False, default="ROUNDS")      # ROUNDS | TIMER
    timer_minutes  = Column(Integer, nullable=False, default=60)
    started        = Column(Boolean, nullable=False, default=False)
    started_at     = Column(BigInteger, nullable=True)                     # epoch ms
    round_count    = Column(Integer, nullable=False, default=0)            # rounds generated, empty ones included
    created_at     = Column(DateTime(timezone=True), server_default=func.now())

    players = relationship(
        "PlayerORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="PlayerORM.position",
        lazy="selectin",
    )
    teams = relationship(
        "TeamORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="TeamORM.position",
        lazy="selectin",
    )
    matches = relationship(
        "MatchORM",
        back_populates="tournament",
        cascade="all, delete-orphan",
        order_by="MatchORM.round, MatchORM.position",
        lazy="selectin",
    )


class PlayerORM(Base):
    __tablename__ = "players"

    id             = Column(String, primary_key=True)
    tournament_id  = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    position       = Column(Integer, nullable=False, default=0)   # roster order
    name           = Column(String, nullable=False)
    points_for     = Column(Integer, nullable=False, default=0)
    points_against = Column(Integer, nullable=False, default=0)
    games_played   = Column(Integer, nullable=False, default=0)

    tournament = relationship("TournamentORM", back_populates="players")


class TeamORM(Base):
    __tablename__ = "teams"

    id             = Column(String, primary_key=True)
    tournament_id  = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    position       = Column(Integer, nullable=False, default=0)
    name           = Column(String, nullable=False)
    player_ids     = Column(IdList, nullable=False)   # list[str] -- exactly two player ids
    points_for     = Column(Integer, nullable=False, default=0)
    points_against = Column(Integer, nullable=False, default=0)
    games_played   = Column(Integer, nullable=False, default=0)

    tournament = relationship("TournamentORM", back_populates="teams")


class MatchORM(Base):
    __tablename__ = "matches"

    id            = Column(String, primary_key=True)   # "{tournament_id}:{match_id}"
    tournament_id = Column(String, ForeignKey("tournaments.id", ondelete="CASCADE"), nullable=False)
    match_id      = Column(String, nullable=False)     # id inside the tournament, e.g. r1m2
    round         = Column(Integer, nullable=False)    # 0-based round index
    position      = Column(Integer, nullable=False)
    court         = Column(Integer, nullable=False)
    side_a        = Column(IdList, nullable=False)     # list[str] -- player or team ids
    side_b        = Column(IdList, nullable=False)
    score_a       = Column(Integer, nullable=True)
    score_b       = Column(Integer, nullable=True)

    tournament = relationship("TournamentORM", back_populates="matches")
