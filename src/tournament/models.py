from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Optional, Tuple
import uuid

from tournament.exceptions import ConfigError, MatchArityError, RosterError

MAX_PLAYERS = 32


def generate_id(prefix: str = "") -> str:
    return prefix + str(uuid.uuid4())[:8]


def pair_key(a: str, b: str) -> Tuple[str, str]:
    """Order-independent key for a pair of participant ids."""
    return (a, b) if a < b else (b, a)


class Variant(str, Enum):
    AMERICANO = "AMERICANO"
    MEXICANO = "MEXICANO"


class ScoringMode(str, Enum):
    INDIVIDUAL = "INDIVIDUAL"
    TEAM = "TEAM"

    @property
    def side_size(self) -> int:
        if self is ScoringMode.INDIVIDUAL:
            return 2
        if self is ScoringMode.TEAM:
            return 1
        raise AssertionError(f"unhandled scoring mode {self!r}")


class PlayMode(str, Enum):
    ROUNDS = "ROUNDS"
    TIMER = "TIMER"


@dataclass(frozen=True)
class TournamentConfig:
    variant: Variant = Variant.AMERICANO
    scoring_mode: ScoringMode = ScoringMode.INDIVIDUAL
    courts: int = 2               # 1..8
    match_points: int = 21        # odd 11..29
    rounds_planned: int = 0       # 0 = auto
    auto_rematch: bool = False
    play_mode: PlayMode = PlayMode.ROUNDS
    timer_minutes: int = 60       # 1..360

    def __post_init__(self):
        # Accept raw strings coming from forms or the database
        object.__setattr__(self, "variant", Variant(self.variant))
        object.__setattr__(self, "scoring_mode", ScoringMode(self.scoring_mode))
        object.__setattr__(self, "play_mode", PlayMode(self.play_mode))

        if not 1 <= self.courts <= 8:
            raise ConfigError(f"courts must be in 1..8, got {self.courts}")
        if not 11 <= self.match_points <= 29 or self.match_points % 2 == 0:
            raise ConfigError(f"match_points must be odd in 11..29, got {self.match_points}")
        if not 1 <= self.timer_minutes <= 360:
            raise ConfigError(f"timer_minutes must be in 1..360, got {self.timer_minutes}")
        if self.rounds_planned < 0:
            raise ConfigError(f"rounds_planned must be >= 0, got {self.rounds_planned}")

    @property
    def is_auto(self) -> bool:
        return self.rounds_planned == 0


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0

    @property
    def diff(self) -> int:
        return self.points_for - self.points_against


@dataclass(frozen=True)
class Team:
    id: str
    name: str
    player_ids: Tuple[str, str]   # fixed roster, set before the first round
    points_for: int = 0
    points_against: int = 0
    games_played: int = 0

    def __post_init__(self):
        object.__setattr__(self, "player_ids", tuple(self.player_ids))
        if len(self.player_ids) != 2:
            raise RosterError(f"team {self.id} must have exactly 2 players, got {len(self.player_ids)}")

    @property
    def diff(self) -> int:
        return self.points_for - self.points_against


@dataclass(frozen=True)
class Match:
    id: str
    round_index: int
    court: int
    side_a: Tuple[str, ...]   # player ids (INDIVIDUAL) or a single team id (TEAM)
    side_b: Tuple[str, ...]
    score_a: Optional[int] = None
    score_b: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "side_a", tuple(self.side_a))
        object.__setattr__(self, "side_b", tuple(self.side_b))
        if not self.side_a or len(self.side_a) != len(self.side_b):
            raise MatchArityError(
                f"match {self.id}: sides must be non-empty and equal, "
                f"got {len(self.side_a)}v{len(self.side_b)}"
            )
        if len(self.side_a) > 2:
            raise MatchArityError(f"match {self.id}: sides larger than 2 are not supported")

    @classmethod
    def create(cls, mode: ScoringMode, id: str, round_index: int, court: int,
               side_a: Iterable[str], side_b: Iterable[str]) -> "Match":
        side_a, side_b = tuple(side_a), tuple(side_b)
        if len(side_a) != mode.side_size or len(side_b) != mode.side_size:
            raise MatchArityError(
                f"{mode.value} matches need {mode.side_size} per side, "
                f"got {len(side_a)}v{len(side_b)}"
            )
        return cls(id=id, round_index=round_index, court=court, side_a=side_a, side_b=side_b)

    @property
    def is_scored(self) -> bool:
        return self.score_a is not None and self.score_b is not None

    @property
    def participants(self) -> Tuple[str, ...]:
        return self.side_a + self.side_b

    def with_scores(self, score_a: Optional[int], score_b: Optional[int]) -> "Match":
        return replace(self, score_a=score_a, score_b=score_b)


Round = Tuple[Match, ...]


def sitting_out(round_: Round, ids: Iterable[str]) -> list:
    """Ids assigned to no match of the round, in input order."""
    used = {pid for m in round_ for pid in m.participants}
    return [pid for pid in ids if pid not in used]


@dataclass(frozen=True)
class TournamentState:
    config: TournamentConfig = field(default_factory=TournamentConfig)
    players: Tuple[Player, ...] = ()
    teams: Tuple[Team, ...] = ()
    rounds: Tuple[Round, ...] = ()
    started: bool = False
    started_at: Optional[int] = None   # epoch ms, stamped with the first round

    def __post_init__(self):
        object.__setattr__(self, "players", tuple(self.players))
        object.__setattr__(self, "teams", tuple(self.teams))
        object.__setattr__(self, "rounds", tuple(tuple(r) for r in self.rounds))

    @property
    def has_rounds(self) -> bool:
        return self.started or len(self.rounds) > 0


def match_id(round_index: int, position: int) -> str:
    return f"r{round_index + 1}m{position + 1}"


def court_number(position: int, courts: int) -> int:
    """Courts are numbered from 1, wrapping if a round has more matches than courts."""
    return position % max(1, courts) + 1
