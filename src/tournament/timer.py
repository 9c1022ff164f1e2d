from typing import Optional

from tournament.models import PlayMode, TournamentConfig

MS_PER_MINUTE = 60_000


def timer_remaining_ms(config: TournamentConfig, started_at: Optional[int], now: int) -> Optional[int]:
    """Milliseconds left in timer play, None outside TIMER mode.

    Before the tournament starts the whole duration is left.
    """
    if config.play_mode is not PlayMode.TIMER:
        return None
    duration = config.timer_minutes * MS_PER_MINUTE
    if not started_at:
        return duration
    return max(0, started_at + duration - now)


def is_timer_expired(config: TournamentConfig, started_at: Optional[int], now: int) -> bool:
    left = timer_remaining_ms(config, started_at, now)
    return left is not None and left <= 0
