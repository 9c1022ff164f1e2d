"""Exceptions raised by the tournament core.

Only caller bugs raise. Invalid user actions (blank names, adding players
after play started, asking for a round that cannot be played) are no-ops.
"""


class TournamentError(Exception):
    """Base class for tournament core errors."""

    pass


class ConfigError(TournamentError, ValueError):
    """A TournamentConfig field is outside its documented bounds."""

    pass


class MatchArityError(TournamentError, ValueError):
    """A match side has the wrong number of participants."""

    pass


class RosterError(TournamentError, ValueError):
    """A team roster does not hold exactly two players."""

    pass


class MatchNotFoundError(TournamentError, LookupError):
    """No match with the requested id exists in the round."""

    pass
