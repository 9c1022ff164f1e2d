from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Sequence

from tournament.models import Round, pair_key


@dataclass(frozen=True)
class History:
    """Per-participant and per-pair counters derived from past rounds."""
    games_played: Dict[str, int] = field(default_factory=dict)
    bye_count: Dict[str, int] = field(default_factory=dict)
    byed_last_round: Dict[str, bool] = field(default_factory=dict)
    partner_count: Counter = field(default_factory=Counter)
    opponent_count: Counter = field(default_factory=Counter)
    last_partner: Dict[str, str] = field(default_factory=dict)
    last_opponents: Dict[str, FrozenSet[str]] = field(default_factory=dict)

    def partners(self, a: str, b: str) -> int:
        return self.partner_count.get(pair_key(a, b), 0)

    def opponents(self, a: str, b: str) -> int:
        return self.opponent_count.get(pair_key(a, b), 0)

    def were_last_partners(self, a: str, b: str) -> bool:
        return self.last_partner.get(a) == b or self.last_partner.get(b) == a

    def were_last_opponents(self, a: str, b: str) -> bool:
        return b in self.last_opponents.get(a, ())


def aggregate_history(rounds: Sequence[Round], ids: Iterable[str]) -> History:
    """Fold the round history into lookups keyed by participant id or pair.

    Computed from scratch on every call. Ids appearing in matches but not in
    ``ids`` still get partner/opponent counts, but only ``ids`` get games,
    byes and the last-round bye flag.
    """
    ids = list(ids)
    games = {pid: 0 for pid in ids}
    byes = {pid: 0 for pid in ids}
    partner_count: Counter = Counter()
    opponent_count: Counter = Counter()

    for round_ in rounds:
        used = set()
        for m in round_:
            for side in (m.side_a, m.side_b):
                used.update(side)
                if len(side) == 2:
                    partner_count[pair_key(side[0], side[1])] += 1
            for a in m.side_a:
                for b in m.side_b:
                    opponent_count[pair_key(a, b)] += 1
        for pid in ids:
            if pid in used:
                games[pid] += sum(1 for m in round_ if pid in m.participants)
            else:
                byes[pid] += 1

    byed_last = {pid: False for pid in ids}
    last_partner: Dict[str, str] = {}
    last_opponents: Dict[str, FrozenSet[str]] = {}
    if rounds:
        last = rounds[-1]
        used_last = {pid for m in last for pid in m.participants}
        byed_last = {pid: pid not in used_last for pid in ids}
        for m in last:
            for side, other in ((m.side_a, m.side_b), (m.side_b, m.side_a)):
                if len(side) == 2:
                    last_partner[side[0]] = side[1]
                    last_partner[side[1]] = side[0]
                for pid in side:
                    last_opponents[pid] = last_opponents.get(pid, frozenset()) | frozenset(other)

    return History(
        games_played=games,
        bye_count=byes,
        byed_last_round=byed_last,
        partner_count=partner_count,
        opponent_count=opponent_count,
        last_partner=last_partner,
        last_opponents=last_opponents,
    )

