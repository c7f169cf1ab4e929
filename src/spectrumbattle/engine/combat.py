"""Attack/block legality, combat resolution and the deck-exhaustion tiebreaker.

Everything here is a pure function of the units passed in; the turn
controller in `match.py` applies the results to the match.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .board import BattlefieldUnit, PlayerState


@dataclass(frozen=True)
class Pairing:
    attacker_id: str
    blocker_ids: tuple[str, ...]
    attacker_dies: bool
    dead_blockers: tuple[str, ...]


@dataclass(frozen=True)
class DirectHit:
    attacker_id: str
    amount: int


@dataclass(frozen=True)
class CombatResult:
    pairings: tuple[Pairing, ...]
    direct_hits: tuple[DirectHit, ...]

    @property
    def dead_unit_ids(self) -> list[str]:
        out: list[str] = []
        for p in self.pairings:
            for uid in p.dead_blockers:
                if uid not in out:
                    out.append(uid)
            if p.attacker_dies and p.attacker_id not in out:
                out.append(p.attacker_id)
        return out

    @property
    def total_direct_damage(self) -> int:
        return sum(h.amount for h in self.direct_hits)


@dataclass(frozen=True)
class TiebreakResult:
    winner: int | None
    reason: str


def eligible_attackers(player: PlayerState) -> list[BattlefieldUnit]:
    if player.has_attacked_this_turn:
        return []
    return [u for u in player.field if not u.tapped and not u.summoning_sick]


def can_attack(player: PlayerState, unit: BattlefieldUnit) -> str | None:
    if player.has_attacked_this_turn:
        return "Already attacked this turn."
    if unit.tapped:
        return f"{unit.card.label} is tapped."
    if unit.summoning_sick:
        return f"{unit.card.label} has summoning sickness."
    return None


def can_block(attacker: BattlefieldUnit, blocker: BattlefieldUnit) -> bool:
    return attacker.spectrum == blocker.spectrum


def legal_blockers(defender: PlayerState, attacker: BattlefieldUnit) -> list[BattlefieldUnit]:
    return [b for b in defender.field if not b.tapped and can_block(attacker, b)]


def any_block_possible(defender: PlayerState, attackers: Iterable[BattlefieldUnit]) -> bool:
    return any(legal_blockers(defender, a) for a in attackers)


def assign_block(
    blocks: Mapping[str, str],
    blocker_id: str,
    attacker_id: str | None,
    *,
    multi_blocking: bool,
) -> dict[str, str]:
    """Return a new blocker -> attacker map with one assignment changed.

    Without multi-blocking an attacker keeps at most one blocker: the new
    assignment evicts the previous one.
    """
    out = {b: a for b, a in blocks.items() if b != blocker_id}
    if attacker_id is None:
        return out
    if not multi_blocking:
        out = {b: a for b, a in out.items() if a != attacker_id}
    out[blocker_id] = attacker_id
    return out


def blockers_of(attacker_id: str, blocks: Mapping[str, str]) -> list[str]:
    return [b for b, a in blocks.items() if a == attacker_id]


def _pair(attacker: BattlefieldUnit, blockers: Sequence[BattlefieldUnit]) -> Pairing:
    # Aces kill whatever they fight; everything else compares values.
    accumulated = 0
    any_blocker_ace = False
    dead_blockers: list[str] = []
    for blk in blockers:
        accumulated += blk.value
        if blk.is_ace:
            any_blocker_ace = True
        if attacker.is_ace or attacker.value >= blk.value:
            dead_blockers.append(blk.unit_id)
    attacker_dies = any_blocker_ace or accumulated >= attacker.value
    return Pairing(
        attacker_id=attacker.unit_id,
        blocker_ids=tuple(b.unit_id for b in blockers),
        attacker_dies=attacker_dies,
        dead_blockers=tuple(dead_blockers),
    )


def resolve_combat(
    attackers: Sequence[BattlefieldUnit],
    defenders: Sequence[BattlefieldUnit],
    blocks: Mapping[str, str],
) -> CombatResult:
    """Resolve one combat from pre-combat values.

    `attackers` must be in declaration order. Blocked pairings come first,
    then direct hits, each in that order.
    """
    by_id = {d.unit_id: d for d in defenders}
    pairings: list[Pairing] = []
    hits: list[DirectHit] = []
    for atk in attackers:
        ids = blockers_of(atk.unit_id, blocks)
        blockers = [by_id[b] for b in ids if b in by_id]
        if blockers:
            pairings.append(_pair(atk, blockers))
    for atk in attackers:
        if not blockers_of(atk.unit_id, blocks):
            hits.append(DirectHit(attacker_id=atk.unit_id, amount=atk.value))
    return CombatResult(pairings=tuple(pairings), direct_hits=tuple(hits))


def needs_tiebreak(players: Sequence[PlayerState]) -> bool:
    return all(p.consecutive_draw_failures > 0 for p in players)


def resolve_tiebreaker(players: Sequence[PlayerState]) -> TiebreakResult:
    p0, p1 = players[0], players[1]
    if p0.life > p1.life:
        return TiebreakResult(winner=0, reason=f"Tiebreaker: {p0.name} has higher Life.")
    if p1.life > p0.life:
        return TiebreakResult(winner=1, reason=f"Tiebreaker: {p1.name} has higher Life.")
    v0 = p0.field_value()
    v1 = p1.field_value()
    if v0 > v1:
        return TiebreakResult(
            winner=0, reason=f"Tiebreaker: Life equal. {p0.name} has stronger field ({v0} vs {v1})."
        )
    if v1 > v0:
        return TiebreakResult(
            winner=1, reason=f"Tiebreaker: Life equal. {p1.name} has stronger field ({v1} vs {v0})."
        )
    return TiebreakResult(winner=None, reason="Tiebreaker: Total Draw (Life & Field Value equal).")
