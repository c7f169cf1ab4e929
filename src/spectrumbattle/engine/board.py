from __future__ import annotations

from dataclasses import dataclass
from dataclasses import field as _field

from .types import Card, Spectrum


@dataclass
class BattlefieldUnit:
    unit_id: str
    card: Card
    owner: int
    tapped: bool = False
    summoning_sick: bool = True
    attachments: list[Card] = _field(default_factory=list)

    @property
    def queen(self) -> Card | None:
        for c in self.attachments:
            if c.rank == "Q":
                return c
        return None

    @property
    def spectrum(self) -> Spectrum:
        # An attached Queen overrides the soldier's own color.
        q = self.queen
        return q.color if q is not None else self.card.color

    @property
    def value(self) -> int:
        return self.card.value

    @property
    def is_ace(self) -> bool:
        return self.card.is_ace


@dataclass
class PlayerState:
    id: int
    name: str
    life: int
    hand: list[Card] = _field(default_factory=list)
    library: list[Card] = _field(default_factory=list)
    resources: list[BattlefieldUnit] = _field(default_factory=list)
    field: list[BattlefieldUnit] = _field(default_factory=list)
    discard: list[Card] = _field(default_factory=list)
    consecutive_draw_failures: int = 0
    has_attacked_this_turn: bool = False
    resources_seeded: bool = False
    is_cpu: bool = False

    def hand_card(self, card_id: str) -> Card | None:
        for c in self.hand:
            if c.id == card_id:
                return c
        return None

    def field_unit(self, unit_id: str) -> BattlefieldUnit | None:
        for u in self.field:
            if u.unit_id == unit_id:
                return u
        return None

    def resource_unit(self, unit_id: str) -> BattlefieldUnit | None:
        for u in self.resources:
            if u.unit_id == unit_id:
                return u
        return None

    def field_value(self) -> int:
        return sum(u.value for u in self.field)
