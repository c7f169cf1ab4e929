from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Suit = Literal["spades", "clubs", "hearts", "diamonds"]
Rank = Literal["2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A"]
Spectrum = Literal["physical", "magical"]

Zone = Literal["hand", "field", "resources"]

MatchMode = Literal["street", "pro", "sandbox", "scenario"]

Phase = Literal[
    "init_select",
    "upkeep",
    "draw",
    "resource_start",
    "resource_add_select",
    "resource_swap_select_hand",
    "resource_swap_select_pile",
    "main",
    "attack_declare",
    "block_declare",
    "damage",
    "game_over",
]

TACTIC_RANKS: frozenset[str] = frozenset({"J", "Q", "K"})


class InvariantViolation(RuntimeError):
    """Raised when engine code is asked to break a rules invariant.

    Illegal intents are rejected with a `StepResult` instead; this error means
    a caller skipped a validation it was responsible for.
    """


@dataclass(frozen=True)
class Card:
    id: str
    suit: Suit
    rank: Rank
    value: int
    cost: int
    color: Spectrum

    @property
    def is_ace(self) -> bool:
        return self.rank == "A"

    @property
    def is_tactic(self) -> bool:
        return self.rank in TACTIC_RANKS

    @property
    def is_soldier(self) -> bool:
        return not self.is_tactic

    @property
    def code(self) -> str:
        return f"{self.rank}{self.suit[0].upper()}"

    @property
    def label(self) -> str:
        return f"[{self.rank}{SUIT_SYMBOLS[self.suit]}]"


SUIT_SYMBOLS: dict[str, str] = {
    "spades": "♠",
    "clubs": "♣",
    "hearts": "♥",
    "diamonds": "♦",
}


@dataclass(frozen=True)
class ScenarioSetup:
    """Pre-seeded starting position for scripted lessons.

    Cards are given as codes (``"6S"``, ``"10H"``, ``"AC"``). Field and
    resource cards keep their card id as unit id so scripts can refer to them.
    """

    hands: tuple[tuple[str, ...], tuple[str, ...]] = ((), ())
    resources: tuple[tuple[str, ...], tuple[str, ...]] = ((), ())
    fields: tuple[tuple[str, ...], tuple[str, ...]] = ((), ())
    life: tuple[int | None, int | None] = (None, None)
    deck: tuple[str, ...] = ()
    phase: Phase = "main"
    starting_player: int = 0


@dataclass(frozen=True)
class Scenario:
    id: str
    title: str
    subtitle: str
    setup: ScenarioSetup = field(default_factory=ScenarioSetup)
