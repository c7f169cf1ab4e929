"""Card catalog: the standard 52-card deck and the values derived from rank/suit."""

from __future__ import annotations

import random
from typing import Iterable

from .types import Card, Rank, Spectrum, Suit

SUITS: tuple[Suit, ...] = ("spades", "clubs", "hearts", "diamonds")
RANKS: tuple[Rank, ...] = ("2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K", "A")

RANK_VALUES: dict[str, int] = {
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 10,
    "J": 11,
    "Q": 12,
    "K": 13,
    "A": 1,
}

TACTIC_COSTS: dict[str, int] = {"J": 2, "Q": 3, "K": 4}

_SUIT_BY_LETTER: dict[str, Suit] = {s[0].upper(): s for s in SUITS}

# Tactics sort ahead of soldiers within a spectrum.
_SORT_WEIGHT: dict[str, int] = {"K": 15, "Q": 14, "J": 13}


def spectrum_of(suit: Suit) -> Spectrum:
    return "physical" if suit in ("spades", "clubs") else "magical"


def cost_of(rank: Rank) -> int:
    if rank in TACTIC_COSTS:
        return TACTIC_COSTS[rank]
    return RANK_VALUES[rank]


def make_card(rank: Rank, suit: Suit, card_id: str | None = None) -> Card:
    if rank not in RANK_VALUES:
        raise ValueError(f"Unknown rank: {rank}")
    if suit not in SUITS:
        raise ValueError(f"Unknown suit: {suit}")
    return Card(
        id=card_id if card_id is not None else f"{rank}{suit[0].upper()}",
        suit=suit,
        rank=rank,
        value=RANK_VALUES[rank],
        cost=cost_of(rank),
        color=spectrum_of(suit),
    )


def parse_code(code: str) -> tuple[Rank, Suit]:
    """Split a card code such as ``"10H"`` or ``"as"`` into (rank, suit)."""
    text = code.strip().upper()
    if len(text) < 2:
        raise ValueError(f"Invalid card code: {code!r}")
    rank, letter = text[:-1], text[-1]
    suit = _SUIT_BY_LETTER.get(letter)
    if suit is None or rank not in RANK_VALUES:
        raise ValueError(f"Invalid card code: {code!r}")
    return rank, suit  # type: ignore[return-value]


def card_from_code(code: str, card_id: str | None = None) -> Card:
    rank, suit = parse_code(code)
    return make_card(rank, suit, card_id)


def create_deck(rng: random.Random | None = None, prefix: str = "") -> list[Card]:
    """Return all 52 cards, shuffled when `rng` is given.

    `prefix` keeps ids unique when several decks share one match.
    """
    deck = [make_card(rank, suit, f"{prefix}{rank}{suit[0].upper()}") for suit in SUITS for rank in RANKS]
    if rng is not None:
        rng.shuffle(deck)
    return deck


def hand_sort_weight(card: Card) -> int:
    return _SORT_WEIGHT.get(card.rank, card.value)


def sort_hand(hand: Iterable[Card]) -> list[Card]:
    """Physical cards first, then tactics (K, Q, J) and soldiers high to low."""
    return sorted(hand, key=lambda c: (c.color != "physical", -hand_sort_weight(c)))
