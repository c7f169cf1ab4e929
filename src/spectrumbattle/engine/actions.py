from __future__ import annotations

from dataclasses import dataclass

from .types import Phase, Zone


@dataclass(frozen=True)
class SelectInitialResources:
    player: int
    card_ids: tuple[str, ...]


@dataclass(frozen=True)
class AdvancePhase:
    """Explicit phase request (resource sub-choices, entering/leaving attack)."""

    player: int
    phase: Phase


@dataclass(frozen=True)
class AddResource:
    player: int
    card_id: str


@dataclass(frozen=True)
class SelectSwapHandCard:
    player: int
    card_id: str


@dataclass(frozen=True)
class SwapResource:
    player: int
    hand_card_id: str
    resource_unit_id: str


@dataclass(frozen=True)
class CancelResourceChoice:
    player: int


@dataclass(frozen=True)
class PlayCard:
    player: int
    card_id: str
    target_unit_id: str | None = None
    target_owner: int | None = None


@dataclass(frozen=True)
class DeclareAttackers:
    player: int
    unit_ids: tuple[str, ...]


@dataclass(frozen=True)
class ConfirmAttack:
    player: int


@dataclass(frozen=True)
class DeclareBlock:
    """Assign `blocker_id` to `attacker_id`; `None` withdraws the blocker."""

    player: int
    blocker_id: str
    attacker_id: str | None


@dataclass(frozen=True)
class ConfirmBlocks:
    player: int


@dataclass(frozen=True)
class EndTurn:
    player: int


@dataclass(frozen=True)
class Resign:
    player: int


@dataclass(frozen=True)
class SpawnCard:
    """Sandbox-only: put a fresh copy of `code` into `owner`'s zone."""

    player: int
    owner: int
    code: str
    zone: Zone


Intent = (
    SelectInitialResources
    | AdvancePhase
    | AddResource
    | SelectSwapHandCard
    | SwapResource
    | CancelResourceChoice
    | PlayCard
    | DeclareAttackers
    | ConfirmAttack
    | DeclareBlock
    | ConfirmBlocks
    | EndTurn
    | Resign
    | SpawnCard
)
