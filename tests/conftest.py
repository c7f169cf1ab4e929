from __future__ import annotations

from typing import Sequence

from spectrumbattle.engine.actions import Intent
from spectrumbattle.engine.board import BattlefieldUnit, PlayerState
from spectrumbattle.engine.cards import card_from_code
from spectrumbattle.engine.match import MatchConfig, MatchState, new_match, step
from spectrumbattle.engine.types import Phase, ScenarioSetup


def unit(code: str, owner: int = 0, *, tapped: bool = False, sick: bool = False) -> BattlefieldUnit:
    card = card_from_code(code)
    return BattlefieldUnit(unit_id=card.id, card=card, owner=owner, tapped=tapped, summoning_sick=sick)


def player(
    pid: int = 0,
    *,
    life: int = 20,
    hand: Sequence[str] = (),
    resources: Sequence[str] = (),
    field: Sequence[str] = (),
) -> PlayerState:
    return PlayerState(
        id=pid,
        name=f"Player {pid + 1}",
        life=life,
        hand=[card_from_code(c) for c in hand],
        resources=[unit(c, pid) for c in resources],
        field=[unit(c, pid) for c in field],
    )


def scenario_match(
    *,
    hands: tuple[Sequence[str], Sequence[str]] = ((), ()),
    resources: tuple[Sequence[str], Sequence[str]] = ((), ()),
    fields: tuple[Sequence[str], Sequence[str]] = ((), ()),
    life: tuple[int | None, int | None] = (None, None),
    deck: Sequence[str] = (),
    phase: Phase = "main",
    starting_player: int = 0,
    seed: int = 7,
    multi_blocking: bool = False,
) -> MatchState:
    """Scripted position; field/resource unit ids equal their card codes."""
    setup = ScenarioSetup(
        hands=(tuple(hands[0]), tuple(hands[1])),
        resources=(tuple(resources[0]), tuple(resources[1])),
        fields=(tuple(fields[0]), tuple(fields[1])),
        life=life,
        deck=tuple(deck),
        phase=phase,
        starting_player=starting_player,
    )
    config = MatchConfig(mode="scenario", cpu_players=(False, False), multi_blocking=multi_blocking)
    return new_match(seed, config, setup)


def apply_all(state: MatchState, *intents: Intent) -> MatchState:
    for intent in intents:
        res = step(state, intent)
        assert res.ok, res.error
        state = res.state
    return state


def event_types(events: Sequence[dict[str, object]]) -> list[object]:
    return [e["type"] for e in events]
