from __future__ import annotations

from dataclasses import asdict

from .actions import Intent
from .board import BattlefieldUnit, PlayerState
from .match import MatchState
from .types import Card


def intent_to_dict(intent: Intent) -> dict[str, object]:
    out: dict[str, object] = {"type": type(intent).__name__}
    for k, v in asdict(intent).items():
        out[k] = list(v) if isinstance(v, tuple) else v
    return out


def _card_ref(c: Card) -> str:
    return c.id


def _unit_to_dict(u: BattlefieldUnit) -> dict[str, object]:
    return {
        "unit_id": u.unit_id,
        "card": u.card.id,
        "spectrum": u.spectrum,
        "tapped": u.tapped,
        "summoning_sick": u.summoning_sick,
        "attachments": [_card_ref(c) for c in u.attachments],
    }


def _player_to_dict(p: PlayerState) -> dict[str, object]:
    return {
        "name": p.name,
        "life": p.life,
        "hand": [_card_ref(c) for c in p.hand],
        "library": [_card_ref(c) for c in p.library],
        "resources": [_unit_to_dict(r) for r in p.resources],
        "field": [_unit_to_dict(u) for u in p.field],
        "discard": [_card_ref(c) for c in p.discard],
        "consecutive_draw_failures": p.consecutive_draw_failures,
        "has_attacked_this_turn": p.has_attacked_this_turn,
        "resources_seeded": p.resources_seeded,
    }


def snapshot(state: MatchState) -> dict[str, object]:
    """Return a JSON-serializable canonical snapshot of the current match state."""
    return {
        "seed": state.seed,
        "mode": state.config.mode,
        "phase": state.phase,
        "turn_player": state.turn_player,
        "starting_player": state.starting_player,
        "turn_count": state.turn_count,
        "winner": state.winner,
        "draw": state.is_draw,
        "deck": [_card_ref(c) for c in state.deck],
        "pending_attackers": list(state.pending_attackers),
        "pending_blocks": dict(sorted(state.pending_blocks.items())),
        "players": [_player_to_dict(p) for p in state.players],
        "log": list(state.log),
        "intent_log": [intent_to_dict(a) for a in state.intent_log],
    }
