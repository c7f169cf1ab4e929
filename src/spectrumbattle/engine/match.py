from __future__ import annotations

import copy
import logging
import random
from dataclasses import dataclass, field
from typing import Iterable

from . import combat, economy
from .actions import (
    AddResource,
    AdvancePhase,
    CancelResourceChoice,
    ConfirmAttack,
    ConfirmBlocks,
    DeclareAttackers,
    DeclareBlock,
    EndTurn,
    Intent,
    PlayCard,
    Resign,
    SelectInitialResources,
    SelectSwapHandCard,
    SpawnCard,
    SwapResource,
)
from .board import BattlefieldUnit, PlayerState
from .cards import card_from_code, create_deck, sort_hand
from .types import Card, MatchMode, Phase, ScenarioSetup

logger = logging.getLogger(__name__)

Event = dict[str, object]

# Phase requests a player may make explicitly; everything else auto-advances.
_MANUAL_TRANSITIONS: frozenset[tuple[str, str]] = frozenset(
    {
        ("resource_start", "resource_add_select"),
        ("resource_start", "resource_swap_select_hand"),
        ("resource_start", "main"),
        ("main", "attack_declare"),
        ("attack_declare", "main"),
    }
)

_RESOURCE_CHOICE_PHASES: frozenset[str] = frozenset(
    {"resource_add_select", "resource_swap_select_hand", "resource_swap_select_pile"}
)


@dataclass(frozen=True)
class MatchConfig:
    mode: MatchMode = "street"
    starting_life: int = 20
    max_resources: int = economy.MAX_RESOURCES
    opening_hand: int = 8
    starting_resources: int = 3
    jack_draw: int = 2
    multi_blocking: bool = False
    starting_player: int | None = None  # None = coin flip
    player_names: tuple[str, str] = ("Player 1", "Player 2")
    cpu_players: tuple[bool, bool] = (False, True)
    auto_sort_hand: bool = True
    draw_on_add_resource: bool = True

    @property
    def shared_deck(self) -> bool:
        return self.mode != "pro"

    @property
    def sandbox(self) -> bool:
        return self.mode == "sandbox"


@dataclass
class MatchState:
    config: MatchConfig
    seed: int
    rng: random.Random
    players: list[PlayerState]
    deck: list[Card] = field(default_factory=list)
    turn_player: int = 0
    starting_player: int = 0
    phase: Phase = "init_select"
    turn_count: int = 1
    pending_attackers: list[str] = field(default_factory=list)
    pending_blocks: dict[str, str] = field(default_factory=dict)
    swap_hand_card_id: str | None = None
    winner: int | None = None
    is_draw: bool = False
    log: list[str] = field(default_factory=list)
    event_log: list[Event] = field(default_factory=list)
    intent_log: list[Intent] = field(default_factory=list)
    next_unit_seq: int = 1

    def opponent(self, player: int) -> int:
        return 1 - player

    @property
    def defender(self) -> int:
        return self.opponent(self.turn_player)

    @property
    def is_over(self) -> bool:
        return self.phase == "game_over"

    def find_unit(self, unit_id: str) -> BattlefieldUnit | None:
        for ps in self.players:
            u = ps.field_unit(unit_id)
            if u is not None:
                return u
        return None

    def attackers(self) -> list[BattlefieldUnit]:
        """Declared attackers in declaration order."""
        ps = self.players[self.turn_player]
        out: list[BattlefieldUnit] = []
        for uid in self.pending_attackers:
            u = ps.field_unit(uid)
            if u is not None:
                out.append(u)
        return out


@dataclass
class StepResult:
    ok: bool
    state: MatchState
    events: list[Event]
    error: str | None = None


def decision_player(state: MatchState) -> int | None:
    """Seat whose intent the match is waiting for, or None once it has ended."""
    if state.is_over:
        return None
    if state.phase == "init_select":
        for ps in state.players:
            if not ps.resources_seeded:
                return ps.id
        return None
    if state.phase == "block_declare":
        return state.defender
    return state.turn_player


def _emit(state: MatchState, etype: str, **payload: object) -> None:
    ev: Event = {"type": etype}
    ev.update(payload)
    state.event_log.append(ev)


def _log(state: MatchState, message: str) -> None:
    state.log.append(message)


def _mint_unit_id(state: MatchState) -> str:
    uid = f"u{state.next_unit_seq}"
    state.next_unit_seq += 1
    return uid


def _set_phase(state: MatchState, phase: Phase) -> None:
    state.phase = phase
    _emit(state, "PHASE_CHANGED", phase=phase, player=state.turn_player)


def _end_game(state: MatchState, winner: int | None, reason: str) -> None:
    state.winner = winner
    state.is_draw = winner is None
    _log(state, reason)
    _set_phase(state, "game_over")
    _emit(state, "GAME_ENDED", winner=winner, draw=winner is None, reason=reason)
    logger.info("Match over (seed=%s): %s", state.seed, reason)


def _check_winner(state: MatchState) -> bool:
    if state.is_over:
        return True
    for ps in state.players:
        if ps.life <= 0:
            _end_game(state, state.opponent(ps.id), f"{ps.name} has no Life left.")
            return True
    return False


def _draw(state: MatchState, player: int, count: int) -> None:
    ps = state.players[player]
    source = state.deck if state.config.shared_deck else ps.library
    drawn: list[Card] = []
    for _ in range(count):
        if not source:
            break
        card = source.pop(0)
        ps.hand.append(card)
        drawn.append(card)
        _emit(state, "CARD_DRAWN", player=player, card_id=card.id)
    if drawn:
        ps.consecutive_draw_failures = 0
        if state.config.auto_sort_hand:
            ps.hand = sort_hand(ps.hand)
        _log(state, f"{ps.name} drew {len(drawn)} card{'s' if len(drawn) != 1 else ''}.")

    missing = count - len(drawn)
    if missing <= 0:
        return
    ps.consecutive_draw_failures += missing
    _emit(state, "DRAW_FAILED", player=player, missing=missing, failures=ps.consecutive_draw_failures)
    _log(state, f"{ps.name} deck empty!")
    logger.warning("%s could not draw %d card(s); deck empty", ps.name, missing)
    if combat.needs_tiebreak(state.players):
        result = combat.resolve_tiebreaker(state.players)
        _end_game(state, result.winner, result.reason)


def _discard_unit(state: MatchState, unit: BattlefieldUnit) -> None:
    owner = state.players[unit.owner]
    owner.field.remove(unit)
    owner.discard.append(unit.card)
    owner.discard.extend(unit.attachments)
    unit.attachments = []


def _enter(state: MatchState, phase: Phase) -> None:
    """Move to `phase` and run its automatic work (and any auto-advance)."""
    _set_phase(state, phase)
    ps = state.players[state.turn_player]

    if phase == "upkeep":
        for u in ps.field:
            u.tapped = False
            u.summoning_sick = False
        for r in ps.resources:
            r.tapped = False
        ps.has_attacked_this_turn = False
        state.pending_attackers = []
        state.pending_blocks = {}
        state.swap_hand_card_id = None
        _log(state, f"Turn {state.turn_count}: {ps.name}'s Upkeep.")
        _enter(state, "draw")
    elif phase == "draw":
        _draw(state, state.turn_player, 1)
        if not state.is_over:
            _enter(state, "resource_start")
    elif phase == "resource_start":
        first_turn = state.turn_count == 1 and state.turn_player == state.starting_player
        reason = economy.resource_step_skip_reason(
            ps, first_turn_of_match=first_turn, max_resources=state.config.max_resources
        )
        if reason is not None:
            _log(state, reason)
            _enter(state, "main")
        else:
            _log(state, "Resource Step.")
    elif phase == "main":
        _log(state, "Main Phase.")
    elif phase == "attack_declare":
        _log(state, "Declare Attackers.")
    elif phase == "block_declare":
        _log(state, f"{state.players[state.defender].name} declares blocks.")
    elif phase == "damage":
        _resolve_damage(state)


def _resolve_damage(state: MatchState) -> None:
    attackers = state.attackers()
    dps = state.players[state.defender]
    result = combat.resolve_combat(attackers, dps.field, state.pending_blocks)

    units = {u.unit_id: u for u in attackers}
    units.update({u.unit_id: u for u in dps.field})

    for pairing in result.pairings:
        atk = units[pairing.attacker_id]
        names = ", ".join(units[b].card.label for b in pairing.blocker_ids)
        _emit(
            state,
            "BATTLE",
            attacker_id=pairing.attacker_id,
            blocker_ids=list(pairing.blocker_ids),
        )
        _log(state, f"Battle: {atk.card.label} vs {names}")
        for uid in pairing.dead_blockers:
            _emit(state, "UNIT_DIED", unit_id=uid, owner=dps.id, card_id=units[uid].card.id, cause="combat")
        if pairing.attacker_dies:
            _emit(state, "UNIT_DIED", unit_id=atk.unit_id, owner=atk.owner, card_id=atk.card.id, cause="combat")

    for hit in result.direct_hits:
        if state.is_over:
            break
        atk = units[hit.attacker_id]
        dps.life = max(0, dps.life - hit.amount)
        _emit(
            state,
            "DAMAGE_DEALT",
            attacker_id=hit.attacker_id,
            player=dps.id,
            amount=hit.amount,
            life=dps.life,
        )
        _log(state, f"Direct Hit! {atk.card.label} deals {hit.amount} damage.")
        _check_winner(state)

    # Deaths were decided on pre-combat values; remove them together.
    for uid in result.dead_unit_ids:
        unit = state.find_unit(uid)
        if unit is not None:
            _discard_unit(state, unit)

    state.pending_attackers = []
    state.pending_blocks = {}
    if not state.is_over:
        _enter(state, "main")


def _require_turn(state: MatchState, player: int, phases: Iterable[str]) -> str | None:
    if player not in (0, 1):
        return "Unknown player."
    if state.phase not in phases:
        return f"Not allowed during {state.phase}."
    if player != state.turn_player:
        return "Not your turn."
    return None


def _select_initial(state: MatchState, intent: SelectInitialResources) -> str | None:
    if intent.player not in (0, 1):
        return "Unknown player."
    if state.phase != "init_select":
        return f"Not allowed during {state.phase}."
    ps = state.players[intent.player]
    if ps.resources_seeded:
        return "Initial resources already selected."
    need = state.config.starting_resources
    ids = list(intent.card_ids)
    if len(ids) != need or len(set(ids)) != need:
        return f"Select exactly {need} different cards."
    cards = [ps.hand_card(cid) for cid in ids]
    if any(c is None for c in cards):
        return "Card is not in hand."

    for cid in ids:
        economy.add_resource(ps, cid, _mint_unit_id(state))
    ps.resources_seeded = True
    _emit(state, "RESOURCES_SELECTED", player=ps.id, card_ids=ids)
    _log(state, f"{ps.name} set aside {need} resources.")

    if all(p.resources_seeded for p in state.players):
        _log(state, "Battle Commencing!")
        state.turn_player = state.starting_player
        _enter(state, "upkeep")
    return None


def _advance_phase(state: MatchState, intent: AdvancePhase) -> str | None:
    err = _require_turn(state, intent.player, {src for src, _ in _MANUAL_TRANSITIONS})
    if err:
        return err
    if (state.phase, intent.phase) not in _MANUAL_TRANSITIONS:
        return f"Cannot move from {state.phase} to {intent.phase}."
    ps = state.players[intent.player]
    if intent.phase == "attack_declare" and ps.has_attacked_this_turn:
        return "Already attacked this turn."
    if intent.phase == "main" and state.phase == "attack_declare":
        state.pending_attackers = []
    _enter(state, intent.phase)
    return None


def _add_resource(state: MatchState, intent: AddResource) -> str | None:
    err = _require_turn(state, intent.player, {"resource_start", "resource_add_select"})
    if err:
        return err
    ps = state.players[intent.player]
    err = economy.check_add(ps, intent.card_id, state.config.max_resources)
    if err:
        return err
    unit = economy.add_resource(ps, intent.card_id, _mint_unit_id(state))
    _emit(state, "RESOURCE_ADDED", player=ps.id, card_id=unit.card.id, unit_id=unit.unit_id)
    _log(state, f"Converted {unit.card.label} into a resource.")
    if state.config.draw_on_add_resource:
        _draw(state, ps.id, 1)
        if state.is_over:
            return None
    _enter(state, "main")
    return None


def _select_swap_hand(state: MatchState, intent: SelectSwapHandCard) -> str | None:
    err = _require_turn(state, intent.player, {"resource_swap_select_hand"})
    if err:
        return err
    if state.players[intent.player].hand_card(intent.card_id) is None:
        return "Card is not in hand."
    state.swap_hand_card_id = intent.card_id
    _set_phase(state, "resource_swap_select_pile")
    _log(state, "Select a resource to swap with.")
    return None


def _swap_resource(state: MatchState, intent: SwapResource) -> str | None:
    err = _require_turn(
        state,
        intent.player,
        {"resource_start", "resource_swap_select_hand", "resource_swap_select_pile"},
    )
    if err:
        return err
    if state.phase == "resource_swap_select_pile" and intent.hand_card_id != state.swap_hand_card_id:
        return "Swap the hand card you selected."
    ps = state.players[intent.player]
    err = economy.check_swap(ps, intent.hand_card_id, intent.resource_unit_id)
    if err:
        return err
    unit, old = economy.swap_resource(ps, intent.hand_card_id, intent.resource_unit_id, _mint_unit_id(state))
    if state.config.auto_sort_hand:
        ps.hand = sort_hand(ps.hand)
    state.swap_hand_card_id = None
    _emit(
        state,
        "RESOURCE_SWAPPED",
        player=ps.id,
        card_id=unit.card.id,
        unit_id=unit.unit_id,
        returned_card_id=old.card.id,
    )
    _log(state, f"Swapped {unit.card.label} from hand with {old.card.label} from resources.")
    _enter(state, "main")
    return None


def _cancel_resource(state: MatchState, intent: CancelResourceChoice) -> str | None:
    err = _require_turn(state, intent.player, _RESOURCE_CHOICE_PHASES)
    if err:
        return err
    state.swap_hand_card_id = None
    _set_phase(state, "resource_start")
    return None


def _locate_target(state: MatchState, intent: PlayCard) -> BattlefieldUnit | None:
    if intent.target_unit_id is None:
        return None
    if intent.target_owner is not None:
        if intent.target_owner not in (0, 1):
            return None
        return state.players[intent.target_owner].field_unit(intent.target_unit_id)
    return state.find_unit(intent.target_unit_id)


def _play_card(state: MatchState, intent: PlayCard) -> str | None:
    err = _require_turn(state, intent.player, {"main"})
    if err:
        return err
    ps = state.players[intent.player]
    card = ps.hand_card(intent.card_id)
    if card is None:
        return "Card is not in hand."
    if not economy.can_afford(ps, card.cost):
        return "Not enough resources."

    target: BattlefieldUnit | None = None
    if card.rank in ("Q", "K"):
        if intent.target_unit_id is None:
            return "Select a target unit."
        target = _locate_target(state, intent)
        if target is None:
            return "Target unit not found."
        if card.rank == "K" and target.spectrum != card.color:
            return "Invalid Target: Color mismatch."

    economy.pay_cost(ps, card.cost)
    ps.hand.remove(card)

    if card.rank == "J":
        ps.discard.append(card)
        _log(state, f"Played Jack {card.label}.")
        _emit(state, "EFFECT_RESOLVED", player=ps.id, card_id=card.id, effect="draw", count=state.config.jack_draw)
        _draw(state, ps.id, state.config.jack_draw)
        return None

    if card.rank == "K":
        assert target is not None
        ps.discard.append(card)
        _emit(
            state,
            "EFFECT_RESOLVED",
            player=ps.id,
            card_id=card.id,
            effect="destroy",
            target_unit_id=target.unit_id,
        )
        _emit(state, "UNIT_DIED", unit_id=target.unit_id, owner=target.owner, card_id=target.card.id, cause="execute")
        _log(state, f"King {card.label} executed {target.card.label}.")
        _discard_unit(state, target)
        return None

    if card.rank == "Q":
        assert target is not None
        replaced = [c for c in target.attachments if c.rank == "Q"]
        if replaced:
            state.players[target.owner].discard.extend(replaced)
            target.attachments = [c for c in target.attachments if c.rank != "Q"]
        target.attachments.append(card)
        _emit(
            state,
            "EFFECT_RESOLVED",
            player=ps.id,
            card_id=card.id,
            effect="attach",
            target_unit_id=target.unit_id,
            replaced=[c.id for c in replaced],
        )
        _log(state, f"Queen {card.label} shifted {target.card.label}.")
        return None

    unit = BattlefieldUnit(unit_id=_mint_unit_id(state), card=card, owner=ps.id)
    ps.field.append(unit)
    _emit(state, "CARD_CONSCRIPTED", player=ps.id, card_id=card.id, unit_id=unit.unit_id)
    _log(state, f"Conscripted {card.label}.")
    return None


def _declare_attackers(state: MatchState, intent: DeclareAttackers) -> str | None:
    err = _require_turn(state, intent.player, {"attack_declare"})
    if err:
        return err
    ids = list(intent.unit_ids)
    if len(set(ids)) != len(ids):
        return "Duplicate attacker."
    ps = state.players[intent.player]
    for uid in ids:
        unit = ps.field_unit(uid)
        if unit is None:
            return "Attacker not found."
        err = combat.can_attack(ps, unit)
        if err:
            return err
    state.pending_attackers = ids
    return None


def _confirm_attack(state: MatchState, intent: ConfirmAttack) -> str | None:
    err = _require_turn(state, intent.player, {"attack_declare"})
    if err:
        return err
    ps = state.players[intent.player]
    if not state.pending_attackers:
        _log(state, "No attacks declared.")
        _enter(state, "main")
        return None

    attackers = state.attackers()
    for u in attackers:
        u.tapped = True
    ps.has_attacked_this_turn = True
    _emit(state, "ATTACK_DECLARED", player=ps.id, unit_ids=list(state.pending_attackers))
    names = ", ".join(u.card.label for u in attackers)
    if combat.any_block_possible(state.players[state.defender], attackers):
        _log(state, f"{ps.name} attacks with {names}.")
        _enter(state, "block_declare")
    else:
        _log(state, f"{ps.name} attacks with {names}. Direct Hit!")
        _enter(state, "damage")
    return None


def _declare_block(state: MatchState, intent: DeclareBlock) -> str | None:
    if state.phase != "block_declare":
        return f"Not allowed during {state.phase}."
    if intent.player != state.defender:
        return "Only the defending player may block."
    dps = state.players[intent.player]
    blocker = dps.field_unit(intent.blocker_id)
    if blocker is None:
        return "Blocker not found."
    if intent.attacker_id is not None:
        if intent.attacker_id not in state.pending_attackers:
            return "That unit is not attacking."
        attacker = state.players[state.turn_player].field_unit(intent.attacker_id)
        if attacker is None:
            return "That unit is not attacking."
        if blocker.tapped:
            return f"{blocker.card.label} is tapped."
        if not combat.can_block(attacker, blocker):
            return "Blocker must share the attacker's spectrum."
    state.pending_blocks = combat.assign_block(
        state.pending_blocks,
        intent.blocker_id,
        intent.attacker_id,
        multi_blocking=state.config.multi_blocking,
    )
    _emit(state, "BLOCK_DECLARED", player=dps.id, blocker_id=intent.blocker_id, attacker_id=intent.attacker_id)
    return None


def _confirm_blocks(state: MatchState, intent: ConfirmBlocks) -> str | None:
    if state.phase != "block_declare":
        return f"Not allowed during {state.phase}."
    if intent.player != state.defender:
        return "Only the defending player may confirm blocks."
    _enter(state, "damage")
    return None


def _end_turn(state: MatchState, intent: EndTurn) -> str | None:
    err = _require_turn(state, intent.player, {"main"})
    if err:
        return err
    _emit(state, "TURN_ENDED", player=intent.player)
    nxt = state.opponent(state.turn_player)
    if nxt == state.starting_player:
        state.turn_count += 1
    state.turn_player = nxt
    _enter(state, "upkeep")
    return None


def _resign(state: MatchState, intent: Resign) -> str | None:
    if intent.player not in (0, 1):
        return "Unknown player."
    _end_game(state, state.opponent(intent.player), f"{state.players[intent.player].name} resigned.")
    return None


def _spawn(state: MatchState, intent: SpawnCard) -> str | None:
    if not state.config.sandbox:
        return "Spawning cards is only available in sandbox mode."
    if intent.owner not in (0, 1):
        return "Unknown player."
    try:
        card = card_from_code(intent.code)
    except ValueError as e:
        return str(e)
    ps = state.players[intent.owner]
    seq = state.next_unit_seq
    card = card_from_code(intent.code, f"sb{seq}-{card.code}")
    if intent.zone == "hand":
        state.next_unit_seq += 1
        ps.hand.append(card)
        uid = None
    elif intent.zone == "field":
        uid = _mint_unit_id(state)
        ps.field.append(BattlefieldUnit(unit_id=uid, card=card, owner=ps.id, summoning_sick=False))
    elif intent.zone == "resources":
        if len(ps.resources) >= state.config.max_resources:
            return "Resource row is full."
        uid = _mint_unit_id(state)
        ps.resources.append(BattlefieldUnit(unit_id=uid, card=card, owner=ps.id, summoning_sick=False))
    else:
        return f"Unknown zone: {intent.zone}"
    _emit(state, "CARD_SPAWNED", player=ps.id, card_id=card.id, zone=intent.zone, unit_id=uid)
    return None


def _apply(state: MatchState, intent: Intent) -> str | None:
    if isinstance(intent, SelectInitialResources):
        return _select_initial(state, intent)
    if isinstance(intent, AdvancePhase):
        return _advance_phase(state, intent)
    if isinstance(intent, AddResource):
        return _add_resource(state, intent)
    if isinstance(intent, SelectSwapHandCard):
        return _select_swap_hand(state, intent)
    if isinstance(intent, SwapResource):
        return _swap_resource(state, intent)
    if isinstance(intent, CancelResourceChoice):
        return _cancel_resource(state, intent)
    if isinstance(intent, PlayCard):
        return _play_card(state, intent)
    if isinstance(intent, DeclareAttackers):
        return _declare_attackers(state, intent)
    if isinstance(intent, ConfirmAttack):
        return _confirm_attack(state, intent)
    if isinstance(intent, DeclareBlock):
        return _declare_block(state, intent)
    if isinstance(intent, ConfirmBlocks):
        return _confirm_blocks(state, intent)
    if isinstance(intent, EndTurn):
        return _end_turn(state, intent)
    if isinstance(intent, Resign):
        return _resign(state, intent)
    if isinstance(intent, SpawnCard):
        return _spawn(state, intent)
    return "Unknown intent."


def step(state: MatchState, intent: Intent) -> StepResult:
    """Apply one intent and return the resulting match.

    The input `state` is never modified: work happens on a private copy that
    is only returned when the intent is accepted. A rejected intent returns
    the original state together with the reason.
    """
    if state.is_over:
        return StepResult(ok=False, state=state, events=[], error="Match already ended.")

    # Log entries are never mutated once appended; share them between states.
    memo: dict[int, object] = {
        id(state.log): list(state.log),
        id(state.event_log): list(state.event_log),
        id(state.intent_log): list(state.intent_log),
    }
    nxt = copy.deepcopy(state, memo)
    mark = len(nxt.event_log)
    error = _apply(nxt, intent)
    if error is not None:
        logger.info("Rejected %s: %s", type(intent).__name__, error)
        return StepResult(ok=False, state=state, events=[], error=error)

    nxt.intent_log.append(intent)
    return StepResult(ok=True, state=nxt, events=nxt.event_log[mark:])


def _unique_card(code: str, used: set[str]) -> Card:
    base = code.strip().upper()
    card_id = base
    n = 2
    while card_id in used:
        card_id = f"{base}~{n}"
        n += 1
    used.add(card_id)
    return card_from_code(base, card_id)


_SCENARIO_PHASES: frozenset[str] = frozenset({"init_select", "upkeep", "main"})


def _check_scenario(cfg: MatchConfig, setup: ScenarioSetup) -> None:
    if setup.phase not in _SCENARIO_PHASES:
        raise ValueError(f"Scenarios cannot start in {setup.phase}.")
    if setup.starting_player not in (0, 1):
        raise ValueError("Scenario starting_player must be 0 or 1.")
    for i in (0, 1):
        if len(setup.resources[i]) > cfg.max_resources:
            raise ValueError(f"Seat {i} has more than {cfg.max_resources} resources.")
        life = setup.life[i]
        if life is not None and life <= 0:
            raise ValueError(f"Seat {i} must start with positive life.")


def _apply_scenario(state: MatchState, setup: ScenarioSetup) -> None:
    used: set[str] = set()
    for ps in state.players:
        i = ps.id
        ps.hand = [_unique_card(code, used) for code in setup.hands[i]]
        ps.resources = [
            BattlefieldUnit(unit_id=c.id, card=c, owner=i, summoning_sick=False)
            for c in (_unique_card(code, used) for code in setup.resources[i])
        ]
        ps.field = [
            BattlefieldUnit(unit_id=c.id, card=c, owner=i, summoning_sick=False)
            for c in (_unique_card(code, used) for code in setup.fields[i])
        ]
        life = setup.life[i]
        if life is not None:
            ps.life = life
        ps.resources_seeded = setup.phase != "init_select"
    state.deck = [_unique_card(code, used) for code in setup.deck]
    state.starting_player = setup.starting_player
    state.turn_player = setup.starting_player
    state.phase = setup.phase
    if setup.phase == "upkeep":
        _enter(state, "upkeep")


def new_match(
    seed: int,
    config: MatchConfig | None = None,
    scenario: ScenarioSetup | None = None,
) -> MatchState:
    cfg = config or MatchConfig()
    if cfg.starting_player not in (None, 0, 1):
        raise ValueError("starting_player must be 0, 1 or None.")
    if cfg.mode == "scenario" and scenario is None:
        raise ValueError("Scenario mode needs a scenario setup.")
    if scenario is not None and cfg.mode not in ("scenario", "sandbox"):
        raise ValueError("Scenario setups are only valid in scenario or sandbox mode.")
    if scenario is not None:
        _check_scenario(cfg, scenario)

    rng = random.Random(seed)
    players = [
        PlayerState(id=i, name=cfg.player_names[i], life=cfg.starting_life, is_cpu=cfg.cpu_players[i])
        for i in (0, 1)
    ]
    state = MatchState(config=cfg, seed=seed, rng=rng, players=players)
    state.log.append(f"Game Started. Mode: {cfg.mode}.")

    if scenario is not None:
        _apply_scenario(state, scenario)
        return state

    if cfg.mode == "pro":
        for ps in players:
            ps.library = create_deck(rng, prefix=f"p{ps.id}-")
    else:
        state.deck = create_deck(rng)

    starting = cfg.starting_player if cfg.starting_player is not None else rng.randrange(2)
    state.starting_player = starting
    state.turn_player = starting

    if cfg.sandbox:
        for ps in players:
            ps.resources_seeded = True
        state.phase = "main"
        return state

    _log(state, f"{players[starting].name} goes first.")
    for ps in players:
        _draw(state, ps.id, cfg.opening_hand)
    _log(state, f"Deployment Phase: Select {cfg.starting_resources} resources.")
    return state


def replay(
    seed: int,
    intents: Iterable[Intent],
    config: MatchConfig | None = None,
    scenario: ScenarioSetup | None = None,
) -> MatchState:
    state = new_match(seed=seed, config=config, scenario=scenario)
    for intent in intents:
        state = step(state, intent).state
        if state.is_over:
            break
    return state
