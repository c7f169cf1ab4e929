from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal, Sequence

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
    SelectInitialResources,
    SelectSwapHandCard,
    SwapResource,
)
from .board import BattlefieldUnit, PlayerState
from .match import MatchState, decision_player, step
from .types import Card, Spectrum

logger = logging.getLogger(__name__)

_SPECTRA: tuple[Spectrum, ...] = ("physical", "magical")


@dataclass(frozen=True)
class AISpec:
    """Heuristic AI tuning parameters.

    The defaults reproduce the stock CPU opponent. Scores are unitless
    and only compared against each other.
    """

    init_keep_ace: int = 100
    init_keep_tactic: int = 90
    init_keep_cheap: int = 80
    init_cheap_value: int = 4

    keep_ace: int = 200
    keep_tactic: int = 90
    keep_playable: int = 110
    keep_next_turn: int = 80
    keep_base: int = 20

    swap_threshold_early: int = 80  # resources < 5
    swap_threshold_mid: int = 50  # resources < 8
    swap_threshold_default: int = 40
    swap_threshold_late: int = 10  # resources >= 9

    king_min_value: int = 7
    king_desperate_life: int = 10
    king_desperate_value: int = 5
    queen_min_score: int = 30
    wide_bonus_per_unit: int = 3

    trade_max_value: int = 8
    trade_desperate_life: int = 10

    chump_threshold: int = 4
    chump_threshold_low_life: int = 2
    chump_low_life: int = 10
    chump_ace_value: int = 10


ResourceAction = Literal["add", "swap", "skip"]


@dataclass(frozen=True)
class ResourceDecision:
    action: ResourceAction
    hand_card_id: str | None = None
    resource_unit_id: str | None = None


@dataclass(frozen=True)
class MainPhasePlay:
    card_id: str
    target_unit_id: str | None = None
    target_owner: int | None = None


# -- resource step ----------------------------------------------------------


def _init_preference(card: Card, spec: AISpec) -> int:
    if card.is_ace:
        return spec.init_keep_ace
    if card.is_tactic:
        return spec.init_keep_tactic
    if card.value <= spec.init_cheap_value:
        return spec.init_keep_cheap
    return 0


def choose_initial_resources(hand: Sequence[Card], count: int = 3, spec: AISpec | None = None) -> list[str]:
    """Pick the `count` least useful opening cards (mid/high soldiers first)."""
    spec = spec or AISpec()
    ranked = sorted(hand, key=lambda c: _init_preference(c, spec))
    return [c.id for c in ranked[:count]]


def keep_score(card: Card, resources: int, spec: AISpec | None = None) -> int:
    spec = spec or AISpec()
    if card.is_ace:
        return spec.keep_ace
    if card.is_tactic:
        return spec.keep_tactic
    if card.cost <= resources:
        return spec.keep_playable
    if card.cost == resources + 1:
        return spec.keep_next_turn
    return spec.keep_base + card.value


def swap_threshold(resources: int, spec: AISpec | None = None) -> int:
    spec = spec or AISpec()
    if resources < 5:
        return spec.swap_threshold_early
    if resources < 8:
        return spec.swap_threshold_mid
    if resources >= 9:
        return spec.swap_threshold_late
    return spec.swap_threshold_default


def plan_resource_step(
    player: PlayerState,
    spec: AISpec | None = None,
    max_resources: int = economy.MAX_RESOURCES,
) -> ResourceDecision:
    spec = spec or AISpec()
    n = len(player.resources)
    hand = sorted(player.hand, key=lambda c: (keep_score(c, n, spec), c.value))
    worst = hand[0] if hand else None
    pile = sorted(player.resources, key=lambda r: -keep_score(r.card, n, spec))
    best = pile[0] if pile else None

    if worst is not None and best is not None:
        if keep_score(best.card, n, spec) > keep_score(worst, n, spec) + swap_threshold(n, spec):
            return ResourceDecision("swap", hand_card_id=worst.id, resource_unit_id=best.unit_id)
    if worst is not None and n < max_resources:
        return ResourceDecision("add", hand_card_id=worst.id)
    return ResourceDecision("skip")


# -- main phase -------------------------------------------------------------


def _strongest(units: Sequence[BattlefieldUnit]) -> BattlefieldUnit | None:
    if not units:
        return None
    return sorted(units, key=lambda u: -u.value)[0]


def _queen_score_enemy(me: PlayerState, target: BattlefieldUnit, color: Spectrum) -> int:
    score = 0
    tval = target.value
    blocked = _strongest(
        [u for u in me.field if not u.tapped and not u.summoning_sick and u.spectrum == target.spectrum]
    )
    if blocked is not None and blocked.value >= tval:
        score += 40
        if blocked.value > tval:
            score += 10

    blockers_new = [u for u in me.field if not u.tapped and u.spectrum == color]
    blockers_old = [u for u in me.field if not u.tapped and u.spectrum == target.spectrum]
    best_blocker = _strongest(blockers_new)
    if not blockers_old and blockers_new:
        score += 50
        if best_blocker is not None and best_blocker.value > tval:
            score += 20
    elif not blockers_old and not blockers_new:
        score -= 50
    return score


def _queen_score_self(opp: PlayerState, target: BattlefieldUnit, color: Spectrum) -> int:
    score = 0
    tval = target.value
    biggest_old = _strongest([u for u in opp.field if not u.tapped and u.spectrum == target.spectrum])
    threats_new = [u for u in opp.field if not u.tapped and u.spectrum == color]
    biggest_new = _strongest(threats_new)

    if biggest_old is not None and biggest_old.value >= tval:
        if biggest_new is None:
            score += 50
        elif biggest_new.value < tval:
            score += 40
    elif biggest_old is None and biggest_new is not None:
        score -= 30

    if biggest_new is not None and tval >= biggest_new.value:
        score += 30
    return score


def plan_main_phase(state: MatchState, player: int, spec: AISpec | None = None) -> MainPhasePlay | None:
    """Next card to play this main phase, or None when done playing."""
    spec = spec or AISpec()
    me = state.players[player]
    opp = state.players[state.opponent(player)]
    budget = economy.available(me)
    playable = [c for c in me.hand if c.cost <= budget]
    if not playable:
        return None

    for king in (c for c in playable if c.rank == "K"):
        target = _strongest([u for u in opp.field if u.spectrum == king.color])
        if target is None:
            continue
        if target.value >= spec.king_min_value or (
            me.life <= spec.king_desperate_life and target.value >= spec.king_desperate_value
        ):
            return MainPhasePlay(king.id, target.unit_id, opp.id)

    best_queen: tuple[int, MainPhasePlay] | None = None
    for queen in (c for c in playable if c.rank == "Q"):
        for t in opp.field:
            if t.spectrum == queen.color:
                continue
            score = _queen_score_enemy(me, t, queen.color)
            if score > spec.queen_min_score and (best_queen is None or score > best_queen[0]):
                best_queen = (score, MainPhasePlay(queen.id, t.unit_id, opp.id))
        for t in me.field:
            if t.spectrum == queen.color:
                continue
            score = _queen_score_self(opp, t, queen.color)
            if score > spec.queen_min_score and (best_queen is None or score > best_queen[0]):
                best_queen = (score, MainPhasePlay(queen.id, t.unit_id, me.id))
    if best_queen is not None:
        return best_queen[1]

    for jack in (c for c in playable if c.rank == "J"):
        return MainPhasePlay(jack.id)

    soldiers = sorted((c for c in playable if c.is_soldier), key=lambda c: -c.value)
    if not soldiers:
        return None
    big = soldiers[0]
    wide: list[Card] = []
    spent = 0
    for c in sorted(soldiers[1:], key=lambda c: c.cost):
        if spent + c.cost <= budget:
            wide.append(c)
            spent += c.cost
    if len(wide) > 1:
        behind = max(0, len(opp.field) - len(me.field))
        if sum(c.value for c in wide) + behind * spec.wide_bonus_per_unit >= big.value:
            return MainPhasePlay(wide[0].id)
    return MainPhasePlay(big.id)


# -- combat -----------------------------------------------------------------


def _leak(attackers: Sequence[BattlefieldUnit], blockers: Sequence[BattlefieldUnit]) -> int:
    # Rational blockers soak the biggest hits in each spectrum first.
    total = 0
    for s in _SPECTRA:
        values = sorted((u.value for u in attackers if u.spectrum == s), reverse=True)
        n_block = sum(1 for b in blockers if b.spectrum == s)
        total += sum(values[n_block:])
    return total


def plan_attack(state: MatchState, player: int, spec: AISpec | None = None) -> list[str]:
    spec = spec or AISpec()
    me = state.players[player]
    opp = state.players[state.opponent(player)]
    potential = [u for u in me.field if not u.tapped and not u.summoning_sick]
    blockers = [u for u in opp.field if not u.tapped]

    if potential and _leak(potential, blockers) >= opp.life:
        return [u.unit_id for u in potential]

    candidates: list[BattlefieldUnit] = []
    for atk in potential:
        valid = [b for b in blockers if b.spectrum == atk.spectrum]
        if not valid:
            candidates.append(atk)
            continue
        if any(b.value > atk.value and not b.is_ace and not atk.is_ace for b in valid):
            continue
        even = any(b.value == atk.value or b.is_ace != atk.is_ace for b in valid)
        if even:
            if atk.value <= spec.trade_max_value or me.life < spec.trade_desperate_life:
                candidates.append(atk)
            continue
        candidates.append(atk)

    # Everything the opponent has untaps before their crackback.
    threats = list(opp.field)

    def staying_home() -> list[BattlefieldUnit]:
        return [u for u in me.field if u not in candidates]

    while candidates and _leak(threats, staying_home()) >= me.life:
        home = staying_home()
        need = {
            s: sum(1 for t in threats if t.spectrum == s) > sum(1 for b in home if b.spectrum == s)
            for s in _SPECTRA
        }
        candidates.sort(key=lambda u: u.value)
        pulled = False
        for s in _SPECTRA:
            if not need[s]:
                continue
            for i, c in enumerate(candidates):
                if c.spectrum == s:
                    del candidates[i]
                    pulled = True
                    break
            if pulled:
                break
        if not pulled:
            break

    return [u.unit_id for u in candidates]


def find_multi_block(target: int, blockers: Sequence[BattlefieldUnit]) -> list[BattlefieldUnit] | None:
    """Cheapest blocker subset whose combined value reaches `target`."""
    best: list[BattlefieldUnit] | None = None
    best_sum = float("inf")

    def search(i: int, total: int, chosen: list[BattlefieldUnit]) -> None:
        nonlocal best, best_sum
        if total >= best_sum:
            return
        if total >= target:
            best_sum = total
            best = list(chosen)
            return
        if i >= len(blockers):
            return
        search(i + 1, total + blockers[i].value, chosen + [blockers[i]])
        search(i + 1, total, chosen)

    search(0, 0, [])
    return best


def plan_blocks(state: MatchState, player: int, spec: AISpec | None = None) -> dict[str, str]:
    """Blocker unit id -> attacker unit id for the pending attack."""
    spec = spec or AISpec()
    me = state.players[player]
    attackers = sorted(state.attackers(), key=lambda u: -u.value)
    mine = [u for u in me.field if not u.tapped]
    used: set[str] = set()
    plan: dict[str, str] = {}
    lethal = sum(a.value for a in attackers) >= me.life

    for atk in attackers:
        valid = [b for b in mine if b.unit_id not in used and combat.can_block(atk, b)]
        if not valid:
            continue
        chosen: list[BattlefieldUnit] = []
        killer = next((b for b in valid if b.value > atk.value and not b.is_ace), None)
        trader = next((b for b in valid if b.value == atk.value), None)
        ace = next((b for b in valid if b.is_ace), None) if not atk.is_ace else None
        if killer is not None:
            chosen = [killer]
        elif trader is not None:
            chosen = [trader]
        elif ace is not None:
            chosen = [ace]

        if not chosen and state.config.multi_blocking:
            combo = find_multi_block(atk.value, valid)
            if combo and (lethal or sum(b.value for b in combo) <= atk.value):
                chosen = combo

        if not chosen:
            weakest = sorted(valid, key=lambda b: b.value)[0]
            lost = spec.chump_ace_value if weakest.is_ace else weakest.value
            threshold = spec.chump_threshold_low_life if me.life < spec.chump_low_life else spec.chump_threshold
            if lethal or atk.value - lost >= threshold:
                chosen = [weakest]

        for b in chosen:
            plan[b.unit_id] = atk.unit_id
            used.add(b.unit_id)
    return plan


# -- driver -----------------------------------------------------------------


def _resource_intent(state: MatchState, player: int, spec: AISpec) -> Intent:
    ps = state.players[player]
    decision = plan_resource_step(ps, spec, state.config.max_resources)
    phase = state.phase
    if phase == "resource_start":
        if decision.action == "add":
            return AdvancePhase(player=player, phase="resource_add_select")
        if decision.action == "swap":
            return AdvancePhase(player=player, phase="resource_swap_select_hand")
        return AdvancePhase(player=player, phase="main")
    if phase == "resource_add_select" and decision.action == "add":
        assert decision.hand_card_id is not None
        return AddResource(player=player, card_id=decision.hand_card_id)
    if phase == "resource_swap_select_hand" and decision.action == "swap":
        assert decision.hand_card_id is not None
        return SelectSwapHandCard(player=player, card_id=decision.hand_card_id)
    if phase == "resource_swap_select_pile" and decision.action == "swap":
        assert decision.resource_unit_id is not None
        hand_card_id = state.swap_hand_card_id or decision.hand_card_id
        assert hand_card_id is not None
        return SwapResource(player=player, hand_card_id=hand_card_id, resource_unit_id=decision.resource_unit_id)
    return CancelResourceChoice(player=player)


def choose_intent(state: MatchState, player: int, spec: AISpec | None = None) -> Intent:
    """The single next intent the AI would submit for `player`."""
    spec = spec or AISpec()
    ps = state.players[player]
    phase = state.phase

    if phase == "init_select":
        ids = choose_initial_resources(ps.hand, state.config.starting_resources, spec)
        return SelectInitialResources(player=player, card_ids=tuple(ids))

    if phase in ("resource_start", "resource_add_select", "resource_swap_select_hand", "resource_swap_select_pile"):
        return _resource_intent(state, player, spec)

    if phase == "main":
        play = plan_main_phase(state, player, spec)
        if play is not None:
            return PlayCard(
                player=player,
                card_id=play.card_id,
                target_unit_id=play.target_unit_id,
                target_owner=play.target_owner,
            )
        if not ps.has_attacked_this_turn and plan_attack(state, player, spec):
            return AdvancePhase(player=player, phase="attack_declare")
        return EndTurn(player=player)

    if phase == "attack_declare":
        ids = plan_attack(state, player, spec)
        if not ids:
            return AdvancePhase(player=player, phase="main")
        if list(state.pending_attackers) != ids:
            return DeclareAttackers(player=player, unit_ids=tuple(ids))
        return ConfirmAttack(player=player)

    if phase == "block_declare":
        for blocker_id, attacker_id in plan_blocks(state, player, spec).items():
            if state.pending_blocks.get(blocker_id) != attacker_id:
                return DeclareBlock(player=player, blocker_id=blocker_id, attacker_id=attacker_id)
        return ConfirmBlocks(player=player)

    raise RuntimeError(f"AI has no move during {phase}")


def ai_take_turn(state: MatchState, spec: AISpec | None = None, *, max_steps: int = 10_000) -> MatchState:
    """Advance the match while the deciding seat is CPU-controlled.

    Returns the match once a human seat must decide or the match ends. The
    policies are deterministic, so a given seed always plays out the same.
    """
    spec = spec or AISpec()
    for _ in range(max_steps):
        player = decision_player(state)
        if player is None or not state.players[player].is_cpu:
            return state
        intent = choose_intent(state, player, spec)
        res = step(state, intent)
        if not res.ok:
            raise RuntimeError(f"AI intent {intent!r} rejected: {res.error}")
        state = res.state
    logger.warning("AI stopped after %d steps (seed=%s)", max_steps, state.seed)
    return state
