"""Resource row bookkeeping: paying costs and the add/swap/skip resource step."""

from __future__ import annotations

from .board import BattlefieldUnit, PlayerState
from .types import InvariantViolation

MAX_RESOURCES = 10


def untapped_resources(player: PlayerState) -> list[BattlefieldUnit]:
    return [r for r in player.resources if not r.tapped]


def available(player: PlayerState) -> int:
    return len(untapped_resources(player))


def can_afford(player: PlayerState, cost: int) -> bool:
    return cost <= available(player)


def pay_cost(player: PlayerState, amount: int) -> list[str]:
    """Tap exactly `amount` untapped resources and return their unit ids.

    Affordability is the caller's precondition; violating it raises.
    """
    if amount < 0:
        raise InvariantViolation(f"Negative cost: {amount}")
    free = untapped_resources(player)
    if len(free) < amount:
        raise InvariantViolation(
            f"Player {player.id} cannot pay {amount} with {len(free)} untapped resources"
        )
    tapped: list[str] = []
    for r in free[:amount]:
        if r.tapped:
            raise InvariantViolation(f"Resource {r.unit_id} is already tapped")
        r.tapped = True
        tapped.append(r.unit_id)
    return tapped


def resource_step_skip_reason(
    player: PlayerState,
    *,
    first_turn_of_match: bool,
    max_resources: int = MAX_RESOURCES,
) -> str | None:
    if first_turn_of_match:
        return "Turn 1: Resource Step skipped."
    if len(player.resources) >= max_resources:
        return "Max Resources reached."
    return None


def check_add(player: PlayerState, card_id: str, max_resources: int = MAX_RESOURCES) -> str | None:
    if len(player.resources) >= max_resources:
        return "Resource row is full."
    if player.hand_card(card_id) is None:
        return "Card is not in hand."
    return None


def add_resource(player: PlayerState, card_id: str, unit_id: str) -> BattlefieldUnit:
    card = player.hand_card(card_id)
    if card is None:
        raise InvariantViolation(f"Card {card_id} is not in player {player.id}'s hand")
    player.hand.remove(card)
    unit = BattlefieldUnit(unit_id=unit_id, card=card, owner=player.id, summoning_sick=False)
    player.resources.append(unit)
    return unit


def check_swap(player: PlayerState, hand_card_id: str, resource_unit_id: str) -> str | None:
    if player.hand_card(hand_card_id) is None:
        return "Card is not in hand."
    if player.resource_unit(resource_unit_id) is None:
        return "Resource not found."
    return None


def swap_resource(
    player: PlayerState, hand_card_id: str, resource_unit_id: str, unit_id: str
) -> tuple[BattlefieldUnit, BattlefieldUnit]:
    """Exchange a hand card with a resource card in place.

    Returns (new resource unit, removed resource unit). Row length and the
    hand+resources card count are unchanged.
    """
    card = player.hand_card(hand_card_id)
    old = player.resource_unit(resource_unit_id)
    if card is None or old is None:
        raise InvariantViolation("Swap requires a hand card and a resource unit")
    hand_idx = player.hand.index(card)
    res_idx = player.resources.index(old)
    unit = BattlefieldUnit(unit_id=unit_id, card=card, owner=player.id, summoning_sick=False)
    player.hand[hand_idx] = old.card
    player.resources[res_idx] = unit
    return unit, old
