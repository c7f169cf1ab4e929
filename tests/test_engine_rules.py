from __future__ import annotations

import pytest

from conftest import apply_all, event_types, scenario_match
from spectrumbattle.engine.actions import (
    AddResource,
    AdvancePhase,
    CancelResourceChoice,
    ConfirmAttack,
    ConfirmBlocks,
    DeclareAttackers,
    DeclareBlock,
    EndTurn,
    PlayCard,
    Resign,
    SelectInitialResources,
    SelectSwapHandCard,
    SpawnCard,
    SwapResource,
)
from spectrumbattle.engine.match import MatchConfig, decision_player, new_match, step
from spectrumbattle.engine.serialize import snapshot
from spectrumbattle.engine.types import ScenarioSetup

FOUR_RES = ("2D", "3D", "4D", "5D")
SIX_RES = ("2D", "3D", "4D", "5D", "6D", "7D")


def _attack(state, player, *unit_ids):
    return apply_all(
        state,
        AdvancePhase(player=player, phase="attack_declare"),
        DeclareAttackers(player=player, unit_ids=tuple(unit_ids)),
        ConfirmAttack(player=player),
    )


def test_unblocked_attacker_hits_life() -> None:
    state = scenario_match(fields=(["7S"], []), life=(None, 10))
    state = apply_all(
        state,
        AdvancePhase(player=0, phase="attack_declare"),
        DeclareAttackers(player=0, unit_ids=("7S",)),
    )
    res = step(state, ConfirmAttack(player=0))
    assert res.ok
    assert res.state.players[1].life == 3
    assert res.state.phase == "main"
    dmg = [e for e in res.events if e["type"] == "DAMAGE_DEALT"]
    assert dmg == [{"type": "DAMAGE_DEALT", "attacker_id": "7S", "player": 1, "amount": 7, "life": 3}]
    assert res.state.players[0].field_unit("7S").tapped
    assert res.state.players[0].has_attacked_this_turn


def test_equal_trade_through_block_step() -> None:
    state = scenario_match(fields=(["5H"], ["5D"]))
    state = _attack(state, 0, "5H")
    assert state.phase == "block_declare"
    assert decision_player(state) == 1

    state = apply_all(state, DeclareBlock(player=1, blocker_id="5D", attacker_id="5H"))
    res = step(state, ConfirmBlocks(player=1))
    assert res.ok
    s = res.state
    assert s.players[0].field == [] and s.players[1].field == []
    assert [c.id for c in s.players[0].discard] == ["5H"]
    assert [c.id for c in s.players[1].discard] == ["5D"]
    assert s.players[0].life == 20 and s.players[1].life == 20
    types = event_types(res.events)
    assert types.index("BATTLE") < types.index("UNIT_DIED")
    assert s.phase == "main"


def test_only_defender_may_block() -> None:
    state = _attack(scenario_match(fields=(["5H"], ["5D"])), 0, "5H")
    res = step(state, DeclareBlock(player=0, blocker_id="5D", attacker_id="5H"))
    assert not res.ok
    assert res.state is state


def test_cross_spectrum_block_rejected() -> None:
    state = _attack(scenario_match(fields=(["5H", "3S"], ["5D"])), 0, "5H", "3S")
    res = step(state, DeclareBlock(player=1, blocker_id="5D", attacker_id="3S"))
    assert not res.ok
    assert "spectrum" in (res.error or "")


def test_no_possible_blocks_skips_to_damage() -> None:
    state = scenario_match(fields=(["6S"], ["9H"]))
    state = _attack(state, 0, "6S")
    assert state.phase == "main"
    assert state.players[1].life == 14
    assert any("Direct Hit!" in line for line in state.log)


def test_confirm_without_attackers_returns_to_main() -> None:
    state = scenario_match(fields=(["6S"], []))
    state = apply_all(state, AdvancePhase(player=0, phase="attack_declare"), ConfirmAttack(player=0))
    assert state.phase == "main"
    assert "No attacks declared." in state.log
    assert not state.players[0].has_attacked_this_turn


def test_only_one_attack_per_turn() -> None:
    state = _attack(scenario_match(fields=(["6S", "2S"], [])), 0, "6S")
    res = step(state, AdvancePhase(player=0, phase="attack_declare"))
    assert not res.ok
    assert res.error == "Already attacked this turn."


def test_lethal_damage_ends_match_with_life_floored() -> None:
    state = scenario_match(fields=(["7S", "4H"], []), life=(None, 3))
    state = _attack(state, 0, "7S", "4H")
    assert state.is_over
    assert state.winner == 0
    assert state.players[1].life == 0
    assert state.event_log[-1]["type"] == "GAME_ENDED"
    # The second direct hit never lands once the match is decided.
    assert sum(1 for e in state.event_log if e["type"] == "DAMAGE_DEALT") == 1
    assert decision_player(state) is None
    res = step(state, EndTurn(player=0))
    assert not res.ok


def test_king_color_mismatch_rejected_without_cost() -> None:
    state = scenario_match(hands=(["KH"], []), resources=(FOUR_RES, []), fields=([], ["9S"]))
    before = snapshot(state)
    res = step(state, PlayCard(player=0, card_id="KH", target_unit_id="9S", target_owner=1))
    assert not res.ok
    assert "Color mismatch" in (res.error or "")
    assert res.state is state
    assert res.events == []
    assert snapshot(state) == before
    assert all(not r.tapped for r in state.players[0].resources)


def test_king_executes_matching_unit_and_its_attachments() -> None:
    state = scenario_match(
        hands=(["KH", "QD"], []),
        resources=(FOUR_RES + ("6D", "7D", "8D"), []),
        fields=([], ["9S"]),
    )
    state = apply_all(state, PlayCard(player=0, card_id="QD", target_unit_id="9S", target_owner=1))
    assert state.players[1].field_unit("9S").spectrum == "magical"

    res = step(state, PlayCard(player=0, card_id="KH", target_unit_id="9S", target_owner=1))
    assert res.ok
    s = res.state
    assert s.players[1].field == []
    assert sorted(c.id for c in s.players[1].discard) == ["9S", "QD"]
    assert [c.id for c in s.players[0].discard] == ["KH"]
    assert all(r.tapped for r in s.players[0].resources)
    assert "UNIT_DIED" in event_types(res.events)


def test_queen_replaces_existing_queen() -> None:
    state = scenario_match(hands=(["QH", "QS"], []), resources=(SIX_RES, []), fields=([], ["8S"]))
    state = apply_all(
        state,
        PlayCard(player=0, card_id="QH", target_unit_id="8S", target_owner=1),
        PlayCard(player=0, card_id="QS", target_unit_id="8S", target_owner=1),
    )
    target = state.players[1].field_unit("8S")
    assert [c.id for c in target.attachments] == ["QS"]
    assert target.spectrum == "physical"
    assert [c.id for c in state.players[1].discard] == ["QH"]


def test_queen_needs_a_target() -> None:
    state = scenario_match(hands=(["QH"], []), resources=(FOUR_RES, []))
    res = step(state, PlayCard(player=0, card_id="QH"))
    assert not res.ok
    assert res.error == "Select a target unit."


def test_jack_draws_two() -> None:
    state = scenario_match(hands=(["JS"], []), resources=(["2D", "3D"], []), deck=["9C", "4H", "5H"])
    res = step(state, PlayCard(player=0, card_id="JS"))
    assert res.ok
    s = res.state
    assert sorted(c.id for c in s.players[0].hand) == ["4H", "9C"]
    assert [c.id for c in s.players[0].discard] == ["JS"]
    assert [c.id for c in s.deck] == ["5H"]
    assert event_types(res.events).count("CARD_DRAWN") == 2


def test_not_enough_resources() -> None:
    state = scenario_match(hands=(["9S"], []), resources=(["2D", "3D"], []))
    res = step(state, PlayCard(player=0, card_id="9S"))
    assert not res.ok
    assert res.error == "Not enough resources."


def test_conscripted_soldier_is_summoning_sick() -> None:
    state = scenario_match(hands=(["3S"], []), resources=(["2D", "3D", "4D"], []))
    res = step(state, PlayCard(player=0, card_id="3S"))
    assert res.ok
    conscripted = [e for e in res.events if e["type"] == "CARD_CONSCRIPTED"]
    uid = str(conscripted[0]["unit_id"])
    state = apply_all(res.state, AdvancePhase(player=0, phase="attack_declare"))
    res2 = step(state, DeclareAttackers(player=0, unit_ids=(uid,)))
    assert not res2.ok
    assert "summoning sickness" in (res2.error or "")
    assert state.players[0].field_unit(uid).summoning_sick


def test_wrong_player_and_wrong_phase_rejected() -> None:
    state = scenario_match(fields=(["6S"], []))
    res = step(state, EndTurn(player=1))
    assert not res.ok and res.error == "Not your turn."
    res = step(state, ConfirmBlocks(player=1))
    assert not res.ok
    res = step(state, AddResource(player=0, card_id="6S"))
    assert not res.ok
    assert res.state is state


def test_resource_row_full_skips_to_main() -> None:
    full = ("2C", "3C", "4C", "5C", "6C", "7C", "8C", "9C", "10C", "AC")
    state = scenario_match(resources=([], full), deck=["2D", "3D"])
    res = step(state, EndTurn(player=0))
    assert res.ok
    s = res.state
    assert s.turn_player == 1
    assert s.phase == "main"
    assert "Max Resources reached." in s.log
    assert [c.id for c in s.players[1].hand] == ["2D"]


def _resource_turn():
    # Player 2 starts, so player 1's first turn has a resource step.
    state = scenario_match(
        hands=(["9S"], []),
        resources=(["AS", "2D"], []),
        deck=["4H", "5H", "6H"],
        starting_player=1,
    )
    state = apply_all(state, EndTurn(player=1))
    assert state.phase == "resource_start"
    assert state.turn_player == 0
    return state


def test_add_resource_draws_replacement() -> None:
    state = _resource_turn()
    assert [c.id for c in state.players[0].hand] == ["9S", "4H"]
    state = apply_all(
        state,
        AdvancePhase(player=0, phase="resource_add_select"),
        AddResource(player=0, card_id="9S"),
    )
    ps = state.players[0]
    assert [r.card.id for r in ps.resources] == ["AS", "2D", "9S"]
    assert not ps.resources[-1].tapped
    assert sorted(c.id for c in ps.hand) == ["4H", "5H"]
    assert state.phase == "main"


def test_swap_resource_in_place() -> None:
    state = _resource_turn()
    state = apply_all(
        state,
        AdvancePhase(player=0, phase="resource_swap_select_hand"),
        SelectSwapHandCard(player=0, card_id="9S"),
    )
    assert state.phase == "resource_swap_select_pile"
    assert state.swap_hand_card_id == "9S"
    state = apply_all(state, SwapResource(player=0, hand_card_id="9S", resource_unit_id="AS"))
    ps = state.players[0]
    assert [r.card.id for r in ps.resources] == ["9S", "2D"]
    assert sorted(c.id for c in ps.hand) == ["4H", "AS"]
    assert state.phase == "main"
    assert state.swap_hand_card_id is None


def test_cancel_resource_choice() -> None:
    state = _resource_turn()
    state = apply_all(
        state,
        AdvancePhase(player=0, phase="resource_add_select"),
        CancelResourceChoice(player=0),
    )
    assert state.phase == "resource_start"
    state = apply_all(state, AdvancePhase(player=0, phase="main"))
    assert len(state.players[0].resources) == 2


def test_upkeep_untaps_and_clears_sickness() -> None:
    state = scenario_match(
        hands=(["3S"], []),
        resources=(["2D", "3D", "4D"], []),
        deck=["4H", "5H", "6H"],
    )
    state = apply_all(state, PlayCard(player=0, card_id="3S"), EndTurn(player=0))
    state = apply_all(state, AdvancePhase(player=1, phase="main"), EndTurn(player=1))
    ps = state.players[0]
    assert state.turn_player == 0
    assert state.turn_count == 2
    assert all(not r.tapped for r in ps.resources)
    assert all(not u.summoning_sick for u in ps.field)
    assert state.phase == "resource_start"


def test_turn_counter_increments_on_starting_seat() -> None:
    state = scenario_match(deck=["2H", "3H", "4H", "5H"])
    assert state.turn_count == 1
    state = apply_all(state, EndTurn(player=0))
    assert state.turn_count == 1
    state = apply_all(state, AdvancePhase(player=1, phase="main"), EndTurn(player=1))
    assert state.turn_count == 2


def test_tiebreaker_after_both_players_fail_to_draw() -> None:
    state = scenario_match(fields=(["8S"], ["5H"]), life=(12, 12))
    state = apply_all(state, EndTurn(player=0))
    assert state.players[1].consecutive_draw_failures == 1
    assert not state.is_over
    state = apply_all(state, AdvancePhase(player=1, phase="main"), EndTurn(player=1))
    assert state.is_over
    assert state.winner == 0
    assert not state.is_draw
    assert any(line.startswith("Tiebreaker:") for line in state.log)


def test_successful_draw_resets_failure_counter() -> None:
    state = scenario_match(hands=(["JS"], []), resources=(["2D", "3D"], []), deck=["9C", "4H"])
    state.players[0].consecutive_draw_failures = 3
    state = apply_all(state, PlayCard(player=0, card_id="JS"))
    assert state.players[0].consecutive_draw_failures == 0


def test_partial_draw_counts_missing_cards() -> None:
    state = scenario_match(hands=(["JS"], []), resources=(["2D", "3D"], []), deck=["9C"])
    res = step(state, PlayCard(player=0, card_id="JS"))
    assert res.ok
    assert res.state.players[0].consecutive_draw_failures == 1
    assert res.state.deck == []
    assert "DRAW_FAILED" in event_types(res.events)


def test_resign() -> None:
    state = scenario_match()
    res = step(state, Resign(player=1))
    assert res.ok
    assert res.state.winner == 0
    assert res.state.phase == "game_over"
    assert res.events[-1]["type"] == "GAME_ENDED"


def test_rejected_intent_not_recorded() -> None:
    state = scenario_match(fields=(["6S"], []))
    res = step(state, EndTurn(player=1))
    assert res.state.intent_log == []
    ok = step(state, EndTurn(player=0))
    assert ok.state.intent_log == [EndTurn(player=0)]
    assert state.intent_log == []


def test_street_opening_and_initial_selection() -> None:
    state = new_match(seed=11, config=MatchConfig(starting_player=0))
    assert state.phase == "init_select"
    assert [len(p.hand) for p in state.players] == [8, 8]
    assert len(state.deck) == 52 - 16

    bad = step(state, SelectInitialResources(player=0, card_ids=tuple(c.id for c in state.players[0].hand[:2])))
    assert not bad.ok

    picks0 = tuple(c.id for c in state.players[0].hand[:3])
    picks1 = tuple(c.id for c in state.players[1].hand[-3:])
    state = apply_all(state, SelectInitialResources(player=0, card_ids=picks0))
    assert state.phase == "init_select"
    assert decision_player(state) == 1

    state = apply_all(state, SelectInitialResources(player=1, card_ids=picks1))
    assert state.turn_player == 0
    assert state.phase == "main"
    assert "Turn 1: Resource Step skipped." in state.log
    assert [len(p.resources) for p in state.players] == [3, 3]
    assert len(state.players[0].hand) == 6
    assert len(state.players[1].hand) == 5

    state = apply_all(state, EndTurn(player=0))
    assert state.phase == "resource_start"


def test_pro_mode_uses_private_libraries() -> None:
    state = new_match(seed=5, config=MatchConfig(mode="pro"))
    assert state.deck == []
    for ps in state.players:
        assert len(ps.library) == 52 - 8
        assert all(c.id.startswith(f"p{ps.id}-") for c in ps.hand + ps.library)


def test_sandbox_spawn() -> None:
    state = new_match(seed=3, config=MatchConfig(mode="sandbox", starting_player=0))
    assert state.phase == "main"
    res = step(state, SpawnCard(player=0, owner=1, code="10H", zone="field"))
    assert res.ok
    unit = res.state.players[1].field[0]
    assert unit.card.code == "10H"
    assert not unit.summoning_sick

    bad = step(state, SpawnCard(player=0, owner=1, code="11H", zone="field"))
    assert not bad.ok

    street = scenario_match()
    res = step(street, SpawnCard(player=0, owner=0, code="2S", zone="hand"))
    assert not res.ok


def test_card_conservation_across_a_turn_cycle() -> None:
    state = new_match(seed=21, config=MatchConfig(starting_player=1))
    state = apply_all(
        state,
        SelectInitialResources(player=0, card_ids=tuple(c.id for c in state.players[0].hand[:3])),
        SelectInitialResources(player=1, card_ids=tuple(c.id for c in state.players[1].hand[:3])),
        EndTurn(player=1),
    )

    def total(s) -> int:
        n = len(s.deck)
        for p in s.players:
            n += len(p.hand) + len(p.library) + len(p.resources) + len(p.discard)
            n += sum(1 + len(u.attachments) for u in p.field)
        return n

    assert total(state) == 52


def test_tapped_defender_cannot_block() -> None:
    state = scenario_match(fields=(["5H"], ["5D", "7D"]))
    state.players[1].field_unit("5D").tapped = True
    state = _attack(state, 0, "5H")
    assert state.phase == "block_declare"
    res = step(state, DeclareBlock(player=1, blocker_id="5D", attacker_id="5H"))
    assert not res.ok
    assert "tapped" in (res.error or "")
    assert res.state.pending_blocks == {}


def test_declaring_the_same_attacker_twice_rejected() -> None:
    state = apply_all(scenario_match(fields=(["6S"], [])), AdvancePhase(player=0, phase="attack_declare"))
    res = step(state, DeclareAttackers(player=0, unit_ids=("6S", "6S")))
    assert not res.ok
    assert res.error == "Duplicate attacker."
    assert res.state.pending_attackers == []


def test_tapped_only_blocker_means_direct_hit() -> None:
    state = scenario_match(fields=(["6S"], ["9C"]))
    state.players[1].field_unit("9C").tapped = True
    state = apply_all(
        state,
        AdvancePhase(player=0, phase="attack_declare"),
        DeclareAttackers(player=0, unit_ids=("6S",)),
    )
    res = step(state, ConfirmAttack(player=0))
    assert res.ok
    phases = [e["phase"] for e in res.events if e["type"] == "PHASE_CHANGED"]
    assert "block_declare" not in phases
    assert "damage" in phases
    assert res.state.players[1].life == 14
    assert res.state.players[1].field_unit("9C") is not None


def test_tapped_or_sick_units_cannot_be_declared() -> None:
    state = scenario_match(fields=(["6S", "4S"], []))
    state.players[0].field_unit("6S").tapped = True
    state.players[0].field_unit("4S").summoning_sick = True
    state = apply_all(state, AdvancePhase(player=0, phase="attack_declare"))

    tapped = step(state, DeclareAttackers(player=0, unit_ids=("6S",)))
    assert not tapped.ok
    assert "is tapped" in (tapped.error or "")

    sick = step(state, DeclareAttackers(player=0, unit_ids=("4S",)))
    assert not sick.ok
    assert "summoning sickness" in (sick.error or "")
    assert state.pending_attackers == []


def test_swap_must_use_the_selected_hand_card() -> None:
    state = scenario_match(
        hands=(["9S"], []),
        resources=(["AS", "2D"], []),
        deck=["4H", "5H", "6H"],
        starting_player=1,
    )
    state = apply_all(
        state,
        EndTurn(player=1),
        AdvancePhase(player=0, phase="resource_swap_select_hand"),
        SelectSwapHandCard(player=0, card_id="9S"),
    )
    res = step(state, SwapResource(player=0, hand_card_id="4H", resource_unit_id="AS"))
    assert not res.ok
    assert res.state is state
    assert [r.card.id for r in state.players[0].resources] == ["AS", "2D"]


@pytest.mark.parametrize(
    "setup",
    [
        ScenarioSetup(resources=(("2C", "3C", "4C", "5C", "6C", "7C", "8C", "9C", "10C", "AC", "2H", "3H"), ())),
        ScenarioSetup(phase="damage"),
        ScenarioSetup(phase="block_declare"),
        ScenarioSetup(starting_player=2),
        ScenarioSetup(life=(0, None)),
        ScenarioSetup(life=(None, -3)),
    ],
)
def test_invalid_scenario_setup_rejected(setup: ScenarioSetup) -> None:
    with pytest.raises(ValueError):
        new_match(7, MatchConfig(mode="scenario"), setup)


def test_scenario_at_resource_cap_accepted() -> None:
    full = ("2C", "3C", "4C", "5C", "6C", "7C", "8C", "9C", "10C", "AC")
    state = new_match(7, MatchConfig(mode="scenario"), ScenarioSetup(resources=(full, ()), phase="upkeep"))
    assert len(state.players[0].resources) == 10
    assert state.phase == "main"
