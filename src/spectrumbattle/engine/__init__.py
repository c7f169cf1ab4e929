"""Deterministic, headless rules engine for Spectrum Battle.

IMPORTANT: This package must stay free of any presentation code.
"""

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
from .ai import AISpec, ai_take_turn, choose_intent
from .match import MatchConfig, MatchState, StepResult, decision_player, new_match, replay, step
from .types import Card, InvariantViolation, Phase, Scenario, ScenarioSetup, Spectrum

__all__ = [
    "AISpec",
    "AddResource",
    "AdvancePhase",
    "CancelResourceChoice",
    "Card",
    "ConfirmAttack",
    "ConfirmBlocks",
    "DeclareAttackers",
    "DeclareBlock",
    "EndTurn",
    "Intent",
    "InvariantViolation",
    "MatchConfig",
    "MatchState",
    "Phase",
    "PlayCard",
    "Resign",
    "Scenario",
    "ScenarioSetup",
    "SelectInitialResources",
    "SelectSwapHandCard",
    "SpawnCard",
    "Spectrum",
    "StepResult",
    "SwapResource",
    "ai_take_turn",
    "choose_intent",
    "decision_player",
    "new_match",
    "replay",
    "step",
]
