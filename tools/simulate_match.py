from __future__ import annotations

import argparse
import json
import logging
import sys
from collections import Counter

from spectrumbattle.engine.ai import AISpec, ai_take_turn
from spectrumbattle.engine.match import MatchConfig, new_match
from spectrumbattle.engine.serialize import snapshot
from spectrumbattle.paths import get_paths
from spectrumbattle.services.content import ContentService
from spectrumbattle.services.telemetry import TelemetryService


def run_one(seed: int, config: MatchConfig, scenario_id: str | None, telemetry: TelemetryService | None) -> dict[str, object]:
    setup = None
    if scenario_id is not None:
        paths = get_paths()
        setup = ContentService(paths.data_dir, paths.schema_dir).get_scenario(scenario_id).setup
    state = new_match(seed=seed, config=config, scenario=setup)
    state = ai_take_turn(state, AISpec())
    if telemetry is not None:
        telemetry.log_events(state.event_log, match_seed=seed)
    return {
        "seed": seed,
        "winner": state.winner,
        "draw": state.is_draw,
        "turns": state.turn_count,
        "life": [p.life for p in state.players],
        "reason": state.log[-1] if state.log else "",
    }


def main() -> int:
    parser = argparse.ArgumentParser(description="Run headless CPU-vs-CPU Spectrum Battle matches.")
    parser.add_argument("--seed", "-s", type=int, default=1, help="First match seed")
    parser.add_argument("--games", "-n", type=int, default=1, help="Number of matches (consecutive seeds)")
    parser.add_argument("--mode", choices=["street", "pro", "scenario"], default="street")
    parser.add_argument("--scenario", help="Scenario id (scenario mode)")
    parser.add_argument("--multi-block", action="store_true", help="Allow several blockers per attacker")
    parser.add_argument("--telemetry", action="store_true", help="Append events to userdata/telemetry.jsonl")
    parser.add_argument("--snapshot", action="store_true", help="Print the final snapshot of a single match")
    parser.add_argument("--json", "-j", action="store_true", help="Output in JSON format")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.mode == "scenario" and not args.scenario:
        parser.error("--scenario is required in scenario mode")

    config = MatchConfig(
        mode=args.mode,
        multi_blocking=args.multi_block,
        cpu_players=(True, True),
    )
    telemetry = TelemetryService(get_paths().telemetry_path) if args.telemetry else None

    if args.snapshot:
        setup = None
        if args.scenario:
            paths = get_paths()
            setup = ContentService(paths.data_dir, paths.schema_dir).get_scenario(args.scenario).setup
        state = ai_take_turn(new_match(seed=args.seed, config=config, scenario=setup))
        print(json.dumps(snapshot(state), indent=2, ensure_ascii=False))
        return 0

    results = [run_one(args.seed + i, config, args.scenario, telemetry) for i in range(args.games)]
    if args.json:
        print(json.dumps(results, indent=2, ensure_ascii=False))
        return 0

    tally: Counter[str] = Counter()
    for r in results:
        winner = r["winner"]
        outcome = "draw" if r["draw"] else ("-" if winner is None else f"P{winner + 1}")  # type: ignore[operator]
        tally[outcome] += 1
        print(f"seed={r['seed']:>6}  winner={outcome:<4}  turns={r['turns']:>3}  life={r['life']}  {r['reason']}")
    print(", ".join(f"{k}: {v}" for k, v in sorted(tally.items())))
    return 0


if __name__ == "__main__":
    sys.exit(main())
