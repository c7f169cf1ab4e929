from __future__ import annotations

from pathlib import Path

from spectrumbattle.engine.actions import Resign
from spectrumbattle.engine.match import new_match, step
from spectrumbattle.services.telemetry import TelemetryService


def test_telemetry_appends_jsonl(tmp_path: Path) -> None:
    svc = TelemetryService(tmp_path / "nested" / "telemetry.jsonl")
    svc.log("MATCH_STARTED", {"seed": 1})
    n = svc.log_events([{"type": "DAMAGE_DEALT", "amount": 3}], match_seed=9)
    assert n == 1

    recs = svc.read_all()
    assert [r["type"] for r in recs] == ["MATCH_STARTED", "DAMAGE_DEALT"]
    assert recs[1]["payload"] == {"amount": 3, "seed": 9}
    assert "ts" in recs[0]


def test_match_events_round_into_telemetry(tmp_path: Path) -> None:
    res = step(new_match(seed=3), Resign(player=0))
    svc = TelemetryService(tmp_path / "t.jsonl")
    svc.log_events(res.events)
    types = [r["type"] for r in svc.read_all()]
    assert types[-1] == "GAME_ENDED"
    assert svc.read_all()[-1]["payload"]["winner"] == 1


def test_read_all_missing_file(tmp_path: Path) -> None:
    assert TelemetryService(tmp_path / "none.jsonl").read_all() == []
