from __future__ import annotations

import json
from pathlib import Path
from typing import Mapping

from jsonschema import Draft202012Validator

from spectrumbattle.engine.cards import parse_code
from spectrumbattle.engine.types import Scenario, ScenarioSetup


class ContentError(RuntimeError):
    pass


def _load_json(path: Path) -> object:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ContentError(f"Missing content file: {path}") from e
    except json.JSONDecodeError as e:
        raise ContentError(f"Invalid JSON in {path}: {e}") from e


def _load_schema(path: Path) -> object:
    return _load_json(path)


def validate_json(instance: object, schema: object, *, context: str) -> None:
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(instance), key=lambda e: list(e.path))
    if errors:
        lines = [f"Schema validation failed for {context}:"]
        for err in errors[:10]:
            loc = "/".join(str(p) for p in err.absolute_path)
            lines.append(f"- {loc}: {err.message}")
        raise ContentError("\n".join(lines))


def _require_str(obj: Mapping[str, object], key: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str):
        raise ContentError(f"Expected string for {key}")
    return v


def _codes(obj: Mapping[str, object], key: str) -> tuple[str, ...]:
    raw = obj.get(key, [])
    if not isinstance(raw, list):
        raise ContentError(f"Expected list for {key}")
    out: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise ContentError(f"Expected card code in {key}")
        try:
            parse_code(item)
        except ValueError as e:
            raise ContentError(str(e)) from e
        out.append(item.upper())
    return tuple(out)


def _seat(raw: object) -> Mapping[str, object]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ContentError("Seat setup must be an object")
    return raw


def parse_setup(raw: Mapping[str, object]) -> ScenarioSetup:
    p1 = _seat(raw.get("p1"))
    p2 = _seat(raw.get("p2"))
    lives: list[int | None] = []
    for seat in (p1, p2):
        life = seat.get("life")
        if life is not None and not isinstance(life, int):
            raise ContentError("life must be an integer")
        lives.append(life)
    phase = raw.get("phase", "main")
    starting = raw.get("starting_player", 0)
    if not isinstance(starting, int):
        raise ContentError("starting_player must be 0 or 1")
    return ScenarioSetup(
        hands=(_codes(p1, "hand"), _codes(p2, "hand")),
        resources=(_codes(p1, "resources"), _codes(p2, "resources")),
        fields=(_codes(p1, "field"), _codes(p2, "field")),
        life=(lives[0], lives[1]),
        deck=_codes(raw, "deck"),
        phase=phase,  # type: ignore[arg-type]  # schema restricts values
        starting_player=starting,
    )


class ContentService:
    def __init__(self, data_dir: Path, schema_dir: Path) -> None:
        self._data_dir = data_dir
        self._schema_dir = schema_dir

    def load_scenarios(self) -> dict[str, Scenario]:
        path = self._data_dir / "scenarios.json"
        schema = _load_schema(self._schema_dir / "scenarios.schema.json")
        raw = _load_json(path)
        validate_json(raw, schema, context=str(path))
        if not isinstance(raw, dict):
            raise ContentError("scenarios.json must be an object")
        raw_list = raw.get("scenarios")
        if not isinstance(raw_list, list):
            raise ContentError("scenarios.json.scenarios must be a list")

        out: dict[str, Scenario] = {}
        for item in raw_list:
            if not isinstance(item, dict):
                continue
            sid = _require_str(item, "id")
            if sid in out:
                raise ContentError(f"Duplicate scenario id: {sid}")
            setup_raw = item.get("setup", {})
            if not isinstance(setup_raw, dict):
                raise ContentError(f"Scenario {sid}: setup must be an object")
            out[sid] = Scenario(
                id=sid,
                title=_require_str(item, "title"),
                subtitle=_require_str(item, "subtitle"),
                setup=parse_setup(setup_raw),
            )
        return out

    def get_scenario(self, scenario_id: str) -> Scenario:
        scenarios = self.load_scenarios()
        if scenario_id not in scenarios:
            raise ContentError(f"Unknown scenario: {scenario_id}")
        return scenarios[scenario_id]

    def validate_all(self) -> None:
        # Load is validation (schema + parse)
        _ = self.load_scenarios()
