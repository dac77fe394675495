"""Engine configuration.

Precedence (last wins):
  1) EngineOptions defaults
  2) JSON config file (validated against schemas/worm-config.schema.json)
  3) explicit overrides (CLI flags)

Config files use camelCase keys, e.g.
  {"direction": "south", "maxSteps": 10000, "bounded": true, "trace": false, "eofValue": 0}
"""

from __future__ import annotations
import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

import jsonschema
from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).resolve().parent / "schemas"
CONFIG_SCHEMA_PATH = SCHEMA_DIR / "worm-config.schema.json"

DIRECTION_NAMES = ("east", "west", "north", "south")

# config file key -> EngineOptions field
_KEY_MAP = {
    "direction": "direction",
    "maxSteps": "max_steps",
    "bounded": "bounded",
    "trace": "trace",
    "eofValue": "eof_value",
}


class ConfigError(Exception):
    pass


@dataclass
class EngineOptions:
    direction: str = "east"
    max_steps: Optional[int] = None
    bounded: bool = True
    trace: bool = False
    eof_value: int = 0

    def __post_init__(self):
        self.direction = str(self.direction).lower()
        if self.direction not in DIRECTION_NAMES:
            raise ConfigError(f"direction must be one of {', '.join(DIRECTION_NAMES)}, got {self.direction!r}")
        if self.max_steps is not None and self.max_steps < 0:
            raise ConfigError(f"max_steps must be >= 0, got {self.max_steps}")

    def with_overrides(self, **overrides: Any) -> "EngineOptions":
        """Copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return {key: getattr(self, attr) for key, attr in _KEY_MAP.items()}


def load_schema(path: Path = CONFIG_SCHEMA_PATH) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def options_from_dict(data: Dict[str, Any], base: Optional[EngineOptions] = None) -> EngineOptions:
    try:
        Draft202012Validator(load_schema()).validate(data)
    except jsonschema.ValidationError as e:
        raise ConfigError(f"Invalid config: {e.message}") from e
    overrides = {_KEY_MAP[k]: v for k, v in data.items()}
    opts = base or EngineOptions()
    # maxSteps: null is meaningful (no budget), so apply it directly
    if "max_steps" in overrides and overrides["max_steps"] is None:
        opts = replace(opts, max_steps=None)
    return opts.with_overrides(**overrides)


def load_config(path: Union[str, Path], base: Optional[EngineOptions] = None) -> EngineOptions:
    p = Path(path)
    if not p.is_file():
        raise ConfigError(f"Config not found: {p}")
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(f"Config {p} is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"Config {p} must be a JSON object")
    return options_from_dict(data, base)
