"""
Runtime configuration for the pool engine.

Sources, lowest to highest precedence when combined by the caller:
- dataclass defaults,
- a YAML mapping (`load_config`),
- `AMMPOOL_*` environment variables (`config_from_env`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from ..state.canonical import canonical_id
from ..state.derivation import DEFAULT_PROGRAM_ID
from ..state.pools import DEFAULT_LP_DECIMALS, MAX_FEE_BPS


@dataclass(frozen=True)
class PoolEngineConfig:
    # Program id mixed into every derived address (config, LP mint, accounts).
    program_id: str = DEFAULT_PROGRAM_ID

    # Accepted fee range for new pools, inclusive.
    min_fee_bps: int = 0
    max_fee_bps: int = MAX_FEE_BPS

    lp_decimals: int = DEFAULT_LP_DECIMALS

    def __post_init__(self) -> None:
        object.__setattr__(self, "program_id", canonical_id(self.program_id, name="program_id"))
        for name in ("min_fee_bps", "max_fee_bps", "lp_decimals"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{name} must be an int")
        if not (0 <= self.min_fee_bps <= self.max_fee_bps <= MAX_FEE_BPS):
            raise ValueError(
                f"fee range must satisfy 0 <= min_fee_bps <= max_fee_bps <= {MAX_FEE_BPS}: "
                f"[{self.min_fee_bps}, {self.max_fee_bps}]"
            )
        if not (0 <= self.lp_decimals <= 18):
            raise ValueError(f"lp_decimals must be in [0, 18]: {self.lp_decimals}")


_FIELD_NAMES = frozenset(f.name for f in fields(PoolEngineConfig))

_ENV_VARS = {
    "program_id": "AMMPOOL_PROGRAM_ID",
    "min_fee_bps": "AMMPOOL_MIN_FEE_BPS",
    "max_fee_bps": "AMMPOOL_MAX_FEE_BPS",
    "lp_decimals": "AMMPOOL_LP_DECIMALS",
}


def config_from_mapping(obj: Mapping[str, Any], *, base: Optional[PoolEngineConfig] = None) -> PoolEngineConfig:
    """Build a config from a mapping; unknown keys are rejected."""
    if not isinstance(obj, Mapping):
        raise TypeError("config must be a mapping")
    unknown = sorted(set(obj) - _FIELD_NAMES)
    if unknown:
        raise ValueError(f"unknown config keys: {', '.join(unknown)}")
    return replace(base or PoolEngineConfig(), **dict(obj))


def load_config(path: Union[str, Path], *, base: Optional[PoolEngineConfig] = None) -> PoolEngineConfig:
    """
    Load a config from a YAML file.

    An empty file yields the defaults. A top-level `ammpool:` section is
    accepted so the settings can live in a shared file.
    """
    obj = yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    if obj is None:
        return base or PoolEngineConfig()
    if not isinstance(obj, Mapping):
        raise TypeError("config YAML must be a mapping")
    if "ammpool" in obj:
        obj = obj["ammpool"] or {}
    return config_from_mapping(obj, base=base)


def _int_env(name: str, raw: str) -> int:
    try:
        return int(raw.strip(), 10)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer: {raw!r}") from exc


def config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    *,
    base: Optional[PoolEngineConfig] = None,
) -> PoolEngineConfig:
    """Override `base` (or the defaults) with any `AMMPOOL_*` variables that are set."""
    env = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}
    for field_name, var in _ENV_VARS.items():
        raw = env.get(var)
        if raw is None or not raw.strip():
            continue
        overrides[field_name] = raw.strip() if field_name == "program_id" else _int_env(var, raw)
    return replace(base or PoolEngineConfig(), **overrides)
