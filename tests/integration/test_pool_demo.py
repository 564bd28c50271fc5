# [TESTER] v1

from __future__ import annotations

import importlib.util
import json
from pathlib import Path

import pytest

DEMO_PATH = Path(__file__).resolve().parents[2] / "tools" / "pool_demo.py"


def _load_demo():
    spec = importlib.util.spec_from_file_location("pool_demo", DEMO_PATH)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_demo_bootstraps_then_reports_ratio_violation(
    capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    for name in ("AMMPOOL_PROGRAM_ID", "AMMPOOL_MIN_FEE_BPS", "AMMPOOL_MAX_FEE_BPS", "AMMPOOL_LP_DECIMALS"):
        monkeypatch.delenv(name, raising=False)
    demo = _load_demo()
    assert demo.__doc__ and "RatioViolation" in demo.__doc__

    assert demo.main([]) == 0
    out = capsys.readouterr().out
    assert "[pool-demo] bootstrap: x=100000000 y=200000000 lp=100000000" in out
    assert "second deposit rejected: RatioViolation" in out

    state = json.loads(out[out.index("{") :])
    assert (state["reserve_x"], state["reserve_y"], state["lp_supply"]) == (100_000_000, 200_000_000, 100_000_000)
