#!/usr/bin/env python3
"""Offline pool demo against an in-memory engine.

Steps:
1) Initialize a pool for two synthetic assets and fund one depositor.
2) Bootstrap deposit: the caps become the initial reserves exactly.
3) Second deposit with a too-small x cap: reported as RatioViolation, no state change.

Prints the final pool state as JSON. Engine config comes from `--config` (YAML)
and the AMMPOOL_* environment variables.
"""
from __future__ import annotations

import argparse
import hashlib
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from ammpool.errors import PoolError
from ammpool.integration.config import PoolEngineConfig, config_from_env, load_config
from ammpool.integration.pool_engine import PoolEngine


def _id(label: str) -> str:
    return "0x" + hashlib.sha256(label.encode("utf-8")).hexdigest()


def _principal(label: str) -> str:
    # Principals live in the half of the id space with the high bit set.
    digest = bytearray(hashlib.sha256(label.encode("utf-8")).digest())
    digest[0] |= 0x80
    return "0x" + digest.hex()


def _parse_args(argv: Optional[list[str]]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Initialize a pool, bootstrap it, then try an under-funded deposit.")
    p.add_argument("--config", type=Path, default=None, help="YAML engine config (optional)")
    p.add_argument("--fee-bps", type=int, default=30)
    p.add_argument("--bootstrap-lp", type=int, default=100_000_000)
    p.add_argument("--bootstrap-x", type=int, default=100_000_000)
    p.add_argument("--bootstrap-y", type=int, default=200_000_000)
    p.add_argument("--second-lp", type=int, default=50_000_000)
    p.add_argument("--second-max-x", type=int, default=10_000_000)
    p.add_argument("--second-max-y", type=int, default=200_000_000)
    p.add_argument("--log-level", default="WARNING")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    base = load_config(args.config) if args.config is not None else PoolEngineConfig()
    engine = PoolEngine(config_from_env(base=base))

    initializer = _principal("initializer")
    depositor = _principal("depositor")
    asset_x = _id("asset-x")
    asset_y = _id("asset-y")

    engine.custody.credit(depositor, asset_x, 1_000_000_000)
    engine.custody.credit(depositor, asset_y, 1_000_000_000)

    try:
        pool = engine.initialize(args.fee_bps, initializer, asset_x, asset_y, initializer=initializer)
    except PoolError as exc:
        print(f"[pool-demo] FAIL (initialize): {exc.code}: {exc}")
        return 1
    print(f"[pool-demo] pool={pool.address} lp_mint={pool.lp_mint}")

    try:
        receipt = engine.deposit(
            pool, args.bootstrap_lp, args.bootstrap_x, args.bootstrap_y, depositor=depositor
        )
    except PoolError as exc:
        print(f"[pool-demo] FAIL (bootstrap deposit): {exc.code}: {exc}")
        return 1
    print(f"[pool-demo] bootstrap: x={receipt.x_taken} y={receipt.y_taken} lp={receipt.lp_minted}")

    result = engine.try_deposit(
        pool, args.second_lp, args.second_max_x, args.second_max_y, depositor=depositor
    )
    if result.ok and result.receipt is not None:
        r = result.receipt
        print(f"[pool-demo] second deposit: x={r.x_taken} y={r.y_taken} lp={r.lp_minted}")
    else:
        print(f"[pool-demo] second deposit rejected: {result.code}: {result.error}")

    print(json.dumps(engine.pool_state(pool).to_dict(), indent=2, sort_keys=True))
    return 0


if __name__ == "__main__":
    sys.exit(main())
