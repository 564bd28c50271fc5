"""
Readable pool state and deterministic state roots.

`PoolSnapshot` is the per-pool layout any party can read for price/ratio
discovery. State roots hash the canonical JSON encoding, so two snapshots of
the same logical state always produce the same root regardless of insertion
order.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .canonical import CANONICAL_ENCODING_VERSION, canonical_json_bytes, domain_sep_bytes, sha256_hex
from .custody import TokenCustody
from .pools import PoolConfig


@dataclass(frozen=True)
class PoolSnapshot:
    address: str
    authority: Optional[str]
    asset_x: str
    asset_y: str
    fee_bps: int
    config_bump: int
    lp_bump: int
    lp_mint: str
    vault_x: str
    vault_y: str
    reserve_x: int
    reserve_y: int
    lp_supply: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def pool_snapshot(config: PoolConfig, custody: TokenCustody) -> PoolSnapshot:
    return PoolSnapshot(
        address=config.address,
        authority=config.authority,
        asset_x=config.asset_x,
        asset_y=config.asset_y,
        fee_bps=config.fee_bps,
        config_bump=config.config_bump,
        lp_bump=config.lp_bump,
        lp_mint=config.lp_mint,
        vault_x=config.vault_x,
        vault_y=config.vault_y,
        reserve_x=custody.balance_of(config.address, config.asset_x),
        reserve_y=custody.balance_of(config.address, config.asset_y),
        lp_supply=custody.lp_supply(config.lp_mint),
    )


def compute_pool_state_root(snapshot: PoolSnapshot) -> str:
    payload = {"version": CANONICAL_ENCODING_VERSION, "pool": snapshot.to_dict()}
    return sha256_hex(domain_sep_bytes("pool-state-root") + canonical_json_bytes(payload))


def custody_to_dict(custody: TokenCustody) -> Dict[str, Any]:
    """Sorted, JSON-ready view of every balance, account and LP mint in custody."""
    return custody.export()


def compute_custody_state_root(custody: TokenCustody) -> str:
    payload = {"version": CANONICAL_ENCODING_VERSION, "custody": custody_to_dict(custody)}
    return sha256_hex(domain_sep_bytes("custody-state-root") + canonical_json_bytes(payload))
