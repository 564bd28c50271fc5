"""
Pool configuration records and their derived addresses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..errors import InvalidAssetPairError, InvalidFeeRangeError
from .balances import AssetId, PubKey
from .canonical import is_canonical_id
from .derivation import DEFAULT_PROGRAM_ID, find_derived_address, verify_derived_address


CONFIG_SEED = "config"
LP_SEED = "lp"

MAX_FEE_BPS = 10_000
DEFAULT_LP_DECIMALS = 6


def canonical_pair(asset_x: AssetId, asset_y: AssetId) -> Tuple[AssetId, AssetId]:
    """
    Order an asset pair canonically (lexicographic).

    Raises:
        InvalidAssetPairError: If either id is malformed or both are equal
    """
    for name, asset in (("asset_x", asset_x), ("asset_y", asset_y)):
        if not is_canonical_id(asset):
            raise InvalidAssetPairError(f"{name} must be a lowercase 0x-prefixed 32-byte hex id: {asset!r}")
    if asset_x == asset_y:
        raise InvalidAssetPairError(f"pool assets must differ: {asset_x}")
    return (asset_x, asset_y) if asset_x < asset_y else (asset_y, asset_x)


def config_seeds(asset_x: AssetId, asset_y: AssetId) -> Tuple[str, AssetId, AssetId]:
    a, b = canonical_pair(asset_x, asset_y)
    return (CONFIG_SEED, a, b)


def lp_seeds(config_address: str) -> Tuple[str, str]:
    return (LP_SEED, config_address)


def derive_config_address(asset_x: AssetId, asset_y: AssetId, program_id: str = DEFAULT_PROGRAM_ID) -> Tuple[str, int]:
    """Derive (config_address, config_bump) for an unordered asset pair."""
    return find_derived_address(config_seeds(asset_x, asset_y), program_id)


def derive_lp_mint(config_address: str, program_id: str = DEFAULT_PROGRAM_ID) -> Tuple[str, int]:
    """Derive (lp_mint_address, lp_bump) from the config address."""
    return find_derived_address(lp_seeds(config_address), program_id)


def validate_fee_bps(fee_bps: int, *, min_fee_bps: int = 0, max_fee_bps: int = MAX_FEE_BPS) -> int:
    if not isinstance(fee_bps, int) or isinstance(fee_bps, bool):
        raise TypeError("fee_bps must be an int")
    if not (min_fee_bps <= fee_bps <= max_fee_bps):
        raise InvalidFeeRangeError(f"fee_bps must be in [{min_fee_bps}, {max_fee_bps}]: {fee_bps}")
    return fee_bps


@dataclass(frozen=True)
class PoolConfig:
    """
    Configuration record of one pool.

    Attributes:
        address: Derived address of this config (seeds: "config", sorted asset pair)
        asset_x: First asset, in the order the initializer supplied
        asset_y: Second asset
        authority: Principal allowed to run future privileged operations, if any
        fee_bps: Fee in basis points; stored only
        config_bump: Canonical bump proving `address` was derived from the pair
        lp_bump: Canonical bump proving `lp_mint` was derived from `address`
        lp_mint: LP mint address
        vault_x: Custody account of (address, asset_x)
        vault_y: Custody account of (address, asset_y)
        lp_decimals: Decimals of the LP unit
    """
    address: str
    asset_x: AssetId
    asset_y: AssetId
    authority: Optional[PubKey]
    fee_bps: int
    config_bump: int
    lp_bump: int
    lp_mint: str
    vault_x: str
    vault_y: str
    lp_decimals: int = DEFAULT_LP_DECIMALS

    def __post_init__(self) -> None:
        canonical_pair(self.asset_x, self.asset_y)
        validate_fee_bps(self.fee_bps)
        if self.authority is not None and not is_canonical_id(self.authority):
            raise ValueError(f"authority must be a 0x-prefixed 32-byte hex id: {self.authority!r}")
        for name in ("config_bump", "lp_bump"):
            bump = getattr(self, name)
            if not isinstance(bump, int) or isinstance(bump, bool) or not (0 <= bump <= 255):
                raise ValueError(f"{name} must be an int in [0, 255]: {bump!r}")
        if self.vault_x == self.vault_y:
            raise ValueError("vault_x and vault_y must differ")

    @property
    def pair_key(self) -> Tuple[AssetId, AssetId]:
        """Registry key: the canonically ordered pair."""
        return canonical_pair(self.asset_x, self.asset_y)

    def verify_derivation(self, program_id: str = DEFAULT_PROGRAM_ID) -> bool:
        """Re-derive config and LP mint addresses from their seeds and stored bumps."""
        return verify_derived_address(
            self.address, config_seeds(self.asset_x, self.asset_y), self.config_bump, program_id
        ) and verify_derived_address(self.lp_mint, lp_seeds(self.address), self.lp_bump, program_id)

    def vault_for(self, asset: AssetId) -> str:
        if asset == self.asset_x:
            return self.vault_x
        if asset == self.asset_y:
            return self.vault_y
        raise ValueError(f"Asset {asset} not in pool {self.address}")

    def __repr__(self) -> str:
        return (
            f"PoolConfig(address={self.address[:18]}..., "
            f"assets=({self.asset_x[:10]}..., {self.asset_y[:10]}...), "
            f"fee_bps={self.fee_bps}, lp_mint={self.lp_mint[:18]}...)"
        )
