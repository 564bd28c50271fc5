# [TESTER] v1

from __future__ import annotations

from dataclasses import replace

import pytest

from ammpool.errors import InvalidAssetPairError, InvalidFeeRangeError
from ammpool.state.custody import TokenCustody
from ammpool.state.pools import PoolConfig, canonical_pair, derive_config_address, derive_lp_mint

ASSET_A = "0x" + "01" * 32
ASSET_B = "0x" + "02" * 32


def _config(**overrides) -> PoolConfig:
    address, config_bump = derive_config_address(ASSET_B, ASSET_A)
    lp_mint, lp_bump = derive_lp_mint(address)
    custody = TokenCustody()
    fields = dict(
        address=address,
        asset_x=ASSET_B,
        asset_y=ASSET_A,
        authority=None,
        fee_bps=30,
        config_bump=config_bump,
        lp_bump=lp_bump,
        lp_mint=lp_mint,
        vault_x=custody.account_address(address, ASSET_B),
        vault_y=custody.account_address(address, ASSET_A),
    )
    fields.update(overrides)
    return PoolConfig(**fields)


def test_canonical_pair_orders_and_validates() -> None:
    assert canonical_pair(ASSET_B, ASSET_A) == (ASSET_A, ASSET_B)
    with pytest.raises(InvalidAssetPairError, match="differ"):
        canonical_pair(ASSET_A, ASSET_A)
    with pytest.raises(InvalidAssetPairError):
        canonical_pair("0x01", ASSET_B)
    with pytest.raises(InvalidAssetPairError):
        canonical_pair("0x" + "AB" * 32, ASSET_B)


def test_config_address_ignores_pair_order() -> None:
    assert derive_config_address(ASSET_A, ASSET_B) == derive_config_address(ASSET_B, ASSET_A)


def test_pool_config_verifies_its_derivation() -> None:
    config = _config()
    assert config.verify_derivation()
    assert config.pair_key == (ASSET_A, ASSET_B)
    assert config.vault_for(ASSET_B) == config.vault_x

    forged = replace(config, lp_mint="0x" + "0f" * 32)
    assert not forged.verify_derivation()
    wrong_bump = replace(config, config_bump=(config.config_bump + 1) % 256)
    assert not wrong_bump.verify_derivation()


def test_pool_config_validation() -> None:
    with pytest.raises(InvalidFeeRangeError):
        _config(fee_bps=10_001)
    with pytest.raises(ValueError, match="authority"):
        _config(authority="alice")
    with pytest.raises(ValueError, match="config_bump"):
        _config(config_bump=300)
    with pytest.raises(ValueError, match="vault"):
        _config(vault_y=_config().vault_x)
