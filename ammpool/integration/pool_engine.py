"""
Pool engine: the imperative shell around the pure deposit math.

- `initialize` creates a pool config, its two reserve vaults and its LP mint in
  one custody commit.
- `deposit` resolves and checks the caller's pool reference, quotes the deposit
  against current reserves, stages debits/credits/mint as one changeset and
  commits it. Nothing is written unless every check passed.

Deposits against the same pool are serialized by a per-pool lock; the custody
commit additionally compares the reserve/supply snapshot the quote was
computed from, so an out-of-band vault credit between quote and commit is
rejected with `StaleStateError` rather than silently mispricing the deposit.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union

from ..core.deposit import DepositQuote, DepositRegime, DepositRequest, quote_deposit
from ..errors import (
    AlreadyInitializedError,
    InsufficientBalanceError,
    InvalidArgumentError,
    PoolError,
    PoolNotFoundError,
    UnauthorizedError,
    VaultMismatchError,
)
from ..state.balances import AssetId, PubKey
from ..state.canonical import is_canonical_id
from ..state.custody import Changeset, CreateMint, Credit, Debit, MintTo, OpenAccount, TokenCustody
from ..state.derivation import is_derived_space
from ..state.pools import (
    PoolConfig,
    canonical_pair,
    derive_config_address,
    derive_lp_mint,
    validate_fee_bps,
)
from ..state.snapshot import PoolSnapshot, pool_snapshot
from .config import PoolEngineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PoolRef:
    """
    Caller-supplied reference to a pool.

    Only `config` is required. Any other field that is set must match the
    pool's recorded value, otherwise the call fails with `VaultMismatchError`.
    """

    config: str
    asset_x: Optional[AssetId] = None
    asset_y: Optional[AssetId] = None
    vault_x: Optional[str] = None
    vault_y: Optional[str] = None
    lp_mint: Optional[str] = None

    @classmethod
    def from_config(cls, config: PoolConfig) -> "PoolRef":
        return cls(
            config=config.address,
            asset_x=config.asset_x,
            asset_y=config.asset_y,
            vault_x=config.vault_x,
            vault_y=config.vault_y,
            lp_mint=config.lp_mint,
        )


PoolLike = Union[str, PoolRef, PoolConfig]


@dataclass(frozen=True)
class DepositReceipt:
    pool: str
    depositor: PubKey
    regime: DepositRegime
    x_taken: int
    y_taken: int
    lp_minted: int


@dataclass(frozen=True)
class DepositResult:
    ok: bool
    receipt: Optional[DepositReceipt] = None
    error: Optional[str] = None
    code: Optional[str] = None


def _as_ref(pool: PoolLike) -> PoolRef:
    if isinstance(pool, PoolRef):
        return pool
    if isinstance(pool, PoolConfig):
        return PoolRef.from_config(pool)
    if isinstance(pool, str):
        return PoolRef(config=pool)
    raise TypeError(f"pool must be a config address, PoolRef or PoolConfig, got {type(pool).__name__}")


def _require_id(name: str, value: object) -> None:
    if not is_canonical_id(value):
        raise InvalidArgumentError(f"{name} must be a lowercase 0x-prefixed 32-byte hex id: {value!r}")


def _require_signer(name: str, value: object) -> None:
    _require_id(name, value)
    if is_derived_space(value):
        # Pool configs, vaults and mints live here; none of them can sign.
        raise UnauthorizedError(f"{name} {value} is a derived address, not a principal")


class PoolEngine:
    """Registry of pools plus the initialize/deposit operations over one custody service."""

    def __init__(
        self,
        config: Optional[PoolEngineConfig] = None,
        custody: Optional[TokenCustody] = None,
    ) -> None:
        self.config = config or PoolEngineConfig()
        self.custody = custody or TokenCustody(program_id=self.config.program_id)
        if self.custody.program_id != self.config.program_id:
            raise ValueError("custody and engine must use the same program_id")
        self._pools: Dict[str, PoolConfig] = {}
        self._by_pair: Dict[Tuple[AssetId, AssetId], str] = {}
        self._pool_locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    # -- initialization ------------------------------------------------------

    def initialize(
        self,
        fee_bps: int,
        authority: Optional[PubKey],
        asset_x: AssetId,
        asset_y: AssetId,
        *,
        initializer: PubKey,
    ) -> PoolConfig:
        """
        Create the pool for an unordered asset pair.

        Raises:
            InvalidFeeRangeError: fee_bps outside the configured range
            InvalidAssetPairError: assets malformed or identical
            InvalidArgumentError: initializer or authority is not a well-formed id
            UnauthorizedError: initializer is a derived address
            AlreadyInitializedError: a pool (or its LP mint) already exists

        Vault accounts that an earlier credit already created are adopted
        together with their balance.
        """
        validate_fee_bps(fee_bps, min_fee_bps=self.config.min_fee_bps, max_fee_bps=self.config.max_fee_bps)
        pair = canonical_pair(asset_x, asset_y)
        _require_signer("initializer", initializer)
        if authority is not None:
            _require_id("authority", authority)

        program_id = self.config.program_id
        with self._registry_lock:
            if pair in self._by_pair:
                raise AlreadyInitializedError(f"pool already exists for pair ({pair[0]}, {pair[1]})")

            config_address, config_bump = derive_config_address(asset_x, asset_y, program_id)
            lp_mint, lp_bump = derive_lp_mint(config_address, program_id)
            pool = PoolConfig(
                address=config_address,
                asset_x=asset_x,
                asset_y=asset_y,
                authority=authority,
                fee_bps=fee_bps,
                config_bump=config_bump,
                lp_bump=lp_bump,
                lp_mint=lp_mint,
                vault_x=self.custody.account_address(config_address, asset_x),
                vault_y=self.custody.account_address(config_address, asset_y),
                lp_decimals=self.config.lp_decimals,
            )

            self.custody.commit(
                Changeset(
                    ops=(
                        OpenAccount(owner=config_address, asset=asset_x, adopt_existing=True),
                        OpenAccount(owner=config_address, asset=asset_y, adopt_existing=True),
                        CreateMint(address=lp_mint, authority=config_address, decimals=pool.lp_decimals),
                    )
                )
            )

            self._pools[config_address] = pool
            self._by_pair[pair] = config_address
            self._pool_locks[config_address] = threading.Lock()

        logger.info(
            "initialized pool %s (x=%s, y=%s, fee_bps=%d) by %s",
            config_address,
            asset_x,
            asset_y,
            fee_bps,
            initializer,
        )
        return pool

    # -- lookups -------------------------------------------------------------

    def find_pool(self, asset_x: AssetId, asset_y: AssetId) -> Optional[PoolConfig]:
        address = self._by_pair.get(canonical_pair(asset_x, asset_y))
        return None if address is None else self._pools[address]

    def pools(self) -> List[PoolConfig]:
        return [self._pools[a] for a in sorted(self._pools)]

    def get_pool(self, pool: PoolLike) -> PoolConfig:
        """Resolve a reference to its config, checking every supplied identifier."""
        ref = _as_ref(pool)
        config = self._pools.get(ref.config)
        if config is None:
            raise PoolNotFoundError(f"no pool with config address {ref.config}")
        self._check_ref(ref, config)
        return config

    def pool_state(self, pool: PoolLike) -> PoolSnapshot:
        return pool_snapshot(self.get_pool(pool), self.custody)

    def _check_ref(self, ref: PoolRef, config: PoolConfig) -> None:
        for name in ("asset_x", "asset_y", "vault_x", "vault_y", "lp_mint"):
            supplied = getattr(ref, name)
            if supplied is not None and supplied != getattr(config, name):
                raise VaultMismatchError(f"{name} {supplied} does not belong to pool {config.address}")

        if not config.verify_derivation(self.config.program_id):
            raise VaultMismatchError(f"pool {config.address} failed address re-derivation")
        for vault, asset in ((config.vault_x, config.asset_x), (config.vault_y, config.asset_y)):
            if self.custody.account_address(config.address, asset) != vault:
                raise VaultMismatchError(f"vault {vault} is not the pool account for {asset}")
            if self.custody.account_info(vault) != (config.address, asset):
                raise VaultMismatchError(f"vault {vault} is not open for ({config.address}, {asset})")
        if not self.custody.has_mint(config.lp_mint):
            raise VaultMismatchError(f"LP mint {config.lp_mint} does not exist")
        if self.custody.get_mint(config.lp_mint).authority != config.address:
            raise VaultMismatchError(f"LP mint {config.lp_mint} is not controlled by {config.address}")

    # -- deposit -------------------------------------------------------------

    def _quote(self, config: PoolConfig, request: DepositRequest) -> Tuple[DepositQuote, int, int, int]:
        reserve_x = self.custody.balance_of(config.address, config.asset_x)
        reserve_y = self.custody.balance_of(config.address, config.asset_y)
        supply = self.custody.lp_supply(config.lp_mint)
        quote = quote_deposit(reserve_x=reserve_x, reserve_y=reserve_y, total_supply=supply, request=request)
        logger.debug(
            "quote pool=%s regime=%s reserves=(%d, %d) supply=%d -> x=%d y=%d lp=%d",
            config.address,
            quote.regime.value,
            reserve_x,
            reserve_y,
            supply,
            quote.x_taken,
            quote.y_taken,
            quote.lp_minted,
        )
        return quote, reserve_x, reserve_y, supply

    def quote_deposit(self, pool: PoolLike, requested_lp_amount: int, max_x: int, max_y: int) -> DepositQuote:
        """Preview a deposit against current reserves without committing anything."""
        config = self.get_pool(pool)
        request = DepositRequest(requested_lp_amount=requested_lp_amount, max_x=max_x, max_y=max_y)
        with self._pool_locks[config.address]:
            quote, _rx, _ry, _supply = self._quote(config, request)
        return quote

    def deposit(
        self,
        pool: PoolLike,
        requested_lp_amount: int,
        max_x: int,
        max_y: int,
        *,
        depositor: PubKey,
    ) -> DepositReceipt:
        """
        Deposit both assets and mint exactly `requested_lp_amount` LP units.

        Raises:
            PoolNotFoundError, VaultMismatchError: bad pool reference
            ZeroAmountError, AmountOverflowError, RatioViolationError: rejected amounts
            InsufficientBalanceError: depositor cannot cover the taken amounts
            StaleStateError: reserves moved between quote and commit
            InvalidArgumentError: malformed depositor id or a negative amount
            UnauthorizedError: depositor is a derived address (pool, vault, mint)
            TypeError: a non-int amount or an unsupported pool reference
        """
        request = DepositRequest(requested_lp_amount=requested_lp_amount, max_x=max_x, max_y=max_y)
        try:
            _require_signer("depositor", depositor)
            config = self.get_pool(pool)
            with self._pool_locks[config.address]:
                quote, reserve_x, reserve_y, supply = self._quote(config, request)
                self._require_funds(depositor, config.asset_x, quote.x_taken)
                self._require_funds(depositor, config.asset_y, quote.y_taken)
                self.custody.commit(
                    Changeset(
                        ops=(
                            Debit(owner=depositor, asset=config.asset_x, amount=quote.x_taken, signer=depositor),
                            Credit(owner=config.address, asset=config.asset_x, amount=quote.x_taken),
                            Debit(owner=depositor, asset=config.asset_y, amount=quote.y_taken, signer=depositor),
                            Credit(owner=config.address, asset=config.asset_y, amount=quote.y_taken),
                            MintTo(
                                mint=config.lp_mint,
                                holder=depositor,
                                amount=quote.lp_minted,
                                authority=config.address,
                            ),
                        ),
                        expected_balances=(
                            (config.address, config.asset_x, reserve_x),
                            (config.address, config.asset_y, reserve_y),
                        ),
                        expected_supplies=((config.lp_mint, supply),),
                    )
                )
        except PoolError as exc:
            logger.warning(
                "deposit rejected pool=%s depositor=%s code=%s: %s",
                _as_ref(pool).config,
                depositor,
                exc.code,
                exc,
            )
            raise

        logger.info(
            "deposit committed pool=%s depositor=%s regime=%s x=%d y=%d lp=%d",
            config.address,
            depositor,
            quote.regime.value,
            quote.x_taken,
            quote.y_taken,
            quote.lp_minted,
        )
        return DepositReceipt(
            pool=config.address,
            depositor=depositor,
            regime=quote.regime,
            x_taken=quote.x_taken,
            y_taken=quote.y_taken,
            lp_minted=quote.lp_minted,
        )

    def try_deposit(
        self,
        pool: PoolLike,
        requested_lp_amount: int,
        max_x: int,
        max_y: int,
        *,
        depositor: PubKey,
    ) -> DepositResult:
        """
        Like `deposit()` but reports every `PoolError` in the result instead of
        raising. Only `TypeError` (wrong argument types) still propagates.
        """
        try:
            receipt = self.deposit(pool, requested_lp_amount, max_x, max_y, depositor=depositor)
        except PoolError as exc:
            return DepositResult(ok=False, error=str(exc), code=exc.code)
        return DepositResult(ok=True, receipt=receipt)

    def _require_funds(self, owner: PubKey, asset: AssetId, amount: int) -> None:
        balance = self.custody.balance_of(owner, asset)
        if balance < amount:
            raise InsufficientBalanceError(f"{owner} holds {balance} of {asset}, needs {amount}")
