"""
In-memory value custody: asset accounts, reserve vaults and LP mints.

The pool engine never touches these tables directly. It stages a `Changeset`
(a tuple of custody operations plus the snapshot values it was computed
from) and hands it to `TokenCustody.commit`, which:

1. compares the expected balances/supplies against current state (compare-and-swap),
2. applies every operation to copies of the tables,
3. swaps the copies in only if every operation succeeded.

A failed commit therefore leaves custody exactly as it was.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from ..errors import (
    AlreadyInitializedError,
    AmountOverflowError,
    InsufficientBalanceError,
    StaleStateError,
    UnauthorizedError,
)
from .balances import Amount, AssetId, BalanceTable, PubKey
from .derivation import DEFAULT_PROGRAM_ID, find_derived_address, is_derived_space
from .lp import LPLedger, LPMint, MintId

logger = logging.getLogger(__name__)

U64_MAX = (1 << 64) - 1


@dataclass(frozen=True)
class OpenAccount:
    """
    Open the associated account of (owner, asset).

    With `adopt_existing` an account already created by an earlier credit is
    taken over as-is, balance included.
    """

    owner: PubKey
    asset: AssetId
    adopt_existing: bool = False


@dataclass(frozen=True)
class CreateMint:
    address: MintId
    authority: PubKey
    decimals: int


@dataclass(frozen=True)
class Debit:
    owner: PubKey
    asset: AssetId
    amount: Amount
    signer: PubKey


@dataclass(frozen=True)
class Credit:
    owner: PubKey
    asset: AssetId
    amount: Amount


@dataclass(frozen=True)
class MintTo:
    mint: MintId
    holder: PubKey
    amount: Amount
    authority: PubKey


CustodyOp = Union[OpenAccount, CreateMint, Debit, Credit, MintTo]


@dataclass(frozen=True)
class Changeset:
    """
    Staged custody mutations.

    `expected_balances` holds (owner, asset, amount) rows and `expected_supplies`
    holds (mint, supply) rows that must still be current at commit time.
    """

    ops: Tuple[CustodyOp, ...] = ()
    expected_balances: Tuple[Tuple[PubKey, AssetId, Amount], ...] = ()
    expected_supplies: Tuple[Tuple[MintId, Amount], ...] = ()


class TokenCustody:
    """Custody service holding asset balances, open accounts and LP mints."""

    def __init__(self, *, program_id: str = DEFAULT_PROGRAM_ID, max_amount: int = U64_MAX) -> None:
        self.program_id = program_id
        self.max_amount = max_amount
        self._balances = BalanceTable()
        self._lp = LPLedger()
        self._accounts: Dict[str, Tuple[PubKey, AssetId]] = {}
        self._lock = threading.Lock()

    # -- reads ---------------------------------------------------------------

    def account_address(self, owner: PubKey, asset: AssetId) -> str:
        """Associated account address for (owner, asset)."""
        address, _bump = find_derived_address(("account", owner, asset), self.program_id)
        return address

    def account_exists(self, address: str) -> bool:
        return address in self._accounts

    def account_info(self, address: str) -> Optional[Tuple[PubKey, AssetId]]:
        """Return (owner, asset) for an open account, or None."""
        return self._accounts.get(address)

    def balance_of(self, owner: PubKey, asset: AssetId) -> Amount:
        return self._balances.get(owner, asset)

    def lp_balance_of(self, holder: PubKey, mint: MintId) -> Amount:
        return self._lp.balance_of(holder, mint)

    def has_mint(self, mint: MintId) -> bool:
        return self._lp.has_mint(mint)

    def get_mint(self, mint: MintId) -> LPMint:
        return self._lp.get_mint(mint)

    def lp_supply(self, mint: MintId) -> Amount:
        return self._lp.supply(mint)

    def export(self) -> Dict[str, list]:
        """Sorted, JSON-ready view of accounts, balances and LP state."""
        with self._lock:
            accounts = sorted([addr, owner, asset] for addr, (owner, asset) in self._accounts.items())
            balances = sorted([owner, asset, amount] for (owner, asset), amount in self._balances.get_all_balances().items())
            mints = sorted(
                [m.address, m.authority, m.decimals, m.supply] for m in self._lp.get_all_mints().values()
            )
            lp_balances = sorted([holder, mint, amount] for (holder, mint), amount in self._lp.get_all_balances().items())
        return {"accounts": accounts, "balances": balances, "lp_mints": mints, "lp_balances": lp_balances}

    # -- single-operation helpers -------------------------------------------

    def open_account(self, owner: PubKey, asset: AssetId) -> str:
        self.commit(Changeset(ops=(OpenAccount(owner=owner, asset=asset),)))
        return self.account_address(owner, asset)

    def credit(self, owner: PubKey, asset: AssetId, amount: Amount) -> None:
        """Credit an account from outside the pool (faucet, airdrop, donation)."""
        self.commit(Changeset(ops=(Credit(owner=owner, asset=asset, amount=amount),)))

    def debit(self, owner: PubKey, asset: AssetId, amount: Amount, *, signer: PubKey) -> None:
        self.commit(Changeset(ops=(Debit(owner=owner, asset=asset, amount=amount, signer=signer),)))

    def transfer(self, source: PubKey, dest: PubKey, asset: AssetId, amount: Amount, *, signer: PubKey) -> None:
        self.commit(
            Changeset(
                ops=(
                    Debit(owner=source, asset=asset, amount=amount, signer=signer),
                    Credit(owner=dest, asset=asset, amount=amount),
                )
            )
        )

    def mint_to(self, mint: MintId, holder: PubKey, amount: Amount, *, authority: PubKey) -> None:
        self.commit(Changeset(ops=(MintTo(mint=mint, holder=holder, amount=amount, authority=authority),)))

    # -- atomic commit -------------------------------------------------------

    def commit(self, changeset: Changeset) -> None:
        """Apply a changeset atomically, or raise and change nothing."""
        with self._lock:
            self._check_expectations(changeset)

            balances = self._balances.copy()
            lp = self._lp.copy()
            accounts = dict(self._accounts)

            for op in changeset.ops:
                self._apply(op, balances, lp, accounts)

            self._balances = balances
            self._lp = lp
            self._accounts = accounts
        logger.debug("custody commit applied %d ops", len(changeset.ops))

    def _check_expectations(self, changeset: Changeset) -> None:
        for owner, asset, amount in changeset.expected_balances:
            current = self._balances.get(owner, asset)
            if current != amount:
                raise StaleStateError(
                    f"balance of ({owner}, {asset}) moved: expected {amount}, found {current}"
                )
        for mint, supply in changeset.expected_supplies:
            current = self._lp.supply(mint)
            if current != supply:
                raise StaleStateError(f"supply of {mint} moved: expected {supply}, found {current}")

    def _ensure_account(self, owner: PubKey, asset: AssetId, accounts: Dict[str, Tuple[PubKey, AssetId]]) -> None:
        address = self.account_address(owner, asset)
        accounts.setdefault(address, (owner, asset))

    def _apply(
        self,
        op: CustodyOp,
        balances: BalanceTable,
        lp: LPLedger,
        accounts: Dict[str, Tuple[PubKey, AssetId]],
    ) -> None:
        if isinstance(op, OpenAccount):
            address = self.account_address(op.owner, op.asset)
            existing = accounts.get(address)
            if existing is None:
                accounts[address] = (op.owner, op.asset)
            elif not op.adopt_existing or existing != (op.owner, op.asset):
                raise AlreadyInitializedError(f"account already exists: {address}")
        elif isinstance(op, CreateMint):
            if lp.has_mint(op.address):
                raise AlreadyInitializedError(f"LP mint already exists: {op.address}")
            lp.create_mint(op.address, authority=op.authority, decimals=op.decimals)
        elif isinstance(op, Debit):
            _require_amount(op.amount)
            if op.signer != op.owner:
                raise UnauthorizedError(f"{op.signer} cannot debit the account of {op.owner}")
            if is_derived_space(op.signer):
                raise UnauthorizedError(f"derived address {op.signer} cannot sign a debit")
            current = balances.get(op.owner, op.asset)
            if current < op.amount:
                raise InsufficientBalanceError(
                    f"insufficient balance of {op.asset} for {op.owner}: {current} < {op.amount}"
                )
            balances.subtract(op.owner, op.asset, op.amount)
        elif isinstance(op, Credit):
            _require_amount(op.amount)
            new_balance = balances.get(op.owner, op.asset) + op.amount
            if new_balance > self.max_amount:
                raise AmountOverflowError(f"balance of ({op.owner}, {op.asset}) would exceed {self.max_amount}")
            self._ensure_account(op.owner, op.asset, accounts)
            balances.set(op.owner, op.asset, new_balance)
        elif isinstance(op, MintTo):
            _require_amount(op.amount)
            if lp.supply(op.mint) + op.amount > self.max_amount:
                raise AmountOverflowError(f"supply of {op.mint} would exceed {self.max_amount}")
            lp.mint_to(op.mint, op.holder, op.amount, authority=op.authority)
        else:
            raise TypeError(f"unsupported custody op: {type(op).__name__}")

    def __repr__(self) -> str:
        return f"TokenCustody({len(self._accounts)} accounts, {self._balances!r}, {self._lp!r})"


def _require_amount(amount: Amount) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise TypeError("amount must be an int")
    if amount < 0:
        raise ValueError(f"amount must be non-negative: {amount}")
