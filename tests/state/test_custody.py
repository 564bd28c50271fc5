# [TESTER] v1

from __future__ import annotations

import pytest

from ammpool.errors import (
    AlreadyInitializedError,
    AmountOverflowError,
    InsufficientBalanceError,
    StaleStateError,
    UnauthorizedError,
)
from ammpool.state.custody import Changeset, CreateMint, Credit, Debit, MintTo, OpenAccount, TokenCustody

ALICE = "0x" + "a1" * 32
BOB = "0x" + "b2" * 32
POOL = "0x" + "0c" * 32
ASSET = "0x" + "01" * 32
MINT = "0x" + "0d" * 32


def test_credit_and_debit_round_trip() -> None:
    custody = TokenCustody()
    custody.credit(ALICE, ASSET, 100)
    custody.debit(ALICE, ASSET, 40, signer=ALICE)
    assert custody.balance_of(ALICE, ASSET) == 60
    assert custody.account_exists(custody.account_address(ALICE, ASSET))


def test_debit_requires_owner_signature() -> None:
    custody = TokenCustody()
    custody.credit(ALICE, ASSET, 100)
    with pytest.raises(UnauthorizedError):
        custody.debit(ALICE, ASSET, 1, signer=BOB)
    assert custody.balance_of(ALICE, ASSET) == 100


def test_debit_rejects_overdraft() -> None:
    custody = TokenCustody()
    custody.credit(ALICE, ASSET, 5)
    with pytest.raises(InsufficientBalanceError):
        custody.debit(ALICE, ASSET, 6, signer=ALICE)


def test_transfer_moves_exact_amount() -> None:
    custody = TokenCustody()
    custody.credit(ALICE, ASSET, 10)
    custody.transfer(ALICE, BOB, ASSET, 7, signer=ALICE)
    assert (custody.balance_of(ALICE, ASSET), custody.balance_of(BOB, ASSET)) == (3, 7)


def test_credit_respects_max_amount() -> None:
    custody = TokenCustody(max_amount=100)
    custody.credit(ALICE, ASSET, 100)
    with pytest.raises(AmountOverflowError):
        custody.credit(ALICE, ASSET, 1)


def test_failed_commit_changes_nothing() -> None:
    custody = TokenCustody()
    custody.credit(ALICE, ASSET, 10)
    custody.commit(Changeset(ops=(CreateMint(address=MINT, authority=POOL, decimals=6),)))
    before = custody.export()

    # Credit succeeds, then the debit fails: the credit must not survive.
    with pytest.raises(InsufficientBalanceError):
        custody.commit(
            Changeset(
                ops=(
                    Credit(owner=BOB, asset=ASSET, amount=5),
                    MintTo(mint=MINT, holder=ALICE, amount=3, authority=POOL),
                    Debit(owner=ALICE, asset=ASSET, amount=11, signer=ALICE),
                )
            )
        )
    assert custody.export() == before


def test_mint_requires_mint_authority() -> None:
    custody = TokenCustody()
    custody.commit(Changeset(ops=(CreateMint(address=MINT, authority=POOL, decimals=6),)))
    with pytest.raises(UnauthorizedError):
        custody.mint_to(MINT, ALICE, 1, authority=ALICE)
    custody.mint_to(MINT, ALICE, 9, authority=POOL)
    assert custody.lp_supply(MINT) == 9
    assert custody.lp_balance_of(ALICE, MINT) == 9


def test_open_account_twice_is_rejected() -> None:
    custody = TokenCustody()
    address = custody.open_account(POOL, ASSET)
    assert custody.account_info(address) == (POOL, ASSET)
    with pytest.raises(AlreadyInitializedError):
        custody.commit(Changeset(ops=(OpenAccount(owner=POOL, asset=ASSET),)))


def test_commit_checks_expected_snapshot() -> None:
    custody = TokenCustody()
    custody.credit(POOL, ASSET, 50)
    with pytest.raises(StaleStateError, match="moved"):
        custody.commit(
            Changeset(
                ops=(Credit(owner=POOL, asset=ASSET, amount=1),),
                expected_balances=((POOL, ASSET, 49),),
            )
        )
    assert custody.balance_of(POOL, ASSET) == 50

    custody.commit(
        Changeset(
            ops=(Credit(owner=POOL, asset=ASSET, amount=1),),
            expected_balances=((POOL, ASSET, 50),),
        )
    )
    assert custody.balance_of(POOL, ASSET) == 51


def test_derived_address_cannot_sign_a_debit() -> None:
    custody = TokenCustody()
    custody.credit(POOL, ASSET, 50)
    with pytest.raises(UnauthorizedError, match="derived address"):
        custody.debit(POOL, ASSET, 10, signer=POOL)
    with pytest.raises(UnauthorizedError):
        custody.transfer(POOL, ALICE, ASSET, 10, signer=POOL)
    assert custody.balance_of(POOL, ASSET) == 50
    assert custody.balance_of(ALICE, ASSET) == 0


def test_open_account_can_adopt_a_credited_account() -> None:
    custody = TokenCustody()
    custody.credit(POOL, ASSET, 9)
    address = custody.account_address(POOL, ASSET)

    custody.commit(Changeset(ops=(OpenAccount(owner=POOL, asset=ASSET, adopt_existing=True),)))
    assert custody.account_info(address) == (POOL, ASSET)
    assert custody.balance_of(POOL, ASSET) == 9

    with pytest.raises(AlreadyInitializedError):
        custody.commit(Changeset(ops=(OpenAccount(owner=POOL, asset=ASSET),)))
