"""Exception types for pool initialization, custody and deposits.

Every error carries a stable ``code`` so callers can tell "adjust your slippage
bounds and resubmit" (``RatioViolation``) apart from "this pool/account
reference is wrong" (``VaultMismatch``) and from non-recoverable misuse
(``AlreadyInitialized``, ``InvalidFeeRange``).

All of them are raised before anything is written, so a raised error always
means "no state changed".
"""

from __future__ import annotations


class PoolError(Exception):
    """Base class for every domain error raised by this package."""

    code = "PoolError"


class AlreadyInitializedError(PoolError):
    """A pool already exists for this unordered asset pair."""

    code = "AlreadyInitialized"


class InvalidArgumentError(PoolError, ValueError):
    """A malformed principal id or a negative amount."""

    code = "InvalidArgument"


class InvalidFeeRangeError(PoolError):
    code = "InvalidFeeRange"


class InvalidAssetPairError(PoolError):
    """Assets are identical or not well-formed identifiers."""

    code = "InvalidAssetPair"


class PoolNotFoundError(PoolError):
    code = "PoolNotFound"


class VaultMismatchError(PoolError):
    """Caller-supplied vault/mint/asset ids disagree with the pool config."""

    code = "VaultMismatch"


class ZeroAmountError(PoolError):
    code = "ZeroAmount"


class AmountOverflowError(PoolError):
    """An input, product or post-state sum left its representable range."""

    code = "Overflow"


class RatioViolationError(PoolError):
    """Amounts required to keep the reserve ratio exceed the caller's maximums."""

    code = "RatioViolation"

    def __init__(self, *, x_required: int, y_required: int, max_x: int, max_y: int) -> None:
        self.x_required = x_required
        self.y_required = y_required
        self.max_x = max_x
        self.max_y = max_y
        super().__init__(
            f"ratio violation: need (x={x_required}, y={y_required}) "
            f"but caller allows at most (x={max_x}, y={max_y})"
        )


class InsufficientBalanceError(PoolError):
    code = "InsufficientBalance"


class UnauthorizedError(PoolError):
    code = "Unauthorized"


class StaleStateError(PoolError):
    """Reserves or supply moved between quote and commit."""

    code = "StaleState"
