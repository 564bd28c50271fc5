"""
Core pool algorithms
"""

from .curve import U64_MAX, U128_MAX, ceil_div, checked_add, checked_mul, mul_div_ceil
from .deposit import DepositQuote, DepositRegime, DepositRequest, quote_deposit, required_amounts

__all__ = [
    "U64_MAX",
    "U128_MAX",
    "ceil_div",
    "checked_add",
    "checked_mul",
    "mul_div_ceil",
    "DepositQuote",
    "DepositRegime",
    "DepositRequest",
    "quote_deposit",
    "required_amounts",
]
