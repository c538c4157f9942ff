"""
Core math modules для vault

Целочисленные примитивы с проверкой разрядности и математика
concentrated liquidity (Q64.64).
"""

# Fixed Point
from src.core.math.fixed_point import (
    U64_BITS,
    U64_MAX,
    U128_BITS,
    U128_MAX,
    U256_BITS,
    U256_MAX,
    checked_add,
    checked_div,
    checked_mul,
    checked_shl,
    checked_shr,
    checked_sub,
    mul_div_floor,
    require_uint,
    to_width,
)

# Tick Math
from src.core.math.tick_math import (
    MAX_SQRT_PRICE_X64,
    MAX_TICK,
    MIN_SQRT_PRICE_X64,
    MIN_TICK,
    Q64,
    sqrt_price_at_tick,
    tick_at_sqrt_price,
    validate_tick,
    validate_tick_range,
)

# Liquidity Amounts
from src.core.math.liquidity_amounts import (
    amount0_delta,
    amount1_delta,
    amounts_from_liquidity,
)

__all__ = [
    # Fixed Point: Widths
    "U64_BITS",
    "U64_MAX",
    "U128_BITS",
    "U128_MAX",
    "U256_BITS",
    "U256_MAX",
    # Fixed Point: Functions
    "checked_add",
    "checked_div",
    "checked_mul",
    "checked_shl",
    "checked_shr",
    "checked_sub",
    "mul_div_floor",
    "require_uint",
    "to_width",
    # Tick Math: Constants
    "MAX_SQRT_PRICE_X64",
    "MAX_TICK",
    "MIN_SQRT_PRICE_X64",
    "MIN_TICK",
    "Q64",
    # Tick Math: Functions
    "sqrt_price_at_tick",
    "tick_at_sqrt_price",
    "validate_tick",
    "validate_tick_range",
    # Liquidity Amounts
    "amount0_delta",
    "amount1_delta",
    "amounts_from_liquidity",
]
