"""
Liquidity Amounts — токены позиции из ликвидности

Разложение ликвидности concentrated-liquidity позиции на количества
двух токенов (asset A = token0, asset B = token1) при текущей цене.

Формулы (Q64.64, все операции checked):
    amount0 = (L << 64) // sqrt_upper              (+1 при round_up)
    amount1 = (L * (sqrt_upper - sqrt_lower)) >> 64 (+1 при round_up)

Ветвление по положению текущей цены относительно диапазона:
    current <= sqrt_lower          → только token0
    sqrt_lower < current < sqrt_upper → оба токена
    current >= sqrt_upper          → только token1

Равенство на любой границе уходит в однотокенную ветку.
"""

from src.core.errors import CalculationError
from src.core.math.fixed_point import (
    U64_BITS,
    U128_BITS,
    checked_add,
    checked_div,
    checked_mul,
    checked_shl,
    checked_shr,
    checked_sub,
    require_uint,
    to_width,
)
from src.core.math.tick_math import sqrt_price_at_tick, validate_tick_range


def _validate_price_bounds(sqrt_price_lower: int, sqrt_price_upper: int) -> None:
    require_uint(sqrt_price_lower, U128_BITS, "sqrt_price_lower")
    require_uint(sqrt_price_upper, U128_BITS, "sqrt_price_upper")
    if sqrt_price_lower > sqrt_price_upper:
        raise CalculationError(
            f"sqrt_price_lower must be <= sqrt_price_upper, "
            f"got {sqrt_price_lower} > {sqrt_price_upper}"
        )


def _round_and_narrow(amount: int, round_up: bool) -> int:
    if round_up:
        amount = checked_add(amount, 1, U128_BITS)
    return to_width(amount, U64_BITS)


def amount0_delta(
    liquidity: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int,
    round_up: bool,
) -> int:
    """
    Количество token0 для ликвидности на участке [sqrt_price_lower, sqrt_price_upper].

    Args:
        liquidity: Ликвидность позиции (u128)
        sqrt_price_lower: Нижняя граница участка (Q64.64)
        sqrt_price_upper: Верхняя граница участка (Q64.64)
        round_up: True → +1 к частному (консервативная оценка)

    Returns:
        amount0 (u64)

    Raises:
        CalculationError: sqrt_price_lower > sqrt_price_upper, sqrt_price_upper == 0,
            L << 64 шире u128, результат шире u64
    """
    require_uint(liquidity, U128_BITS, "liquidity")
    _validate_price_bounds(sqrt_price_lower, sqrt_price_upper)

    numerator = checked_shl(liquidity, 64, U128_BITS)
    amount = checked_div(numerator, sqrt_price_upper, U128_BITS)
    return _round_and_narrow(amount, round_up)


def amount1_delta(
    liquidity: int,
    sqrt_price_lower: int,
    sqrt_price_upper: int,
    round_up: bool,
) -> int:
    """
    Количество token1 для ликвидности на участке [sqrt_price_lower, sqrt_price_upper].

    Raises:
        CalculationError: sqrt_price_lower > sqrt_price_upper, произведение шире u128,
            результат шире u64
    """
    require_uint(liquidity, U128_BITS, "liquidity")
    _validate_price_bounds(sqrt_price_lower, sqrt_price_upper)

    delta = checked_sub(sqrt_price_upper, sqrt_price_lower, U128_BITS)
    product = checked_mul(liquidity, delta, U128_BITS)
    amount = checked_shr(product, 64, U128_BITS)
    return _round_and_narrow(amount, round_up)


def amounts_from_liquidity(
    liquidity: int,
    sqrt_price_current: int,
    tick_lower: int,
    tick_upper: int,
    round_up: bool,
) -> tuple[int, int]:
    """
    Количества (token0, token1), представленные позицией при текущей цене.

    Args:
        liquidity: Ликвидность позиции (u128)
        sqrt_price_current: Текущая sqrt price пула (Q64.64)
        tick_lower: Нижний тик позиции
        tick_upper: Верхний тик позиции
        round_up: Направление округления для обеих компонент

    Returns:
        (amount_a, amount_b) в u64

    Raises:
        CalculationError: Некорректный диапазон тиков или переполнение
    """
    require_uint(sqrt_price_current, U128_BITS, "sqrt_price_current")
    validate_tick_range(tick_lower, tick_upper)

    sqrt_price_lower = sqrt_price_at_tick(tick_lower)
    sqrt_price_upper = sqrt_price_at_tick(tick_upper)

    if sqrt_price_current <= sqrt_price_lower:
        # Цена ниже диапазона: только token0
        amount_a = amount0_delta(liquidity, sqrt_price_lower, sqrt_price_upper, round_up)
        return amount_a, 0

    if sqrt_price_current < sqrt_price_upper:
        # Цена внутри диапазона: оба токена
        amount_a = amount0_delta(liquidity, sqrt_price_current, sqrt_price_upper, round_up)
        amount_b = amount1_delta(liquidity, sqrt_price_lower, sqrt_price_current, round_up)
        return amount_a, amount_b

    # Цена выше диапазона: только token1
    amount_b = amount1_delta(liquidity, sqrt_price_lower, sqrt_price_upper, round_up)
    return 0, amount_b
