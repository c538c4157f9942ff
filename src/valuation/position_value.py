"""
Position Value — оценка concentrated-liquidity позиции в quote-активе

Все позиции считаются парой TOKEN/QUOTE: asset B уже номинирован в quote,
asset A конвертируется по текущей цене пула.

Формулы:
    price = sqrt_price_x64^2 >> 128       (целая часть цены; квадрат в u256)
    (a, b) = amounts_from_liquidity(..., round_up=True)
    value = a * price + b                 (u128, затем сужение до u64)

Округление всегда вверх: позиция никогда не недооценивается.
"""

from dataclasses import dataclass

from src.core.domain.snapshots import PoolSnapshot, PositionSnapshot
from src.core.math.fixed_point import (
    U64_BITS,
    U128_BITS,
    U256_BITS,
    checked_add,
    checked_mul,
    checked_shr,
    to_width,
)
from src.core.math.liquidity_amounts import amounts_from_liquidity


@dataclass(frozen=True)
class PositionAmounts:
    """Разложение стоимости позиции."""

    amount_a: int  # token0 (u64)
    amount_b: int  # token1 / quote (u64)
    price: int  # целая цена token0 в quote (u128)
    value: int  # amount_a * price + amount_b (u64)


def pool_price(sqrt_price_x64: int) -> int:
    """
    Целая часть цены пула из sqrt price Q64.64.

    Квадрат считается в u256 (Q128.128), сдвиг на 128 возвращает
    результат в u128.

    Raises:
        CalculationError: sqrt_price_x64 шире u128
    """
    squared = checked_mul(sqrt_price_x64, sqrt_price_x64, U256_BITS)
    return to_width(checked_shr(squared, 128, U256_BITS), U128_BITS)


def position_amounts(position: PositionSnapshot, pool: PoolSnapshot) -> PositionAmounts:
    """
    Количества токенов, цена и итоговая стоимость позиции.

    Raises:
        CalculationError: Переполнение на любом шаге или стоимость шире u64
    """
    price = pool_price(pool.sqrt_price_x64)

    amount_a, amount_b = amounts_from_liquidity(
        position.liquidity,
        pool.sqrt_price_x64,
        position.tick_lower,
        position.tick_upper,
        round_up=True,
    )

    value_from_a = checked_mul(amount_a, price, U128_BITS)
    total = checked_add(value_from_a, amount_b, U128_BITS)

    return PositionAmounts(
        amount_a=amount_a,
        amount_b=amount_b,
        price=price,
        value=to_width(total, U64_BITS),
    )


def value_position(position: PositionSnapshot, pool: PoolSnapshot) -> int:
    """Стоимость позиции в quote-активе (u64)."""
    return position_amounts(position, pool).value
