"""
Тесты для модуля Position Value

Проверяет:
1. Целую цену пула из sqrt price (квадрат в u256)
2. Стоимость позиции ниже / внутри / выше диапазона
3. Переполнение итоговой стоимости u64
"""

import pytest
from pydantic import ValidationError

from src.core.domain import PoolSnapshot, PositionSnapshot
from src.core.errors import CalculationError
from src.core.math.fixed_point import U128_MAX
from src.core.math.liquidity_amounts import amount0_delta, amount1_delta
from src.core.math.tick_math import Q64, sqrt_price_at_tick
from src.valuation import pool_price, position_amounts, value_position


def make_position(liquidity: int, tick_lower: int, tick_upper: int) -> PositionSnapshot:
    return PositionSnapshot(
        position_id="pos-1",
        pool_id="pool-1",
        liquidity=liquidity,
        tick_lower=tick_lower,
        tick_upper=tick_upper,
    )


def make_pool(sqrt_price_x64: int) -> PoolSnapshot:
    return PoolSnapshot(pool_id="pool-1", sqrt_price_x64=sqrt_price_x64)


# =============================================================================
# POOL PRICE
# =============================================================================


class TestPoolPrice:
    """Тесты для pool_price"""

    def test_unit_price(self) -> None:
        assert pool_price(Q64) == 1

    def test_integer_price(self) -> None:
        """sqrt = 10 → price = 100"""
        assert pool_price(10 * Q64) == 100

    def test_fractional_price_truncates_to_zero(self) -> None:
        assert pool_price(Q64 - 1) == 0

    def test_max_sqrt_price_fits(self) -> None:
        """Квадрат u128 не переполняет промежуточный u256"""
        assert pool_price(U128_MAX) == 2**128 - 2

    def test_wider_than_u128_raises(self) -> None:
        with pytest.raises(CalculationError):
            pool_price(2**129)


# =============================================================================
# POSITION VALUE
# =============================================================================


class TestPositionValue:
    """Тесты для position_amounts / value_position"""

    def test_below_range(self) -> None:
        """Цена на нижней границе: только token A по цене 1"""
        position = make_position(10**6, 0, 1000)
        amounts = position_amounts(position, make_pool(Q64))

        expected_a = amount0_delta(10**6, Q64, sqrt_price_at_tick(1000), True)
        assert amounts.amount_a == expected_a
        assert amounts.amount_b == 0
        assert amounts.price == 1
        assert amounts.value == expected_a

    def test_above_range(self) -> None:
        """Цена на верхней границе: только token B (уже в quote)"""
        position = make_position(10**6, -1000, 0)
        amounts = position_amounts(position, make_pool(Q64))

        expected_b = amount1_delta(10**6, sqrt_price_at_tick(-1000), Q64, True)
        assert amounts.amount_a == 0
        assert amounts.amount_b == expected_b
        assert amounts.value == expected_b

    def test_in_range(self) -> None:
        """Цена 100 внутри диапазона: value = a * 100 + b"""
        current = 10 * Q64
        position = make_position(10**6, 40000, 50000)
        amounts = position_amounts(position, make_pool(current))

        expected_a = amount0_delta(10**6, current, sqrt_price_at_tick(50000), True)
        expected_b = amount1_delta(10**6, sqrt_price_at_tick(40000), current, True)
        assert amounts.price == 100
        assert amounts.amount_a == expected_a
        assert amounts.amount_b == expected_b
        assert amounts.value == expected_a * 100 + expected_b

    def test_in_range_literal_amounts(self) -> None:
        """Диапазон [-1, 0], цена чуть ниже 1: значения посчитаны вручную

        sqrt_lower = 0xFFFCB933BD6FAD38, sqrt_upper = 2^64
        a = (2^32 << 64) / 2^64 + 1
        b = (2^32 * (0xFFFE000000000000 - sqrt_lower)) >> 64 + 1 = 0x146CC + 1
        """
        assert sqrt_price_at_tick(-1) == 0xFFFCB933BD6FAD38

        position = make_position(2**32, -1, 0)
        amounts = position_amounts(position, make_pool(0xFFFE000000000000))

        assert amounts.amount_a == 4_294_967_297
        assert amounts.amount_b == 83_661
        assert amounts.price == 0
        assert amounts.value == 83_661

    def test_value_position_matches_amounts(self) -> None:
        position = make_position(10**6, 40000, 50000)
        pool = make_pool(10 * Q64)
        assert value_position(position, pool) == position_amounts(position, pool).value

    def test_value_wider_than_u64_raises(self) -> None:
        """a * price помещается в u128, но не в u64"""
        position = make_position(10**18, 300000, 310000)
        with pytest.raises(CalculationError, match="does not fit in u64"):
            value_position(position, make_pool(2**84))

    def test_oversized_sqrt_price_rejected_by_snapshot(self) -> None:
        with pytest.raises(ValidationError):
            make_pool(U128_MAX + 1)
