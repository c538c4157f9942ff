"""
Tick Math — Tick ↔ sqrt price (Q64.64)

Конверсия индекса тика в квадратный корень цены в формате Q64.64
и обратно. Только целочисленная арифметика через fixed_point.

Алгоритм sqrt_price_at_tick (стандартная лестница concentrated-liquidity AMM):
    1. ratio = 2^128 (Q128.128, tick = 0) или поправка для бита 0x1
    2. Для каждого установленного бита |tick| (0x2 ... 0x80000):
           ratio = ratio * K_bit >> 128,  K_bit = 2^128 / sqrt(1.0001)^bit
    3. tick > 0 → ratio = U256_MAX // ratio (обращение)
    4. Q128.128 → Q64.64: ratio >> 64 с округлением вверх при потере битов

Формулы:
    sqrt_price = sqrt(1.0001)^tick * 2^64
    sqrt_price(t) * sqrt_price(-t) ≈ 2^128
"""

from typing import Final

from src.core.errors import CalculationError
from src.core.math.fixed_point import (
    U128_BITS,
    U256_BITS,
    U256_MAX,
    checked_div,
    checked_mul,
    checked_shr,
    require_uint,
    to_width,
)

# =============================================================================
# TICK CONSTANTS
# =============================================================================

MIN_TICK: Final[int] = -443636
MAX_TICK: Final[int] = 443636

# 1.0 в Q64.64
Q64: Final[int] = 1 << 64

# 1.0 в Q128.128, база лестницы для чётного |tick|
_RATIO_ONE_Q128: Final[int] = 1 << 128

# Поправка для бита 0x1: 2^128 / sqrt(1.0001)
_RATIO_BIT0_Q128: Final[int] = 0xFFFCB933BD6FAD37AA2D162D1A594001

# Поправки для битов 0x2 ... 0x80000 (Q128.128)
_TICK_BIT_FACTORS: Final[tuple[tuple[int, int], ...]] = (
    (0x2, 0xFFF97272373D413259A46990580E213A),
    (0x4, 0xFFF2E50F5F656932EF12357CF3C7FDCC),
    (0x8, 0xFFE5CACA7E10E4E61C3624EAA0941CD0),
    (0x10, 0xFFCB9843D60F6159C9DB58835C926644),
    (0x20, 0xFF973B41FA98C081472E6896DFB254C0),
    (0x40, 0xFF2EA16466C96A3843EC78B326B52861),
    (0x80, 0xFE5DEE046A99A2A811C461F1969C3053),
    (0x100, 0xFCBE86C7900A88AEDCFFC83B479AA3A4),
    (0x200, 0xF987A7253AC413176F2B074CF7815E54),
    (0x400, 0xF3392B0822B70005940C7A398E4B70F3),
    (0x800, 0xE7159475A2C29B7443B29C7FA6E889D9),
    (0x1000, 0xD097F3BDFD2022B8845AD8F792AA5825),
    (0x2000, 0xA9F746462D870FDF8A65DC1F90E061E5),
    (0x4000, 0x70D869A156D2A1B890BB3DF62BAF32F7),
    (0x8000, 0x31BE135F97D08FD981231505542FCFA6),
    (0x10000, 0x9AA508B5B7A84E1C677DE54F3E99BC9),
    (0x20000, 0x5D6AF8DEDB81196699C329225EE604),
    (0x40000, 0x2216E584F5FA1EA926041BEDFE98),
    (0x80000, 0x48A170391F7DC42444E8FA2),
)


# =============================================================================
# TICK → SQRT PRICE
# =============================================================================


def validate_tick(tick: int) -> int:
    """
    Проверка индекса тика.

    Raises:
        CalculationError: Если tick не int или |tick| > MAX_TICK
    """
    if not isinstance(tick, int) or isinstance(tick, bool):
        raise CalculationError(f"tick must be an integer, got {type(tick).__name__}")
    if abs(tick) > MAX_TICK:
        raise CalculationError(f"tick out of range: {tick} (|tick| must be <= {MAX_TICK})")
    return tick


def validate_tick_range(tick_lower: int, tick_upper: int) -> None:
    """
    Проверка диапазона позиции: оба тика валидны, tick_lower <= tick_upper.

    Raises:
        CalculationError: Если диапазон некорректен
    """
    validate_tick(tick_lower)
    validate_tick(tick_upper)
    if tick_lower > tick_upper:
        raise CalculationError(
            f"tick_lower must be <= tick_upper, got {tick_lower} > {tick_upper}"
        )


def sqrt_price_at_tick(tick: int) -> int:
    """
    sqrt price (Q64.64) для индекса тика.

    Args:
        tick: Индекс тика, |tick| <= 443636

    Returns:
        sqrt(1.0001^tick) * 2^64, u128

    Raises:
        CalculationError: Если тик вне диапазона

    Examples:
        >>> sqrt_price_at_tick(0) == 2**64
        True
    """
    validate_tick(tick)
    abs_tick = abs(tick)

    ratio = _RATIO_BIT0_Q128 if abs_tick & 0x1 else _RATIO_ONE_Q128

    for bit, factor in _TICK_BIT_FACTORS:
        if abs_tick & bit:
            ratio = checked_shr(checked_mul(ratio, factor, U256_BITS), 128, U256_BITS)

    if tick > 0:
        ratio = checked_div(U256_MAX, ratio, U256_BITS)

    # Q128.128 -> Q64.64, округление вверх
    sqrt_price_x64 = checked_shr(ratio, 64, U256_BITS)
    if ratio & (Q64 - 1):
        sqrt_price_x64 += 1

    return to_width(sqrt_price_x64, U128_BITS)


# Границы sqrt price для допустимого диапазона тиков
MIN_SQRT_PRICE_X64: Final[int] = sqrt_price_at_tick(MIN_TICK)
MAX_SQRT_PRICE_X64: Final[int] = sqrt_price_at_tick(MAX_TICK)


# =============================================================================
# SQRT PRICE → TICK
# =============================================================================


def tick_at_sqrt_price(sqrt_price_x64: int) -> int:
    """
    Наибольший тик t такой, что sqrt_price_at_tick(t) <= sqrt_price_x64.

    sqrt_price_at_tick монотонно возрастает, поэтому используется двоичный
    поиск по [MIN_TICK, MAX_TICK] (не более 20 итераций) — результат
    согласован с прямой конверсией бит-в-бит.

    Raises:
        CalculationError: Если sqrt_price_x64 вне [MIN_SQRT_PRICE_X64, MAX_SQRT_PRICE_X64]
    """
    require_uint(sqrt_price_x64, U128_BITS, "sqrt_price_x64")
    if sqrt_price_x64 < MIN_SQRT_PRICE_X64 or sqrt_price_x64 > MAX_SQRT_PRICE_X64:
        raise CalculationError(
            f"sqrt_price_x64 out of range: {sqrt_price_x64} "
            f"(range: {MIN_SQRT_PRICE_X64} ~ {MAX_SQRT_PRICE_X64})"
        )

    low, high = MIN_TICK, MAX_TICK
    while low < high:
        mid = (low + high + 1) // 2
        if sqrt_price_at_tick(mid) <= sqrt_price_x64:
            low = mid
        else:
            high = mid - 1

    return low
