"""
Fixed Point — Checked Unsigned Integer Primitives

Модуль эмулирует беззнаковую арифметику фиксированной разрядности
(u64 / u128 / u256) поверх Python int:
- Сложение, вычитание, умножение, деление с проверкой разрядности
- Сдвиги с проверкой величины сдвига и переполнения
- Сужение разрядности (u128 → u64) без усечения

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Переполнение, underflow и деление на ноль → CalculationError
2. Никакой операции с насыщением (saturating) или wraparound
3. Отрицательные операнды недопустимы
4. Все операции детерминированы и воспроизводимы
"""

from typing import Final

from src.core.errors import CalculationError

# =============================================================================
# РАЗРЯДНОСТИ
# =============================================================================

U64_BITS: Final[int] = 64
U128_BITS: Final[int] = 128
U256_BITS: Final[int] = 256

U64_MAX: Final[int] = (1 << U64_BITS) - 1
U128_MAX: Final[int] = (1 << U128_BITS) - 1
U256_MAX: Final[int] = (1 << U256_BITS) - 1

_SUPPORTED_BITS: Final[frozenset[int]] = frozenset({U64_BITS, U128_BITS, U256_BITS})


def max_for_bits(bits: int) -> int:
    """Максимальное значение беззнакового целого разрядности bits."""
    if bits not in _SUPPORTED_BITS:
        raise ValueError(f"Unsupported integer width: {bits}")
    return (1 << bits) - 1


# =============================================================================
# ВАЛИДАЦИЯ ОПЕРАНДОВ
# =============================================================================


def require_uint(value: int, bits: int = U64_BITS, name: str = "value") -> int:
    """
    Проверка, что value — целое в диапазоне [0, 2^bits - 1].

    bool отвергается явно: True/False не являются количествами.

    Raises:
        CalculationError: Если value не int, отрицательное или шире bits
    """
    if not isinstance(value, int) or isinstance(value, bool):
        raise CalculationError(f"{name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise CalculationError(f"{name} must be non-negative, got {value}")
    if value > max_for_bits(bits):
        raise CalculationError(f"{name} does not fit in u{bits}: {value}")
    return value


def to_width(value: int, bits: int = U64_BITS) -> int:
    """
    Сужение результата до разрядности bits.

    В отличие от `as u64` не усекает старшие биты, а падает.

    Examples:
        >>> to_width(2**64 - 1, 64)
        18446744073709551615
        >>> to_width(2**64, 64)  # doctest: +SKIP
        Traceback (most recent call last):
            ...
        CalculationError: ...
    """
    return require_uint(value, bits, name="result")


# =============================================================================
# CHECKED ARITHMETIC
# =============================================================================


def checked_add(a: int, b: int, bits: int = U64_BITS) -> int:
    """a + b в разрядности bits."""
    require_uint(a, bits, "lhs")
    require_uint(b, bits, "rhs")
    result = a + b
    if result > max_for_bits(bits):
        raise CalculationError(f"u{bits} addition overflow: {a} + {b}")
    return result


def checked_sub(a: int, b: int, bits: int = U64_BITS) -> int:
    """a - b в разрядности bits. Underflow (b > a) → CalculationError."""
    require_uint(a, bits, "lhs")
    require_uint(b, bits, "rhs")
    if b > a:
        raise CalculationError(f"u{bits} subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int, bits: int = U64_BITS) -> int:
    """a * b в разрядности bits."""
    require_uint(a, bits, "lhs")
    require_uint(b, bits, "rhs")
    result = a * b
    if result > max_for_bits(bits):
        raise CalculationError(f"u{bits} multiplication overflow: {a} * {b}")
    return result


def checked_div(a: int, b: int, bits: int = U64_BITS) -> int:
    """
    Целочисленное деление a // b (floor) в разрядности bits.

    Raises:
        CalculationError: Если b == 0
    """
    require_uint(a, bits, "lhs")
    require_uint(b, bits, "rhs")
    if b == 0:
        raise CalculationError(f"u{bits} division by zero: {a} / 0")
    return a // b


def checked_shr(a: int, shift: int, bits: int = U128_BITS) -> int:
    """
    Логический сдвиг вправо.

    Сдвиг на величину >= bits недопустим (как checked_shr для uN).
    """
    require_uint(a, bits, "lhs")
    if not isinstance(shift, int) or shift < 0 or shift >= bits:
        raise CalculationError(f"u{bits} shift right out of range: {shift}")
    return a >> shift


def checked_shl(a: int, shift: int, bits: int = U128_BITS) -> int:
    """
    Сдвиг влево. Потеря старших битов считается переполнением.
    """
    require_uint(a, bits, "lhs")
    if not isinstance(shift, int) or shift < 0 or shift >= bits:
        raise CalculationError(f"u{bits} shift left out of range: {shift}")
    result = a << shift
    if result > max_for_bits(bits):
        raise CalculationError(f"u{bits} shift left overflow: {a} << {shift}")
    return result


def mul_div_floor(a: int, b: int, denominator: int, bits: int = U64_BITS) -> int:
    """
    a * b // denominator, где и произведение, и результат в разрядности bits.

    Промежуточное произведение НЕ расширяется: это контракт share-математики,
    где переполнение произведения должно приводить к ошибке.
    """
    return checked_div(checked_mul(a, b, bits), denominator, bits)
