"""
Share Accounting — выпуск и погашение долей

Модуль вычисляет:
- количество долей к выпуску при депозите базового актива
- погашение долей при выводе с двухчастной комиссией
  (owner fee — передаётся владельцу, burn fee — сжигается)

Все вычисления в u64 через checked-примитивы fixed_point.

ФОРМУЛЫ:
    Депозит:
        total_shares == 0 → shares_to_mint = deposit_amount
        иначе            → shares_to_mint = deposit_amount * total_shares // pool_balance
    Вывод:
        owner_fee_shares = shares * owner_fee_bps // 10000
        burn_fee_shares  = shares * burn_fee_bps  // 10000
        shares_to_redeem = shares - owner_fee_shares - burn_fee_shares
        base_asset_out   = shares_to_redeem * pool_balance // total_shares
        new_total_shares = total_shares - burn_fee_shares

ЗНАМЕНАТЕЛЬ: pool_balance — сырой баланс базового актива на custody-счёте,
а не полная стоимость vault (позиция + whitelisted активы). Цена доли при
депозите/выводе и стоимость доли из vault_value поэтому расходятся, когда
у vault есть позиция или другие активы. Поведение сохранено намеренно;
см. DESIGN.md (open question).
"""

from dataclasses import dataclass

from src.core.config import BPS_DENOMINATOR, BURN_FEE_BPS, OWNER_FEE_BPS, validate_fee_bps
from src.core.math.fixed_point import (
    U64_BITS,
    checked_add,
    checked_sub,
    mul_div_floor,
    require_uint,
)


# =============================================================================
# ТИПЫ
# =============================================================================


@dataclass(frozen=True)
class Redemption:
    """Результат погашения долей."""

    base_asset_out: int  # выплата выводящему (базовый актив)
    owner_fee_shares: int  # доли, передаваемые владельцу
    burn_fee_shares: int  # доли к сжиганию
    shares_to_redeem: int  # доли, фактически обменянные на базовый актив
    new_total_shares: int  # total_shares после сжигания burn fee


# =============================================================================
# DEPOSIT
# =============================================================================


def shares_for_deposit(
    deposit_amount: int,
    total_shares: int,
    pool_base_asset_balance: int,
) -> int:
    """
    Количество долей к выпуску за депозит.

    Args:
        deposit_amount: Сумма депозита (u64)
        total_shares: Доли в обращении до депозита (u64)
        pool_base_asset_balance: Баланс базового актива пула до депозита (u64)

    Returns:
        shares_to_mint (u64)

    Raises:
        CalculationError: pool_base_asset_balance == 0 при total_shares > 0,
            переполнение произведения

    Examples:
        >>> shares_for_deposit(1_000_000, 0, 0)
        1000000
        >>> shares_for_deposit(500_000, 1_000_000, 2_000_000)
        250000
    """
    require_uint(deposit_amount, U64_BITS, "deposit_amount")
    require_uint(total_shares, U64_BITS, "total_shares")
    require_uint(pool_base_asset_balance, U64_BITS, "pool_base_asset_balance")

    if total_shares == 0:
        # Первый депозит: 1:1
        return deposit_amount

    return mul_div_floor(deposit_amount, total_shares, pool_base_asset_balance, U64_BITS)


def apply_deposit(total_shares: int, shares_to_mint: int) -> int:
    """
    Новое значение total_shares после выпуска.

    Raises:
        CalculationError: Переполнение u64
    """
    return checked_add(total_shares, shares_to_mint, U64_BITS)


# =============================================================================
# WITHDRAW
# =============================================================================


def fee_shares(shares_amount: int, fee_bps: int) -> int:
    """shares_amount * fee_bps // 10000 (u64, checked)."""
    return mul_div_floor(shares_amount, fee_bps, BPS_DENOMINATOR, U64_BITS)


def redeem_shares(
    shares_amount: int,
    total_shares: int,
    pool_base_asset_balance: int,
    owner_fee_bps: int = OWNER_FEE_BPS,
    burn_fee_bps: int = BURN_FEE_BPS,
) -> Redemption:
    """
    Погашение долей с комиссиями.

    Owner fee остаётся в обращении (меняется только владелец долей),
    поэтому total_shares уменьшается только на burn fee.

    Args:
        shares_amount: Доли, предъявленные к выводу (u64)
        total_shares: Доли в обращении (u64)
        pool_base_asset_balance: Баланс базового актива пула (u64)
        owner_fee_bps: Ставка комиссии владельца (default 50 = 0.5%)
        burn_fee_bps: Ставка сжигания (default 100 = 1%)

    Returns:
        Redemption

    Raises:
        InvalidFeePercentage: Ставки вне диапазона
        CalculationError: total_shares == 0, underflow, переполнение

    Examples:
        >>> r = redeem_shares(10_000, 1_250_000, 2_500_000)
        >>> (r.owner_fee_shares, r.burn_fee_shares, r.base_asset_out, r.new_total_shares)
        (50, 100, 19700, 1249900)
    """
    validate_fee_bps(owner_fee_bps, burn_fee_bps)
    require_uint(shares_amount, U64_BITS, "shares_amount")
    require_uint(total_shares, U64_BITS, "total_shares")
    require_uint(pool_base_asset_balance, U64_BITS, "pool_base_asset_balance")

    owner_fee_shares = fee_shares(shares_amount, owner_fee_bps)
    burn_fee_shares = fee_shares(shares_amount, burn_fee_bps)

    shares_to_redeem = checked_sub(
        checked_sub(shares_amount, owner_fee_shares, U64_BITS),
        burn_fee_shares,
        U64_BITS,
    )

    base_asset_out = mul_div_floor(
        shares_to_redeem, pool_base_asset_balance, total_shares, U64_BITS
    )

    new_total_shares = checked_sub(total_shares, burn_fee_shares, U64_BITS)

    return Redemption(
        base_asset_out=base_asset_out,
        owner_fee_shares=owner_fee_shares,
        burn_fee_shares=burn_fee_shares,
        shares_to_redeem=shares_to_redeem,
        new_total_shares=new_total_shares,
    )
