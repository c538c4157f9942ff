"""
Vault Value — агрегированная стоимость vault и стоимость одной доли

total_value = value_position (если есть активная позиция)
            + Σ amount для балансов whitelisted активов

per_share_value = total_value * SHARE_VALUE_SCALE // total_shares
                  (0 при total_shares == 0 — определённый ответ для пустого vault)

Перед оценкой позиции снапшоты сверяются со ссылками в Vault.
"""

from typing import Iterable

from src.core.config import ValuationConfig
from src.core.domain.snapshots import AssetBalance, PoolSnapshot, PositionSnapshot
from src.core.domain.vault import Vault
from src.core.errors import (
    InsufficientLiquidity,
    InvalidWhirlpool,
    MissingWhirlpool,
    PositionMismatch,
)
from src.core.math.fixed_point import U64_BITS, checked_add, mul_div_floor
from src.valuation.position_value import value_position

_DEFAULT_VALUATION_CONFIG = ValuationConfig()


def validate_snapshots(
    vault: Vault,
    position: PositionSnapshot | None,
    pool: PoolSnapshot | None,
) -> None:
    """
    Сверка снапшотов позиции и пула с активной позицией vault.

    Вызывается только когда у vault есть активная позиция.

    Raises:
        PositionMismatch: Снапшот позиции отсутствует или не совпадает с vault,
            пул не совпадает с vault
        MissingWhirlpool: Снапшот пула отсутствует
        InvalidWhirlpool: Позиция открыта в другом пуле, чем переданный
        InsufficientLiquidity: У активной позиции нулевая ликвидность
    """
    if position is None:
        raise PositionMismatch(
            f"vault {vault.vault_key} has active position {vault.current_position} "
            f"but no position snapshot was supplied"
        )
    if position.position_id != vault.current_position:
        raise PositionMismatch(
            f"position snapshot {position.position_id} does not match "
            f"vault position {vault.current_position}"
        )
    if pool is None:
        raise MissingWhirlpool(
            f"no pool snapshot supplied for position {position.position_id}"
        )
    if pool.pool_id != vault.current_pool:
        raise PositionMismatch(
            f"pool snapshot {pool.pool_id} does not match vault pool {vault.current_pool}"
        )
    if position.pool_id != pool.pool_id:
        raise InvalidWhirlpool(
            f"position {position.position_id} belongs to pool {position.pool_id}, "
            f"not {pool.pool_id}"
        )
    if position.liquidity == 0:
        raise InsufficientLiquidity(
            f"active position {position.position_id} has zero liquidity"
        )


def total_value(
    vault: Vault,
    position: PositionSnapshot | None = None,
    pool: PoolSnapshot | None = None,
    balances: Iterable[AssetBalance] = (),
) -> int:
    """
    Полная стоимость vault в quote-активе (u64).

    Снапшоты позиции/пула игнорируются, если у vault нет активной позиции.
    Балансы не-whitelisted активов игнорируются.

    Raises:
        CalculationError: Переполнение u64
        PositionMismatch, MissingWhirlpool, InvalidWhirlpool,
        InsufficientLiquidity: см. validate_snapshots
    """
    value = 0

    if vault.active_position is not None:
        validate_snapshots(vault, position, pool)
        value = checked_add(value, value_position(position, pool), U64_BITS)

    for balance in balances:
        if vault.is_whitelisted(balance.asset_id):
            value = checked_add(value, balance.amount, U64_BITS)

    return value


def per_share_value(
    vault: Vault,
    position: PositionSnapshot | None = None,
    pool: PoolSnapshot | None = None,
    balances: Iterable[AssetBalance] = (),
    config: ValuationConfig = _DEFAULT_VALUATION_CONFIG,
) -> int:
    """
    Стоимость одной доли с фиксированной точностью (6 знаков по умолчанию).

    Returns:
        0 если total_shares == 0 (снапшоты при этом не оцениваются),
        иначе total_value * scale // total_shares

    Raises:
        CalculationError: Переполнение u64
    """
    if vault.total_shares == 0:
        return 0

    value = total_value(vault, position, pool, balances)
    return mul_div_floor(value, config.share_value_scale, vault.total_shares, U64_BITS)
