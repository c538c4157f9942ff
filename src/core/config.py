"""
Vault Config — параметры комиссий, лимитов и точности

Конфигурация задаётся неизменяемыми dataclass'ами с дефолтами;
переопределение — созданием нового экземпляра с нужными полями.
"""

from dataclasses import dataclass
from typing import Final

from src.core.errors import InvalidFeePercentage


# =============================================================================
# CONSTANTS
# =============================================================================

# 1 bps = 1/10000
BPS_DENOMINATOR: Final[int] = 10_000

# Комиссия владельца при выводе (0.5%), доли переходят владельцу
OWNER_FEE_BPS: Final[int] = 50

# Комиссия сжигания при выводе (1%), доли уничтожаются
BURN_FEE_BPS: Final[int] = 100

# Ёмкость whitelist
MAX_WHITELISTED_ASSETS: Final[int] = 10

# Масштаб стоимости одной доли (6 знаков после запятой)
SHARE_VALUE_SCALE: Final[int] = 1_000_000


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class FeeConfig:
    """Конфигурация комиссий при выводе.

    - owner_fee_bps: доля, переводимая владельцу vault (остаётся в обращении)
    - burn_fee_bps: доля, сжигаемая (уменьшает total_shares)
    """

    owner_fee_bps: int = OWNER_FEE_BPS
    burn_fee_bps: int = BURN_FEE_BPS

    def __post_init__(self) -> None:
        validate_fee_bps(self.owner_fee_bps, self.burn_fee_bps)


@dataclass(frozen=True)
class ValuationConfig:
    """Конфигурация оценки vault."""

    share_value_scale: int = SHARE_VALUE_SCALE

    def __post_init__(self) -> None:
        if self.share_value_scale <= 0:
            raise ValueError(f"share_value_scale must be positive, got {self.share_value_scale}")


def validate_fee_bps(owner_fee_bps: int, burn_fee_bps: int) -> None:
    """
    Проверка ставок комиссий.

    Каждая ставка в [0, BPS_DENOMINATOR], сумма не превышает BPS_DENOMINATOR
    (иначе комиссии больше выводимых долей).

    Raises:
        InvalidFeePercentage: Если ставки вне диапазона
    """
    for name, bps in (("owner_fee_bps", owner_fee_bps), ("burn_fee_bps", burn_fee_bps)):
        if not isinstance(bps, int) or isinstance(bps, bool):
            raise InvalidFeePercentage(f"{name} must be an integer, got {bps!r}")
        if bps < 0 or bps > BPS_DENOMINATOR:
            raise InvalidFeePercentage(
                f"{name} must be within [0, {BPS_DENOMINATOR}], got {bps}"
            )

    if owner_fee_bps + burn_fee_bps > BPS_DENOMINATOR:
        raise InvalidFeePercentage(
            f"owner_fee_bps + burn_fee_bps exceeds {BPS_DENOMINATOR}: "
            f"{owner_fee_bps} + {burn_fee_bps}"
        )
