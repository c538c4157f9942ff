"""
Snapshots — внешние снапшоты позиции, пула и балансов

Read-only входы одного вычисления. Ядро их не изменяет и не кэширует.
Соответствуют схемам position_snapshot.json, pool_snapshot.json,
asset_balance.json.
"""

from pydantic import BaseModel, Field, model_validator

from src.core.math.fixed_point import U64_MAX, U128_MAX
from src.core.math.tick_math import MAX_TICK, MIN_TICK


class PositionSnapshot(BaseModel):
    """Снапшот concentrated-liquidity позиции."""

    position_id: str = Field(..., min_length=1, description="Идентификатор позиции")
    pool_id: str = Field(..., min_length=1, description="Пул, в котором открыта позиция")
    liquidity: int = Field(..., ge=0, le=U128_MAX, description="Ликвидность (u128)")
    tick_lower: int = Field(..., ge=MIN_TICK, le=MAX_TICK, description="Нижний тик")
    tick_upper: int = Field(..., ge=MIN_TICK, le=MAX_TICK, description="Верхний тик")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_tick_order(self) -> "PositionSnapshot":
        if self.tick_lower > self.tick_upper:
            raise ValueError(
                f"tick_lower {self.tick_lower} must be <= tick_upper {self.tick_upper}"
            )
        return self


class PoolSnapshot(BaseModel):
    """Снапшот пула: текущая sqrt price в Q64.64."""

    pool_id: str = Field(..., min_length=1, description="Идентификатор пула")
    sqrt_price_x64: int = Field(..., ge=0, le=U128_MAX, description="sqrt price, Q64.64 (u128)")

    model_config = {"frozen": True}


class AssetBalance(BaseModel):
    """Баланс актива на custody-счёте vault."""

    asset_id: str = Field(..., min_length=1, description="Идентификатор актива")
    amount: int = Field(..., ge=0, le=U64_MAX, description="Баланс (u64)")

    model_config = {"frozen": True}
