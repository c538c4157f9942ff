"""
Vault — Модель состояния vault

Immutable Pydantic модель, представляющая персистентное состояние
одного vault (пара owner / share asset). Полная совместимость с
JSON Schema (src/core/contracts/schema/vault_state.json).

Инварианты, обеспечиваемые типом:
- total_shares в [0, 2^64 - 1]
- активная позиция и её пул заданы парой (ActivePosition) или отсутствуют
- whitelist не длиннее MAX_WHITELISTED_ASSETS и без дубликатов
"""

from pydantic import BaseModel, Field

from src.core.domain.whitelist import AssetWhitelist
from src.core.math.fixed_point import U64_MAX


class ActivePosition(BaseModel):
    """
    Ссылка на активную позицию и пул, в котором она открыта.

    Позиция без пула (и наоборот) невыразима.
    """

    position_id: str = Field(..., min_length=1, description="Идентификатор позиции")
    pool_id: str = Field(..., min_length=1, description="Идентификатор пула (whirlpool)")

    model_config = {"frozen": True}


class Vault(BaseModel):
    """
    Модель состояния vault.

    Immutable модель (frozen=True): каждая операция возвращает новый
    экземпляр, исходный остаётся нетронутым при любой ошибке.
    """

    owner: str = Field(..., min_length=1, description="Владелец vault")
    share_asset_id: str = Field(..., min_length=1, description="Идентификатор share-токена")
    total_shares: int = Field(
        default=0, ge=0, le=U64_MAX, description="Количество долей в обращении (u64)"
    )
    active_position: ActivePosition | None = Field(
        default=None, description="Активная позиция и её пул (nullable)"
    )
    whitelist: AssetWhitelist = Field(
        default_factory=AssetWhitelist, description="Whitelist активов для оценки"
    )

    model_config = {"frozen": True}

    @property
    def vault_key(self) -> str:
        """Идентичность vault: owner + share asset."""
        return f"{self.owner}:{self.share_asset_id}"

    @property
    def current_position(self) -> str | None:
        return self.active_position.position_id if self.active_position else None

    @property
    def current_pool(self) -> str | None:
        return self.active_position.pool_id if self.active_position else None

    @property
    def whitelisted_assets(self) -> tuple[str, ...]:
        return self.whitelist.assets

    def is_whitelisted(self, asset_id: str) -> bool:
        return asset_id in self.whitelist
