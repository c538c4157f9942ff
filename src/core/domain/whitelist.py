"""
AssetWhitelist — ограниченное упорядоченное множество активов

Immutable Pydantic модель. Ёмкость (MAX_WHITELISTED_ASSETS) и отсутствие
дубликатов проверяются при создании: экземпляр с нарушенным инвариантом
построить нельзя.
"""

from typing import Iterable

from pydantic import BaseModel, Field, field_validator

from src.core.config import MAX_WHITELISTED_ASSETS
from src.core.errors import InvalidTokenWhitelist, MaxWhitelistedTokensReached


class AssetWhitelist(BaseModel):
    """
    Whitelist активов vault (порядок добавления сохраняется).

    Все изменения создают новый экземпляр.
    """

    assets: tuple[str, ...] = Field(
        default=(),
        max_length=MAX_WHITELISTED_ASSETS,
        description="Идентификаторы активов в порядке добавления",
    )

    model_config = {"frozen": True}

    @field_validator("assets")
    @classmethod
    def validate_unique(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        """Пустые идентификаторы и дубликаты запрещены."""
        if any(not asset for asset in v):
            raise ValueError("asset id cannot be empty")
        if len(set(v)) != len(v):
            raise ValueError(f"duplicate asset ids in whitelist: {list(v)}")
        return v

    @classmethod
    def from_assets(cls, assets: Iterable[str]) -> "AssetWhitelist":
        """
        Построение whitelist из произвольной коллекции.

        Raises:
            InvalidTokenWhitelist: Дубликаты, пустые id или превышение ёмкости
        """
        items = tuple(assets)
        if len(items) > MAX_WHITELISTED_ASSETS:
            raise InvalidTokenWhitelist(
                f"whitelist holds at most {MAX_WHITELISTED_ASSETS} assets, got {len(items)}"
            )
        if any(not asset for asset in items) or len(set(items)) != len(items):
            raise InvalidTokenWhitelist(f"whitelist must contain distinct non-empty ids: {list(items)}")
        return cls(assets=items)

    @property
    def capacity(self) -> int:
        return MAX_WHITELISTED_ASSETS

    def is_full(self) -> bool:
        return len(self.assets) >= MAX_WHITELISTED_ASSETS

    def __contains__(self, asset_id: object) -> bool:
        return asset_id in self.assets

    def __len__(self) -> int:
        return len(self.assets)

    def with_asset(self, asset_id: str) -> "AssetWhitelist":
        """
        Добавление актива. Повторное добавление — no-op.

        Raises:
            InvalidTokenWhitelist: Пустой или не строковый идентификатор
            MaxWhitelistedTokensReached: Если whitelist заполнен
        """
        if not isinstance(asset_id, str) or not asset_id:
            raise InvalidTokenWhitelist(f"asset id must be a non-empty string, got {asset_id!r}")
        if asset_id in self.assets:
            return self
        if self.is_full():
            raise MaxWhitelistedTokensReached(
                f"cannot add {asset_id}: whitelist already holds {MAX_WHITELISTED_ASSETS} assets"
            )
        return AssetWhitelist(assets=self.assets + (asset_id,))

    def without_asset(self, asset_id: str) -> "AssetWhitelist":
        """Удаление актива. Отсутствующий актив — no-op."""
        if asset_id not in self.assets:
            return self
        return AssetWhitelist(assets=tuple(a for a in self.assets if a != asset_id))
