"""Valuation — оценка позиции и vault в quote-активе."""

from .position_value import PositionAmounts, pool_price, position_amounts, value_position
from .vault_value import per_share_value, total_value, validate_snapshots

__all__ = [
    "PositionAmounts",
    "pool_price",
    "position_amounts",
    "value_position",
    "per_share_value",
    "total_value",
    "validate_snapshots",
]
