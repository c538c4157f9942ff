"""
Contract Validation Module

JSON Schema контракты документов vault (состояние и внешние снапшоты)
и приём таких документов в доменные модели.
"""

from .documents import (
    asset_balance_from_document,
    asset_balances_from_documents,
    pool_snapshot_from_document,
    position_snapshot_from_document,
    vault_from_document,
    vault_to_document,
)
from .validators import (
    ASSET_BALANCE,
    CONTRACT_NAMES,
    POOL_SNAPSHOT,
    POSITION_SNAPSHOT,
    VAULT_STATE,
    SchemaRegistry,
    check_contract,
    contract_violations,
    validate_asset_balance,
    validate_pool_snapshot,
    validate_position_snapshot,
    validate_vault_state,
)

__all__ = [
    # Contracts
    "VAULT_STATE",
    "POSITION_SNAPSHOT",
    "POOL_SNAPSHOT",
    "ASSET_BALANCE",
    "CONTRACT_NAMES",
    "SchemaRegistry",
    # Validation
    "check_contract",
    "contract_violations",
    "validate_vault_state",
    "validate_position_snapshot",
    "validate_pool_snapshot",
    "validate_asset_balance",
    # Documents
    "vault_from_document",
    "vault_to_document",
    "position_snapshot_from_document",
    "pool_snapshot_from_document",
    "asset_balance_from_document",
    "asset_balances_from_documents",
]
