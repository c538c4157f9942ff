"""
Documents — приём внешних документов в доменные модели и выгрузка обратно

Документ из хранилища состояния или от источника снапшотов проходит два
шага: JSON Schema контракт, затем model_validate. Ошибка на любом шаге
поднимается как ContractViolation; доменная модель из непроверенного
документа не строится.
"""

from typing import Any, Iterable, Mapping, TypeVar

from pydantic import BaseModel, ValidationError

from src.core.contracts.validators import (
    ASSET_BALANCE,
    POOL_SNAPSHOT,
    POSITION_SNAPSHOT,
    VAULT_STATE,
    check_contract,
)
from src.core.domain.snapshots import AssetBalance, PoolSnapshot, PositionSnapshot
from src.core.domain.vault import Vault
from src.core.errors import ContractViolation

ModelT = TypeVar("ModelT", bound=BaseModel)


def _ingest(contract: str, model: type[ModelT], document: Mapping[str, Any]) -> ModelT:
    check_contract(contract, document)
    try:
        return model.model_validate(document)
    except ValidationError as e:
        # Инварианты модели, которые схема не выражает (например, порядок тиков)
        violations = tuple(
            f"$.{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ContractViolation(
            f"{contract} document rejected by model: {violations[0]}",
            violations=violations,
        ) from e


# =============================================================================
# VAULT STATE
# =============================================================================


def vault_from_document(document: Mapping[str, Any]) -> Vault:
    """
    Восстановление Vault из персистентного документа.

    Raises:
        ContractViolation: Документ нарушает vault_state.json или инварианты Vault
    """
    return _ingest(VAULT_STATE, Vault, document)


def vault_to_document(vault: Vault) -> dict[str, Any]:
    """JSON-совместимый документ состояния, проверенный против vault_state.json."""
    document = vault.model_dump(mode="json")
    check_contract(VAULT_STATE, document)
    return document


# =============================================================================
# SNAPSHOTS
# =============================================================================


def position_snapshot_from_document(document: Mapping[str, Any]) -> PositionSnapshot:
    return _ingest(POSITION_SNAPSHOT, PositionSnapshot, document)


def pool_snapshot_from_document(document: Mapping[str, Any]) -> PoolSnapshot:
    return _ingest(POOL_SNAPSHOT, PoolSnapshot, document)


def asset_balance_from_document(document: Mapping[str, Any]) -> AssetBalance:
    return _ingest(ASSET_BALANCE, AssetBalance, document)


def asset_balances_from_documents(documents: Iterable[Mapping[str, Any]]) -> list[AssetBalance]:
    return [asset_balance_from_document(document) for document in documents]
