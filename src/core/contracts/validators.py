"""
Contract Schemas — JSON Schema контракты документов vault

Схемы поставляются внутри пакета (src/core/contracts/schema/*.json) и
читаются через importlib.resources, поэтому доступны и из установленного
дистрибутива. Схема загружается, проходит meta-validation и компилируется
при первом обращении; дальше используется закэшированный валидатор.

Контракты:
- vault_state: персистентное состояние vault
- position_snapshot: снапшот concentrated-liquidity позиции
- pool_snapshot: снапшот пула (sqrt price Q64.64)
- asset_balance: баланс актива на custody-счёте vault
"""

import json
import threading
from importlib import resources
from typing import Any, Final, Mapping

from jsonschema import Draft202012Validator, SchemaError

from src.core.errors import ContractViolation


# =============================================================================
# CONTRACT NAMES
# =============================================================================

VAULT_STATE: Final[str] = "vault_state"
POSITION_SNAPSHOT: Final[str] = "position_snapshot"
POOL_SNAPSHOT: Final[str] = "pool_snapshot"
ASSET_BALANCE: Final[str] = "asset_balance"

CONTRACT_NAMES: Final[tuple[str, ...]] = (
    VAULT_STATE,
    POSITION_SNAPSHOT,
    POOL_SNAPSHOT,
    ASSET_BALANCE,
)


# =============================================================================
# SCHEMA REGISTRY
# =============================================================================


class SchemaRegistry:
    """
    Схемы контрактов, поставляемые как package data.

    Ничего не читает при создании: файлы открываются при первом запросе
    конкретного контракта.
    """

    def __init__(self, package: str = "src.core.contracts", directory: str = "schema"):
        self.package = package
        self.directory = directory
        self._validators: dict[str, Draft202012Validator] = {}
        self._lock = threading.Lock()

    def load_schema(self, name: str) -> dict[str, Any]:
        """
        Чтение и meta-validation схемы контракта.

        Raises:
            KeyError: Неизвестный контракт
            FileNotFoundError: Схема отсутствует в пакете
            ValueError: Схема не проходит meta-validation Draft 2020-12
        """
        if name not in CONTRACT_NAMES:
            raise KeyError(f"Unknown contract: {name}")

        resource = resources.files(self.package).joinpath(self.directory).joinpath(f"{name}.json")
        schema = json.loads(resource.read_text(encoding="utf-8"))

        try:
            Draft202012Validator.check_schema(schema)
        except SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {name}.json: {e.message}") from e

        return schema

    def validator(self, name: str) -> Draft202012Validator:
        """Скомпилированный валидатор контракта (кэшируется)."""
        with self._lock:
            compiled = self._validators.get(name)
            if compiled is None:
                compiled = Draft202012Validator(self.load_schema(name))
                self._validators[name] = compiled
            return compiled


_REGISTRY = SchemaRegistry()


# =============================================================================
# VALIDATION
# =============================================================================


def contract_violations(name: str, document: Mapping[str, Any]) -> list[str]:
    """
    Все нарушения контракта в виде "<json path>: <сообщение>".

    Пустой список — документ соответствует схеме.
    """
    errors = _REGISTRY.validator(name).iter_errors(document)
    return sorted(f"{error.json_path}: {error.message}" for error in errors)


def check_contract(name: str, document: Mapping[str, Any]) -> None:
    """
    Проверка документа против контракта.

    Raises:
        ContractViolation: Документ нарушает схему (все нарушения в .violations)
    """
    violations = contract_violations(name, document)
    if violations:
        raise ContractViolation(
            f"{name} document violates its contract: {violations[0]}"
            + (f" (+{len(violations) - 1} more)" if len(violations) > 1 else ""),
            violations=tuple(violations),
        )


def validate_vault_state(document: Mapping[str, Any]) -> None:
    check_contract(VAULT_STATE, document)


def validate_position_snapshot(document: Mapping[str, Any]) -> None:
    check_contract(POSITION_SNAPSHOT, document)


def validate_pool_snapshot(document: Mapping[str, Any]) -> None:
    check_contract(POOL_SNAPSHOT, document)


def validate_asset_balance(document: Mapping[str, Any]) -> None:
    check_contract(ASSET_BALANCE, document)
