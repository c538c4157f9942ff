"""
Vault Ledger — сериализованное применение операций к vault

Ledger хранит текущее состояние каждого vault и гарантирует:
- мутирующие запросы к одному vault выполняются строго последовательно
  (один RLock на vault_key)
- custody-эффекты и сохранение нового состояния атомарны: новое
  состояние записывается только после успешного CustodyBackend.apply
- чтение (оценка) видит целиком согласованный снапшот

Сама custody (перевод активов, mint/burn долей) — внешний коллаборатор,
реализующий протокол CustodyBackend.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Protocol, Sequence, Union

from src.core.config import FeeConfig
from src.core.contracts import (
    asset_balances_from_documents,
    pool_snapshot_from_document,
    position_snapshot_from_document,
    vault_from_document,
    vault_to_document,
)
from src.core.domain.snapshots import AssetBalance, PoolSnapshot, PositionSnapshot
from src.core.domain.vault import Vault
from src.operations.vault_operations import (
    DepositResult,
    InitializeResult,
    WithdrawResult,
    add_whitelisted_asset,
    attach_position,
    deposit,
    detach_position,
    get_share_value,
    get_vault_value,
    initialize_vault,
    remove_whitelisted_asset,
    withdraw,
)

logger = logging.getLogger(__name__)


# =============================================================================
# CUSTODY EFFECTS
# =============================================================================


@dataclass(frozen=True)
class BaseAssetIn:
    """Перевод базового актива со счёта участника в vault."""

    account: str
    amount: int


@dataclass(frozen=True)
class BaseAssetOut:
    """Перевод базового актива из vault участнику."""

    account: str
    amount: int


@dataclass(frozen=True)
class MintShares:
    account: str
    amount: int


@dataclass(frozen=True)
class TransferShares:
    source: str
    destination: str
    amount: int


@dataclass(frozen=True)
class BurnShares:
    account: str
    amount: int


CustodyEffect = Union[BaseAssetIn, BaseAssetOut, MintShares, TransferShares, BurnShares]


class CustodyBackend(Protocol):
    """Внешний custody-слой."""

    def base_asset_balance(self, vault: Vault) -> int:
        """Текущий баланс базового актива на custody-счёте vault."""
        ...

    def apply(self, vault: Vault, effects: Sequence[CustodyEffect]) -> None:
        """Атомарно выполнить эффекты (все или ни одного). Ошибка → исключение."""
        ...


# =============================================================================
# LEDGER
# =============================================================================


class VaultLedger:
    """In-process реестр vault с пообъектной сериализацией."""

    def __init__(self, custody: CustodyBackend, fees: FeeConfig | None = None):
        self.custody = custody
        self.fees = fees or FeeConfig()
        self._vaults: dict[str, Vault] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._registry_lock = threading.RLock()

    def _lock_for(self, vault_key: str) -> threading.RLock:
        with self._registry_lock:
            if vault_key not in self._vaults:
                raise KeyError(f"Unknown vault: {vault_key}")
            return self._locks[vault_key]

    def _commit(self, before: Vault, after: Vault, effects: Sequence[CustodyEffect]) -> None:
        """Custody-эффекты, затем запись состояния. Вызывается под lock vault
        (при создании vault под registry lock)."""
        effects = [e for e in effects if e.amount > 0]
        try:
            if effects:
                self.custody.apply(before, effects)
        except Exception as e:
            logger.error(
                "Custody failed for vault %s, state unchanged: %s",
                before.vault_key,
                e,
                extra={"event": "ledger.custody_failed", "vault": before.vault_key},
            )
            raise
        self._vaults[after.vault_key] = after

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def create_vault(
        self, owner: str, share_asset_id: str, deposit_amount: int
    ) -> InitializeResult:
        """
        Создание vault с первым депозитом владельца.

        Raises:
            ValueError: vault с таким ключом уже существует
            InvalidDepositAmount: deposit_amount <= 0
        """
        result = initialize_vault(owner, share_asset_id, deposit_amount)
        vault_key = result.vault.vault_key

        with self._registry_lock:
            if vault_key in self._vaults:
                raise ValueError(f"Vault already exists: {vault_key}")
            self._commit(
                result.vault,
                result.vault,
                [
                    BaseAssetIn(account=owner, amount=deposit_amount),
                    MintShares(account=owner, amount=result.shares_minted),
                ],
            )
            self._locks[vault_key] = threading.RLock()

        logger.info(
            "Vault %s created with %s shares",
            vault_key,
            result.shares_minted,
            extra={"event": "ledger.vault_created", "vault": vault_key},
        )
        return result

    def get(self, vault_key: str) -> Vault:
        """Согласованный снапшот состояния vault."""
        with self._lock_for(vault_key):
            return self._vaults[vault_key]

    def vault_keys(self) -> list[str]:
        with self._registry_lock:
            return list(self._vaults)

    # -------------------------------------------------------------------------
    # Persisted state
    # -------------------------------------------------------------------------

    def load_vault(self, document: Mapping[str, Any]) -> Vault:
        """
        Регистрация vault из персистентного документа (vault_state.json).

        Custody не вызывается: документ описывает уже существующее состояние.

        Raises:
            ContractViolation: Документ нарушает контракт
            ValueError: vault с таким ключом уже зарегистрирован
        """
        vault = vault_from_document(document)
        vault_key = vault.vault_key

        with self._registry_lock:
            if vault_key in self._vaults:
                raise ValueError(f"Vault already exists: {vault_key}")
            self._vaults[vault_key] = vault
            self._locks[vault_key] = threading.RLock()

        logger.info(
            "Vault %s loaded with %s shares",
            vault_key,
            vault.total_shares,
            extra={"event": "ledger.vault_loaded", "vault": vault_key},
        )
        return vault

    def export_vault(self, vault_key: str) -> dict[str, Any]:
        """Документ состояния для хранилища, проверенный против контракта."""
        return vault_to_document(self.get(vault_key))

    # -------------------------------------------------------------------------
    # Deposit / Withdraw
    # -------------------------------------------------------------------------

    def deposit(self, vault_key: str, depositor: str, amount: int) -> DepositResult:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            balance = self.custody.base_asset_balance(vault)
            result = deposit(vault, amount, balance)
            self._commit(
                vault,
                result.vault,
                [
                    BaseAssetIn(account=depositor, amount=amount),
                    MintShares(account=depositor, amount=result.shares_to_mint),
                ],
            )

        logger.info(
            "Deposit of %s by %s into vault %s minted %s shares",
            amount,
            depositor,
            vault_key,
            result.shares_to_mint,
            extra={"event": "ledger.deposit", "vault": vault_key},
        )
        return result

    def withdraw(self, vault_key: str, withdrawer: str, shares_amount: int) -> WithdrawResult:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            balance = self.custody.base_asset_balance(vault)
            result = withdraw(vault, shares_amount, balance, self.fees)
            self._commit(
                vault,
                result.vault,
                [
                    BaseAssetOut(account=withdrawer, amount=result.base_asset_out),
                    TransferShares(
                        source=withdrawer,
                        destination=vault.owner,
                        amount=result.owner_fee_shares,
                    ),
                    BurnShares(account=withdrawer, amount=result.burn_fee_shares),
                ],
            )

        logger.info(
            "Withdraw of %s shares by %s from vault %s paid %s",
            shares_amount,
            withdrawer,
            vault_key,
            result.base_asset_out,
            extra={"event": "ledger.withdraw", "vault": vault_key},
        )
        return result

    # -------------------------------------------------------------------------
    # State-only mutations
    # -------------------------------------------------------------------------

    def add_whitelisted_asset(self, vault_key: str, asset_id: str) -> Vault:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            updated = add_whitelisted_asset(vault, asset_id)
            self._commit(vault, updated, [])
            return updated

    def remove_whitelisted_asset(self, vault_key: str, asset_id: str) -> Vault:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            updated = remove_whitelisted_asset(vault, asset_id)
            self._commit(vault, updated, [])
            return updated

    def attach_position(self, vault_key: str, position_id: str, pool_id: str) -> Vault:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            updated = attach_position(vault, position_id, pool_id)
            self._commit(vault, updated, [])
            return updated

    def detach_position(self, vault_key: str, position_id: str) -> Vault:
        with self._lock_for(vault_key):
            vault = self._vaults[vault_key]
            updated = detach_position(vault, position_id)
            self._commit(vault, updated, [])
            return updated

    # -------------------------------------------------------------------------
    # Valuation
    # -------------------------------------------------------------------------

    def vault_value(
        self,
        vault_key: str,
        position: PositionSnapshot | None = None,
        pool: PoolSnapshot | None = None,
        balances: Iterable[AssetBalance] = (),
    ) -> int:
        return get_vault_value(self.get(vault_key), position, pool, balances)

    def share_value(
        self,
        vault_key: str,
        position: PositionSnapshot | None = None,
        pool: PoolSnapshot | None = None,
        balances: Iterable[AssetBalance] = (),
    ) -> int:
        return get_share_value(self.get(vault_key), position, pool, balances)

    def share_value_from_documents(
        self,
        vault_key: str,
        position: Mapping[str, Any] | None = None,
        pool: Mapping[str, Any] | None = None,
        balances: Iterable[Mapping[str, Any]] = (),
    ) -> int:
        """
        Стоимость доли по сырым документам снапшотов.

        Каждый документ проверяется контрактом до построения модели.

        Raises:
            ContractViolation: Документ снапшота нарушает контракт
        """
        return self.share_value(
            vault_key,
            position_snapshot_from_document(position) if position is not None else None,
            pool_snapshot_from_document(pool) if pool is not None else None,
            asset_balances_from_documents(balances),
        )

    def vault_value_from_documents(
        self,
        vault_key: str,
        position: Mapping[str, Any] | None = None,
        pool: Mapping[str, Any] | None = None,
        balances: Iterable[Mapping[str, Any]] = (),
    ) -> int:
        return self.vault_value(
            vault_key,
            position_snapshot_from_document(position) if position is not None else None,
            pool_snapshot_from_document(pool) if pool is not None else None,
            asset_balances_from_documents(balances),
        )
