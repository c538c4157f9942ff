"""
Тесты для VaultLedger

Проверяет:
1. Создание vault, депозит и вывод с custody-эффектами
2. Атомарность: отказ custody оставляет состояние без изменений
3. Неизвестные / повторные vault
4. Сериализацию конкурентных депозитов в один vault
"""

import logging
import threading
from collections import defaultdict
from typing import Sequence

import pytest

from src.core.config import FeeConfig
from src.core.domain import AssetBalance, Vault
from src.core.errors import (
    ContractViolation,
    InvalidDepositAmount,
    InvalidWithdrawAmount,
    PositionMismatch,
)
from src.ledger import (
    BaseAssetIn,
    BaseAssetOut,
    BurnShares,
    CustodyEffect,
    MintShares,
    TransferShares,
    VaultLedger,
)


class InMemoryCustody:
    """Custody на словарях: проверяет все эффекты, затем применяет."""

    def __init__(self) -> None:
        self.base_balances: dict[str, int] = defaultdict(int)
        self.share_balances: dict[tuple[str, str], int] = defaultdict(int)
        self.applied: list[list[CustodyEffect]] = []
        self.fail_next = False

    def base_asset_balance(self, vault: Vault) -> int:
        return self.base_balances[vault.vault_key]

    def apply(self, vault: Vault, effects: Sequence[CustodyEffect]) -> None:
        if self.fail_next:
            self.fail_next = False
            raise RuntimeError("custody unavailable")

        key = vault.vault_key
        base = self.base_balances[key]
        shares = dict(self.share_balances)

        for effect in effects:
            if isinstance(effect, BaseAssetIn):
                base += effect.amount
            elif isinstance(effect, BaseAssetOut):
                if effect.amount > base:
                    raise RuntimeError("insufficient base asset")
                base -= effect.amount
            elif isinstance(effect, MintShares):
                shares[(key, effect.account)] = shares.get((key, effect.account), 0) + effect.amount
            elif isinstance(effect, TransferShares):
                shares[(key, effect.source)] = shares.get((key, effect.source), 0) - effect.amount
                shares[(key, effect.destination)] = (
                    shares.get((key, effect.destination), 0) + effect.amount
                )
            elif isinstance(effect, BurnShares):
                shares[(key, effect.account)] = shares.get((key, effect.account), 0) - effect.amount

        self.base_balances[key] = base
        self.share_balances = defaultdict(int, shares)
        self.applied.append(list(effects))

    def shares_of(self, vault_key: str, account: str) -> int:
        return self.share_balances[(vault_key, account)]


@pytest.fixture
def custody() -> InMemoryCustody:
    return InMemoryCustody()


@pytest.fixture
def ledger(custody: InMemoryCustody) -> VaultLedger:
    return VaultLedger(custody)


@pytest.fixture
def vault_key(ledger: VaultLedger) -> str:
    return ledger.create_vault("alice", "vUSDC", 1_000_000).vault.vault_key


# =============================================================================
# LIFECYCLE
# =============================================================================


class TestCreateVault:
    """Тесты для create_vault"""

    def test_creates_and_funds(self, ledger: VaultLedger, custody: InMemoryCustody) -> None:
        result = ledger.create_vault("alice", "vUSDC", 1_000_000)
        key = result.vault.vault_key

        assert ledger.get(key).total_shares == 1_000_000
        assert custody.base_balances[key] == 1_000_000
        assert custody.shares_of(key, "alice") == 1_000_000
        assert ledger.vault_keys() == [key]

    def test_duplicate_rejected(self, ledger: VaultLedger, vault_key: str) -> None:
        with pytest.raises(ValueError, match="already exists"):
            ledger.create_vault("alice", "vUSDC", 5)

    def test_invalid_initial_deposit(self, ledger: VaultLedger) -> None:
        with pytest.raises(InvalidDepositAmount):
            ledger.create_vault("alice", "vUSDC", 0)
        assert ledger.vault_keys() == []

    def test_create_logs_event(
        self, ledger: VaultLedger, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.INFO, logger="src.ledger.vault_ledger"):
            ledger.create_vault("alice", "vUSDC", 1_000)
        events = [getattr(record, "event", None) for record in caplog.records]
        assert "ledger.vault_created" in events

    def test_unknown_vault(self, ledger: VaultLedger) -> None:
        with pytest.raises(KeyError):
            ledger.get("nobody:nothing")


# =============================================================================
# DEPOSIT / WITHDRAW
# =============================================================================


class TestDepositWithdraw:
    """Тесты для deposit / withdraw"""

    def test_deposit_reads_custody_balance(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        # Доход пула удвоил баланс: цена доли 2
        custody.base_balances[vault_key] = 2_000_000

        result = ledger.deposit(vault_key, "bob", 500_000)

        assert result.shares_to_mint == 250_000
        assert ledger.get(vault_key).total_shares == 1_250_000
        assert custody.shares_of(vault_key, "bob") == 250_000
        assert custody.base_balances[vault_key] == 2_500_000

    def test_withdraw_effects(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        custody.base_balances[vault_key] = 2_000_000
        ledger.deposit(vault_key, "bob", 500_000)

        result = ledger.withdraw(vault_key, "bob", 10_000)

        assert result.base_asset_out == 19_700
        assert ledger.get(vault_key).total_shares == 1_249_900
        assert custody.applied[-1] == [
            BaseAssetOut(account="bob", amount=19_700),
            TransferShares(source="bob", destination="alice", amount=50),
            BurnShares(account="bob", amount=100),
        ]
        assert custody.shares_of(vault_key, "bob") == 250_000 - 150
        assert custody.shares_of(vault_key, "alice") == 1_000_050

    def test_zero_amount_effects_dropped(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        """Мелкий вывод: комиссии 0, в custody уходит только перевод актива"""
        ledger.withdraw(vault_key, "alice", 99)
        assert custody.applied[-1] == [BaseAssetOut(account="alice", amount=99)]

    def test_custom_fees(self, custody: InMemoryCustody) -> None:
        ledger = VaultLedger(custody, fees=FeeConfig(owner_fee_bps=0, burn_fee_bps=0))
        key = ledger.create_vault("alice", "vUSDC", 1_000).vault.vault_key
        assert ledger.withdraw(key, "alice", 1_000).base_asset_out == 1_000

    def test_withdraw_too_much(self, ledger: VaultLedger, vault_key: str) -> None:
        with pytest.raises(InvalidWithdrawAmount):
            ledger.withdraw(vault_key, "alice", 1_000_001)


# =============================================================================
# ATOMICITY
# =============================================================================


class TestAtomicity:
    """Отказ custody не меняет сохранённое состояние"""

    def test_failed_deposit_keeps_state(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        before = ledger.get(vault_key)
        custody.fail_next = True

        with pytest.raises(RuntimeError):
            ledger.deposit(vault_key, "bob", 500_000)

        assert ledger.get(vault_key) == before
        assert custody.base_balances[vault_key] == 1_000_000

    def test_failed_withdraw_keeps_state(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        custody.fail_next = True
        with pytest.raises(RuntimeError):
            ledger.withdraw(vault_key, "alice", 10_000)
        assert ledger.get(vault_key).total_shares == 1_000_000

    def test_failed_create_registers_nothing(
        self, ledger: VaultLedger, custody: InMemoryCustody
    ) -> None:
        custody.fail_next = True
        with pytest.raises(RuntimeError):
            ledger.create_vault("alice", "vUSDC", 1_000)
        assert ledger.vault_keys() == []

    def test_failed_create_logs_custody_failure(
        self, ledger: VaultLedger, custody: InMemoryCustody, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Отказ custody при создании логируется тем же событием, что и у депозита"""
        custody.fail_next = True
        with caplog.at_level(logging.ERROR, logger="src.ledger.vault_ledger"):
            with pytest.raises(RuntimeError):
                ledger.create_vault("alice", "vUSDC", 1_000)

        events = [getattr(record, "event", None) for record in caplog.records]
        assert events == ["ledger.custody_failed"]
        assert caplog.records[0].vault == "alice:vUSDC"
        assert ledger.vault_keys() == []

    def test_failed_create_can_be_retried(
        self, ledger: VaultLedger, custody: InMemoryCustody
    ) -> None:
        custody.fail_next = True
        with pytest.raises(RuntimeError):
            ledger.create_vault("alice", "vUSDC", 1_000)

        result = ledger.create_vault("alice", "vUSDC", 1_000)
        assert ledger.get(result.vault.vault_key).total_shares == 1_000
        assert custody.base_balances["alice:vUSDC"] == 1_000

    def test_rejected_operation_keeps_state(self, ledger: VaultLedger, vault_key: str) -> None:
        before = ledger.get(vault_key)
        with pytest.raises(PositionMismatch):
            ledger.detach_position(vault_key, "pos-1")
        assert ledger.get(vault_key) is before


# =============================================================================
# STATE-ONLY MUTATIONS / VALUATION
# =============================================================================


class TestStateMutations:
    """Whitelist, позиция и оценка через ledger"""

    def test_whitelist_and_value(self, ledger: VaultLedger, vault_key: str) -> None:
        ledger.add_whitelisted_asset(vault_key, "USDC")
        balances = [
            AssetBalance(asset_id="USDC", amount=2_000_000),
            AssetBalance(asset_id="SOL", amount=5),
        ]
        assert ledger.vault_value(vault_key, balances=balances) == 2_000_000
        assert ledger.share_value(vault_key, balances=balances) == 2_000_000

        ledger.remove_whitelisted_asset(vault_key, "USDC")
        assert ledger.vault_value(vault_key, balances=balances) == 0

    def test_position_lifecycle(self, ledger: VaultLedger, vault_key: str) -> None:
        attached = ledger.attach_position(vault_key, "pos-1", "pool-1")
        assert attached.current_position == "pos-1"
        assert ledger.get(vault_key).current_pool == "pool-1"

        ledger.detach_position(vault_key, "pos-1")
        assert ledger.get(vault_key).active_position is None


# =============================================================================
# CONCURRENCY
# =============================================================================


class TestConcurrency:
    """Параллельные депозиты в один vault сериализуются"""

    def test_concurrent_deposits(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_key: str
    ) -> None:
        threads_count = 8
        deposits_per_thread = 25
        errors: list[BaseException] = []

        def worker(index: int) -> None:
            try:
                for _ in range(deposits_per_thread):
                    ledger.deposit(vault_key, f"user-{index}", 1_000)
            except BaseException as e:  # noqa: BLE001
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(threads_count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        expected_total = 1_000_000 + threads_count * deposits_per_thread * 1_000
        assert ledger.get(vault_key).total_shares == expected_total
        assert custody.base_balances[vault_key] == expected_total
        for i in range(threads_count):
            assert custody.shares_of(vault_key, f"user-{i}") == deposits_per_thread * 1_000


# =============================================================================
# PERSISTED STATE / DOCUMENTS
# =============================================================================


@pytest.fixture
def vault_document() -> dict:
    return {
        "owner": "bob",
        "share_asset_id": "vSOL",
        "total_shares": 500,
        "active_position": None,
        "whitelist": {"assets": ["USDC"]},
    }


class TestPersistedState:
    """load_vault / export_vault и оценка по сырым документам"""

    def test_load_registers_without_custody(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_document: dict
    ) -> None:
        vault = ledger.load_vault(vault_document)

        assert vault.vault_key == "bob:vSOL"
        assert ledger.get("bob:vSOL") == vault
        assert custody.applied == []

    def test_loaded_vault_accepts_operations(
        self, ledger: VaultLedger, custody: InMemoryCustody, vault_document: dict
    ) -> None:
        vault = ledger.load_vault(vault_document)
        custody.base_balances[vault.vault_key] = 500

        result = ledger.deposit(vault.vault_key, "carol", 500)
        assert result.shares_to_mint == 500
        assert ledger.get(vault.vault_key).total_shares == 1_000

    def test_load_duplicate_rejected(self, ledger: VaultLedger, vault_document: dict) -> None:
        ledger.load_vault(vault_document)
        with pytest.raises(ValueError, match="already exists"):
            ledger.load_vault(vault_document)

    def test_load_invalid_document_registers_nothing(
        self, ledger: VaultLedger, vault_document: dict
    ) -> None:
        vault_document["whitelist"]["assets"] = ["USDC", "USDC"]
        with pytest.raises(ContractViolation):
            ledger.load_vault(vault_document)
        assert ledger.vault_keys() == []

    def test_export_round_trip(self, ledger: VaultLedger, vault_key: str) -> None:
        ledger.add_whitelisted_asset(vault_key, "USDC")
        ledger.attach_position(vault_key, "pos-1", "pool-1")

        document = ledger.export_vault(vault_key)
        assert document["total_shares"] == 1_000_000
        assert document["whitelist"] == {"assets": ["USDC"]}
        assert document["active_position"] == {"position_id": "pos-1", "pool_id": "pool-1"}

        restored = VaultLedger(InMemoryCustody())
        assert restored.load_vault(document) == ledger.get(vault_key)

    def test_value_from_documents(self, ledger: VaultLedger, vault_key: str) -> None:
        ledger.add_whitelisted_asset(vault_key, "USDC")
        balances = [
            {"asset_id": "USDC", "amount": 3_000_000},
            {"asset_id": "SOL", "amount": 9},
        ]
        assert ledger.vault_value_from_documents(vault_key, balances=balances) == 3_000_000
        assert ledger.share_value_from_documents(vault_key, balances=balances) == 3_000_000

    def test_value_from_invalid_snapshot(self, ledger: VaultLedger, vault_key: str) -> None:
        ledger.attach_position(vault_key, "pos-1", "pool-1")
        with pytest.raises(ContractViolation):
            ledger.vault_value_from_documents(
                vault_key,
                position={
                    "position_id": "pos-1",
                    "pool_id": "pool-1",
                    "liquidity": -1,
                    "tick_lower": 0,
                    "tick_upper": 1,
                },
                pool={"pool_id": "pool-1", "sqrt_price_x64": 2**64},
            )
