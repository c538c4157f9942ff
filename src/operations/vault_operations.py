"""
Vault Operations — внешние операции над состоянием vault

Каждая операция — чистая функция: (Vault, параметры, снапшоты) → результат
и новый Vault. Исходный Vault не изменяется; любая ошибка возникает до
построения нового состояния.

Custody-эффекты (перевод базового актива, mint/burn/transfer долей)
выполняет вызывающая сторона атомарно с сохранением нового Vault
(см. src.ledger.vault_ledger).

Операции:
- initialize_vault: создание vault и первый депозит (доли 1:1)
- deposit / withdraw: выпуск и погашение долей
- add_whitelisted_asset / remove_whitelisted_asset / ensure_whitelisted
- attach_position / detach_position: единственная активная позиция
- get_vault_value / get_share_value: оценка
"""

import logging
from dataclasses import dataclass
from typing import Iterable

from src.accounting.shares import apply_deposit, redeem_shares, shares_for_deposit
from src.core.config import FeeConfig
from src.core.domain.snapshots import AssetBalance, PoolSnapshot, PositionSnapshot
from src.core.domain.vault import ActivePosition, Vault
from src.core.errors import (
    InvalidDepositAmount,
    InvalidWithdrawAmount,
    PositionMismatch,
    TokenNotWhitelisted,
    VaultError,
)
from src.valuation.vault_value import per_share_value, total_value

logger = logging.getLogger(__name__)

_DEFAULT_FEES = FeeConfig()


# =============================================================================
# RESULTS
# =============================================================================


@dataclass(frozen=True)
class InitializeResult:
    """Результат создания vault."""

    vault: Vault
    shares_minted: int


@dataclass(frozen=True)
class DepositResult:
    """Результат депозита."""

    vault: Vault
    shares_to_mint: int


@dataclass(frozen=True)
class WithdrawResult:
    """Результат вывода.

    Вызывающая сторона обязана атомарно:
    1. перевести base_asset_out выводящему
    2. перевести owner_fee_shares долей владельцу
    3. сжечь burn_fee_shares долей
    """

    vault: Vault
    base_asset_out: int
    owner_fee_shares: int
    burn_fee_shares: int
    shares_redeemed: int


# =============================================================================
# DEPOSIT / WITHDRAW
# =============================================================================


def _validate_deposit_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        raise InvalidDepositAmount(f"deposit amount must be a positive integer, got {amount!r}")


def initialize_vault(owner: str, share_asset_id: str, deposit_amount: int) -> InitializeResult:
    """
    Создание vault с total_shares = 0 и первый депозит (1:1).

    Raises:
        InvalidDepositAmount: deposit_amount <= 0
        CalculationError: deposit_amount шире u64
    """
    _validate_deposit_amount(deposit_amount)

    vault = Vault(owner=owner, share_asset_id=share_asset_id, total_shares=0)
    result = deposit(vault, deposit_amount, pool_base_asset_balance=0)

    logger.info(
        "Vault %s initialized with %s shares",
        vault.vault_key,
        result.shares_to_mint,
        extra={"event": "vault.initialized", "vault": vault.vault_key},
    )
    return InitializeResult(vault=result.vault, shares_minted=result.shares_to_mint)


def deposit(vault: Vault, amount: int, pool_base_asset_balance: int) -> DepositResult:
    """
    Депозит базового актива.

    Args:
        vault: Текущее состояние
        amount: Сумма депозита (u64, > 0)
        pool_base_asset_balance: Баланс базового актива пула ДО перевода депозита

    Raises:
        InvalidDepositAmount: amount <= 0
        CalculationError: Переполнение или нулевой баланс при total_shares > 0
    """
    _validate_deposit_amount(amount)

    try:
        shares_to_mint = shares_for_deposit(amount, vault.total_shares, pool_base_asset_balance)
        new_total = apply_deposit(vault.total_shares, shares_to_mint)
    except VaultError as e:
        logger.warning(
            "Deposit rejected for vault %s: %s",
            vault.vault_key,
            e,
            extra={"event": "vault.deposit_rejected", "vault": vault.vault_key},
        )
        raise

    logger.debug(
        "Deposit %s into vault %s mints %s shares",
        amount,
        vault.vault_key,
        shares_to_mint,
    )
    return DepositResult(
        vault=vault.model_copy(update={"total_shares": new_total}),
        shares_to_mint=shares_to_mint,
    )


def withdraw(
    vault: Vault,
    shares_amount: int,
    pool_base_asset_balance: int,
    fees: FeeConfig = _DEFAULT_FEES,
) -> WithdrawResult:
    """
    Вывод: погашение долей с комиссиями владельца и сжигания.

    Raises:
        InvalidWithdrawAmount: shares_amount <= 0 или больше total_shares
        CalculationError: Переполнение, underflow, деление на ноль
    """
    if (
        not isinstance(shares_amount, int)
        or isinstance(shares_amount, bool)
        or shares_amount <= 0
    ):
        raise InvalidWithdrawAmount(
            f"shares amount must be a positive integer, got {shares_amount!r}"
        )
    if shares_amount > vault.total_shares:
        raise InvalidWithdrawAmount(
            f"cannot withdraw {shares_amount} shares: only {vault.total_shares} outstanding"
        )

    try:
        redemption = redeem_shares(
            shares_amount,
            vault.total_shares,
            pool_base_asset_balance,
            owner_fee_bps=fees.owner_fee_bps,
            burn_fee_bps=fees.burn_fee_bps,
        )
    except VaultError as e:
        logger.warning(
            "Withdraw rejected for vault %s: %s",
            vault.vault_key,
            e,
            extra={"event": "vault.withdraw_rejected", "vault": vault.vault_key},
        )
        raise

    return WithdrawResult(
        vault=vault.model_copy(update={"total_shares": redemption.new_total_shares}),
        base_asset_out=redemption.base_asset_out,
        owner_fee_shares=redemption.owner_fee_shares,
        burn_fee_shares=redemption.burn_fee_shares,
        shares_redeemed=redemption.shares_to_redeem,
    )


# =============================================================================
# WHITELIST
# =============================================================================


def add_whitelisted_asset(vault: Vault, asset_id: str) -> Vault:
    """
    Добавление актива в whitelist (no-op если уже есть).

    Raises:
        MaxWhitelistedTokensReached: whitelist заполнен
        InvalidTokenWhitelist: пустой идентификатор актива
    """
    whitelist = vault.whitelist.with_asset(asset_id)
    if whitelist is vault.whitelist:
        return vault

    logger.info(
        "Asset %s whitelisted for vault %s",
        asset_id,
        vault.vault_key,
        extra={"event": "vault.asset_whitelisted", "vault": vault.vault_key},
    )
    return vault.model_copy(update={"whitelist": whitelist})


def remove_whitelisted_asset(vault: Vault, asset_id: str) -> Vault:
    """Удаление актива из whitelist (no-op если отсутствует)."""
    whitelist = vault.whitelist.without_asset(asset_id)
    if whitelist is vault.whitelist:
        return vault

    logger.info(
        "Asset %s removed from whitelist of vault %s",
        asset_id,
        vault.vault_key,
        extra={"event": "vault.asset_unwhitelisted", "vault": vault.vault_key},
    )
    return vault.model_copy(update={"whitelist": whitelist})


def ensure_whitelisted(vault: Vault, asset_id: str) -> None:
    """
    Проверка для custody adapter перед переводом актива.

    Raises:
        TokenNotWhitelisted: актив не в whitelist
    """
    if not vault.is_whitelisted(asset_id):
        raise TokenNotWhitelisted(f"asset {asset_id} is not whitelisted for vault {vault.vault_key}")


# =============================================================================
# ACTIVE POSITION
# =============================================================================


def attach_position(vault: Vault, position_id: str, pool_id: str) -> Vault:
    """
    Регистрация открытой позиции как активной.

    Raises:
        PositionMismatch: у vault уже есть другая активная позиция
    """
    if vault.active_position is not None:
        if vault.current_position == position_id and vault.current_pool == pool_id:
            return vault
        raise PositionMismatch(
            f"vault {vault.vault_key} already has active position {vault.current_position}"
        )

    logger.info(
        "Position %s in pool %s attached to vault %s",
        position_id,
        pool_id,
        vault.vault_key,
        extra={"event": "vault.position_attached", "vault": vault.vault_key},
    )
    active = ActivePosition(position_id=position_id, pool_id=pool_id)
    return vault.model_copy(update={"active_position": active})


def detach_position(vault: Vault, position_id: str) -> Vault:
    """
    Снятие активной позиции (после закрытия).

    Raises:
        PositionMismatch: активная позиция отсутствует или другая
    """
    if vault.current_position != position_id:
        raise PositionMismatch(
            f"position {position_id} is not the active position of vault {vault.vault_key}"
        )

    logger.info(
        "Position %s detached from vault %s",
        position_id,
        vault.vault_key,
        extra={"event": "vault.position_detached", "vault": vault.vault_key},
    )
    return vault.model_copy(update={"active_position": None})


# =============================================================================
# VALUATION
# =============================================================================


def get_vault_value(
    vault: Vault,
    position: PositionSnapshot | None = None,
    pool: PoolSnapshot | None = None,
    balances: Iterable[AssetBalance] = (),
) -> int:
    """Полная стоимость vault (см. src.valuation.vault_value.total_value)."""
    return total_value(vault, position, pool, balances)


def get_share_value(
    vault: Vault,
    position: PositionSnapshot | None = None,
    pool: PoolSnapshot | None = None,
    balances: Iterable[AssetBalance] = (),
) -> int:
    """Стоимость одной доли (см. src.valuation.vault_value.per_share_value)."""
    return per_share_value(vault, position, pool, balances)
