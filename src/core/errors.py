"""
Vault Errors — Иерархия исключений ядра

Все ошибки ядра наследуются от VaultError и несут стабильный `code`,
по которому вызывающая сторона (custody adapter, API, ledger) может
различать причины отказа без разбора текста сообщения.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Ядро никогда не перехватывает и не повторяет собственные ошибки
2. Любая ошибка возникает ДО записи нового состояния Vault
3. Сообщение по умолчанию стабильно (используется в логах и тестах)
"""

from typing import Final


class VaultError(Exception):
    """Базовая ошибка ядра vault."""

    code: str = "VaultError"
    default_message: str = "Vault operation failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


# =============================================================================
# NUMERIC CORE
# =============================================================================


class CalculationError(VaultError):
    """
    Переполнение, underflow, деление на ноль или выход за допустимый
    диапазон (tick, sqrt price) в числовом ядре.
    """

    code = "CalculationError"
    default_message = "Calculation failed due to overflow or division by zero"


# =============================================================================
# REQUEST VALIDATION
# =============================================================================


class InvalidDepositAmount(VaultError):
    code = "InvalidDepositAmount"
    default_message = "Deposit amount must be greater than 0"


class InvalidWithdrawAmount(VaultError):
    code = "InvalidWithdrawAmount"
    default_message = "Withdraw amount must be an amount available in the vault"


class InvalidFeePercentage(VaultError):
    code = "InvalidFeePercentage"
    default_message = "Invalid fee percentage"


# =============================================================================
# WHITELIST / CUSTODY
# =============================================================================


class MaxWhitelistedTokensReached(VaultError):
    code = "MaxWhitelistedTokensReached"
    default_message = "Maximum number of whitelisted tokens reached"


class TokenNotWhitelisted(VaultError):
    """Актив, участвующий в переводе, отсутствует в whitelist."""

    code = "TokenNotWhitelisted"
    default_message = "Token is not whitelisted"


class InvalidTokenWhitelist(VaultError):
    """Whitelist собран из списка с дубликатами или сверх capacity."""

    code = "InvalidTokenWhitelist"
    default_message = "Invalid token white list"


class UnauthorizedToken(VaultError):
    """
    Custody-счёт не принадлежит vault. Поднимается custody adapter'ом;
    ядро определяет только сам тип ошибки.
    """

    code = "UnauthorizedToken"
    default_message = "Unauthorized token account"


# =============================================================================
# POSITION / POOL SNAPSHOTS
# =============================================================================


class PositionMismatch(VaultError):
    code = "PositionMismatch"
    default_message = "Position or whirlpool mismatch with vault state"


class InvalidWhirlpool(VaultError):
    code = "InvalidWhirlpool"
    default_message = "Invalid whirlpool - position does not belong to the supplied pool"


class MissingWhirlpool(VaultError):
    code = "MissingWhirlpool"
    default_message = "Missing whirlpool for token price"


class InsufficientLiquidity(VaultError):
    code = "InsufficientLiquidity"
    default_message = "Insufficient liquidity"


# =============================================================================
# PERSISTED / EXTERNAL DOCUMENTS
# =============================================================================


class ContractViolation(VaultError):
    """
    Документ состояния или снапшота не соответствует JSON Schema контракту
    или инвариантам доменной модели.
    """

    code = "ContractViolation"
    default_message = "Document does not satisfy its contract"

    def __init__(self, message: str | None = None, violations: tuple[str, ...] = ()):
        super().__init__(message)
        self.violations = violations


ALL_ERRORS: Final[tuple[type[VaultError], ...]] = (
    CalculationError,
    InvalidDepositAmount,
    InvalidWithdrawAmount,
    InvalidFeePercentage,
    MaxWhitelistedTokensReached,
    TokenNotWhitelisted,
    InvalidTokenWhitelist,
    UnauthorizedToken,
    PositionMismatch,
    InvalidWhirlpool,
    MissingWhirlpool,
    InsufficientLiquidity,
    ContractViolation,
)
