"""Operations — внешние операции над vault (депозит, вывод, whitelist, оценка)."""

from .vault_operations import (
    DepositResult,
    InitializeResult,
    WithdrawResult,
    add_whitelisted_asset,
    attach_position,
    deposit,
    detach_position,
    ensure_whitelisted,
    get_share_value,
    get_vault_value,
    initialize_vault,
    remove_whitelisted_asset,
    withdraw,
)

__all__ = [
    # Results
    "DepositResult",
    "InitializeResult",
    "WithdrawResult",
    # Operations
    "add_whitelisted_asset",
    "attach_position",
    "deposit",
    "detach_position",
    "ensure_whitelisted",
    "get_share_value",
    "get_vault_value",
    "initialize_vault",
    "remove_whitelisted_asset",
    "withdraw",
]
