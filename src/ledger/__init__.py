"""Ledger — сериализованное применение операций vault вокруг custody backend."""

from .vault_ledger import (
    BaseAssetIn,
    BaseAssetOut,
    BurnShares,
    CustodyBackend,
    CustodyEffect,
    MintShares,
    TransferShares,
    VaultLedger,
)

__all__ = [
    "BaseAssetIn",
    "BaseAssetOut",
    "BurnShares",
    "CustodyBackend",
    "CustodyEffect",
    "MintShares",
    "TransferShares",
    "VaultLedger",
]
