"""
Domain models and value objects.

Contains the vault state, the bounded asset whitelist and the read-only
position/pool/balance snapshots.
"""

from src.core.domain.snapshots import AssetBalance, PoolSnapshot, PositionSnapshot
from src.core.domain.vault import ActivePosition, Vault
from src.core.domain.whitelist import AssetWhitelist

__all__ = [
    # Vault state
    "Vault",
    "ActivePosition",
    "AssetWhitelist",
    # Snapshots
    "PositionSnapshot",
    "PoolSnapshot",
    "AssetBalance",
]
