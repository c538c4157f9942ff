"""Share accounting — выпуск и погашение долей vault."""

from .shares import (
    Redemption,
    apply_deposit,
    fee_shares,
    redeem_shares,
    shares_for_deposit,
)

__all__ = [
    "Redemption",
    "apply_deposit",
    "fee_shares",
    "redeem_shares",
    "shares_for_deposit",
]
