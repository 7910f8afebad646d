"""Redemption module.

QR payload codec plus the single-use ``joined -> redeemed`` transition.
"""

from vibein.redemption.service import RedemptionProtocol, RedemptionResult, RedemptionStats
from vibein.redemption.token import RedemptionToken, decode_token, encode_token

__all__ = [
    "RedemptionProtocol",
    "RedemptionResult",
    "RedemptionStats",
    "RedemptionToken",
    "decode_token",
    "encode_token",
]
