"""
Ledger endpoint interfaces.

The JSON-RPC implementation lives in `tempo_daily.providers.rpc`.
"""

from .base import LedgerEndpoint, Signer

__all__ = ["LedgerEndpoint", "Signer"]
