"""
Tempo testnet constants: chain metadata, TIP-20 tokens and predeployed contracts.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class ChainConfig:
    """Static chain metadata."""
    chain_id: int
    name: str
    rpc_url: str
    explorer_tx_base: str


TEMPO = ChainConfig(
    chain_id=42431,
    name="tempo-moderato",
    rpc_url="https://rpc.moderato.tempo.xyz",
    explorer_tx_base="https://explore.tempo.xyz/tx/",
)

# TIP-20 stablecoins, keyed by display name
TOKENS: Dict[str, str] = {
    "pathUSD": "0x20c0000000000000000000000000000000000000",
    "AlphaUSD": "0x20c0000000000000000000000000000000000001",
    "BetaUSD": "0x20c0000000000000000000000000000000000002",
    "ThetaUSD": "0x20c0000000000000000000000000000000000003",
}

PERMIT2_ADDRESS = "0x000000000022d473030f116ddee9f6b43ac78ba3"
FEE_MANAGER_ADDRESS = "0xfeec000000000000000000000000000000000000"
TIP403_REGISTRY_ADDRESS = "0x403c000000000000000000000000000000000000"

FEE_TOKEN_NAME = "AlphaUSD"
TOKEN_DECIMALS = 6
EXPECTED_CURRENCY = "USD"

MAX_UINT256 = 2**256 - 1
MAX_UINT160 = 2**160 - 1
MAX_UINT48 = 2**48 - 1
