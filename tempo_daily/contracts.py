"""
Call encoding and typed reads for the contracts a daily run touches.

Calldata is built from 4-byte selectors and 32-byte padded static arguments.
The only dynamic return value (TIP-20 `currency()`) is decoded with eth-abi.
"""

from typing import Dict

from eth_abi import decode
from eth_abi.exceptions import DecodingError
from eth_utils import function_signature_to_4byte_selector

from tempo_daily.providers.base import LedgerEndpoint


def _selector(signature: str) -> str:
    return "0x" + function_signature_to_4byte_selector(signature).hex()


SELECTORS: Dict[str, str] = {
    name: _selector(signature)
    for name, signature in {
        "balanceOf": "balanceOf(address)",
        "decimals": "decimals()",
        "paused": "paused()",
        "currency": "currency()",
        "transferPolicyId": "transferPolicyId()",
        "transfer": "transfer(address,uint256)",
        "approve": "approve(address,uint256)",
        "isAuthorized": "isAuthorized(uint64,address)",
        "permit2Approve": "approve(address,address,uint160,uint48)",
        "setUserToken": "setUserToken(address)",
    }.items()
}


def _encode_uint(value: int) -> str:
    """Encode an unsigned integer as a 32-byte hex string (without 0x prefix)."""
    if value < 0:
        raise ValueError(f"cannot encode negative integer {value}")
    return format(value, "064x")


def _encode_address(address: str) -> str:
    """Encode an address as a 32-byte hex string (without 0x prefix)."""
    addr = address.lower().replace("0x", "")
    if len(addr) != 40:
        raise ValueError(f"not a 20-byte address: {address}")
    return addr.zfill(64)


def _decode_uint(result: str) -> int:
    if not result or result == "0x":
        raise ValueError("empty eth_call result")
    return int(result, 16)


def encode_transfer(recipient: str, amount: int) -> str:
    return SELECTORS["transfer"] + _encode_address(recipient) + _encode_uint(amount)


def encode_approve(spender: str, amount: int) -> str:
    return SELECTORS["approve"] + _encode_address(spender) + _encode_uint(amount)


def encode_permit2_approve(token: str, spender: str, amount: int, expiration: int) -> str:
    return (
        SELECTORS["permit2Approve"]
        + _encode_address(token)
        + _encode_address(spender)
        + _encode_uint(amount)
        + _encode_uint(expiration)
    )


def encode_set_user_token(token: str) -> str:
    return SELECTORS["setUserToken"] + _encode_address(token)


class Tip20Token:
    """Read-only view of a TIP-20 token."""

    def __init__(self, ledger: LedgerEndpoint, address: str, name: str = ""):
        self.ledger = ledger
        self.address = address
        self.name = name or address

    async def balance_of(self, owner: str) -> int:
        return _decode_uint(await self.ledger.call(self.address, SELECTORS["balanceOf"] + _encode_address(owner)))

    async def decimals(self) -> int:
        return _decode_uint(await self.ledger.call(self.address, SELECTORS["decimals"]))

    async def paused(self) -> bool:
        return _decode_uint(await self.ledger.call(self.address, SELECTORS["paused"])) != 0

    async def currency(self) -> str:
        result = await self.ledger.call(self.address, SELECTORS["currency"])
        if not result or result == "0x":
            raise ValueError(f"empty currency() result for {self.name}")
        try:
            (value,) = decode(["string"], bytes.fromhex(result[2:]))
        except DecodingError as e:
            raise ValueError(f"undecodable currency() result for {self.name}: {e}") from e
        return value

    async def transfer_policy_id(self) -> int:
        return _decode_uint(await self.ledger.call(self.address, SELECTORS["transferPolicyId"]))


class Tip403Registry:
    """TIP-403 transfer-policy registry."""

    def __init__(self, ledger: LedgerEndpoint, address: str):
        self.ledger = ledger
        self.address = address

    async def is_authorized(self, policy_id: int, account: str) -> bool:
        data = SELECTORS["isAuthorized"] + _encode_uint(policy_id) + _encode_address(account)
        return _decode_uint(await self.ledger.call(self.address, data)) != 0
