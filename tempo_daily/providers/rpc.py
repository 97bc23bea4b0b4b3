"""
JSON-RPC ledger endpoint for Tempo.

Thin async wrapper over the handful of eth_* methods the run needs. Results
are returned as plain ints/dicts; raw receipts are passed through untouched so
Tempo-specific fields (feeToken, feePayer) survive.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from tempo_daily.core.execution.models import FeeData
from tempo_daily.errors import ChainMismatchError, RpcError


logger = logging.getLogger(__name__)

# ethers' default priority fee when the node has no eth_maxPriorityFeePerGas
DEFAULT_PRIORITY_FEE_WEI = 1_000_000_000


def _quantity(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    return int(value, 16)


class TempoRpcClient:
    """Async JSON-RPC client bound to one endpoint."""

    def __init__(
        self,
        rpc_url: str,
        timeout_seconds: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.rpc_url = rpc_url
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._request_id = 0

    async def _rpc_call(self, method: str, params: List[Any]) -> Any:
        """Make an RPC call to the endpoint."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._request_id,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise RpcError(method, str(e))
        except ValueError as e:
            raise RpcError(method, f"invalid JSON response: {e}")

        if "error" in result:
            error = result["error"] or {}
            raise RpcError(method, str(error.get("message", error)), code=error.get("code"))

        return result.get("result")

    async def chain_id(self) -> int:
        return int(await self._rpc_call("eth_chainId", []), 16)

    async def assert_chain_id(self, expected: int) -> int:
        actual = await self.chain_id()
        if actual != expected:
            raise ChainMismatchError(expected=expected, actual=actual)
        logger.info(f"chainId verified: {actual}")
        return actual

    async def get_pending_nonce(self, address: str) -> int:
        return int(await self._rpc_call("eth_getTransactionCount", [address, "pending"]), 16)

    async def get_fee_data(self) -> FeeData:
        """Fee snapshot: legacy gas price plus EIP-1559 fields when the chain has a base fee."""
        gas_price = _quantity(await self._rpc_call("eth_gasPrice", []))

        block = await self._rpc_call("eth_getBlockByNumber", ["latest", False]) or {}
        base_fee = _quantity(block.get("baseFeePerGas"))
        if base_fee is None:
            return FeeData(gas_price=gas_price)

        try:
            priority_fee = _quantity(await self._rpc_call("eth_maxPriorityFeePerGas", []))
        except RpcError as e:
            logger.warning(f"eth_maxPriorityFeePerGas unavailable, using default: {e}")
            priority_fee = None
        if priority_fee is None:
            priority_fee = DEFAULT_PRIORITY_FEE_WEI

        return FeeData(
            gas_price=gas_price,
            max_fee_per_gas=base_fee * 2 + priority_fee,
            max_priority_fee_per_gas=priority_fee,
        )

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        return int(await self._rpc_call("eth_estimateGas", [call]), 16)

    async def call(self, to: str, data: str) -> str:
        return await self._rpc_call("eth_call", [{"to": to, "data": data}, "latest"])

    async def send_raw_transaction(self, raw_tx: str) -> str:
        tx_hash = await self._rpc_call("eth_sendRawTransaction", [raw_tx])
        logger.info(f"Transaction submitted: {tx_hash}")
        return tx_hash

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Raw receipt as returned by the node, or None while pending."""
        return await self._rpc_call("eth_getTransactionReceipt", [tx_hash])

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return await self._rpc_call("eth_getTransactionByHash", [tx_hash])

    async def close(self) -> None:
        """Close HTTP client."""
        await self._client.aclose()
