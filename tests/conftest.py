"""
Shared fakes for the ledger endpoint and the signer.

The fake ledger answers eth_call by selector, so contract reads go through the
real encoders and decoders. The fake signer records every submission and
plants a matching receipt and transaction on the ledger.
"""

from typing import Any, Dict, List, Optional, Set

import pytest
from eth_abi import encode

from tempo_daily.contracts import SELECTORS
from tempo_daily.core.execution.models import FeeData, FeeFields, SubmittedTx
from tempo_daily.errors import ChainMismatchError, RpcError

SENDER = "0x1111111111111111111111111111111111111111"
SINK = "0x2222222222222222222222222222222222222222"
FEE_TOKEN_ADDRESS = "0x20c0000000000000000000000000000000000001"


def word(value: int) -> str:
    return "0x" + format(value, "064x")


class FakeLedger:
    """In-memory LedgerEndpoint."""

    rpc_url = "http://rpc.test"

    def __init__(self, chain_id: int = 42431, start_nonce: int = 7):
        self._chain_id = chain_id
        self.start_nonce = start_nonce
        self.fee_data = FeeData(
            gas_price=20_000_000_000,
            max_fee_per_gas=40_000_000_000,
            max_priority_fee_per_gas=1_000_000_000,
        )
        self.gas_limit = 50_000
        self.estimate_error: Optional[Exception] = None
        self.default_balance = 10**12
        self.balances: Dict[str, int] = {}
        self.decimals = 6
        self.currency = "USD"
        self.paused = False
        self.policy_id = 1
        self.unauthorized: Set[str] = set()
        self.receipts: Dict[str, Dict[str, Any]] = {}
        self.transactions: Dict[str, Dict[str, Any]] = {}
        self.estimates: List[Dict[str, Any]] = []

    async def chain_id(self) -> int:
        return self._chain_id

    async def assert_chain_id(self, expected: int) -> int:
        if self._chain_id != expected:
            raise ChainMismatchError(expected=expected, actual=self._chain_id)
        return self._chain_id

    async def get_pending_nonce(self, address: str) -> int:
        return self.start_nonce

    async def get_fee_data(self) -> FeeData:
        return self.fee_data

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        self.estimates.append(call)
        if self.estimate_error is not None:
            raise self.estimate_error
        return self.gas_limit

    async def call(self, to: str, data: str) -> str:
        selector = data[:10]
        if selector == SELECTORS["balanceOf"]:
            return word(self.balances.get(to.lower(), self.default_balance))
        if selector == SELECTORS["decimals"]:
            return word(self.decimals)
        if selector == SELECTORS["paused"]:
            return word(1 if self.paused else 0)
        if selector == SELECTORS["currency"]:
            return "0x" + encode(["string"], [self.currency]).hex()
        if selector == SELECTORS["transferPolicyId"]:
            return word(self.policy_id)
        if selector == SELECTORS["isAuthorized"]:
            account = "0x" + data[-40:]
            return word(0 if account.lower() in self.unauthorized else 1)
        raise RpcError("eth_call", f"unexpected selector {selector}")

    async def send_raw_transaction(self, raw_tx: str) -> str:
        raise AssertionError("the fake signer broadcasts directly")

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.receipts.get(tx_hash)

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        return self.transactions.get(tx_hash)


def make_receipt(tx_hash: str, status: str = "0x1", **overrides: Any) -> Dict[str, Any]:
    receipt = {
        "transactionHash": tx_hash,
        "status": status,
        "blockNumber": "0x10",
        "gasUsed": "0xc350",
        "effectiveGasPrice": "0x4a817c800",
        "feeToken": FEE_TOKEN_ADDRESS,
        "feePayer": SENDER,
    }
    receipt.update(overrides)
    return {k: v for k, v in receipt.items() if v is not None}


class FakeSigner:
    """Signer that 'mines' each transaction immediately on the fake ledger."""

    def __init__(self, ledger: FakeLedger, address: str = SENDER):
        self.ledger = ledger
        self._address = address
        self.sent: List[Dict[str, Any]] = []
        self.fail_on_send: Set[int] = set()  # 1-based submission attempts
        self.receipt_overrides: Dict[str, Any] = {}
        self.reported_nonce_offset = 0

    @property
    def address(self) -> str:
        return self._address

    async def send_transaction(self, to: str, data: str, fee_fields: FeeFields, gas_limit: int) -> SubmittedTx:
        attempt = len(self.sent) + 1
        self.sent.append({"to": to, "data": data, "fee_fields": fee_fields, "gas_limit": gas_limit})
        if attempt in self.fail_on_send:
            raise RpcError("eth_sendRawTransaction", "nonce too low", code=-32000)

        tx_hash = word(attempt)
        self.ledger.receipts[tx_hash] = make_receipt(tx_hash, **self.receipt_overrides)
        self.ledger.transactions[tx_hash] = {
            "hash": tx_hash,
            "nonce": hex(fee_fields.nonce + self.reported_nonce_offset),
        }
        return SubmittedTx(hash=tx_hash, nonce=fee_fields.nonce)


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def signer(ledger: FakeLedger) -> FakeSigner:
    return FakeSigner(ledger)
