from typing import TYPE_CHECKING, Any, Dict, Optional, Protocol

if TYPE_CHECKING:
    from tempo_daily.core.execution.models import FeeData, FeeFields, SubmittedTx


class LedgerEndpoint(Protocol):
    """Read/broadcast surface of the chain the run talks to."""

    rpc_url: str

    async def chain_id(self) -> int:
        ...

    async def assert_chain_id(self, expected: int) -> int:
        ...

    async def get_pending_nonce(self, address: str) -> int:
        ...

    async def get_fee_data(self) -> "FeeData":
        ...

    async def estimate_gas(self, call: Dict[str, Any]) -> int:
        ...

    async def call(self, to: str, data: str) -> str:
        ...

    async def send_raw_transaction(self, raw_tx: str) -> str:
        ...

    async def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        ...


class Signer(Protocol):
    """Holds the sending key; signs and broadcasts with explicit overrides."""

    @property
    def address(self) -> str:
        ...

    async def send_transaction(
        self,
        to: str,
        data: str,
        fee_fields: "FeeFields",
        gas_limit: int,
    ) -> "SubmittedTx":
        ...
