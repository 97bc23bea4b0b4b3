"""
Transaction execution models and types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from tempo_daily.errors import ReceiptSchemaViolation, TempoDailyError


class OperationKind(str, Enum):
    """Kinds of operation a run can submit."""
    FEE_PREFERENCE = "feePreference"      # FeeManager.setUserToken
    TRANSFER = "transfer"                 # TIP-20 transfer
    APPROVE = "approve"                   # TIP-20 approve
    REGISTRY_APPROVE = "registryApprove"  # Permit2.approve


class CounterpartyRole(str, Enum):
    RECIPIENT = "recipient"
    SPENDER = "spender"


class PreflightCheck(str, Enum):
    """Checks the preflight validator can run for an operation."""
    TOKEN_DECIMALS = "tokenDecimals"
    TOKEN_STATE = "tip20Policy"
    TRANSFER_BALANCE = "transferBalance"
    APPROVE_BALANCE_SNAPSHOT = "approveBalanceSnapshot"
    FEE_BUDGET = "feeBudget"


@dataclass(frozen=True)
class TokenRef:
    name: str
    address: str


@dataclass(frozen=True)
class FeePreferenceParams:
    fee_manager: str
    fee_token: TokenRef


@dataclass(frozen=True)
class TransferParams:
    token: TokenRef
    recipient: str
    amount: int


@dataclass(frozen=True)
class ApproveParams:
    token: TokenRef
    spender: str
    amount: int


@dataclass(frozen=True)
class RegistryApproveParams:
    registry: str
    token: TokenRef
    spender: str
    amount: int
    expiration: int


OperationParams = Union[FeePreferenceParams, TransferParams, ApproveParams, RegistryApproveParams]


_CHECKS_BY_KIND: Dict[OperationKind, Tuple[PreflightCheck, ...]] = {
    OperationKind.FEE_PREFERENCE: (PreflightCheck.FEE_BUDGET,),
    OperationKind.TRANSFER: (
        PreflightCheck.TOKEN_DECIMALS,
        PreflightCheck.TOKEN_STATE,
        PreflightCheck.TRANSFER_BALANCE,
        PreflightCheck.FEE_BUDGET,
    ),
    OperationKind.APPROVE: (
        PreflightCheck.TOKEN_DECIMALS,
        PreflightCheck.TOKEN_STATE,
        PreflightCheck.APPROVE_BALANCE_SNAPSHOT,
        PreflightCheck.FEE_BUDGET,
    ),
    OperationKind.REGISTRY_APPROVE: (PreflightCheck.FEE_BUDGET,),
}

_PARAMS_BY_KIND = {
    OperationKind.FEE_PREFERENCE: FeePreferenceParams,
    OperationKind.TRANSFER: TransferParams,
    OperationKind.APPROVE: ApproveParams,
    OperationKind.REGISTRY_APPROVE: RegistryApproveParams,
}


@dataclass(frozen=True)
class Operation:
    """One step of a run: a tagged {kind, params} value."""
    name: str
    kind: OperationKind
    params: OperationParams

    def __post_init__(self):
        expected = _PARAMS_BY_KIND[self.kind]
        if not isinstance(self.params, expected):
            raise TypeError(
                f"{self.name}: {self.kind.value} operation needs {expected.__name__}, "
                f"got {type(self.params).__name__}"
            )

    @property
    def checks(self) -> Tuple[PreflightCheck, ...]:
        return _CHECKS_BY_KIND[self.kind]

    @property
    def counterparty(self) -> Optional[Tuple[CounterpartyRole, str]]:
        if isinstance(self.params, TransferParams):
            return CounterpartyRole.RECIPIENT, self.params.recipient
        if isinstance(self.params, (ApproveParams, RegistryApproveParams)):
            return CounterpartyRole.SPENDER, self.params.spender
        return None


@dataclass(frozen=True)
class FeeData:
    """Snapshot of network fee data. Any field may be missing."""
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None


@dataclass(frozen=True)
class FeeFields:
    """Fee overrides for one transaction: modern (EIP-1559) or legacy, never both."""
    nonce: int
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None
    gas_price: Optional[int] = None

    def __post_init__(self):
        modern = self.max_fee_per_gas is not None and self.max_priority_fee_per_gas is not None
        partial = (self.max_fee_per_gas is None) != (self.max_priority_fee_per_gas is None)
        legacy = self.gas_price is not None
        if partial or modern == legacy:
            raise ValueError(
                "FeeFields needs exactly one of (max_fee_per_gas, max_priority_fee_per_gas) or gas_price"
            )

    @property
    def is_modern(self) -> bool:
        return self.max_fee_per_gas is not None

    @property
    def representative_gas_price(self) -> int:
        """Price used for fee-budget arithmetic: max fee, else legacy gas price."""
        if self.max_fee_per_gas is not None:
            return self.max_fee_per_gas
        return self.gas_price

    def to_rpc(self) -> Dict[str, str]:
        """Hex-quantity fields for eth_estimateGas call objects."""
        fields = {"nonce": hex(self.nonce)}
        if self.is_modern:
            fields["type"] = "0x2"
            fields["maxFeePerGas"] = hex(self.max_fee_per_gas)
            fields["maxPriorityFeePerGas"] = hex(self.max_priority_fee_per_gas)
        else:
            fields["gasPrice"] = hex(self.gas_price)
        return fields

    def to_tx_params(self) -> Dict[str, int]:
        """Integer fields for signing."""
        if self.is_modern:
            return {
                "nonce": self.nonce,
                "type": 2,
                "maxFeePerGas": self.max_fee_per_gas,
                "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
            }
        return {"nonce": self.nonce, "gasPrice": self.gas_price}

    def to_dict(self) -> Dict[str, Any]:
        data = {"nonce": self.nonce}
        if self.is_modern:
            data["type"] = 2
            data["maxFeePerGas"] = str(self.max_fee_per_gas)
            data["maxPriorityFeePerGas"] = str(self.max_priority_fee_per_gas)
        else:
            data["gasPrice"] = str(self.gas_price)
        return data


@dataclass(frozen=True)
class SubmittedTx:
    """Handle for a broadcast transaction."""
    hash: str
    nonce: int


@dataclass(frozen=True)
class ReceiptStatus:
    """Generic decoded view of a receipt: only the fields every chain has."""
    tx_hash: str
    status: int
    block_number: int
    gas_used: int

    @classmethod
    def from_rpc(cls, raw: Dict[str, Any]) -> "ReceiptStatus":
        return cls(
            tx_hash=raw.get("transactionHash", ""),
            status=int(raw.get("status", "0x0"), 16),
            block_number=int(raw.get("blockNumber", "0x0"), 16),
            gas_used=int(raw.get("gasUsed", "0x0"), 16),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == 1


def _required_string(raw: Dict[str, Any], key: str, name: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str) or not value:
        raise ReceiptSchemaViolation(
            f"{name} receipt missing required field: {key}",
            details={"field": key},
        )
    return value


def _quantity_to_decimal(raw: Dict[str, Any], key: str, name: str) -> str:
    value = _required_string(raw, key, name)
    try:
        return str(int(value, 16))
    except ValueError:
        raise ReceiptSchemaViolation(
            f"{name} receipt field {key} is not a valid quantity: {value}",
            details={"field": key, "value": value},
        )


@dataclass(frozen=True)
class TxReport:
    """Confirmed transaction summary, built from the raw receipt."""
    name: str
    hash: str
    explorer: str
    gas_used: str
    effective_gas_price: str
    fee_token: str
    fee_payer: str
    receipt_raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_receipt(cls, name: str, tx_hash: str, explorer: str, raw: Dict[str, Any]) -> "TxReport":
        return cls(
            name=name,
            hash=tx_hash,
            explorer=explorer,
            gas_used=_quantity_to_decimal(raw, "gasUsed", name),
            effective_gas_price=_quantity_to_decimal(raw, "effectiveGasPrice", name),
            fee_token=_required_string(raw, "feeToken", name),
            fee_payer=_required_string(raw, "feePayer", name),
            receipt_raw=raw,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "hash": self.hash,
            "explorer": self.explorer,
            "gasUsed": self.gas_used,
            "effectiveGasPrice": self.effective_gas_price,
            "feeToken": self.fee_token,
            "feePayer": self.fee_payer,
            "receiptRaw": self.receipt_raw,
        }


@dataclass(frozen=True)
class TxOutcome:
    """Result of driving one operation: a report, or the stage that failed and why."""
    operation: str
    report: Optional[TxReport] = None
    stage: Optional[str] = None
    error: Optional[TempoDailyError] = None

    @classmethod
    def success(cls, operation: str, report: TxReport) -> "TxOutcome":
        return cls(operation=operation, report=report)

    @classmethod
    def failure(cls, operation: str, stage: str, error: TempoDailyError) -> "TxOutcome":
        return cls(operation=operation, stage=stage, error=error)

    @property
    def ok(self) -> bool:
        return self.report is not None

    @property
    def step_label(self) -> str:
        if self.ok:
            return self.operation
        return f"{self.operation} {self.stage}"
