"""
Transaction Execution Layer

Provides the pieces that drive one operation on-chain:
- NonceSequencer: strictly increasing nonces for a run
- FeeEstimator: modern or legacy fee fields from live fee data
- TxRunner: estimate, preflight, submit, confirm, verify receipt

Usage:
    from tempo_daily.core.execution import NonceSequencer, FeeEstimator, TxRunner

    nonces = await NonceSequencer.from_chain(ledger, signer.address)
    runner = TxRunner(ledger, signer, FeeEstimator(ledger), validator, explorer_url)
    outcome = await runner.run(ctx, operation)
"""

from .models import (
    ApproveParams,
    CounterpartyRole,
    FeeData,
    FeeFields,
    FeePreferenceParams,
    Operation,
    OperationKind,
    PreflightCheck,
    ReceiptStatus,
    RegistryApproveParams,
    SubmittedTx,
    TokenRef,
    TransferParams,
    TxOutcome,
    TxReport,
)

from .nonce_manager import NonceSequencer

from .fee_estimator import FeeEstimator, select_fee_fields

from .executor import TxRunner, build_call

__all__ = [
    # Models
    "ApproveParams",
    "CounterpartyRole",
    "FeeData",
    "FeeFields",
    "FeePreferenceParams",
    "Operation",
    "OperationKind",
    "PreflightCheck",
    "ReceiptStatus",
    "RegistryApproveParams",
    "SubmittedTx",
    "TokenRef",
    "TransferParams",
    "TxOutcome",
    "TxReport",
    # Nonces
    "NonceSequencer",
    # Fees
    "FeeEstimator",
    "select_fee_fields",
    # Runner
    "TxRunner",
    "build_call",
]
