"""
Transaction runner for one operation.

Drives a single operation through its full lifecycle, strictly in order:
- Fee fields at the reserved nonce
- Gas estimation
- Preflight checks (fee budget from the estimated gas limit)
- Submission
- Confirmation and receipt verification
- Report construction from the raw receipt

Nothing is retried. The first failing stage ends the operation and is returned
as a failed TxOutcome for the orchestrator to report.
"""

import asyncio
import json
import logging
import time
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Tuple

from tempo_daily.contracts import (
    encode_approve,
    encode_permit2_approve,
    encode_set_user_token,
    encode_transfer,
)
from tempo_daily.errors import (
    ConfirmationFailure,
    EstimationFailure,
    FeeDataUnavailable,
    PreflightViolation,
    ReceiptSchemaViolation,
    RpcError,
    StageError,
    SubmissionFailure,
    TempoDailyError,
)
from tempo_daily.providers.base import LedgerEndpoint, Signer

from .fee_estimator import FeeEstimator
from .models import (
    FeeFields,
    Operation,
    OperationKind,
    ReceiptStatus,
    SubmittedTx,
    TxOutcome,
    TxReport,
)

if TYPE_CHECKING:
    from tempo_daily.core.policy.preflight import PreflightValidator
    from tempo_daily.core.run.models import RunContext


logger = logging.getLogger(__name__)


def build_call(operation: Operation) -> Tuple[str, str]:
    """Target contract and calldata for an operation, dispatched on its kind."""
    params = operation.params
    if operation.kind == OperationKind.FEE_PREFERENCE:
        return params.fee_manager, encode_set_user_token(params.fee_token.address)
    if operation.kind == OperationKind.TRANSFER:
        return params.token.address, encode_transfer(params.recipient, params.amount)
    if operation.kind == OperationKind.APPROVE:
        return params.token.address, encode_approve(params.spender, params.amount)
    if operation.kind == OperationKind.REGISTRY_APPROVE:
        return params.registry, encode_permit2_approve(
            params.token.address, params.spender, params.amount, params.expiration
        )
    raise ValueError(f"Unsupported operation kind: {operation.kind}")


class TxRunner:
    """
    Executes one operation at a time against the ledger.

    The runner reads the reserved nonce from the run context and advances the
    sequencer exactly once, after the report has been built.
    """

    def __init__(
        self,
        ledger: LedgerEndpoint,
        signer: Signer,
        fee_estimator: FeeEstimator,
        validator: "PreflightValidator",
        explorer_url: Callable[[str], str],
        confirmation_timeout_seconds: float = 120.0,
        poll_interval_seconds: float = 2.0,
    ):
        self.ledger = ledger
        self.signer = signer
        self.fee_estimator = fee_estimator
        self.validator = validator
        self.explorer_url = explorer_url
        self.confirmation_timeout_seconds = confirmation_timeout_seconds
        self.poll_interval_seconds = poll_interval_seconds

    async def run(self, ctx: "RunContext", operation: Operation) -> TxOutcome:
        sender = self.signer.address
        nonce = ctx.nonces.current
        target, data = build_call(operation)

        # 1. fee fields at the reserved nonce
        try:
            fee_fields = await self.fee_estimator.fee_fields(nonce)
        except (FeeDataUnavailable, RpcError) as e:
            return self._failed(operation, "feeData", e)

        # 2. gas estimation with those fee fields
        call = {"from": sender, "to": target, "data": data, **fee_fields.to_rpc()}
        try:
            gas_limit = await self.ledger.estimate_gas(call)
        except Exception as e:
            return self._stage_failed(operation, EstimationFailure, e, target, data, fee_fields)
        logger.info(f"{operation.name}: gasLimit={gas_limit} nonce={nonce}")

        # 3. preflight, using the estimated gas limit for the fee budget
        try:
            await self.validator.run(ctx.preflight, ctx.step, sender, operation, gas_limit, fee_fields)
        except (PreflightViolation, RpcError, ValueError) as e:
            return self._failed(operation, "preflight", e)

        # 4. submission
        try:
            submitted = await self.signer.send_transaction(target, data, fee_fields, gas_limit)
        except Exception as e:
            return self._stage_failed(operation, SubmissionFailure, e, target, data, fee_fields)

        # 5. confirmation
        try:
            await self._wait_and_verify(submitted)
        except Exception as e:
            return self._stage_failed(operation, ConfirmationFailure, e, target, data, fee_fields)

        # 6. raw receipt and accepted nonce
        try:
            raw_receipt = await self._fetch_raw_receipt(submitted.hash)
        except (ReceiptSchemaViolation, RpcError) as e:
            return self._failed(operation, "receipt", e)

        try:
            await self._verify_nonce(ctx, submitted)
        except TempoDailyError as e:
            return self._failed(operation, "nonce", e)

        # 7. report
        try:
            report = TxReport.from_receipt(
                operation.name, submitted.hash, self.explorer_url(submitted.hash), raw_receipt
            )
        except ReceiptSchemaViolation as e:
            return self._failed(operation, "receipt", e)

        issued = ctx.nonces.next()
        if issued != nonce:
            raise RuntimeError(f"nonce sequencer advanced unexpectedly: used={nonce} issued={issued}")

        logger.info(
            f"{operation.name}: confirmed hash={report.hash} gasUsed={report.gas_used} "
            f"effectiveGasPrice={report.effective_gas_price} feeToken={report.fee_token} "
            f"feePayer={report.fee_payer}"
        )
        return TxOutcome.success(operation.name, report)

    async def _wait_and_verify(self, submitted: SubmittedTx) -> ReceiptStatus:
        """Poll until a receipt appears; require status success."""
        deadline = time.monotonic() + self.confirmation_timeout_seconds

        while True:
            try:
                raw = await self.ledger.get_transaction_receipt(submitted.hash)
            except RpcError as e:
                logger.warning(f"Error checking transaction status: {e}")
                raw = None

            if raw:
                receipt = ReceiptStatus.from_rpc(raw)
                if not receipt.succeeded:
                    raise ConfirmationFailure(
                        f"Tx failed (status={receipt.status}) tx={submitted.hash}"
                    )
                return receipt

            if time.monotonic() >= deadline:
                raise ConfirmationFailure(
                    f"Missing receipt for tx={submitted.hash} after {self.confirmation_timeout_seconds}s"
                )
            await asyncio.sleep(self.poll_interval_seconds)

    async def _fetch_raw_receipt(self, tx_hash: str) -> Dict[str, Any]:
        raw = await self.ledger.get_transaction_receipt(tx_hash)
        if not raw:
            raise ReceiptSchemaViolation(f"eth_getTransactionReceipt returned null for tx={tx_hash}")
        return raw

    async def _verify_nonce(self, ctx: "RunContext", submitted: SubmittedTx) -> None:
        tx = await self.ledger.get_transaction(submitted.hash)
        if not tx or not tx.get("nonce"):
            raise ReceiptSchemaViolation(f"eth_getTransactionByHash has no nonce for tx={submitted.hash}")
        ctx.nonces.verify_accepted(submitted.nonce, int(tx["nonce"], 16), submitted.hash)

    def _failed(self, operation: Operation, stage: str, error: TempoDailyError) -> TxOutcome:
        logger.error(f"{operation.name} {stage} failed: {error}")
        return TxOutcome.failure(operation.name, stage, error)

    def _stage_failed(
        self,
        operation: Operation,
        error_cls: type,
        cause: Exception,
        target: str,
        data: str,
        fee_fields: FeeFields,
    ) -> TxOutcome:
        stage = error_cls.stage
        if isinstance(cause, StageError) and cause.stage == stage:
            reason = cause.message
        else:
            reason = str(cause)
        message = self._failure_message(operation, stage, target, data, fee_fields, reason)
        error = error_cls(message, cause=cause, details={"nonce": fee_fields.nonce})
        return self._failed(operation, stage, error)

    def _failure_message(
        self,
        operation: Operation,
        stage: str,
        target: str,
        data: str,
        fee_fields: FeeFields,
        reason: str,
    ) -> str:
        params = operation.params
        token = getattr(params, "token", None) or getattr(params, "fee_token", None)
        amount: Optional[int] = getattr(params, "amount", None)
        counterparty = operation.counterparty
        counterpart = f"{counterparty[0].value}={counterparty[1]}" if counterparty else "counterparty=n/a"
        return (
            f"{operation.name} {stage} failed. "
            f"token={token.name if token else 'n/a'} "
            f"tokenAddress={token.address if token else 'n/a'} "
            f"to={target} wallet={self.signer.address} {counterpart} "
            f"amount={amount if amount is not None else 'n/a'} "
            f"nonce={fee_fields.nonce} data={data} "
            f"feeFields={json.dumps(fee_fields.to_dict())} cause={reason}"
        )
