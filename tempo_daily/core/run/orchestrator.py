"""
Run Orchestrator

Drives one daily run end to end:

    INIT -> CHAIN_VERIFIED -> WALLET_LOADED -> RUNNING -> COMPLETED
                                                       -> FAILED

Operations run strictly one after another. The first failure stops the run
and produces a failure report; no later operation is attempted. This is the
only place errors are caught and turned into reports.
"""

import logging
import time
import traceback
from pathlib import Path
from typing import TYPE_CHECKING, Callable, List, Optional, Sequence

import structlog

from tempo_daily.chains import (
    EXPECTED_CURRENCY,
    FEE_TOKEN_NAME,
    TIP403_REGISTRY_ADDRESS,
    TOKEN_DECIMALS,
)
from tempo_daily.clock import JstParts, jst_parts
from tempo_daily.config import Settings
from tempo_daily.core.execution.executor import TxRunner
from tempo_daily.core.execution.fee_estimator import FeeEstimator
from tempo_daily.core.execution.models import Operation, TxOutcome
from tempo_daily.core.execution.nonce_manager import NonceSequencer
from tempo_daily.core.policy.preflight import PreflightValidator
from tempo_daily.errors import RunDeadlineExceeded
from tempo_daily.providers.base import LedgerEndpoint, Signer

from .models import FailureReport, RunContext, RunReport, RunResult, RunState
from .plan import build_daily_operations, token_ref

if TYPE_CHECKING:
    from tempo_daily.reports.writer import ReportWriter


logger = logging.getLogger(__name__)


def _format_stack(error: BaseException) -> Optional[str]:
    """Traceback of the error, or of its wrapped cause when it was never raised."""
    source = error
    if source.__traceback__ is None and getattr(error, "cause", None) is not None:
        source = error.cause
    if source.__traceback__ is None:
        return None
    return "".join(traceback.format_exception(type(source), source, source.__traceback__))


class RunOrchestrator:
    """
    Owns the run context and the state machine for one run.

    Collaborators are injected so tests can substitute the ledger, the signer
    and the clock:
    - ledger: chain reads and raw broadcast
    - load_signer: called once at the loadWallet step; builds the signer
    - writer: persists the final report
    """

    def __init__(
        self,
        settings: Settings,
        ledger: LedgerEndpoint,
        load_signer: Callable[[], Signer],
        writer: "ReportWriter",
        operations: Optional[Sequence[Operation]] = None,
        clock: Callable[[], JstParts] = jst_parts,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.settings = settings
        self.ledger = ledger
        self.load_signer = load_signer
        self.writer = writer
        self.operations: List[Operation] = list(
            operations
            if operations is not None
            else build_daily_operations(
                settings.sink_address,
                settings.transfer_amount_units,
                settings.transfer_tokens,
            )
        )
        self.clock = clock
        self.monotonic = monotonic

    def explorer_url(self, tx_hash: str) -> str:
        return f"{self.settings.tempo_explorer_tx_base}{tx_hash}"

    def build_runner(self, signer: Signer) -> TxRunner:
        validator = PreflightValidator(
            self.ledger,
            TIP403_REGISTRY_ADDRESS,
            token_ref(FEE_TOKEN_NAME),
            expected_currency=EXPECTED_CURRENCY,
            expected_decimals=TOKEN_DECIMALS,
        )
        return TxRunner(
            self.ledger,
            signer,
            FeeEstimator(self.ledger),
            validator,
            self.explorer_url,
            confirmation_timeout_seconds=self.settings.confirmation_timeout_seconds,
            poll_interval_seconds=self.settings.poll_interval_seconds,
        )

    def new_context(self) -> RunContext:
        parts = self.clock()
        return RunContext(
            date_jst=parts.date,
            time_jst=parts.time,
            run_id=parts.run_id,
            chain_id=self.settings.tempo_chain_id,
            rpc_url=self.ledger.rpc_url,
            sink=self.settings.sink_address,
        )

    async def run(self) -> RunResult:
        ctx = self.new_context()
        structlog.contextvars.bind_contextvars(run_id=ctx.run_id)
        logger.info(
            f"run started: dateJst={ctx.date_jst} timeJst={ctx.time_jst} "
            f"chainId={ctx.chain_id} operations={len(self.operations)}"
        )
        try:
            try:
                failed = await self._execute(ctx)
            except Exception as e:
                return self._fail(ctx, str(e), _format_stack(e))
            if failed is not None:
                return self._fail(ctx, str(failed.error), _format_stack(failed.error))

            ctx.transition(RunState.COMPLETED)
            return self._complete(ctx)
        finally:
            structlog.contextvars.unbind_contextvars("run_id", "step")

    async def _execute(self, ctx: RunContext) -> Optional[TxOutcome]:
        """Run every stage; return the first failed outcome, or None when all succeeded."""
        started = self.monotonic()

        ctx.set_step("verifyChain")
        await self.ledger.assert_chain_id(ctx.chain_id)
        ctx.transition(RunState.CHAIN_VERIFIED)

        ctx.set_step("loadWallet")
        signer = self.load_signer()
        ctx.wallet = signer.address
        ctx.transition(RunState.WALLET_LOADED)

        ctx.set_step("initNonce")
        ctx.nonces = await NonceSequencer.from_chain(self.ledger, signer.address)
        ctx.transition(RunState.RUNNING)

        runner = self.build_runner(signer)
        for operation in self.operations:
            ctx.set_step(operation.name)
            self._check_deadline(started, operation)

            outcome = await runner.run(ctx, operation)
            if not outcome.ok:
                ctx.set_step(outcome.step_label)
                return outcome
            ctx.items.append(outcome.report)
        return None

    def _check_deadline(self, started: float, operation: Operation) -> None:
        deadline = self.settings.run_deadline_seconds
        if deadline is None:
            return
        elapsed = self.monotonic() - started
        if elapsed >= deadline:
            raise RunDeadlineExceeded(
                f"run deadline of {deadline}s exceeded before {operation.name} "
                f"(elapsed={elapsed:.1f}s)",
                details={"deadline": deadline, "elapsed": elapsed},
            )

    def _complete(self, ctx: RunContext) -> RunResult:
        report = RunReport.from_context(ctx)
        path: Optional[Path] = None
        try:
            path = self.writer.write_run_report(report)
        except Exception as e:
            logger.error(f"failed to write run report: {e}")

        for item in report.items:
            logger.info(
                f"{item.name}: hash={item.hash} explorer={item.explorer} gasUsed={item.gas_used} "
                f"effectiveGasPrice={item.effective_gas_price} feeToken={item.fee_token} "
                f"feePayer={item.fee_payer}"
            )
        logger.info(f"run completed: {len(report.items)} transactions")
        return RunResult(state=ctx.state, report=report, report_path=path)

    def _fail(self, ctx: RunContext, message: str, stack: Optional[str]) -> RunResult:
        ctx.transition(RunState.FAILED)
        logger.error(f"run failed at step={ctx.step}: {message}")
        for item in ctx.items:
            logger.info(f"completed before failure: {item.name} hash={item.hash}")

        report = FailureReport.from_context(ctx, message, stack)
        path: Optional[Path] = None
        try:
            path = self.writer.write_failure_report(report)
        except Exception as write_error:
            logger.error(f"failed to write failure report: {write_error}")
        return RunResult(state=ctx.state, report=report, report_path=path)
