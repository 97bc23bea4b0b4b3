"""
Run models: lifecycle states, the run context threaded through every stage,
and the two report documents a run can produce.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog

from tempo_daily.core.execution.models import TxReport
from tempo_daily.core.execution.nonce_manager import NonceSequencer
from tempo_daily.core.policy.models import PreflightRecord
from tempo_daily.errors import InvalidTransitionError


logger = logging.getLogger(__name__)


class RunState(str, Enum):
    INIT = "init"
    CHAIN_VERIFIED = "chain_verified"
    WALLET_LOADED = "wallet_loaded"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


TRANSITIONS: Dict[RunState, set] = {
    RunState.INIT: {RunState.CHAIN_VERIFIED, RunState.FAILED},
    RunState.CHAIN_VERIFIED: {RunState.WALLET_LOADED, RunState.FAILED},
    RunState.WALLET_LOADED: {RunState.RUNNING, RunState.FAILED},
    RunState.RUNNING: {RunState.COMPLETED, RunState.FAILED},
    RunState.COMPLETED: set(),
    RunState.FAILED: set(),
}


@dataclass
class RunContext:
    """All mutable state of one run. Passed explicitly; never global."""
    date_jst: str
    time_jst: str
    run_id: str
    chain_id: int
    rpc_url: str
    wallet: Optional[str] = None
    sink: Optional[str] = None
    step: str = "init"
    state: RunState = RunState.INIT
    preflight: PreflightRecord = field(default_factory=PreflightRecord)
    items: List[TxReport] = field(default_factory=list)
    nonces: Optional[NonceSequencer] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in {RunState.COMPLETED, RunState.FAILED}

    def transition(self, to_state: RunState) -> None:
        if to_state not in TRANSITIONS[self.state]:
            raise InvalidTransitionError(
                f"Invalid run transition: {self.state.value} -> {to_state.value}",
                details={"from": self.state.value, "to": to_state.value},
            )
        logger.info(f"run state: {self.state.value} -> {to_state.value}")
        self.state = to_state

    def set_step(self, step: str) -> None:
        self.step = step
        structlog.contextvars.bind_contextvars(step=step)
        logger.info(f"step={step}")


@dataclass(frozen=True)
class RunReport:
    """Written once, after every operation succeeded."""
    date_jst: str
    time_jst: str
    run_id: str
    chain_id: int
    rpc_url: str
    wallet: str
    sink: str
    items: List[TxReport]

    @classmethod
    def from_context(cls, ctx: RunContext) -> "RunReport":
        return cls(
            date_jst=ctx.date_jst,
            time_jst=ctx.time_jst,
            run_id=ctx.run_id,
            chain_id=ctx.chain_id,
            rpc_url=ctx.rpc_url,
            wallet=ctx.wallet,
            sink=ctx.sink,
            items=list(ctx.items),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dateJst": self.date_jst,
            "timeJst": self.time_jst,
            "chainId": self.chain_id,
            "rpcUrl": self.rpc_url,
            "wallet": self.wallet,
            "sink": self.sink,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(frozen=True)
class FailureReport:
    """
    Written once, on the first unrecoverable error.

    `items` holds the operations that completed before the failure. They are
    logged and returned to the caller; the persisted document omits them.
    """
    date_jst: str
    time_jst: str
    run_id: str
    chain_id: int
    rpc_url: str
    wallet: Optional[str]
    sink: Optional[str]
    step: str
    preflight: List[Dict[str, Any]]
    error_message: str
    error_stack: Optional[str] = None
    items: List[TxReport] = field(default_factory=list)

    @classmethod
    def from_context(
        cls,
        ctx: RunContext,
        message: str,
        stack: Optional[str] = None,
    ) -> "FailureReport":
        return cls(
            date_jst=ctx.date_jst,
            time_jst=ctx.time_jst,
            run_id=ctx.run_id,
            chain_id=ctx.chain_id,
            rpc_url=ctx.rpc_url,
            wallet=ctx.wallet,
            sink=ctx.sink,
            step=ctx.step,
            preflight=ctx.preflight.to_list(),
            error_message=message,
            error_stack=stack,
            items=list(ctx.items),
        )

    def to_dict(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"message": self.error_message}
        if self.error_stack:
            error["stack"] = self.error_stack
        return {
            "dateJst": self.date_jst,
            "timeJst": self.time_jst,
            "chainId": self.chain_id,
            "rpcUrl": self.rpc_url,
            "wallet": self.wallet,
            "sink": self.sink,
            "step": self.step,
            "preflight": self.preflight,
            "error": error,
        }


@dataclass(frozen=True)
class RunResult:
    """What the orchestrator hands back to the CLI."""
    state: RunState
    report: Any  # RunReport or FailureReport
    report_path: Optional[Path] = None

    @property
    def ok(self) -> bool:
        return self.state == RunState.COMPLETED
