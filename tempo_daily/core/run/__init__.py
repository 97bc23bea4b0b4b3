"""
Daily run orchestration.

Usage:
    from tempo_daily.core.run import RunOrchestrator

    orchestrator = RunOrchestrator(settings, ledger, load_signer, ReportWriter(base_dir))
    result = await orchestrator.run()
"""

from .models import (
    TRANSITIONS,
    FailureReport,
    RunContext,
    RunReport,
    RunResult,
    RunState,
)

from .plan import build_daily_operations, token_ref

from .orchestrator import RunOrchestrator

__all__ = [
    # Models
    "TRANSITIONS",
    "FailureReport",
    "RunContext",
    "RunReport",
    "RunResult",
    "RunState",
    # Plan
    "build_daily_operations",
    "token_ref",
    # Orchestrator
    "RunOrchestrator",
]
