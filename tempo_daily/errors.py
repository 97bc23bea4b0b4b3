"""
Error taxonomy for the daily run.

Nothing here is retried. Every error raised after the run context exists is
caught once by the orchestrator and turned into a failure report.
"""

from typing import Any, Dict, Optional


class TempoDailyError(Exception):
    """Base exception for the daily runner."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigError(TempoDailyError):
    """Configuration is missing or invalid. Raised before any run starts."""
    pass


class ChainMismatchError(TempoDailyError):
    """The RPC endpoint reports a different chain id than configured."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"chainId mismatch: expected={expected} actual={actual}",
            details={"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class WalletLoadError(TempoDailyError):
    """The encrypted keystore could not be read or decrypted."""
    pass


class RpcError(TempoDailyError):
    """JSON-RPC transport or protocol error."""

    def __init__(self, method: str, message: str, code: Optional[int] = None):
        super().__init__(f"RPC {method} failed: {message}", details={"method": method, "code": code})
        self.method = method
        self.code = code


class PreflightViolation(TempoDailyError):
    """A balance, policy or fee-budget check failed before submission."""

    def __init__(self, check: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details=details)
        self.check = check


class FeeDataUnavailable(TempoDailyError):
    """Network fee data carries neither modern nor legacy pricing."""
    pass


class StageError(TempoDailyError):
    """A pipeline stage failed. Carries the stage tag and the wrapped cause."""

    stage = "unknown"

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.cause = cause


class EstimationFailure(StageError):
    """eth_estimateGas rejected the call."""
    stage = "estimateGas"


class SubmissionFailure(StageError):
    """Signing or broadcasting the transaction failed."""
    stage = "send"


class ConfirmationFailure(StageError):
    """No receipt arrived, or the receipt status is not success."""
    stage = "waitAndVerify"


class ReceiptSchemaViolation(TempoDailyError):
    """The raw receipt is missing or has malformed protocol fields."""
    pass


class NonceMismatchError(TempoDailyError):
    """The network accepted a transaction with a nonce we did not assign."""

    def __init__(self, assigned: int, reported: int, tx_hash: str):
        super().__init__(
            f"nonce mismatch for tx={tx_hash}: assigned={assigned} reported={reported}",
            details={"assigned": assigned, "reported": reported, "hash": tx_hash},
        )
        self.assigned = assigned
        self.reported = reported


class RunDeadlineExceeded(TempoDailyError):
    """The run deadline passed before the next operation could start."""
    pass


class InvalidTransitionError(TempoDailyError):
    """The run state machine was asked for a transition it does not allow."""
    pass
