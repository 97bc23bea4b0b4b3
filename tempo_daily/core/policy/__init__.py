"""
Preflight policy checks.

    from tempo_daily.core.policy import PreflightValidator, PreflightRecord

    record = PreflightRecord()
    validator = PreflightValidator(ledger, registry_address, fee_token)
    await validator.run(record, step, sender, operation, gas_limit, fee_fields)
"""

from .fee_math import ATTO_PER_MICRODOLLAR, attodollars_to_microdollars_ceil, ceil_div
from .models import PreflightEntry, PreflightRecord
from .preflight import PreflightValidator

__all__ = [
    "ATTO_PER_MICRODOLLAR",
    "attodollars_to_microdollars_ceil",
    "ceil_div",
    "PreflightEntry",
    "PreflightRecord",
    "PreflightValidator",
]
