"""Fee field selection from live network fee data."""

import logging

from tempo_daily.errors import FeeDataUnavailable
from tempo_daily.providers.base import LedgerEndpoint

from .models import FeeData, FeeFields


logger = logging.getLogger(__name__)


def select_fee_fields(fee_data: FeeData, nonce: int) -> FeeFields:
    """
    Pick fee fields in priority order:

    1. max fee and priority fee both present: modern (EIP-1559) fields
    2. only a gas price: legacy fields
    3. neither: FeeDataUnavailable
    """
    if fee_data.max_fee_per_gas is not None and fee_data.max_priority_fee_per_gas is not None:
        return FeeFields(
            nonce=nonce,
            max_fee_per_gas=fee_data.max_fee_per_gas,
            max_priority_fee_per_gas=fee_data.max_priority_fee_per_gas,
        )

    if fee_data.gas_price is not None:
        return FeeFields(nonce=nonce, gas_price=fee_data.gas_price)

    raise FeeDataUnavailable(
        f"fee data returned no usable fee fields: {fee_data}",
        details={"nonce": nonce},
    )


class FeeEstimator:
    """Builds fee fields for the next transaction from the ledger's fee data."""

    def __init__(self, ledger: LedgerEndpoint):
        self.ledger = ledger

    async def fee_fields(self, nonce: int) -> FeeFields:
        fee_data = await self.ledger.get_fee_data()
        fields = select_fee_fields(fee_data, nonce)
        logger.debug(f"fee fields selected: {fields.to_dict()}")
        return fields
