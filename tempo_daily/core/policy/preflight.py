"""
Preflight Validator

Asserts token state, balances and fee budget immediately before a
transaction is submitted. Every check appends its computed inputs to the
run's preflight record first and only then raises, so a failure report always
shows the numbers that tripped it.
"""

import logging
from typing import Optional, Tuple

from tempo_daily.contracts import Tip20Token, Tip403Registry
from tempo_daily.core.execution.models import (
    ApproveParams,
    CounterpartyRole,
    FeeFields,
    Operation,
    PreflightCheck,
    TokenRef,
    TransferParams,
)
from tempo_daily.errors import PreflightViolation
from tempo_daily.providers.base import LedgerEndpoint

from .fee_math import attodollars_to_microdollars_ceil
from .models import PreflightRecord


logger = logging.getLogger(__name__)


class PreflightValidator:
    """
    Runs the checks an operation's kind calls for.

    Checks:
    - tokenDecimals: token reports the expected decimals
    - tip20Policy: not paused, expected currency, sender and counterparty
      authorized under the token's TIP-403 policy
    - transferBalance: balance covers the transfer amount
    - approveBalanceSnapshot: records the approving token's balance
    - feeBudget: fee-token balance covers gasLimit x gasPrice, rounded up
    """

    def __init__(
        self,
        ledger: LedgerEndpoint,
        registry_address: str,
        fee_token: TokenRef,
        expected_currency: str = "USD",
        expected_decimals: int = 6,
    ):
        self.ledger = ledger
        self.registry = Tip403Registry(ledger, registry_address)
        self.fee_token = fee_token
        self.expected_currency = expected_currency
        self.expected_decimals = expected_decimals

    def _token(self, token: TokenRef) -> Tip20Token:
        return Tip20Token(self.ledger, token.address, token.name)

    async def run(
        self,
        record: PreflightRecord,
        step: str,
        sender: str,
        operation: Operation,
        gas_limit: int,
        fee_fields: FeeFields,
    ) -> None:
        """Run every check for the operation; the fee budget uses the already-estimated gas limit."""
        params = operation.params
        counterparty = operation.counterparty

        for check in operation.checks:
            if check == PreflightCheck.TOKEN_DECIMALS:
                await self.check_token_decimals(record, step, params.token)
            elif check == PreflightCheck.TOKEN_STATE:
                role, address = counterparty
                await self.check_token_state(record, step, params.token, sender, address, role)
            elif check == PreflightCheck.TRANSFER_BALANCE:
                if not isinstance(params, TransferParams):
                    raise TypeError(f"{operation.name}: transferBalance needs TransferParams")
                await self.check_transfer_balance(
                    record, step, params.token, sender, params.recipient, params.amount
                )
            elif check == PreflightCheck.APPROVE_BALANCE_SNAPSHOT:
                if not isinstance(params, ApproveParams):
                    raise TypeError(f"{operation.name}: approveBalanceSnapshot needs ApproveParams")
                await self.snapshot_approve_balance(record, step, params.token, sender)
            elif check == PreflightCheck.FEE_BUDGET:
                await self.check_fee_budget(record, step, sender, gas_limit, fee_fields, counterparty)
            else:
                raise ValueError(f"Unknown preflight check: {check}")

    async def check_token_decimals(self, record: PreflightRecord, step: str, token: TokenRef) -> int:
        decimals = await self._token(token).decimals()
        passed = decimals == self.expected_decimals
        record.append(
            step,
            PreflightCheck.TOKEN_DECIMALS.value,
            tokenName=token.name,
            tokenAddress=token.address,
            expected=self.expected_decimals,
            actual=decimals,
            passed=passed,
        )
        if not passed:
            raise PreflightViolation(
                PreflightCheck.TOKEN_DECIMALS.value,
                f"{token.name}.decimals mismatch: token={token.address} "
                f"expected={self.expected_decimals} actual={decimals}",
            )
        return decimals

    async def check_token_state(
        self,
        record: PreflightRecord,
        step: str,
        token: TokenRef,
        sender: str,
        counterparty: str,
        role: CounterpartyRole,
    ) -> int:
        contract = self._token(token)
        paused = await contract.paused()
        currency = await contract.currency()
        policy_id = await contract.transfer_policy_id()
        sender_authorized = await self.registry.is_authorized(policy_id, sender)
        counterparty_authorized = await self.registry.is_authorized(policy_id, counterparty)

        passed = (
            not paused
            and currency == self.expected_currency
            and sender_authorized
            and counterparty_authorized
        )
        record.append(
            step,
            PreflightCheck.TOKEN_STATE.value,
            tokenName=token.name,
            tokenAddress=token.address,
            paused=paused,
            currency=currency,
            policyId=str(policy_id),
            sender=sender,
            senderAuthorized=sender_authorized,
            counterpartRole=role.value,
            counterpartAddress=counterparty,
            counterpartAuthorized=counterparty_authorized,
            passed=passed,
        )

        check = PreflightCheck.TOKEN_STATE.value
        if paused:
            raise PreflightViolation(
                check,
                f"{token.name} is paused. token={token.address} {role.value}={counterparty}",
            )
        if currency != self.expected_currency:
            raise PreflightViolation(
                check,
                f"{token.name} currency mismatch. token={token.address} "
                f"expected={self.expected_currency} actual={currency}",
            )
        if not sender_authorized:
            raise PreflightViolation(
                check,
                f"{token.name} TIP-403 sender unauthorized. token={token.address} "
                f"policyId={policy_id} sender={sender} {role.value}={counterparty}",
            )
        if not counterparty_authorized:
            raise PreflightViolation(
                check,
                f"{token.name} TIP-403 {role.value} unauthorized. token={token.address} "
                f"policyId={policy_id} {role.value}={counterparty}",
            )
        return policy_id

    async def check_transfer_balance(
        self,
        record: PreflightRecord,
        step: str,
        token: TokenRef,
        sender: str,
        recipient: str,
        amount: int,
    ) -> int:
        balance = await self._token(token).balance_of(sender)
        logger.info(
            f"[balance] token={token.name} tokenAddress={token.address} wallet={sender} "
            f"recipient={recipient} balance={balance} transferAmount={amount}"
        )

        passed = balance >= amount
        record.append(
            step,
            PreflightCheck.TRANSFER_BALANCE.value,
            tokenName=token.name,
            tokenAddress=token.address,
            wallet=sender,
            counterpartRole=CounterpartyRole.RECIPIENT.value,
            recipient=recipient,
            balance=str(balance),
            required=str(amount),
            passed=passed,
        )
        if not passed:
            raise PreflightViolation(
                PreflightCheck.TRANSFER_BALANCE.value,
                f"{token.name} balance insufficient. wallet={sender} token={token.address} "
                f"recipient={recipient} balance={balance} required={amount}",
            )
        return balance

    async def snapshot_approve_balance(
        self,
        record: PreflightRecord,
        step: str,
        token: TokenRef,
        sender: str,
    ) -> int:
        balance = await self._token(token).balance_of(sender)
        record.append(
            step,
            PreflightCheck.APPROVE_BALANCE_SNAPSHOT.value,
            tokenName=token.name,
            tokenAddress=token.address,
            wallet=sender,
            balance=str(balance),
        )
        return balance

    async def check_fee_budget(
        self,
        record: PreflightRecord,
        step: str,
        sender: str,
        gas_limit: int,
        fee_fields: FeeFields,
        counterparty: Optional[Tuple[CounterpartyRole, str]] = None,
    ) -> int:
        gas_price = fee_fields.representative_gas_price
        max_fee_atto = gas_limit * gas_price
        required_micro = attodollars_to_microdollars_ceil(max_fee_atto)
        balance = await self._token(self.fee_token).balance_of(sender)

        role, address = counterparty if counterparty else (None, None)
        logger.info(
            f"[fee-precheck] tx={step} feeToken={self.fee_token.address} wallet={sender} "
            f"feeBalance={balance} gasLimit={gas_limit} gasPrice={gas_price} "
            f"maxFeeAttodollars={max_fee_atto} requiredMicro={required_micro}"
        )

        passed = balance >= required_micro
        record.append(
            step,
            PreflightCheck.FEE_BUDGET.value,
            feeTokenName=self.fee_token.name,
            feeToken=self.fee_token.address,
            wallet=sender,
            feeBalance=str(balance),
            gasLimit=str(gas_limit),
            gasPrice=str(gas_price),
            maxFeeAttodollars=str(max_fee_atto),
            requiredMicro=str(required_micro),
            counterpartRole=role.value if role else None,
            counterpartAddress=address,
            passed=passed,
        )
        if not passed:
            counterpart = f" {role.value}={address}" if role else ""
            raise PreflightViolation(
                PreflightCheck.FEE_BUDGET.value,
                f"{step} fee balance insufficient. wallet={sender} feeToken={self.fee_token.name} "
                f"({self.fee_token.address}) feeBalance={balance} requiredMicro={required_micro} "
                f"gasLimit={gas_limit} gasPrice={gas_price}{counterpart}",
            )
        return required_micro
