"""The fixed daily operation plan."""

from typing import List, Sequence

from tempo_daily.chains import (
    FEE_MANAGER_ADDRESS,
    FEE_TOKEN_NAME,
    MAX_UINT160,
    MAX_UINT256,
    MAX_UINT48,
    PERMIT2_ADDRESS,
    TOKENS,
)
from tempo_daily.core.execution.models import (
    ApproveParams,
    FeePreferenceParams,
    Operation,
    OperationKind,
    RegistryApproveParams,
    TokenRef,
    TransferParams,
)


def token_ref(name: str) -> TokenRef:
    return TokenRef(name=name, address=TOKENS[name])


def build_daily_operations(
    sink: str,
    amount: int,
    transfer_tokens: Sequence[str] = tuple(TOKENS.keys()),
    fee_token_name: str = FEE_TOKEN_NAME,
) -> List[Operation]:
    """
    Build the run's operations, in submission order:

    1. prefer the fee token for gas payment
    2. transfer `amount` of each token to the sink
    3. unlimited fee-token allowance to Permit2
    4. Permit2 allowance for the sink (max amount, max expiration)
    """
    fee_token = token_ref(fee_token_name)

    operations = [
        Operation(
            name=f"feePreference:setUserToken({fee_token.name})",
            kind=OperationKind.FEE_PREFERENCE,
            params=FeePreferenceParams(fee_manager=FEE_MANAGER_ADDRESS, fee_token=fee_token),
        )
    ]

    for name in transfer_tokens:
        operations.append(
            Operation(
                name=f"transfer:{name}",
                kind=OperationKind.TRANSFER,
                params=TransferParams(token=token_ref(name), recipient=sink, amount=amount),
            )
        )

    operations.append(
        Operation(
            name=f"approve:{fee_token.name}->Permit2(MaxUint256)",
            kind=OperationKind.APPROVE,
            params=ApproveParams(token=fee_token, spender=PERMIT2_ADDRESS, amount=MAX_UINT256),
        )
    )
    operations.append(
        Operation(
            name=f"nonTip20:Permit2.approve({fee_token.name},SINK,MaxUint160,MaxUint48)",
            kind=OperationKind.REGISTRY_APPROVE,
            params=RegistryApproveParams(
                registry=PERMIT2_ADDRESS,
                token=fee_token,
                spender=sink,
                amount=MAX_UINT160,
                expiration=MAX_UINT48,
            ),
        )
    )
    return operations
