"""
Local signer backed by an encrypted JSON keystore.

The key is decrypted once per run and only used to sign; broadcasting goes
through the ledger endpoint.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from tempo_daily.core.execution.models import FeeFields, SubmittedTx
from tempo_daily.errors import WalletLoadError
from tempo_daily.providers.base import LedgerEndpoint


logger = logging.getLogger(__name__)


class LocalSigner:
    """Signs EIP-1559 or legacy transactions and broadcasts them raw."""

    def __init__(self, account: LocalAccount, ledger: LedgerEndpoint, chain_id: int):
        self._account = account
        self._ledger = ledger
        self._chain_id = chain_id

    @property
    def address(self) -> str:
        return self._account.address

    def build_transaction(self, to: str, data: str, fee_fields: FeeFields, gas_limit: int) -> Dict[str, Any]:
        tx: Dict[str, Any] = {
            "chainId": self._chain_id,
            "to": to_checksum_address(to),
            "data": data,
            "value": 0,
            "gas": gas_limit,
        }
        tx.update(fee_fields.to_tx_params())
        return tx

    async def send_transaction(
        self,
        to: str,
        data: str,
        fee_fields: FeeFields,
        gas_limit: int,
    ) -> SubmittedTx:
        tx = self.build_transaction(to, data, fee_fields, gas_limit)
        signed = self._account.sign_transaction(tx)
        raw = "0x" + bytes(signed.raw_transaction).hex()
        tx_hash = await self._ledger.send_raw_transaction(raw)
        return SubmittedTx(hash=tx_hash, nonce=fee_fields.nonce)


def _read_keystore(path: Union[str, Path]) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as e:
        raise WalletLoadError(f"Cannot read keystore {path}: {e}")
    except ValueError as e:
        raise WalletLoadError(f"Keystore {path} is not valid JSON: {e}")


def load_account(path: Union[str, Path], password: str) -> LocalAccount:
    """Decrypt a keystore file into a local account."""
    keystore = _read_keystore(path)
    try:
        private_key = Account.decrypt(keystore, password)
    except (ValueError, KeyError, TypeError) as e:
        raise WalletLoadError(f"Cannot decrypt keystore {path}: {e}")
    account = Account.from_key(private_key)
    logger.info(f"wallet loaded: {account.address}")
    return account


def load_signer(path: Union[str, Path], password: str, ledger: LedgerEndpoint, chain_id: int) -> LocalSigner:
    return LocalSigner(load_account(path, password), ledger, chain_id)


def encrypt_keystore(private_key: str, password: str, out_path: Union[str, Path]) -> str:
    """Write an encrypted keystore for `private_key` and return its address."""
    account = Account.from_key(private_key)
    keystore = Account.encrypt(account.key, password)
    out = Path(out_path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(keystore) + "\n", encoding="utf-8")
    return account.address


def _normalize_address(raw: str) -> str:
    candidate = raw if raw.startswith("0x") else f"0x{raw}"
    return to_checksum_address(candidate)


def keystore_addresses(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """List addresses stored in a keystore file (single object or array) without decrypting."""
    parsed = _read_keystore(path)
    values = parsed if isinstance(parsed, list) else [parsed]

    entries = []
    for index, value in enumerate(values):
        if isinstance(value, str):
            address = value
        elif isinstance(value, dict) and isinstance(value.get("address"), str) and value["address"]:
            address = value["address"]
        else:
            raise WalletLoadError(f"wallet entry at index {index} has no usable address")
        try:
            entries.append({"index": index, "address": _normalize_address(address)})
        except ValueError as e:
            raise WalletLoadError(f"wallet entry at index {index} has an invalid address: {e}")
    return entries
