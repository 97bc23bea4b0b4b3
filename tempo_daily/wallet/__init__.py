"""Wallet keystore and signing."""

from .signer import LocalSigner, encrypt_keystore, keystore_addresses, load_account, load_signer

__all__ = [
    "LocalSigner",
    "encrypt_keystore",
    "keystore_addresses",
    "load_account",
    "load_signer",
]
