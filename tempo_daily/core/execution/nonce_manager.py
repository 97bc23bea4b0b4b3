"""
Nonce sequencing for one run.

A run submits its operations strictly one after another, so a single counter
is enough: initialised once from the pending transaction count and advanced
only after an operation fully completes.
"""

import logging
from typing import List, Tuple

from tempo_daily.errors import NonceMismatchError
from tempo_daily.providers.base import LedgerEndpoint


logger = logging.getLogger(__name__)


class NonceSequencer:
    """Issues n0, n0+1, n0+2, ... for one sender, never reusing or skipping."""

    def __init__(self, address: str, start: int):
        if start < 0:
            raise ValueError(f"start nonce must be >= 0, got {start}")
        self.address = address
        self._next = start
        self._issued: List[int] = []

    @classmethod
    async def from_chain(cls, ledger: LedgerEndpoint, address: str) -> "NonceSequencer":
        """Initialise from the sender's pending transaction count."""
        start = await ledger.get_pending_nonce(address)
        logger.info(f"nonce sequencer initialised: address={address} start={start}")
        return cls(address, start)

    @property
    def current(self) -> int:
        """The nonce reserved for the operation in progress."""
        return self._next

    @property
    def issued(self) -> Tuple[int, ...]:
        return tuple(self._issued)

    def next(self) -> int:
        """Return the reserved nonce and advance by one."""
        nonce = self._next
        self._issued.append(nonce)
        self._next = nonce + 1
        return nonce

    def verify_accepted(self, assigned: int, reported: int, tx_hash: str) -> None:
        """Abort on a network-reported nonce that differs from the one assigned."""
        if reported != assigned:
            logger.error(
                f"nonce mismatch: tx={tx_hash} assigned={assigned} reported={reported}"
            )
            raise NonceMismatchError(assigned=assigned, reported=reported, tx_hash=tx_hash)
