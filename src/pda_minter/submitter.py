"""
Transaction Submitter

Signs a composed instruction set as ONE transaction, sends it, and waits for
the requested commitment with a bounded number of status checks.

Failure semantics:
- SubmissionError: the ledger rejected the transaction (preflight, signature,
  or an error recorded on inclusion). Nothing was applied.
- ConfirmationTimeout: the transaction was sent but its fate is unknown. It may
  still land. Re-query the ledger before resubmitting anything.

Nothing here resubmits: a sent transaction cannot be withdrawn, and retry
policy belongs to the caller.
"""

import asyncio
import logging
from typing import Optional, Sequence

from .core.keys import Keypair
from .core.transactions import Instruction, SolanaTransaction, TransactionBuilder, sign_transaction
from .errors import ConfirmationTimeout, InvalidParameter, SubmissionError
from .networking.rpc import LedgerRpc, RpcError

logger = logging.getLogger(__name__)

# Status levels in increasing order of finality
_COMMITMENT_LEVELS = ("processed", "confirmed", "finalized")


def _reached(status: Optional[str], commitment: str) -> bool:
    if status not in _COMMITMENT_LEVELS:
        return False
    return _COMMITMENT_LEVELS.index(status) >= _COMMITMENT_LEVELS.index(commitment)


class Submitter:
    """Sends transactions through a LedgerRpc and confirms them."""

    def __init__(self, rpc: LedgerRpc, commitment: str = "confirmed",
                 max_attempts: int = 30, poll_interval: float = 0.5,
                 backoff: float = 1.5, max_interval: float = 5.0):
        if commitment not in _COMMITMENT_LEVELS:
            raise InvalidParameter(f"Unknown commitment {commitment!r}")
        if max_attempts < 1:
            raise InvalidParameter("max_attempts must be at least 1")
        self.rpc = rpc
        self.commitment = commitment
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.backoff = backoff
        self.max_interval = max_interval

    async def build(self, instructions: Sequence[Instruction], payer: Keypair,
                    new_mint: Keypair) -> SolanaTransaction:
        """Compile and sign; the payer and the new mint are the only signers."""
        blockhash = await self.rpc.get_latest_blockhash()
        message = TransactionBuilder(payer.pubkey, blockhash).add_instructions(instructions).build()
        try:
            return sign_transaction(message, [payer, new_mint])
        except ValueError as e:
            raise InvalidParameter(str(e)) from e

    async def submit(self, instructions: Sequence[Instruction], payer: Keypair,
                     new_mint: Keypair) -> str:
        """
        Sign, send and confirm the instruction set as a single transaction.

        Returns:
            The transaction signature (base58)
        """
        transaction = await self.build(instructions, payer, new_mint)
        signature = await self.send(transaction)
        await self.confirm(signature)
        return signature

    async def send(self, transaction: SolanaTransaction) -> str:
        try:
            signature = await self.rpc.send_transaction(transaction.serialize())
        except RpcError as e:
            raise SubmissionError(str(e), transaction.signature) from e
        logger.info("Transaction sent: %s", signature)
        return signature

    async def confirm(self, signature: str) -> None:
        """
        Poll the signature status until it reaches the configured commitment.

        A failed status request counts as a used check: the transaction is
        already sent, so an RPC failure here leaves its fate unknown.

        Raises:
            SubmissionError: the transaction landed with an error
            ConfirmationTimeout: still unconfirmed after max_attempts checks
        """
        interval = self.poll_interval
        for attempt in range(1, self.max_attempts + 1):
            try:
                statuses = await self.rpc.get_signature_statuses([signature])
            except RpcError as e:
                logger.warning("Status check %d/%d for %s failed: %s",
                               attempt, self.max_attempts, signature, e)
                statuses = []
            status = statuses[0] if statuses else None

            if status is not None:
                if status.get("err") is not None:
                    raise SubmissionError(f"transaction failed: {status['err']}", signature)
                if _reached(status.get("confirmationStatus"), self.commitment):
                    logger.info("Transaction %s %s in slot %s", signature,
                                status.get("confirmationStatus"), status.get("slot"))
                    return

            if attempt < self.max_attempts:
                logger.debug("Waiting for %s (check %d/%d)", signature, attempt, self.max_attempts)
                await asyncio.sleep(interval)
                interval = min(interval * self.backoff, self.max_interval)

        raise ConfirmationTimeout(signature, self.max_attempts)
