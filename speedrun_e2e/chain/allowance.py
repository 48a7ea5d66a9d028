"""
ERC20 allowance management.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from ..exceptions import ChainInteractionError
from ..models import TxReceipt
from .client import EvmClient


@dataclass(frozen=True)
class ApprovalOutcome:
    """Result of an allowance check; ``receipt`` is set only when an approval was sent."""
    token: str
    spender: str
    current_allowance: int
    required_amount: int
    receipt: Optional[TxReceipt] = None

    @property
    def approved(self) -> bool:
        return self.receipt is not None


class AllowanceManager:
    """
    Makes sure a spender may move at least a given amount of a token.

    Approvals are for exactly the required amount, never unlimited. There
    are no retries: any RPC or revert error reaches the caller.
    """

    def __init__(self, client: EvmClient, logger: Optional[logging.Logger] = None):
        self.client = client
        self.logger = logger or client.logger

    async def ensure_allowance(self, owner: str, spender: str, token: str, required_amount: int) -> ApprovalOutcome:
        """
        Approve ``spender`` for ``required_amount`` of ``token`` if needed.

        Args:
            owner: Token owner (the client's wallet)
            spender: Contract that will pull the tokens
            token: ERC20 token address
            required_amount: Amount in the token's smallest unit

        Returns:
            ApprovalOutcome describing whether a transaction was sent

        Raises:
            ChainInteractionError: If reading the allowance or approving fails
        """
        contract = self.client.token(token)
        spender = Web3.to_checksum_address(spender)

        try:
            current = await contract.functions.allowance(Web3.to_checksum_address(owner), spender).call()
        except Exception as e:
            raise ChainInteractionError(f"Failed to read allowance for {spender} on {self.client.chain.name}: {e}") from e

        if current >= required_amount:
            self.logger.info(f"✅ Approval already exists for {current} units (need {required_amount})")
            return ApprovalOutcome(token=token, spender=spender, current_allowance=current, required_amount=required_amount)

        self.logger.info(f"🔓 Approving {spender} to spend {required_amount} units...")
        receipt = await self.client.send_transaction(
            contract.functions.approve(spender, required_amount),
            description="Approval"
        )
        self.logger.info(f"✅ Approval transaction confirmed: {receipt.tx_hash}")
        return ApprovalOutcome(
            token=token,
            spender=spender,
            current_allowance=current,
            required_amount=required_amount,
            receipt=receipt
        )
