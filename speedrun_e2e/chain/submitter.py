"""
Intent submission: allowance, intent ID preview, initiating transaction.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from web3 import Web3

from ..exceptions import ChainInteractionError
from ..models import TransferRequest, CallRequest, TxReceipt
from ..utils import encode_receiver
from .allowance import AllowanceManager, ApprovalOutcome
from .client import EvmClient


@dataclass(frozen=True)
class IntentSubmission:
    """Intent ID previewed before sending, plus the confirmed initiating transaction."""
    intent_id: str
    tx_hash: str
    approval: ApprovalOutcome
    receipt: TxReceipt


class IntentSubmitter:
    """
    Submits intents on one source chain.

    Both request shapes go through the same protocol:
    1. Ensure allowance for ``amount + tip`` towards the target contract
    2. Preview the intent ID with ``getNextIntentId(salt)`` as the sender
    3. Send the initiating transaction and wait for one confirmation
    """

    # ABI for the intent contract
    TRANSFER_INTENT_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "asset", "type": "address"},
                {"internalType": "uint256", "name": "amount", "type": "uint256"},
                {"internalType": "uint256", "name": "targetChain", "type": "uint256"},
                {"internalType": "bytes", "name": "receiver", "type": "bytes"},
                {"internalType": "uint256", "name": "tip", "type": "uint256"},
                {"internalType": "uint256", "name": "salt", "type": "uint256"}
            ],
            "name": "initiateTransfer",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "nonpayable",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "uint256", "name": "salt", "type": "uint256"}],
            "name": "getNextIntentId",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        }
    ]

    # ABI for initiator contracts that run a swap on the destination chain
    INITIATOR_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "asset", "type": "address"},
                {"internalType": "uint256", "name": "amount", "type": "uint256"},
                {"internalType": "uint256", "name": "tip", "type": "uint256"},
                {"internalType": "uint256", "name": "salt", "type": "uint256"},
                {"internalType": "uint256", "name": "gasLimit", "type": "uint256"},
                {"internalType": "address[]", "name": "path", "type": "address[]"},
                {"internalType": "bool[]", "name": "stableFlags", "type": "bool[]"},
                {"internalType": "uint256", "name": "minAmountOut", "type": "uint256"},
                {"internalType": "uint256", "name": "deadline", "type": "uint256"},
                {"internalType": "address", "name": "receiver", "type": "address"}
            ],
            "name": "initiateAerodromeSwap",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "nonpayable",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "uint256", "name": "salt", "type": "uint256"}],
            "name": "getNextIntentId",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        }
    ]

    def __init__(
        self,
        client: EvmClient,
        allowances: Optional[AllowanceManager] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.client = client
        self.logger = logger or client.logger
        self.allowances = allowances or AllowanceManager(client, logger=self.logger)

    async def submit_transfer(self, request: TransferRequest) -> IntentSubmission:
        """
        Initiate a cross-chain token transfer.

        Returns:
            IntentSubmission with the previewed intent ID and transaction hash

        Raises:
            ChainInteractionError: If the approval, preview or transaction fails
            ConfigurationError: If the receiver cannot be encoded
        """
        receiver = encode_receiver(request.receiver)
        contract = self.client.contract(self.client.chain.intent, self.TRANSFER_INTENT_ABI)

        fn = contract.functions.initiateTransfer(
            Web3.to_checksum_address(request.asset),
            request.amount,
            request.target_chain,
            receiver,
            request.tip,
            request.salt
        )
        return await self._submit(contract, request.asset, request.total, request.salt, fn, "Transfer")

    async def submit_call(self, request: CallRequest) -> IntentSubmission:
        """
        Initiate a cross-chain call through an initiator contract.

        Returns:
            IntentSubmission with the previewed intent ID and transaction hash

        Raises:
            ChainInteractionError: If the approval, preview or transaction fails
        """
        contract = self.client.contract(request.initiator, self.INITIATOR_ABI)

        fn = contract.functions.initiateAerodromeSwap(
            Web3.to_checksum_address(request.asset),
            request.amount,
            request.tip,
            request.salt,
            request.gas_limit,
            [Web3.to_checksum_address(hop) for hop in request.path],
            list(request.stable_flags),
            request.min_amount_out,
            request.deadline,
            Web3.to_checksum_address(request.receiver)
        )
        return await self._submit(contract, request.asset, request.total, request.salt, fn, "Call")

    async def preview_intent_id(self, contract, salt: int) -> str:
        """Intent ID the contract will assign to the sender's next intent with ``salt``."""
        try:
            raw = await contract.functions.getNextIntentId(salt).call({"from": self.client.address})
        except Exception as e:
            raise ChainInteractionError(f"Failed to preview intent ID on {self.client.chain.name}: {e}") from e
        return Web3.to_hex(raw)

    async def _submit(self, contract, asset: str, total: int, salt: int, fn, label: str) -> IntentSubmission:
        approval = await self.allowances.ensure_allowance(
            self.client.address, contract.address, asset, total
        )

        intent_id = await self.preview_intent_id(contract, salt)
        self.logger.debug(f"Previewed intent ID {intent_id} for salt {salt}")

        self.logger.info(f"🚀 Initiating {label.lower()} transaction...")
        receipt = await self.client.send_transaction(fn, description=label)

        return IntentSubmission(
            intent_id=intent_id,
            tx_hash=receipt.tx_hash,
            approval=approval,
            receipt=receipt
        )
