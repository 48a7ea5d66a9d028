"""
EvmClient - per-chain wallet and contract access.
"""
import logging
from typing import Dict, Any, Optional, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError

from ..exceptions import ChainInteractionError
from ..models import ChainConfig, TxReceipt

# Gas limit used when estimation fails for a reason other than a revert
DEFAULT_GAS_LIMIT = 300000


class EvmClient:
    """
    Client for one EVM chain, bound to one wallet.

    This client handles:
    1. Native and ERC20 balance reads
    2. Building, signing and sending contract transactions
    3. Waiting for exactly one confirmation and checking the receipt status

    Nonces are read from the pending transaction count on every send, so
    callers sharing a wallet on one chain must serialize their sends.
    """

    ERC20_ABI = [
        {
            "inputs": [
                {"internalType": "address", "name": "spender", "type": "address"},
                {"internalType": "uint256", "name": "amount", "type": "uint256"}
            ],
            "name": "approve",
            "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
            "stateMutability": "nonpayable",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "owner", "type": "address"},
                {"internalType": "address", "name": "spender", "type": "address"}
            ],
            "name": "allowance",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "address", "name": "owner", "type": "address"}],
            "name": "balanceOf",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "decimals",
            "outputs": [{"internalType": "uint8", "name": "", "type": "uint8"}],
            "stateMutability": "view",
            "type": "function"
        }
    ]

    def __init__(
        self,
        chain: ChainConfig,
        account: Union[str, LocalAccount],
        w3: Optional[AsyncWeb3] = None,
        receipt_timeout: Optional[float] = None,
        poll_latency: float = 1.0,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the EvmClient

        Args:
            chain: Chain parameters (RPC endpoint, chain ID, contracts)
            account: Private key or an eth_account LocalAccount
            w3: Optional pre-built AsyncWeb3 instance (mainly for tests)
            receipt_timeout: Seconds to wait for a receipt (None waits forever)
            poll_latency: Seconds between receipt polls
            logger: Optional logger instance to use for debug/info logging
        """
        self.chain = chain
        self.account: LocalAccount = Account.from_key(account) if isinstance(account, str) else account
        self.w3 = w3 or AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(chain.rpc))
        self.receipt_timeout = receipt_timeout
        self.poll_latency = poll_latency
        self.logger = logger or logging.getLogger(__name__)

    @property
    def address(self) -> str:
        """Checksummed wallet address"""
        return self.account.address

    def contract(self, address: str, abi: list):
        return self.w3.eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    def token(self, address: str):
        return self.contract(address, self.ERC20_ABI)

    async def get_balance(self, address: Optional[str] = None) -> int:
        """Native balance in wei"""
        target = Web3.to_checksum_address(address or self.address)
        try:
            return await self.w3.eth.get_balance(target)
        except Exception as e:
            raise ChainInteractionError(f"Failed to read native balance on {self.chain.name}: {e}") from e

    async def get_token_balance(self, token_address: str, address: Optional[str] = None) -> int:
        """ERC20 balance in the token's smallest unit"""
        target = Web3.to_checksum_address(address or self.address)
        try:
            return await self.token(token_address).functions.balanceOf(target).call()
        except Exception as e:
            raise ChainInteractionError(f"Failed to read token balance on {self.chain.name}: {e}") from e

    async def get_token_decimals(self, token_address: str) -> int:
        try:
            return await self.token(token_address).functions.decimals().call()
        except Exception as e:
            raise ChainInteractionError(f"Failed to read token decimals on {self.chain.name}: {e}") from e

    async def send_transaction(self, fn, description: str = "transaction") -> TxReceipt:
        """
        Sign, send and confirm a contract function call.

        Args:
            fn: A bound contract function, e.g. ``contract.functions.approve(a, b)``
            description: Short label used in log lines

        Returns:
            Receipt of the confirmed transaction

        Raises:
            ChainInteractionError: If any RPC call fails, the call reverts, or
                the receipt reports failure
        """
        tx_hash_hex: Optional[str] = None
        try:
            nonce = await self.w3.eth.get_transaction_count(self.address, "pending")
            gas = await self._estimate_gas(fn, description)

            tx = await fn.build_transaction({
                "from": self.address,
                "nonce": nonce,
                "gas": gas,
            })

            try:
                signed_tx = self.account.sign_transaction(tx)
            except Exception as e:
                self.logger.error(f"Transaction signing failed: {e}")
                raise ChainInteractionError(f"Failed to sign {description}: {str(e)}")

            tx_hash = await self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            tx_hash_hex = Web3.to_hex(tx_hash)
            self.logger.info(f"{description} sent on {self.chain.name}: {tx_hash_hex}")

            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_latency
            )
        except ChainInteractionError:
            raise
        except ContractLogicError as e:
            self.logger.error(f"{description} reverted on {self.chain.name}: {e}")
            raise ChainInteractionError(f"{description} reverted: {e}", tx_hash=tx_hash_hex) from e
        except Exception as e:
            # Web3Exception, transport errors and timeouts all end up here
            self.logger.error(f"{description} failed on {self.chain.name}: {e}")
            raise ChainInteractionError(f"{description} failed: {str(e)}", tx_hash=tx_hash_hex) from e

        converted = self._convert_receipt(receipt)
        if converted.status != 1:
            raise ChainInteractionError(
                f"{description} reverted in block {converted.block_number}",
                tx_hash=converted.tx_hash
            )
        return converted

    async def _estimate_gas(self, fn, description: str) -> int:
        try:
            gas = await fn.estimate_gas({"from": self.address})
        except ContractLogicError:
            # A revert during estimation means the transaction would revert too
            raise
        except Exception as e:
            self.logger.warning(f"Gas estimation for {description} failed, using default: {DEFAULT_GAS_LIMIT}. Error: {e}")
            return DEFAULT_GAS_LIMIT
        # Add 10% buffer to gas estimate
        return int(gas * 1.1)

    def _convert_receipt(self, web3_receipt: Dict[str, Any]) -> TxReceipt:
        """
        Convert Web3 receipt to our TxReceipt model

        Args:
            web3_receipt: The Web3 transaction receipt

        Returns:
            Our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = Web3.to_hex(value)

        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs") or []]
        return TxReceipt.model_validate(receipt_dict)
