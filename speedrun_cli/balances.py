"""
Wallet balances across the configured chains.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Union

from eth_account.signers.local import LocalAccount

from speedrun_e2e.chain import EvmClient
from speedrun_e2e.config import ChainRegistry
from speedrun_e2e.exceptions import ChainInteractionError
from speedrun_e2e.models import ChainConfig
from speedrun_e2e.utils import format_units

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


@dataclass
class ChainBalances:
    chain: ChainConfig
    native: Optional[str] = None
    tokens: Dict[str, str] = field(default_factory=dict)
    error: Optional[str] = None


async def fetch_chain_balances(client: EvmClient, address: Optional[str] = None) -> ChainBalances:
    """Native and token balances on one chain; a read failure is recorded, not raised."""
    balances = ChainBalances(chain=client.chain)
    try:
        wei = await client.get_balance(address)
        balances.native = format_units(wei, NATIVE_DECIMALS)
        for symbol, token in client.chain.tokens.items():
            raw = await client.get_token_balance(token.address, address)
            decimals = await client.get_token_decimals(token.address)
            balances.tokens[symbol] = format_units(raw, decimals)
    except ChainInteractionError as e:
        logger.debug(f"Balance lookup failed on {client.chain.name}: {e}")
        balances.error = str(e)
    return balances


async def collect_balances(
    registry: ChainRegistry,
    account: Union[str, LocalAccount],
    address: Optional[str] = None
) -> List[ChainBalances]:
    """Balances for ``address`` (the wallet by default) on every chain, in registry order."""
    clients = [EvmClient(chain, account) for chain in registry]
    return list(await asyncio.gather(*(fetch_chain_balances(c, address) for c in clients)))


def total_of(balances: List[ChainBalances], symbol: str) -> Decimal:
    return sum((Decimal(b.tokens[symbol]) for b in balances if symbol in b.tokens), Decimal(0))
