"""
Data models for the Speedrun E2E harness.
"""
from enum import Enum
from typing import Dict, Any, Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class IntentStatus(str, Enum):
    """Statuses reported by the Speedrun status API."""
    PENDING = "pending"
    FULFILLED = "fulfilled"
    SETTLED = "settled"
    CANCELLED = "cancelled"
    FAILED = "failed"


class TransferOutcome(str, Enum):
    """Final classification of one transfer as seen by this tool."""
    SETTLED = "settled"
    FULFILLED = "fulfilled"
    FAILED = "failed"
    PENDING = "pending"


class TokenConfig(BaseModel):
    """An ERC20 token deployed on one chain"""
    address: str
    decimals: int

    model_config = ConfigDict(frozen=True)


class ChainConfig(BaseModel):
    """Static network parameters for one supported chain"""
    key: str
    name: str
    chain_id: int = Field(..., alias="chainId")
    rpc: str
    intent: str
    tokens: Dict[str, TokenConfig] = Field(default_factory=dict)
    emoji: str = ""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def token(self, symbol: str) -> Optional[TokenConfig]:
        return self.tokens.get(symbol.lower())

    @property
    def label(self) -> str:
        return f"{self.emoji} {self.name}".strip()


class TransferSpec(BaseModel):
    """One entry of a batch file: human-readable amounts, chain names"""
    src: str
    dst: str
    asset: str = "usdc"
    amount: str
    fee: str

    @field_validator("src", "dst", "asset")
    @classmethod
    def _lower(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("amount", "fee", mode="before")
    @classmethod
    def _as_text(cls, value: Any) -> str:
        # YAML turns 0.3 into a float; keep the literal text for exact parsing
        return str(value)


class CallSpec(BaseModel):
    """Parameters of a cross-chain swap call, before resolution against the registry"""
    src: str
    dst: str
    amount: str
    fee: str
    gas_limit: int = 600000
    initiator: Optional[str] = None
    asset: str = "usdc"
    swap_to: str = "0x4200000000000000000000000000000000000006"  # WETH on Base
    stable_flags: Tuple[bool, ...] = (False,)
    min_amount_out: int = 1
    deadline_seconds: int = 3600


class TransferRequest(BaseModel):
    """Fully resolved arguments of initiateTransfer"""
    asset: str
    amount: int
    target_chain: int
    receiver: str
    tip: int
    salt: int

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> int:
        return self.amount + self.tip


class CallRequest(BaseModel):
    """Fully resolved arguments of initiateAerodromeSwap"""
    initiator: str
    asset: str
    amount: int
    tip: int
    salt: int
    gas_limit: int
    path: Tuple[str, ...]
    stable_flags: Tuple[bool, ...]
    min_amount_out: int
    deadline: int
    receiver: str

    model_config = ConfigDict(frozen=True)

    @property
    def total(self) -> int:
        return self.amount + self.tip


class IntentRecord(BaseModel):
    """Intent as returned by GET /intents/{id}"""
    id: str
    status: str
    source_chain: Optional[str] = None
    destination_chain: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[str] = None
    recipient: Optional[str] = None
    intent_fee: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    fulfillment_tx: Optional[str] = None
    settlement_tx: Optional[str] = None


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)
