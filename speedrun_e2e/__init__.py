"""
Speedrun E2E - end-to-end harness for Speedrun cross-chain intents.
"""
from .api import SpeedrunApiClient
from .config import ChainRegistry, NetworkConfig, Settings, load_private_key
from .exceptions import (
    SpeedrunError,
    ConfigurationError,
    ChainInteractionError,
    StatusApiError,
    IntentNotIndexedError,
)
from .locks import ChainLockRegistry, LockHandle
from .models import (
    ChainConfig,
    TokenConfig,
    TransferSpec,
    CallSpec,
    TransferRequest,
    CallRequest,
    IntentRecord,
    IntentStatus,
    TransferOutcome,
    TxReceipt,
)
from .orchestrator import TransferOrchestrator, TransferResult, BatchSummary, summarize
from .poller import StatusPoller, IntentStatusResult
from .version import __version__

__all__ = [
    "SpeedrunApiClient",
    "ChainRegistry",
    "NetworkConfig",
    "Settings",
    "load_private_key",
    "SpeedrunError",
    "ConfigurationError",
    "ChainInteractionError",
    "StatusApiError",
    "IntentNotIndexedError",
    "ChainLockRegistry",
    "LockHandle",
    "ChainConfig",
    "TokenConfig",
    "TransferSpec",
    "CallSpec",
    "TransferRequest",
    "CallRequest",
    "IntentRecord",
    "IntentStatus",
    "TransferOutcome",
    "TxReceipt",
    "TransferOrchestrator",
    "TransferResult",
    "BatchSummary",
    "summarize",
    "StatusPoller",
    "IntentStatusResult",
    "__version__",
]
