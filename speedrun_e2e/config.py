"""
Chain registry and runtime settings.

Chain parameters ship with the package in ``networks.json``. A different
file can be supplied with ``SPEEDRUN_NETWORKS_FILE`` and single RPC
endpoints can be overridden with ``<CHAIN>_RPC_URL``.
"""
import json
import logging
import os
from dataclasses import dataclass
from importlib import resources
from typing import Dict, Any, Optional, List

from .exceptions import ConfigurationError
from .models import ChainConfig

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.speedrun.exchange/api/v1"
DEFAULT_POLL_INTERVAL_MS = 5000  # 5 seconds between API checks
DEFAULT_MAX_POLL_ATTEMPTS = 60  # 5 minutes at the default interval


class NetworkConfig:
    """Loader for the chain table, cached at class level."""

    _networks_cache: Optional[Dict[str, Any]] = None
    _initiators_cache: Optional[List[Dict[str, str]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Any]:
        """
        Load the chain table.

        Returns:
            Mapping of chain key to raw chain parameters
        """
        if cls._networks_cache is not None:
            return cls._networks_cache

        custom_path = os.environ.get("SPEEDRUN_NETWORKS_FILE")
        if custom_path:
            logger.debug(f"Loading networks from {custom_path}")
            with open(custom_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            text = resources.files("speedrun_e2e").joinpath("networks.json").read_text(encoding="utf-8")
            data = json.loads(text)

        cls._networks_cache = data.get("chains", {})
        cls._initiators_cache = data.get("initiators", [])
        return cls._networks_cache

    @classmethod
    def load_initiators(cls) -> List[Dict[str, str]]:
        """Initiator contracts as ``{"src", "dst", "address"}`` entries."""
        cls.load_networks()
        return cls._initiators_cache or []

    @classmethod
    def get_network(cls, name: str) -> Dict[str, Any]:
        """
        Get the raw parameters of one chain.

        Raises:
            ConfigurationError: If the chain is not configured
        """
        networks = cls.load_networks()
        if name not in networks:
            available = ", ".join(sorted(networks))
            raise ConfigurationError(f"Chain '{name}' not supported. Supported chains: {available}")
        return networks[name]

    @classmethod
    def get_rpc_url(cls, name: str, override: Optional[str] = None) -> str:
        """RPC endpoint: explicit override, then ``<NAME>_RPC_URL``, then the table."""
        if override:
            return override
        env_var = f"{name.upper().replace('-', '_')}_RPC_URL"
        env_url = os.environ.get(env_var)
        if env_url:
            return env_url
        return cls.get_network(name)["rpc"]

    @classmethod
    def get_chain_id(cls, name: str) -> int:
        """Chain ID as an int; custom files may give it as a decimal or 0x-prefixed string."""
        value = cls.get_network(name)["chainId"]
        return int(value, 0) if isinstance(value, str) else int(value)

    @classmethod
    def reset(cls) -> None:
        """Drop cached data so the next access reloads the file."""
        cls._networks_cache = None
        cls._initiators_cache = None


class ChainRegistry:
    """
    Immutable lookup of ``ChainConfig`` by chain key.
    """

    def __init__(self, chains: Dict[str, ChainConfig], initiators: Optional[List[Dict[str, str]]] = None):
        self._chains = dict(chains)
        self._initiators = {
            (entry["src"].lower(), entry["dst"].lower()): entry["address"]
            for entry in (initiators or [])
        }

    @classmethod
    def from_network_config(cls) -> "ChainRegistry":
        chains = {}
        for key, raw in NetworkConfig.load_networks().items():
            params = dict(raw)
            params["rpc"] = NetworkConfig.get_rpc_url(key)
            params["chainId"] = NetworkConfig.get_chain_id(key)
            chains[key] = ChainConfig.model_validate({"key": key, **params})
        return cls(chains, NetworkConfig.load_initiators())

    def get(self, name: str) -> ChainConfig:
        """
        Look up a chain by key.

        Raises:
            ConfigurationError: If the chain is not supported
        """
        key = name.strip().lower()
        if key not in self._chains:
            raise ConfigurationError(
                f"Chain '{name}' not supported. Supported chains: {', '.join(self.names())}"
            )
        return self._chains[key]

    def names(self) -> List[str]:
        return sorted(self._chains)

    def __iter__(self):
        return iter(self._chains[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._chains)

    def find_initiator(self, src: str, dst: str) -> Optional[str]:
        return self._initiators.get((src.lower(), dst.lower()))


@dataclass(frozen=True)
class Settings:
    """Runtime knobs read from the environment."""
    api_url: str = DEFAULT_API_URL
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    max_poll_attempts: int = DEFAULT_MAX_POLL_ATTEMPTS
    receipt_timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> "Settings":
        try:
            timeout = os.environ.get("SPEEDRUN_RECEIPT_TIMEOUT")
            return cls(
                api_url=os.environ.get("SPEEDRUN_API_URL", DEFAULT_API_URL),
                poll_interval_ms=int(os.environ.get("SPEEDRUN_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS)),
                max_poll_attempts=int(os.environ.get("SPEEDRUN_MAX_POLL_ATTEMPTS", DEFAULT_MAX_POLL_ATTEMPTS)),
                receipt_timeout=float(timeout) if timeout else None,
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid numeric setting in environment: {e}")


def load_private_key(private_key: Optional[str] = None) -> str:
    """
    Resolve the wallet private key.

    Raises:
        ConfigurationError: If no key is configured
    """
    key = private_key or os.environ.get("EVM_PRIVATE_KEY") or os.environ.get("PRIVATE_KEY")
    if not key:
        raise ConfigurationError("EVM_PRIVATE_KEY environment variable is required")
    return key
