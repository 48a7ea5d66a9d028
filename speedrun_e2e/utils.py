"""
Utility functions for amounts, addresses, salts and durations.
"""
import random
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from web3 import Web3

from .exceptions import ConfigurationError

# Salts are drawn from a small range; the contract mixes in the sender
SALT_RANGE = 1000


def parse_units(amount: str, decimals: int) -> int:
    """
    Convert a human-readable decimal amount into the token's smallest unit.

    Args:
        amount: Decimal string such as "0.3"
        decimals: Token decimals

    Returns:
        Integer amount in the smallest unit

    Raises:
        ConfigurationError: If the amount is not a non-negative number or has
            more fractional digits than the token supports
    """
    try:
        value = Decimal(str(amount).strip())
    except InvalidOperation:
        raise ConfigurationError(f"Invalid amount: {amount!r}")

    if not value.is_finite() or value < 0:
        raise ConfigurationError(f"Amount must be a non-negative number, got {amount!r}")

    scaled = value.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ConfigurationError(f"Amount {amount} has more than {decimals} decimal places")
    return int(scaled)


def format_units(value: int, decimals: int) -> str:
    """Format an integer token amount as a decimal string without trailing zeros."""
    text = format(Decimal(value).scaleb(-decimals), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_duration(ms: int) -> str:
    """Format milliseconds as "42 sec" or "3m 5s"."""
    seconds = int(ms // 1000)
    if seconds < 60:
        return f"{seconds} sec"
    minutes, remaining = divmod(seconds, 60)
    return f"{minutes}m {remaining}s"


def encode_receiver(address: str) -> bytes:
    """
    Encode a receiver address as exactly 20 bytes.

    Shorter values are left-padded with zeros, matching how the intent
    contract reads the `receiver` bytes argument.

    Raises:
        ConfigurationError: If the value is not hex or is longer than 20 bytes
    """
    try:
        raw = Web3.to_bytes(hexstr=address)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid receiver address {address!r}: {e}")
    if len(raw) > 20:
        raise ConfigurationError(f"Receiver {address} is longer than 20 bytes")
    return raw.rjust(20, b"\x00")


def random_salt() -> int:
    return random.randrange(SALT_RANGE)


def seeded_salt_source(seed: Optional[int] = None) -> Callable[[], int]:
    """Return a salt generator with its own seeded RNG, for reproducible runs."""
    rng = random.Random(seed)
    return lambda: rng.randrange(SALT_RANGE)
