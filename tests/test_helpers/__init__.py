"""
Shared helpers for the Speedrun E2E test suite.
"""
from .fake_evm import FakeEvm

# Test constants used throughout tests
TEST_PRIV_KEY = "0x0123456789abcdef0123456789abcdef0123456789abcdef0123456789abcdef"
TEST_API_URL = "https://api.example.com/api/v1"
TEST_INITIATOR = "0x1234567890123456789012345678901234567890"
BASE_USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
BASE_INTENT = "0x999fce149FD078DCFaa2C681e060e00F528552f4"
ARBITRUM_USDC = "0xaf88d065e77c8cc2239327c5edb3a432268e5831"
ARBITRUM_INTENT = "0xD6B0E2a8D115cCA2823c5F80F8416644F3970dD2"

__all__ = [
    "FakeEvm",
    "TEST_PRIV_KEY",
    "TEST_API_URL",
    "TEST_INITIATOR",
    "BASE_USDC",
    "BASE_INTENT",
    "ARBITRUM_USDC",
    "ARBITRUM_INTENT",
]
