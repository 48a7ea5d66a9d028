"""
Pytest fixtures for the Speedrun E2E tests.
"""
import pytest
from eth_account import Account

from speedrun_e2e._rate_limited_log import reset_rate_limits
from speedrun_e2e.chain import EvmClient
from speedrun_e2e.config import ChainRegistry, NetworkConfig
from speedrun_e2e.models import ChainConfig, TokenConfig

from tests.test_helpers import (
    FakeEvm,
    TEST_PRIV_KEY,
    TEST_INITIATOR,
    BASE_USDC,
    BASE_INTENT,
    ARBITRUM_USDC,
    ARBITRUM_INTENT,
)


@pytest.fixture(autouse=True)
def _reset_module_state():
    """Class-level network cache and rate-limit windows must not leak between tests."""
    NetworkConfig.reset()
    reset_rate_limits()
    yield
    NetworkConfig.reset()
    reset_rate_limits()


class FakeClock:
    """Monotonic millisecond clock that only moves when told to."""

    def __init__(self, start: int = 10_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class RecordingSleep:
    """Replacement for asyncio.sleep that advances a FakeClock instead of waiting."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.calls = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)
        self.clock.advance(int(seconds * 1000))


@pytest.fixture
def mock_account():
    """Create a deterministic test account"""
    return Account.from_key(TEST_PRIV_KEY)


@pytest.fixture
def base_chain():
    return ChainConfig(
        key="base",
        name="Base",
        chain_id=8453,
        rpc="https://rpc.base.example.com",
        intent=BASE_INTENT,
        tokens={"usdc": TokenConfig(address=BASE_USDC, decimals=6)},
        emoji="🔵",
    )


@pytest.fixture
def arbitrum_chain():
    return ChainConfig(
        key="arbitrum",
        name="Arbitrum",
        chain_id=42161,
        rpc="https://rpc.arbitrum.example.com",
        intent=ARBITRUM_INTENT,
        tokens={"usdc": TokenConfig(address=ARBITRUM_USDC, decimals=6)},
        emoji="🔷",
    )


@pytest.fixture
def registry(base_chain, arbitrum_chain):
    return ChainRegistry(
        {"base": base_chain, "arbitrum": arbitrum_chain},
        initiators=[{"src": "arbitrum", "dst": "base", "address": TEST_INITIATOR}],
    )


@pytest.fixture
def fake_evm():
    return FakeEvm(chain_id=8453)


@pytest.fixture
def evm_client(base_chain, mock_account, fake_evm):
    return EvmClient(base_chain, mock_account, w3=fake_evm)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def fake_sleep(fake_clock):
    return RecordingSleep(fake_clock)
