"""
Tests for the speedrun-e2e command line.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from typer.testing import CliRunner

from speedrun_cli.balances import ChainBalances
from speedrun_cli.main import app
from speedrun_e2e.exceptions import ConfigurationError
from speedrun_e2e.models import CallSpec, TransferOutcome, TransferSpec
from speedrun_e2e.orchestrator import TransferResult

from tests.test_helpers import TEST_PRIV_KEY

runner = CliRunner()

ENV = {"EVM_PRIVATE_KEY": TEST_PRIV_KEY, "PRIVATE_KEY": None}


def make_result(index=0, outcome=TransferOutcome.SETTLED, message="Transfer settled in 42 sec"):
    return TransferResult(
        index=index,
        source="Base",
        destination="Arbitrum",
        asset="USDC",
        amount="0.3",
        outcome=outcome,
        message=message,
        intent_id="0x" + "ab" * 32,
        tx_hash="0x" + "cd" * 32,
        time_to_fulfill=20_000 if outcome != TransferOutcome.FAILED else None,
        time_to_settle=22_000 if outcome == TransferOutcome.SETTLED else None,
        total_time=42_000 if outcome == TransferOutcome.SETTLED else None,
    )


@pytest.fixture
def orchestrator():
    with patch("speedrun_cli.main.TransferOrchestrator") as cls:
        instance = MagicMock()
        instance.run = AsyncMock(return_value=make_result())
        instance.run_call = AsyncMock(return_value=make_result())
        instance.run_batch = AsyncMock(return_value=[make_result()])
        cls.return_value = instance
        yield instance


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert result.output.strip()


def test_transfer_settled(orchestrator):
    result = runner.invoke(
        app, ["transfer", "--src", "base", "--dst", "arbitrum", "--amount", "0.3", "--fee", "0.2"], env=ENV
    )

    assert result.exit_code == 0, result.output
    assert "Final status: settled" in result.output
    assert "Total time: 42 sec" in result.output
    spec = orchestrator.run.await_args.args[0]
    assert spec == TransferSpec(src="base", dst="arbitrum", asset="usdc", amount="0.3", fee="0.2")


def test_transfer_defaults(orchestrator):
    result = runner.invoke(app, ["transfer"], env=ENV)

    assert result.exit_code == 0, result.output
    spec = orchestrator.run.await_args.args[0]
    assert (spec.src, spec.dst, spec.asset, spec.amount, spec.fee) == ("base", "arbitrum", "usdc", "0.3", "0.2")


def test_transfer_fulfilled_exits_non_zero(orchestrator):
    orchestrator.run.return_value = make_result(
        outcome=TransferOutcome.FULFILLED, message="Intent fulfilled but not settled after 60 attempts"
    )

    result = runner.invoke(app, ["transfer"], env=ENV)

    assert result.exit_code == 1
    assert "fulfilled but not settled" in result.output


def test_transfer_configuration_error(orchestrator):
    orchestrator.run.side_effect = ConfigurationError("Chain 'solana' not supported. Supported chains: arbitrum, base")

    result = runner.invoke(app, ["transfer", "--src", "solana"], env=ENV)

    assert result.exit_code == 1
    assert "❌ Error: Chain 'solana' not supported" in result.output


def test_transfer_without_private_key(orchestrator):
    result = runner.invoke(app, ["transfer"], env={"EVM_PRIVATE_KEY": None, "PRIVATE_KEY": None})

    assert result.exit_code == 1
    assert "EVM_PRIVATE_KEY" in result.output
    orchestrator.run.assert_not_awaited()


def test_transfers_all_settled(orchestrator, tmp_path):
    batch = tmp_path / "e2e-tests.yml"
    batch.write_text(
        "- {src: base, dst: arbitrum, asset: usdc, amount: 0.3, fee: 0.2}\n"
        "- {src: arbitrum, dst: base, asset: usdc, amount: 0.3, fee: 0.2}\n"
    )
    orchestrator.run_batch.return_value = [make_result(0), make_result(1)]

    result = runner.invoke(app, ["transfers", "--file", str(batch)], env=ENV)

    assert result.exit_code == 0, result.output
    assert "Starting 2 transfers" in result.output
    assert "Total: 2  settled: 2" in result.output
    specs = orchestrator.run_batch.await_args.args[0]
    assert [s.src for s in specs] == ["base", "arbitrum"]
    assert specs[0].amount == "0.3"


def test_transfers_any_unsettled_exits_non_zero(orchestrator, tmp_path):
    batch = tmp_path / "e2e-tests.yml"
    batch.write_text("- {src: base, dst: arbitrum, amount: 0.3, fee: 0.2}\n- {src: base, dst: arbitrum, amount: 0.3, fee: 0.2}\n")
    orchestrator.run_batch.return_value = [
        make_result(0),
        make_result(1, outcome=TransferOutcome.FAILED, message="Transfer reverted"),
    ]

    result = runner.invoke(app, ["transfers", "-f", str(batch)], env=ENV)

    assert result.exit_code == 1
    assert "Transfer reverted" in result.output
    assert "failed: 1" in result.output


def test_transfers_rejects_non_list_file(orchestrator, tmp_path):
    batch = tmp_path / "bad.yml"
    batch.write_text("src: base\n")

    result = runner.invoke(app, ["transfers", "--file", str(batch)], env=ENV)

    assert result.exit_code == 1
    assert "must contain an array" in result.output
    orchestrator.run_batch.assert_not_awaited()


def test_call_passes_options(orchestrator):
    initiator = "0x1234567890123456789012345678901234567890"

    result = runner.invoke(
        app,
        ["call", "--src", "arbitrum", "--dst", "base", "--amount", "0.5", "--fee", "0.2",
         "--gas", "700000", "--initiator", initiator],
        env=ENV,
    )

    assert result.exit_code == 0, result.output
    spec = orchestrator.run_call.await_args.args[0]
    assert isinstance(spec, CallSpec)
    assert spec.gas_limit == 700000
    assert spec.initiator == initiator
    assert (spec.src, spec.dst, spec.amount, spec.fee) == ("arbitrum", "base", "0.5", "0.2")


def test_balances(registry):
    found = [
        ChainBalances(chain=registry.get("arbitrum"), native="0.01", tokens={"usdc": "1.25"}),
        ChainBalances(chain=registry.get("base"), native="0.02", tokens={"usdc": "2.5"}),
    ]
    address = "0x1234567890123456789012345678901234567890"

    with patch("speedrun_cli.main.collect_balances", AsyncMock(return_value=found)) as collect:
        result = runner.invoke(app, ["balances", "--address", address], env=ENV)

    assert result.exit_code == 0, result.output
    assert f"Showing balances for wallet: {address}" in result.output
    assert "Native token: 0.02 ETH" in result.output
    assert "USDC: 1.25" in result.output
    assert "Total USDC across all chains: 3.750000" in result.output
    assert collect.await_args.args[2] == address


def test_balances_chain_error_exits_non_zero(registry):
    found = [ChainBalances(chain=registry.get("base"), error="Failed to read native balance on Base: timeout")]

    with patch("speedrun_cli.main.collect_balances", AsyncMock(return_value=found)):
        result = runner.invoke(app, ["balances"], env=ENV)

    assert result.exit_code == 1
    assert "Failed to read native balance" in result.output
