"""
Console rendering of transfer results and balances.
"""
import sys
from typing import List

import typer

from speedrun_e2e.models import TransferOutcome
from speedrun_e2e.orchestrator import BatchSummary, TransferResult
from speedrun_e2e.utils import format_duration

from .balances import ChainBalances, total_of

OUTCOME_COLORS = {
    TransferOutcome.SETTLED: typer.colors.GREEN,
    TransferOutcome.FULFILLED: typer.colors.YELLOW,
    TransferOutcome.PENDING: typer.colors.YELLOW,
    TransferOutcome.FAILED: typer.colors.RED,
}

OUTCOME_ICONS = {
    TransferOutcome.SETTLED: "✅",
    TransferOutcome.FULFILLED: "⚠️",
    TransferOutcome.PENDING: "⏳",
    TransferOutcome.FAILED: "❌",
}


def should_use_color() -> bool:
    """Only colorize when writing to a terminal"""
    return sys.stdout.isatty()


def _outcome(outcome: TransferOutcome, color: bool) -> str:
    text = outcome.value
    if color:
        return typer.style(text, fg=OUTCOME_COLORS[outcome], bold=True)
    return text


def _duration(ms) -> str:
    return format_duration(ms) if ms is not None else "-"


def format_result(result: TransferResult, color: bool = False) -> List[str]:
    """Detailed lines for a single transfer."""
    lines = [
        f"📊 Final status: {_outcome(result.outcome, color)}",
        f"{OUTCOME_ICONS[result.outcome]} {result.message}",
    ]
    if result.intent_id:
        lines.append(f"📝 Intent ID: {result.intent_id}")
    if result.tx_hash:
        lines.append(f"🔄 Initiating transaction: {result.tx_hash}")
    if result.fulfillment_tx:
        lines.append(f"🧾 Fulfillment transaction: {result.fulfillment_tx}")
    if result.settlement_tx:
        lines.append(f"🧾 Settlement transaction: {result.settlement_tx}")
    if result.time_to_fulfill is not None:
        lines.append(f"⏱️ Time to fulfill: {_duration(result.time_to_fulfill)}")
    if result.time_to_settle is not None:
        lines.append(f"⏱️ Time to settle: {_duration(result.time_to_settle)}")
        lines.append(f"⏱️ Total time: {_duration(result.total_time)}")
    return lines


def format_summary_table(results: List[TransferResult], summary: BatchSummary, color: bool = False) -> List[str]:
    """Fixed-width summary of a batch, one row per transfer in request order."""
    header = ["#", "Route", "Amount", "Outcome", "Fulfill", "Settle", "Message"]
    rows = [
        [
            str(r.index + 1),
            f"{r.source} → {r.destination}",
            f"{r.amount} {r.asset}",
            r.outcome.value,
            _duration(r.time_to_fulfill),
            _duration(r.time_to_settle),
            r.message,
        ]
        for r in results
    ]
    widths = [max(len(row[i]) for row in [header] + rows) for i in range(len(header) - 1)]

    def render(row: List[str], outcome: TransferOutcome = None) -> str:
        cells = [cell.ljust(width) for cell, width in zip(row, widths)]
        if outcome is not None and color:
            cells[3] = typer.style(cells[3], fg=OUTCOME_COLORS[outcome], bold=True)
        return "  ".join(cells + [row[-1]])

    lines = [render(header), "-" * (sum(widths) + 2 * len(widths) + len(header[-1]))]
    lines.extend(render(row, r.outcome) for row, r in zip(rows, results))
    lines.append("")
    lines.append(
        f"Total: {summary.total}  settled: {summary.settled}  fulfilled: {summary.fulfilled}  "
        f"pending: {summary.pending}  failed: {summary.failed}"
    )
    return lines


def format_balances(address: str, balances: List[ChainBalances]) -> List[str]:
    lines = [f"Showing balances for wallet: {address}", "-" * 50]
    for entry in balances:
        lines.append(f"{entry.chain.label} ({entry.chain.key}):")
        if entry.error:
            lines.append(f"  ❌ {entry.error}")
            continue
        lines.append(f"  Native token: {entry.native} ETH")
        for symbol, amount in entry.tokens.items():
            lines.append(f"  {symbol.upper()}: {amount}")
    lines.append("-" * 50)
    lines.append(f"Total USDC across all chains: {total_of(balances, 'usdc'):.6f}")
    return lines
