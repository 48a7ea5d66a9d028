#!/usr/bin/env python3
"""
Run a small batch of transfers from Python instead of the CLI.
"""
import asyncio
import logging
import os

from speedrun_e2e import (
    ChainRegistry,
    Settings,
    SpeedrunApiClient,
    StatusPoller,
    TransferOrchestrator,
    TransferSpec,
    summarize,
)
from speedrun_e2e.utils import format_duration, seeded_salt_source


async def main():
    """
    Demonstrate driving the orchestrator directly.

    This example shows how to:
    1. Build the orchestrator from the packaged chain table
    2. Run two transfers concurrently with reproducible salts
    3. Inspect the returned results
    """
    private_key = os.environ.get("EVM_PRIVATE_KEY")
    if not private_key:
        print("ERROR: EVM_PRIVATE_KEY environment variable is required")
        return

    settings = Settings.from_env()
    specs = [
        TransferSpec(src="base", dst="arbitrum", amount="0.3", fee="0.2"),
        TransferSpec(src="arbitrum", dst="base", amount="0.3", fee="0.2"),
    ]

    async with SpeedrunApiClient(settings.api_url) as api:
        orchestrator = TransferOrchestrator(
            ChainRegistry.from_network_config(),
            private_key,
            StatusPoller(api),
            settings=settings,
            salt_source=seeded_salt_source(42)
        )
        results = await orchestrator.run_batch(specs)

    for result in results:
        timing = format_duration(result.total_time) if result.total_time is not None else "n/a"
        print(f"#{result.index + 1} {result.source} -> {result.destination}: {result.outcome.value} ({timing})")
        print(f"   {result.message}")

    summary = summarize(results)
    print(f"Settled {summary.settled}/{summary.total}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
