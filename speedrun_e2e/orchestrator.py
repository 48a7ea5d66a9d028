"""
TransferOrchestrator - one intent from request to classified result.

For each transfer the orchestrator validates the request against the
chain registry, holds the source chain's lock while the allowance and
initiating transaction go through, then polls the status API outside the
lock and turns what it saw into a ``TransferResult``.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .chain import EvmClient, IntentSubmitter, IntentSubmission
from .config import ChainRegistry, Settings
from .exceptions import (
    ChainInteractionError,
    ConfigurationError,
    IntentNotIndexedError,
    StatusApiError,
)
from .locks import ChainLockRegistry
from .models import (
    CallRequest,
    CallSpec,
    ChainConfig,
    IntentStatus,
    TokenConfig,
    TransferOutcome,
    TransferRequest,
    TransferSpec,
)
from .poller import IntentStatusResult, StatusPoller
from .utils import format_duration, parse_units, random_salt

SubmitterFactory = Callable[[ChainConfig, logging.LoggerAdapter], IntentSubmitter]


class TransferLogger(logging.LoggerAdapter):
    """Prefixes every message with ``[Transfer N]`` (1-based)."""

    def process(self, msg, kwargs):
        return f"[Transfer {self.extra['index'] + 1}] {msg}", kwargs


@dataclass(frozen=True)
class TransferResult:
    """Outcome of one transfer or call, in request order via ``index``."""
    index: int
    source: str
    destination: str
    asset: str
    amount: str
    outcome: TransferOutcome
    message: str
    intent_id: Optional[str] = None
    tx_hash: Optional[str] = None
    fulfillment_tx: Optional[str] = None
    settlement_tx: Optional[str] = None
    time_to_fulfill: Optional[int] = None
    time_to_settle: Optional[int] = None
    total_time: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == TransferOutcome.SETTLED


@dataclass(frozen=True)
class BatchSummary:
    total: int
    settled: int
    fulfilled: int
    failed: int
    pending: int

    @property
    def succeeded(self) -> bool:
        """True only if every transfer settled."""
        return self.settled == self.total


def summarize(results: Iterable[TransferResult]) -> BatchSummary:
    results = list(results)

    def count(outcome: TransferOutcome) -> int:
        return sum(1 for r in results if r.outcome == outcome)

    return BatchSummary(
        total=len(results),
        settled=count(TransferOutcome.SETTLED),
        fulfilled=count(TransferOutcome.FULFILLED),
        failed=count(TransferOutcome.FAILED),
        pending=count(TransferOutcome.PENDING),
    )


class TransferOrchestrator:
    """
    Runs transfers and calls end to end.

    One orchestrator owns one ``ChainLockRegistry``, so transfers started
    through the same instance never interleave their submission phases on
    a shared source chain. Results are returned, never printed; failures of
    the chain or the status API become ``failed`` results while
    configuration problems raise ``ConfigurationError`` from ``run``.
    """

    def __init__(
        self,
        registry: ChainRegistry,
        account: Union[str, LocalAccount],
        poller: StatusPoller,
        settings: Optional[Settings] = None,
        locks: Optional[ChainLockRegistry] = None,
        submitter_factory: Optional[SubmitterFactory] = None,
        salt_source: Optional[Callable[[], int]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the TransferOrchestrator

        Args:
            registry: Supported chains
            account: Private key or an eth_account LocalAccount (sender and receiver)
            poller: Status poller bound to the status API
            settings: Polling and confirmation settings
            locks: Per-chain lock registry, a fresh one by default
            submitter_factory: Builds an IntentSubmitter for a source chain
            salt_source: Returns the salt for each new intent
            logger: Optional logger instance
        """
        self.registry = registry
        self.account: LocalAccount = Account.from_key(account) if isinstance(account, str) else account
        self.poller = poller
        self.settings = settings or Settings()
        self.logger = logger or logging.getLogger(__name__)
        self.locks = locks or ChainLockRegistry(logger=self.logger)
        self.submitter_factory = submitter_factory or self._default_submitter
        self.salt_source = salt_source or random_salt

    def _default_submitter(self, chain: ChainConfig, log: logging.LoggerAdapter) -> IntentSubmitter:
        client = EvmClient(
            chain,
            self.account,
            receipt_timeout=self.settings.receipt_timeout,
            logger=log
        )
        return IntentSubmitter(client, logger=log)

    async def run(self, spec: TransferSpec, index: int = 0) -> TransferResult:
        """
        Run one token transfer.

        Raises:
            ConfigurationError: If a chain or the asset is not supported
        """
        log = TransferLogger(self.logger, {"index": index})
        source, destination, source_token, _ = self._resolve(spec.src, spec.dst, spec.asset)

        request = TransferRequest(
            asset=source_token.address,
            amount=parse_units(spec.amount, source_token.decimals),
            target_chain=destination.chain_id,
            receiver=self.account.address,
            tip=parse_units(spec.fee, source_token.decimals),
            salt=self.salt_source()
        )
        base = self._base_result(index, source, destination, spec.asset, spec.amount)

        log.info(
            f"🔄 Transferring {spec.amount} {spec.asset.upper()} "
            f"from {source.label} to {destination.label} (fee {spec.fee})"
        )
        return await self._execute(base, source, lambda submitter: submitter.submit_transfer(request), log)

    async def run_call(self, spec: CallSpec, index: int = 0) -> TransferResult:
        """
        Run one cross-chain swap call through an initiator contract.

        The destination leg swaps the destination chain's copy of the asset
        into ``spec.swap_to`` and sends the output to the wallet.

        Raises:
            ConfigurationError: If a chain, the asset or the initiator is missing
        """
        log = TransferLogger(self.logger, {"index": index})
        source, destination, source_token, destination_token = self._resolve(spec.src, spec.dst, spec.asset)

        initiator = spec.initiator or self.registry.find_initiator(source.key, destination.key)
        if not initiator:
            raise ConfigurationError(
                f"No initiator contract configured for {source.key} → {destination.key}"
            )

        request = CallRequest(
            initiator=initiator,
            asset=source_token.address,
            amount=parse_units(spec.amount, source_token.decimals),
            tip=parse_units(spec.fee, source_token.decimals),
            salt=self.salt_source(),
            gas_limit=spec.gas_limit,
            path=(destination_token.address, spec.swap_to),
            stable_flags=tuple(spec.stable_flags),
            min_amount_out=spec.min_amount_out,
            deadline=int(time.time()) + spec.deadline_seconds,
            receiver=self.account.address
        )
        base = self._base_result(index, source, destination, spec.asset, spec.amount)

        log.info(
            f"🔄 Calling initiator {initiator} from {source.label} to {destination.label} "
            f"with {spec.amount} {spec.asset.upper()} (fee {spec.fee}, gas {spec.gas_limit})"
        )
        return await self._execute(base, source, lambda submitter: submitter.submit_call(request), log)

    async def run_batch(self, specs: Sequence[Union[TransferSpec, CallSpec]]) -> List[TransferResult]:
        """
        Run all transfers concurrently and return their results in request order.

        A transfer that raises, including with ``ConfigurationError``, is
        reported as ``failed`` without affecting the others.
        """
        self.logger.info(f"🚀 Starting {len(specs)} transfer(s) concurrently")

        async def run_one(index: int, spec: Union[TransferSpec, CallSpec]) -> TransferResult:
            if isinstance(spec, CallSpec):
                return await self.run_call(spec, index)
            return await self.run(spec, index)

        outcomes = await asyncio.gather(
            *(run_one(index, spec) for index, spec in enumerate(specs)),
            return_exceptions=True
        )

        results = []
        for index, (spec, outcome) in enumerate(zip(specs, outcomes)):
            if isinstance(outcome, Exception):
                TransferLogger(self.logger, {"index": index}).error(f"❌ {outcome}")
                outcome = TransferResult(
                    index=index,
                    source=spec.src,
                    destination=spec.dst,
                    asset=spec.asset.upper(),
                    amount=spec.amount,
                    outcome=TransferOutcome.FAILED,
                    message=str(outcome) or type(outcome).__name__
                )
            elif isinstance(outcome, BaseException):
                raise outcome
            results.append(outcome)

        return sorted(results, key=lambda r: r.index)

    def _resolve(self, src: str, dst: str, asset: str) -> Tuple[ChainConfig, ChainConfig, TokenConfig, TokenConfig]:
        source = self.registry.get(src)
        destination = self.registry.get(dst)

        source_token = source.token(asset)
        if source_token is None:
            raise ConfigurationError(f"Asset '{asset}' is not available on {source.name}")
        destination_token = destination.token(asset)
        if destination_token is None:
            raise ConfigurationError(f"Asset '{asset}' is not available on {destination.name}")

        return source, destination, source_token, destination_token

    @staticmethod
    def _base_result(index: int, source: ChainConfig, destination: ChainConfig, asset: str, amount: str) -> TransferResult:
        return TransferResult(
            index=index,
            source=source.name,
            destination=destination.name,
            asset=asset.upper(),
            amount=amount,
            outcome=TransferOutcome.PENDING,
            message=""
        )

    async def _execute(self, base: TransferResult, source: ChainConfig, submit, log: TransferLogger) -> TransferResult:
        try:
            async with self.locks.hold(source.chain_id):
                submitter = self.submitter_factory(source, log)
                submission: IntentSubmission = await submit(submitter)
        except ChainInteractionError as e:
            log.error(f"❌ Submission failed: {e}")
            return replace(base, outcome=TransferOutcome.FAILED, message=str(e), tx_hash=e.tx_hash)

        log.info(f"✅ Transaction confirmed: {submission.tx_hash}")
        log.info(f"📝 Intent ID: {submission.intent_id}")
        base = replace(base, intent_id=submission.intent_id, tx_hash=submission.tx_hash)

        try:
            status = await self.poller.poll_until(
                submission.intent_id,
                max_attempts=self.settings.max_poll_attempts,
                interval_ms=self.settings.poll_interval_ms,
                logger=log
            )
        except IntentNotIndexedError as e:
            log.error(f"❌ {e}")
            return replace(
                base,
                outcome=TransferOutcome.FAILED,
                message=f"{e}; the intent may not have been indexed yet"
            )
        except StatusApiError as e:
            log.error(f"❌ Status check failed: {e}")
            return replace(base, outcome=TransferOutcome.FAILED, message=str(e))

        result = self._classify(base, status)
        if result.succeeded:
            log.info(f"🎉 {result.message}")
        else:
            log.warning(f"⚠️ {result.message}")
        return result

    @staticmethod
    def _classify(base: TransferResult, status: IntentStatusResult) -> TransferResult:
        intent = status.intent
        result = replace(
            base,
            fulfillment_tx=intent.fulfillment_tx if intent else None,
            settlement_tx=intent.settlement_tx if intent else None,
            time_to_fulfill=status.time_to_fulfill,
            time_to_settle=status.time_to_settle,
            total_time=status.total_time
        )

        if intent is None:
            return replace(
                result,
                outcome=TransferOutcome.FAILED,
                message=f"Intent not found in API after {status.attempts} attempts"
            )

        if intent.status == IntentStatus.SETTLED.value:
            if status.total_time is not None:
                message = f"Transfer settled in {format_duration(status.total_time)}"
            else:
                message = "Transfer settled"
            return replace(result, outcome=TransferOutcome.SETTLED, message=message)

        if intent.status == IntentStatus.FULFILLED.value:
            return replace(
                result,
                outcome=TransferOutcome.FULFILLED,
                message=f"Intent fulfilled but not settled after {status.attempts} attempts"
            )

        if intent.status in (IntentStatus.CANCELLED.value, IntentStatus.FAILED.value):
            return replace(result, outcome=TransferOutcome.FAILED, message=f"Intent {intent.status}")

        return replace(
            result,
            outcome=TransferOutcome.PENDING,
            message=f"Intent still {intent.status} after {status.attempts} attempts"
        )
