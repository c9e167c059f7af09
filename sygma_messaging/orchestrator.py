"""Runs one generic message transfer from submission to completion"""

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount

from .client import ChainClient
from .config import Config
from .errors import ConfigurationError, SubmissionError, WatchReadError
from .generic_message import EvmFee, EvmGenericMessageTransfer
from .status import PollOutcome, StatusEvent, StatusPoller, SygmaStatusClient, TransferStatus
from .submission import SubmittedTransfer, TransferRequest, submit_transfer
from .watcher import CompletionWatcher, WatchOutcome, WatchStatus, contract_value_reader

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


@dataclass(frozen=True)
class RunSummary:
    """What a run observed"""
    baseline_value: Any
    fee: EvmFee
    transaction_hash: str
    watch: Optional[WatchOutcome]
    final_value: Any
    status: Optional[PollOutcome]
    deadline_expired: bool = False

    @property
    def exit_code(self) -> int:
        return EXIT_OK if self.status == PollOutcome.EXECUTED else EXIT_FAILED


class TransferOrchestrator:
    """
    Sequences a run: baseline read, submission, then the completion watcher
    and status poller side by side

    The orchestrator owns one cancellation event shared by both observers.
    It is set when the overall deadline passes, when the transfer reaches
    a terminal status, or when ``run`` exits for any other reason.
    """

    def __init__(
        self,
        config: Config,
        source: ChainClient,
        destination: ChainClient,
        sdk: EvmGenericMessageTransfer,
        status_client: SygmaStatusClient,
        account: LocalAccount,
        reporter: Callable[[str], None] = print
    ):
        self.config = config
        self.source = source
        self.destination = destination
        self.sdk = sdk
        self.status_client = status_client
        self.account = account
        self.report = reporter
        self.cancel_event = threading.Event()
        self._deadline_expired = threading.Event()
        self._executed = threading.Event()
        self._indexed = False

    def transfer_request(self) -> TransferRequest:
        return TransferRequest(
            sender_address=self.account.address,
            destination_chain_id=self.config.destination_chain_id,
            resource_id=self.config.resource_id,
            target_contract_address=self.config.execute_contract_address,
            target_function_selector=self.config.execute_function_signature,
            payload=self.config.execution_data,
            max_fee=self.config.max_fee,
        )

    def run(self) -> RunSummary:
        """
        Execute the whole flow

        Raises:
            WatchReadError: The baseline value could not be read
            SubmissionError: The transfer could not be sent
        """
        address = self.config.execute_contract_address
        read_value = contract_value_reader(self.destination, address)

        self.report(f"Connected to contract: {address}")
        self.report("Fetching contract value...")
        baseline = read_value()
        self.report(f"Value before update: {baseline}")

        self.report("Sending a generic message transfer...")
        submitted = self._submit()
        self.report(f"Fee for the transfer: {submitted.fee.fee}")
        self.report(f"Sent transfer with hash: {submitted.transaction_hash}")

        deadline = threading.Timer(self.config.overall_timeout, self._expire)
        deadline.daemon = True
        poller = StatusPoller(
            self.status_client,
            submitted.transaction_hash,
            poll_interval=self.config.status_interval,
            cancel_event=self.cancel_event,
            callback=self._on_status,
        )
        try:
            deadline.start()
            poller.start()

            self.report("Waiting for relayers to bridge transaction...")
            watch = self._watch(read_value, baseline)

            final_value = self._read_final(read_value)
            self.report(f"Final value: {final_value}")

            status = poller.join()
        finally:
            deadline.cancel()
            self.cancel_event.set()

        if self._deadline_expired.is_set() and status == PollOutcome.CANCELLED:
            self.report(
                f"Gave up after {self.config.overall_timeout:g}s; the transfer may still complete"
            )

        return RunSummary(
            baseline_value=baseline,
            fee=submitted.fee,
            transaction_hash=submitted.transaction_hash,
            watch=watch,
            final_value=final_value,
            status=status,
            deadline_expired=self._deadline_expired.is_set(),
        )

    def _submit(self) -> SubmittedTransfer:
        if self.sdk.source_domain is None:
            try:
                self.sdk.init(self.config.environment)
            except Exception as e:
                raise SubmissionError("Bridge initialisation failed", cause=e) from e
        return submit_transfer(self.transfer_request(), self.sdk, self.source, self.account)

    def _watch(self, read_value: Callable[[], Any], baseline: Any) -> Optional[WatchOutcome]:
        watcher = CompletionWatcher(
            read_value,
            poll_interval=self.config.watch_interval,
            max_attempts=self.config.watch_attempts,
            read_retries=self.config.read_retries,
            read_retry_interval=self.config.read_retry_interval,
            cancel_event=self.cancel_event,
        )
        try:
            outcome = watcher.wait_until_bridged(baseline)
        except WatchReadError as e:
            logger.error("Destination reads kept failing: %s", e)
            self.report(f"Could not read the destination contract: {e}")
            return None

        if outcome.bridged:
            self.report("Transaction successfully bridged.")
            self.report(f"Value after update: {outcome.last_value}")
        elif outcome.status == WatchStatus.TIMED_OUT:
            self.report("Transaction is taking too much time to bridge, it may still be in flight.")
        elif self._executed.is_set():
            self.report("Transfer executed, stopped watching the destination contract.")
        else:
            self.report("Stopped watching the destination contract.")
        return outcome

    def _read_final(self, read_value: Callable[[], Any]) -> Any:
        try:
            return read_value()
        except WatchReadError as e:
            logger.warning("Final read failed: %s", e)
            return None

    def _on_status(self, event: StatusEvent) -> None:
        if not event.indexed:
            self.report("Waiting for the TX to be indexed (not yet indexed)")
            return
        if not self._indexed and event.record.explorer_url:
            self._indexed = True
            self.report(f"Transfer indexed: {event.record.explorer_url}")
        self.report(f"Status of the transfer: {event.status}")
        if event.status == TransferStatus.EXECUTED.value:
            self._executed.set()
        if event.record.is_terminal:
            self.cancel_event.set()

    def _expire(self) -> None:
        logger.warning("Overall timeout of %ss reached, cancelling", self.config.overall_timeout)
        self._deadline_expired.set()
        self.cancel_event.set()


def build_orchestrator(
    config: Config,
    reporter: Callable[[str], None] = print
) -> TransferOrchestrator:
    """Wire up clients for a config; no network calls are made here"""
    try:
        account = Account.from_key(config.private_key)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid PRIVATE_KEY: {e}") from e

    source = ChainClient(config.source_rpc_url, timeout=config.http_timeout)
    destination = ChainClient(config.destination_rpc_url, timeout=config.http_timeout)
    return TransferOrchestrator(
        config=config,
        source=source,
        destination=destination,
        sdk=EvmGenericMessageTransfer(source, http_timeout=config.http_timeout),
        status_client=SygmaStatusClient(config.environment, timeout=config.http_timeout),
        account=account,
        reporter=reporter,
    )


def run_from_env(
    environ: Optional[Mapping[str, str]] = None,
    reporter: Callable[[str], None] = print
) -> int:
    """Process entry: configure from the environment, run, and return an exit code"""
    try:
        config = Config.from_env(environ)
        orchestrator = build_orchestrator(config, reporter)
    except ConfigurationError as e:
        logger.error("%s", e)
        reporter(f"Configuration error: {e}")
        return EXIT_CONFIG

    try:
        summary = orchestrator.run()
    except SubmissionError as e:
        logger.error("%s", e)
        reporter(f"Transfer failed: {e}")
        return EXIT_FAILED
    except WatchReadError as e:
        logger.error("%s", e)
        reporter(f"Could not read the destination contract: {e}")
        return EXIT_FAILED
    except KeyboardInterrupt:
        reporter("Cancelled")
        return EXIT_FAILED

    return summary.exit_code
