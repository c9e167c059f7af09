"""Detects that a bridged call took effect by polling the destination contract"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

import httpx
from eth_abi.exceptions import DecodingError

from .abi import COUNTER_ABI
from .client import ChainClient, RpcError
from .errors import WatchReadError

logger = logging.getLogger(__name__)


class WatchStatus(Enum):
    """Watcher outcome"""
    BRIDGED = 'bridged'
    TIMED_OUT = 'timed_out'
    CANCELLED = 'cancelled'


@dataclass
class WatchState:
    """Loop state, owned by a single wait_until_bridged call"""
    baseline_value: Any
    max_attempts: int
    poll_interval: float
    current_attempt: int = 0
    reads: int = 0
    last_value: Any = None


@dataclass(frozen=True)
class WatchOutcome:
    """Result of waiting for the destination value to change"""
    status: WatchStatus
    baseline_value: Any
    last_value: Any
    reads: int
    attempts: int

    @property
    def bridged(self) -> bool:
        return self.status == WatchStatus.BRIDGED


def uint_changed(baseline: Any, current: Any) -> bool:
    """Exact comparison of two uint256 values decoded as ints"""
    for value in (baseline, current):
        if isinstance(value, bool) or not isinstance(value, int):
            raise TypeError(f"Expected an integer destination value, got {type(value).__name__}")
    return current != baseline


def contract_value_reader(
    client: ChainClient,
    address: str,
    abi=COUNTER_ABI,
    method_name: str = 'number'
) -> Callable[[], Any]:
    """Build a reader for a view method, mapping transport failures to WatchReadError"""
    def read() -> Any:
        try:
            return client.call_contract_method(address, abi, method_name)
        except (RpcError, httpx.HTTPError, DecodingError, ValueError) as e:
            raise WatchReadError(f"Reading {method_name}() on {address} failed: {e}", cause=e) from e
    return read


class CompletionWatcher:
    """
    Waits for a destination value to move away from its baseline

    Each attempt sleeps ``poll_interval`` and then reads once. The watcher
    stops as soon as the value differs from the baseline, or once more than
    ``max_attempts`` unchanged reads have been seen, so at most
    ``max_attempts + 1`` successful reads are made.

    A failed read (``WatchReadError``) does not use up an attempt: it is
    retried after ``read_retry_interval`` up to ``read_retries`` times, and
    then propagates.
    """

    def __init__(
        self,
        read_value: Callable[[], Any],
        poll_interval: float = 15.0,
        max_attempts: int = 8,
        read_retries: int = 3,
        read_retry_interval: float = 2.0,
        cancel_event: Optional[threading.Event] = None,
        changed: Callable[[Any, Any], bool] = uint_changed
    ):
        if max_attempts < 0:
            raise ValueError("max_attempts must be non-negative")
        self.read_value = read_value
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.read_retries = read_retries
        self.read_retry_interval = read_retry_interval
        self.cancel_event = cancel_event or threading.Event()
        self.changed = changed

    def wait_until_bridged(self, baseline_value: Any) -> WatchOutcome:
        state = WatchState(
            baseline_value=baseline_value,
            max_attempts=self.max_attempts,
            poll_interval=self.poll_interval,
        )

        while True:
            if self.cancel_event.wait(state.poll_interval):
                return self._outcome(WatchStatus.CANCELLED, state)

            try:
                value = self._read()
            except _Cancelled:
                return self._outcome(WatchStatus.CANCELLED, state)

            state.reads += 1
            state.last_value = value
            if self.changed(state.baseline_value, value):
                logger.info("Destination value changed from %s to %s", state.baseline_value, value)
                return self._outcome(WatchStatus.BRIDGED, state)

            state.current_attempt += 1
            logger.debug(
                "Destination value unchanged (attempt %d of %d)",
                state.current_attempt, state.max_attempts
            )
            if state.current_attempt > state.max_attempts:
                return self._outcome(WatchStatus.TIMED_OUT, state)

    def _read(self) -> Any:
        failures = 0
        while True:
            try:
                return self.read_value()
            except WatchReadError as e:
                failures += 1
                if failures > self.read_retries:
                    raise
                logger.warning("Read failed (%d of %d retries): %s", failures, self.read_retries, e)
                if self.cancel_event.wait(self.read_retry_interval):
                    raise _Cancelled()

    @staticmethod
    def _outcome(status: WatchStatus, state: WatchState) -> WatchOutcome:
        return WatchOutcome(
            status=status,
            baseline_value=state.baseline_value,
            last_value=state.last_value,
            reads=state.reads,
            attempts=state.current_attempt,
        )


class _Cancelled(Exception):
    pass
