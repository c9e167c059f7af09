"""Transfer status lookups and the background status poller"""

import logging
import threading
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from .config import Environment
from .errors import StatusQueryError

logger = logging.getLogger(__name__)


class TransferStatus(Enum):
    """Known transfer lifecycle states"""
    PENDING = 'pending'
    EXECUTED = 'executed'
    FAILED = 'failed'


TERMINAL_STATUSES = frozenset({TransferStatus.EXECUTED.value, TransferStatus.FAILED.value})


@dataclass(frozen=True)
class TransferStatusRecord:
    """One indexed record for a source transaction"""
    status: str
    from_domain_id: Optional[int] = None
    to_domain_id: Optional[int] = None
    explorer_url: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @classmethod
    def from_dict(cls, data: Dict[str, Any], explorer_url: Optional[str] = None) -> 'TransferStatusRecord':
        from_domain = data.get('fromDomainId')
        to_domain = data.get('toDomainId')
        return cls(
            status=str(data.get('status', '')),
            from_domain_id=int(from_domain) if from_domain is not None else None,
            to_domain_id=int(to_domain) if to_domain is not None else None,
            explorer_url=explorer_url,
        )


class SygmaStatusClient:
    """Client for the Sygma explorer API"""

    def __init__(
        self,
        environment: Environment = Environment.TESTNET,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.environment = environment
        self.timeout = timeout
        self._transport = transport

    def explorer_link(self, tx_hash: str) -> str:
        return f"{self.environment.scan_url}/transfer/{tx_hash}"

    def get_transfer_status_data(self, tx_hash: str) -> List[TransferStatusRecord]:
        """
        Look up the transfers created by a source transaction

        Returns:
            The indexed records, or an empty list while the transaction is
            not yet indexed

        Raises:
            StatusQueryError: The API could not be reached or answered badly
        """
        url = f"{self.environment.explorer_api_url}/api/transfers/txHash/{tx_hash}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.get(url)
                if response.status_code == 404:
                    return []
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            raise StatusQueryError(f"Status query for {tx_hash} failed: {e}") from e
        except ValueError as e:
            raise StatusQueryError(f"Status API returned invalid JSON for {tx_hash}") from e

        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise StatusQueryError(f"Unexpected status payload for {tx_hash}: {data!r}")

        link = self.explorer_link(tx_hash)
        try:
            return [TransferStatusRecord.from_dict(item, explorer_url=link) for item in data]
        except (ValueError, TypeError, AttributeError) as e:
            raise StatusQueryError(f"Malformed status record for {tx_hash}: {e}") from e


class PollOutcome(Enum):
    """How the status poller stopped"""
    EXECUTED = 'executed'
    FAILED = 'failed'
    CANCELLED = 'cancelled'


class StatusEvent:
    """Status poll notification"""
    def __init__(
        self,
        tx_hash: str,
        record: Optional[TransferStatusRecord]
    ):
        self.tx_hash = tx_hash
        self.record = record
        self.timestamp = int(time.time())

    @property
    def indexed(self) -> bool:
        return self.record is not None

    @property
    def status(self) -> Optional[str]:
        return self.record.status if self.record else None


class StatusPoller:
    """Polls the status API on a fixed cadence until a terminal status

    Query failures are logged and retried on the next tick. The poller stops
    on ``executed`` or ``failed``, or when ``cancel_event`` is set.
    """

    def __init__(
        self,
        client: SygmaStatusClient,
        tx_hash: str,
        poll_interval: float = 5.0,
        cancel_event: Optional[threading.Event] = None,
        callback: Optional[Callable[[StatusEvent], None]] = None
    ):
        self.client = client
        self.tx_hash = tx_hash
        self.poll_interval = poll_interval
        self.cancel_event = cancel_event or threading.Event()
        self.callback = callback
        self.outcome: Optional[PollOutcome] = None
        self.last_record: Optional[TransferStatusRecord] = None
        self.polls = 0
        self._thread: Optional[threading.Thread] = None
        self._done = threading.Event()

    def start(self) -> None:
        """Start polling in a background thread"""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self.run,
            name=f"status-poller-{self.tx_hash[:10]}",
            daemon=True
        )
        self._thread.start()

    def join(self, timeout: Optional[float] = None) -> Optional[PollOutcome]:
        """Wait for the poller to stop; returns None if it is still running"""
        self._done.wait(timeout)
        return self.outcome

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def poll_once(self) -> Optional[TransferStatusRecord]:
        """Query once and notify; only the first record is inspected"""
        self.polls += 1
        records = self.client.get_transfer_status_data(self.tx_hash)
        record = records[0] if records else None
        if record is not None:
            self.last_record = record
        self._notify(StatusEvent(self.tx_hash, record))
        return record

    def run(self) -> PollOutcome:
        """Poll until a terminal status or cancellation"""
        try:
            while not self.cancel_event.wait(self.poll_interval):
                try:
                    record = self.poll_once()
                except StatusQueryError as e:
                    logger.warning("error: %s", e)
                    continue

                if record is not None and record.is_terminal:
                    self.outcome = PollOutcome(record.status)
                    return self.outcome

            self.outcome = PollOutcome.CANCELLED
            return self.outcome
        finally:
            self._done.set()

    def _notify(self, event: StatusEvent) -> None:
        if self.callback is None:
            return
        try:
            self.callback(event)
        except Exception as e:
            logger.error("Error in status callback: %s", e)
