"""
Tests for CompletionWatcher: scripted destination values, virtual clock.

Test plan:
- Value changes on the third poll: bridged after 3 reads, 45s elapsed
- Value never changes: timed out after max_attempts + 1 reads, bounded time
- Success only when the last read differs from the baseline
- Wide uint256 values compare exactly
- Failed reads are retried without using an attempt; exhausted retries raise
- Cancellation stops the loop before or between reads
- contract_value_reader maps transport failures to WatchReadError, including
  malformed HTTP 200 answers (non-JSON body, null result, empty or bad data)
"""

import httpx
import pytest

from sygma_messaging.client import ChainClient, RpcError
from sygma_messaging.errors import WatchReadError
from sygma_messaging.watcher import (
    CompletionWatcher,
    WatchStatus,
    contract_value_reader,
    uint_changed,
)

from conftest import COUNTER_ADDRESS, FakeChainClient


class SequenceReader:
    """Returns scripted values; the last one repeats."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def __call__(self):
        self.calls += 1
        value = self.values.pop(0) if len(self.values) > 1 else self.values[0]
        if isinstance(value, Exception):
            raise value
        return value


def test_change_on_third_poll(clock):
    reader = SequenceReader([104, 104, 105])
    watcher = CompletionWatcher(reader, poll_interval=15.0, max_attempts=8, cancel_event=clock)

    outcome = watcher.wait_until_bridged(104)

    assert outcome.status == WatchStatus.BRIDGED
    assert outcome.bridged
    assert outcome.reads == 3
    assert outcome.last_value == 105
    assert clock.elapsed == 45.0


def test_unchanged_value_times_out(clock):
    reader = SequenceReader([104])
    watcher = CompletionWatcher(reader, poll_interval=15.0, max_attempts=8, cancel_event=clock)

    outcome = watcher.wait_until_bridged(104)

    assert outcome.status == WatchStatus.TIMED_OUT
    assert not outcome.bridged
    assert outcome.reads == 9
    assert reader.calls == 9
    assert outcome.last_value == 104
    assert clock.elapsed <= (8 + 1) * 15.0


@pytest.mark.parametrize("max_attempts", [0, 1, 3, 8])
def test_read_count_is_bounded(clock, max_attempts):
    reader = SequenceReader([1])
    watcher = CompletionWatcher(reader, poll_interval=2.0, max_attempts=max_attempts, cancel_event=clock)

    outcome = watcher.wait_until_bridged(1)

    assert outcome.status == WatchStatus.TIMED_OUT
    assert reader.calls == max_attempts + 1
    assert clock.elapsed == (max_attempts + 1) * 2.0


@pytest.mark.parametrize(
    "baseline, values",
    [
        (0, [0, 0, 1]),
        (104, [105]),
        (2**256 - 1, [2**256 - 1, 2**256 - 2]),
        (10**30, [10**30, 10**30 + 1]),
    ],
)
def test_success_implies_last_value_differs(clock, baseline, values):
    watcher = CompletionWatcher(SequenceReader(values), poll_interval=1.0, max_attempts=8, cancel_event=clock)

    outcome = watcher.wait_until_bridged(baseline)

    assert outcome.bridged
    assert outcome.last_value != baseline


def test_wide_values_compare_exactly(clock):
    # Equal as floats, different as uint256
    baseline = 2**64
    assert float(baseline) == float(baseline + 1)

    watcher = CompletionWatcher(SequenceReader([baseline + 1]), poll_interval=1.0, cancel_event=clock)

    assert watcher.wait_until_bridged(baseline).bridged


def test_uint_changed_rejects_other_types():
    with pytest.raises(TypeError):
        uint_changed(104, "104")
    with pytest.raises(TypeError):
        uint_changed(True, 1)


def test_read_errors_do_not_use_attempts(clock):
    reader = SequenceReader([WatchReadError("timeout"), WatchReadError("timeout"), 105])
    watcher = CompletionWatcher(
        reader,
        poll_interval=15.0,
        max_attempts=0,
        read_retries=3,
        read_retry_interval=2.0,
        cancel_event=clock,
    )

    outcome = watcher.wait_until_bridged(104)

    assert outcome.bridged
    assert outcome.reads == 1
    assert outcome.attempts == 0
    assert reader.calls == 3
    assert clock.waits == [15.0, 2.0, 2.0]


def test_read_errors_past_retry_budget_propagate(clock):
    reader = SequenceReader([WatchReadError("node down")])
    watcher = CompletionWatcher(reader, poll_interval=15.0, read_retries=2, cancel_event=clock)

    with pytest.raises(WatchReadError):
        watcher.wait_until_bridged(104)

    assert reader.calls == 3


def test_cancel_before_first_read(clock):
    reader = SequenceReader([105])
    clock.set()
    watcher = CompletionWatcher(reader, cancel_event=clock)

    outcome = watcher.wait_until_bridged(104)

    assert outcome.status == WatchStatus.CANCELLED
    assert outcome.reads == 0
    assert reader.calls == 0


def test_cancel_between_reads(clock):
    def read():
        clock.set()
        return 104

    watcher = CompletionWatcher(read, poll_interval=15.0, max_attempts=8, cancel_event=clock)

    outcome = watcher.wait_until_bridged(104)

    assert outcome.status == WatchStatus.CANCELLED
    assert outcome.reads == 1


def test_negative_attempts_rejected():
    with pytest.raises(ValueError):
        CompletionWatcher(lambda: 0, max_attempts=-1)


@pytest.mark.parametrize(
    "error",
    [
        RpcError(-32000, "header not found"),
        httpx.ConnectError("refused"),
    ],
)
def test_contract_value_reader_wraps_transport_errors(error):
    read = contract_value_reader(FakeChainClient(values=[error]), COUNTER_ADDRESS)

    with pytest.raises(WatchReadError) as excinfo:
        read()

    assert excinfo.value.cause is error


def test_contract_value_reader_returns_value():
    chain = FakeChainClient(values=[42])
    read = contract_value_reader(chain, COUNTER_ADDRESS)

    assert read() == 42
    assert chain.calls[0]["method"] == "number"
    assert chain.calls[0]["address"] == COUNTER_ADDRESS


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>rate limited</html>"),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0x"}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "0xzz"}),
        httpx.Response(200, json=["unexpected"]),
    ],
    ids=["html-body", "null-result", "missing-result", "empty-data", "bad-hex", "list-body"],
)
def test_contract_value_reader_wraps_malformed_responses(response):
    client = ChainClient("https://rpc.example", transport=httpx.MockTransport(lambda request: response))
    read = contract_value_reader(client, COUNTER_ADDRESS)

    with pytest.raises(WatchReadError) as excinfo:
        read()

    assert excinfo.value.cause is not None


def test_malformed_response_is_retried(clock):
    answers = [
        httpx.Response(200, text="<html>bad gateway</html>"),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 2, "result": None}),
        httpx.Response(200, json={"jsonrpc": "2.0", "id": 3, "result": "0x" + "00" * 31 + "69"}),
    ]
    client = ChainClient("https://rpc.example", transport=httpx.MockTransport(lambda request: answers.pop(0)))
    watcher = CompletionWatcher(
        contract_value_reader(client, COUNTER_ADDRESS),
        poll_interval=15.0,
        max_attempts=0,
        read_retries=3,
        read_retry_interval=2.0,
        cancel_event=clock,
    )

    outcome = watcher.wait_until_bridged(104)

    assert outcome.bridged
    assert outcome.last_value == 105
    assert clock.waits == [15.0, 2.0, 2.0]
