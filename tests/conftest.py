"""Shared fakes: a virtual clock, a scripted chain and a scripted status API."""

from typing import Any, Dict, List, Optional, Sequence

import pytest

from sygma_messaging.errors import StatusQueryError
from sygma_messaging.generic_message import ZERO_ADDRESS, Domain, EvmGenericMessageTransfer, Resource
from sygma_messaging.status import TransferStatusRecord

# Well-known development key; never holds real funds.
TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"

GENERIC_RESOURCE_ID = "0x" + "00" * 30 + "0500"
SEPOLIA_BRIDGE = "0x4cf326d3817558038c2dd7b3b6a7c3b2d07d9ea4"
SEPOLIA_FEE_ROUTER = "0x1d5b3c1b1d6d4a8b67fe9d3c6d0c8d47f7d1a5e2"
COUNTER_ADDRESS = "0x303e46f108ed47bf5a489cf62926fd3d8ddcc72a"


# ---------------------------------------------------------------------------
# Virtual clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Stands in for threading.Event: wait() advances time instead of sleeping."""

    def __init__(self) -> None:
        self.elapsed = 0.0
        self.waits: List[float] = []
        self._set = False

    def wait(self, timeout: Optional[float] = None) -> bool:
        if self._set:
            return True
        self.waits.append(timeout or 0.0)
        self.elapsed += timeout or 0.0
        return False

    def set(self) -> None:
        self._set = True

    def is_set(self) -> bool:
        return self._set


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------


class FakeChainClient:
    """Scripted ChainClient; records every write."""

    def __init__(
        self,
        values: Sequence[Any] = (),
        chain_id: int = 11155111,
        fee: int = 1000,
        fee_token: str = ZERO_ADDRESS,
    ) -> None:
        self._values = list(values)
        self._chain_id = chain_id
        self.fee = fee
        self.fee_token = fee_token
        self.reads = 0
        self.calls: List[Dict[str, Any]] = []
        self.sent: List[str] = []
        self.estimated: List[Dict[str, Any]] = []
        self.send_error: Optional[Exception] = None

    def chain_id(self) -> int:
        return self._chain_id

    def get_transaction_count(self, address: str, block: str = "pending") -> int:
        return 7

    def get_gas_price(self) -> int:
        return 2_000_000_000

    def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        self.estimated.append(transaction)
        return 150_000

    def call_contract_method(self, address, abi, method_name, args=(), sender=None):
        self.calls.append({"address": address, "method": method_name, "args": list(args), "sender": sender})
        if method_name == "calculateFee":
            return (self.fee, self.fee_token)
        self.reads += 1
        value = self._values.pop(0) if len(self._values) > 1 else self._values[0]
        if isinstance(value, Exception):
            raise value
        return value

    def send_raw_transaction(self, raw_transaction: str) -> str:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_transaction)
        return "0x" + "ab" * 32


def make_domains() -> List[Domain]:
    return [
        Domain(
            id=2,
            chain_id=11155111,
            name="sepolia",
            bridge=SEPOLIA_BRIDGE,
            fee_router=SEPOLIA_FEE_ROUTER,
            resources=[Resource(resource_id=GENERIC_RESOURCE_ID, type="permissionlessGeneric")],
        ),
        Domain(
            id=6,
            chain_id=17000,
            name="holesky",
            bridge="0x6ee6f5f3c2f6a1f6a1b4b5f0d1d3f8a2b7a9c4d1",
            fee_router="0x2a6f3b2d0b7c6e2f4f8c1f0e2d9b3a7c5d6e8f90",
            resources=[Resource(resource_id=GENERIC_RESOURCE_ID, type="permissionlessGeneric")],
        ),
    ]


SHARED_CONFIG = {
    "domains": [
        {
            "id": 2,
            "chainId": 11155111,
            "name": "sepolia",
            "type": "evm",
            "bridge": SEPOLIA_BRIDGE,
            "feeRouter": SEPOLIA_FEE_ROUTER,
            "resources": [{"resourceId": GENERIC_RESOURCE_ID, "type": "permissionlessGeneric"}],
        },
        {
            "id": 6,
            "chainId": 17000,
            "name": "holesky",
            "type": "evm",
            "bridge": "0x6ee6f5f3c2f6a1f6a1b4b5f0d1d3f8a2b7a9c4d1",
            "feeRouter": "0x2a6f3b2d0b7c6e2f4f8c1f0e2d9b3a7c5d6e8f90",
            "resources": [{"resourceId": GENERIC_RESOURCE_ID, "type": "permissionlessGeneric"}],
        },
        {"id": 5, "chainId": 5231, "name": "rococo-phala", "type": "substrate"},
    ]
}


# ---------------------------------------------------------------------------
# Status API
# ---------------------------------------------------------------------------


class FakeStatusClient:
    """Replays one scripted response per query; the last one repeats."""

    def __init__(self, responses: Sequence[Any]) -> None:
        self._responses = list(responses)
        self.queries: List[str] = []

    def get_transfer_status_data(self, tx_hash: str) -> List[TransferStatusRecord]:
        self.queries.append(tx_hash)
        response = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(response, Exception):
            raise response
        return [TransferStatusRecord(status=status, explorer_url=f"https://scan/{tx_hash}") for status in response]


def status_error() -> StatusQueryError:
    return StatusQueryError("connection reset")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


def make_sdk(chain: FakeChainClient) -> EvmGenericMessageTransfer:
    """An SDK that skips the shared-config download."""
    sdk = EvmGenericMessageTransfer(chain)
    sdk.domains = make_domains()
    sdk.source_domain = sdk.domains[0]
    return sdk
