"""Sygma permissionless generic message transfers on EVM chains"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
from eth_utils import decode_hex, is_address, to_checksum_address

from .abi import BRIDGE_ABI, FEE_ROUTER_ABI, encode_function_call
from .client import ChainClient
from .config import Environment

logger = logging.getLogger(__name__)

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
GENERIC_RESOURCE_TYPES = ('permissionlessGeneric', 'generic')


@dataclass(frozen=True)
class Resource:
    """A bridgeable resource registered on a domain"""
    resource_id: str
    type: str
    address: str = ''


@dataclass(frozen=True)
class Domain:
    """A chain as registered with the Sygma bridge"""
    id: int
    chain_id: int
    name: str
    bridge: str
    fee_router: str
    resources: List[Resource] = field(default_factory=list)

    def find_resource(self, resource_id: str) -> Optional[Resource]:
        for resource in self.resources:
            if resource.resource_id.lower() == resource_id.lower():
                return resource
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Domain':
        return cls(
            id=int(data['id']),
            chain_id=int(data['chainId']),
            name=data.get('name', ''),
            bridge=data.get('bridge', ''),
            fee_router=data.get('feeRouter', ''),
            resources=[
                Resource(
                    resource_id=r['resourceId'],
                    type=r.get('type', ''),
                    address=r.get('address', ''),
                )
                for r in data.get('resources', [])
            ],
        )


@dataclass(frozen=True)
class GenericMessageDetails:
    """What to execute on the destination chain"""
    destination_contract_address: str
    destination_function_signature: str
    execution_data: str
    max_fee: int


@dataclass(frozen=True)
class GenericMessageTransfer:
    """Transfer descriptor produced by the SDK, consumed by fee and build steps"""
    sender: str
    source: Domain
    destination: Domain
    resource: Resource
    details: GenericMessageDetails


@dataclass(frozen=True)
class EvmFee:
    """Fee quoted by the fee router"""
    fee: int
    token_address: str
    fee_router_address: str
    type: str = 'basic'


def fetch_shared_config(
    environment: Environment,
    timeout: float = 30,
    transport: Optional[httpx.BaseTransport] = None
) -> List[Domain]:
    """Download the domain registry for an environment"""
    with httpx.Client(timeout=timeout, transport=transport) as client:
        response = client.get(environment.shared_config_url)
        response.raise_for_status()
        data = response.json()
    return [
        Domain.from_dict(domain)
        for domain in data.get('domains', [])
        if domain.get('type', 'evm') == 'evm'
    ]


def create_permissionless_generic_deposit_data(
    function_signature: str,
    contract_address: str,
    max_fee: int,
    depositor: str,
    execution_data: str = ''
) -> bytes:
    """
    Pack deposit data for the permissionless generic handler

    Layout:
        maxFee               uint256  32 bytes
        len(functionSig)     uint16    2 bytes
        functionSig
        len(contract)        uint8     1 byte
        contract
        len(depositor)       uint8     1 byte
        depositor
        executionData
    """
    signature = decode_hex(function_signature)
    contract = decode_hex(contract_address)
    depositor_bytes = decode_hex(depositor)
    data = decode_hex(execution_data or '0x')
    return b''.join([
        max_fee.to_bytes(32, 'big'),
        len(signature).to_bytes(2, 'big'),
        signature,
        len(contract).to_bytes(1, 'big'),
        contract,
        len(depositor_bytes).to_bytes(1, 'big'),
        depositor_bytes,
        data,
    ])


class EvmGenericMessageTransfer:
    """Builds generic message transfers from an EVM source chain"""

    def __init__(self, source: ChainClient, http_timeout: float = 30, transport: Optional[httpx.BaseTransport] = None):
        self.source = source
        self.http_timeout = http_timeout
        self._transport = transport
        self.domains: List[Domain] = []
        self.source_domain: Optional[Domain] = None

    def init(self, environment: Environment = Environment.TESTNET) -> Domain:
        """Load the domain registry and resolve the source domain"""
        self.domains = fetch_shared_config(environment, self.http_timeout, self._transport)
        chain_id = self.source.chain_id()
        self.source_domain = self._domain_for_chain(chain_id)
        logger.debug("Source chain %s is Sygma domain %s", chain_id, self.source_domain.id)
        return self.source_domain

    def _domain_for_chain(self, chain_id: int) -> Domain:
        for domain in self.domains:
            if domain.chain_id == chain_id:
                return domain
        raise ValueError(f"Chain {chain_id} is not registered with the bridge")

    def create_generic_message_transfer(
        self,
        sender: str,
        destination_chain_id: int,
        resource_id: str,
        destination_contract_address: str,
        destination_function_signature: str,
        execution_data: str,
        max_fee: int
    ) -> GenericMessageTransfer:
        """Describe a transfer that calls a function on the destination chain"""
        if self.source_domain is None:
            raise RuntimeError("init() must be called before creating transfers")
        if not is_address(sender):
            raise ValueError(f"Invalid sender address: {sender}")
        if not is_address(destination_contract_address):
            raise ValueError(f"Invalid contract address: {destination_contract_address}")
        if len(decode_hex(resource_id)) != 32:
            raise ValueError(f"Resource id must be 32 bytes: {resource_id}")

        destination = self._domain_for_chain(destination_chain_id)
        resource = self.source_domain.find_resource(resource_id)
        if resource is None:
            raise ValueError(
                f"Resource {resource_id} is not registered on {self.source_domain.name}"
            )
        if resource.type not in GENERIC_RESOURCE_TYPES:
            raise ValueError(f"Resource {resource_id} is not a generic message resource")

        return GenericMessageTransfer(
            sender=to_checksum_address(sender),
            source=self.source_domain,
            destination=destination,
            resource=resource,
            details=GenericMessageDetails(
                destination_contract_address=to_checksum_address(destination_contract_address),
                destination_function_signature=destination_function_signature,
                execution_data=execution_data,
                max_fee=int(max_fee),
            ),
        )

    def deposit_data(self, transfer: GenericMessageTransfer) -> bytes:
        details = transfer.details
        return create_permissionless_generic_deposit_data(
            function_signature=details.destination_function_signature,
            contract_address=details.destination_contract_address,
            max_fee=details.max_fee,
            depositor=transfer.sender,
            execution_data=details.execution_data,
        )

    def get_fee(self, transfer: GenericMessageTransfer) -> EvmFee:
        """Quote the fee for a transfer from the source domain's fee router"""
        fee, token_address = self.source.call_contract_method(
            transfer.source.fee_router,
            FEE_ROUTER_ABI,
            'calculateFee',
            [
                transfer.sender,
                transfer.source.id,
                transfer.destination.id,
                decode_hex(transfer.resource.resource_id),
                self.deposit_data(transfer),
                b'',
            ],
            sender=transfer.sender,
        )
        return EvmFee(
            fee=fee,
            token_address=to_checksum_address(token_address),
            fee_router_address=transfer.source.fee_router,
        )

    def build_transfer_transaction(
        self,
        transfer: GenericMessageTransfer,
        fee: EvmFee
    ) -> Dict[str, Any]:
        """Unsigned ``Bridge.deposit`` call paying ``fee`` in the native token"""
        if fee.token_address != ZERO_ADDRESS:
            raise ValueError(f"Unsupported fee token {fee.token_address}; only native fees are handled")

        data = encode_function_call(
            BRIDGE_ABI,
            'deposit',
            [
                transfer.destination.id,
                decode_hex(transfer.resource.resource_id),
                self.deposit_data(transfer),
                b'',
            ],
        )
        return {
            'from': transfer.sender,
            'to': to_checksum_address(transfer.source.bridge),
            'data': data,
            'value': fee.fee,
        }
