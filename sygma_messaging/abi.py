"""Contract ABI fragments and call encoding"""

from typing import Any, Dict, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import decode_hex, encode_hex, function_signature_to_4byte_selector


# Destination contract: a counter bumped by each executed message
COUNTER_ABI: List[Dict[str, Any]] = [
    {
        'name': 'number',
        'type': 'function',
        'stateMutability': 'view',
        'inputs': [],
        'outputs': [{'name': '', 'type': 'uint256'}],
    },
    {
        'name': 'increment',
        'type': 'function',
        'stateMutability': 'nonpayable',
        'inputs': [],
        'outputs': [],
    },
]

BRIDGE_ABI: List[Dict[str, Any]] = [
    {
        'name': 'deposit',
        'type': 'function',
        'stateMutability': 'payable',
        'inputs': [
            {'name': 'destinationDomainID', 'type': 'uint8'},
            {'name': 'resourceID', 'type': 'bytes32'},
            {'name': 'depositData', 'type': 'bytes'},
            {'name': 'feeData', 'type': 'bytes'},
        ],
        'outputs': [
            {'name': 'depositNonce', 'type': 'uint64'},
            {'name': 'handlerResponse', 'type': 'bytes'},
        ],
    },
]

FEE_ROUTER_ABI: List[Dict[str, Any]] = [
    {
        'name': 'calculateFee',
        'type': 'function',
        'stateMutability': 'view',
        'inputs': [
            {'name': 'sender', 'type': 'address'},
            {'name': 'fromDomainID', 'type': 'uint8'},
            {'name': 'destinationDomainID', 'type': 'uint8'},
            {'name': 'resourceID', 'type': 'bytes32'},
            {'name': 'depositData', 'type': 'bytes'},
            {'name': 'feeData', 'type': 'bytes'},
        ],
        'outputs': [
            {'name': 'fee', 'type': 'uint256'},
            {'name': 'tokenAddress', 'type': 'address'},
        ],
    },
]


def find_function(abi: List[Dict[str, Any]], name: str) -> Dict[str, Any]:
    """Return the function fragment called ``name``"""
    for fragment in abi:
        if fragment.get('type', 'function') == 'function' and fragment.get('name') == name:
            return fragment
    raise ValueError(f"Function {name!r} not found in ABI")


def _types(params: List[Dict[str, Any]]) -> List[str]:
    return [param['type'] for param in params]


def function_selector(fragment: Dict[str, Any]) -> bytes:
    """4-byte selector of a function fragment"""
    signature = f"{fragment['name']}({','.join(_types(fragment['inputs']))})"
    return function_signature_to_4byte_selector(signature)


def encode_function_call(
    abi: List[Dict[str, Any]],
    name: str,
    args: Sequence[Any] = ()
) -> str:
    """Encode calldata for ``name(args)`` as a 0x-prefixed hex string"""
    fragment = find_function(abi, name)
    input_types = _types(fragment['inputs'])
    if len(args) != len(input_types):
        raise ValueError(
            f"{name} expects {len(input_types)} arguments, got {len(args)}"
        )
    return encode_hex(function_selector(fragment) + encode(input_types, list(args)))


def decode_function_result(
    abi: List[Dict[str, Any]],
    name: str,
    data: str
) -> Tuple[Any, ...]:
    """Decode the return data of ``name``"""
    fragment = find_function(abi, name)
    return tuple(decode(_types(fragment['outputs']), decode_hex(data)))
