"""JSON-RPC client for EVM chains"""

from typing import Any, Dict, List, Optional, Sequence

import httpx

from .abi import decode_function_result, encode_function_call


class RpcError(Exception):
    """RPC Error"""
    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC Error {code}: {message}")


class ChainClient:
    """Client for reading from and sending transactions to an EVM chain"""

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self._transport = transport
        self._request_id = 1

    def _call(self, method: str, params: Optional[List[Any]] = None) -> Any:
        """Make an RPC call"""
        request = {
            'jsonrpc': '2.0',
            'id': self._request_id,
            'method': method,
            'params': params or [],
        }
        self._request_id += 1

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(self.rpc_url, json=request)
            response.raise_for_status()

            try:
                result = response.json()
            except ValueError as e:
                raise RpcError(-32700, f"Invalid JSON response from {self.rpc_url}") from e
            if not isinstance(result, dict):
                raise RpcError(-32600, f"Unexpected response from {self.rpc_url}: {result!r}")

            if 'error' in result:
                error = result['error']
                if not isinstance(error, dict):
                    raise RpcError(-1, str(error))
                raise RpcError(error.get('code', -1), error.get('message', ''))

            return result.get('result')

    def chain_id(self) -> int:
        """Get the chain id"""
        return int(self._call('eth_chainId'), 16)

    def get_block_number(self) -> int:
        """Get the latest block number"""
        return int(self._call('eth_blockNumber'), 16)

    def get_gas_price(self) -> int:
        """Get the current gas price in wei"""
        return int(self._call('eth_gasPrice'), 16)

    def get_transaction_count(self, address: str, block: str = 'pending') -> int:
        """Get the next nonce for an address"""
        return int(self._call('eth_getTransactionCount', [address, block]), 16)

    def estimate_gas(self, transaction: Dict[str, Any]) -> int:
        """Estimate gas for a transaction"""
        return int(self._call('eth_estimateGas', [_to_rpc_transaction(transaction)]), 16)

    def call(self, to: str, data: str, sender: Optional[str] = None) -> str:
        """Execute a read-only call against the latest block"""
        params: Dict[str, Any] = {'to': to, 'data': data}
        if sender:
            params['from'] = sender
        result = self._call('eth_call', [params, 'latest'])
        if not isinstance(result, str):
            raise RpcError(-32000, f"eth_call returned no data: {result!r}")
        return result

    def call_contract_method(
        self,
        address: str,
        abi: List[Dict[str, Any]],
        method_name: str,
        args: Sequence[Any] = (),
        sender: Optional[str] = None
    ) -> Any:
        """Call a view method and decode its return value

        A method with a single output returns that value directly, otherwise
        a tuple of all outputs is returned.
        """
        data = encode_function_call(abi, method_name, args)
        raw = self.call(address, data, sender=sender)
        values = decode_function_result(abi, method_name, raw)
        if len(values) == 1:
            return values[0]
        return values

    def send_raw_transaction(self, raw_transaction: str) -> str:
        """Send a signed transaction and return its hash"""
        return self._call('eth_sendRawTransaction', [raw_transaction])

    def get_transaction_receipt(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Get a transaction receipt, or None while pending"""
        return self._call('eth_getTransactionReceipt', [tx_hash])


def _to_rpc_transaction(transaction: Dict[str, Any]) -> Dict[str, Any]:
    """Hex-encode integer fields the way JSON-RPC expects them"""
    encoded = {}
    for key, value in transaction.items():
        if key == 'chainId':
            continue
        if isinstance(value, int):
            encoded[key] = hex(value)
        else:
            encoded[key] = value
    return encoded
