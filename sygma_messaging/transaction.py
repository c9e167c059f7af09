"""Transaction builder and signing utilities"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from eth_account.signers.local import LocalAccount
from eth_utils import encode_hex, to_checksum_address


@dataclass(frozen=True)
class SignedTransaction:
    """A signed transaction ready for broadcast"""
    raw_transaction: str
    hash: str


@dataclass(frozen=True)
class Transaction:
    """Legacy (type 0) EVM transaction"""
    to: str
    data: str
    value: int
    nonce: int
    gas: int
    gas_price: int
    chain_id: int
    sender: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Transaction fields in the form eth-account signs"""
        return {
            'to': self.to,
            'data': self.data,
            'value': self.value,
            'nonce': self.nonce,
            'gas': self.gas,
            'gasPrice': self.gas_price,
            'chainId': self.chain_id,
        }

    def sign(self, account: LocalAccount) -> SignedTransaction:
        """Sign with the sender's key"""
        if self.sender and to_checksum_address(self.sender) != account.address:
            raise ValueError(
                f"Transaction sender {self.sender} does not match signer {account.address}"
            )
        signed = account.sign_transaction(self.to_dict())
        return SignedTransaction(
            raw_transaction=encode_hex(signed.raw_transaction),
            hash=encode_hex(signed.hash),
        )


class TransactionBuilder:
    """Builder for constructing transactions"""

    def __init__(self):
        self.to: Optional[str] = None
        self.data: str = '0x'
        self.value: int = 0
        self.nonce: Optional[int] = None
        self.gas: Optional[int] = None
        self.gas_price: Optional[int] = None
        self.chain_id: Optional[int] = None
        self.sender: Optional[str] = None

    @classmethod
    def from_request(cls, request: Dict[str, Any]) -> 'TransactionBuilder':
        """Start from a partial transaction dict (``to``, ``data``, ``value``, ``from``)"""
        builder = cls()
        builder.set_to(request['to'])
        builder.set_data(request.get('data', '0x'))
        builder.set_value(int(request.get('value', 0)))
        if request.get('from'):
            builder.set_sender(request['from'])
        return builder

    def set_to(self, to: str) -> 'TransactionBuilder':
        """Set the recipient"""
        self.to = to_checksum_address(to)
        return self

    def set_data(self, data: str) -> 'TransactionBuilder':
        """Set the calldata"""
        self.data = data
        return self

    def set_value(self, value: int) -> 'TransactionBuilder':
        """Set the value in wei"""
        self.value = value
        return self

    def set_nonce(self, nonce: int) -> 'TransactionBuilder':
        self.nonce = nonce
        return self

    def set_gas(self, gas: int) -> 'TransactionBuilder':
        self.gas = gas
        return self

    def set_gas_price(self, gas_price: int) -> 'TransactionBuilder':
        self.gas_price = gas_price
        return self

    def set_chain_id(self, chain_id: int) -> 'TransactionBuilder':
        self.chain_id = chain_id
        return self

    def set_sender(self, sender: str) -> 'TransactionBuilder':
        self.sender = to_checksum_address(sender)
        return self

    def request(self) -> Dict[str, Any]:
        """Fields known so far, for gas estimation"""
        request: Dict[str, Any] = {'to': self.to, 'data': self.data, 'value': self.value}
        if self.sender:
            request['from'] = self.sender
        return request

    def build(self) -> Transaction:
        """Build the transaction"""
        if self.to is None:
            raise ValueError("Recipient not set")
        if self.nonce is None:
            raise ValueError("Nonce not set")
        if self.gas is None or self.gas_price is None:
            raise ValueError("Gas not set")
        if self.chain_id is None:
            raise ValueError("Chain id not set")

        return Transaction(
            to=self.to,
            data=self.data,
            value=self.value,
            nonce=self.nonce,
            gas=self.gas,
            gas_price=self.gas_price,
            chain_id=self.chain_id,
            sender=self.sender,
        )
