"""Builds, signs and broadcasts a generic message transfer"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

from eth_account.signers.local import LocalAccount

from .client import ChainClient
from .errors import SubmissionError
from .generic_message import EvmFee, EvmGenericMessageTransfer
from .transaction import TransactionBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferRequest:
    """What to send; built once per run"""
    sender_address: str
    destination_chain_id: int
    resource_id: str
    target_contract_address: str
    target_function_selector: str
    payload: str
    max_fee: int


@dataclass(frozen=True)
class SubmittedTransfer:
    """A broadcast transfer"""
    transaction_hash: str
    fee: EvmFee


@contextmanager
def _stage(name: str) -> Iterator[None]:
    try:
        yield
    except SubmissionError:
        raise
    except Exception as e:
        raise SubmissionError(f"{name} failed", cause=e) from e


def submit_transfer(
    request: TransferRequest,
    sdk: EvmGenericMessageTransfer,
    source: ChainClient,
    account: LocalAccount
) -> SubmittedTransfer:
    """
    Quote, sign and broadcast one transfer

    The broadcast cannot be undone, and nothing here retries: a caller that
    retries must first confirm the earlier attempt failed, or it risks
    reusing the nonce.

    Raises:
        SubmissionError: Any step failed; the original exception is the cause
    """
    with _stage("Creating transfer"):
        transfer = sdk.create_generic_message_transfer(
            sender=request.sender_address,
            destination_chain_id=request.destination_chain_id,
            resource_id=request.resource_id,
            destination_contract_address=request.target_contract_address,
            destination_function_signature=request.target_function_selector,
            execution_data=request.payload,
            max_fee=request.max_fee,
        )

    with _stage("Fee quote"):
        fee = sdk.get_fee(transfer)
    logger.info("Fee for the transfer: %s wei", fee.fee)

    with _stage("Building transaction"):
        builder = TransactionBuilder.from_request(sdk.build_transfer_transaction(transfer, fee))
        builder.set_nonce(source.get_transaction_count(account.address))
        builder.set_gas_price(source.get_gas_price())
        builder.set_chain_id(source.chain_id())
        builder.set_gas(source.estimate_gas(builder.request()))
        transaction = builder.build()

    with _stage("Signing"):
        signed = transaction.sign(account)

    with _stage("Broadcast"):
        tx_hash = source.send_raw_transaction(signed.raw_transaction)

    logger.info("Sent transfer with hash %s (nonce %d)", tx_hash, transaction.nonce)
    return SubmittedTransfer(transaction_hash=tx_hash or signed.hash, fee=fee)
