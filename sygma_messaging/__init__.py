"""Sygma generic message transfers with destination and status tracking"""

from .client import ChainClient, RpcError
from .config import Config, Environment
from .errors import (
    ConfigurationError,
    StatusQueryError,
    SubmissionError,
    SygmaMessagingError,
    WatchReadError,
)
from .generic_message import EvmFee, EvmGenericMessageTransfer, GenericMessageTransfer
from .orchestrator import RunSummary, TransferOrchestrator, build_orchestrator, run_from_env
from .status import StatusPoller, SygmaStatusClient, TransferStatusRecord
from .submission import SubmittedTransfer, TransferRequest, submit_transfer
from .transaction import Transaction, TransactionBuilder
from .watcher import CompletionWatcher, WatchOutcome, WatchStatus

__version__ = '0.1.0'

__all__ = [
    'ChainClient',
    'CompletionWatcher',
    'Config',
    'ConfigurationError',
    'Environment',
    'EvmFee',
    'EvmGenericMessageTransfer',
    'GenericMessageTransfer',
    'RpcError',
    'RunSummary',
    'StatusPoller',
    'StatusQueryError',
    'SubmissionError',
    'SubmittedTransfer',
    'SygmaMessagingError',
    'SygmaStatusClient',
    'Transaction',
    'TransactionBuilder',
    'TransferOrchestrator',
    'TransferRequest',
    'TransferStatusRecord',
    'WatchOutcome',
    'WatchReadError',
    'WatchStatus',
    'build_orchestrator',
    'run_from_env',
    'submit_transfer',
]
