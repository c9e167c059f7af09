"""Run configuration, built once at process start"""

import os
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional

from dotenv import load_dotenv

from .errors import ConfigurationError


class Environment(Enum):
    """Sygma deployment environment"""
    TESTNET = 'testnet'
    MAINNET = 'mainnet'

    @property
    def shared_config_url(self) -> str:
        return _SHARED_CONFIG_URLS[self]

    @property
    def explorer_api_url(self) -> str:
        return _EXPLORER_API_URLS[self]

    @property
    def scan_url(self) -> str:
        return _SCAN_URLS[self]


_SHARED_CONFIG_URLS = {
    Environment.TESTNET: 'https://chainbridge-assets-stage.s3.us-east-2.amazonaws.com/shared-config-test.json',
    Environment.MAINNET: 'https://sygma-assets-mainnet.s3.us-east-2.amazonaws.com/shared-config-mainnet.json',
}

_EXPLORER_API_URLS = {
    Environment.TESTNET: 'https://api.test.buildwithsygma.com',
    Environment.MAINNET: 'https://api.buildwithsygma.com',
}

_SCAN_URLS = {
    Environment.TESTNET: 'https://scan.test.buildwithsygma.com',
    Environment.MAINNET: 'https://scan.buildwithsygma.com',
}

DESTINATION_CHAIN_ID = 17000  # Holesky
RESOURCE_ID = '0x0000000000000000000000000000000000000000000000000000000000000500'  # generic message handler
EXECUTE_CONTRACT_ADDRESS = '0x303e46f108ed47bf5a489cf62926fd3d8ddcc72a'
EXECUTE_FUNCTION_SIGNATURE = '0xd09de08a'  # increment()
EXECUTION_DATA = ''
MAX_FEE = 3000000

DEFAULT_SOURCE_RPC_URL = 'https://sepolia.drpc.org'
DEFAULT_DESTINATION_RPC_URL = 'https://holesky.drpc.org'

# Canonical env names and the aliases accepted in their place
ENV_ALIASES: Dict[str, List[str]] = {
    'SEPOLIA_RPC_URL': ['BASE_SEPOLIA_RPC_URL'],
    'HOLESKY_RPC_URL': [],
    'PRIVATE_KEY': [],
}

_PRIVATE_KEY_PATTERN = re.compile(r'^0x[0-9a-fA-F]{64}$')


def resolve_env_value(name: str, env: Mapping[str, str]) -> Optional[str]:
    """Look ``name`` up in ``env``, falling back to its aliases"""
    value = env.get(name)
    if value:
        return value
    for alias in ENV_ALIASES.get(name, []):
        alias_value = env.get(alias)
        if alias_value:
            return alias_value
    return None


@dataclass(frozen=True)
class Config:
    """Everything a run needs, passed explicitly to each component"""
    private_key: str
    source_rpc_url: str = DEFAULT_SOURCE_RPC_URL
    destination_rpc_url: str = DEFAULT_DESTINATION_RPC_URL
    environment: Environment = Environment.TESTNET
    destination_chain_id: int = DESTINATION_CHAIN_ID
    resource_id: str = RESOURCE_ID
    execute_contract_address: str = EXECUTE_CONTRACT_ADDRESS
    execute_function_signature: str = EXECUTE_FUNCTION_SIGNATURE
    execution_data: str = EXECUTION_DATA
    max_fee: int = MAX_FEE
    watch_interval: float = 15.0
    watch_attempts: int = 8
    read_retries: int = 3
    read_retry_interval: float = 2.0
    status_interval: float = 5.0
    overall_timeout: float = 600.0
    http_timeout: float = 30.0

    def __repr__(self) -> str:
        return (
            f"Config(source_rpc_url={self.source_rpc_url!r}, "
            f"destination_rpc_url={self.destination_rpc_url!r}, "
            f"environment={self.environment.value!r}, private_key='***')"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **overrides) -> 'Config':
        """
        Build a config from environment variables

        Args:
            environ: Mapping to read from. When omitted, a ``.env`` file is
                loaded into the process environment first and
                ``os.environ`` is used.
            **overrides: Field values that replace the compiled-in defaults

        Raises:
            ConfigurationError: ``PRIVATE_KEY`` is missing or not a 32-byte hex key
        """
        if environ is None:
            load_dotenv()
            environ = os.environ

        private_key = resolve_env_value('PRIVATE_KEY', environ)
        if not private_key:
            raise ConfigurationError("Missing environment variable: PRIVATE_KEY")
        private_key = private_key.strip()
        if not private_key.startswith('0x'):
            private_key = f"0x{private_key}"
        if not _PRIVATE_KEY_PATTERN.match(private_key):
            raise ConfigurationError("PRIVATE_KEY must be a 32-byte hex string")

        return cls(
            private_key=private_key,
            source_rpc_url=resolve_env_value('SEPOLIA_RPC_URL', environ) or DEFAULT_SOURCE_RPC_URL,
            destination_rpc_url=resolve_env_value('HOLESKY_RPC_URL', environ) or DEFAULT_DESTINATION_RPC_URL,
            **overrides,
        )
