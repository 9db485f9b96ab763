"""
Connection settings for the operation surface and the trigger.

Each dataclass can be filled in directly or read from ``ZKSYNC_*``
environment variables through ``from_env``.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from zksync_flow.constants.networks import Network, NetworkConfig
from zksync_flow.core.errors import InvalidQuantity
from zksync_flow.core.types import PaymasterParams
from zksync_flow.manage_contracts.paymaster_utils import (
    get_approval_based_paymaster_params,
    get_general_paymaster_params,
)
from zksync_flow.module.zksync_provider import DEFAULT_REQUEST_TIMEOUT


def _env(environ: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if environ is None else environ


@dataclass
class NetworkCredentials:
    """Which chain to talk to and, optionally, the key that signs for it."""

    network: str = Network.MAINNET.value
    custom_rpc_url: Optional[str] = None
    private_key: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "NetworkCredentials":
        env = _env(environ)
        return cls(
            network=env.get("ZKSYNC_NETWORK", Network.MAINNET.value),
            custom_rpc_url=env.get("ZKSYNC_RPC_URL") or None,
            private_key=env.get("ZKSYNC_PRIVATE_KEY") or None,
        )


@dataclass
class PaymasterCredentials:
    """
    Paymaster used by sends that opt into sponsored fees.

    ``testnet`` takes the network's testnet paymaster, ``custom`` takes
    ``paymaster_address``. With a ``gas_token_address`` the flow becomes
    ApprovalBased (fees paid in that ERC-20), otherwise General.
    """

    TESTNET = "testnet"
    CUSTOM = "custom"

    paymaster_type: str = TESTNET
    paymaster_address: Optional[str] = None
    gas_token_address: Optional[str] = None

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None
    ) -> "PaymasterCredentials":
        env = _env(environ)
        return cls(
            paymaster_type=env.get("ZKSYNC_PAYMASTER_TYPE", cls.TESTNET),
            paymaster_address=env.get("ZKSYNC_PAYMASTER_ADDRESS") or None,
            gas_token_address=env.get("ZKSYNC_GAS_TOKEN_ADDRESS") or None,
        )

    def resolve_address(self, network_config: NetworkConfig) -> Optional[str]:
        if self.paymaster_type == self.CUSTOM:
            return self.paymaster_address
        return network_config.testnet_paymaster

    def build_params(
        self, network_config: NetworkConfig, minimal_allowance: int = 1
    ) -> Optional[PaymasterParams]:
        """Returns None when the network has no paymaster to offer."""
        paymaster = self.resolve_address(network_config)
        if not paymaster:
            return None
        if self.gas_token_address:
            return get_approval_based_paymaster_params(
                paymaster, self.gas_token_address, minimal_allowance
            )
        return get_general_paymaster_params(paymaster)


@dataclass
class ClientSettings:
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_retries: int = 3
    receipt_delay: float = 2.0
    receipt_backoff: float = 2.0
    receipt_max_delay: float = 30.0
    wait_timeout: float = 120.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientSettings":
        env = _env(environ)
        raw_timeout = env.get("ZKSYNC_REQUEST_TIMEOUT")
        if not raw_timeout:
            return cls()
        try:
            timeout = float(raw_timeout)
        except ValueError:
            raise InvalidQuantity(
                f"ZKSYNC_REQUEST_TIMEOUT must be a number of seconds: {raw_timeout!r}"
            ) from None
        if timeout <= 0:
            raise InvalidQuantity(f"ZKSYNC_REQUEST_TIMEOUT must be positive: {timeout}")
        return cls(request_timeout=timeout)
