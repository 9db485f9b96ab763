import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Optional

from eth_account import Account
from eth_typing import HexStr
from web3.exceptions import TransactionNotFound
from web3.types import TxReceipt

from zksync_flow.account.wallet import Wallet
from zksync_flow.config import ClientSettings, NetworkCredentials, PaymasterCredentials
from zksync_flow.constants.networks import NetworkConfig, get_network_config
from zksync_flow.core.errors import MissingCredential
from zksync_flow.module.module_builder import ZkSyncBuilder, ZkWeb3

logger = logging.getLogger(__name__)

DEFAULT_NOTICE = (
    "zksync-flow keeps private keys in process memory only and does not "
    "provide wallet custody; use dedicated keys for automation."
)


class NoticeGate:
    """Logs ``message`` the first time :meth:`emit` is called, then stays quiet until reset."""

    def __init__(self, message: str = DEFAULT_NOTICE, log: Optional[logging.Logger] = None):
        self.message = message
        self._log = log or logger
        self._emitted = False
        self._lock = threading.Lock()

    @property
    def emitted(self) -> bool:
        return self._emitted

    def emit(self) -> bool:
        with self._lock:
            if self._emitted:
                return False
            self._emitted = True
        self._log.warning(self.message)
        return True

    def reset(self):
        with self._lock:
            self._emitted = False


def get_transaction_receipt(
    web3: ZkWeb3,
    tx_hash: HexStr,
    retries: int = 3,
    delay: float = 2.0,
    backoff: float = 2.0,
    max_delay: float = 30.0,
) -> Optional[TxReceipt]:
    """
    Looks the receipt up to ``retries`` times, sleeping ``delay`` seconds
    after the first miss and multiplying the pause by ``backoff`` after each
    following one, never above ``max_delay``.

    Returns None when the transaction is still unknown after the last try.
    """
    pause = delay
    for attempt in range(retries):
        try:
            receipt = web3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            receipt = None
        if receipt is not None:
            return receipt
        if attempt < retries - 1:
            logger.debug(
                "Receipt for %s not available (attempt %d/%d), retrying in %.1fs",
                tx_hash,
                attempt + 1,
                retries,
                min(pause, max_delay),
            )
            time.sleep(min(pause, max_delay))
            pause *= backoff
    return None


@dataclass
class ZkSyncClient:
    web3: ZkWeb3
    network: str
    network_config: NetworkConfig
    chain_id: int
    wallet: Optional[Wallet] = None
    settings: ClientSettings = field(default_factory=ClientSettings)
    paymaster: Optional[PaymasterCredentials] = None

    def require_wallet(self, action: str) -> Wallet:
        if self.wallet is None:
            raise MissingCredential(action)
        return self.wallet

    def get_receipt(self, tx_hash: HexStr) -> Optional[TxReceipt]:
        return get_transaction_receipt(
            self.web3,
            tx_hash,
            retries=self.settings.receipt_retries,
            delay=self.settings.receipt_delay,
            backoff=self.settings.receipt_backoff,
            max_delay=self.settings.receipt_max_delay,
        )

    def wait_for_transaction(self, tx_hash: HexStr) -> TxReceipt:
        return self.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.settings.wait_timeout
        )


def create_zksync_client(
    credentials: NetworkCredentials,
    settings: Optional[ClientSettings] = None,
    notice_gate: Optional[NoticeGate] = None,
    paymaster: Optional[PaymasterCredentials] = None,
    web3: Optional[ZkWeb3] = None,
) -> ZkSyncClient:
    """
    Resolves the network, connects and attaches a signing wallet when a
    private key is configured.

    :param notice_gate: One-shot notice logged on the first client created with it.
    :param web3: Pre-built connection; by default one is built from the network RPC URL.
    """
    if notice_gate is not None:
        notice_gate.emit()
    settings = settings or ClientSettings()

    config = get_network_config(credentials.network, credentials.custom_rpc_url)
    if web3 is None:
        web3 = ZkSyncBuilder.build(config.rpc_url, timeout=settings.request_timeout)
    chain_id = web3.eth.chain_id

    wallet = None
    if credentials.private_key:
        wallet = Wallet(web3, Account.from_key(credentials.private_key), chain_id)

    logger.debug("Connected to %s (chain %d) at %s", config.name, chain_id, config.rpc_url)
    return ZkSyncClient(
        web3=web3,
        network=credentials.network,
        network_config=config,
        chain_id=chain_id,
        wallet=wallet,
        settings=settings,
        paymaster=paymaster,
    )
