from typing import Union

from eth_typing import URI
from web3 import Web3
from web3._utils.module import attach_modules
from web3.providers.base import BaseProvider

from zksync_flow.module.zksync_module import ZkSync
from zksync_flow.module.zksync_provider import DEFAULT_REQUEST_TIMEOUT, ZkSyncProvider


class ZkWeb3(Web3):
    """``Web3`` carrying the ``zks_*`` namespace as ``web3.zksync``."""

    zksync: ZkSync

    def __init__(self, provider: BaseProvider, **kwargs):
        super(ZkWeb3, self).__init__(provider, **kwargs)
        attach_modules(self, {"zksync": (ZkSync,)})


class ZkSyncBuilder:
    @classmethod
    def build(
        cls, url: Union[URI, str], timeout: float = DEFAULT_REQUEST_TIMEOUT
    ) -> ZkWeb3:
        """Connects over HTTP, ``timeout`` bounds every request in seconds."""
        return ZkWeb3(ZkSyncProvider(url, timeout=timeout))
