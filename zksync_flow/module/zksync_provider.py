import logging
import time
from typing import Any, Optional, Union

from eth_typing import URI
from web3 import HTTPProvider
from web3.types import RPCEndpoint, RPCResponse

from zksync_flow.core.errors import InvalidQuantity

DEFAULT_REQUEST_TIMEOUT = 30


class ZkSyncProvider(HTTPProvider):
    """HTTP transport with a bounded request timeout and DEBUG request tracing."""

    logger = logging.getLogger("zksync_flow.module.zksync_provider")

    # signed payloads are traced by method name only
    _OPAQUE_METHODS = frozenset({"eth_sendRawTransaction"})

    def __init__(
        self, url: Optional[Union[URI, str]], timeout: float = DEFAULT_REQUEST_TIMEOUT
    ):
        if timeout <= 0:
            raise InvalidQuantity(f"Request timeout must be positive: {timeout}")
        super(ZkSyncProvider, self).__init__(url, request_kwargs={"timeout": timeout})
        self.timeout = timeout

    def make_request(self, method: RPCEndpoint, params: Any) -> RPCResponse:
        if method in self._OPAQUE_METHODS:
            self.logger.debug("make_request: %s", method)
        else:
            self.logger.debug("make_request: %s, params: %s", method, params)
        started = time.monotonic()
        response = super(ZkSyncProvider, self).make_request(method, params)
        if "error" in response:
            self.logger.debug(
                "%s failed after %.3fs: %s", method, time.monotonic() - started, response["error"]
            )
        return response
